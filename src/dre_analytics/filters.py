# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Filter engine for DRE Analytics.

A FilterCriteria value object describes a conjunctive query over a
transactions frame:

- within a dimension (companies, groups, subgroups, accounts, kinds), a
  transaction passes when its value belongs to the allowed set;
- across dimensions, every active criterion must pass;
- an empty set (or None) means "no restriction" for that dimension;
- the date window is inclusive on both ends; a None bound is unbounded.

Filtering never raises on a well-formed frame: criteria that match
nothing simply produce an empty frame.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pandas as pd


@dataclass(frozen=True)
class FilterCriteria:
    """Conjunctive filter over transactions (empty = no restriction)."""

    companies: frozenset[str] = field(default_factory=frozenset)
    groups: frozenset[str] = field(default_factory=frozenset)
    subgroups: frozenset[str] = field(default_factory=frozenset)
    accounts: frozenset[str] = field(default_factory=frozenset)
    kinds: Optional[frozenset[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def build(
        cls,
        companies: Optional[Iterable[str]] = None,
        groups: Optional[Iterable[str]] = None,
        subgroups: Optional[Iterable[str]] = None,
        accounts: Optional[Iterable[str]] = None,
        kinds: Optional[Iterable[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> "FilterCriteria":
        """Convenience constructor accepting any iterables (or None)."""
        return cls(
            companies=frozenset(companies or ()),
            groups=frozenset(groups or ()),
            subgroups=frozenset(subgroups or ()),
            accounts=frozenset(accounts or ()),
            kinds=frozenset(kinds) if kinds else None,
            start_date=start_date,
            end_date=end_date,
        )

    def is_empty(self) -> bool:
        """Return True when no criterion is active."""
        return not (
            self.companies
            or self.groups
            or self.subgroups
            or self.accounts
            or self.kinds
            or self.start_date
            or self.end_date
        )


def filter_transactions(frame: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    """
    Return the subset of ``frame`` matching every active criterion.

    Parameters
    ----------
    frame:
        Transactions frame (see ``transactions.TRANSACTION_COLUMNS``).
    criteria:
        Filter to apply.

    Returns
    -------
    pandas.DataFrame
        A new frame (the input is never modified), with the original
        row order preserved.
    """
    if frame.empty or criteria.is_empty():
        return frame.copy()

    mask = pd.Series(True, index=frame.index)

    membership = (
        ("company", criteria.companies),
        ("group", criteria.groups),
        ("subgroup", criteria.subgroups),
        ("account", criteria.accounts),
        ("kind", criteria.kinds),
    )
    for column, allowed in membership:
        if allowed:
            mask &= frame[column].isin(sorted(allowed))

    if criteria.start_date is not None:
        mask &= frame["date"] >= pd.Timestamp(criteria.start_date)
    if criteria.end_date is not None:
        mask &= frame["date"] <= pd.Timestamp(criteria.end_date)

    return frame.loc[mask].copy()
