# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Category aggregation for DRE Analytics.

Groups transactions by one text dimension (group, subgroup or company)
and ranks the resulting totals, largest first. These rankings power the
"top N" tables and the pie-chart breakdowns.

Ordering contract: totals are sorted descending by value with a stable
sort, so that equal values keep the order in which their category was
first seen in the input frame. Transactions with an empty category value
are ignored.
"""

from dataclasses import dataclass

import pandas as pd

from .transactions import CREDIT, DEBIT

DIMENSIONS: tuple[str, ...] = ("group", "subgroup", "company")


@dataclass(frozen=True)
class CategoryTotal:
    """Summed absolute amount of one category."""

    name: str
    value: float


def group_by_category(frame: pd.DataFrame, dimension: str) -> list[CategoryTotal]:
    """
    Sum absolute amounts per value of ``dimension``, largest first.

    Args:
        frame: Transactions frame.
        dimension: One of 'group', 'subgroup', 'company'.

    Returns:
        A list of CategoryTotal, sorted by descending value (stable).

    Raises:
        ValueError: if ``dimension`` is not a supported column.
    """
    if dimension not in DIMENSIONS:
        raise ValueError(
            f"Unsupported category dimension {dimension!r}. "
            f"Expected one of: {', '.join(DIMENSIONS)}."
        )
    if frame.empty:
        return []

    keys = frame[dimension].astype(str)
    keep = keys != ""
    if not keep.any():
        return []

    # sort=False keeps first-seen order, which the stable sort preserves on ties.
    totals = frame.loc[keep, "amount"].abs().groupby(keys[keep], sort=False).sum()
    totals = totals.sort_values(ascending=False, kind="stable")
    return [CategoryTotal(name=str(k), value=float(v)) for k, v in totals.items()]


def top_expenses(frame: pd.DataFrame, limit: int = 10) -> list[CategoryTotal]:
    """Largest expense subgroups (debit transactions only)."""
    debits = frame[frame["kind"] == DEBIT] if not frame.empty else frame
    return group_by_category(debits, "subgroup")[:limit]


def top_revenues(frame: pd.DataFrame, limit: int = 10) -> list[CategoryTotal]:
    """Largest revenue subgroups (credit transactions only)."""
    credits = frame[frame["kind"] == CREDIT] if not frame.empty else frame
    return group_by_category(credits, "subgroup")[:limit]


def collapse_tail(
    items: list[CategoryTotal],
    keep: int = 8,
    other_label: str = "Outros",
) -> list[CategoryTotal]:
    """
    Keep the first ``keep`` items and fold the rest into one remainder item.

    The remainder item is only appended when its value is positive.
    """
    head = list(items[:keep])
    remainder = sum(item.value for item in items[keep:])
    if remainder > 0:
        head.append(CategoryTotal(name=other_label, value=remainder))
    return head


def share_pct(items: list[CategoryTotal]) -> list[float]:
    """Share of each item in the total, in percent (0 when the total is 0)."""
    total = sum(item.value for item in items)
    if total == 0:
        return [0.0 for _ in items]
    return [item.value / total * 100 for item in items]
