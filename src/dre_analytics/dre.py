# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
DRE (income statement) engine for DRE Analytics.

This module turns a transactions frame into the two income-statement
views of the dashboard. Both are pure functions of
(transactions, revenue mode, classifier) and are recomputed from scratch
on every call.

1. Monthly DRE
   -----------
   One row per ``YYYY-MM`` key with: sales revenue, other revenue (the
   residual), total revenue, total expense, profit. No expense breakdown.

2. Annual DRE
   ----------
   One row per year with the full breakdown:

       recognized revenue
       - variable costs
       = contribution margin
       - personnel - administrative - operational - financial - other
       = operational result

   Each expense bucket carries a two-level drill-down table
   ``group -> subgroup -> amount`` whose iteration order is the order in
   which groups/subgroups were first seen.

The two views are intentionally different granularities and are built by
two separate functions.

Revenue recognition
-------------------
Credits whose group matches the sales rule ("receita" AND "venda") are
sales revenue. ``other_revenue`` is always computed as
``total_revenue - sales_revenue``, never accumulated on its own, so
reclassifying a transaction as sales cannot double count it.

- mode "total": recognized revenue = total revenue; every debit counts.
- mode "sales": recognized revenue = sales revenue; debits whose group is a
  non-operating outflow ("saida" AND "nao operaciona") are left out of the
  recognized expense and out of the bucket tables. They are still reported
  in ``non_operating_outflow`` so the exclusion can be disclosed.

In both modes, ``sum(bucket totals) == recognized_expense`` and
``recognized_expense + excluded outflow == total_expense``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from .classification import (
    ADMINISTRATIVE,
    BUCKET_LABELS,
    BUCKETS,
    FINANCIAL,
    OPERATIONAL,
    OTHER,
    PERSONNEL,
    VARIABLE_COSTS,
    Classifier,
    default_classifier,
)
from .kpis import margin_pct
from .transactions import CREDIT

REVENUE_MODE_TOTAL = "total"
REVENUE_MODE_SALES = "sales"
REVENUE_MODES: tuple[str, ...] = (REVENUE_MODE_TOTAL, REVENUE_MODE_SALES)

EXCLUDED_KEY = "non_operating_outflow"
EXCLUDED_LABEL = "Saídas Não Operacionais"


def check_revenue_mode(mode: str) -> str:
    """Validate a revenue mode and return it."""
    if mode not in REVENUE_MODES:
        raise ValueError(
            f"Unknown revenue mode {mode!r}. Expected one of: "
            f"{', '.join(REVENUE_MODES)}."
        )
    return mode


@dataclass
class DREBucket:
    """One expense bucket with its group -> subgroup drill-down."""

    key: str
    label: str
    total: float = 0.0
    groups: dict[str, dict[str, float]] = field(default_factory=dict)

    def add(self, group: str, subgroup: str, amount: float) -> None:
        self.total += amount
        subgroups = self.groups.setdefault(group, {})
        subgroups[subgroup] = subgroups.get(subgroup, 0.0) + amount

    def group_totals(self) -> dict[str, float]:
        """Total per group, in first-seen order."""
        return {g: sum(subs.values()) for g, subs in self.groups.items()}


@dataclass(frozen=True)
class MonthlyDRERow:
    """Monthly DRE line (no expense breakdown)."""

    month: str
    revenue_mode: str
    sales_revenue: float
    other_revenue: float
    total_revenue: float
    total_expense: float
    non_operating_outflow: float
    recognized_revenue: float
    recognized_expense: float
    profit: float


@dataclass(frozen=True)
class AnnualDRERow:
    """Annual DRE line with the full expense breakdown."""

    year: str
    revenue_mode: str
    sales_revenue: float
    other_revenue: float
    total_revenue: float
    recognized_revenue: float
    variable_costs: float
    contribution_margin: float
    contribution_margin_pct: float
    personnel: float
    administrative: float
    operational: float
    financial: float
    other: float
    total_expense: float
    non_operating_outflow: float
    recognized_expense: float
    operational_result: float
    operational_margin_pct: float
    buckets: dict[str, DREBucket]
    excluded: Optional[DREBucket] = None


@dataclass
class _Accumulator:
    """Running sums for one period key."""

    sales_revenue: float = 0.0
    total_revenue: float = 0.0
    total_expense: float = 0.0
    non_operating_outflow: float = 0.0
    buckets: dict[str, DREBucket] = field(
        default_factory=lambda: {k: DREBucket(k, BUCKET_LABELS[k]) for k in BUCKETS}
    )
    excluded: DREBucket = field(
        default_factory=lambda: DREBucket(EXCLUDED_KEY, EXCLUDED_LABEL)
    )

    @property
    def other_revenue(self) -> float:
        return self.total_revenue - self.sales_revenue


def _accumulate(
    frame: pd.DataFrame,
    key_of: Callable[[pd.Timestamp], str],
    revenue_mode: str,
    classifier: Classifier,
) -> dict[str, _Accumulator]:
    """Classify every transaction of ``frame`` into per-key accumulators."""
    acc: dict[str, _Accumulator] = {}
    if frame.empty:
        return acc

    divert_non_operating = revenue_mode == REVENUE_MODE_SALES

    for t in frame.itertuples(index=False):
        current = acc.setdefault(key_of(t.date), _Accumulator())
        amount = abs(float(t.amount))
        group = str(t.group)

        if t.kind == CREDIT:
            if classifier.is_sales_revenue(group):
                current.sales_revenue += amount
            current.total_revenue += amount
            continue

        current.total_expense += amount
        if classifier.is_non_operating_outflow(group):
            current.non_operating_outflow += amount
            if divert_non_operating:
                current.excluded.add(group, str(t.subgroup), amount)
                continue

        bucket = classifier.expense_bucket(group)
        current.buckets[bucket].add(group, str(t.subgroup), amount)

    return acc


def _recognized(current: _Accumulator, revenue_mode: str) -> tuple[float, float]:
    """Return (recognized revenue, recognized expense) for a mode."""
    if revenue_mode == REVENUE_MODE_SALES:
        return (
            current.sales_revenue,
            current.total_expense - current.non_operating_outflow,
        )
    return current.total_revenue, current.total_expense


def build_monthly_dre(
    frame: pd.DataFrame,
    revenue_mode: str = REVENUE_MODE_TOTAL,
    classifier: Optional[Classifier] = None,
) -> list[MonthlyDRERow]:
    """
    Build the monthly DRE, one row per ``YYYY-MM`` key, sorted by key.

    Args:
        frame: Transactions frame (already filtered).
        revenue_mode: 'total' or 'sales'.
        classifier: Keyword rules; the built-in rules when omitted.

    Returns:
        A list of MonthlyDRERow (empty for an empty frame).
    """
    check_revenue_mode(revenue_mode)
    rules = classifier or default_classifier()

    acc = _accumulate(
        frame,
        key_of=lambda d: f"{d.year:04d}-{d.month:02d}",
        revenue_mode=revenue_mode,
        classifier=rules,
    )

    rows: list[MonthlyDRERow] = []
    for month in sorted(acc):
        current = acc[month]
        revenue, expense = _recognized(current, revenue_mode)
        rows.append(
            MonthlyDRERow(
                month=month,
                revenue_mode=revenue_mode,
                sales_revenue=current.sales_revenue,
                other_revenue=current.other_revenue,
                total_revenue=current.total_revenue,
                total_expense=current.total_expense,
                non_operating_outflow=current.non_operating_outflow,
                recognized_revenue=revenue,
                recognized_expense=expense,
                profit=revenue - expense,
            )
        )
    return rows


def build_annual_dre(
    frame: pd.DataFrame,
    revenue_mode: str = REVENUE_MODE_TOTAL,
    classifier: Optional[Classifier] = None,
) -> list[AnnualDRERow]:
    """
    Build the annual DRE, one row per calendar year, sorted by year.

    Args:
        frame: Transactions frame (already filtered).
        revenue_mode: 'total' or 'sales'.
        classifier: Keyword rules; the built-in rules when omitted.

    Returns:
        A list of AnnualDRERow (empty for an empty frame).
    """
    check_revenue_mode(revenue_mode)
    rules = classifier or default_classifier()

    acc = _accumulate(
        frame,
        key_of=lambda d: f"{d.year:04d}",
        revenue_mode=revenue_mode,
        classifier=rules,
    )

    rows: list[AnnualDRERow] = []
    for year in sorted(acc):
        current = acc[year]
        revenue, expense = _recognized(current, revenue_mode)
        totals = {k: b.total for k, b in current.buckets.items()}

        contribution_margin = revenue - totals[VARIABLE_COSTS]
        fixed = (
            totals[PERSONNEL]
            + totals[ADMINISTRATIVE]
            + totals[OPERATIONAL]
            + totals[FINANCIAL]
            + totals[OTHER]
        )
        operational_result = contribution_margin - fixed

        rows.append(
            AnnualDRERow(
                year=year,
                revenue_mode=revenue_mode,
                sales_revenue=current.sales_revenue,
                other_revenue=current.other_revenue,
                total_revenue=current.total_revenue,
                recognized_revenue=revenue,
                variable_costs=totals[VARIABLE_COSTS],
                contribution_margin=contribution_margin,
                contribution_margin_pct=margin_pct(contribution_margin, revenue),
                personnel=totals[PERSONNEL],
                administrative=totals[ADMINISTRATIVE],
                operational=totals[OPERATIONAL],
                financial=totals[FINANCIAL],
                other=totals[OTHER],
                total_expense=current.total_expense,
                non_operating_outflow=current.non_operating_outflow,
                recognized_expense=expense,
                operational_result=operational_result,
                operational_margin_pct=margin_pct(operational_result, revenue),
                buckets=current.buckets,
                excluded=current.excluded if current.excluded.groups else None,
            )
        )
    return rows


MONTHLY_TOTAL_FIELDS: tuple[str, ...] = (
    "sales_revenue",
    "other_revenue",
    "total_revenue",
    "total_expense",
    "non_operating_outflow",
    "recognized_revenue",
    "recognized_expense",
    "profit",
)


def monthly_dre_totals(rows: list[MonthlyDRERow]) -> dict[str, float]:
    """Column totals of a monthly DRE (the 'Total' line of the table)."""
    return {
        name: float(sum(getattr(r, name) for r in rows))
        for name in MONTHLY_TOTAL_FIELDS
    }
