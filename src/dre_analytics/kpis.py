# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
KPI aggregation for DRE Analytics.

This module computes the headline indicators of a transactions frame:

- total revenue   : sum of credit amounts (already non-negative),
- total expense   : sum of absolute debit amounts,
- net profit      : revenue - expense,
- margin (%)      : net profit / revenue * 100, or 0 when revenue is 0,
- monthly revenue and expense series, keyed by ``YYYY-MM`` and sorted
  ascending by key.

It also exposes the per-month revenue/expense/profit table used by the
ranking engine and the monthly report, and the cumulative cash flow
series derived from the KPI series.

All functions are pure and total: an empty frame yields zero values and
empty series, never an exception.
"""

from dataclasses import dataclass, field

import pandas as pd

from .transactions import CREDIT, DEBIT, month_keys


@dataclass(frozen=True)
class MonthValue:
    """One point of a monthly series."""

    month: str
    value: float


@dataclass(frozen=True)
class KPIData:
    """Headline indicators for a set of transactions."""

    total_revenue: float = 0.0
    total_expense: float = 0.0
    net_profit: float = 0.0
    margin_pct: float = 0.0
    revenue_by_month: list[MonthValue] = field(default_factory=list)
    expense_by_month: list[MonthValue] = field(default_factory=list)

    def summary(self) -> dict[str, float]:
        """Return the scalar KPIs only (the text-insight request payload)."""
        return {
            "totalRevenue": self.total_revenue,
            "totalExpense": self.total_expense,
            "netProfit": self.net_profit,
            "marginPct": self.margin_pct,
        }


@dataclass(frozen=True)
class MonthlyTotals:
    """Revenue, expense and profit of one month."""

    month: str
    revenue: float
    expense: float
    profit: float


@dataclass(frozen=True)
class CashFlowPoint:
    """Monthly net flow and its running total."""

    month: str
    flow: float
    accumulated: float


def margin_pct(profit: float, revenue: float) -> float:
    """Return profit as a percentage of revenue, 0 when revenue is not positive."""
    if revenue > 0:
        return profit / revenue * 100
    return 0.0


def _series_by_month(frame: pd.DataFrame) -> list[MonthValue]:
    """Sum absolute amounts per month key, sorted ascending by key."""
    if frame.empty:
        return []
    sums = frame["amount"].abs().groupby(month_keys(frame)).sum().sort_index()
    return [MonthValue(month=str(k), value=float(v)) for k, v in sums.items()]


def compute_kpis(frame: pd.DataFrame) -> KPIData:
    """Compute the headline KPIs of a transactions frame."""
    if frame.empty:
        return KPIData()

    credits = frame[frame["kind"] == CREDIT]
    debits = frame[frame["kind"] == DEBIT]

    total_revenue = float(credits["amount"].sum())
    total_expense = float(debits["amount"].abs().sum())
    net_profit = total_revenue - total_expense

    return KPIData(
        total_revenue=total_revenue,
        total_expense=total_expense,
        net_profit=net_profit,
        margin_pct=margin_pct(net_profit, total_revenue),
        revenue_by_month=_series_by_month(credits),
        expense_by_month=_series_by_month(debits),
    )


def monthly_totals(frame: pd.DataFrame) -> list[MonthlyTotals]:
    """
    Return revenue, expense and profit per month, sorted by month key.

    Months with only credits (or only debits) report 0 for the missing
    side. Months from different years never merge, since the key carries
    the year.
    """
    if frame.empty:
        return []

    keys = month_keys(frame)
    magnitude = frame["amount"].abs()
    revenue = magnitude.where(frame["kind"] == CREDIT, 0.0).groupby(keys).sum()
    expense = magnitude.where(frame["kind"] == DEBIT, 0.0).groupby(keys).sum()

    out: list[MonthlyTotals] = []
    for month in sorted(revenue.index):
        rev = float(revenue[month])
        exp = float(expense[month])
        out.append(
            MonthlyTotals(month=str(month), revenue=rev, expense=exp, profit=rev - exp)
        )
    return out


def cumulative_cash_flow(kpis: KPIData) -> list[CashFlowPoint]:
    """
    Build the accumulated cash flow series from the KPI monthly series.

    The months are the union of the revenue and expense series; a month
    missing on one side counts 0 for that side.
    """
    revenue = {p.month: p.value for p in kpis.revenue_by_month}
    expense = {p.month: p.value for p in kpis.expense_by_month}

    accumulated = 0.0
    points: list[CashFlowPoint] = []
    for month in sorted(set(revenue) | set(expense)):
        flow = revenue.get(month, 0.0) - expense.get(month, 0.0)
        accumulated += flow
        points.append(CashFlowPoint(month=month, flow=flow, accumulated=accumulated))
    return points
