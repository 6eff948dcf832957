# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period comparison engine for DRE Analytics.

Overview
--------
This module compares two periods built by ``periods.build_periods``
(months, years or synthetic bimester/trimester/semester buckets) and
reports, for revenue, expense and profit:

    p1        value of the prior (reference) period,
    p2        value of the compared period,
    delta     p2 - p1,
    delta_pct delta / p1 * 100, or 0 when p1 is 0.

Proportional adjustment
-----------------------
Year-over-year comparisons are often made between a partial year
(year-to-date) and a full one. When the transaction day spans of the two
years are unequal, i.e. the shorter span is below
``PROPORTIONAL_THRESHOLD`` (80%) of the longer one, the figures of the
shorter year are scaled up to the longer year's day count:

    adjusted = raw / own_day_span * other_day_span

The result is flagged (``proportionally_adjusted``) so the presentation
layer can disclose the adjustment. Month and synthetic-period
comparisons are never adjusted.

Sales revenue by year
---------------------
``sales_revenue_by_year`` builds the year-over-year sales table: sales
revenue per calendar year with the growth versus the previous year, and
the overall first-to-last-year variation.
"""

from dataclasses import dataclass, replace
from typing import Optional

import pandas as pd

from .classification import Classifier, default_classifier
from .dre import REVENUE_MODE_TOTAL
from .periods import Period, build_periods, find_period
from .transactions import CREDIT, year_keys

# Day-span ratio below which a year comparison is proportionally adjusted.
PROPORTIONAL_THRESHOLD = 0.8


@dataclass(frozen=True)
class MetricVariance:
    """Variance of one metric between two periods."""

    p1: float
    p2: float
    delta: float
    delta_pct: float


@dataclass(frozen=True)
class PeriodComparison:
    """Revenue, expense and profit variance between two periods.

    Attributes:
        period1: Key of the prior (reference) period.
        period2: Key of the compared period.
        revenue / expense / profit: Metric variances.
        proportionally_adjusted: True when one period was scaled.
        adjusted_period: Key of the scaled period, if any.
        adjustment_factor: Scale applied to the adjusted period (1.0 if none).
    """

    period1: str
    period2: str
    revenue: MetricVariance
    expense: MetricVariance
    profit: MetricVariance
    proportionally_adjusted: bool = False
    adjusted_period: Optional[str] = None
    adjustment_factor: float = 1.0


def variance(prior: float, current: float) -> MetricVariance:
    """Compute the absolute and percentage variance between two values."""
    delta = current - prior
    delta_pct = 0.0 if prior == 0 else delta / prior * 100
    return MetricVariance(p1=prior, p2=current, delta=delta, delta_pct=delta_pct)


def compare_periods(period1: Period, period2: Period) -> PeriodComparison:
    """Compare ``period2`` against the prior ``period1`` (no adjustment)."""
    return PeriodComparison(
        period1=period1.key,
        period2=period2.key,
        revenue=variance(period1.revenue, period2.revenue),
        expense=variance(period1.expense, period2.expense),
        profit=variance(period1.profit, period2.profit),
    )


def scale_period(period: Period, factor: float) -> Period:
    """Return a copy of ``period`` with revenue and expense scaled."""
    revenue = period.revenue * factor
    expense = period.expense * factor
    return replace(period, revenue=revenue, expense=expense, profit=revenue - expense)


def compare_year_periods(
    period1: Period,
    period2: Period,
    threshold: float = PROPORTIONAL_THRESHOLD,
) -> PeriodComparison:
    """
    Compare two yearly periods, adjusting the shorter one when needed.

    The adjustment applies only when both day spans are known (> 0) and
    the shorter span is strictly below ``threshold`` times the longer one.
    """
    span1, span2 = period1.day_span, period2.day_span
    if span1 <= 0 or span2 <= 0:
        return compare_periods(period1, period2)

    shorter, longer = min(span1, span2), max(span1, span2)
    if shorter >= threshold * longer:
        return compare_periods(period1, period2)

    if span1 < span2:
        factor = span2 / span1
        adjusted = compare_periods(scale_period(period1, factor), period2)
        adjusted_key = period1.key
    else:
        factor = span1 / span2
        adjusted = compare_periods(period1, scale_period(period2, factor))
        adjusted_key = period2.key

    return replace(
        adjusted,
        proportionally_adjusted=True,
        adjusted_period=adjusted_key,
        adjustment_factor=factor,
    )


def _require_period(periods: list[Period], key: str) -> Period:
    found = find_period(periods, key)
    if found is None:
        available = ", ".join(p.key for p in periods) or "none"
        raise ValueError(f"Unknown period {key!r}. Available periods: {available}.")
    return found


def compare(
    frame: pd.DataFrame,
    key1: str,
    key2: str,
    granularity: str = "month",
    revenue_mode: str = REVENUE_MODE_TOTAL,
    classifier: Optional[Classifier] = None,
    threshold: float = PROPORTIONAL_THRESHOLD,
) -> PeriodComparison:
    """
    Build the periods of ``frame`` and compare ``key2`` against ``key1``.

    Year comparisons go through the proportional adjustment; all other
    granularities are compared as-is.

    Raises:
        ValueError: if a key does not match any period of the frame.
    """
    periods = build_periods(frame, granularity, revenue_mode, classifier)
    period1 = _require_period(periods, key1)
    period2 = _require_period(periods, key2)
    if granularity == "year":
        return compare_year_periods(period1, period2, threshold)
    return compare_periods(period1, period2)


def compare_years(
    frame: pd.DataFrame,
    year1: str,
    year2: str,
    revenue_mode: str = REVENUE_MODE_TOTAL,
    classifier: Optional[Classifier] = None,
    threshold: float = PROPORTIONAL_THRESHOLD,
) -> PeriodComparison:
    """Year-over-year comparison with proportional adjustment."""
    return compare(
        frame,
        str(year1),
        str(year2),
        granularity="year",
        revenue_mode=revenue_mode,
        classifier=classifier,
        threshold=threshold,
    )


@dataclass(frozen=True)
class SalesYear:
    """Sales revenue of one year and its growth versus the previous year."""

    year: str
    value: float
    yoy_pct: Optional[float]


@dataclass(frozen=True)
class SalesYearComparison:
    """Sales revenue per year plus the first-to-last-year variation."""

    years: list[SalesYear]
    first_year: Optional[str] = None
    last_year: Optional[str] = None
    delta: float = 0.0
    delta_pct: float = 0.0

    @property
    def has_comparison(self) -> bool:
        return self.first_year is not None and self.first_year != self.last_year


def _growth_pct(previous: float, current: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def sales_revenue_by_year(
    frame: pd.DataFrame,
    classifier: Optional[Classifier] = None,
) -> SalesYearComparison:
    """
    Sales revenue per calendar year, with year-over-year growth.

    The first year has no growth figure (``yoy_pct`` is None). Growth is 0
    when the previous year's sales are not positive. The overall
    variation is only filled when at least two years are present.
    """
    rules = classifier or default_classifier()
    if frame.empty:
        return SalesYearComparison(years=[])

    credits = frame[frame["kind"] == CREDIT]
    is_sales = credits["group"].map(rules.is_sales_revenue).astype(bool)
    sales = credits[is_sales]
    if sales.empty:
        return SalesYearComparison(years=[])

    by_year = sales["amount"].abs().groupby(year_keys(sales)).sum().sort_index()

    years: list[SalesYear] = []
    previous: Optional[float] = None
    for year, value in by_year.items():
        value = float(value)
        yoy = None if previous is None else _growth_pct(previous, value)
        years.append(SalesYear(year=str(year), value=value, yoy_pct=yoy))
        previous = value

    if len(years) < 2:
        return SalesYearComparison(years=years)

    first, last = years[0], years[-1]
    return SalesYearComparison(
        years=years,
        first_year=first.year,
        last_year=last.year,
        delta=last.value - first.value,
        delta_pct=_growth_pct(first.value, last.value),
    )
