# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for DRE Analytics.

This module defines the Period value object and builds the comparable
periods of a transactions frame at a given granularity:

    month      1 month   key "2024-03"
    bimester   2 months  key "2024-B2"
    trimester  3 months  key "2024-T1"
    semester   6 months  key "2024-S2"
    year      12 months  key "2024"

Synthetic periods (bimester, trimester, semester) partition each calendar
year into consecutive chunks starting from January: chunk ``i`` (0-based)
holds the months ``(i * size, (i + 1) * size]`` in 1-based month numbers.
Only chunks with at least one contributing month are produced; missing
chunks are omitted rather than zero-filled.

Revenue and expense follow the DRE revenue mode ('total' or 'sales') and
are summed from the monthly DRE. Each period also records the inclusive
day span of its transactions (``max(date) - min(date) + 1``), which the
comparison engine uses for proportional adjustment.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from .classification import Classifier
from .dre import REVENUE_MODE_TOTAL, build_monthly_dre

GRANULARITY_MONTHS: dict[str, int] = {
    "month": 1,
    "bimester": 2,
    "trimester": 3,
    "semester": 6,
    "year": 12,
}

_KEY_PREFIX = {"bimester": "B", "trimester": "T", "semester": "S"}


@dataclass(frozen=True)
class Period:
    """A comparable reporting period with its aggregated figures.

    Attributes:
        key: Sortable identifier (e.g. '2024-03', '2024-T1', '2024').
        label: Human-readable label.
        start: First calendar day covered by the period.
        end: Last calendar day covered by the period.
        revenue: Recognized revenue.
        expense: Recognized expense.
        profit: revenue - expense.
        day_span: Inclusive day count between the first and last
            transaction of the period (0 when unknown).
        months: Month keys that contributed to the period.
    """

    key: str
    label: str
    start: date
    end: date
    revenue: float
    expense: float
    profit: float
    day_span: int = 0
    months: tuple[str, ...] = ()


def period_size(granularity: str) -> int:
    """Return the number of months of a granularity."""
    try:
        return GRANULARITY_MONTHS[granularity]
    except KeyError as exc:
        raise ValueError(
            f"Unknown period granularity {granularity!r}. Expected one of: "
            f"{', '.join(GRANULARITY_MONTHS)}."
        ) from exc


def period_key(year: int, month: int, granularity: str) -> str:
    """Return the key of the period containing ``year``/``month``."""
    size = period_size(granularity)
    if granularity == "month":
        return f"{year:04d}-{month:02d}"
    if granularity == "year":
        return f"{year:04d}"
    index = (month - 1) // size + 1
    return f"{year:04d}-{_KEY_PREFIX[granularity]}{index}"


def period_bounds(key: str, granularity: str) -> tuple[date, date]:
    """Return the calendar [start, end] dates of a period key."""
    size = period_size(granularity)
    year = int(key[:4])
    if granularity == "year":
        first_month = 1
    elif granularity == "month":
        first_month = int(key[5:7])
    else:
        first_month = (int(key[6:]) - 1) * size + 1
    last_month = first_month + size - 1
    return (
        date(year, first_month, 1),
        date(year, last_month, monthrange(year, last_month)[1]),
    )


def period_label(key: str, granularity: str) -> str:
    """Return a human-readable label for a period key."""
    if granularity in ("month", "year"):
        return key
    index = key[6:]
    return f"{granularity.capitalize()} {index} {key[:4]}"


def day_span(start: date, end: date) -> int:
    """Inclusive number of days between two dates."""
    return (end - start).days + 1


def _date_spans(frame: pd.DataFrame, granularity: str) -> dict[str, int]:
    """Inclusive transaction day span per period key."""
    if frame.empty:
        return {}
    keys = frame["date"].map(lambda d: period_key(d.year, d.month, granularity))
    bounds = frame["date"].groupby(keys).agg(["min", "max"])
    return {
        str(k): day_span(row["min"].date(), row["max"].date())
        for k, row in bounds.iterrows()
    }


def build_periods(
    frame: pd.DataFrame,
    granularity: str = "month",
    revenue_mode: str = REVENUE_MODE_TOTAL,
    classifier: Optional[Classifier] = None,
) -> list[Period]:
    """
    Aggregate a transactions frame into periods of the given granularity.

    Args:
        frame: Transactions frame (already filtered).
        granularity: 'month', 'bimester', 'trimester', 'semester' or 'year'.
        revenue_mode: DRE revenue mode used for revenue/expense.
        classifier: Keyword rules for the DRE engine.

    Returns:
        Periods sorted by key. Empty for an empty frame.
    """
    period_size(granularity)
    monthly = build_monthly_dre(frame, revenue_mode, classifier)
    spans = _date_spans(frame, granularity)

    revenue: dict[str, float] = {}
    expense: dict[str, float] = {}
    months: dict[str, list[str]] = {}
    for row in monthly:
        key = period_key(int(row.month[:4]), int(row.month[5:7]), granularity)
        revenue[key] = revenue.get(key, 0.0) + row.recognized_revenue
        expense[key] = expense.get(key, 0.0) + row.recognized_expense
        months.setdefault(key, []).append(row.month)

    periods: list[Period] = []
    for key in sorted(revenue):
        start, end = period_bounds(key, granularity)
        periods.append(
            Period(
                key=key,
                label=period_label(key, granularity),
                start=start,
                end=end,
                revenue=revenue[key],
                expense=expense[key],
                profit=revenue[key] - expense[key],
                day_span=spans.get(key, 0),
                months=tuple(months[key]),
            )
        )
    return periods


def find_period(periods: list[Period], key: str) -> Optional[Period]:
    """Return the period with the given key (or label), or None."""
    for p in periods:
        if p.key == key or p.label == key:
            return p
    return None
