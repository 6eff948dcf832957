# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Month rankings (best/worst months by revenue, expense or profit)."""

from collections.abc import Sequence
from dataclasses import dataclass

from .kpis import MonthlyTotals

TOP = "top"
BOTTOM = "bottom"
DIRECTIONS: tuple[str, ...] = (TOP, BOTTOM)
METRICS: tuple[str, ...] = ("revenue", "expense", "profit")


@dataclass(frozen=True)
class RankingEntry:
    """One ranked month (position is 1-based)."""

    position: int
    month: str
    value: float


@dataclass(frozen=True)
class MonthRankings:
    """The four month rankings shown on the dashboard."""

    top_revenue: list[RankingEntry]
    bottom_revenue: list[RankingEntry]
    lowest_expense: list[RankingEntry]
    highest_expense: list[RankingEntry]


def top_months(
    series: Sequence[MonthlyTotals],
    metric: str = "revenue",
    direction: str = TOP,
    limit: int = 3,
    dedupe_by_month: bool = True,
) -> list[RankingEntry]:
    """
    Rank month aggregates by ``metric`` and keep the first ``limit``.

    ``direction`` 'top' sorts descending, 'bottom' ascending; the sort is
    stable. With ``dedupe_by_month``, a month key already taken is skipped,
    so entries sharing a key (e.g. series concatenated across companies)
    appear at most once, as their first occurrence in sorted order.
    """
    if metric not in METRICS:
        raise ValueError(
            f"Unknown ranking metric {metric!r}. Expected one of: {', '.join(METRICS)}."
        )
    if direction not in DIRECTIONS:
        raise ValueError(
            f"Unknown ranking direction {direction!r}. Expected 'top' or 'bottom'."
        )
    if limit <= 0:
        return []

    ordered = sorted(
        series,
        key=lambda item: getattr(item, metric),
        reverse=direction == TOP,
    )

    entries: list[RankingEntry] = []
    seen: set[str] = set()
    for item in ordered:
        if dedupe_by_month:
            if item.month in seen:
                continue
            seen.add(item.month)
        entries.append(
            RankingEntry(
                position=len(entries) + 1,
                month=item.month,
                value=float(getattr(item, metric)),
            )
        )
        if len(entries) >= limit:
            break
    return entries


def month_rankings(series: Sequence[MonthlyTotals], limit: int = 3) -> MonthRankings:
    """Best and worst months for revenue and expense."""
    return MonthRankings(
        top_revenue=top_months(series, "revenue", TOP, limit),
        bottom_revenue=top_months(series, "revenue", BOTTOM, limit),
        lowest_expense=top_months(series, "expense", BOTTOM, limit),
        highest_expense=top_months(series, "expense", TOP, limit),
    )
