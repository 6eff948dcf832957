# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for DRE Analytics.

This module contains helpers that transform the engine results (plain
dataclasses) into pandas DataFrames ready for display or CSV export. The
engines never round; rounding to the configured number of decimals happens
here, at presentation time.

The annual DRE is rendered as a statement with one amount column per year
and three levels of detail:

- bucket:   revenue lines, expense buckets and computed results,
- group:    same, with the group lines of each bucket inserted below it,
- subgroup: same as group, with the subgroup lines inserted below each
            group.

Drill-down lines keep the order in which groups and subgroups were first
seen in the transactions.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .categories import CategoryTotal, share_pct
from .classification import BUCKETS
from .comparison import PeriodComparison, SalesYearComparison
from .dre import (
    EXCLUDED_LABEL,
    AnnualDRERow,
    DREBucket,
    MonthlyDRERow,
    monthly_dre_totals,
)
from .kpis import CashFlowPoint, KPIData, MonthlyTotals
from .ranking import MonthRankings
from .transactions import CREDIT

EXPAND_LEVELS: tuple[str, ...] = ("bucket", "group", "subgroup")

TOTAL_LABEL = "TOTAL"

STATEMENT_COLUMNS: list[str] = ["display_order", "level", "key", "name", "type"]


def kpis_to_dataframe(kpis: KPIData, decimals: int = 2) -> pd.DataFrame:
    """Convert the headline KPIs into a key/label/value/unit table."""
    rows = [
        ("total_revenue", "Receita Total", kpis.total_revenue, "amount"),
        ("total_expense", "Despesa Total", kpis.total_expense, "amount"),
        ("net_profit", "Lucro Líquido", kpis.net_profit, "amount"),
        ("margin_pct", "Margem de Lucro", kpis.margin_pct, "percent"),
    ]
    return pd.DataFrame(
        [
            {"key": k, "label": label, "value": round(v, decimals), "unit": unit}
            for k, label, v, unit in rows
        ],
        columns=["key", "label", "value", "unit"],
    )


def categories_to_dataframe(
    items: list[CategoryTotal], decimals: int = 2
) -> pd.DataFrame:
    """Category ranking with each category's share of the listed total."""
    shares = share_pct(items)
    return pd.DataFrame(
        [
            {
                "position": i,
                "name": item.name,
                "value": round(item.value, decimals),
                "share_pct": round(share, decimals),
            }
            for i, (item, share) in enumerate(zip(items, shares), start=1)
        ],
        columns=["position", "name", "value", "share_pct"],
    )


def monthly_dre_to_dataframe(
    rows: list[MonthlyDRERow], decimals: int = 2
) -> pd.DataFrame:
    """Monthly DRE table, one line per month plus a TOTAL line."""
    columns = [
        "month",
        "sales_revenue",
        "other_revenue",
        "total_revenue",
        "total_expense",
        "non_operating_outflow",
        "recognized_revenue",
        "recognized_expense",
        "profit",
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    records = [{c: getattr(r, c) for c in columns} for r in rows]
    records.append({"month": TOTAL_LABEL, **monthly_dre_totals(rows)})

    df = pd.DataFrame(records, columns=columns)
    amount_cols = columns[1:]
    df[amount_cols] = df[amount_cols].astype(float).round(decimals)
    return df


@dataclass(frozen=True)
class _Line:
    level: int
    key: str
    name: str
    type: str
    values: dict[str, float]


def _bucket_lines(
    rows: list[AnnualDRERow],
    bucket_of: Callable[[AnnualDRERow], Optional[DREBucket]],
    key: str,
    name: str,
    expand: str,
) -> list[_Line]:
    """A bucket line followed by its group/subgroup drill-down lines."""
    empty = DREBucket(key, name)
    buckets = {r.year: bucket_of(r) or empty for r in rows}

    lines = [
        _Line(1, key, name, "exp", {y: b.total for y, b in buckets.items()})
    ]
    if expand == "bucket":
        return lines

    # Union of groups/subgroups across years, in first-seen order.
    groups: dict[str, dict[str, None]] = {}
    for b in buckets.values():
        for group, subgroups in b.groups.items():
            seen = groups.setdefault(group, {})
            for subgroup in subgroups:
                seen.setdefault(subgroup, None)

    for g_idx, (group, subgroups) in enumerate(groups.items(), start=1):
        group_values = {
            y: sum(b.groups.get(group, {}).values()) for y, b in buckets.items()
        }
        lines.append(
            _Line(2, f"{key}.{g_idx}", group or "(sem grupo)", "grp", group_values)
        )
        if expand != "subgroup":
            continue
        for s_idx, subgroup in enumerate(subgroups, start=1):
            sub_values = {
                y: b.groups.get(group, {}).get(subgroup, 0.0)
                for y, b in buckets.items()
            }
            lines.append(
                _Line(
                    3,
                    f"{key}.{g_idx}.{s_idx}",
                    subgroup or "(sem subgrupo)",
                    "sub",
                    sub_values,
                )
            )
    return lines


def annual_dre_to_dataframe(
    rows: list[AnnualDRERow], expand: str = "bucket", decimals: int = 2
) -> pd.DataFrame:
    """
    Render the annual DRE as a statement with one amount column per year.

    Columns: display_order, level, key, name, type, then one column per
    year (ascending). ``type`` is one of 'rev' (revenue line), 'exp'
    (expense bucket), 'grp' / 'sub' (drill-down lines), 'calc' (computed
    result) and 'pct' (percentage).

    Raises:
        ValueError: if ``expand`` is not 'bucket', 'group' or 'subgroup'.
    """
    if expand not in EXPAND_LEVELS:
        raise ValueError(
            f"Unknown expand level {expand!r}. Expected one of: "
            f"{', '.join(EXPAND_LEVELS)}."
        )
    if not rows:
        return pd.DataFrame(columns=STATEMENT_COLUMNS)

    years = [r.year for r in rows]

    def line(level: int, attr: str, name: str, type_: str = "calc") -> _Line:
        return _Line(level, attr, name, type_, {r.year: getattr(r, attr) for r in rows})

    def bucket(key: str) -> list[_Line]:
        label = rows[0].buckets[key].label
        return _bucket_lines(rows, lambda r: r.buckets[key], key, label, expand)

    lines: list[_Line] = [
        line(1, "sales_revenue", "Receita de Vendas", "rev"),
        line(1, "other_revenue", "Outras Receitas", "rev"),
        line(0, "total_revenue", "Receita Total", "rev"),
        line(0, "recognized_revenue", "Receita Reconhecida", "rev"),
    ]

    first, *fixed = BUCKETS
    lines += bucket(first)
    lines += [
        line(0, "contribution_margin", "Margem de Contribuição"),
        line(0, "contribution_margin_pct", "Margem de Contribuição (%)", "pct"),
    ]
    for key in fixed:
        lines += bucket(key)
    lines += [
        line(0, "recognized_expense", "Despesa Reconhecida"),
        line(0, "operational_result", "Resultado Operacional"),
        line(0, "operational_margin_pct", "Margem Operacional (%)", "pct"),
    ]

    if any(r.excluded is not None for r in rows):
        lines += _bucket_lines(
            rows,
            lambda r: r.excluded,
            "non_operating_outflow",
            f"{EXCLUDED_LABEL} (excluídas)",
            expand,
        )

    records: list[dict[str, object]] = []
    for idx, ln in enumerate(lines, start=1):
        record: dict[str, object] = {
            "display_order": idx * 10,
            "level": ln.level,
            "key": ln.key,
            "name": ln.name,
            "type": ln.type,
        }
        for y in years:
            record[y] = round(float(ln.values.get(y, 0.0)), decimals)
        records.append(record)

    return pd.DataFrame(records, columns=STATEMENT_COLUMNS + years)


def comparison_to_dataframe(
    comparison: PeriodComparison, decimals: int = 2
) -> pd.DataFrame:
    """Revenue/expense/profit variance table of a period comparison."""
    metrics = [
        ("revenue", "Receita", comparison.revenue),
        ("expense", "Despesa", comparison.expense),
        ("profit", "Lucro", comparison.profit),
    ]
    columns = ["metric", "label", "p1", "p2", "delta", "delta_pct"]
    return pd.DataFrame(
        [
            {
                "metric": key,
                "label": label,
                "p1": round(v.p1, decimals),
                "p2": round(v.p2, decimals),
                "delta": round(v.delta, decimals),
                "delta_pct": round(v.delta_pct, decimals),
            }
            for key, label, v in metrics
        ],
        columns=columns,
    )


def ranking_to_dataframe(rankings: MonthRankings, decimals: int = 2) -> pd.DataFrame:
    """Flatten the four month rankings into one table."""
    sections = [
        ("top_revenue", rankings.top_revenue),
        ("bottom_revenue", rankings.bottom_revenue),
        ("lowest_expense", rankings.lowest_expense),
        ("highest_expense", rankings.highest_expense),
    ]
    return pd.DataFrame(
        [
            {
                "ranking": name,
                "position": e.position,
                "month": e.month,
                "value": round(e.value, decimals),
            }
            for name, entries in sections
            for e in entries
        ],
        columns=["ranking", "position", "month", "value"],
    )


def sales_by_year_to_dataframe(
    comparison: SalesYearComparison, decimals: int = 2
) -> pd.DataFrame:
    """Sales revenue per year with year-over-year growth (NaN for the first year)."""
    return pd.DataFrame(
        [
            {
                "year": y.year,
                "sales_revenue": round(y.value, decimals),
                "yoy_pct": (
                    float("nan") if y.yoy_pct is None else round(y.yoy_pct, decimals)
                ),
            }
            for y in comparison.years
        ],
        columns=["year", "sales_revenue", "yoy_pct"],
    )


def monthly_report_to_dataframe(
    totals: list[MonthlyTotals], decimals: int = 2
) -> pd.DataFrame:
    """Synthetic monthly report: revenue, expense, profit per month + TOTAL."""
    columns = ["month", "revenue", "expense", "profit"]
    if not totals:
        return pd.DataFrame(columns=columns)

    records = [
        {
            "month": t.month,
            "revenue": t.revenue,
            "expense": t.expense,
            "profit": t.profit,
        }
        for t in totals
    ]
    records.append(
        {
            "month": TOTAL_LABEL,
            "revenue": sum(t.revenue for t in totals),
            "expense": sum(t.expense for t in totals),
            "profit": sum(t.profit for t in totals),
        }
    )
    df = pd.DataFrame(records, columns=columns)
    df[columns[1:]] = df[columns[1:]].astype(float).round(decimals)
    return df


def analytic_report_to_dataframe(
    frame: pd.DataFrame, decimals: int = 2, limit: Optional[int] = None
) -> pd.DataFrame:
    """
    Analytic monthly report: every transaction sorted by date.

    The kind is rendered as 'Receita' / 'Despesa' and the value as an
    absolute amount.
    """
    columns = [
        "date",
        "company",
        "description",
        "type",
        "value",
        "account",
        "group",
        "subgroup",
    ]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    df = frame.sort_values("date", kind="stable").reset_index(drop=True)
    out = pd.DataFrame(
        {
            "date": df["date"].dt.strftime("%Y-%m-%d"),
            "company": df["company"],
            "description": df["description"],
            "type": df["kind"].map(lambda k: "Receita" if k == CREDIT else "Despesa"),
            "value": df["amount"].abs().round(decimals),
            "account": df["account"],
            "group": df["group"],
            "subgroup": df["subgroup"],
        },
        columns=columns,
    )
    if limit is not None:
        out = out.head(limit)
    return out


def cash_flow_to_dataframe(
    points: list[CashFlowPoint], decimals: int = 2
) -> pd.DataFrame:
    """Monthly net flow and accumulated cash flow."""
    return pd.DataFrame(
        [
            {
                "month": p.month,
                "flow": round(p.flow, decimals),
                "accumulated": round(p.accumulated, decimals),
            }
            for p in points
        ],
        columns=["month", "flow", "accumulated"],
    )
