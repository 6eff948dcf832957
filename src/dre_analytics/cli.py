# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for DRE Analytics.

This module wires together the main building blocks of DRE Analytics:

- configuration (revenue mode, classification rules, display options),
- spreadsheet reading and normalization,
- transaction filters,
- KPI, category, DRE, comparison and ranking engines,
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement financial logic
itself. It orchestrates the underlying modules based on command-line
arguments and the configuration file.


High-level pipeline
-------------------

1) Load the TOML configuration (``dre_analytics_config.toml`` by default,
   built-in defaults when it does not exist) using ``load_app_config()``.

2) Read the spreadsheet given by ``--input`` (or ``[input].path``) and
   normalize it into a transactions frame.

3) Apply the filters given on the command line (company, group, subgroup,
   account, kind, date range). Every engine works on the filtered frame.

4) Compute the results requested by ``--scope`` and render them as
   console tables and/or CSV files depending on the display mode.


Scopes: what to render
----------------------

- ``kpis`` (default): headline KPIs and the cumulative cash flow.
- ``categories``: top expense/revenue subgroups and expenses by group.
- ``dre``: monthly and/or annual DRE (``--dre-view``), with the annual
  drill-down level chosen by ``--expand``.
- ``compare``: variance between two periods (``--compare-by``,
  ``--period-a``, ``--period-b``; the last two periods by default) and
  the sales revenue by year table.
- ``rankings``: best and worst months for revenue and expense.
- ``report``: synthetic or analytic monthly report (``--report``).
- ``all``: everything above.


Display mode and CSV export
---------------------------

``display.mode = "table" | "csv" | "both"`` in the configuration, or
``--display-mode``. When CSV output is enabled, files are written to
``--output`` (or ``[display].output_dir``) with a timestamp-based name,
for example ``annual_dre_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------

1) KPIs of a spreadsheet:

    python -m dre_analytics.cli --input data/input/lancamentos.xlsx

2) Annual DRE in sales mode, expanded to subgroups, for one company:

    python -m dre_analytics.cli --input data/input/lancamentos.xlsx \\
        --scope dre --dre-view annual --expand subgroup \\
        --revenue-mode sales --company "Loja Centro"

3) Compare the first two semesters of 2024 and write CSV files only:

    python -m dre_analytics.cli --scope compare --compare-by semester \\
        --period-a 2024-S1 --period-b 2024-S2 --display-mode csv
"""

import argparse
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .categories import collapse_tail, group_by_category, top_expenses, top_revenues
from .comparison import compare, sales_revenue_by_year
from .config import AppConfig, load_app_config
from .dre import REVENUE_MODES, build_annual_dre, build_monthly_dre
from .filters import FilterCriteria, filter_transactions
from .io import read_transactions
from .kpis import compute_kpis, cumulative_cash_flow, monthly_totals
from .periods import GRANULARITY_MONTHS, build_periods
from .ranking import month_rankings
from .transactions import DEBIT, KINDS, build_dataset_index
from .views import (
    EXPAND_LEVELS,
    analytic_report_to_dataframe,
    annual_dre_to_dataframe,
    cash_flow_to_dataframe,
    categories_to_dataframe,
    comparison_to_dataframe,
    kpis_to_dataframe,
    monthly_dre_to_dataframe,
    monthly_report_to_dataframe,
    ranking_to_dataframe,
    sales_by_year_to_dataframe,
)

SCOPES: tuple[str, ...] = (
    "kpis",
    "categories",
    "dre",
    "compare",
    "rankings",
    "report",
    "all",
)


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m dre_analytics.cli",
        description=(
            "DRE Analytics - Income statement & KPI engine for bookkeeping "
            "spreadsheets. Reads credit/debit transactions, applies filters "
            "and renders KPIs, categories, DRE, comparisons and rankings."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of dre_analytics and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'dre_analytics_config.toml' in the current directory is used "
            "when it exists."
        ),
    )
    ap.add_argument(
        "--input",
        dest="input_path",
        metavar="SPREADSHEET",
        help=(
            "Excel (.xlsx/.xls) or CSV file with the transactions. "
            "Overrides [input].path from the configuration."
        ),
    )

    # Filters
    ap.add_argument(
        "--company",
        dest="companies",
        action="append",
        metavar="NAME",
        help="Keep only this company (repeatable).",
    )
    ap.add_argument(
        "--group",
        dest="groups",
        action="append",
        metavar="NAME",
        help="Keep only this chart-of-accounts group (repeatable).",
    )
    ap.add_argument(
        "--subgroup",
        dest="subgroups",
        action="append",
        metavar="NAME",
        help="Keep only this chart-of-accounts subgroup (repeatable).",
    )
    ap.add_argument(
        "--account",
        dest="accounts",
        action="append",
        metavar="NAME",
        help="Keep only this bank/cash account (repeatable).",
    )
    ap.add_argument(
        "--type",
        dest="kinds",
        action="append",
        choices=list(KINDS),
        help="Keep only credits ('c') or debits ('d') (repeatable).",
    )
    ap.add_argument(
        "--from-date",
        dest="from_date",
        help="Keep transactions on or after this date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        help="Keep transactions on or before this date (YYYY-MM-DD).",
    )

    # Scope: what to render
    ap.add_argument(
        "--scope",
        choices=list(SCOPES),
        default="kpis",
        help=(
            "Select what to render: 'kpis', 'categories', 'dre', 'compare', "
            "'rankings', 'report' or 'all'."
        ),
    )

    # DRE options
    ap.add_argument(
        "--revenue-mode",
        dest="revenue_mode",
        choices=list(REVENUE_MODES),
        help=(
            "Override [dre].revenue_mode. 'total' recognizes every credit; "
            "'sales' recognizes sales revenue only and leaves non-operating "
            "outflows out of the expenses."
        ),
    )
    ap.add_argument(
        "--dre-view",
        dest="dre_view",
        choices=["monthly", "annual", "both"],
        default="both",
        help="Which DRE to render for the 'dre' scope.",
    )
    ap.add_argument(
        "--expand",
        choices=list(EXPAND_LEVELS),
        default="bucket",
        help=(
            "Level of detail of the annual DRE: buckets only, with groups, "
            "or with groups and subgroups."
        ),
    )

    # Comparison options
    ap.add_argument(
        "--compare-by",
        dest="compare_by",
        choices=list(GRANULARITY_MONTHS),
        default="month",
        help="Period granularity of the 'compare' scope.",
    )
    ap.add_argument(
        "--period-a",
        dest="period_a",
        metavar="KEY",
        help="Reference period key (e.g. 2024-03, 2024-T1, 2024).",
    )
    ap.add_argument(
        "--period-b",
        dest="period_b",
        metavar="KEY",
        help="Compared period key.",
    )

    # Report options
    ap.add_argument(
        "--report",
        choices=["synthetic", "analytic"],
        default="synthetic",
        help=(
            "Monthly report flavour: 'synthetic' (totals per month) or "
            "'analytic' (every transaction)."
        ),
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, [display].output_dir is used."
        ),
    )

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    return FilterCriteria.build(
        companies=args.companies,
        groups=args.groups,
        subgroups=args.subgroups,
        accounts=args.accounts,
        kinds=args.kinds,
        start_date=_parse_optional_date(args.from_date),
        end_date=_parse_optional_date(args.to_date),
    )


def _describe_criteria(criteria: FilterCriteria) -> str:
    if criteria.is_empty():
        return "none"
    parts = []
    for label, values in (
        ("company", criteria.companies),
        ("group", criteria.groups),
        ("subgroup", criteria.subgroups),
        ("account", criteria.accounts),
        ("type", criteria.kinds or ()),
    ):
        if values:
            parts.append(f"{label}={', '.join(sorted(values))}")
    if criteria.start_date:
        parts.append(f"from={criteria.start_date.isoformat()}")
    if criteria.end_date:
        parts.append(f"to={criteria.end_date.isoformat()}")
    return "; ".join(parts)


def _compare_tables(
    args: argparse.Namespace,
    tx: pd.DataFrame,
    config: AppConfig,
    revenue_mode: str,
) -> dict[str, pd.DataFrame]:
    """Build the comparison tables, printing what was compared."""
    tables: dict[str, pd.DataFrame] = {}
    periods = build_periods(tx, args.compare_by, revenue_mode, config.classifier)
    keys = [p.key for p in periods]

    key_a = args.period_a or (keys[-2] if len(keys) >= 2 else None)
    key_b = args.period_b or (keys[-1] if keys else None)
    if key_a is None or key_b is None:
        print(
            f"Not enough {args.compare_by} periods to compare "
            f"(available: {', '.join(keys) or 'none'})."
        )
    else:
        try:
            comparison = compare(
                tx,
                key_a,
                key_b,
                granularity=args.compare_by,
                revenue_mode=revenue_mode,
                classifier=config.classifier,
                threshold=config.proportional_threshold,
            )
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc

        print(f"Comparing {comparison.period2} against {comparison.period1}.")
        if comparison.proportionally_adjusted:
            print(
                f"Note: {comparison.adjusted_period} covers fewer days; its "
                f"figures were scaled by {comparison.adjustment_factor:.4f} "
                "for a proportional comparison."
            )
        tables["comparison"] = comparison_to_dataframe(comparison, config.decimals)

    sales = sales_revenue_by_year(tx, config.classifier)
    tables["sales_by_year"] = sales_by_year_to_dataframe(sales, config.decimals)
    if sales.has_comparison:
        print(
            f"Sales revenue {sales.first_year} → {sales.last_year}: "
            f"{sales.delta:.2f} ({sales.delta_pct:.2f}%)"
        )
    return tables


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the DRE Analytics CLI.

    This function parses command-line arguments, loads the configuration,
    reads and filters the transactions, computes the selected scope and
    renders it as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"dre_analytics version {__version__}")
        return

    # 1) Load configuration
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    # 2) Read the spreadsheet
    input_path = Path(args.input_path) if args.input_path else config.input_path
    if input_path is None:
        parser.error("No input spreadsheet: use --input or set [input].path.")
    if not input_path.is_file():
        parser.error(f"Input file not found: {input_path}")

    try:
        tx_all = read_transactions(input_path)
    except (ValueError, ImportError) as exc:
        parser.error(str(exc))

    index = build_dataset_index(tx_all)
    print(f"Loaded {len(tx_all)} transactions from {input_path}")
    if index.start is not None:
        print(
            f"Date range: {index.start.isoformat()} → {index.end.isoformat()} "
            f"| companies: {len(index.companies)}"
        )

    # 3) Filters
    criteria = _criteria_from_args(args)
    tx = filter_transactions(tx_all, criteria)
    print(f"Applied filters: {_describe_criteria(criteria)}")
    print(f"Transactions after filters: {len(tx)}")
    if tx.empty:
        print("Warning: no transactions match the selected filters.")

    revenue_mode = args.revenue_mode or config.revenue_mode
    decimals = config.decimals
    scope = args.scope
    want = {s for s in SCOPES if scope in {s, "all"}}

    # 4) Compute the requested tables (title, file stem, frame).
    tables: list[tuple[str, str, pd.DataFrame]] = []

    if "kpis" in want:
        kpis = compute_kpis(tx)
        tables.append(("KPIs", "kpis", kpis_to_dataframe(kpis, decimals)))
        tables.append(
            (
                "Cumulative cash flow",
                "cash_flow",
                cash_flow_to_dataframe(cumulative_cash_flow(kpis), decimals),
            )
        )

    if "categories" in want:
        top_n = config.categories_top_n
        tables.append(
            (
                f"Top {top_n} expenses (subgroup)",
                "top_expenses",
                categories_to_dataframe(top_expenses(tx, top_n), decimals),
            )
        )
        tables.append(
            (
                f"Top {top_n} revenues (subgroup)",
                "top_revenues",
                categories_to_dataframe(top_revenues(tx, top_n), decimals),
            )
        )
        debits = tx[tx["kind"] == DEBIT]
        by_group = collapse_tail(group_by_category(debits, "group"), config.pie_slices)
        tables.append(
            (
                "Expenses by group",
                "expenses_by_group",
                categories_to_dataframe(by_group, decimals),
            )
        )

    if "dre" in want:
        print(f"DRE revenue mode: {revenue_mode}")
        if args.dre_view in {"monthly", "both"}:
            monthly = build_monthly_dre(tx, revenue_mode, config.classifier)
            tables.append(
                (
                    "Monthly DRE",
                    "monthly_dre",
                    monthly_dre_to_dataframe(monthly, decimals),
                )
            )
        if args.dre_view in {"annual", "both"}:
            annual = build_annual_dre(tx, revenue_mode, config.classifier)
            tables.append(
                (
                    "Annual DRE",
                    "annual_dre",
                    annual_dre_to_dataframe(annual, args.expand, decimals),
                )
            )

    if "compare" in want:
        compare_tables = _compare_tables(args, tx, config, revenue_mode)
        if "comparison" in compare_tables:
            tables.append(
                (
                    f"Comparison by {args.compare_by}",
                    "comparison",
                    compare_tables["comparison"],
                )
            )
        tables.append(
            ("Sales revenue by year", "sales_by_year", compare_tables["sales_by_year"])
        )

    if "rankings" in want:
        rankings = month_rankings(monthly_totals(tx), config.ranking_limit)
        tables.append(
            ("Month rankings", "rankings", ranking_to_dataframe(rankings, decimals))
        )

    if "report" in want:
        if args.report == "analytic":
            report_df = analytic_report_to_dataframe(tx, decimals)
        else:
            report_df = monthly_report_to_dataframe(monthly_totals(tx), decimals)
        tables.append(
            (f"Monthly report ({args.report})", f"report_{args.report}", report_df)
        )

    # 5) Resolve display mode: config value overridden by CLI if provided.
    display_mode = args.display_mode or config.display_mode

    # 6) Render to console (table mode).
    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no data)")
            else:
                print(df.to_string(index=False))

    # 7) Render to CSV files (csv mode).
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for _, stem, df in tables:
            path = output_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
