# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
DRE Analytics
-------------

A Python-based analysis engine for the bookkeeping spreadsheets of small
Brazilian businesses. It reads a flat list of credit/debit transactions
(Excel or CSV export) and turns it into the figures of a financial
dashboard.

Main capabilities:
- spreadsheet normalization (column aliases, M/D/YY dates, "R$" amounts),
- conjunctive filters (company, group, subgroup, account, kind, dates),
- headline KPIs, monthly series and cumulative cash flow,
- category breakdowns (group, subgroup, company),
- monthly and annual DRE (Demonstração do Resultado do Exercício) driven
  by configurable keyword classification rules,
- period comparison (month, bimester, trimester, semester, year) with a
  proportional adjustment for partial years,
- month rankings and synthetic/analytic monthly reports,
- the request/response contract of an external text-insight generator.

DRE Analytics separates computation (engines), configuration (TOML) and
presentation (CLI tables and CSV files).


Version: 0.1.0

Usage:
    python -m dre_analytics.cli --help
"""

__all__ = ["dre", "classification", "comparison", "views", "io"]

__version__ = "0.1.0"
