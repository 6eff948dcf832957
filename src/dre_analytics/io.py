# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for DRE Analytics.

This module reads a bookkeeping spreadsheet (CSV or Excel) and normalizes
it into the transactions frame described in ``transactions.py``.

Expected input columns
----------------------
Column names are matched case-insensitively, after trimming. For each
field the first matching alias wins:

    - date        : Data, date
    - company     : Empresa, company
    - description : Descrição, Descricao, description
    - kind        : Tipo, kind, type          ('c' = credit, 'd' = debit)
    - amount      : VALOR, valor, amount
    - account     : Conta, account
    - group       : Plano Conta - Grupo, grupo, group
    - subgroup    : Plano Conta - Sub-grupo, subgrupo, sub-grupo, subgroup

Only ``date`` and ``amount`` are mandatory; missing text columns are
filled with empty strings and a missing ``kind`` defaults to credit.

Normalization rules
-------------------
- Dates written as ``M/D/YY`` or ``M/D/YYYY`` are read month-first (the
  format produced by the spreadsheet exports this tool was built for);
  two-digit years are mapped to 20YY. Anything else is parsed by pandas.
  Rows whose date cannot be parsed are dropped silently.
- Amounts are cleaned of currency symbols (``R$``), spaces and thousands
  commas before conversion. Unparsable amounts become 0.
- The sign is re-derived from the kind: credits are always positive,
  debits always negative.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .transactions import CREDIT, DEBIT, TRANSACTION_COLUMNS, empty_transactions_frame

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("data", "date"),
    "company": ("empresa", "company"),
    "description": ("descrição", "descricao", "description"),
    "kind": ("tipo", "kind", "type"),
    "amount": ("valor", "amount"),
    "account": ("conta", "account"),
    "group": ("plano conta - grupo", "grupo", "group"),
    "subgroup": (
        "plano conta - sub-grupo",
        "subgrupo",
        "sub-grupo",
        "subgroup",
    ),
}

# Legacy .xls workbooks need xlrd; openpyxl reads the rest.
EXCEL_ENGINES: dict[str, str] = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xls": "xlrd",
}

_SLASH_DATE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})\s*$")
_AMOUNT_NOISE = re.compile(r"[R$\s]")


def _resolve_columns(columns: list[str]) -> dict[str, str]:
    """Map canonical field names to the actual column names of a sheet."""
    by_lower = {str(c).strip().lower(): c for c in columns}
    resolved: dict[str, str] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in by_lower:
                resolved[field] = by_lower[alias]
                break
    return resolved


def parse_date(value) -> Optional[pd.Timestamp]:
    """Parse a spreadsheet date cell, returning None when it is invalid."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.normalize()

    text = str(value).strip()
    if not text or text.lower() == "nan":
        return None

    m = _SLASH_DATE.match(text)
    if m:
        month, day, year_raw = int(m.group(1)), int(m.group(2)), m.group(3)
        year = 2000 + int(year_raw) if len(year_raw) == 2 else int(year_raw)
        try:
            return pd.Timestamp(year=year, month=month, day=day)
        except ValueError:
            return None

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.normalize()


def parse_amount(value) -> float:
    """Convert a spreadsheet amount cell into a float (0.0 when invalid)."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if pd.isna(value) else float(value)

    cleaned = _AMOUNT_NOISE.sub("", str(value)).replace(",", "")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def normalize_transactions(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a raw spreadsheet DataFrame into a transactions frame.

    Parameters
    ----------
    raw:
        DataFrame as read from the spreadsheet, with its original headers.

    Returns
    -------
    pandas.DataFrame
        A frame with exactly the columns listed in ``TRANSACTION_COLUMNS``.

    Raises
    ------
    ValueError
        If no date or no amount column can be found.
    """
    columns = _resolve_columns(list(raw.columns))
    missing = [field for field in ("date", "amount") if field not in columns]
    if missing:
        raise ValueError(
            "Invalid spreadsheet structure: missing column(s) "
            f"{', '.join(missing)}. Expected at least a date column "
            "('Data' or 'date') and an amount column ('VALOR' or 'amount')."
        )

    if raw.empty:
        return empty_transactions_frame()

    def text_column(field: str) -> pd.Series:
        if field not in columns:
            return pd.Series([""] * len(raw), index=raw.index, dtype="object")
        return raw[columns[field]].fillna("").astype(str).str.strip()

    d = pd.DataFrame(index=raw.index)
    d["date"] = raw[columns["date"]].map(parse_date)

    kind = text_column("kind").str.lower()
    d["kind"] = kind.where(kind == DEBIT, CREDIT)

    magnitude = raw[columns["amount"]].map(parse_amount).abs()
    d["amount"] = magnitude.where(d["kind"] == CREDIT, -magnitude)

    for field in ("company", "description", "account", "group", "subgroup"):
        d[field] = text_column(field)

    # Rows without a usable date never reach the aggregators.
    d = d[d["date"].notna()].copy()
    if d.empty:
        return empty_transactions_frame()

    d["date"] = pd.to_datetime(d["date"])
    d["amount"] = d["amount"].astype(float)
    return d[TRANSACTION_COLUMNS].reset_index(drop=True)


def read_transactions(path: Union[str, "os.PathLike[str]"]) -> pd.DataFrame:
    """
    Read a bookkeeping spreadsheet and normalize it.

    CSV files are read with ``pandas.read_csv`` (a leading BOM is
    ignored); ``.xlsx``/``.xlsm`` files with ``pandas.read_excel`` on the
    openpyxl engine and legacy ``.xls`` files on the xlrd engine (first
    sheet). All cells are read as text so that the normalization rules
    above apply uniformly.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the sheet structure is not supported.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Transactions file not found: {p}")

    engine = EXCEL_ENGINES.get(p.suffix.lower())
    if engine is not None:
        raw = pd.read_excel(p, sheet_name=0, dtype=str, engine=engine)
    else:
        raw = pd.read_csv(p, dtype=str, keep_default_na=False, encoding="utf-8-sig")

    return normalize_transactions(raw)
