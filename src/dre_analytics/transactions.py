# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Transaction records for DRE Analytics.

This module defines the normalized transaction contract shared by every
aggregator of the package, and the helpers used to move between plain
records and the pandas DataFrame used as the working representation.

Transactions frame
------------------
All aggregators consume a DataFrame with exactly these columns:

    - ``date``        (datetime64[ns], no time-of-day semantics)
    - ``company``     (str)
    - ``description`` (str)
    - ``kind``        (str, ``"c"`` = credit / revenue, ``"d"`` = debit / expense)
    - ``amount``      (float, signed: credits >= 0, debits <= 0)
    - ``account``     (str)
    - ``group``       (str)
    - ``subgroup``    (str)

The frame is produced either by ``io.read_transactions`` (spreadsheet
import) or by ``transactions_frame`` (in-memory records).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

# Transaction kinds, as found in the "Tipo" column of the source spreadsheets.
CREDIT = "c"
DEBIT = "d"
KINDS: tuple[str, ...] = (CREDIT, DEBIT)

TRANSACTION_COLUMNS: list[str] = [
    "date",
    "company",
    "description",
    "kind",
    "amount",
    "account",
    "group",
    "subgroup",
]

TEXT_COLUMNS: tuple[str, ...] = (
    "company",
    "description",
    "kind",
    "account",
    "group",
    "subgroup",
)


@dataclass(frozen=True)
class Transaction:
    """A single normalized bookkeeping transaction.

    Attributes:
        date: Calendar date of the transaction.
        company: Legal entity the transaction belongs to.
        description: Free-text memo.
        kind: ``CREDIT`` ("c") for revenue-side entries, ``DEBIT`` ("d")
            for expense-side entries.
        amount: Signed amount. Credits are positive, debits negative.
        account: Free-text account identifier.
        group: Chart-of-accounts group, used by the DRE classifier.
        subgroup: Chart-of-accounts subgroup, used for drill-down.
    """

    date: date
    company: str
    description: str
    kind: str
    amount: float
    account: str = ""
    group: str = ""
    subgroup: str = ""

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(
                f"Invalid transaction kind {self.kind!r}, expected 'c' or 'd'."
            )
        if self.kind == CREDIT and self.amount < 0:
            raise ValueError("Credit transactions must have a non-negative amount.")
        if self.kind == DEBIT and self.amount > 0:
            raise ValueError("Debit transactions must have a non-positive amount.")


@dataclass(frozen=True)
class DatasetIndex:
    """Distinct values and date range of a transactions frame.

    These lists feed filter pickers in the presentation layer. Values are
    listed in first-seen order and empty strings are skipped.
    """

    companies: list[str]
    groups: list[str]
    subgroups: list[str]
    accounts: list[str]
    start: Optional[date]
    end: Optional[date]


def empty_transactions_frame() -> pd.DataFrame:
    """Return an empty transactions frame with the canonical dtypes."""
    data = {col: pd.Series(dtype="object") for col in TRANSACTION_COLUMNS}
    data["date"] = pd.Series(dtype="datetime64[ns]")
    data["amount"] = pd.Series(dtype="float64")
    return pd.DataFrame(data, columns=TRANSACTION_COLUMNS)


def transactions_frame(records: Iterable[Transaction]) -> pd.DataFrame:
    """Build a transactions frame from Transaction records.

    The input order is preserved; it matters for every "first-seen"
    ordering rule downstream (category ties, DRE drill-down rows).
    """
    rows = [
        {
            "date": t.date,
            "company": t.company,
            "description": t.description,
            "kind": t.kind,
            "amount": float(t.amount),
            "account": t.account,
            "group": t.group,
            "subgroup": t.subgroup,
        }
        for t in records
    ]
    if not rows:
        return empty_transactions_frame()

    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    df["date"] = pd.to_datetime(df["date"]).dt.normalize()
    df["amount"] = df["amount"].astype(float)
    for col in TEXT_COLUMNS:
        df[col] = df[col].fillna("").astype(str)
    return df


def month_key(value: date) -> str:
    """Return the ``YYYY-MM`` bucket key of a date.

    Keys are zero-padded so that string ordering equals chronological
    ordering ("2023-11" < "2024-01").
    """
    return f"{value.year:04d}-{value.month:02d}"


def month_keys(frame: pd.DataFrame) -> pd.Series:
    """Return the ``YYYY-MM`` key of every row of a transactions frame."""
    if frame.empty:
        return pd.Series([], index=frame.index, dtype="object")
    return frame["date"].dt.strftime("%Y-%m")


def year_keys(frame: pd.DataFrame) -> pd.Series:
    """Return the ``YYYY`` key of every row of a transactions frame."""
    if frame.empty:
        return pd.Series([], index=frame.index, dtype="object")
    return frame["date"].dt.strftime("%Y")


def _distinct(values: pd.Series) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        s = str(v)
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out


def build_dataset_index(frame: pd.DataFrame) -> DatasetIndex:
    """Compute the distinct value lists and the date range of a frame."""
    if frame.empty:
        return DatasetIndex(
            companies=[],
            groups=[],
            subgroups=[],
            accounts=[],
            start=None,
            end=None,
        )

    return DatasetIndex(
        companies=_distinct(frame["company"]),
        groups=_distinct(frame["group"]),
        subgroups=_distinct(frame["subgroup"]),
        accounts=_distinct(frame["account"]),
        start=frame["date"].min().date(),
        end=frame["date"].max().date(),
    )
