# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Keyword classification rules for the DRE engine.

The DRE (Demonstração do Resultado do Exercício) engine does not rely on a
chart of accounts: it classifies transactions by looking for keywords in
their free-text ``group`` field. This module isolates those rules so that
they can be unit-tested one by one and replaced (e.g. for another
language) without touching the aggregation logic.

Text normalization
------------------
Both the keywords and the group text go through ``normalize_text``:
lower-case, accents stripped ("Variáveis" -> "variaveis",
"não operacional" -> "nao operacional"). Matching is therefore
case- and diacritic-insensitive.

Rules
-----
A KeywordRule matches when the normalized text contains *all* of its
keywords. The Classifier holds:

- ``sales_revenue``: credit rule, "receita" AND "venda";
- ``non_operating_outflow``: debit rule, "saida" AND "nao operaciona"
  (the stem matches both "operacional" and "operacionais");
- ``expense_rules``: ordered debit rules, first match wins:
      1. "custo" AND "varia"  -> variable_costs
      2. "pessoal"            -> personnel
      3. "administrat"        -> administrative
      4. "operacion"          -> operational
      5. "financeira"         -> financial
  and a fallback bucket (``other``) for everything else, including an
  empty group.

Custom rules can be loaded from a TOML file, see ``load_classifier``.
"""

import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

# Expense buckets, in display order.
VARIABLE_COSTS = "variable_costs"
PERSONNEL = "personnel"
ADMINISTRATIVE = "administrative"
OPERATIONAL = "operational"
FINANCIAL = "financial"
OTHER = "other"

BUCKETS: tuple[str, ...] = (
    VARIABLE_COSTS,
    PERSONNEL,
    ADMINISTRATIVE,
    OPERATIONAL,
    FINANCIAL,
    OTHER,
)

BUCKET_LABELS: dict[str, str] = {
    VARIABLE_COSTS: "Custos Variáveis",
    PERSONNEL: "Despesas com Pessoal",
    ADMINISTRATIVE: "Despesas Administrativas",
    OPERATIONAL: "Despesas Operacionais",
    FINANCIAL: "Despesas Financeiras",
    OTHER: "Outras Despesas",
}


def normalize_text(text: Any) -> str:
    """Lower-case ``text`` and strip its diacritics."""
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text))
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower().strip()


@dataclass(frozen=True)
class KeywordRule:
    """Match texts containing all the given (normalized) keywords.

    Attributes:
        target: What a match maps to (a bucket key, or a rule name).
        keywords: Normalized keywords that must all be present.
    """

    target: str
    keywords: tuple[str, ...]

    @classmethod
    def of(cls, target: str, keywords: Iterable[str]) -> "KeywordRule":
        normalized = tuple(normalize_text(k) for k in keywords if normalize_text(k))
        if not normalized:
            raise ValueError(f"Rule for {target!r} must define at least one keyword.")
        return cls(target=target, keywords=normalized)

    def matches(self, normalized_text: str) -> bool:
        return all(k in normalized_text for k in self.keywords)


@dataclass(frozen=True)
class Classifier:
    """Ordered keyword rules used by the DRE engine."""

    sales_revenue: KeywordRule
    non_operating_outflow: KeywordRule
    expense_rules: tuple[KeywordRule, ...]
    fallback_bucket: str = OTHER

    def is_sales_revenue(self, group: Any) -> bool:
        """Whether a credit with this group counts as sales revenue."""
        return self.sales_revenue.matches(normalize_text(group))

    def is_non_operating_outflow(self, group: Any) -> bool:
        """Whether a debit with this group is a non-operating outflow."""
        return self.non_operating_outflow.matches(normalize_text(group))

    def expense_bucket(self, group: Any) -> str:
        """Return the bucket of a debit transaction (first matching rule)."""
        text = normalize_text(group)
        for rule in self.expense_rules:
            if rule.matches(text):
                return rule.target
        return self.fallback_bucket


def default_classifier() -> Classifier:
    """Return the built-in Brazilian Portuguese rules."""
    return Classifier(
        sales_revenue=KeywordRule.of("sales_revenue", ["receita", "venda"]),
        non_operating_outflow=KeywordRule.of(
            "non_operating_outflow", ["saida", "não operaciona"]
        ),
        expense_rules=(
            KeywordRule.of(VARIABLE_COSTS, ["custo", "variá"]),
            KeywordRule.of(PERSONNEL, ["pessoal"]),
            KeywordRule.of(ADMINISTRATIVE, ["administrat"]),
            KeywordRule.of(OPERATIONAL, ["operacion"]),
            KeywordRule.of(FINANCIAL, ["financeira"]),
        ),
        fallback_bucket=OTHER,
    )


def _keywords(section: Any, name: str) -> list[str]:
    if not isinstance(section, Mapping):
        raise ValueError(f"Classification rules: [{name}] must be a table.")
    raw = section.get("all_of")
    if not isinstance(raw, list) or not raw:
        raise ValueError(
            f"Classification rules: [{name}].all_of must be a non-empty list."
        )
    return [str(k) for k in raw]


def _check_bucket(bucket: Any) -> str:
    key = str(bucket)
    if key not in BUCKETS:
        raise ValueError(
            f"Unknown DRE bucket {key!r} in classification rules. "
            f"Expected one of: {', '.join(BUCKETS)}."
        )
    return key


def classifier_from_dict(data: Mapping[str, Any]) -> Classifier:
    """
    Build a Classifier from parsed TOML data.

    Missing sections fall back to the built-in rules, so a file may
    override only the expense rules, for instance.
    """
    base = default_classifier()

    sales = base.sales_revenue
    if "sales_revenue" in data:
        sales = KeywordRule.of(
            "sales_revenue", _keywords(data["sales_revenue"], "sales_revenue")
        )

    non_operating = base.non_operating_outflow
    if "non_operating_outflow" in data:
        non_operating = KeywordRule.of(
            "non_operating_outflow",
            _keywords(data["non_operating_outflow"], "non_operating_outflow"),
        )

    expense_rules = base.expense_rules
    if "expense_rules" in data:
        raw_rules = data["expense_rules"]
        if not isinstance(raw_rules, list):
            raise ValueError(
                "Classification rules: expense_rules must be an array of tables."
            )
        rules: list[KeywordRule] = []
        for i, entry in enumerate(raw_rules):
            if not isinstance(entry, Mapping) or "bucket" not in entry:
                raise ValueError(
                    f"Classification rules: expense_rules[{i}] must define 'bucket'."
                )
            bucket = _check_bucket(entry["bucket"])
            rules.append(
                KeywordRule.of(bucket, _keywords(entry, f"expense_rules[{i}]"))
            )
        expense_rules = tuple(rules)

    fallback = base.fallback_bucket
    fallback_section = data.get("fallback")
    if isinstance(fallback_section, Mapping) and "bucket" in fallback_section:
        fallback = _check_bucket(fallback_section["bucket"])

    return Classifier(
        sales_revenue=sales,
        non_operating_outflow=non_operating,
        expense_rules=expense_rules,
        fallback_bucket=fallback,
    )


def load_classifier(path: Path) -> Classifier:
    """
    Load classification rules from a TOML file.

    Expected layout::

        [sales_revenue]
        all_of = ["receita", "venda"]

        [non_operating_outflow]
        all_of = ["saida", "nao operaciona"]

        [[expense_rules]]
        bucket = "variable_costs"
        all_of = ["custo", "varia"]

        [fallback]
        bucket = "other"

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file cannot be parsed or defines invalid rules.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Classification rules file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse classification rules file: {path}") from exc

    return classifier_from_dict(data)
