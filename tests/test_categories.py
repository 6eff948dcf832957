from datetime import date

import pytest

from dre_analytics.categories import (
    CategoryTotal,
    collapse_tail,
    group_by_category,
    share_pct,
    top_expenses,
    top_revenues,
)
from dre_analytics.transactions import CREDIT, DEBIT, Transaction, transactions_frame


def _frame():
    return transactions_frame(
        [
            Transaction(date(2024, 1, 1), "A", "", DEBIT, -50.0, group="Pessoal", subgroup="Salários"),
            Transaction(date(2024, 1, 2), "B", "", DEBIT, -30.0, group="Admin", subgroup="Aluguel"),
            Transaction(date(2024, 1, 3), "A", "", CREDIT, 80.0, group="Receita de Vendas", subgroup="Balcão"),
            Transaction(date(2024, 1, 4), "B", "", DEBIT, -30.0, group="Pessoal", subgroup="Encargos"),
            Transaction(date(2024, 1, 5), "A", "", DEBIT, -10.0, group="", subgroup=""),
        ]
    )


def test_group_by_category_sums_absolute_values_descending() -> None:
    result = group_by_category(_frame(), "group")

    assert [(c.name, c.value) for c in result] == [
        ("Pessoal", 80.0),
        ("Receita de Vendas", 80.0),
        ("Admin", 30.0),
    ]


def test_ties_keep_first_seen_order() -> None:
    result = group_by_category(_frame(), "subgroup")

    # Aluguel and Encargos both total 30; Aluguel was seen first.
    assert [c.name for c in result] == ["Balcão", "Salários", "Aluguel", "Encargos"]


def test_empty_keys_are_skipped() -> None:
    names = [c.name for c in group_by_category(_frame(), "group")]

    assert "" not in names


def test_group_by_company() -> None:
    result = group_by_category(_frame(), "company")

    assert [(c.name, c.value) for c in result] == [("A", 140.0), ("B", 60.0)]


def test_unknown_dimension_raises() -> None:
    with pytest.raises(ValueError):
        group_by_category(_frame(), "account")


def test_empty_frame_yields_empty_list() -> None:
    assert group_by_category(transactions_frame([]), "group") == []
    assert top_expenses(transactions_frame([])) == []


def test_top_expenses_and_revenues_split_by_kind() -> None:
    frame = _frame()

    expenses = top_expenses(frame, limit=2)
    revenues = top_revenues(frame)

    assert [c.name for c in expenses] == ["Salários", "Aluguel"]
    assert [c.name for c in revenues] == ["Balcão"]


def test_collapse_tail_folds_remainder() -> None:
    items = [CategoryTotal(str(i), float(10 - i)) for i in range(5)]

    collapsed = collapse_tail(items, keep=2)

    assert [c.name for c in collapsed] == ["0", "1", "Outros"]
    assert collapsed[-1].value == pytest.approx(8.0 + 7.0 + 6.0)
    assert collapse_tail(items, keep=10) == items


def test_share_pct() -> None:
    items = [CategoryTotal("a", 75.0), CategoryTotal("b", 25.0)]

    assert share_pct(items) == [pytest.approx(75.0), pytest.approx(25.0)]
    assert share_pct([CategoryTotal("z", 0.0)]) == [0.0]
