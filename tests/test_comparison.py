from datetime import date

import pytest

import dre_analytics.comparison as comparison
from dre_analytics.periods import Period
from dre_analytics.transactions import CREDIT, DEBIT, Transaction, transactions_frame


def _sale(day: date, amount: float) -> Transaction:
    return Transaction(day, "A", "", CREDIT, amount, group="Receita de Vendas")


def _cost(day: date, amount: float) -> Transaction:
    return Transaction(day, "A", "", DEBIT, -amount, group="Despesas Operacionais")


def _year(key: str, revenue: float, expense: float, span: int) -> Period:
    year = int(key)
    return Period(
        key=key,
        label=key,
        start=date(year, 1, 1),
        end=date(year, 12, 31),
        revenue=revenue,
        expense=expense,
        profit=revenue - expense,
        day_span=span,
    )


def test_variance_with_zero_prior_is_zero_pct() -> None:
    v = comparison.variance(0.0, 50.0)

    assert v.delta == pytest.approx(50.0)
    assert v.delta_pct == 0.0


def test_variance_percentages() -> None:
    assert comparison.variance(100.0, 150.0).delta_pct == pytest.approx(50.0)
    assert comparison.variance(200.0, 150.0).delta_pct == pytest.approx(-25.0)
    assert comparison.variance(-100.0, -50.0).delta_pct == pytest.approx(-50.0)


def test_compare_months() -> None:
    frame = transactions_frame(
        [
            _sale(date(2024, 1, 5), 100.0),
            _cost(date(2024, 1, 6), 40.0),
            _sale(date(2024, 2, 5), 150.0),
            _cost(date(2024, 2, 6), 40.0),
        ]
    )

    result = comparison.compare(frame, "2024-01", "2024-02")

    assert (result.period1, result.period2) == ("2024-01", "2024-02")
    assert result.revenue.delta == pytest.approx(50.0)
    assert result.revenue.delta_pct == pytest.approx(50.0)
    assert result.expense.delta == pytest.approx(0.0)
    assert result.profit.p1 == pytest.approx(60.0)
    assert result.profit.p2 == pytest.approx(110.0)
    assert not result.proportionally_adjusted


def test_short_year_is_scaled_to_the_longer_span() -> None:
    full = _year("2023", revenue=36500.0, expense=18250.0, span=365)
    partial = _year("2024", revenue=3000.0, expense=1500.0, span=30)

    result = comparison.compare_year_periods(full, partial)

    factor = 365 / 30
    assert result.proportionally_adjusted
    assert result.adjusted_period == "2024"
    assert result.adjustment_factor == pytest.approx(factor)
    assert result.revenue.p1 == pytest.approx(36500.0)
    assert result.revenue.p2 == pytest.approx(3000.0 * factor)
    assert result.expense.p2 == pytest.approx(1500.0 * factor)
    assert result.profit.p2 == pytest.approx(1500.0 * factor)


def test_shorter_first_period_is_the_one_scaled() -> None:
    partial = _year("2023", revenue=300.0, expense=0.0, span=30)
    full = _year("2024", revenue=3650.0, expense=0.0, span=365)

    result = comparison.compare_year_periods(partial, full)

    assert result.adjusted_period == "2023"
    assert result.revenue.p1 == pytest.approx(3650.0)
    assert result.revenue.delta == pytest.approx(0.0)


@pytest.mark.parametrize(
    "span_a, span_b, adjusted",
    [
        (365, 365, False),
        (365, 360, False),
        (80, 100, False),
        (79, 100, True),
        (0, 100, False),
    ],
)
def test_adjustment_threshold(span_a, span_b, adjusted) -> None:
    a = _year("2023", 100.0, 50.0, span_a)
    b = _year("2024", 100.0, 50.0, span_b)

    assert comparison.compare_year_periods(a, b).proportionally_adjusted is adjusted


def test_compare_years_uses_transaction_day_spans() -> None:
    frame = transactions_frame(
        [
            _sale(date(2023, 1, 1), 1000.0),
            _sale(date(2023, 12, 31), 1000.0),
            _sale(date(2024, 1, 1), 100.0),
            _sale(date(2024, 1, 30), 200.0),
        ]
    )

    result = comparison.compare_years(frame, "2023", "2024")

    assert result.proportionally_adjusted
    assert result.revenue.p2 == pytest.approx(300.0 * 365 / 30)
    assert result.revenue.p1 == pytest.approx(2000.0)
    assert result.adjusted_period == "2024"
    assert result.adjustment_factor == pytest.approx(365 / 30)


def test_full_years_are_not_adjusted() -> None:
    frame = transactions_frame(
        [
            _sale(date(2023, 1, 1), 10.0),
            _sale(date(2023, 12, 31), 10.0),
            _sale(date(2024, 1, 1), 10.0),
            _sale(date(2024, 12, 30), 10.0),
        ]
    )

    result = comparison.compare_years(frame, 2023, 2024)

    assert not result.proportionally_adjusted
    assert result.adjustment_factor == 1.0


def test_synthetic_periods_are_never_adjusted() -> None:
    frame = transactions_frame(
        [
            _sale(date(2024, 1, 1), 10.0),
            _sale(date(2024, 6, 30), 10.0),
            _sale(date(2024, 7, 1), 30.0),
        ]
    )

    result = comparison.compare(frame, "2024-S1", "2024-S2", granularity="semester")

    assert not result.proportionally_adjusted
    assert result.revenue.delta == pytest.approx(10.0)


def test_unknown_period_raises() -> None:
    frame = transactions_frame([_sale(date(2024, 1, 1), 10.0)])

    with pytest.raises(ValueError, match="2023"):
        comparison.compare_years(frame, "2023", "2024")


def test_sales_revenue_by_year() -> None:
    frame = transactions_frame(
        [
            _sale(date(2022, 5, 1), 100.0),
            _sale(date(2023, 5, 1), 150.0),
            Transaction(date(2023, 6, 1), "A", "", CREDIT, 999.0, group="Outras Receitas"),
            _sale(date(2024, 5, 1), 120.0),
        ]
    )

    result = comparison.sales_revenue_by_year(frame)

    assert [(y.year, y.value) for y in result.years] == [
        ("2022", 100.0),
        ("2023", 150.0),
        ("2024", 120.0),
    ]
    assert result.years[0].yoy_pct is None
    assert result.years[1].yoy_pct == pytest.approx(50.0)
    assert result.years[2].yoy_pct == pytest.approx(-20.0)
    assert result.has_comparison
    assert (result.first_year, result.last_year) == ("2022", "2024")
    assert result.delta == pytest.approx(20.0)
    assert result.delta_pct == pytest.approx(20.0)


def test_sales_revenue_by_year_growth_guard_and_single_year() -> None:
    zero_start = transactions_frame(
        [_sale(date(2022, 5, 1), 0.0), _sale(date(2023, 5, 1), 100.0)]
    )
    single = transactions_frame([_sale(date(2024, 5, 1), 100.0)])

    guarded = comparison.sales_revenue_by_year(zero_start)
    lonely = comparison.sales_revenue_by_year(single)

    assert guarded.years[1].yoy_pct == 0.0
    assert guarded.delta_pct == 0.0
    assert len(lonely.years) == 1
    assert not lonely.has_comparison
    assert comparison.sales_revenue_by_year(transactions_frame([])).years == []
