import math
from datetime import date

import pytest

import dre_analytics.views as views
from dre_analytics.comparison import compare, sales_revenue_by_year
from dre_analytics.dre import build_annual_dre, build_monthly_dre
from dre_analytics.kpis import compute_kpis, cumulative_cash_flow, monthly_totals
from dre_analytics.ranking import month_rankings
from dre_analytics.transactions import CREDIT, DEBIT, Transaction, transactions_frame


def _t(day, kind, amount, group, subgroup=""):
    return Transaction(day, "Loja", "", kind, amount, group=group, subgroup=subgroup)


@pytest.fixture(scope="module")
def frame():
    return transactions_frame(
        [
            _t(date(2024, 2, 1), CREDIT, 1000.004, "Receita de Vendas", "Balcão"),
            _t(date(2023, 1, 5), CREDIT, 800.0, "Receita de Vendas", "Balcão"),
            _t(date(2023, 1, 6), DEBIT, -100.0, "Custos Variáveis", "Mercadorias"),
            _t(date(2023, 1, 7), DEBIT, -300.0, "Despesas com Pessoal", "Salários"),
            _t(date(2023, 1, 8), DEBIT, -50.0, "Despesas com Pessoal", "Encargos"),
            _t(date(2024, 2, 2), DEBIT, -200.0, "Despesas com Pessoal", "Salários"),
            _t(date(2024, 2, 3), DEBIT, -40.0, "Saídas Não Operacionais", "Retirada"),
        ]
    )


def _is_step10(seq) -> bool:
    return all(b - a == 10 for a, b in zip(seq, seq[1:]))


def test_kpis_to_dataframe_rounds(frame) -> None:
    df = views.kpis_to_dataframe(compute_kpis(frame), decimals=2)

    assert df["key"].tolist() == ["total_revenue", "total_expense", "net_profit", "margin_pct"]
    assert df.loc[0, "value"] == pytest.approx(1800.0)


def test_monthly_dre_table_has_total_line(frame) -> None:
    df = views.monthly_dre_to_dataframe(build_monthly_dre(frame))

    assert df["month"].tolist() == ["2023-01", "2024-02", "TOTAL"]
    assert df.iloc[-1]["total_revenue"] == pytest.approx(1800.0)
    assert df.iloc[-1]["profit"] == pytest.approx(1800.0 - 690.0)


def test_monthly_dre_table_empty() -> None:
    df = views.monthly_dre_to_dataframe([])

    assert df.empty
    assert "profit" in df.columns


@pytest.mark.parametrize("expand", ["bucket", "group", "subgroup"])
def test_annual_dre_statement_levels(frame, expand) -> None:
    df = views.annual_dre_to_dataframe(build_annual_dre(frame), expand=expand)

    assert list(df.columns[-2:]) == ["2023", "2024"]
    assert _is_step10(df["display_order"].tolist())
    max_level = {"bucket": 1, "group": 2, "subgroup": 3}[expand]
    assert df["level"].max() == max_level

    result = df.set_index("key")
    assert result.loc["contribution_margin", "2023"] == pytest.approx(700.0)
    assert result.loc["operational_result", "2023"] == pytest.approx(350.0)


def test_annual_dre_subgroup_rows_follow_their_group(frame) -> None:
    df = views.annual_dre_to_dataframe(build_annual_dre(frame), expand="subgroup")
    names = df["name"].tolist()

    # The group line sits right below the bucket line of the same label.
    start = df["key"].tolist().index("personnel.1")
    assert names[start] == "Despesas com Pessoal"
    assert names[start + 1 : start + 3] == ["Salários", "Encargos"]
    row = df[df["name"] == "Encargos"].iloc[0]
    assert row["2023"] == pytest.approx(50.0)
    assert row["2024"] == pytest.approx(0.0)


def test_annual_dre_sales_mode_discloses_excluded_outflows(frame) -> None:
    df = views.annual_dre_to_dataframe(build_annual_dre(frame, "sales"), expand="group")

    excluded = df[df["key"] == "non_operating_outflow"].iloc[0]
    assert excluded["2024"] == pytest.approx(40.0)
    assert "Saídas Não Operacionais" in df["name"].tolist()


def test_annual_dre_invalid_expand(frame) -> None:
    with pytest.raises(ValueError):
        views.annual_dre_to_dataframe(build_annual_dre(frame), expand="account")


def test_annual_dre_empty() -> None:
    df = views.annual_dre_to_dataframe([])

    assert df.empty


def test_comparison_table(frame) -> None:
    df = views.comparison_to_dataframe(compare(frame, "2023-01", "2024-02"))

    assert df["metric"].tolist() == ["revenue", "expense", "profit"]
    revenue = df.iloc[0]
    assert revenue["p1"] == pytest.approx(800.0)
    assert revenue["p2"] == pytest.approx(1000.0)
    assert revenue["delta_pct"] == pytest.approx(25.0)


def test_ranking_and_sales_tables(frame) -> None:
    ranking = views.ranking_to_dataframe(month_rankings(monthly_totals(frame)))
    sales = views.sales_by_year_to_dataframe(sales_revenue_by_year(frame))

    assert set(ranking["ranking"]) == {
        "top_revenue",
        "bottom_revenue",
        "lowest_expense",
        "highest_expense",
    }
    assert sales["year"].tolist() == ["2023", "2024"]
    assert math.isnan(sales.loc[0, "yoy_pct"])
    assert sales.loc[1, "yoy_pct"] == pytest.approx(25.0)


def test_monthly_reports(frame) -> None:
    synthetic = views.monthly_report_to_dataframe(monthly_totals(frame))
    analytic = views.analytic_report_to_dataframe(frame)

    assert synthetic["month"].tolist() == ["2023-01", "2024-02", "TOTAL"]
    assert synthetic.iloc[-1]["expense"] == pytest.approx(690.0)

    assert analytic["date"].tolist()[0] == "2023-01-05"
    assert analytic["date"].is_monotonic_increasing
    assert set(analytic["type"]) == {"Receita", "Despesa"}
    assert (analytic["value"] >= 0).all()


def test_cash_flow_table(frame) -> None:
    df = views.cash_flow_to_dataframe(cumulative_cash_flow(compute_kpis(frame)))

    assert df["accumulated"].tolist() == [pytest.approx(350.0), pytest.approx(1110.0)]
