import pytest

from dre_analytics.insights import (
    InsightRequest,
    build_insight_prompt,
    build_insight_request,
    parse_insight_response,
)
from dre_analytics.kpis import KPIData


def _kpis() -> KPIData:
    return KPIData(
        total_revenue=1000.0,
        total_expense=500.0,
        net_profit=500.0,
        margin_pct=50.0,
    )


def test_build_insight_request_payload() -> None:
    request = build_insight_request(_kpis(), mode="detailed")

    assert request.to_payload() == {
        "kpiSummary": {
            "totalRevenue": 1000.0,
            "totalExpense": 500.0,
            "netProfit": 500.0,
            "marginPct": 50.0,
        },
        "mode": "detailed",
    }


def test_build_insight_request_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        build_insight_request(_kpis(), mode="verbose")


@pytest.mark.parametrize(
    "payload, text, error",
    [
        ({"insightText": "Boa saúde financeira."}, "Boa saúde financeira.", None),
        ({"insights": "Texto"}, "Texto", None),
        ({"error": "unauthorized"}, None, "unauthorized"),
        ({}, None, "Invalid insight response: no insight text."),
    ],
)
def test_parse_insight_response(payload, text, error) -> None:
    response = parse_insight_response(payload)

    assert response.insight_text == text
    assert response.error == error
    assert response.ok is (error is None)


def test_parse_insight_response_rejects_non_objects() -> None:
    assert not parse_insight_response(["not", "an", "object"]).ok


def test_prompt_renders_two_decimals() -> None:
    prompt = build_insight_prompt(build_insight_request(_kpis()))

    assert "Receita Total: R$ 1000.00" in prompt
    assert "Despesa Total: R$ 500.00" in prompt
    assert "Margem de Lucro: 50.00%" in prompt
    assert "Recomendações estratégicas" not in prompt


def test_detailed_prompt_lists_analysis_points() -> None:
    prompt = build_insight_prompt(build_insight_request(_kpis(), "detailed"))

    assert "3. Recomendações estratégicas" in prompt


def test_prompt_requires_complete_summary() -> None:
    with pytest.raises(ValueError, match="marginPct"):
        build_insight_prompt(InsightRequest(kpi_summary={"totalRevenue": 1.0}))
