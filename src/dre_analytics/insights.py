# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Request/response contract for an external text-insight generator.

DRE Analytics does not generate text itself. It prepares a request made of
the KPI summary and a mode ('summary' or 'detailed'), renders a
deterministic prompt for whichever generator is plugged in, and parses the
generator's reply, which is either ``{"insightText": ...}`` or
``{"error": ...}``. The text content is never interpreted.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .kpis import KPIData

INSIGHT_MODES: tuple[str, ...] = ("summary", "detailed")

SYSTEM_PROMPT = "Você é um analista financeiro especializado."

_SUMMARY_KEYS: tuple[str, ...] = (
    "totalRevenue",
    "totalExpense",
    "netProfit",
    "marginPct",
)


@dataclass(frozen=True)
class InsightRequest:
    kpi_summary: dict[str, float]
    mode: str = "summary"

    def to_payload(self) -> dict[str, Any]:
        return {"kpiSummary": dict(self.kpi_summary), "mode": self.mode}


@dataclass(frozen=True)
class InsightResponse:
    insight_text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.insight_text is not None


def build_insight_request(kpis: KPIData, mode: str = "summary") -> InsightRequest:
    """Build the generator request from computed KPIs."""
    if mode not in INSIGHT_MODES:
        raise ValueError(
            f"Unknown insight mode {mode!r}. Expected 'summary' or 'detailed'."
        )
    return InsightRequest(kpi_summary=kpis.summary(), mode=mode)


def parse_insight_response(payload: Mapping[str, Any]) -> InsightResponse:
    """
    Parse a generator reply.

    Accepts ``insightText`` (or the legacy ``insights`` key) for success
    and ``error`` for failure. Any other shape is reported as an error.
    """
    if not isinstance(payload, Mapping):
        return InsightResponse(error="Invalid insight response: expected an object.")

    if payload.get("error"):
        return InsightResponse(error=str(payload["error"]))

    for key in ("insightText", "insights"):
        text = payload.get(key)
        if isinstance(text, str):
            return InsightResponse(insight_text=text)

    return InsightResponse(error="Invalid insight response: no insight text.")


def build_insight_prompt(request: InsightRequest) -> str:
    """Render the pt-BR analysis prompt for a request (two decimals)."""
    missing = [k for k in _SUMMARY_KEYS if k not in request.kpi_summary]
    if missing:
        raise ValueError(f"KPI summary is missing: {', '.join(missing)}.")

    s = request.kpi_summary
    lines = [
        "Você é um especialista em análise financeira. "
        "Analise os dados abaixo e forneça insights profissionais:",
        "",
        f"Receita Total: R$ {s['totalRevenue']:.2f}",
        f"Despesa Total: R$ {s['totalExpense']:.2f}",
        f"Lucro Líquido: R$ {s['netProfit']:.2f}",
        f"Margem de Lucro: {s['marginPct']:.2f}%",
        "",
    ]
    if request.mode == "detailed":
        lines += [
            "Forneça uma análise completa incluindo:",
            "1. Avaliação da saúde financeira",
            "2. Identificação de pontos críticos",
            "3. Recomendações estratégicas",
            "4. Oportunidades de melhoria",
        ]
    else:
        lines.append("Forneça um resumo curto da saúde financeira em até 3 frases.")
    return "\n".join(lines)
