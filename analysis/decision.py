from __future__ import annotations
import textwrap
from typing import List, Optional

from config import CURRENCY_LABEL
from utils.helpers import format_currency, format_number
from .contracts import CostRecord, DashboardMetrics, ExplanationResult, ForecastPoint
from .prompting import GenerateFn, call_json_flow, tool_schema

EXPLANATION_TOOL = tool_schema(
    "emit_explanation",
    "Return the explanation strictly in the fixed JSON schema.",
    {"explanation": "Explication des tendances de coûts et des dépassements de budget."},
)


def describe_cost_trends(metrics: DashboardMetrics) -> str:
    """KPI cards -> one plain sentence per measure (model input)."""
    def _line(label: str, m, money: bool) -> str:
        val = format_currency(m.value, 2 if label == "Unit cost" else 0) if money else format_number(m.value)
        verb = "up" if m.change_type == "increase" else "down"
        if m.change in ("0.0%", "n/a"):
            return f"{label}: {val} (no month-over-month comparison)."
        return f"{label}: {val}, {verb} {m.change} vs last month."

    return " ".join([
        _line("Total cost", metrics.total_cost, True),
        _line("Unit cost", metrics.unit_cost, True),
        _line("Production volume", metrics.volume, False),
    ])


def describe_budget_variance(records: List[CostRecord], forecast: List[ForecastPoint]) -> str:
    """Forecast horizon total vs. the same number of most recent actual months."""
    if not forecast:
        return "No forecast available yet; budget variance unknown."
    n = len(forecast)
    recent = records[-n:] if records else []
    fc_total = sum(p.forecasted_cost for p in forecast)
    if not recent:
        return f"Forecast total over {n} months: {format_currency(fc_total)}; no actuals to compare."
    act_total = sum(r.total_cost for r in recent)
    diff = fc_total - act_total
    pct = (diff / act_total * 100.0) if act_total else 0.0
    return (
        f"Forecast total over the next {n} months: {format_currency(fc_total)} vs "
        f"{format_currency(act_total)} over the last {len(recent)} actual months "
        f"({'+' if diff >= 0 else '-'}{format_currency(abs(diff))}, {pct:+.1f}%)."
    )


def build_explanation_prompt(cost_trends: str, budget_variance: str) -> tuple[str, str]:
    system = textwrap.dedent(f"""
    Vous êtes un assistant IA aidant les gestionnaires à comprendre les tendances des coûts et les dépassements de budget au Maroc.
    La devise utilisée est le Dirham Marocain ({CURRENCY_LABEL}).
    Fournissez une explication claire et concise basée sur les informations fournies.
    Répondez UNIQUEMENT avec l'objet JSON, sans markdown ni texte additionnel.
    """).strip()
    user = f"Tendances des coûts : {cost_trends}\nÉcart budgétaire : {budget_variance}\n\nExplication :"
    return system, user


def explain_decision_support(
    cost_trends: str,
    budget_variance: str,
    *,
    generate_fn: Optional[GenerateFn] = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    **retry_kwargs,
) -> ExplanationResult:
    system, user = build_explanation_prompt(cost_trends, budget_variance)
    out = call_json_flow(
        system=system, user=user, tool=EXPLANATION_TOOL,
        generate_fn=generate_fn, model=model, max_tokens=max_tokens, **retry_kwargs,
    )
    return ExplanationResult(explanation=out["explanation"].strip())
