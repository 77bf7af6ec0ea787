# services/actions.py
# UI actions: wire the analysis flows to the LLM client; never raise into the page.

from __future__ import annotations
import logging
from typing import List, Optional

from analysis.anomaly import detect_anomalies
from analysis.contracts import (
    AnomalyResult, CostRecord, DashboardMetrics, ExplanationResult,
    FlowOutcome, ForecastPoint, ForecastResult,
)
from analysis.decision import describe_budget_variance, describe_cost_trends, explain_decision_support
from analysis.forecast import forecast_costs
from config import ANOMALY_DESCRIPTION_DEFAULT, FORECAST_HORIZON_DEFAULT
from services.llm import LLMClient

logger = logging.getLogger(__name__)

FORECAST_FAILED = "Failed to generate forecast."
ANOMALY_FAILED = "Failed to run anomaly detection."
EXPLANATION_FAILED = "Failed to generate explanation."
LLM_OFFLINE = "No LLM API key configured. Set GROQ_API_KEY or OPENAI_API_KEY and restart."
NO_DATA_FORECAST = "Cannot run forecast without historical data. Please upload a file."
NO_DATA_ANOMALY = "Cannot run anomaly detection without historical data. Please upload a file."


def _client(client: Optional[LLMClient]) -> LLMClient:
    return client if client is not None else LLMClient()


def run_forecast(records: List[CostRecord], horizon: str = FORECAST_HORIZON_DEFAULT,
                 *, client: Optional[LLMClient] = None) -> FlowOutcome[ForecastResult]:
    if not records:
        return FlowOutcome(error=NO_DATA_FORECAST, details={"title": "No Data"})
    try:
        llm = _client(client)
        if not llm.online:
            return FlowOutcome(error=LLM_OFFLINE, details={"title": "LLM offline"})
        result = forecast_costs(records, horizon, generate_fn=llm.generate)
        return FlowOutcome(value=result, details={"model": llm.model, "points": len(result.forecast)})
    except Exception:
        logger.exception("Error in run_forecast")
        return FlowOutcome(error=FORECAST_FAILED, details={"title": "Forecast Failed"})


def run_anomaly_detection(records: List[CostRecord], description: str = ANOMALY_DESCRIPTION_DEFAULT,
                          *, client: Optional[LLMClient] = None) -> FlowOutcome[AnomalyResult]:
    if not records:
        return FlowOutcome(error=NO_DATA_ANOMALY, details={"title": "No Data"})
    try:
        llm = _client(client)
        if not llm.online:
            return FlowOutcome(error=LLM_OFFLINE, details={"title": "LLM offline"})
        result = detect_anomalies(records, description, generate_fn=llm.generate)
        return FlowOutcome(value=result, details={"model": llm.model})
    except Exception:
        logger.exception("Error in run_anomaly_detection")
        return FlowOutcome(error=ANOMALY_FAILED, details={"title": "Analysis Failed"})


def run_decision_support(metrics: DashboardMetrics, records: List[CostRecord], forecast: List[ForecastPoint],
                         *, client: Optional[LLMClient] = None) -> FlowOutcome[ExplanationResult]:
    if not records:
        return FlowOutcome(error="Please upload data to generate insights.", details={"title": "No Data"})
    try:
        llm = _client(client)
        if not llm.online:
            return FlowOutcome(error=LLM_OFFLINE, details={"title": "LLM offline"})
        result = explain_decision_support(
            describe_cost_trends(metrics),
            describe_budget_variance(records, forecast),
            generate_fn=llm.generate,
        )
        return FlowOutcome(value=result, details={"model": llm.model})
    except Exception:
        logger.exception("Error in run_decision_support")
        return FlowOutcome(error=EXPLANATION_FAILED, details={"title": "Explanation Failed"})
