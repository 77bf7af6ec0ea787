# Prompt flows with an injected fake generate_fn (no network)
import json

import pytest

from analysis.anomaly import ANOMALY_TOOL, detect_anomalies
from analysis.contracts import CostRecord, DashboardMetrics, ForecastPoint, MetricChange
from analysis.decision import describe_budget_variance, describe_cost_trends, explain_decision_support
from analysis.forecast import FORECAST_TOOL, build_forecast_prompt, forecast_costs
from analysis.prompting import LLMResponseError, call_json_flow, safe_load

RECS = [
    CostRecord("2024-05-01", 120_000.0, 120.0, 1000),
    CostRecord("2024-06-01", 126_000.0, 121.5, 1037),
]


class FakeGenerate:
    """Returns the queued answers in order and records every call."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.answers.pop(0)


def test_safe_load_strips_fences():
    assert safe_load('```json\n{"a": 1}\n```') == {"a": 1}
    with pytest.raises(ValueError):
        safe_load('Here you go: {"a": 1}')


def test_forecast_prompt_carries_csv_and_horizon():
    system, user = build_forecast_prompt("Date,Total Cost,Unit Cost,Volume\n2024-06-01,1,1,1", "6 months")
    assert "Dirham" in system
    assert "2024-06-01,1,1,1" in user
    assert "6 months" in user


def test_forecast_costs_parses_points():
    answer = json.dumps({
        "forecastedCosts": '"Date","Forecasted Cost"\n"2024-08-01","130000"\n"2024-07-01","128000"',
        "analysisSummary": "  Hausse modérée.  ",
        "overrunWarning": "",
    })
    gen = FakeGenerate(answer)
    res = forecast_costs(RECS, "2 months", generate_fn=gen, retry_pause_s=0)
    assert res.forecast == [ForecastPoint("2024-07-01", 128000.0), ForecastPoint("2024-08-01", 130000.0)]
    assert res.summary == "Hausse modérée."
    assert res.warning == ""
    call = gen.calls[0]
    assert call["tools"] == [FORECAST_TOOL]
    assert "2024-06-01,126000,121.5,1037" in call["user"]


def test_call_json_flow_retries_then_succeeds():
    gen = FakeGenerate("not json", json.dumps({"anomalyReport": "R", "decisionSupportMessage": "D"}))
    out = call_json_flow(system="s", user="u", tool=ANOMALY_TOOL, generate_fn=gen, retry_pause_s=0)
    assert out == {"anomalyReport": "R", "decisionSupportMessage": "D"}
    assert len(gen.calls) == 2


def test_call_json_flow_missing_keys_exhausts_retries():
    gen = FakeGenerate(*[json.dumps({"anomalyReport": "R"})] * 3)
    with pytest.raises(LLMResponseError):
        call_json_flow(system="s", user="u", tool=ANOMALY_TOOL, generate_fn=gen,
                       max_retries=2, retry_pause_s=0)
    assert len(gen.calls) == 3


def test_call_json_flow_requires_generate_fn():
    with pytest.raises(RuntimeError):
        call_json_flow(system="s", user="u", tool=ANOMALY_TOOL, generate_fn=None)


def test_detect_anomalies_report_verbatim():
    report = "1. Pic en juin\n   Gravité : élevée\n"
    gen = FakeGenerate(json.dumps({"anomalyReport": report, "decisionSupportMessage": " Vérifier les achats. "}))
    res = detect_anomalies(RECS, "Monthly costs", generate_fn=gen, retry_pause_s=0)
    assert res.report == report
    assert res.decision_support == "Vérifier les achats."
    assert "Monthly costs" in gen.calls[0]["user"]


def test_describe_budget_variance():
    assert describe_budget_variance(RECS, []) == "No forecast available yet; budget variance unknown."
    txt = describe_budget_variance(RECS, [ForecastPoint("2024-07-01", 130_000.0)])
    assert "next 1 months" in txt
    assert "+3.2%" in txt


def test_describe_cost_trends_and_explanation():
    m = DashboardMetrics(
        total_cost=MetricChange(126_000.0, "5.0%", "increase"),
        unit_cost=MetricChange(121.5, "1.3%", "increase"),
        volume=MetricChange(1037, "n/a", "increase"),
        next_month_forecast=0.0,
        total_forecast_cost=0.0,
    )
    trends = describe_cost_trends(m)
    assert "up 5.0%" in trends
    assert "no month-over-month comparison" in trends

    gen = FakeGenerate(json.dumps({"explanation": " Les coûts augmentent. "}))
    res = explain_decision_support(trends, "No forecast available yet; budget variance unknown.",
                                   generate_fn=gen, retry_pause_s=0)
    assert res.explanation == "Les coûts augmentent."
