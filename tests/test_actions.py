import json

from analysis.metrics import compute_dashboard_metrics
from analysis.sample_data import generate_historical_costs
from services import actions


class FakeClient:
    def __init__(self, answer="", online=True, boom=False):
        self.online = online
        self.model = "fake-model"
        self.answer = answer
        self.boom = boom

    def generate(self, system, user, tools=None, *, model=None, max_tokens=None, force_json=None):
        if self.boom:
            raise RuntimeError("network down")
        return self.answer


def test_run_forecast_no_data():
    res = actions.run_forecast([], client=FakeClient())
    assert not res.ok
    assert res.error == actions.NO_DATA_FORECAST


def test_run_forecast_offline():
    res = actions.run_forecast(generate_historical_costs(), client=FakeClient(online=False))
    assert res.error == actions.LLM_OFFLINE


def test_run_forecast_ok():
    answer = json.dumps({
        "forecastedCosts": '"Date","Forecasted Cost"\n"2024-07-01","128000"',
        "analysisSummary": "ok",
        "overrunWarning": "",
    })
    res = actions.run_forecast(generate_historical_costs(), "1 month", client=FakeClient(answer))
    assert res.ok
    assert res.value.forecast[0].date == "2024-07-01"
    assert res.details["model"] == "fake-model"


def test_run_anomaly_detection_failure_is_reported(monkeypatch):
    monkeypatch.setattr("analysis.prompting.time.sleep", lambda s: None)
    res = actions.run_anomaly_detection(generate_historical_costs(), client=FakeClient(boom=True))
    assert not res.ok
    assert res.error == actions.ANOMALY_FAILED
    assert res.details["title"] == "Analysis Failed"


def test_run_anomaly_detection_no_data():
    assert actions.run_anomaly_detection([], client=FakeClient()).error == actions.NO_DATA_ANOMALY


def test_run_decision_support_ok():
    recs = generate_historical_costs()
    m = compute_dashboard_metrics(recs, [])
    res = actions.run_decision_support(m, recs, [], client=FakeClient(json.dumps({"explanation": "Stable."})))
    assert res.ok
    assert res.value.explanation == "Stable."
