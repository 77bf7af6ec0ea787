from analysis.contracts import AnomalyResult, CostRecord, ExplanationResult, ForecastPoint, ForecastResult
from analysis.sample_data import generate_historical_costs, seeded_random
from ui import state as S


def test_seeded_random_deterministic():
    a, b = seeded_random(42), seeded_random(42)
    xs = [a() for _ in range(5)]
    assert xs == [b() for _ in range(5)]
    assert all(0.0 <= x < 1.0 for x in xs)


def test_generate_historical_costs_shape():
    recs = generate_historical_costs()
    assert len(recs) == 24
    assert recs[0].date == "2022-07-01"
    assert recs[-1].date == "2024-06-01"
    assert recs == generate_historical_costs()
    first, last = recs[0], recs[-1]
    assert (first.date, first.total_cost, first.unit_cost, first.volume) == ("2022-07-01", 129989, 117.5, 1106)
    assert (last.date, last.total_cost, last.unit_cost, last.volume) == ("2024-06-01", 129014, 122.72, 1051)
    for r in recs:
        assert 40_000 < r.total_cost < 250_000
        assert r.volume > 0
        assert abs(r.unit_cost - r.total_cost / r.volume) < 1.0


def test_init_state_loads_sample_once():
    st = {}
    S.init_state(st)
    assert len(st[S.HISTORY]) == 24
    assert st[S.DATA_SOURCE] == "sample"
    assert st[S.FORECAST] == []

    st[S.HISTORY] = st[S.HISTORY][:3]
    S.init_state(st)
    assert len(st[S.HISTORY]) == 3


def test_replace_history_resets_derived_state():
    st = {}
    S.init_state(st)
    S.apply_forecast(st, ForecastResult([ForecastPoint("2024-07-01", 1.0)], "sum", "warn"))
    S.apply_anomaly(st, AnomalyResult("report", "act"))
    S.apply_explanation(st, ExplanationResult("why"))
    assert st[S.ANOMALY_OPEN] is True

    new = [CostRecord("2025-01-01", 10.0, 1.0, 10)]
    S.replace_history(st, new, source="upload.csv")
    assert st[S.HISTORY] == new
    assert st[S.DATA_SOURCE] == "upload.csv"
    assert st[S.FORECAST] == []
    assert st[S.SUMMARY] == st[S.WARNING] == st[S.ANOMALY_REPORT] == st[S.EXPLANATION] == ""
    assert st[S.ANOMALY_OPEN] is False


def test_new_forecast_clears_explanation():
    st = {}
    S.init_state(st)
    S.apply_explanation(st, ExplanationResult("old"))
    S.apply_forecast(st, ForecastResult([], "s", ""))
    assert st[S.EXPLANATION] == ""
    assert st[S.SUMMARY] == "s"
