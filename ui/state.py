from __future__ import annotations
from typing import List, MutableMapping

from analysis.contracts import AnomalyResult, CostRecord, ExplanationResult, ForecastResult
from analysis.sample_data import generate_historical_costs

# session keys
HISTORY = "historical_costs"
FORECAST = "forecast_data"
SUMMARY = "analysis_summary"
WARNING = "overrun_warning"
ANOMALY_REPORT = "anomaly_report"
ANOMALY_DECISION = "anomaly_decision_support"
ANOMALY_OPEN = "anomaly_dialog_open"
EXPLANATION = "decision_explanation"
DATA_SOURCE = "data_source"

# cleared whenever the dataset changes
_DERIVED_DEFAULTS = {
    FORECAST: [],
    SUMMARY: "",
    WARNING: "",
    ANOMALY_REPORT: "",
    ANOMALY_DECISION: "",
    ANOMALY_OPEN: False,
    EXPLANATION: "",
}


def init_state(state: MutableMapping) -> None:
    """First run: load the demo dataset and empty analysis slots (existing keys untouched)."""
    if HISTORY not in state:
        state[HISTORY] = generate_historical_costs()
        state[DATA_SOURCE] = "sample"
    for k, v in _DERIVED_DEFAULTS.items():
        if k not in state:
            state[k] = list(v) if isinstance(v, list) else v


def replace_history(state: MutableMapping, records: List[CostRecord], source: str = "upload") -> None:
    """New dataset replaces the old one; forecast/summary/warning/reports are reset."""
    state[HISTORY] = list(records)
    state[DATA_SOURCE] = source
    for k, v in _DERIVED_DEFAULTS.items():
        state[k] = list(v) if isinstance(v, list) else v


def reset_to_sample(state: MutableMapping) -> None:
    replace_history(state, generate_historical_costs(), source="sample")


def apply_forecast(state: MutableMapping, result: ForecastResult) -> None:
    state[FORECAST] = list(result.forecast)
    state[SUMMARY] = result.summary
    state[WARNING] = result.warning
    state[EXPLANATION] = ""


def apply_anomaly(state: MutableMapping, result: AnomalyResult) -> None:
    state[ANOMALY_REPORT] = result.report
    state[ANOMALY_DECISION] = result.decision_support
    state[ANOMALY_OPEN] = True


def apply_explanation(state: MutableMapping, result: ExplanationResult) -> None:
    state[EXPLANATION] = result.explanation
