from dataclasses import dataclass, field
import pandas as pd
from typing import Generic, List, Literal, Optional, TypeVar

# --- Direction of a month-over-month change ---
ChangeType = Literal["increase", "decrease"]

T = TypeVar("T")


@dataclass(frozen=True)
class CostRecord:
    date: str            # ISO "YYYY-MM-DD" (first day of the month in practice)
    total_cost: float
    unit_cost: float
    volume: int


@dataclass(frozen=True)
class ForecastPoint:
    date: str
    forecasted_cost: float


@dataclass(frozen=True)
class ForecastResult:
    forecast: List[ForecastPoint]
    summary: str
    warning: str


@dataclass(frozen=True)
class AnomalyResult:
    report: str               # shown verbatim
    decision_support: str


@dataclass(frozen=True)
class ExplanationResult:
    explanation: str


@dataclass(frozen=True)
class MetricChange:
    value: float
    change: str               # e.g. "4.2%", "0.0%", "n/a"
    change_type: ChangeType


@dataclass(frozen=True)
class DashboardMetrics:
    total_cost: MetricChange
    unit_cost: MetricChange
    volume: MetricChange
    next_month_forecast: float
    total_forecast_cost: float


@dataclass(frozen=True)
class FlowOutcome(Generic[T]):
    """Result of a UI action: either a value or a user-facing error message."""
    value: Optional[T] = None
    error: Optional[str] = None
    details: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


RECORD_COLUMNS = ["date", "total_cost", "unit_cost", "volume"]
FORECAST_COLUMNS = ["date", "forecasted_cost"]


def records_to_frame(records: List[CostRecord]) -> pd.DataFrame:
    rows = [[r.date, r.total_cost, r.unit_cost, r.volume] for r in (records or [])]
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    return df


def forecast_to_frame(points: List[ForecastPoint]) -> pd.DataFrame:
    rows = [[p.date, p.forecasted_cost] for p in (points or [])]
    df = pd.DataFrame(rows, columns=FORECAST_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    return df


# Public API
__all__ = [
    "CostRecord", "ForecastPoint", "ForecastResult", "AnomalyResult", "ExplanationResult",
    "MetricChange", "DashboardMetrics", "FlowOutcome", "records_to_frame", "forecast_to_frame",
    "RECORD_COLUMNS", "FORECAST_COLUMNS",
]
