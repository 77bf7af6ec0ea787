# analysis/metrics.py
# KPI cards + chart/analytics frames derived from the in-session records.

from __future__ import annotations
import math
from typing import List, Optional

import numpy as np
import pandas as pd

from config import FIXED_COST_BASELINE, FIXED_COST_MIN_POINTS, MONTHLY_TREND_MONTHS, UNIT_COST_BINS
from utils.helpers import format_currency
from .contracts import (
    CostRecord, DashboardMetrics, ForecastPoint, MetricChange,
    forecast_to_frame, records_to_frame,
)

ACTUAL_COL = "Actual Cost"
FORECAST_COL = "Forecasted Cost"


def pct_change(current: float, previous: float) -> Optional[float]:
    """Month-over-month change in %; None when the previous value is 0 or missing."""
    try:
        cur, prev = float(current), float(previous)
    except (TypeError, ValueError):
        return None
    if prev == 0 or not math.isfinite(prev) or not math.isfinite(cur):
        return None
    return (cur - prev) / prev * 100.0


def _metric(current: float, previous: Optional[float]) -> MetricChange:
    if previous is None:
        return MetricChange(value=current, change="0.0%", change_type="increase")
    pc = pct_change(current, previous)
    if pc is None:
        return MetricChange(value=current, change="n/a", change_type="increase")
    return MetricChange(
        value=current,
        change=f"{abs(pc):.1f}%",
        change_type="increase" if pc >= 0 else "decrease",
    )


def change_is_bad(change_type: str, increase_is_good: bool = False) -> bool:
    return (change_type == "increase") != bool(increase_is_good)


def compute_dashboard_metrics(records: List[CostRecord], forecast: List[ForecastPoint] | None = None) -> DashboardMetrics:
    forecast = list(forecast or [])
    next_month = float(forecast[0].forecasted_cost) if forecast else 0.0
    total_fc = float(sum(p.forecasted_cost for p in forecast))

    if not records:
        zero = MetricChange(value=0.0, change="0.0%", change_type="increase")
        return DashboardMetrics(zero, zero, MetricChange(0, "0.0%", "increase"), 0.0, 0.0)

    cur = records[-1]
    prev = records[-2] if len(records) >= 2 else None
    if prev is None:
        # single month: no comparison and no forecast KPI
        return DashboardMetrics(
            total_cost=_metric(cur.total_cost, None),
            unit_cost=_metric(cur.unit_cost, None),
            volume=_metric(cur.volume, None),
            next_month_forecast=0.0,
            total_forecast_cost=0.0,
        )
    return DashboardMetrics(
        total_cost=_metric(cur.total_cost, prev.total_cost),
        unit_cost=_metric(cur.unit_cost, prev.unit_cost),
        volume=_metric(cur.volume, prev.volume),
        next_month_forecast=next_month,
        total_forecast_cost=total_fc,
    )


def build_chart_frame(records: List[CostRecord], forecast: List[ForecastPoint] | None = None) -> pd.DataFrame:
    """
    ['date', 'Actual Cost', 'Forecasted Cost'] sorted by date.
    A forecast point on an existing historical date shares that row; others are appended.
    """
    hist = records_to_frame(records)[["date", "total_cost"]].rename(columns={"total_cost": ACTUAL_COL})
    fc = forecast_to_frame(forecast or [])
    if fc.empty:
        out = hist.copy()
        out[FORECAST_COL] = np.nan
    else:
        fc = fc.rename(columns={"forecasted_cost": FORECAST_COL}).drop_duplicates("date", keep="first")
        out = hist.merge(fc, on="date", how="outer")
    out = out.dropna(subset=["date"]).sort_values("date", kind="stable").reset_index(drop=True)
    return out[["date", ACTUAL_COL, FORECAST_COL]]


# === Analytics ===
def estimate_fixed_cost(records: List[CostRecord]) -> float:
    """Intercept of total_cost ~ volume (least squares); baseline when the fit is not usable."""
    if len(records) < FIXED_COST_MIN_POINTS:
        return float(FIXED_COST_BASELINE)
    x = np.array([r.volume for r in records], dtype=float)
    y = np.array([r.total_cost for r in records], dtype=float)
    if np.ptp(x) == 0:
        return float(FIXED_COST_BASELINE)
    _slope, intercept = np.polyfit(x, y, 1)
    if not np.isfinite(intercept):
        return float(FIXED_COST_BASELINE)
    return float(intercept)


def cost_composition(records: List[CostRecord]) -> pd.DataFrame:
    """Fixed vs variable split of the latest month: ['name', 'value']."""
    if not records:
        return pd.DataFrame(columns=["name", "value"])
    total = float(records[-1].total_cost)
    fixed = min(max(estimate_fixed_cost(records), 0.0), max(total, 0.0))
    return pd.DataFrame({
        "name": ["Fixed Costs", "Variable Costs"],
        "value": [fixed, total - fixed],
    })


def cost_vs_volume(records: List[CostRecord]) -> pd.DataFrame:
    df = records_to_frame(records)
    return df[["date", "volume", "total_cost"]].rename(columns={"total_cost": "cost"})


def monthly_trend(records: List[CostRecord], months: int = MONTHLY_TREND_MONTHS) -> pd.DataFrame:
    df = records_to_frame(records).tail(int(months)).copy()
    df["name"] = df["date"].dt.strftime("%b %Y")
    return df[["date", "name", "total_cost"]].reset_index(drop=True)


def unit_cost_distribution(records: List[CostRecord], bins: int = UNIT_COST_BINS) -> pd.DataFrame:
    """
    Equal-width bins between min and max unit cost: ['name', 'low', 'high', 'count'].
    The max value falls in the last bin; a zero range puts every record in the first bin.
    """
    cols = ["name", "low", "high", "count"]
    if not records or bins <= 0:
        return pd.DataFrame(columns=cols)
    costs = np.array([r.unit_cost for r in records], dtype=float)
    lo, hi = float(costs.min()), float(costs.max())
    size = (hi - lo) / bins
    counts = [0] * bins
    for c in costs:
        idx = 0 if size == 0 else int(math.floor((c - lo) / size))
        counts[min(max(idx, 0), bins - 1)] += 1
    rows = []
    for i in range(bins):
        a, b = lo + i * size, lo + (i + 1) * size
        rows.append([f"{format_currency(a, 2)} - {format_currency(b, 2)}", a, b, counts[i]])
    return pd.DataFrame(rows, columns=cols)
