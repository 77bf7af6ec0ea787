# viz/charts.py
# Plotly figures for the dashboard. Inputs are the frames built in analysis.metrics.

from __future__ import annotations
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from config import CURRENCY_LABEL
from analysis.metrics import ACTUAL_COL, FORECAST_COL

_ACTUAL_COLOR = "#2563eb"
_FORECAST_COLOR = "#f59e0b"
_PALETTE = ["#2563eb", "#f59e0b", "#10b981", "#ef4444"]


def _money_axis(fig, axis: str = "y"):
    # 125000 -> "125k DH"
    upd = dict(tickformat="~s", ticksuffix=f" {CURRENCY_LABEL}", separatethousands=True,
               showexponent="none", exponentformat="none")
    if axis == "y":
        fig.update_yaxes(**upd)
    else:
        fig.update_xaxes(**upd)
    return fig


def add_future_shading(fig, last_actual, last_forecast):
    """Shade the forecast-only window (after the last actual month); no-op when nothing is ahead."""
    if fig is None or last_actual is None or last_forecast is None:
        return fig
    x0, x1 = pd.to_datetime(last_actual), pd.to_datetime(last_forecast)
    if pd.isna(x0) or pd.isna(x1) or x1 <= x0:
        return fig
    fig.add_vrect(x0=x0, x1=x1, fillcolor="LightGrey", opacity=0.15, line_width=0, layer="below")
    return fig


def cost_analysis_figure(chart_df: pd.DataFrame) -> go.Figure:
    """Actual cost (solid) + forecasted cost (dashed) over time."""
    fig = go.Figure()
    d = chart_df.copy()
    actual = d.dropna(subset=[ACTUAL_COL])
    fig.add_trace(go.Scatter(
        x=actual["date"], y=actual[ACTUAL_COL], mode="lines", name=ACTUAL_COL,
        line=dict(color=_ACTUAL_COLOR, width=2),
        hovertemplate="%{x|%B %Y}<br>%{y:,.0f} " + CURRENCY_LABEL + "<extra></extra>",
    ))
    fc = d.dropna(subset=[FORECAST_COL])
    if not fc.empty:
        fig.add_trace(go.Scatter(
            x=fc["date"], y=fc[FORECAST_COL], mode="lines+markers", name=FORECAST_COL,
            line=dict(color=_FORECAST_COLOR, width=2, dash="dash"),
            hovertemplate="%{x|%B %Y}<br>%{y:,.0f} " + CURRENCY_LABEL + "<extra></extra>",
        ))
        last_actual = actual["date"].max() if not actual.empty else None
        add_future_shading(fig, last_actual, fc["date"].max())
    fig.update_xaxes(tickformat="%b %y")
    _money_axis(fig)
    fig.update_layout(height=350, margin=dict(l=10, r=10, t=10, b=10),
                      legend=dict(orientation="h", y=-0.15), hovermode="x unified")
    return fig


def cost_composition_figure(comp_df: pd.DataFrame) -> go.Figure:
    fig = px.pie(comp_df, names="name", values="value", color_discrete_sequence=_PALETTE)
    fig.update_traces(textinfo="percent", textposition="inside",
                      hovertemplate="%{label}<br>%{value:,.0f} " + CURRENCY_LABEL + "<extra></extra>")
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    return fig


def cost_vs_volume_figure(cv_df: pd.DataFrame) -> go.Figure:
    fig = px.scatter(cv_df, x="volume", y="cost", hover_data={"date": "|%B %Y"},
                     labels={"volume": "Volume (units)", "cost": f"Cost ({CURRENCY_LABEL})"},
                     color_discrete_sequence=_PALETTE)
    _money_axis(fig)
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    return fig


def monthly_trend_figure(trend_df: pd.DataFrame) -> go.Figure:
    fig = px.bar(trend_df, x="name", y="total_cost",
                 labels={"name": "", "total_cost": "Total Cost"},
                 color_discrete_sequence=[_FORECAST_COLOR])
    _money_axis(fig)
    fig.update_traces(hovertemplate="%{x}<br>%{y:,.0f} " + CURRENCY_LABEL + "<extra></extra>")
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    return fig


def unit_cost_distribution_figure(dist_df: pd.DataFrame) -> go.Figure:
    fig = px.bar(dist_df, x="name", y="count", labels={"name": "", "count": "Occurrences"},
                 color_discrete_sequence=[_ACTUAL_COLOR])
    fig.update_yaxes(dtick=1, rangemode="tozero")
    fig.update_xaxes(tickfont=dict(size=10))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    return fig
