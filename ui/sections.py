# ui/sections.py
# One render function per tab; each reads the session dataset via ui.state keys.

from __future__ import annotations
import pandas as pd
import streamlit as st

from analysis import metrics as M
from analysis.contracts import records_to_frame, forecast_to_frame
from analysis.csv_codec import forecast_to_csv, records_to_csv
from config import EXPORT_FORECAST_NAME, EXPORT_HISTORY_NAME
from services.actions import run_anomaly_detection, run_decision_support, run_forecast
from ui import state as S
from ui.components import anomaly_report_dialog, kpi_card, render_upload_card, toast
from utils.helpers import format_currency, format_number
from viz import charts


def _no_data(msg: str = "No data loaded. Please upload a file in the \"Data Import\" tab.") -> None:
    st.info(msg)


def _history_table(records, *, day: bool = False) -> pd.DataFrame:
    df = records_to_frame(records).iloc[::-1]
    fmt = "%B %d, %Y" if day else "%B %Y"
    return pd.DataFrame({
        "Date": df["date"].dt.strftime(fmt),
        "Total Cost": df["total_cost"].map(format_currency),
        "Unit Cost": df["unit_cost"].map(lambda v: format_currency(v, 2)),
        "Volume": df["volume"].map(format_number),
    }).reset_index(drop=True)


# === Overview ===
def render_overview(session, horizon: str) -> None:
    records = session[S.HISTORY]
    forecast = session[S.FORECAST]
    m = M.compute_dashboard_metrics(records, forecast)

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        kpi_card("Total Cost (Current)", format_currency(m.total_cost.value), m.total_cost)
    with c2:
        kpi_card("Avg. Unit Cost", format_currency(m.unit_cost.value, 2), m.unit_cost)
    with c3:
        kpi_card("Production Volume", format_number(m.volume.value), m.volume, increase_is_good=True)
    with c4:
        if m.next_month_forecast > 0:
            kpi_card("Cost Forecast", format_currency(m.next_month_forecast),
                     footer=f"Next month / {format_currency(m.total_forecast_cost)} total")
        else:
            kpi_card("Cost Forecast", "N/A", footer="Run forecast to see")

    left, right = st.columns([4, 3])
    with left:
        with st.container(border=True):
            h1, h2 = st.columns([3, 1])
            h1.subheader("Cost Analysis")
            h1.caption("Historical and forecasted costs over time.")
            if h2.button("Forecast Costs", type="primary", use_container_width=True):
                with st.spinner("Generating forecast..."):
                    res = run_forecast(records, horizon)
                if res.ok:
                    S.apply_forecast(session, res.value)
                    toast("Forecast Generated", "Future cost predictions are now available.")
                    st.rerun()
                else:
                    toast(res.details.get("title", "Forecast Failed"), res.error, destructive=True)
            chart_df = M.build_chart_frame(records, session[S.FORECAST])
            if chart_df.empty:
                _no_data()
            else:
                st.plotly_chart(charts.cost_analysis_figure(chart_df), use_container_width=True)
    with right:
        _render_decision_support(session, m)


def _render_decision_support(session, m) -> None:
    records = session[S.HISTORY]
    with st.container(border=True):
        st.subheader("Decision Support")
        st.caption("AI-powered insights and recommendations.")
        summary, warning = session[S.SUMMARY], session[S.WARNING]
        if not records:
            st.write("Please upload data to generate insights.")
            return
        if not summary and not warning:
            st.write("Run a forecast to generate insights.")
            return
        if warning:
            st.error(f"**Budget Overrun Warning!**\n\n{warning}", icon="🛡️")
        if summary:
            st.info(f"**Analysis Summary**\n\n{summary}", icon="📊")
        if st.button("Explain cost trends"):
            with st.spinner("Generating explanation..."):
                res = run_decision_support(m, records, session[S.FORECAST])
            if res.ok:
                S.apply_explanation(session, res.value)
            else:
                toast(res.details.get("title", "Explanation Failed"), res.error, destructive=True)
        if session[S.EXPLANATION]:
            st.success(f"**Explanation**\n\n{session[S.EXPLANATION]}", icon="💡")


# === Analytics ===
def render_analytics(session) -> None:
    records = session[S.HISTORY]
    if not records:
        _no_data("No data available. Please import data on the Overview page.")
        return
    r1c1, r1c2 = st.columns(2)
    with r1c1, st.container(border=True):
        st.subheader("Cost Composition")
        st.caption("Estimated split of fixed and variable costs for the last month "
                   "(fixed part = intercept of the cost/volume regression).")
        st.plotly_chart(charts.cost_composition_figure(M.cost_composition(records)), use_container_width=True)
    with r1c2, st.container(border=True):
        st.subheader("Cost vs. Production Volume")
        st.caption("Relationship between production volume and total cost.")
        st.plotly_chart(charts.cost_vs_volume_figure(M.cost_vs_volume(records)), use_container_width=True)
    r2c1, r2c2 = st.columns(2)
    with r2c1, st.container(border=True):
        st.subheader("Monthly Cost Trend")
        st.caption("Total cost over the last 12 months.")
        st.plotly_chart(charts.monthly_trend_figure(M.monthly_trend(records)), use_container_width=True)
    with r2c2, st.container(border=True):
        st.subheader("Unit Cost Distribution")
        st.caption("Frequency of unit cost ranges.")
        st.plotly_chart(charts.unit_cost_distribution_figure(M.unit_cost_distribution(records)),
                        use_container_width=True)


# === Reports ===
def render_reports(session) -> None:
    records = session[S.HISTORY]
    forecast = session[S.FORECAST]
    st.subheader("Historical Cost Report")
    st.caption("A detailed view of all historical cost data loaded into the system.")
    if not records:
        _no_data("No data available. Please import data on the Overview page.")
        return
    st.dataframe(_history_table(records, day=True), use_container_width=True, hide_index=True)
    d1, d2 = st.columns(2)
    d1.download_button("Download history (CSV)", records_to_csv(records).encode("utf-8"),
                       file_name=EXPORT_HISTORY_NAME, mime="text/csv")
    if forecast:
        d2.download_button("Download forecast (CSV)", forecast_to_csv(forecast).encode("utf-8"),
                           file_name=EXPORT_FORECAST_NAME, mime="text/csv")
        st.subheader("Forecast")
        fc = forecast_to_frame(forecast)
        st.dataframe(pd.DataFrame({
            "Date": fc["date"].dt.strftime("%B %Y"),
            "Forecasted Cost": fc["forecasted_cost"].map(format_currency),
        }), use_container_width=True, hide_index=True)


# === Alerts (anomaly detection) ===
def render_alerts(session) -> None:
    records = session[S.HISTORY]
    with st.container(border=True):
        st.subheader("Anomaly Detection")
        st.caption("Identify unusual fluctuations in your cost data using AI.")
        st.write(
            "The AI analyzes the historical cost data to find significant deviations, outliers, "
            "or unexpected trends that might require your attention."
        )
        if st.button("Run Anomaly Analysis", type="primary"):
            with st.spinner("Analyzing cost data..."):
                res = run_anomaly_detection(records)
            if res.ok:
                S.apply_anomaly(session, res.value)
            else:
                toast(res.details.get("title", "Analysis Failed"), res.error, destructive=True)
        if session[S.ANOMALY_REPORT] and not session[S.ANOMALY_OPEN]:
            if st.button("Show last report"):
                session[S.ANOMALY_OPEN] = True
    if session[S.ANOMALY_OPEN] and session[S.ANOMALY_REPORT]:
        # one-shot: the dialog closes on the next rerun
        session[S.ANOMALY_OPEN] = False
        anomaly_report_dialog(session[S.ANOMALY_REPORT], session[S.ANOMALY_DECISION])


# === Raw data / import ===
def render_raw_data(session) -> None:
    records = session[S.HISTORY]
    st.subheader("Historical Cost Data")
    st.caption("The complete dataset used for analysis and forecasting.")
    if not records:
        _no_data()
        return
    st.dataframe(_history_table(records), use_container_width=True, hide_index=True)


def render_data_import(session) -> None:
    render_upload_card(session)
