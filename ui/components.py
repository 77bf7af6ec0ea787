from __future__ import annotations
from typing import Optional

import streamlit as st

from analysis.contracts import MetricChange
from analysis.metrics import change_is_bad
from analysis.ingest import IngestError, read_upload
from config import UPLOAD_TYPES
from ui import state as S


def toast(title: str, description: str = "", *, destructive: bool = False) -> None:
    icon = "🚨" if destructive else "✅"
    st.toast(f"**{title}**\n\n{description}" if description else f"**{title}**", icon=icon)


def kpi_card(title: str, value: str, change: Optional[MetricChange] = None, *,
             increase_is_good: bool = False, footer: str = "") -> None:
    """
    KPI card: st.metric with a month-over-month delta.
    - Colour follows change_is_bad (a cost increase is red, a volume increase is green).
    """
    delta = None
    if change is not None and change.change != "n/a":
        sign = "+" if change.change_type == "increase" else "-"
        delta = f"{sign}{change.change} vs last month"
    delta_color = "normal"
    if change is not None and change_is_bad("increase", increase_is_good):
        delta_color = "inverse"
    with st.container(border=True):
        st.metric(title, value, delta=delta, delta_color=delta_color)
        if footer:
            st.caption(footer)


def render_upload_card(session) -> None:
    """File import: the uploaded dataset replaces the current one (forecast and reports reset)."""
    with st.container(border=True):
        st.subheader("Data Import")
        st.caption(
            "Upload a CSV or Excel file with your cost data. The file must contain the columns: "
            "'Date', 'TotalCost', 'UnitCost', and 'Volume' (French headers such as 'Coût Total' are accepted)."
        )
        uploaded = st.file_uploader("Cost data file", type=UPLOAD_TYPES, key="upload_file")
        if st.button("Upload", disabled=uploaded is None, type="primary"):
            if uploaded is None:
                toast("No file selected", "Please select a CSV or Excel file to upload.", destructive=True)
                return
            try:
                records = read_upload(uploaded.name, uploaded.getvalue())
            except IngestError as e:
                toast(e.title, str(e), destructive=True)
                st.error(f"{e.title}: {e}")
                return
            S.replace_history(session, records, source=uploaded.name)
            toast("Data Uploaded", f"{len(records)} records have been successfully loaded.")
            st.rerun()
        st.caption(
            "Your existing data will be replaced by the data in the uploaded file. "
            "The app will then use this new dataset for all analyses and forecasts."
        )


@st.dialog("Anomaly Detection Report", width="large")
def anomaly_report_dialog(report: str, decision_support: str = "") -> None:
    st.caption("The following anomalies were detected in the cost data.")
    with st.container(height=480):
        st.text(report)
    if decision_support:
        st.info(decision_support, icon="🧭")
    if st.button("Close"):
        st.rerun()
