# app.py  (Cost Control Dashboard)
# --- BEGIN: LLM key boot ---
from infra.env_loader import boot as _llm_boot

_llm_boot()  # load keys + log online/offline status
# --- END: LLM key boot ---


import streamlit as st

from config import FORECAST_HORIZON_CHOICES, FORECAST_HORIZON_DEFAULT
from infra.env_loader import active_provider, is_llm_ready
from services.llm import LLMClient
from ui import state as S
from ui.sections import (
    render_alerts,
    render_analytics,
    render_data_import,
    render_overview,
    render_raw_data,
    render_reports,
)


# --- UI ---
st.set_page_config(page_title="Cost Control Dashboard", page_icon="📊", layout="wide")
st.title("Cost Control Dashboard")
st.caption("Historical cost tracking with AI-generated forecasts and anomaly reports.")

S.init_state(st.session_state)

with st.sidebar:
    st.header("1. Data")
    src = st.session_state.get(S.DATA_SOURCE, "sample")
    n = len(st.session_state[S.HISTORY])
    st.write(f"Source: **{'demo dataset' if src == 'sample' else src}** ({n} records)")
    if st.button("Reset to demo data"):
        S.reset_to_sample(st.session_state)
        st.rerun()

    st.markdown("---")
    st.header("2. Forecast")
    horizon = st.selectbox(
        "Forecasting horizon",
        FORECAST_HORIZON_CHOICES,
        index=FORECAST_HORIZON_CHOICES.index(FORECAST_HORIZON_DEFAULT),
        help="Number of future months requested from the model.",
    )

    st.markdown("---")
    st.header("3. AI model")
    if is_llm_ready():
        st.success(f"Online: {active_provider()} / {LLMClient().model}")
    else:
        st.warning("Offline: set GROQ_API_KEY or OPENAI_API_KEY in .env to enable forecasts and anomaly reports.")

tab_overview, tab_analytics, tab_reports, tab_alerts, tab_import, tab_raw = st.tabs(
    ["📈 Overview", "📊 Analytics", "🧾 Reports", "🛡️ Alerts", "⬆️ Data Import", "🗂️ Raw Data"]
)

with tab_overview:
    render_overview(st.session_state, horizon)
with tab_analytics:
    render_analytics(st.session_state)
with tab_reports:
    render_reports(st.session_state)
with tab_alerts:
    render_alerts(st.session_state)
with tab_import:
    render_data_import(st.session_state)
with tab_raw:
    render_raw_data(st.session_state)
