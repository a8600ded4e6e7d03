import argparse

import streamlit as st

from flightweather.config import load_config
from flightweather.model import coefficient_table
from flightweather.pipeline import run_pipeline
from flightweather.report import build_figures

# --- Page Configuration ---
st.set_page_config(
    page_title="NYC Flights & Weather",
    page_icon="✈️",
    layout="wide",
    initial_sidebar_state="expanded",
)


# --- Helper Functions ---

def _config_path():
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", type=str, default=None)
    args, _ = parser.parse_known_args()
    return args.config


@st.cache_resource
def load_results(config_path):
    """Runs the pipeline once per config and caches the results."""
    return run_pipeline(load_config(config_path))


# --- Data Loading ---
results = load_results(_config_path())
figures = build_figures(results)
tables = results.tables


# --- Sidebar Navigation ---
st.sidebar.title("Navigation")
page = st.sidebar.radio("Go to", ["Overview", "Delays", "Weather Models"])

# --- Main App ---

if page == "Overview":
    st.title("✈️ NYC Departures, 2013")
    st.markdown(f"{len(results.flights):,} flights and {len(results.weather):,} hourly weather observations.")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Flights by Origin")
        st.dataframe(tables['flights_by_origin'])
    with col2:
        st.subheader("Top Destinations")
        st.dataframe(tables['top_destinations'])

    st.header("Visual Analysis")
    st.plotly_chart(figures['flights_by_origin'], use_container_width=True)
    st.plotly_chart(figures['top_destinations'], use_container_width=True)
    st.plotly_chart(figures['monthly_flights'], use_container_width=True)

    st.subheader("Summary Statistics")
    st.dataframe(tables['summary_statistics'])


elif page == "Delays":
    st.title("⏱️ Departure Delays")
    threshold = results.config['labels']['threshold_minutes']
    st.markdown(f"A departure counts as delayed when it left {threshold} or more minutes late.")

    st.dataframe(tables['delay_rate_by_origin'])
    st.plotly_chart(figures['delays_by_month_origin'], use_container_width=True)
    st.plotly_chart(figures['mean_delay_by_month'], use_container_width=True)


elif page == "Weather Models":
    st.title("🌦️ Weather at Departure")
    st.markdown(
        f"The join returned one row for each of {len(results.augmented):,} flights; "
        f"{len(results.joined):,} labeled flights remain for the models and "
        f"weather was found for {results.weather_match_rate:.1%} of them."
    )
    st.plotly_chart(figures['delay_rate_by_visibility'], use_container_width=True)

    for name, fit in results.models.items():
        st.subheader(f"{name}: {fit.formula}")
        st.caption(f"{fit.n_obs:,} flights used, {fit.n_dropped:,} excluded for missing values")
        metric_cols = st.columns(len(fit.metrics))
        for col, (metric, value) in zip(metric_cols, fit.metrics.items()):
            col.metric(label=metric.replace('_', ' '), value=f"{value:.4f}")
        st.dataframe(coefficient_table(fit))
