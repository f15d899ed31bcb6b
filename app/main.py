"""Streamlit dashboard for MLS market insights."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List

import sys

import streamlit as st

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional dependency
    load_dotenv = None

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

if load_dotenv is not None:
    load_dotenv(dotenv_path=ROOT_DIR / ".env", override=False)

from app.backend_client import BackendClient
from app.components.cards import render_kpi_cards
from app.components.charts import render_area_chart, render_dom_histogram, render_price_trend_chart
from app.components.chat import render_chat
from app.components.tables import render_comps_table, render_property_table
from backend.db.csv_repo import IngestionError
from backend.models.insights import SubjectProperty
from backend.models.property import FilterSpec, Property
from backend.services.filters import apply_filters, filter_options, merge_filters, reset_filters

st.set_page_config(page_title="MLS Market Insights", layout="wide", page_icon="🏘️")

DISCLAIMER_HTML = "<p class='disclaimer'>Figures are computed from the uploaded export only. Informational, not an appraisal.</p>"


@st.cache_resource(show_spinner=False)
def get_backend_client() -> BackendClient:
    return BackendClient()


def render_upload(backend: BackendClient) -> None:
    uploaded = st.file_uploader("Upload an MLS CSV export", type=["csv"])
    if uploaded is None or st.session_state.get("file_name") == uploaded.name:
        return
    with st.spinner("Processing CSV..."):
        try:
            result = backend.ingest(uploaded.getvalue(), uploaded.name)
        except IngestionError as exc:
            st.error(f"Upload failed: {exc.message}")
            return
    for warning in result["diagnostics"]:
        st.warning(warning)
    st.session_state["records"] = result["records"]
    st.session_state["mapping"] = result["mapping"]
    st.session_state["file_name"] = uploaded.name
    st.session_state["chat_history"] = []
    _reset_filter_widgets()
    st.success(f"Loaded {len(result['records'])} properties from {uploaded.name}")


FILTER_KEYS = ("flt_from", "flt_to", "flt_price", "flt_city", "flt_zip", "flt_beds", "flt_baths", "flt_types", "flt_status")


def _reset_filter_widgets() -> None:
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)
    st.session_state["filters"] = reset_filters()


def render_filters(records: List[Property]) -> FilterSpec:
    options = filter_options(records)
    price_min = float(options["price_min"])
    price_max = float(max(options["price_max"], options["price_min"] + 1))
    with st.sidebar:
        st.header("Filters")
        st.button("Reset filters", on_click=_reset_filter_widgets)
        date_from = st.date_input("From", value=None, key="flt_from")
        date_to = st.date_input("To", value=None, key="flt_to")
        price = st.slider("Price", min_value=price_min, max_value=price_max, value=(price_min, price_max), key="flt_price")
        city = st.text_input("City contains", "", key="flt_city").strip()
        zip_code = st.selectbox("Zip", [""] + options["zip_codes"], key="flt_zip")
        beds = st.number_input("Min beds", min_value=0, value=0, key="flt_beds")
        baths = st.number_input("Min baths", min_value=0.0, value=0.0, step=0.5, key="flt_baths")
        types = st.multiselect("Property types", options["property_types"], key="flt_types")
        status = st.selectbox("Status", [""] + options["statuses"], key="flt_status")
    spec = merge_filters(
        st.session_state.get("filters"),
        date_range={"from": date_from.isoformat() if date_from else None, "to": date_to.isoformat() if date_to else None},
        price_range={"min": price[0], "max": price[1]},
        location={"city": city or None, "zipCode": zip_code or None},
        beds=beds or None,
        baths=baths or None,
        property_types=types or None,
        status=status or None,
    )
    st.session_state["filters"] = spec
    return spec


def render_comparables(backend: BackendClient, records: List[Property]) -> None:
    st.subheader("Comparable Sales")
    cols = st.columns(4)
    sqft = cols[0].number_input("Square feet", min_value=0, value=0, step=50)
    beds = cols[1].number_input("Beds", min_value=0, value=3)
    baths = cols[2].number_input("Baths", min_value=0.0, value=2.0, step=0.5)
    zip_code = cols[3].text_input("Zip (optional)", "").strip()
    if not sqft:
        st.caption("Enter the subject's square footage to find comps.")
        return
    subject = SubjectProperty(sqft=sqft, beds=beds, baths=baths, zip_code=zip_code or None)
    comps, valuation = backend.comparables(subject, records)
    render_comps_table(comps, valuation)


def render_dashboard() -> None:
    st.title("MLS Market Insights")
    backend = get_backend_client()
    render_upload(backend)

    records: List[Property] = st.session_state.get("records") or []
    if not records:
        st.info("Upload a CSV export with price, beds, baths and square footage columns to begin.")
        st.markdown(DISCLAIMER_HTML, unsafe_allow_html=True)
        return

    filters = render_filters(records)
    filtered = apply_filters(records, filters)
    kpis = backend.kpis(records, filters, date.today())

    st.caption(f"{len(filtered)} of {len(records)} properties match the current filters.")
    render_kpi_cards(kpis["current"], kpis["comparison"])

    insights = backend.insights(filtered)
    chart_col1, chart_col2 = st.columns(2)
    with chart_col1:
        st.plotly_chart(render_price_trend_chart(insights["monthly_median_prices"]), use_container_width=True)
    with chart_col2:
        st.plotly_chart(render_dom_histogram(filtered), use_container_width=True)
    st.plotly_chart(render_area_chart(insights["price_per_sqft_by_area"]), use_container_width=True)

    st.subheader("Properties")
    render_property_table(filtered)
    st.download_button(
        "Export CSV",
        data=backend.export_csv(filtered),
        file_name="filtered_properties.csv",
        mime="text/csv",
    )

    render_comparables(backend, records)
    render_chat(filtered, filters, backend)

    with st.expander("Detected column mapping"):
        st.json(st.session_state.get("mapping", {}))
    st.markdown(DISCLAIMER_HTML, unsafe_allow_html=True)


render_dashboard()
