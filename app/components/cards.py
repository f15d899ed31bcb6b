"""Streamlit components for KPI cards."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import streamlit as st

from backend.models.property import KPIData


def _currency(value: Optional[float]) -> str:
    return "—" if value is None else f"${value:,.0f}"


def _ratio(value: Optional[float]) -> str:
    return "Unavailable" if value is None else f"{value * 100:.1f}%"


def _percent(value: Optional[float]) -> str:
    return "—" if value is None else f"{value:.1f}%"


def _number(value: Optional[float], precision: int = 0) -> str:
    return "—" if value is None else f"{value:,.{precision}f}"


# (label, field, formatter). sale_to_list_ratio is a 0..1 ratio while
# absorption_rate is already scaled to a percentage.
KPI_CARDS: List[Tuple[str, str, Callable[[Optional[float]], str]]] = [
    ("Median Sale Price", "median_sale_price", _currency),
    ("Average Sale Price", "average_sale_price", _currency),
    ("Median List Price", "median_list_price", _currency),
    ("Sale-to-List", "sale_to_list_ratio", _ratio),
    ("Price / Sq Ft", "price_per_sqft", _currency),
    ("Avg Days on Market", "average_days_on_market", _number),
    ("Median Days on Market", "median_days_on_market", _number),
    ("Closed Sales", "closed_sales_count", _number),
    ("New Listings (month)", "new_listings_count", _number),
    ("Months of Inventory", "months_of_inventory", lambda v: _number(v, 1)),
    ("Absorption Rate", "absorption_rate", _percent),
    ("Cash Buyers", "cash_vs_financed_ratio", _ratio),
]


def render_kpi_cards(current: KPIData, comparison: Optional[KPIData] = None, per_row: int = 4) -> None:
    columns = st.columns(per_row)
    for idx, (label, field, fmt) in enumerate(KPI_CARDS):
        value = getattr(current, field)
        delta = None
        if comparison is not None and current.total_properties != comparison.total_properties:
            baseline = getattr(comparison, field)
            if value is not None and baseline:
                delta = f"{(value - baseline) / baseline * 100:+.1f}% vs all"
        with columns[idx % per_row]:
            st.metric(label, fmt(value), delta=delta)
