"""Tabular components for records and comps."""

from __future__ import annotations

from typing import List, Optional

import pandas as pd
import streamlit as st

from backend.models.insights import CMAValuation, Comparable
from backend.models.property import Property
from backend.services.export import records_to_frame


def render_property_table(records: List[Property]) -> None:
    if not records:
        st.info("No properties match the current filters.")
        return
    df = records_to_frame(records)
    st.dataframe(df, hide_index=True, width="stretch")


def render_comps_table(comps: List[Comparable], valuation: Optional[CMAValuation]) -> None:
    if not comps:
        st.info(
            "No comparable sales found with the specified criteria. Try adjusting the square footage, "
            "bedroom/bathroom count, or removing the ZIP code filter."
        )
        return
    if valuation is not None:
        cols = st.columns(3)
        cols[0].metric("Estimated Value (avg)", f"${valuation.estimated_value_avg:,.0f}")
        cols[1].metric("Estimated Value (median)", f"${valuation.estimated_value_median:,.0f}")
        cols[2].metric("Confidence", f"{valuation.confidence_level} ({valuation.confidence_score}%)")
    df = pd.DataFrame(
        [
            {
                "Address": comp.property.address,
                "Sold Date": comp.property.sale_date or "—",
                "Price": f"${comp.property.price:,.0f}",
                "Beds": comp.property.beds,
                "Baths": comp.property.baths,
                "Sqft": comp.property.sqft,
                "$/Sqft": f"${comp.price_per_sqft:,.0f}",
                "Size Diff": comp.sqft_diff,
            }
            for comp in comps
        ]
    )
    st.dataframe(df, hide_index=True, width="stretch")
