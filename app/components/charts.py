"""Plotly chart helpers for Streamlit UI."""

from __future__ import annotations

from typing import Dict, List, Sequence

import plotly.graph_objects as go

from backend.models.property import Property


def render_price_trend_chart(monthly: List[Dict]) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=[point["month"] for point in monthly],
            y=[point["median_price"] for point in monthly],
            name="Median Sale Price",
            mode="lines+markers",
            line=dict(color="#1565C0", width=3),
        )
    )
    fig.update_layout(
        title="Median Sale Price by Month",
        margin=dict(l=10, r=10, t=40, b=30),
        height=360,
        yaxis_title="Price ($)",
        xaxis_title="Month",
        template="plotly_white",
    )
    return fig


def render_dom_histogram(records: Sequence[Property]) -> go.Figure:
    dom = [p.days_on_market for p in records if p.days_on_market is not None]
    fig = go.Figure(go.Histogram(x=dom, nbinsx=20, marker_color="#42A5F5"))
    fig.update_layout(
        title="Days on Market Distribution",
        margin=dict(l=10, r=10, t=40, b=30),
        height=360,
        xaxis_title="Days",
        yaxis_title="Properties",
        template="plotly_white",
    )
    return fig


def render_area_chart(areas: List[Dict]) -> go.Figure:
    top = areas[:10]
    fig = go.Figure(
        go.Bar(
            x=[area["avg_price_per_sqft"] for area in top],
            y=[str(area["area"]) for area in top],
            orientation="h",
            marker_color="#22c55e",
        )
    )
    fig.update_layout(
        title="Price per Sq Ft by Area",
        margin=dict(l=0, r=0, t=40, b=10),
        height=360,
        xaxis_title="$ / sq ft",
        template="plotly_white",
    )
    return fig
