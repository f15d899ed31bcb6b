"""Market breakdowns behind the dashboard's insight panels and charts."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from ..models.property import Property, PropertyStatus

FAST_SALE_DAYS = 14
NORMAL_SALE_DAYS = 60


def records_frame(records: Sequence[Property]) -> pd.DataFrame:
    columns = ["price", "sqft", "city", "zip_code", "status", "days_on_market", "list_price", "sale_price", "sale_date"]
    if not records:
        return pd.DataFrame(columns=columns)
    rows = [
        {
            "price": p.price,
            "sqft": p.sqft,
            "city": p.city,
            "zip_code": p.zip_code,
            "status": p.status.value,
            "days_on_market": p.days_on_market,
            "list_price": p.list_price,
            "sale_price": p.sale_price,
            "sale_date": p.sale_date,
        }
        for p in records
    ]
    return pd.DataFrame(rows, columns=columns)


def _pct(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def market_velocity(records: Sequence[Property]) -> Dict[str, float]:
    df = records_frame(records)
    dom = pd.to_numeric(df.loc[df["status"] == PropertyStatus.SOLD.value, "days_on_market"], errors="coerce").dropna()
    total = int(dom.size)
    fast = int((dom <= FAST_SALE_DAYS).sum())
    slow = int((dom > NORMAL_SALE_DAYS).sum())
    normal = total - fast - slow
    return {
        "fast": fast,
        "normal": normal,
        "slow": slow,
        "total": total,
        "fast_pct": _pct(fast, total),
        "normal_pct": _pct(normal, total),
        "slow_pct": _pct(slow, total),
    }


def price_per_sqft_by_area(records: Sequence[Property]) -> List[Dict[str, object]]:
    df = records_frame(records)
    if df.empty:
        return []
    df["area"] = df["zip_code"].where(df["zip_code"].notna() & (df["zip_code"] != ""), df["city"]).fillna("Unknown")
    df["price_per_sqft"] = df["price"] / df["sqft"]
    grouped = df.groupby("area")["price_per_sqft"].agg(avg="mean", n="size").reset_index()
    grouped = grouped.sort_values(["avg", "area"], ascending=[False, True])
    return [
        {"area": row.area, "avg_price_per_sqft": int(round(row.avg)), "count": int(row.n)}
        for row in grouped.itertuples(index=False)
    ]


def list_to_sale_analysis(records: Sequence[Property]) -> Dict[str, float]:
    df = records_frame(records)
    both = df.dropna(subset=["list_price", "sale_price"])
    both = both[(both["list_price"] > 0) & (both["sale_price"] > 0)]
    if both.empty:
        return {"average_ratio_pct": 0.0, "above_list": 0, "below_95": 0, "count": 0}
    ratios = (both["sale_price"] / both["list_price"] * 100).to_numpy(dtype=float)
    return {
        "average_ratio_pct": round(float(np.mean(ratios)), 1),
        "above_list": int((ratios > 100).sum()),
        "below_95": int((ratios < 95).sum()),
        "count": int(ratios.size),
    }


def monthly_median_prices(records: Sequence[Property]) -> List[Dict[str, object]]:
    df = records_frame(records)
    sold = df[(df["status"] == PropertyStatus.SOLD.value) & df["sale_date"].notna()].copy()
    if sold.empty:
        return []
    sold["month"] = sold["sale_date"].str.slice(0, 7)
    grouped = sold.groupby("month")["price"].agg(med="median", n="size").reset_index().sort_values("month")
    return [
        {"month": row.month, "median_price": float(row.med), "count": int(row.n)}
        for row in grouped.itertuples(index=False)
    ]


def market_insights(records: Sequence[Property]) -> Dict[str, object]:
    return {
        "velocity": market_velocity(records),
        "price_per_sqft_by_area": price_per_sqft_by_area(records),
        "list_to_sale": list_to_sale_analysis(records),
        "monthly_median_prices": monthly_median_prices(records),
    }


__all__ = [
    "records_frame",
    "market_velocity",
    "price_per_sqft_by_area",
    "list_to_sale_analysis",
    "monthly_median_prices",
    "market_insights",
]
