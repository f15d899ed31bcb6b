"""Market KPI aggregation over a property record subset."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np

from ..models.property import KPIData, Property, PropertyStatus
from ..utils.logging import get_logger

LOGGER = get_logger("services.kpis")

AsOf = Union[date, datetime, str]

CASH_TERMS = ("cash",)


def median(values: Iterable[float]) -> float:
    """Middle element of the sorted values, mean of the two middles when even; 0 when empty."""

    ordered = sorted(float(v) for v in values)
    n = len(ordered)
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def average(values: Iterable[float]) -> float:
    """Arithmetic mean; 0 when empty."""

    arr = np.fromiter((float(v) for v in values), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.sum() / arr.size)


def _as_date(as_of: AsOf) -> date:
    if isinstance(as_of, datetime):
        return as_of.date()
    if isinstance(as_of, date):
        return as_of
    return date.fromisoformat(str(as_of)[:10])


def _in_month(iso: Optional[str], ref: date) -> bool:
    if not iso:
        return False
    return iso[:7] == f"{ref.year:04d}-{ref.month:02d}"


def is_sold(p: Property) -> bool:
    return p.status == PropertyStatus.SOLD


def is_active(p: Property) -> bool:
    return p.status == PropertyStatus.ACTIVE


def cash_vs_financed(sold: Sequence[Property]) -> Optional[float]:
    """Share of sold records paid in cash, or None when no financing data exists."""

    terms = [p.financing.lower() for p in sold if p.financing]
    if not terms:
        return None
    cash = sum(1 for term in terms if any(word in term for word in CASH_TERMS))
    return cash / len(terms)


def compute_kpis(records: Sequence[Property], as_of: AsOf) -> KPIData:
    """Compute the fixed KPI set. ``as_of`` anchors the calendar-month metrics."""

    if not records:
        return KPIData()

    ref = _as_date(as_of)
    sold = [p for p in records if is_sold(p)]
    active = [p for p in records if is_active(p)]

    sale_prices = [p.price for p in sold if p.price > 0]
    list_prices = [v for v in ((p.list_price or p.price) for p in records) if v and v > 0]
    ratios = [p.sale_price / p.list_price for p in sold if p.sale_price and p.list_price]
    per_sqft = [p.price / p.sqft for p in records]
    dom = [p.days_on_market for p in records if p.days_on_market is not None]

    new_listings = sum(1 for p in records if _in_month(p.list_date, ref))
    sold_this_month = sum(1 for p in sold if _in_month(p.sale_date, ref))

    kpis = KPIData(
        median_sale_price=median(sale_prices),
        average_sale_price=average(sale_prices),
        median_list_price=median(list_prices),
        average_list_price=average(list_prices),
        sale_to_list_ratio=average(ratios),
        price_per_sqft=average(per_sqft),
        average_days_on_market=average(dom),
        median_days_on_market=median(dom),
        closed_sales_count=len(sold),
        new_listings_count=new_listings,
        months_of_inventory=len(active) / max(sold_this_month, 1),
        absorption_rate=len(sold) / len(records) * 100,
        cash_vs_financed_ratio=cash_vs_financed(sold),
        total_properties=len(records),
    )
    LOGGER.debug(
        "kpis_computed total=%d sold=%d active=%d as_of=%s",
        len(records),
        len(sold),
        len(active),
        ref.isoformat(),
    )
    return kpis


def compute_filtered_kpis(
    all_records: Sequence[Property], filtered: Sequence[Property], as_of: AsOf
) -> Dict[str, KPIData]:
    return {
        "current": compute_kpis(filtered, as_of),
        "comparison": compute_kpis(all_records, as_of),
    }


__all__ = [
    "median",
    "average",
    "is_sold",
    "is_active",
    "cash_vs_financed",
    "compute_kpis",
    "compute_filtered_kpis",
]
