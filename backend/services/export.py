"""Serialize property records back to delimited text."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from ..models.property import Property

ColumnGetter = Callable[[Property], object]

# Header names are chosen so a re-upload maps them back onto the same fields.
EXPORT_COLUMNS: Dict[str, ColumnGetter] = {
    "Address": lambda p: p.address,
    "City": lambda p: p.city,
    "State": lambda p: p.state,
    "Zip Code": lambda p: p.zip_code,
    "Price": lambda p: p.price,
    "Beds": lambda p: p.beds,
    "Baths": lambda p: p.baths,
    "Sq Ft": lambda p: p.sqft,
    "Price/Sq Ft": lambda p: round(p.price / p.sqft),
    "Property Type": lambda p: p.property_type,
    "Status": lambda p: p.status.value,
    "DOM": lambda p: p.days_on_market,
    "List Price": lambda p: p.list_price,
    "Sale Price": lambda p: p.sale_price,
    "List Date": lambda p: p.list_date,
    "Sold Date": lambda p: p.sale_date,
    "Year Built": lambda p: p.year_built,
    "HOA": lambda p: p.hoa_fees,
}

DEFAULT_COLUMNS: List[str] = [
    "Address",
    "City",
    "Zip Code",
    "Price",
    "Beds",
    "Baths",
    "Sq Ft",
    "Price/Sq Ft",
    "DOM",
    "Status",
]


def records_to_frame(records: Sequence[Property], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    selected = list(columns or DEFAULT_COLUMNS)
    unknown = [name for name in selected if name not in EXPORT_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown export columns: {unknown}")
    rows = [{name: EXPORT_COLUMNS[name](p) for name in selected} for p in records]
    return pd.DataFrame(rows, columns=selected)


def records_to_csv(records: Sequence[Property], columns: Optional[Sequence[str]] = None) -> str:
    """Render ``records`` as CSV text with a header row, in the given order."""

    return records_to_frame(records, columns).to_csv(index=False)


def property_to_csv(record: Property, columns: Optional[Sequence[str]] = None) -> str:
    return records_to_csv([record], columns or list(EXPORT_COLUMNS))


__all__ = ["EXPORT_COLUMNS", "DEFAULT_COLUMNS", "records_to_frame", "records_to_csv", "property_to_csv"]
