"""Transform raw CSV rows into canonical ``Property`` records.

Rows are accepted under the lenient policy: any positive price-like cell is
enough, and missing numeric details fall back to fixed defaults so downstream
ratios stay defined.
"""

from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..models.property import ColumnMapping, Property, normalize_status
from ..utils.coerce import to_date, to_int, to_number, to_text

DEFAULT_SQFT = float(os.getenv("DEFAULT_SQFT", "1000"))
DEFAULT_PROPERTY_TYPE = "Single Family"
UNKNOWN_ADDRESS = "Unknown Address"
UNKNOWN_CITY = "Unknown City"

PRICE_FIELDS = ("price", "sale_price", "list_price")

_PHOTO_SPLIT = re.compile(r"[,;\s]+")


@dataclass
class RowResult:
    record: Optional[Property] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.record is not None


def new_property_id() -> str:
    return uuid.uuid4().hex[:12]


def _cell(row: Mapping[str, Any], mapping: ColumnMapping, field: str) -> Any:
    header = mapping.get(field)
    if header is None:
        return None
    return row.get(header)


def _non_negative(value: Optional[float]) -> Optional[float]:
    if value is None or value < 0:
        return None
    return value


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


def _photo_urls(raw: Any) -> Optional[List[str]]:
    text = to_text(raw)
    if text is None:
        return None
    urls = [part for part in _PHOTO_SPLIT.split(text) if part]
    return urls or None


def transform_row(
    row: Mapping[str, Any],
    mapping: ColumnMapping,
    id_factory: Optional[Callable[[], str]] = None,
) -> RowResult:
    numbers: Dict[str, Optional[float]] = {
        field: to_number(_cell(row, mapping, field)) for field in PRICE_FIELDS
    }
    price = next((numbers[f] for f in PRICE_FIELDS if _positive(numbers[f]) is not None), None)
    if price is None:
        return RowResult(reason="no positive price in price, sale price or list price columns")

    city = to_text(_cell(row, mapping, "city"))
    address = to_text(_cell(row, mapping, "address")) or city or UNKNOWN_ADDRESS
    sqft = _positive(to_number(_cell(row, mapping, "sqft"))) or DEFAULT_SQFT
    dom = to_int(_cell(row, mapping, "days_on_market"))

    try:
        record = Property(
            id=(id_factory or new_property_id)(),
            address=address,
            city=city or UNKNOWN_CITY,
            state=to_text(_cell(row, mapping, "state")),
            zip_code=to_text(_cell(row, mapping, "zip_code")),
            price=price,
            list_price=numbers["list_price"],
            sale_price=numbers["sale_price"],
            beds=_non_negative(to_number(_cell(row, mapping, "beds"))) or 0,
            baths=_non_negative(to_number(_cell(row, mapping, "baths"))) or 0,
            sqft=sqft,
            lot_size=to_number(_cell(row, mapping, "lot_size")),
            year_built=to_int(_cell(row, mapping, "year_built")),
            property_type=to_text(_cell(row, mapping, "property_type")) or DEFAULT_PROPERTY_TYPE,
            status=normalize_status(to_text(_cell(row, mapping, "status"))),
            days_on_market=dom if dom is not None and dom >= 0 else None,
            list_date=to_date(_cell(row, mapping, "list_date")),
            sale_date=to_date(_cell(row, mapping, "sale_date")),
            hoa_fees=to_number(_cell(row, mapping, "hoa_fees")),
            estimated_rent=to_number(_cell(row, mapping, "estimated_rent")),
            financing=to_text(_cell(row, mapping, "financing")),
            photo_urls=_photo_urls(_cell(row, mapping, "photo_urls")),
        )
    except ValidationError as exc:
        return RowResult(reason=f"invalid values: {exc.errors()[0].get('msg', 'validation failed')}")
    return RowResult(record=record)


__all__ = ["RowResult", "transform_row", "new_property_id", "DEFAULT_SQFT", "DEFAULT_PROPERTY_TYPE"]
