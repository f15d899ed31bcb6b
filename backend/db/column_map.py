"""Heuristic detection of canonical columns in MLS export headers.

The tables below are configuration data: an exact-alias table for literal
headers known from common MLS vendors, followed by one compiled pattern per
canonical field. Both are evaluated in a fixed order so repeated calls on the
same header list always produce the same mapping.
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Pattern, Sequence, Tuple

from ..models.property import ColumnMapping

MAPPING_TABLE_VERSION = 1

EXACT_ALIASES: Mapping[str, str] = {
    "Overall Total Bedrooms": "beds",
    "Overall Total Baths": "baths",
    "Main House SqFt": "sqft",
    "Sold Price": "price",
    "Listing Price": "list_price",
    "Orig. List Price": "list_price",
    "Sold Date": "sale_date",
    "Effective Date": "list_date",
    "Status": "status",
    "Days on Market": "days_on_market",
    "Realtor.com Type": "property_type",
    "Street": "address",
    "City": "city",
    "State": "state",
    "Zip Code": "zip_code",
    "Year Built": "year_built",
    "Acres": "lot_size",
}


def _pattern(*synonyms: str) -> Pattern[str]:
    return re.compile(r"^(" + "|".join(synonyms) + r")$")


FIELD_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("address", _pattern(r"address", r"addr", r"street", r"property_address", r"full_address",
                         r"location", r"property_location", r"street address", r"property address")),
    ("city", _pattern(r"city", r"municipality", r"town")),
    ("state", _pattern(r"state", r"st", r"province")),
    ("zip_code", _pattern(r"zip", r"zipcode", r"zip_code", r"postal", r"postal_code", r"zip code", r"postal code")),
    ("price", _pattern(r"price", r"list_price", r"asking_price", r"current_price", r"sale_price", r"sold_price",
                       r"listing_price", r"sold price", r"listing price", r"orig\. list price", r"close price")),
    ("list_price", _pattern(r"list_price", r"listing_price", r"asking_price", r"original_price",
                            r"orig\. list price", r"listing price", r"list price")),
    ("sale_price", _pattern(r"sale_price", r"sold_price", r"final_price", r"closing_price", r"sold price",
                            r"sale price", r"close price")),
    ("beds", _pattern(r"beds", r"bedrooms", r"bed", r"br", r"bedroom", r"total bedrooms",
                      r"overall bedrooms", r"overall total bedrooms")),
    ("baths", _pattern(r"baths", r"bathrooms", r"bath", r"ba", r"full_baths", r"bathroom",
                       r"total baths", r"overall total baths")),
    ("sqft", _pattern(r"sqft", r"sq_ft", r"sq ft", r"square_feet", r"square feet", r"living_area", r"floor_area",
                      r"size", r"sq\.ft", r"living_sqft", r"main house sqft", r"total sqft")),
    ("lot_size", _pattern(r"lot_size", r"lot_sqft", r"lot_area", r"land_area", r"lot", r"lot size", r"acres")),
    ("year_built", _pattern(r"year_built", r"year", r"built", r"construction_year", r"yr_built", r"year built")),
    ("property_type", _pattern(r"property_type", r"type", r"style", r"home_type", r"prop_type", r"property type",
                               r"house style", r"realtor\.com type")),
    ("status", _pattern(r"status", r"listing_status", r"mls_status", r"property_status", r"mls status")),
    ("days_on_market", _pattern(r"days_on_market", r"dom", r"market_days", r"days_market", r"days on market", r"cdom")),
    ("list_date", _pattern(r"list_date", r"listing_date", r"date_listed", r"listed_date", r"effective date",
                           r"list date", r"listing date")),
    ("sale_date", _pattern(r"sale_date", r"sold_date", r"closing_date", r"date_sold", r"close_date", r"sold date",
                           r"close date", r"closing date")),
    ("hoa_fees", _pattern(r"hoa", r"hoa_fee", r"hoa_fees", r"association_fee", r"hoa_monthly", r"hoa fee")),
    ("estimated_rent", _pattern(r"estimated_rent", r"est_rent", r"rent_estimate", r"estimated rent", r"rent")),
    ("financing", _pattern(r"financing", r"buyer_financing", r"buyer financing", r"terms of sale", r"sale terms")),
    ("photo_urls", _pattern(r"photos", r"photo_urls", r"photo_url", r"image_url", r"images", r"photo urls")),
)


def _clean(header: str) -> str:
    return str(header).strip().lower()


def detect_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Map canonical field names to the source header that supplies them.

    Exact aliases are applied first. Remaining fields are then matched by
    pattern: for each field in ``FIELD_PATTERNS`` order, the first header in
    input order not yet consumed by the pattern pass wins. A field is never
    reassigned. A header claimed by an exact alias may still fill one more
    field by pattern, so "Sold Price" supplies both ``price`` and
    ``sale_price``.
    """

    mapping: Dict[str, str] = {}
    consumed = set()

    for header in headers:
        field = EXACT_ALIASES.get(header)
        if field and field not in mapping:
            mapping[field] = header

    cleaned = [(header, _clean(header)) for header in headers]
    for field, pattern in FIELD_PATTERNS:
        if field in mapping:
            continue
        for header, clean in cleaned:
            if header in consumed:
                continue
            if pattern.match(clean):
                mapping[field] = header
                consumed.add(header)
                break

    return {field: mapping[field] for field, _ in FIELD_PATTERNS if field in mapping}


def mapping_warnings(mapping: ColumnMapping) -> List[str]:
    """Non-fatal notes about coverage gaps in a detected mapping."""

    warnings: List[str] = []
    if not (mapping.get("address") or mapping.get("city")):
        warnings.append("Could not detect address or location columns.")
    if not (mapping.get("price") or mapping.get("list_price") or mapping.get("sale_price")):
        warnings.append("Could not detect price columns (list price, sale price, etc.).")
    if not (mapping.get("sqft") or mapping.get("lot_size")):
        warnings.append("Could not detect size information (square feet, lot size, etc.).")
    return warnings


__all__ = [
    "MAPPING_TABLE_VERSION",
    "EXACT_ALIASES",
    "FIELD_PATTERNS",
    "detect_mapping",
    "mapping_warnings",
]
