"""Pydantic models representing the canonical property domain objects."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.coerce import to_date


class PropertyStatus(str, Enum):
    ACTIVE = "Active"
    SOLD = "Sold"
    PENDING = "Pending"
    WITHDRAWN = "Withdrawn"
    UNKNOWN = "Unknown"


# Vendor aliases, lower-cased. Bare letter codes come from MLS exports.
STATUS_ALIASES: Dict[str, PropertyStatus] = {
    "a": PropertyStatus.ACTIVE,
    "act": PropertyStatus.ACTIVE,
    "active": PropertyStatus.ACTIVE,
    "new": PropertyStatus.ACTIVE,
    "coming soon": PropertyStatus.ACTIVE,
    "c": PropertyStatus.SOLD,
    "cl": PropertyStatus.SOLD,
    "cls": PropertyStatus.SOLD,
    "closed": PropertyStatus.SOLD,
    "sold": PropertyStatus.SOLD,
    "sld": PropertyStatus.SOLD,
    "p": PropertyStatus.PENDING,
    "pnd": PropertyStatus.PENDING,
    "pending": PropertyStatus.PENDING,
    "u": PropertyStatus.PENDING,
    "uc": PropertyStatus.PENDING,
    "ac": PropertyStatus.PENDING,
    "under contract": PropertyStatus.PENDING,
    "contingent": PropertyStatus.PENDING,
    "w": PropertyStatus.WITHDRAWN,
    "wd": PropertyStatus.WITHDRAWN,
    "withdrawn": PropertyStatus.WITHDRAWN,
    "x": PropertyStatus.WITHDRAWN,
    "expired": PropertyStatus.WITHDRAWN,
    "t": PropertyStatus.WITHDRAWN,
    "cancelled": PropertyStatus.WITHDRAWN,
    "canceled": PropertyStatus.WITHDRAWN,
    "off market": PropertyStatus.WITHDRAWN,
}


def normalize_status(raw: Optional[str]) -> PropertyStatus:
    """Map a raw status cell onto exactly one ``PropertyStatus`` variant."""

    if isinstance(raw, PropertyStatus):
        return raw
    if raw is None:
        return PropertyStatus.UNKNOWN
    key = " ".join(str(raw).strip().lower().split())
    return STATUS_ALIASES.get(key, PropertyStatus.UNKNOWN)


# Canonical fields a CSV column can supply, in mapping priority order.
CANONICAL_FIELDS: tuple = (
    "address",
    "city",
    "state",
    "zip_code",
    "price",
    "list_price",
    "sale_price",
    "beds",
    "baths",
    "sqft",
    "lot_size",
    "year_built",
    "property_type",
    "status",
    "days_on_market",
    "list_date",
    "sale_date",
    "hoa_fees",
    "estimated_rent",
    "financing",
    "photo_urls",
)

ColumnMapping = Dict[str, str]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Property(_CamelModel):
    id: str
    address: str
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    price: float = Field(..., gt=0)
    list_price: Optional[float] = Field(None, alias="listPrice")
    sale_price: Optional[float] = Field(None, alias="salePrice")
    beds: float = Field(0, ge=0)
    baths: float = Field(0, ge=0)
    sqft: float = Field(..., gt=0)
    lot_size: Optional[float] = Field(None, alias="lotSize")
    year_built: Optional[int] = Field(None, alias="yearBuilt")
    property_type: str = Field("Single Family", alias="propertyType")
    status: PropertyStatus = PropertyStatus.UNKNOWN
    days_on_market: Optional[int] = Field(None, ge=0, alias="daysOnMarket")
    list_date: Optional[str] = Field(None, alias="listDate")
    sale_date: Optional[str] = Field(None, alias="saleDate")
    hoa_fees: Optional[float] = Field(None, alias="hoaFees")
    estimated_rent: Optional[float] = Field(None, alias="estimatedRent")
    financing: Optional[str] = None
    photo_urls: Optional[List[str]] = Field(None, alias="photoUrls")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return normalize_status(value)

    @field_validator("list_date", "sale_date", mode="before")
    @classmethod
    def _iso_date(cls, value):
        return to_date(value)

    @property
    def price_per_sqft(self) -> float:
        return self.price / self.sqft

    @property
    def effective_date(self) -> Optional[str]:
        return self.sale_date or self.list_date


class DateRange(_CamelModel):
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _iso_bound(cls, value):
        if value is None or str(value).strip() == "":
            return None
        iso = to_date(value)
        if iso is None:
            raise ValueError(f"invalid date bound: {value!r}")
        return iso


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class Location(_CamelModel):
    city: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")


class FilterSpec(_CamelModel):
    date_range: Optional[DateRange] = Field(None, alias="dateRange")
    price_range: Optional[PriceRange] = Field(None, alias="priceRange")
    location: Optional[Location] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    property_types: Optional[List[str]] = Field(None, alias="propertyTypes")
    status: Optional[str] = None


class KPIData(_CamelModel):
    median_sale_price: float = Field(0.0, alias="medianSalePrice")
    average_sale_price: float = Field(0.0, alias="averageSalePrice")
    median_list_price: float = Field(0.0, alias="medianListPrice")
    average_list_price: float = Field(0.0, alias="averageListPrice")
    sale_to_list_ratio: float = Field(0.0, alias="saleToListRatio")
    price_per_sqft: float = Field(0.0, alias="pricePerSqft")
    average_days_on_market: float = Field(0.0, alias="averageDaysOnMarket")
    median_days_on_market: float = Field(0.0, alias="medianDaysOnMarket")
    closed_sales_count: int = Field(0, alias="closedSalesCount")
    new_listings_count: int = Field(0, alias="newListingsCount")
    months_of_inventory: float = Field(0.0, alias="monthsOfInventory")
    absorption_rate: float = Field(0.0, alias="absorptionRate")
    # None when the upload carries no financing column.
    cash_vs_financed_ratio: Optional[float] = Field(0.0, alias="cashVsFinancedRatio")
    total_properties: int = Field(0, alias="totalProperties")
