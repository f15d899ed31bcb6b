"""Pydantic schemas for ingestion, comparable, KPI and query responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .property import FilterSpec, KPIData, Property


class Provenance(BaseModel):
    source_name: Optional[str] = None
    sha256: Optional[str] = None
    generated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class IngestionResult(BaseModel):
    records: List[Property]
    mapping: Dict[str, str]
    diagnostics: List[str] = Field(default_factory=list)
    total_rows: int = 0
    rejected_rows: int = 0
    provenance: Provenance = Field(default_factory=Provenance)


class SubjectProperty(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sqft: float = Field(..., gt=0)
    beds: float = Field(..., ge=0)
    baths: float = Field(..., ge=0)
    zip_code: Optional[str] = Field(None, alias="zipCode")
    address: Optional[str] = None
    asking_price: Optional[float] = Field(None, alias="askingPrice")


class Comparable(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    property: Property
    price_per_sqft: float = Field(..., alias="pricePerSqft")
    sqft_diff: float = Field(..., alias="sqftDiff")


class CMAValuation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    avg_price_per_sqft: float = Field(..., alias="avgPricePerSqft")
    median_price_per_sqft: float = Field(..., alias="medianPricePerSqft")
    estimated_value_avg: float = Field(..., alias="estimatedValueAvg")
    estimated_value_median: float = Field(..., alias="estimatedValueMedian")
    confidence_score: int = Field(..., alias="confidenceScore")
    confidence_level: Literal["High", "Medium", "Low"] = Field(..., alias="confidenceLevel")
    comparable_count: int = Field(..., alias="comparableCount")


class DataSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_properties: int = Field(0, alias="totalProperties")
    average_price: float = Field(0.0, alias="averagePrice")
    price_range: Dict[str, float] = Field(default_factory=dict, alias="priceRange")
    status_distribution: Dict[str, int] = Field(default_factory=dict, alias="statusDistribution")
    bedroom_distribution: Dict[str, int] = Field(default_factory=dict, alias="bedroomDistribution")
    cities: List[str] = Field(default_factory=list)
    property_types: List[str] = Field(default_factory=list, alias="propertyTypes")


class QueryAnswer(BaseModel):
    answer: str
    data: Dict[str, Any] = Field(default_factory=dict)
    filters: Optional[FilterSpec] = None
    source: Literal["remote", "fallback"] = "fallback"
    fallback_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Request payloads


class RecordsRequest(BaseModel):
    records: List[Property]
    filters: Optional[FilterSpec] = None


class KPIRequest(RecordsRequest):
    as_of: Optional[str] = None


class KPIResponse(BaseModel):
    current: KPIData
    comparison: KPIData


class ComparablesRequest(BaseModel):
    subject: SubjectProperty
    records: List[Property]
    tolerance: float = Field(0.2, ge=0)
    limit: Optional[int] = Field(None, ge=1)


class ComparablesResponse(BaseModel):
    comparables: List[Comparable]
    valuation: Optional[CMAValuation] = None


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1)
    data: List[Property] = Field(default_factory=list)
    filters: Optional[FilterSpec] = None


class ExportRequest(RecordsRequest):
    columns: Optional[List[str]] = None
