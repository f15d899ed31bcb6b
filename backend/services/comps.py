"""Comparable sales selection and a simple CMA valuation."""

from __future__ import annotations

import os
from typing import List, Optional, Sequence

from ..models.insights import CMAValuation, Comparable, SubjectProperty
from ..models.property import Property
from ..utils.logging import get_logger
from .kpis import average, is_sold, median

LOGGER = get_logger("services.comps")

COMPS_LIMIT = int(os.getenv("COMPS_LIMIT", "10"))
DEFAULT_TOLERANCE = 0.2


def find_comparables(
    subject: SubjectProperty,
    pool: Sequence[Property],
    tolerance: float = DEFAULT_TOLERANCE,
    limit: Optional[int] = None,
    beds_window: float = 0,
    baths_window: float = 0.5,
) -> List[Comparable]:
    """Rank sold properties by closeness in size to ``subject``.

    Candidates must be sold, fall within ``tolerance`` (a fraction of the
    subject's sqft) and match beds/baths within the given windows. The zip is
    matched only when the subject supplies one. Closest size comes first.
    """

    limit = limit or COMPS_LIMIT
    band = subject.sqft * tolerance
    zip_code = (subject.zip_code or "").strip() or None

    matches: List[Comparable] = []
    for p in pool:
        if not is_sold(p):
            continue
        diff = abs(p.sqft - subject.sqft)
        if diff > band:
            continue
        if abs(p.beds - subject.beds) > beds_window:
            continue
        if abs(p.baths - subject.baths) > baths_window:
            continue
        if zip_code is not None and p.zip_code != zip_code:
            continue
        matches.append(Comparable(property=p, price_per_sqft=p.price / p.sqft, sqft_diff=diff))

    matches.sort(key=lambda comp: comp.sqft_diff)
    LOGGER.debug("comps_selected subject_sqft=%s pool=%d matches=%d", subject.sqft, len(pool), len(matches))
    return matches[:limit]


def confidence_level(count: int) -> str:
    if count >= 5:
        return "High"
    if count >= 3:
        return "Medium"
    return "Low"


def estimate_value(subject: SubjectProperty, comps: Sequence[Comparable]) -> Optional[CMAValuation]:
    """Price-per-sqft valuation from the selected comps; None when there are none."""

    if not comps:
        return None
    rates = [comp.price_per_sqft for comp in comps]
    avg_rate = average(rates)
    median_rate = median(rates)
    return CMAValuation(
        avg_price_per_sqft=round(avg_rate),
        median_price_per_sqft=round(median_rate),
        estimated_value_avg=round(avg_rate * subject.sqft),
        estimated_value_median=round(median_rate * subject.sqft),
        confidence_score=min(len(comps) * 10, 100),
        confidence_level=confidence_level(len(comps)),
        comparable_count=len(comps),
    )


__all__ = ["COMPS_LIMIT", "find_comparables", "estimate_value", "confidence_level"]
