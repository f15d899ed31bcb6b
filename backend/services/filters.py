"""Filter engine over the ingested record set."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models.property import FilterSpec, Property, PropertyStatus, normalize_status

Predicate = Callable[[Property], bool]


def _predicates(spec: FilterSpec) -> List[Predicate]:
    checks: List[Predicate] = []

    date_range = spec.date_range
    if date_range is not None and (date_range.from_ or date_range.to):
        lower, upper = date_range.from_, date_range.to

        def _in_dates(p: Property) -> bool:
            when = p.effective_date
            if not when:
                return False
            if lower and when < lower:
                return False
            if upper and when > upper:
                return False
            return True

        checks.append(_in_dates)

    price_range = spec.price_range
    if price_range is not None:
        if price_range.min is not None:
            low = price_range.min
            checks.append(lambda p: p.price >= low)
        if price_range.max is not None:
            high = price_range.max
            checks.append(lambda p: p.price <= high)

    location = spec.location
    if location is not None:
        if location.city:
            needle = location.city.lower()
            checks.append(lambda p: needle in p.city.lower())
        if location.zip_code:
            zip_code = location.zip_code
            checks.append(lambda p: p.zip_code == zip_code)

    if spec.beds is not None:
        min_beds = spec.beds
        checks.append(lambda p: p.beds >= min_beds)

    if spec.baths is not None:
        min_baths = spec.baths
        checks.append(lambda p: p.baths >= min_baths)

    if spec.property_types:
        allowed = frozenset(spec.property_types)
        checks.append(lambda p: p.property_type in allowed)

    if spec.status:
        status = normalize_status(spec.status)
        if status == PropertyStatus.UNKNOWN and spec.status.strip().lower() != "unknown":
            # unrecognized status text matches nothing
            checks.append(lambda p: False)
        else:
            checks.append(lambda p: p.status == status)

    return checks


def apply_filters(records: Sequence[Property], spec: Optional[FilterSpec]) -> List[Property]:
    """Return the records matching every populated dimension of ``spec``.

    Relative order is preserved and the input is never mutated. Predicates are
    built once per call, then evaluated in a single pass.
    """

    if spec is None:
        return list(records)
    checks = _predicates(spec)
    if not checks:
        return list(records)
    return [record for record in records if all(check(record) for check in checks)]


def merge_filters(spec: Optional[FilterSpec], **changes: Any) -> FilterSpec:
    """Partially update a filter spec; top-level keys replace wholesale."""

    current: Dict[str, Any] = spec.model_dump() if spec is not None else {}
    current.update(changes)
    return FilterSpec.model_validate(current)


def reset_filters() -> FilterSpec:
    return FilterSpec()


def filter_options(records: Sequence[Property]) -> Dict[str, Any]:
    """Distinct values available for each filter dimension."""

    prices = [p.price for p in records]
    return {
        "cities": sorted({p.city for p in records}),
        "zip_codes": sorted({p.zip_code for p in records if p.zip_code}),
        "property_types": sorted({p.property_type for p in records}),
        "statuses": sorted({p.status.value for p in records}),
        "price_min": min(prices) if prices else 0.0,
        "price_max": max(prices) if prices else 0.0,
    }


__all__ = ["apply_filters", "merge_filters", "reset_filters", "filter_options"]
