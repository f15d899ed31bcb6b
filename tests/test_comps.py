from backend.models.insights import SubjectProperty
from backend.models.property import Property
from backend.services.comps import estimate_value, find_comparables


def _sold(pid: str, sqft: float, **overrides) -> Property:
    fields = dict(id=pid, address=f"{pid} Elm St", city="Austin", price=sqft * 200, beds=3, baths=2, sqft=sqft, status="Sold")
    fields.update(overrides)
    return Property(**fields)


SUBJECT = SubjectProperty(sqft=2000, beds=3, baths=2)


def test_tolerance_band_is_symmetric_percentage():
    pool = [_sold("far", 2600), _sold("near", 2300), _sold("edge", 1600)]
    comps = find_comparables(SUBJECT, pool, tolerance=0.2)
    assert [c.property.id for c in comps] == ["near", "edge"]
    assert comps[0].sqft_diff == 300
    assert comps[0].price_per_sqft == 200


def test_only_sold_records_qualify():
    pool = [_sold("active", 2000, status="Active"), _sold("pending", 2000, status="Pending"), _sold("sold", 2050)]
    assert [c.property.id for c in find_comparables(SUBJECT, pool)] == ["sold"]


def test_beds_exact_and_baths_half_window():
    pool = [
        _sold("beds4", 2000, beds=4),
        _sold("baths25", 2000, baths=2.5),
        _sold("baths3", 2000, baths=3),
    ]
    assert [c.property.id for c in find_comparables(SUBJECT, pool)] == ["baths25"]
    wider = find_comparables(SUBJECT, pool, beds_window=1, baths_window=1)
    assert {c.property.id for c in wider} == {"beds4", "baths25", "baths3"}


def test_zip_only_checked_when_subject_has_one():
    pool = [_sold("z1", 2000, zip_code="78701"), _sold("z2", 2010, zip_code="78702")]
    assert len(find_comparables(SUBJECT, pool)) == 2
    subject = SubjectProperty(sqft=2000, beds=3, baths=2, zip_code="78702")
    assert [c.property.id for c in find_comparables(subject, pool)] == ["z2"]


def test_ranked_by_size_distance_and_truncated():
    pool = [_sold(f"p{i}", 2000 + i * 10) for i in range(15, 0, -1)]
    comps = find_comparables(SUBJECT, pool)
    assert len(comps) == 10
    diffs = [c.sqft_diff for c in comps]
    assert diffs == sorted(diffs)
    assert comps[0].property.id == "p1"
    assert len(find_comparables(SUBJECT, pool, limit=3)) == 3


def test_empty_results_are_not_errors():
    assert find_comparables(SUBJECT, []) == []
    assert find_comparables(SUBJECT, [_sold("x", 5000)]) == []
    assert estimate_value(SUBJECT, []) is None


def test_estimate_value():
    pool = [_sold("a", 2000, price=400000), _sold("b", 2000, price=500000), _sold("c", 1900, price=380000)]
    comps = find_comparables(SUBJECT, pool)
    valuation = estimate_value(SUBJECT, comps)
    assert valuation.comparable_count == 3
    assert valuation.median_price_per_sqft == 200
    assert valuation.avg_price_per_sqft == round((200 + 250 + 200) / 3)
    assert valuation.estimated_value_median == 400000
    assert valuation.confidence_score == 30
    assert valuation.confidence_level == "Medium"
