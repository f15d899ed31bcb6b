from datetime import date

import pytest

from backend.models.property import KPIData, Property
from backend.services.kpis import average, compute_filtered_kpis, compute_kpis, median

AS_OF = date(2024, 3, 15)


def _prop(pid: str, **overrides) -> Property:
    fields = dict(id=pid, address="1 Main St", city="Austin", price=300000, beds=3, baths=2, sqft=1500)
    fields.update(overrides)
    return Property(**fields)


def test_median_odd_even_and_empty():
    assert median([5, 1, 3]) == 3
    assert median([4, 1, 3, 2]) == 2.5
    assert median([]) == 0


def test_average_is_sum_over_length():
    values = [1.5, 2.5, 10.0]
    assert average(values) == pytest.approx(sum(values) / len(values))
    assert average([]) == 0


def test_empty_input_is_all_zero():
    kpis = compute_kpis([], AS_OF)
    assert kpis == KPIData()
    assert kpis.total_properties == 0
    assert kpis.cash_vs_financed_ratio == 0


def test_sale_price_stats_over_sold_subset():
    records = [
        _prop("a", price=200000, status="Sold"),
        _prop("b", price=250000, status="C"),
        _prop("c", price=400000, status="closed"),
        _prop("d", price=900000, status="Active"),
    ]
    kpis = compute_kpis(records, AS_OF)
    assert kpis.median_sale_price == 250000
    assert kpis.average_sale_price == pytest.approx(283333.33, abs=0.01)
    assert kpis.closed_sales_count == 3
    assert kpis.absorption_rate == pytest.approx(75.0)
    assert kpis.total_properties == 4


def test_list_price_prefers_explicit_list_price():
    records = [
        _prop("a", price=300000, list_price=320000),
        _prop("b", price=200000),
    ]
    kpis = compute_kpis(records, AS_OF)
    assert kpis.median_list_price == 260000
    assert kpis.average_list_price == 260000


def test_sale_to_list_ratio_needs_both_prices():
    records = [
        _prop("a", status="Sold", sale_price=290000, list_price=300000),
        _prop("b", status="Sold", sale_price=310000, list_price=300000),
        _prop("c", status="Sold", list_price=300000),
        _prop("d", status="Active", sale_price=100000, list_price=300000),
    ]
    kpis = compute_kpis(records, AS_OF)
    assert kpis.sale_to_list_ratio == pytest.approx(1.0)


def test_price_per_sqft_and_days_on_market():
    records = [
        _prop("a", price=300000, sqft=1500, days_on_market=10),
        _prop("b", price=200000, sqft=1000, days_on_market=30),
        _prop("c", price=100000, sqft=1000),
    ]
    kpis = compute_kpis(records, AS_OF)
    assert kpis.price_per_sqft == pytest.approx((200 + 200 + 100) / 3)
    assert kpis.average_days_on_market == 20
    assert kpis.median_days_on_market == 20


def test_months_of_inventory_floors_denominator():
    records = [_prop(f"a{i}", status="Active") for i in range(10)]
    records.append(_prop("s", status="Sold", sale_date="2023-12-01"))
    kpis = compute_kpis(records, AS_OF)
    assert kpis.months_of_inventory == 10


def test_months_of_inventory_uses_sales_in_reference_month():
    records = [_prop(f"a{i}", status="Active") for i in range(10)]
    records += [_prop(f"s{i}", status="Sold", sale_date="2024-03-0%d" % (i + 1)) for i in range(2)]
    records.append(_prop("old", status="Sold", sale_date="2024-02-28"))
    kpis = compute_kpis(records, AS_OF)
    assert kpis.months_of_inventory == 5


def test_new_listings_count_uses_reference_month():
    records = [
        _prop("a", list_date="2024-03-01"),
        _prop("b", list_date="2024-03-31"),
        _prop("c", list_date="2023-03-10"),
        _prop("d"),
    ]
    assert compute_kpis(records, AS_OF).new_listings_count == 2
    assert compute_kpis(records, date(2023, 3, 1)).new_listings_count == 1
    assert compute_kpis(records, "2024-03-20").new_listings_count == 2


def test_cash_vs_financed_ratio():
    records = [
        _prop("a", status="Sold", financing="Cash"),
        _prop("b", status="Sold", financing="Conventional"),
        _prop("c", status="Sold"),
    ]
    assert compute_kpis(records, AS_OF).cash_vs_financed_ratio == 0.5
    assert compute_kpis([_prop("x", status="Sold")], AS_OF).cash_vs_financed_ratio is None


def test_filtered_kpis_pair():
    everything = [_prop("a", status="Sold"), _prop("b", status="Active")]
    result = compute_filtered_kpis(everything, everything[:1], AS_OF)
    assert result["current"].total_properties == 1
    assert result["comparison"].total_properties == 2
