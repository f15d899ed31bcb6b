import pytest

from backend.db.csv_repo import process_csv
from backend.models.property import Property
from backend.services.export import DEFAULT_COLUMNS, property_to_csv, records_to_csv


def _prop(pid: str, **overrides) -> Property:
    fields = dict(id=pid, address=f"{pid}, Unit 2", city="Austin", price=300000, beds=3, baths=2.5, sqft=1500)
    fields.update(overrides)
    return Property(**fields)


def test_default_columns_header():
    text = records_to_csv([_prop("a")])
    assert text.splitlines()[0] == ",".join(DEFAULT_COLUMNS)


def test_export_then_reingest_preserves_core_values():
    records = [
        _prop("a", status="Sold", days_on_market=12, zip_code="78701"),
        _prop("b", price=455000.5, beds=4, baths=3, sqft=2210, status="Active"),
    ]
    result = process_csv(records_to_csv(records).encode("utf-8"))
    assert len(result.records) == 2
    for original, again in zip(records, result.records):
        assert again.address == original.address
        assert again.price == pytest.approx(original.price)
        assert again.beds == original.beds
        assert again.baths == original.baths
        assert again.sqft == original.sqft
        assert again.status == original.status


def test_selected_columns_keep_order():
    text = records_to_csv([_prop("a", price=300000.0)], ["Price", "City"])
    assert text.splitlines() == ["Price,City", "300000.0,Austin"]


def test_unknown_column_rejected():
    with pytest.raises(ValueError):
        records_to_csv([_prop("a")], ["Nope"])


def test_single_property_export_has_all_columns():
    lines = property_to_csv(_prop("a", sale_price=290000)).splitlines()
    assert len(lines) == 2
    assert "Sale Price" in lines[0]
