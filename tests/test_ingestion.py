import hashlib
import itertools

import pytest

from backend.db.csv_repo import CSVIngestor, IngestionError, process_csv
from backend.db.mappers import DEFAULT_SQFT, transform_row
from backend.models.property import PropertyStatus


def _csv(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def test_mls_export_single_row():
    raw = _csv(
        "Sold Price,Overall Total Bedrooms,Overall Total Baths,Main House SqFt,Status",
        "300000,3,2,1500,C",
    )
    result = process_csv(raw, source_name="mls.csv")
    assert len(result.records) == 1
    record = result.records[0]
    assert record.price == 300000
    assert record.sale_price == 300000
    assert record.beds == 3
    assert record.baths == 2
    assert record.sqft == 1500
    assert record.status == PropertyStatus.SOLD
    assert result.mapping["price"] == "Sold Price"
    assert result.provenance.source_name == "mls.csv"
    assert result.provenance.sha256 == hashlib.sha256(raw).hexdigest()
    assert result.provenance.generated_at.endswith("+00:00")


def test_lenient_defaults_applied():
    mapping = {"price": "Price", "city": "City"}
    result = transform_row({"Price": "$450,000", "City": " Austin "}, mapping)
    record = result.record
    assert result.accepted
    assert record.address == "Austin"
    assert record.city == "Austin"
    assert record.beds == 0
    assert record.baths == 0
    assert record.sqft == DEFAULT_SQFT
    assert record.property_type == "Single Family"
    assert record.status == PropertyStatus.UNKNOWN


def test_price_falls_back_to_sale_then_list_price():
    mapping = {"price": "Price", "sale_price": "Sale", "list_price": "List"}
    record = transform_row({"Price": "", "Sale": "0", "List": "510000"}, mapping).record
    assert record.price == 510000
    assert record.list_price == 510000
    assert record.sale_price == 0


def test_row_without_positive_price_is_rejected_with_reason():
    result = transform_row({"Price": "-5", "Beds": "3"}, {"price": "Price", "beds": "Beds"})
    assert not result.accepted
    assert "price" in result.reason


def test_bad_cells_degrade_instead_of_failing():
    mapping = {"price": "Price", "sqft": "Sqft", "beds": "Beds", "days_on_market": "DOM", "sale_date": "Sold"}
    record = transform_row({"Price": "200000", "Sqft": "0", "Beds": "-2", "DOM": "-4", "Sold": "soon"}, mapping).record
    assert record.sqft == DEFAULT_SQFT
    assert record.beds == 0
    assert record.days_on_market is None
    assert record.sale_date is None


def test_photo_urls_are_split():
    mapping = {"price": "Price", "photo_urls": "Photos"}
    record = transform_row({"Price": "1", "Photos": "http://a/1.jpg, http://a/2.jpg"}, mapping).record
    assert record.photo_urls == ["http://a/1.jpg", "http://a/2.jpg"]


def test_partial_failures_do_not_abort_file():
    lines = ["Address,City,Price,Beds,Baths,Sqft,Status"]
    lines.append("1 Main St,Austin,250000,3,2,1400,Active")
    lines.extend(f"{i} Bad Ave,Austin,n/a,3,2,1400,Active" for i in range(20))
    lines.append('2 Oak St,Austin,"$310,000",4,3,2100,Sold')
    result = CSVIngestor(max_diagnostics=5).process(_csv(*lines))
    assert result.total_rows == 22
    assert [r.price for r in result.records] == [250000, 310000]
    assert result.rejected_rows == 20
    row_messages = [d for d in result.diagnostics if d.startswith("Row ")]
    assert len(row_messages) == 5
    assert any("skipped in total" in d for d in result.diagnostics)


def test_ids_are_unique_within_a_run():
    lines = ["Price,Beds"] + [f"{100000 + i},3" for i in range(50)]
    result = process_csv(_csv(*lines))
    ids = [record.id for record in result.records]
    assert len(ids) == 50
    assert len(set(ids)) == 50


def test_colliding_id_factory_is_deduplicated():
    ids = itertools.chain(["dup", "dup", "dup"], (f"id-{n}" for n in itertools.count()))
    ingestor = CSVIngestor(id_factory=lambda: next(ids))
    result = ingestor.process(_csv("Price,Beds", "100000,3", "200000,4"))
    assert [r.id for r in result.records] == ["dup", "id-0"]


def test_constant_id_factory_terminates_with_unique_ids():
    ingestor = CSVIngestor(id_factory=lambda: "same")
    result = ingestor.process(_csv("Price", "1", "2", "3"))
    ids = [r.id for r in result.records]
    assert ids[0] == "same"
    assert len(set(ids)) == 3


def test_missing_size_column_is_reported_not_fatal():
    result = process_csv(_csv("City,Price", "Austin,250000"))
    assert len(result.records) == 1
    assert any("size" in d for d in result.diagnostics)


def test_malformed_line_is_skipped():
    result = process_csv(_csv("Price,Beds", "100000,3", "200000,4,extra", "300000,5"))
    assert [r.price for r in result.records] == [100000, 300000]
    assert any("malformed" in d for d in result.diagnostics)


def test_utf8_bom_is_tolerated():
    raw = "\ufeffPrice,Beds\n100000,3\n".encode("utf-8")
    result = process_csv(raw)
    assert result.mapping["price"] == "Price"


@pytest.mark.parametrize(
    "raw, reason",
    [
        (b"", "unreadable"),
        (b"\xff\xfe\xfa\x00binary", "unreadable"),
        (b"foo,bar\n1,2\n", "no_columns"),
        (b"Price,Beds\nabc,3\n0,2\n", "no_records"),
        (b"Price,Beds\n", "no_records"),
    ],
)
def test_file_level_failures(raw, reason):
    with pytest.raises(IngestionError) as excinfo:
        process_csv(raw)
    assert excinfo.value.reason == reason
    assert excinfo.value.message
