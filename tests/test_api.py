import pytest
from fastapi.testclient import TestClient

from backend import api
from backend.models.property import Property
from backend.services.query_llm import QueryLLM

client = TestClient(api.app)

MLS_CSV = (
    "Street,City,Zip Code,Sold Price,Listing Price,Overall Total Bedrooms,Overall Total Baths,Main House SqFt,Status,Sold Date,Days on Market\n"
    "1 Main St,Austin,78701,300000,310000,3,2,1500,C,2024-03-02,12\n"
    "2 Oak St,Austin,78702,,450000,4,3,2200,A,,5\n"
    "3 Elm St,Round Rock,78664,250000,240000,3,2,1600,Closed,2024-02-10,40\n"
    "bad row,Austin,78701,,,3,2,1500,A,,\n"
)


def _ingest():
    resp = client.post("/api/ingest", files={"file": ("mls.csv", MLS_CSV.encode("utf-8"), "text/csv")})
    assert resp.status_code == 200
    return resp.json()


def test_health():
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_ingest_endpoint():
    payload = _ingest()
    assert len(payload["records"]) == 3
    assert payload["rejected_rows"] == 1
    assert payload["mapping"]["price"] == "Sold Price"
    assert any(msg.startswith("Row 4") for msg in payload["diagnostics"])
    first = payload["records"][0]
    assert first["zipCode"] == "78701"
    assert first["status"] == "Sold"
    assert first["listPrice"] == 310000


def test_ingest_rejects_unusable_file():
    resp = client.post("/api/ingest", files={"file": ("x.csv", b"foo,bar\n1,2\n", "text/csv")})
    assert resp.status_code == 422
    assert resp.json()["detail"]["reason"] == "no_columns"


def test_filter_and_kpis():
    records = _ingest()["records"]
    resp = client.post("/api/filter", json={"records": records, "filters": {"beds": 4}})
    assert resp.status_code == 200
    assert resp.json()["total"] == 1

    resp = client.post(
        "/api/kpis",
        json={"records": records, "filters": {"status": "Sold"}, "as_of": "2024-03-20"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["current"]["closedSalesCount"] == 2
    assert body["current"]["medianSalePrice"] == 275000
    assert body["current"]["saleToListRatio"] == pytest.approx((300000 / 310000 + 250000 / 240000) / 2)
    assert body["current"]["saleToListRatio"] == pytest.approx(1.0047, abs=1e-4)
    assert body["comparison"]["totalProperties"] == 3
    assert body["comparison"]["monthsOfInventory"] == 1
    assert body["comparison"]["absorptionRate"] == 2 / 3 * 100


def test_comparables_endpoint():
    records = _ingest()["records"]
    resp = client.post(
        "/api/comparables",
        json={"subject": {"sqft": 1550, "beds": 3, "baths": 2}, "records": records, "tolerance": 0.1},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [c["property"]["address"] for c in body["comparables"]] == ["1 Main St", "3 Elm St"]
    assert body["valuation"]["comparableCount"] == 2


def test_ai_query_fallback(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr(api, "llm", QueryLLM())
    records = _ingest()["records"]
    resp = client.post("/api/ai/query", json={"query": "What is the median price?", "data": records})
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "fallback"
    assert body["data"]["median"] == 300000


def test_export_round_trip():
    records = _ingest()["records"]
    resp = client.post("/api/export", json={"records": records, "filters": {"location": {"city": "austin"}}})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    again = client.post("/api/ingest", files={"file": ("export.csv", resp.content, "text/csv")}).json()
    prices = sorted(r["price"] for r in again["records"])
    assert prices == [300000, 450000]
    assert all(Property.model_validate(r).sqft > 0 for r in again["records"])
