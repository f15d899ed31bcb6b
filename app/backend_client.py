"""Helper client used by the Streamlit app to talk to the API or fall back to local services."""

from __future__ import annotations

import os
from datetime import date
from typing import Any, Dict, List, Optional

import requests
from requests import Response

from backend.db.csv_repo import CSVIngestor, IngestionError
from backend.models.insights import QueryAnswer, SubjectProperty
from backend.models.property import FilterSpec, KPIData, Property
from backend.services.comps import estimate_value, find_comparables
from backend.services.export import records_to_csv
from backend.services.filters import apply_filters
from backend.services.insights import market_insights
from backend.services.kpis import compute_filtered_kpis
from backend.services.query_llm import QueryLLM


def _records_payload(records: List[Property]) -> List[Dict[str, Any]]:
    return [record.model_dump(mode="json", by_alias=True) for record in records]


class BackendClient:
    def __init__(self) -> None:
        self.base_url = os.getenv("API_BASE_URL", "http://localhost:8000")
        self.session = requests.Session()
        self.use_api = self._ping_api()
        self.ingestor: Optional[CSVIngestor] = None
        self.llm: Optional[QueryLLM] = None
        if not self.use_api:
            self._enable_local_mode()

    def _ping_api(self) -> bool:
        try:
            resp = self.session.get(f"{self.base_url}/api/health", timeout=2)
            return resp.status_code == 200
        except Exception:
            return False

    def ingest(self, raw: bytes, filename: str) -> Dict[str, Any]:
        """Returns ``{"records", "mapping", "diagnostics"}``; raises IngestionError."""

        if self.use_api:
            try:
                resp = self.session.post(
                    f"{self.base_url}/api/ingest",
                    files={"file": (filename, raw, "text/csv")},
                    timeout=60,
                )
                if resp.status_code == 422:
                    detail = resp.json().get("detail", {})
                    raise IngestionError(detail.get("reason", "unreadable"), detail.get("message", "Upload failed"))
                self._raise_for_status(resp)
                payload = resp.json()
                payload["records"] = [Property.model_validate(item) for item in payload["records"]]
                return payload
            except requests.RequestException:
                self._enable_local_mode()
        result = self.ingestor.process(raw, source_name=filename)  # type: ignore[union-attr]
        return {"records": result.records, "mapping": result.mapping, "diagnostics": result.diagnostics}

    def kpis(self, records: List[Property], filters: FilterSpec, as_of: date) -> Dict[str, KPIData]:
        filtered = apply_filters(records, filters)
        return compute_filtered_kpis(records, filtered, as_of)

    def comparables(self, subject: SubjectProperty, records: List[Property], tolerance: float = 0.2):
        comps = find_comparables(subject, records, tolerance=tolerance)
        return comps, estimate_value(subject, comps)

    def insights(self, records: List[Property]) -> Dict[str, Any]:
        return market_insights(records)

    def export_csv(self, records: List[Property], columns: Optional[List[str]] = None) -> str:
        return records_to_csv(records, columns)

    def ask(self, query: str, records: List[Property], filters: Optional[FilterSpec] = None) -> QueryAnswer:
        if self.use_api:
            payload = {
                "query": query,
                "data": _records_payload(records),
                "filters": filters.model_dump(mode="json", by_alias=True, exclude_none=True) if filters else None,
            }
            try:
                resp = self.session.post(f"{self.base_url}/api/ai/query", json=payload, timeout=30)
                self._raise_for_status(resp)
                return QueryAnswer.model_validate(resp.json())
            except requests.RequestException:
                self._enable_local_mode()
        return self.llm.ask(query, records, filters)  # type: ignore[union-attr]

    def _enable_local_mode(self) -> None:
        if self.ingestor is None:
            self.ingestor = CSVIngestor()
            self.llm = QueryLLM()
        self.use_api = False

    def _raise_for_status(self, response: Response) -> None:
        try:
            response.raise_for_status()
        except requests.RequestException:
            self._enable_local_mode()
            raise
