"""CSV ingestion pipeline: parse, detect columns, transform rows, collect diagnostics."""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional, Set

from ..models.insights import IngestionResult
from ..models.property import Property
from ..services.provenance import dataset_provenance, provenance_label
from ..utils.io import UnreadableFileError, read_delimited
from ..utils.logging import get_logger
from .column_map import detect_mapping, mapping_warnings
from .mappers import new_property_id, transform_row

LOGGER = get_logger("db.csv_repo")

MAX_DIAGNOSTICS = int(os.getenv("MAX_DIAGNOSTICS", "5"))
ID_RETRIES = 8


class IngestionError(ValueError):
    """File-level ingestion failure with a user-facing message.

    ``reason`` is one of ``unreadable``, ``no_columns`` or ``no_records``.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class CSVIngestor:
    def __init__(
        self,
        max_diagnostics: int = MAX_DIAGNOSTICS,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.max_diagnostics = max_diagnostics
        self.id_factory = id_factory or new_property_id

    def process(self, raw: bytes, source_name: Optional[str] = None) -> IngestionResult:
        try:
            table = read_delimited(raw)
        except UnreadableFileError as exc:
            LOGGER.warning("csv_unreadable source=%s error=%s", source_name, exc)
            raise IngestionError(
                "unreadable",
                f"Failed to parse CSV file: {exc}. The file may be corrupted or have encoding issues.",
            ) from exc

        headers = table.headers
        if not headers:
            raise IngestionError("unreadable", "CSV file appears to be empty or corrupted (no header row).")

        mapping = detect_mapping(headers)
        LOGGER.info("column_mapping source=%s mapping=%s", source_name, mapping)
        if not mapping:
            raise IngestionError(
                "no_columns",
                "No recognizable real-estate columns found. Expected headers such as price, beds, baths or sqft.",
            )

        diagnostics: List[str] = list(mapping_warnings(mapping))
        row_messages: List[str] = []
        if table.malformed_lines:
            row_messages.append(f"Skipped {len(table.malformed_lines)} malformed line(s) with extra fields.")

        records: List[Property] = []
        seen_ids: Set[str] = set()
        rejected = 0
        rows: List[Dict[str, str]] = table.frame.to_dict("records")
        for index, row in enumerate(rows):
            result = transform_row(row, mapping, id_factory=self._unique_id(seen_ids))
            if result.record is None:
                rejected += 1
                LOGGER.debug("row_rejected row=%d reason=%s", index + 1, result.reason)
                if len(row_messages) < self.max_diagnostics:
                    row_messages.append(f"Row {index + 1}: {result.reason}")
                continue
            records.append(result.record)

        diagnostics.extend(row_messages)
        if rejected > self.max_diagnostics:
            diagnostics.append(f"{rejected} rows were skipped in total.")

        provenance = dataset_provenance(raw, source_name)
        LOGGER.info(
            "csv_ingested source=%s rows=%d records=%d rejected=%d",
            provenance_label(provenance),
            len(rows),
            len(records),
            rejected,
        )
        if not records:
            raise IngestionError(
                "no_records",
                "No valid property records found. Please check your CSV format and required columns.",
            )

        return IngestionResult(
            records=records,
            mapping=mapping,
            diagnostics=diagnostics,
            total_rows=len(rows),
            rejected_rows=rejected,
            provenance=provenance,
        )

    def _unique_id(self, seen: Set[str]) -> Callable[[], str]:
        def factory() -> str:
            candidate = self.id_factory()
            attempts = 1
            while candidate in seen and attempts < ID_RETRIES:
                candidate = self.id_factory()
                attempts += 1
            if candidate in seen:
                LOGGER.warning("id_factory_exhausted duplicate=%s attempts=%d", candidate, attempts)
                while candidate in seen:
                    candidate = new_property_id()
            seen.add(candidate)
            return candidate

        return factory


def process_csv(raw: bytes, source_name: Optional[str] = None) -> IngestionResult:
    return CSVIngestor().process(raw, source_name=source_name)


__all__ = ["CSVIngestor", "IngestionError", "MAX_DIAGNOSTICS", "process_csv"]
