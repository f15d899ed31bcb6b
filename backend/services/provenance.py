"""Provenance helpers to track uploaded dataset hashes."""

from __future__ import annotations

from typing import Optional

from ..models.insights import Provenance
from ..utils.io import bytes_sha256


def dataset_provenance(raw: bytes, source_name: Optional[str] = None) -> Provenance:
    return Provenance(source_name=source_name, sha256=bytes_sha256(raw))


def provenance_label(provenance: Provenance) -> str:
    name = provenance.source_name or "upload.csv"
    if provenance.sha256:
        return f"{name}#sha256:{provenance.sha256[:12]}"
    return name
