"""Tolerant coercion of raw CSV cells into typed values.

Every helper here is total: malformed input degrades to ``None`` so that the
row transformer can decide what a missing value means.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

_NUMBER_NOISE = re.compile(r"[$,\s]")
# Dates must carry a four-digit year.
_YEAR = re.compile(r"\d{4}")


def _blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and math.isnan(v):
        return True
    return str(v).strip() == ""


def to_number(v: Any) -> Optional[float]:
    if _blank(v):
        return None
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        number = float(v)
    else:
        try:
            number = float(_NUMBER_NOISE.sub("", str(v)))
        except (TypeError, ValueError):
            return None
    if not math.isfinite(number):
        return None
    return number


def to_int(v: Any) -> Optional[int]:
    number = to_number(v)
    if number is None:
        return None
    return int(round(number))


def to_date(v: Any) -> Optional[str]:
    if _blank(v):
        return None
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    text = str(v).strip()
    if not _YEAR.search(text):
        return None
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date().isoformat()


def to_text(v: Any) -> Optional[str]:
    if _blank(v):
        return None
    return str(v).strip()


def coerce(raw: Any, kind: str) -> Any:
    """Convert a raw cell into ``kind`` ("number", "date" or "text")."""

    if kind == "number":
        return to_number(raw)
    if kind == "date":
        return to_date(raw)
    if kind == "text":
        return to_text(raw)
    raise ValueError(f"Unknown coercion kind: {kind}")


__all__ = ["coerce", "to_number", "to_int", "to_date", "to_text"]
