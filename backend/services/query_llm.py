"""Natural-language questions over the record set, answered by Gemini or locally."""

from __future__ import annotations

import json
import os
import re
from collections import Counter
from typing import Any, Dict, Optional, Sequence

try:
    import google.generativeai as genai
except Exception:  # pragma: no cover - optional dependency
    genai = None

from pydantic import ValidationError

from ..models.insights import DataSummary, QueryAnswer
from ..models.property import FilterSpec, Property
from ..utils.logging import get_logger
from .kpis import average, median

LOGGER = get_logger("services.query_llm")

_DOM_WORD = re.compile(r"\bdom\b")

LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "20"))

SYSTEM_PROMPT = """You are a real estate data analyst. Analyze the provided real estate data and answer user questions with accurate, specific information.
Use ONLY the data summary below. Do not fabricate numbers.

Data summary:
{summary_json}

Active filters:
{filters_json}

Return STRICT JSON with keys:
{"answer": "a clear, conversational response", "data": {relevant calculations or statistics}}
When providing statistics, always reference the actual data provided. Be specific about counts, averages, and ranges."""


def summarize_records(records: Sequence[Property]) -> DataSummary:
    """Compact statistical context sent to the model instead of every record."""

    if not records:
        return DataSummary()
    prices = [p.price for p in records]
    statuses = Counter(p.status.value for p in records)
    bedrooms = Counter(_beds_label(p.beds) for p in records)
    return DataSummary(
        total_properties=len(records),
        average_price=average(prices),
        price_range={"min": min(prices), "max": max(prices)},
        status_distribution=dict(sorted(statuses.items())),
        bedroom_distribution=dict(sorted(bedrooms.items(), key=lambda item: float(item[0]))),
        cities=sorted({p.city for p in records}),
        property_types=sorted({p.property_type for p in records}),
    )


def _beds_label(beds: float) -> str:
    return str(int(beds)) if float(beds).is_integer() else str(beds)


def _money(value: float) -> str:
    return f"${round(value):,}"


def local_answer(query: str, records: Sequence[Property], reason: Optional[str] = None) -> QueryAnswer:
    """Deterministic keyword-routed answer used whenever the model is unavailable."""

    text = query.lower()

    def _answer(message: str, data: Dict[str, Any]) -> QueryAnswer:
        return QueryAnswer(answer=message, data=data, source="fallback", fallback_reason=reason)

    if not records:
        return _answer("No properties are loaded yet. Upload a CSV export to ask questions about it.", {"count": 0})

    if "average price" in text or "median price" in text:
        prices = [p.price for p in records]
        avg, mid = average(prices), median(prices)
        return _answer(
            f"Based on your data, the average price is {_money(avg)} and the median price is {_money(mid)}.",
            {"count": len(records), "average": round(avg), "median": round(mid)},
        )

    if "days on market" in text or _DOM_WORD.search(text):
        dom = [p.days_on_market for p in records if p.days_on_market is not None]
        if not dom:
            return _answer("None of the loaded properties include days-on-market data.", {"count": 0})
        avg = average(dom)
        return _answer(
            f"The average days on market is {round(avg)} days based on {len(dom)} properties with DOM data.",
            {"count": len(dom), "averageDom": round(avg), "medianDom": median(dom)},
        )

    if "bedroom" in text or "bed" in text:
        counts = summarize_records(records).bedroom_distribution
        most_common, frequency = max(counts.items(), key=lambda item: (item[1], -float(item[0])))
        return _answer(
            f"Your data contains properties with {', '.join(counts)} bedrooms. "
            f"The most common is {most_common} bedrooms with {frequency} properties.",
            dict(counts),
        )

    if "sold" in text or "active" in text or "status" in text:
        counts = summarize_records(records).status_distribution
        listing = ", ".join(f"{count} {status}" for status, count in counts.items())
        return _answer(f"Status breakdown of {len(records)} properties: {listing}.", dict(counts))

    prices = [p.price for p in records]
    return _answer(
        f"I found {len(records)} properties in your dataset. The price range is "
        f"{_money(min(prices))} to {_money(max(prices))}. Try asking more specific questions "
        "about prices, bedrooms, or market metrics.",
        {"totalProperties": len(records), "minPrice": min(prices), "maxPrice": max(prices)},
    )


class QueryLLM:
    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None, timeout: float = LLM_TIMEOUT_S) -> None:
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        preferred = model or os.getenv("LLM_MODEL") or "gemini-2.5-flash"
        # normalize: strip 'models/' prefix if present
        self.model_name = preferred.split("/", 1)[-1] if preferred.startswith("models/") else preferred
        self.timeout = timeout
        self._model = None
        self._unavailable = "no_api_key" if not self.api_key else None
        if self.api_key and genai is None:
            self._unavailable = "sdk_missing"
        if self.api_key and genai is not None:
            try:
                genai.configure(api_key=self.api_key)
                self._model = genai.GenerativeModel(self.model_name)
            except Exception as exc:
                LOGGER.warning("Failed to initialise Gemini client: %s", exc)
                self._model = None
                self._unavailable = "client_init_failed"

    @property
    def available(self) -> bool:
        return self._model is not None

    def ask(self, query: str, records: Sequence[Property], filters: Optional[FilterSpec] = None) -> QueryAnswer:
        """Answer ``query`` remotely, or locally on any failure. Never raises."""

        if not self._model:
            return local_answer(query, records, reason=self._unavailable or "model_unavailable")
        summary = summarize_records(records)
        prompt = (
            SYSTEM_PROMPT.replace("{summary_json}", summary.model_dump_json(by_alias=True, indent=2))
            .replace("{filters_json}", filters.model_dump_json(by_alias=True, exclude_none=True) if filters else "{}")
            + "\n\nQuestion: "
            + query
        )
        try:
            response = self._model.generate_content(
                prompt,
                generation_config={"temperature": 0.1, "response_mime_type": "application/json"},
                request_options={"timeout": self.timeout},
            )
            payload = self._load_json(self._extract_text(response))
            answer = payload.get("answer")
            if not isinstance(answer, str) or not answer.strip():
                raise ValueError("Missing answer in Gemini payload")
        except Exception as exc:
            LOGGER.warning("Gemini query failed: %s", exc)
            return local_answer(query, records, reason=f"remote_error: {type(exc).__name__}")

        data = payload.get("data")
        return QueryAnswer(
            answer=answer.strip(),
            data=data if isinstance(data, dict) else {},
            filters=self._echoed_filters(payload.get("filters")),
            source="remote",
        )

    def _echoed_filters(self, raw: Any) -> Optional[FilterSpec]:
        if not isinstance(raw, dict):
            return None
        try:
            return FilterSpec.model_validate(raw)
        except ValidationError:
            LOGGER.debug("ignoring invalid filters echoed by model: %s", raw)
            return None

    def _extract_text(self, response: Any) -> str:
        if hasattr(response, "text") and response.text:
            return response.text
        if hasattr(response, "candidates"):
            for candidate in response.candidates:
                if candidate.content.parts:
                    return "".join(part.text for part in candidate.content.parts if getattr(part, "text", None))
        raise ValueError("Empty response from Gemini")

    def _load_json(self, text: str) -> Dict[str, Any]:
        text = text.strip()
        start = text.find("{")
        end = text.rfind("}")
        if start >= 0 and end >= 0:
            text = text[start : end + 1]
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Gemini payload is not a JSON object")
        return data


__all__ = ["QueryLLM", "local_answer", "summarize_records", "LLM_TIMEOUT_S"]
