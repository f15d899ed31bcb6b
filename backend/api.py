from datetime import date
from typing import Any

from fastapi import APIRouter, FastAPI, File, HTTPException, Response, UploadFile
from fastapi.encoders import jsonable_encoder

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional dependency
    load_dotenv = None

if load_dotenv is not None:
    from pathlib import Path

    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env", override=False)

from .db.csv_repo import CSVIngestor, IngestionError
from .models.insights import (
    ComparablesRequest,
    ComparablesResponse,
    ExportRequest,
    KPIRequest,
    KPIResponse,
    QueryAnswer,
    QueryRequest,
    RecordsRequest,
)
from .services.comps import estimate_value, find_comparables
from .services.export import records_to_csv
from .services.filters import apply_filters, filter_options
from .services.insights import market_insights
from .services.kpis import compute_filtered_kpis
from .services.query_llm import QueryLLM
from .utils.logging import get_logger

LOGGER = get_logger("api")

app = FastAPI(title="MLS Market Insights")
router = APIRouter(prefix="/api")
ingestor = CSVIngestor()
llm = QueryLLM()


def _as_of(raw: Any) -> date:
    if not raw:
        return date.today()
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        raise HTTPException(422, detail=f"invalid as_of date: {raw}")


# Sync handlers run in the FastAPI threadpool.
@router.post("/ingest")
def ingest(file: UploadFile = File(...)):
    raw = file.file.read()
    try:
        result = ingestor.process(raw, source_name=file.filename)
    except IngestionError as exc:
        raise HTTPException(422, detail={"reason": exc.reason, "message": exc.message})
    return jsonable_encoder(result, by_alias=True)


@router.post("/filter")
def filter_records(req: RecordsRequest):
    filtered = apply_filters(req.records, req.filters)
    payload = {"items": filtered, "total": len(filtered), "options": filter_options(req.records)}
    return jsonable_encoder(payload, by_alias=True)


@router.post("/kpis", response_model=KPIResponse)
def kpis(req: KPIRequest):
    filtered = apply_filters(req.records, req.filters)
    return compute_filtered_kpis(req.records, filtered, _as_of(req.as_of))


@router.post("/comparables", response_model=ComparablesResponse)
def comparables(req: ComparablesRequest):
    comps = find_comparables(req.subject, req.records, tolerance=req.tolerance, limit=req.limit)
    return ComparablesResponse(comparables=comps, valuation=estimate_value(req.subject, comps))


@router.post("/insights")
def insights(req: RecordsRequest):
    return jsonable_encoder(market_insights(apply_filters(req.records, req.filters)))


@router.post("/ai/query", response_model=QueryAnswer)
def ai_query(req: QueryRequest):
    return llm.ask(req.query, req.data, req.filters)


@router.post("/export")
def export(req: ExportRequest):
    filtered = apply_filters(req.records, req.filters)
    try:
        content = records_to_csv(filtered, req.columns)
    except ValueError as exc:
        raise HTTPException(400, detail=str(exc))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=filtered_properties.csv"},
    )


@router.get("/health")
def health(): return {"status": "ok", "llm": "gemini" if llm.available else "fallback"}


app.include_router(router)
