from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from phototagger import db as db_module
from phototagger.exceptions import ClassificationError, PhotoNotFoundError
from phototagger.models import TagCategory
from phototagger.schemas import (
    BatchStats,
    ClassificationDetail,
    ClassificationSummary,
    ErrorResponse,
)
from phototagger.search import search_photos
from phototagger.services import orchestrator, queries, tag_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    err = ErrorResponse(code=code, message=message)
    return JSONResponse(status_code=status_code, content=err.model_dump())


@router.post("/classifications/run", response_model=BatchStats)
async def run_classification(limit: int | None = Query(None, ge=1, le=50)):
    """Manual trigger for the periodic batch; ``limit`` defaults to the configured batch size."""
    try:
        return await asyncio.to_thread(orchestrator.run_batch, limit)
    except Exception as exc:
        logger.exception("Classification batch failed")
        return _error(503, "BATCH_FAILED", str(exc) or "Classification batch failed")


@router.get("/classifications/stats", response_model=ClassificationSummary)
async def classification_summary() -> ClassificationSummary:
    def _db() -> ClassificationSummary:
        with db_module.SessionLocal() as db:
            return queries.classification_stats(db)

    return await asyncio.to_thread(_db)


@router.get("/classifications/{photo_id}", response_model=ClassificationDetail)
async def get_classification(photo_id: str):
    def _db() -> ClassificationDetail | None:
        with db_module.SessionLocal() as db:
            return queries.classification_detail(db, photo_id)

    detail = await asyncio.to_thread(_db)
    if detail is None:
        return _error(404, "NOT_FOUND", f"Photo not found: {photo_id}")
    return detail


@router.post("/classifications/{photo_id}", response_model=ClassificationDetail)
async def classify_photo(photo_id: str, force: bool = False):
    """Classify a single photo now; ``force`` re-runs completed ones."""
    try:
        return await asyncio.to_thread(
            orchestrator.classify_photo_by_id, photo_id, force=force
        )
    except PhotoNotFoundError as exc:
        return _error(404, exc.code, exc.message)
    except ClassificationError as exc:
        return _error(502, exc.code, exc.message)
    except Exception as exc:
        logger.exception("Classification error", extra={"photo_id": photo_id})
        return _error(502, "CLASSIFICATION_ERROR", str(exc) or "Classification failed")


@router.get("/search")
async def search(q: str = Query(..., min_length=1), limit: int = Query(50, ge=1, le=200)):
    def _db() -> list[str]:
        with db_module.SessionLocal() as db:
            return search_photos(db, q, limit)

    return {"query": q, "photo_ids": await asyncio.to_thread(_db)}


@router.get("/tags")
async def list_tags(category: TagCategory | None = None, limit: int = Query(20, ge=1, le=200)):
    def _db() -> list[dict]:
        with db_module.SessionLocal() as db:
            return tag_store.top_tags(db, category, limit)

    return {"tags": await asyncio.to_thread(_db)}
