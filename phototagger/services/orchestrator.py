"""Batch driver for photo classification.

Photos are processed one after another. Each photo is claimed before the
external call so that overlapping runs never pay for the same photo twice;
an error on one photo is recorded and the batch moves on.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta

from phototagger import db as db_module
from phototagger.config import Settings
from phototagger.exceptions import PhotoNotFoundError
from phototagger.metrics import (
    classify_batch_seconds,
    classify_batch_size,
    classify_claim_conflict_total,
    classify_failure_total,
    classify_success_total,
)
from phototagger.models import EventKind, Photo
from phototagger.schemas import BatchStats, ClassificationDetail
from phototagger.services import classifier, persistence, queries
from phototagger.services.events import (
    ClassificationEvent,
    DbEventRecorder,
    EventRecorder,
)
from phototagger.services.photo_url import photo_url, raw_path_of

logger = logging.getLogger(__name__)

settings = Settings()


def _stale_after() -> timedelta:
    return timedelta(minutes=settings.classify_stale_minutes)


def _claim(photo_id: str, now: datetime | None) -> int | None:
    with db_module.SessionLocal() as db:
        return queries.claim_photo(
            db,
            photo_id,
            now=now,
            stale_after=_stale_after(),
            max_retries=settings.classify_max_retries,
        )


def _process(photo: Photo, recorder: EventRecorder) -> None:
    """Classify an already claimed photo and store the result."""
    start = time.perf_counter()
    recorder.record(ClassificationEvent(kind=EventKind.ATTEMPT, photo_id=photo.photo_id))

    url = photo_url(
        raw_path_of(photo.data_json),
        width=settings.photo_width,
        quality=settings.photo_quality,
    )
    logger.debug("Generated photo URL: %s", url, extra={"photo_id": photo.photo_id})

    outcome = classifier.classify(url, recorder=recorder, photo_id=photo.photo_id)

    with db_module.SessionLocal() as db:
        persistence.save_classification(db, photo.photo_id, outcome.result)

    duration_ms = int((time.perf_counter() - start) * 1000)
    recorder.record(
        ClassificationEvent(
            kind=EventKind.SUCCESS,
            photo_id=photo.photo_id,
            tier=outcome.tier,
            duration_ms=duration_ms,
            confidence=outcome.result.confidence,
        )
    )


def _fail(photo_id: str, exc: Exception, recorder: EventRecorder) -> None:
    message = str(exc) or exc.__class__.__name__
    logger.exception("Failed to classify photo", extra={"photo_id": photo_id})
    recorder.record(
        ClassificationEvent(kind=EventKind.ERROR, photo_id=photo_id, error=message)
    )
    try:
        with db_module.SessionLocal() as db:
            persistence.save_failure(db, photo_id, message)
    except Exception:  # noqa: BLE001 - next run reclaims it as stale
        logger.exception("Failed to save classification error", extra={"photo_id": photo_id})


def run_batch(
    limit: int | None = None,
    *,
    recorder: EventRecorder | None = None,
    now: datetime | None = None,
) -> BatchStats:
    """Classify up to ``limit`` eligible photos and report counts.

    Only a failure to select the batch aborts the run. A ``limit`` below 1
    raises :class:`ValueError`.
    """
    limit = settings.classify_batch_limit if limit is None else limit
    if limit < 1:
        raise ValueError(f"Batch limit must be at least 1, got {limit}")
    recorder = recorder or DbEventRecorder()
    stats = BatchStats()
    started = time.perf_counter()

    with db_module.SessionLocal() as db:
        photos = queries.select_eligible(
            db,
            limit,
            now=now,
            stale_after=_stale_after(),
            max_retries=settings.classify_max_retries,
        )
    classify_batch_size.set(len(photos))

    if not photos:
        classify_batch_seconds.observe(time.perf_counter() - started)
        logger.info("No photos to classify")
        return stats
    logger.info("Found %s photos to classify", len(photos), extra={"limit": limit})

    for photo in photos:
        try:
            claimed = _claim(photo.photo_id, now)
        except Exception as exc:  # noqa: BLE001
            stats.processed += 1
            stats.failed += 1
            classify_failure_total.inc()
            _fail(photo.photo_id, exc, recorder)
            continue
        if claimed is None:
            classify_claim_conflict_total.inc()
            logger.info("Photo claimed by another run", extra={"photo_id": photo.photo_id})
            continue

        stats.processed += 1
        try:
            _process(photo, recorder)
        except Exception as exc:  # noqa: BLE001 - one bad photo must not stop the batch
            stats.failed += 1
            classify_failure_total.inc()
            _fail(photo.photo_id, exc, recorder)
        else:
            stats.successful += 1
            classify_success_total.inc()

    classify_batch_seconds.observe(time.perf_counter() - started)
    logger.info(
        "Classification batch completed",
        extra={
            "processed": stats.processed,
            "successful": stats.successful,
            "failed": stats.failed,
        },
    )
    return stats


def classify_photo_by_id(
    photo_id: str,
    *,
    force: bool = False,
    recorder: EventRecorder | None = None,
) -> ClassificationDetail:
    """Classify one specific photo, e.g. from a manual test view.

    With ``force`` the retry history is reset first so completed or
    exhausted photos are classified again. A photo that is already completed
    (without ``force``) or currently owned by another run is returned as is.
    Errors are stored like in a batch run and then re-raised.
    """
    recorder = recorder or DbEventRecorder()

    with db_module.SessionLocal() as db:
        photo = queries.get_photo(db, photo_id)
        if photo is None:
            raise PhotoNotFoundError(photo_id)
        db.expunge(photo)
        if force:
            queries.reset_classification(db, photo_id)

    claimed = _claim(photo_id, None)
    if claimed is not None:
        try:
            _process(photo, recorder)
        except Exception as exc:
            classify_failure_total.inc()
            _fail(photo_id, exc, recorder)
            raise
        classify_success_total.inc()
    else:
        logger.info("Photo not claimable, returning current state", extra={"photo_id": photo_id})

    with db_module.SessionLocal() as db:
        detail = queries.classification_detail(db, photo_id)
    if detail is None:
        raise PhotoNotFoundError(photo_id)
    return detail


__all__ = ["run_batch", "classify_photo_by_id"]
