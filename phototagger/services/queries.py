"""Selection, claiming and read models for photo classifications."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.orm import Session

from phototagger.models import Classification, ClassificationStatus, Photo
from phototagger.schemas import ClassificationDetail, ClassificationSummary
from phototagger.services.tag_store import dialect_insert, tags_by_category

DEFAULT_STALE_AFTER = timedelta(minutes=5)
DEFAULT_MAX_RETRIES = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    if not value:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _retryable(now: datetime, stale_after: timedelta, max_retries: int):
    """Existing rows that may be (re)claimed."""
    return or_(
        Classification.status == ClassificationStatus.PENDING,
        and_(
            Classification.status == ClassificationStatus.FAILED,
            Classification.retry_count < max_retries,
        ),
        and_(
            Classification.status == ClassificationStatus.PROCESSING,
            Classification.last_attempt_at < now - stale_after,
        ),
    )


def select_eligible(
    db: Session,
    limit: int,
    *,
    now: datetime | None = None,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[Photo]:
    """Newest photos that were never classified, failed under the cap, or stalled."""
    now = now or utcnow()
    stmt = (
        select(Photo)
        .outerjoin(Classification, Classification.photo_id == Photo.photo_id)
        .where(
            or_(
                Classification.photo_id.is_(None),
                _retryable(now, stale_after, max_retries),
            )
        )
        .order_by(Photo.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def claim_photo(
    db: Session,
    photo_id: str,
    *,
    now: datetime | None = None,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> int | None:
    """Atomically mark ``photo_id`` as processing and bump its retry counter.

    A single upsert whose update branch only fires while the existing row is
    still eligible, so of two overlapping runs exactly one wins. Returns the
    new ``retry_count`` or ``None`` when the photo is no longer claimable.
    Commits on success.
    """
    now = now or utcnow()
    insert = dialect_insert(db)
    stmt = (
        insert(Classification)
        .values(
            photo_id=photo_id,
            searchable_text="",
            status=ClassificationStatus.PROCESSING,
            last_attempt_at=now,
            retry_count=1,
        )
        .on_conflict_do_update(
            index_elements=[Classification.photo_id],
            set_={
                "status": ClassificationStatus.PROCESSING,
                "last_attempt_at": now,
                "retry_count": Classification.retry_count + 1,
            },
            where=_retryable(now, stale_after, max_retries),
        )
        .returning(Classification.retry_count)
    )
    retry_count = db.execute(stmt).scalar_one_or_none()
    db.commit()
    return retry_count


def get_photo(db: Session, photo_id: str) -> Photo | None:
    return db.get(Photo, photo_id)


def get_classification(db: Session, photo_id: str) -> Classification | None:
    return db.get(Classification, photo_id)


def classification_status(db: Session, photo_id: str) -> ClassificationStatus:
    return ClassificationStatus.of(get_classification(db, photo_id))


def classification_detail(db: Session, photo_id: str) -> ClassificationDetail | None:
    """Classification record with its tags grouped by category.

    A known photo without a row is reported as pending; ``None`` means the
    photo itself is unknown.
    """
    row = get_classification(db, photo_id)
    if row is None:
        if get_photo(db, photo_id) is None:
            return None
        return ClassificationDetail(
            photo_id=photo_id,
            status=ClassificationStatus.of(None).value,
            tags=tags_by_category(db, photo_id),
        )
    return ClassificationDetail(
        photo_id=row.photo_id,
        status=ClassificationStatus.of(row).value,
        confidence=row.confidence,
        retry_count=row.retry_count,
        last_attempt_at=ensure_utc(row.last_attempt_at),
        completed_at=ensure_utc(row.completed_at),
        error_message=row.error_message,
        searchable_text=row.searchable_text,
        tags=tags_by_category(db, photo_id),
    )


def reset_classification(db: Session, photo_id: str) -> bool:
    """Make a photo eligible again regardless of its retry history."""
    result = db.execute(
        update(Classification)
        .where(Classification.photo_id == photo_id)
        .values(
            status=ClassificationStatus.PENDING,
            retry_count=0,
            error_message=None,
        )
    )
    db.commit()
    return bool(result.rowcount)


def classification_stats(db: Session) -> ClassificationSummary:
    status = Classification.status

    def _count(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = db.execute(
        select(
            func.count(Photo.photo_id),
            _count(status == ClassificationStatus.COMPLETED),
            _count(or_(Classification.photo_id.is_(None), status == ClassificationStatus.PENDING)),
            _count(status == ClassificationStatus.PROCESSING),
            _count(status == ClassificationStatus.FAILED),
        )
        .select_from(Photo)
        .outerjoin(Classification, Classification.photo_id == Photo.photo_id)
    ).one()
    return ClassificationSummary(
        total_photos=row[0],
        classified=row[1],
        pending=row[2],
        processing=row[3],
        failed=row[4],
    )


__all__ = [
    "utcnow",
    "ensure_utc",
    "select_eligible",
    "claim_photo",
    "get_photo",
    "get_classification",
    "classification_status",
    "classification_detail",
    "reset_classification",
    "classification_stats",
]
