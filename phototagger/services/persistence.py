"""Write side of the classification pipeline.

``save_classification`` is one unit of work: the classification row, the tag
dictionary and the photo/tag links either all reflect the new result or none
of them do. The search index follows ``searchable_text`` on its own (see
:mod:`phototagger.search`).
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from phototagger.exceptions import ClassificationError
from phototagger.models import Classification, ClassificationStatus
from phototagger.schemas import ClassificationResult
from phototagger.services import tag_store
from phototagger.services.queries import utcnow

logger = logging.getLogger(__name__)


def save_classification(
    db: Session,
    photo_id: str,
    result: ClassificationResult,
    *,
    now: datetime | None = None,
) -> None:
    """Persist a validated result and rewrite the photo's tag links."""
    now = now or utcnow()
    try:
        updated = db.execute(
            update(Classification)
            .where(Classification.photo_id == photo_id)
            .values(
                status=ClassificationStatus.COMPLETED,
                confidence=result.confidence,
                completed_at=now,
                searchable_text=result.searchable_text,
                error_message=None,
            )
        )
        if not updated.rowcount:
            raise ClassificationError(f"Photo {photo_id} was not claimed")

        released = tag_store.release_tags(db, photo_id)
        for name, category in result.tag_pairs():
            tag_store.link_tag(db, photo_id, name, category, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.debug(
        "Saved %s tags (replaced %s)",
        len(result.tag_pairs()),
        released,
        extra={"photo_id": photo_id},
    )


def save_failure(db: Session, photo_id: str, message: str) -> None:
    """Mark the attempt failed; tag links are left as they are."""
    try:
        db.execute(
            update(Classification)
            .where(Classification.photo_id == photo_id)
            .values(status=ClassificationStatus.FAILED, error_message=message)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


__all__ = ["save_classification", "save_failure"]
