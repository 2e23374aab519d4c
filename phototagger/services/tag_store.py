"""Normalized tag dictionary with per-tag usage counters.

``usage_count`` always equals the number of ``photo_tags`` rows pointing at
the tag: links are only created through :func:`link_tag` and only removed
through :func:`release_tags`.
"""

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from phototagger.models import PhotoTag, Tag, TagCategory

_SEPARATORS = re.compile(r"[\s\-]+")
_INVALID = re.compile(r"[^\w]+")
_REPEATED = re.compile(r"_{2,}")


def normalize_tag(raw: str) -> str:
    """Lowercase, underscore-separated form used as tag identity."""
    value = _SEPARATORS.sub("_", raw.strip().lower())
    value = _INVALID.sub("", value)
    return _REPEATED.sub("_", value).strip("_")


def dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upserts are not supported for {dialect}")


def upsert_tag(db: Session, name: str, category: TagCategory, now: datetime) -> int:
    """Insert ``name`` with ``usage_count = 1`` or bump its counter; return id."""
    insert = dialect_insert(db)
    stmt = (
        insert(Tag)
        .values(name=name, category=category, usage_count=1, created_at=now)
        .on_conflict_do_update(
            index_elements=[Tag.name],
            set_={"usage_count": Tag.usage_count + 1},
        )
        .returning(Tag.id)
    )
    return db.execute(stmt).scalar_one()


def link_tag(db: Session, photo_id: str, name: str, category: TagCategory, now: datetime) -> int:
    tag_id = upsert_tag(db, name, category, now)
    db.execute(PhotoTag.__table__.insert().values(photo_id=photo_id, tag_id=tag_id))
    return tag_id


def release_tags(db: Session, photo_id: str) -> int:
    """Unlink every tag from ``photo_id`` and decrement their counters."""
    linked = select(PhotoTag.tag_id).where(PhotoTag.photo_id == photo_id)
    db.execute(
        update(Tag)
        .where(Tag.id.in_(linked))
        .values(usage_count=Tag.usage_count - 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(
        delete(PhotoTag)
        .where(PhotoTag.photo_id == photo_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def tags_by_category(db: Session, photo_id: str) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {category.value: [] for category in TagCategory}
    rows = db.execute(
        select(Tag.name, Tag.category)
        .join(PhotoTag, PhotoTag.tag_id == Tag.id)
        .where(PhotoTag.photo_id == photo_id)
        .order_by(Tag.category, Tag.name)
    )
    for name, category in rows:
        grouped[TagCategory(category).value].append(name)
    return grouped


def top_tags(
    db: Session, category: TagCategory | None = None, limit: int = 20
) -> list[dict]:
    stmt = select(Tag.name, Tag.category, Tag.usage_count).where(Tag.usage_count > 0)
    if category is not None:
        stmt = stmt.where(Tag.category == category)
    stmt = stmt.order_by(Tag.usage_count.desc(), Tag.name).limit(limit)
    return [
        {"name": name, "category": TagCategory(cat).value, "usage_count": count}
        for name, cat, count in db.execute(stmt)
    ]


def reference_counts(db: Session) -> dict[str, tuple[int, int]]:
    """Map tag name to ``(usage_count, linked photos)`` for consistency checks."""
    linked = (
        select(PhotoTag.tag_id, func.count().label("refs"))
        .group_by(PhotoTag.tag_id)
        .subquery()
    )
    rows = db.execute(
        select(Tag.name, Tag.usage_count, func.coalesce(linked.c.refs, 0))
        .outerjoin(linked, linked.c.tag_id == Tag.id)
    )
    return {name: (usage, refs) for name, usage, refs in rows}


__all__ = [
    "normalize_tag",
    "dialect_insert",
    "upsert_tag",
    "link_tag",
    "release_tags",
    "tags_by_category",
    "top_tags",
    "reference_counts",
]
