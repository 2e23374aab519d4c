from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)

from phototagger.models.base import Base

from .enums import TagCategory, enum_values


class Tag(Base):
    """Dictionary entry for a normalized tag name."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    category = Column(
        Enum(TagCategory, name="tag_category", values_callable=enum_values),
        nullable=False,
    )
    usage_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_tags_category", "category"),
    )


Index("ix_tags_usage", Tag.usage_count.desc())


class PhotoTag(Base):
    __tablename__ = "photo_tags"

    photo_id = Column(
        String,
        ForeignKey("photo_classifications.photo_id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)

    __table_args__ = (Index("ix_photo_tags_tag", "tag_id"),)


__all__ = ["Tag", "PhotoTag"]
