from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text

from phototagger.models.base import Base


class Photo(Base):
    """Upstream image record; read-only for the classification pipeline."""

    __tablename__ = "photos"

    photo_id = Column(String, primary_key=True)
    data_json = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


Index("ix_photos_created_at_desc", Photo.created_at.desc())


__all__ = ["Photo"]
