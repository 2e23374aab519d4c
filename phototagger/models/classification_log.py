from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Float, Index, Integer, String, Text

from phototagger.models.base import Base

from .enums import EventKind, ModelTier, enum_values


class ClassificationLog(Base):
    """Append-only audit trail of classification events."""

    __tablename__ = "classification_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    photo_id = Column(String, nullable=False)
    event_kind = Column(
        Enum(EventKind, name="classification_event_kind", values_callable=enum_values),
        nullable=False,
    )
    tier_used = Column(
        Enum(ModelTier, name="model_tier", values_callable=enum_values),
        nullable=True,
    )
    error_message = Column(Text)
    duration_ms = Column(Integer)
    confidence = Column(Float)

    __table_args__ = (
        Index("ix_logs_timestamp", "timestamp"),
        Index("ix_logs_photo", "photo_id"),
        Index("ix_logs_event", "event_kind"),
    )


__all__ = ["ClassificationLog"]
