from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)

from phototagger.models.base import Base

from .enums import ClassificationStatus, enum_values


class Classification(Base):
    __tablename__ = "photo_classifications"

    photo_id = Column(
        String,
        ForeignKey("photos.photo_id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Space-joined tags in category order; mirrored by the search index
    searchable_text = Column(Text, nullable=False, default="", server_default="")
    status = Column(
        Enum(
            ClassificationStatus,
            name="classification_status",
            values_callable=enum_values,
        ),
        nullable=False,
        default=ClassificationStatus.PENDING,
        server_default=ClassificationStatus.PENDING.value,
    )
    confidence = Column(Float)
    retry_count = Column(Integer, nullable=False, default=0, server_default="0")
    last_attempt_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    error_message = Column(Text)

    __table_args__ = (
        Index("ix_classification_status", "status"),
        Index(
            "ix_classification_completed",
            "completed_at",
            sqlite_where=text("completed_at IS NOT NULL"),
            postgresql_where=text("completed_at IS NOT NULL"),
        ),
        Index(
            "ix_classification_retryable",
            "status",
            "retry_count",
            sqlite_where=text("status IN ('pending', 'failed')"),
            postgresql_where=text("status IN ('pending', 'failed')"),
        ),
    )


__all__ = ["Classification"]
