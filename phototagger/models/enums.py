from __future__ import annotations

import enum


class ClassificationStatus(str, enum.Enum):
    """Lifecycle of a photo classification.

    ``PENDING`` is never written by the pipeline itself: a photo without a
    classification row is reported as pending by :meth:`of`. The only
    persisted pending rows come from an explicit reset.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def of(cls, row) -> "ClassificationStatus":
        if row is None:
            return cls.PENDING
        return cls(getattr(row, "status", row))


class TagCategory(str, enum.Enum):
    # Declaration order is the order tags appear in ``searchable_text``
    CONTENT = "content"
    PEOPLE = "people"
    MOOD = "mood"
    COLOR = "color"
    QUALITY = "quality"


class EventKind(str, enum.Enum):
    ATTEMPT = "attempt"
    SUCCESS = "success"
    ERROR = "error"
    FALLBACK = "fallback"


class ModelTier(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]


__all__ = [
    "ClassificationStatus",
    "TagCategory",
    "EventKind",
    "ModelTier",
    "enum_values",
]
