from __future__ import annotations

from phototagger.models.enums import ModelTier


class ClassificationError(Exception):
    """Base error for a failed classification attempt."""

    code = "CLASSIFICATION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ServiceError(ClassificationError):
    """The classification service failed on a tier (transport, status, reply)."""

    code = "SERVICE_UNAVAILABLE"

    def __init__(self, message: str, tier: ModelTier | None = None):
        super().__init__(message)
        self.tier = tier


class TagValidationError(ClassificationError, ValueError):
    """Reply parsed but broke the tagging rules; never retried on another tier."""

    code = "INVALID_CLASSIFICATION"


class PhotoDataError(ClassificationError):
    """Photo metadata is unusable (bad JSON or no image locator)."""

    code = "BAD_PHOTO_DATA"


class PhotoNotFoundError(ClassificationError):
    code = "PHOTO_NOT_FOUND"

    def __init__(self, photo_id: str):
        super().__init__(f"Photo not found: {photo_id}")
        self.photo_id = photo_id


__all__ = [
    "ClassificationError",
    "ServiceError",
    "TagValidationError",
    "PhotoDataError",
    "PhotoNotFoundError",
]
