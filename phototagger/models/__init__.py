from .base import Base
from .enums import ClassificationStatus, EventKind, ModelTier, TagCategory
from .photo import Photo
from .classification import Classification
from .tag import PhotoTag, Tag
from .classification_log import ClassificationLog

__all__ = [
    "Base",
    "Photo",
    "Classification",
    "Tag",
    "PhotoTag",
    "ClassificationLog",
    "ClassificationStatus",
    "EventKind",
    "ModelTier",
    "TagCategory",
]
