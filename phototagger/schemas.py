from __future__ import annotations

from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from phototagger.models.enums import ModelTier, TagCategory
from phototagger.services.tag_store import normalize_tag

# Minimum number of tags per category; people is governed by the presence rule
MIN_TAGS = {
    TagCategory.CONTENT: 2,
    TagCategory.PEOPLE: 0,
    TagCategory.MOOD: 1,
    TagCategory.COLOR: 2,
    TagCategory.QUALITY: 2,
}

PRESENCE_TAGS = ("people", "no_people")
PROXIMITY_TAGS = ("close", "distant")


class ClassificationResult(BaseModel):
    """Validated reply of the classification service."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    content_tags: list[str]
    people_tags: list[str]
    mood_tags: list[str]
    color_tags: list[str]
    quality_tags: list[str]
    confidence: float = 0.0

    @field_validator(
        "content_tags", "people_tags", "mood_tags", "color_tags", "quality_tags"
    )
    @classmethod
    def _normalize(cls, tags: list[str]) -> list[str]:
        normalized: list[str] = []
        for raw in tags:
            tag = normalize_tag(raw)
            if tag and tag not in normalized:
                normalized.append(tag)
        return normalized

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value):
        # A missing score is tolerated; a wrong one is not
        if value is None:
            return 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Invalid confidence score: {value}")
        return value

    @model_validator(mode="after")
    def _business_rules(self) -> "ClassificationResult":
        people = self.people_tags
        presence = [tag for tag in PRESENCE_TAGS if tag in people]
        if len(presence) != 1:
            raise ValueError('people_tags must include exactly one of "people" or "no_people"')
        if presence[0] == "people":
            proximity = [tag for tag in PROXIMITY_TAGS if tag in people]
            if len(proximity) != 1:
                raise ValueError(
                    'people_tags with "people" must include exactly one of "close" or "distant"'
                )
        for category, minimum in MIN_TAGS.items():
            if len(self.tags_for(category)) < minimum:
                raise ValueError(
                    f"{category.value}_tags must have at least {minimum} tags"
                )
        return self

    def tags_for(self, category: TagCategory) -> list[str]:
        return getattr(self, f"{category.value}_tags")

    def tag_pairs(self) -> list[tuple[str, TagCategory]]:
        """All tags in category order; a name repeated across categories keeps its first."""
        seen: set[str] = set()
        pairs: list[tuple[str, TagCategory]] = []
        for category in TagCategory:
            for tag in self.tags_for(category):
                if tag not in seen:
                    seen.add(tag)
                    pairs.append((tag, category))
        return pairs

    @property
    def searchable_text(self) -> str:
        return " ".join(tag for tag, _ in self.tag_pairs())


class TierResult(NamedTuple):
    result: ClassificationResult
    tier: ModelTier


class BatchStats(BaseModel):
    processed: int = 0
    successful: int = 0
    failed: int = 0


class ErrorResponse(BaseModel):
    code: str
    message: str


class ClassificationDetail(BaseModel):
    photo_id: str
    status: str
    confidence: float | None = None
    retry_count: int = 0
    last_attempt_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    searchable_text: str = ""
    tags: dict[str, list[str]] = {}


class ClassificationSummary(BaseModel):
    total_photos: int = 0
    classified: int = 0
    pending: int = 0
    processing: int = 0
    failed: int = 0


__all__ = [
    "ClassificationResult",
    "TierResult",
    "BatchStats",
    "ErrorResponse",
    "ClassificationDetail",
    "ClassificationSummary",
]
