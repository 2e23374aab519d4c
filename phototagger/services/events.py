"""Classification event recording.

Events go to the process log and, for :class:`DbEventRecorder`, to the
``classification_logs`` table. Recording never raises: a broken audit sink
must not turn a good classification into a failed one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Protocol

from phototagger import db as db_module
from phototagger.models import ClassificationLog, EventKind, ModelTier
from phototagger.services.queries import utcnow

logger = logging.getLogger(__name__)

_LEVELS = {
    EventKind.ATTEMPT: logging.INFO,
    EventKind.SUCCESS: logging.INFO,
    EventKind.FALLBACK: logging.WARNING,
    EventKind.ERROR: logging.ERROR,
}

_MESSAGES = {
    EventKind.ATTEMPT: "Classification attempt started",
    EventKind.SUCCESS: "Classification completed",
    EventKind.FALLBACK: "Falling back to secondary model tier",
    EventKind.ERROR: "Classification failed",
}


@dataclass(frozen=True)
class ClassificationEvent:
    kind: EventKind
    photo_id: str
    tier: ModelTier | None = None
    error: str | None = None
    duration_ms: int | None = None
    confidence: float | None = None
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind]


class EventRecorder(Protocol):
    def record(self, event: ClassificationEvent) -> None: ...


class LoggingEventRecorder:
    """Console-only recorder."""

    def record(self, event: ClassificationEvent) -> None:
        logger.log(
            _LEVELS[event.kind],
            event.message,
            extra={
                "event": event.kind.value,
                "photo_id": event.photo_id,
                "tier": event.tier.value if event.tier else None,
                "error": event.error,
                "duration_ms": event.duration_ms,
                "confidence": event.confidence,
            },
        )


class DbEventRecorder(LoggingEventRecorder):
    """Logs every event and appends it to ``classification_logs``."""

    def __init__(self, session_factory: Callable | None = None):
        self._session_factory = session_factory or db_module.SessionLocal

    def record(self, event: ClassificationEvent) -> None:
        super().record(event)
        try:
            with self._session_factory() as db:
                db.add(
                    ClassificationLog(
                        timestamp=event.timestamp,
                        photo_id=event.photo_id,
                        event_kind=event.kind,
                        tier_used=event.tier,
                        error_message=event.error,
                        duration_ms=event.duration_ms,
                        confidence=event.confidence,
                    )
                )
                db.commit()
        except Exception as exc:  # noqa: BLE001 - audit trail is best-effort
            logger.warning(
                "Failed to save classification log: %s",
                exc,
                extra={"photo_id": event.photo_id, "event": event.kind.value},
            )


class MemoryEventRecorder:
    """Keeps events in memory; handy for tests and dry runs."""

    def __init__(self) -> None:
        self.events: list[ClassificationEvent] = []

    def record(self, event: ClassificationEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]


__all__ = [
    "ClassificationEvent",
    "EventRecorder",
    "LoggingEventRecorder",
    "DbEventRecorder",
    "MemoryEventRecorder",
]
