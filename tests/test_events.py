import logging

from sqlalchemy import select

from phototagger.models import ClassificationLog, EventKind, ModelTier
from phototagger.services.events import (
    ClassificationEvent,
    DbEventRecorder,
    LoggingEventRecorder,
)


def test_db_recorder_appends_rows(session):
    recorder = DbEventRecorder()
    recorder.record(ClassificationEvent(kind=EventKind.ATTEMPT, photo_id="P1"))
    recorder.record(
        ClassificationEvent(
            kind=EventKind.SUCCESS,
            photo_id="P1",
            tier=ModelTier.SECONDARY,
            duration_ms=1200,
            confidence=0.8,
        )
    )

    rows = session.execute(select(ClassificationLog).order_by(ClassificationLog.id)).scalars().all()
    assert [row.event_kind for row in rows] == [EventKind.ATTEMPT, EventKind.SUCCESS]
    assert rows[1].tier_used is ModelTier.SECONDARY
    assert rows[1].duration_ms == 1200
    assert rows[1].confidence == 0.8
    assert rows[0].tier_used is None


def test_db_recorder_swallows_storage_errors(caplog):
    def _broken():
        raise RuntimeError("Database not initialized")

    recorder = DbEventRecorder(session_factory=_broken)
    with caplog.at_level(logging.WARNING, logger="phototagger.services.events"):
        recorder.record(
            ClassificationEvent(kind=EventKind.ERROR, photo_id="P1", error="boom")
        )

    assert "Failed to save classification log" in caplog.text


def test_logging_recorder_levels(caplog):
    recorder = LoggingEventRecorder()
    with caplog.at_level(logging.INFO, logger="phototagger.services.events"):
        recorder.record(
            ClassificationEvent(
                kind=EventKind.FALLBACK,
                photo_id="P7",
                tier=ModelTier.PRIMARY,
                error="timeout",
            )
        )

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.photo_id == "P7"
    assert record.tier == "primary"
    assert record.event == "fallback"
