from __future__ import annotations

import pytest
from sqlalchemy import func, select

from phototagger.exceptions import ClassificationError
from phototagger.models import (
    Classification,
    ClassificationStatus,
    PhotoTag,
    Tag,
    TagCategory,
)
from phototagger.services import persistence, queries, tag_store
from phototagger.services.classifier import parse_classification

from tests.utils.fakes import PORTRAIT_REPLY, VALID_REPLY, add_photo, reply


def _claimed(session, photo_id: str) -> None:
    add_photo(photo_id)
    assert queries.claim_photo(session, photo_id) == 1


def _usage(session) -> dict[str, int]:
    return dict(session.execute(select(Tag.name, Tag.usage_count)).all())


def _links(session, photo_id: str) -> int:
    return session.execute(
        select(func.count()).select_from(PhotoTag).where(PhotoTag.photo_id == photo_id)
    ).scalar_one()


def test_save_classification_example(session):
    _claimed(session, "P1")

    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))

    row = session.get(Classification, "P1")
    assert row.status is ClassificationStatus.COMPLETED
    assert row.confidence == 0.9
    assert row.completed_at is not None
    assert row.error_message is None
    assert row.searchable_text == "nature sky no_people peaceful blue white sharp professional"
    assert _links(session, "P1") == 8
    assert set(_usage(session).values()) == {1}
    assert queries.classification_status(session, "P1") is ClassificationStatus.COMPLETED


def test_usage_counts_shared_tags(session):
    _claimed(session, "P1")
    _claimed(session, "P2")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    persistence.save_classification(
        session, "P2", parse_classification(reply(content_tags=["ocean", "sky"]))
    )

    usage = _usage(session)
    assert usage["sky"] == 2
    assert usage["nature"] == 1
    assert usage["ocean"] == 1
    for name, (count, refs) in tag_store.reference_counts(session).items():
        assert count == refs, name


def test_rewrite_leaves_only_new_tags(session):
    _claimed(session, "P1")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))

    persistence.save_classification(session, "P1", parse_classification(PORTRAIT_REPLY))

    detail = queries.classification_detail(session, "P1")
    assert detail.tags["content"] == ["street", "urban"]
    assert detail.tags["people"] == ["close", "people", "single"]
    assert "nature" not in detail.searchable_text
    assert _links(session, "P1") == 11
    usage = _usage(session)
    assert usage["nature"] == 0
    assert usage["sharp"] == 1
    for name, (count, refs) in tag_store.reference_counts(session).items():
        assert count == refs, name


def test_tag_dictionary_keeps_first_category(session):
    _claimed(session, "P1")
    _claimed(session, "P2")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    persistence.save_classification(
        session, "P2", parse_classification(reply(content_tags=["blue", "sky"]))
    )

    tag = session.execute(select(Tag).where(Tag.name == "blue")).scalar_one()
    assert tag.category.value == "color"
    assert tag.usage_count == 2


def test_failure_mid_rewrite_rolls_back(session, monkeypatch):
    _claimed(session, "P1")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    before_usage = _usage(session)

    calls = {"n": 0}
    real_link = tag_store.link_tag

    def _flaky_link(db, photo_id, name, category, now):
        calls["n"] += 1
        if calls["n"] == 3:
            raise RuntimeError("disk full")
        return real_link(db, photo_id, name, category, now)

    monkeypatch.setattr(tag_store, "link_tag", _flaky_link)

    with pytest.raises(RuntimeError):
        persistence.save_classification(
            session, "P1", parse_classification(PORTRAIT_REPLY)
        )

    session.expire_all()
    row = session.get(Classification, "P1")
    assert row.searchable_text == "nature sky no_people peaceful blue white sharp professional"
    assert _links(session, "P1") == 8
    assert _usage(session) == before_usage
    assert session.execute(select(Tag).where(Tag.name == "urban")).first() is None


def test_save_requires_claimed_row(session):
    add_photo("P1")
    with pytest.raises(ClassificationError):
        persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    assert _usage(session) == {}


def test_save_failure_keeps_tags(session):
    _claimed(session, "P1")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    queries.reset_classification(session, "P1")
    queries.claim_photo(session, "P1")

    persistence.save_failure(session, "P1", "people_tags must include exactly one")

    session.expire_all()
    row = session.get(Classification, "P1")
    assert row.status is ClassificationStatus.FAILED
    assert row.error_message == "people_tags must include exactly one"
    assert _links(session, "P1") == 8


def test_top_tags(session):
    _claimed(session, "P1")
    _claimed(session, "P2")
    persistence.save_classification(session, "P1", parse_classification(VALID_REPLY))
    persistence.save_classification(session, "P2", parse_classification(PORTRAIT_REPLY))

    top = tag_store.top_tags(session, limit=1)
    assert top == [{"name": "sharp", "category": "quality", "usage_count": 2}]
    colors = {tag["name"] for tag in tag_store.top_tags(session, category=TagCategory.COLOR)}
    assert colors == {"blue", "white", "gray", "muted"}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Golden Hour", "golden_hour"),
        ("black-and-white", "black_and_white"),
        ("  HDR ", "hdr"),
        ("wide__angle", "wide_angle"),
        ("close!", "close"),
    ],
)
def test_normalize_tag(raw, expected):
    assert tag_store.normalize_tag(raw) == expected
