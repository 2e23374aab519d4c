import pytest

from phototagger.exceptions import TagValidationError
from phototagger.models import TagCategory
from phototagger.services.classifier import parse_classification

from tests.utils.fakes import PORTRAIT_REPLY, VALID_REPLY, reply


def test_valid_reply_parses():
    result = parse_classification(VALID_REPLY)
    assert result.content_tags == ["nature", "sky"]
    assert result.people_tags == ["no_people"]
    assert result.confidence == 0.9
    assert (
        result.searchable_text
        == "nature sky no_people peaceful blue white sharp professional"
    )


def test_portrait_reply_parses():
    result = parse_classification(PORTRAIT_REPLY)
    assert result.people_tags == ["people", "close", "single"]


@pytest.mark.parametrize("confidence", [0.0, 0.5, 1.0])
def test_people_without_proximity_rejected(confidence):
    data = reply(people_tags=["people", "single"], confidence=confidence)
    with pytest.raises(TagValidationError) as exc:
        parse_classification(data)
    assert "close" in str(exc.value)


@pytest.mark.parametrize("confidence", [0.1, 0.99])
def test_missing_presence_tag_rejected(confidence):
    data = reply(people_tags=["crowd"], confidence=confidence)
    with pytest.raises(TagValidationError):
        parse_classification(data)


def test_both_presence_tags_rejected():
    with pytest.raises(TagValidationError):
        parse_classification(reply(people_tags=["people", "no_people", "close"]))


def test_both_proximity_tags_rejected():
    with pytest.raises(TagValidationError):
        parse_classification(reply(people_tags=["people", "close", "distant"]))


def test_missing_category_rejected():
    data = reply()
    del data["mood_tags"]
    with pytest.raises(TagValidationError) as exc:
        parse_classification(data)
    assert "mood_tags" in str(exc.value)


def test_category_must_be_list_of_strings():
    with pytest.raises(TagValidationError):
        parse_classification(reply(color_tags="blue white"))
    with pytest.raises(TagValidationError):
        parse_classification(reply(color_tags=["blue", 7]))


@pytest.mark.parametrize(
    "field, tags",
    [
        ("content_tags", ["nature"]),
        ("mood_tags", []),
        ("color_tags", ["blue"]),
        ("quality_tags", ["sharp"]),
    ],
)
def test_minimum_tag_counts(field, tags):
    with pytest.raises(TagValidationError) as exc:
        parse_classification(reply(**{field: tags}))
    assert field in str(exc.value)


def test_missing_confidence_defaults_to_zero():
    data = reply()
    del data["confidence"]
    assert parse_classification(data).confidence == 0.0
    assert parse_classification(reply(confidence=None)).confidence == 0.0


@pytest.mark.parametrize("confidence", [-0.1, 1.5, "0.9", True])
def test_bad_confidence_rejected(confidence):
    with pytest.raises(TagValidationError):
        parse_classification(reply(confidence=confidence))


def test_integer_confidence_accepted():
    assert parse_classification(reply(confidence=1)).confidence == 1.0


def test_tags_are_normalized_and_deduplicated():
    result = parse_classification(
        reply(
            content_tags=["Mountain Range", "mountain-range", "  Sky "],
            people_tags=["No People"],
        )
    )
    assert result.content_tags == ["mountain_range", "sky"]
    assert result.people_tags == ["no_people"]


def test_duplicate_across_categories_keeps_first():
    result = parse_classification(reply(quality_tags=["sharp", "blue"]))
    pairs = result.tag_pairs()
    assert ("blue", TagCategory.COLOR) in pairs
    assert ("blue", TagCategory.QUALITY) not in pairs
    assert result.searchable_text.split().count("blue") == 1


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        parse_classification(reply(people_tags=[]))
