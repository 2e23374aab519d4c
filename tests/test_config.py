import pytest

from phototagger.config import Settings
from phototagger.exceptions import PhotoDataError
from phototagger.services.photo_url import photo_url, raw_path_of


@pytest.mark.parametrize("raw, expected", [("abc", 60.0), ("-5", 60.0), ("0", 60.0), ("12.5", 12.5)])
def test_timeout_parsing_is_tolerant(monkeypatch, raw, expected):
    monkeypatch.setenv("CLASSIFY_TIMEOUT_SECONDS", raw)
    assert Settings().classify_timeout_seconds == expected


def test_defaults(monkeypatch):
    monkeypatch.delenv("CLASSIFY_BATCH_LIMIT", raising=False)
    cfg = Settings()
    assert cfg.classify_batch_limit == 3
    assert cfg.classify_max_retries == 3
    assert cfg.primary_model.endswith(":free")


def test_photo_url_appends_resize_params():
    assert photo_url("https://images.example.com/p1", 600, 80) == (
        "https://images.example.com/p1?w=600&q=80"
    )
    assert photo_url("https://images.example.com/p1?ixid=x", 300, 70) == (
        "https://images.example.com/p1?ixid=x&w=300&q=70"
    )


def test_raw_path_of():
    assert raw_path_of('{"raw_path": "https://x/y", "other": 1}') == "https://x/y"


@pytest.mark.parametrize("data_json", ["not json", "[]", "{}", '{"raw_path": 5}'])
def test_raw_path_of_rejects_bad_data(data_json):
    with pytest.raises(PhotoDataError):
        raw_path_of(data_json)
