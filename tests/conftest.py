import os

import pytest

# Module-level settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:////tmp/phototagger_test.db")
os.environ.setdefault("OPENROUTER_API_KEY", "test")

from phototagger import db as db_module
from phototagger.config import Settings
from phototagger.db import init_db
from phototagger.services import classifier
from phototagger.services.events import MemoryEventRecorder


@pytest.fixture(autouse=True)
def database(tmp_path):
    """Fresh SQLite database (tables + search index) for every test."""
    cfg = Settings(
        database_url=f"sqlite:///{tmp_path / 'phototagger.db'}",
        db_create_all=True,
    )
    init_db(cfg)
    yield cfg
    if db_module.engine is not None:
        db_module.engine.dispose()


@pytest.fixture(autouse=True)
def tiers(monkeypatch):
    monkeypatch.setattr(classifier, "_MODEL", "test/free-model")
    monkeypatch.setattr(classifier, "_MODEL_FALLBACK", "test/paid-model")
    monkeypatch.setattr(classifier, "_get_client", lambda: None)


@pytest.fixture
def recorder():
    return MemoryEventRecorder()


@pytest.fixture
def session():
    with db_module.SessionLocal() as db:
        yield db
