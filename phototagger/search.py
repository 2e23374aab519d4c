"""Keyword search over classified photos.

The index mirrors ``photo_classifications.searchable_text`` and is kept in
sync by the database itself: FTS5 triggers on SQLite, an expression GIN
index on PostgreSQL. Callers never write to it directly.
"""

from __future__ import annotations

from sqlalchemy import String, bindparam, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from phototagger.services.tag_store import normalize_tag

FTS_TABLE = "photo_classifications_fts"

_SQLITE_DDL = (
    f"""CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} USING fts5(
        photo_id UNINDEXED,
        all_tags,
        tokenize = "unicode61 tokenchars '_'"
    )""",
    f"""CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_insert
    AFTER INSERT ON photo_classifications
    BEGIN
        INSERT INTO {FTS_TABLE}(photo_id, all_tags)
        VALUES (new.photo_id, new.searchable_text);
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_update
    AFTER UPDATE ON photo_classifications
    BEGIN
        DELETE FROM {FTS_TABLE} WHERE photo_id = old.photo_id;
        INSERT INTO {FTS_TABLE}(photo_id, all_tags)
        VALUES (new.photo_id, new.searchable_text);
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_delete
    AFTER DELETE ON photo_classifications
    BEGIN
        DELETE FROM {FTS_TABLE} WHERE photo_id = old.photo_id;
    END""",
)

_SQLITE_DROP = (
    f"DROP TRIGGER IF EXISTS {FTS_TABLE}_insert",
    f"DROP TRIGGER IF EXISTS {FTS_TABLE}_update",
    f"DROP TRIGGER IF EXISTS {FTS_TABLE}_delete",
    f"DROP TABLE IF EXISTS {FTS_TABLE}",
)

_PG_DDL = (
    "CREATE INDEX IF NOT EXISTS ix_classification_tags_gin "
    "ON photo_classifications USING GIN (string_to_array(searchable_text, ' '))",
)

_PG_DROP = ("DROP INDEX IF EXISTS ix_classification_tags_gin",)


def _statements(dialect: str, install: bool) -> tuple[str, ...]:
    if dialect == "sqlite":
        return _SQLITE_DDL if install else _SQLITE_DROP
    if dialect == "postgresql":
        return _PG_DDL if install else _PG_DROP
    raise NotImplementedError(f"No search index support for {dialect}")


def install_search_index(conn: Connection) -> None:
    """Create the search index and its synchronization hooks."""
    for stmt in _statements(conn.dialect.name, install=True):
        conn.execute(text(stmt))


def drop_search_index(conn: Connection) -> None:
    for stmt in _statements(conn.dialect.name, install=False):
        conn.execute(text(stmt))


def query_terms(query: str) -> list[str]:
    """Split a free-text query into normalized tag names."""
    terms: list[str] = []
    for raw in query.split():
        term = normalize_tag(raw)
        if term and term not in terms:
            terms.append(term)
    return terms


def search_photos(db: Session, query: str, limit: int = 50) -> list[str]:
    """Return ids of completed photos tagged with every term in ``query``."""
    terms = query_terms(query)
    if not terms:
        return []

    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        match = " ".join(f'"{term}"' for term in terms)
        stmt = text(
            f"SELECT pc.photo_id FROM {FTS_TABLE} "
            f"JOIN photo_classifications pc ON pc.photo_id = {FTS_TABLE}.photo_id "
            f"WHERE {FTS_TABLE} MATCH :match AND pc.status = 'completed' "
            "ORDER BY pc.completed_at DESC LIMIT :limit"
        )
        rows = db.execute(stmt, {"match": match, "limit": limit})
    elif dialect == "postgresql":
        stmt = text(
            "SELECT photo_id FROM photo_classifications "
            "WHERE string_to_array(searchable_text, ' ') @> :terms "
            "AND status = 'completed' "
            "ORDER BY completed_at DESC LIMIT :limit"
        ).bindparams(bindparam("terms", type_=ARRAY(String)))
        rows = db.execute(stmt, {"terms": terms, "limit": limit})
    else:
        raise NotImplementedError(f"No search index support for {dialect}")
    return [row[0] for row in rows]


__all__ = ["install_search_index", "drop_search_index", "search_photos", "query_terms"]
