"""SQLite schema for layer-query state (last executed query)."""

import sqlite3

SCHEMA_VERSION = 1

LAST_QUERY_KEY = "last_query"

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables."""
    conn.executescript(_SCHEMA_SQL)
    set_metadata(conn, "schema_version", str(SCHEMA_VERSION))


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the current schema version, or None if metadata table doesn't exist."""
    try:
        value = get_metadata(conn, "schema_version")
    except sqlite3.OperationalError:
        return None
    return int(value) if value is not None else None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Create or migrate the database schema to the latest version."""
    version = get_schema_version(conn)
    if version is None:
        create_schema(conn)


def get_metadata(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        (key, value),
    )
    conn.commit()


class LastQueryStore:
    """Persists the last executed query in the ``metadata`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        migrate_schema(conn)

    def get_last_query(self) -> str | None:
        return get_metadata(self._conn, LAST_QUERY_KEY)

    def set_last_query(self, query: str) -> None:
        set_metadata(self._conn, LAST_QUERY_KEY, query)
