import sqlite3
from pathlib import Path


def _init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _connect(db_path: str) -> sqlite3.Connection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    _init_db(conn)
    return conn


def get_value(db_path: str, key: str) -> str | None:
    """Return the string stored under ``key`` or ``None`` when absent."""

    conn = _connect(db_path)
    try:
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None
    finally:
        conn.close()


def set_value(db_path: str, key: str, value: str) -> None:
    """Store ``value`` under ``key``, replacing any previous value.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created on first write.
    key:
        Fixed name of the blob, e.g. ``smartspend_transactions``.
    value:
        Serialized payload.
    """

    conn = _connect(db_path)
    try:
        conn.execute(
            """
            INSERT INTO kv (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )
        conn.commit()
    finally:
        conn.close()
