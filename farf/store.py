import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from . import config
from .core.errors import PersistenceError
from .core.models import AppState, default_state
from .lib.converters import dict_to_state, merge_defaults, state_to_dict

__all__ = [
    "MemoryStore",
    "SqliteStore",
    "fresh_state",
    "get_db",
    "init",
    "load_state",
    "save_state",
]

MIGRATIONS_TABLE = "_migrations"

MIGRATIONS: list[tuple[str, str]] = [
    (
        "001_documents",
        """
        CREATE TABLE IF NOT EXISTS documents (
            key TEXT PRIMARY KEY,
            body TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
]


@contextmanager
def get_db(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    db_path = db_path if db_path else config.DB_PATH
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} "
        "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
    )
    applied = {row[0] for row in conn.execute(f"SELECT name FROM {MIGRATIONS_TABLE}").fetchall()}  # noqa: S608
    for name, sql in MIGRATIONS:
        if name in applied:
            continue
        conn.executescript(sql)
        conn.execute(f"INSERT OR IGNORE INTO {MIGRATIONS_TABLE} (name) VALUES (?)", (name,))  # noqa: S608


def init(db_path: Path | None = None) -> None:
    db_path = db_path if db_path else config.DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_db(db_path) as conn:
        _apply_migrations(conn)


class SqliteStore:
    """Keyed JSON documents in a local sqlite file."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path if db_path else config.DB_PATH
        self._ready = False

    def _ensure(self) -> None:
        if not self._ready:
            init(self.db_path)
            self._ready = True

    def read(self, key: str) -> str | None:
        try:
            self._ensure()
            with get_db(self.db_path) as conn:
                row = conn.execute("SELECT body FROM documents WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"read failed for '{key}': {e}") from e
        return row[0] if row else None

    def write(self, key: str, body: str) -> None:
        try:
            self._ensure()
            with get_db(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO documents (key, body, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                    "ON CONFLICT(key) DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at",
                    (key, body),
                )
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"write failed for '{key}': {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._ensure()
            with get_db(self.db_path) as conn:
                conn.execute("DELETE FROM documents WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"delete failed for '{key}': {e}") from e


class MemoryStore:
    """Same interface as SqliteStore, kept in a dict."""

    def __init__(self, documents: dict[str, str] | None = None):
        self.documents: dict[str, str] = dict(documents or {})

    def read(self, key: str) -> str | None:
        return self.documents.get(key)

    def write(self, key: str, body: str) -> None:
        self.documents[key] = body

    def delete(self, key: str) -> None:
        self.documents.pop(key, None)


Store = SqliteStore | MemoryStore


def fresh_state(today: date | None = None) -> AppState:
    return default_state(daily_goal=config.get_default_goal(), today=today)


def load_state(store: Store, key: str = config.STORAGE_KEY) -> AppState:
    """Load the stored document merged over schema defaults.

    A missing document yields defaults. An unreadable or corrupt one raises
    PersistenceError; the caller decides how to recover.
    """
    body = store.read(key)
    if body is None:
        return fresh_state()
    try:
        stored = json.loads(body)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"corrupt document under '{key}': {e}") from e
    if not isinstance(stored, dict):
        raise PersistenceError(f"document under '{key}' is not an object")
    try:
        return dict_to_state(merge_defaults(stored, fresh_state()))
    except (TypeError, ValueError, OverflowError) as e:
        raise PersistenceError(f"malformed document under '{key}': {e}") from e


def save_state(store: Store, state: AppState, key: str = config.STORAGE_KEY) -> None:
    store.write(key, json.dumps(state_to_dict(state), ensure_ascii=False))
