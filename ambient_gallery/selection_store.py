"""Persistent storage for the selected background and sound."""
from __future__ import annotations

import sqlite3
from contextlib import closing
from enum import Enum
from pathlib import Path

_SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY,
    key TEXT UNIQUE NOT NULL,
    value TEXT NOT NULL
);
"""

_UPSERT = (
    "INSERT INTO settings (key, value) VALUES (?, ?) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value"
)

# Seconds a connection waits on another writer before giving up.
_BUSY_TIMEOUT = 5.0


class StorageError(RuntimeError):
    """Base class for selection storage failures."""


class StorageUnavailable(StorageError):
    """Raised when the database cannot be opened or its schema created."""


class StorageReadFailed(StorageError):
    """Raised when a selection cannot be read."""


class StorageWriteFailed(StorageError):
    """Raised when a selection cannot be written."""


class SelectionKey(str, Enum):
    """The settings rows the application reads and writes."""

    BACKGROUND = "selectedBackground"
    SOUND = "selectedSound"


class SelectionStore:
    """Key-value store for the user's current selections, backed by SQLite.

    Every operation opens its own connection so a single store can be shared
    across request threads; SQLite serializes concurrent writers.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @classmethod
    def open(cls, db_path: Path) -> "SelectionStore":
        """Open (creating if necessary) the store at *db_path*.

        Safe to call on every startup; the ``settings`` table is only created
        when missing.

        Raises
        ------
        StorageUnavailable
            If the file or its parent directory cannot be created or opened.
        """

        store = cls(db_path)
        try:
            store.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(store._connect()) as conn:
                with conn:
                    conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailable(f"Cannot open selection store at {store.db_path}: {exc}") from exc
        return store

    def get_selection(self, key: SelectionKey | str) -> str | None:
        """Return the stored value for *key*, or ``None`` when it was never set."""

        setting = _coerce_key(key)
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT value FROM settings WHERE key = ?", (setting.value,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageReadFailed(f"Cannot read {setting.value}: {exc}") from exc
        if row is None:
            return None
        return row[0]

    def set_selection(self, key: SelectionKey | str, value: str) -> None:
        """Store *value* for *key*, replacing any previous value."""

        setting = _coerce_key(key)
        if not isinstance(value, str):
            raise TypeError(f"Selection value must be a string, got {type(value).__name__}")
        try:
            with closing(self._connect()) as conn:
                # The connection context manager commits, or rolls back on error.
                with conn:
                    conn.execute(_UPSERT, (setting.value, value))
        except sqlite3.Error as exc:
            raise StorageWriteFailed(f"Cannot write {setting.value}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path), timeout=_BUSY_TIMEOUT)


def _coerce_key(key: SelectionKey | str) -> SelectionKey:
    """Return *key* as a :class:`SelectionKey`.

    Examples
    --------
    >>> _coerce_key("selectedSound")
    <SelectionKey.SOUND: 'selectedSound'>
    """

    if isinstance(key, SelectionKey):
        return key
    try:
        return SelectionKey(key)
    except ValueError:
        raise ValueError(f"Unknown selection key: {key!r}") from None
