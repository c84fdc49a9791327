"""
SecretStore: Durable SQLite persistence for encrypted secrets and config.

Two tables live in one database file:
- ``config`` : small metadata mapping (today only the hex-encoded store key)
- ``secrets``: key → encrypted blob, with created/updated timestamps

The connection runs in autocommit mode with ``synchronous=FULL`` so every
mutation is on disk before the call returns. WAL journaling lets the
remote server read while a local command writes. One connection is
shared by every thread that uses the store; a lock makes each statement
and the fetch of its result a single step.

Security Note:
    The store only ever sees ciphertext for secret values. Never log
    the ``value`` column.
"""
import sqlite3
import logging
import threading
from operator import attrgetter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel

from ..exceptions import InvalidValue, NotFound, StorageError

logger = logging.getLogger("lockbox.vault")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL
);

CREATE TABLE IF NOT EXISTS secrets (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

_UPSERT_CONFIG = """
INSERT INTO config (key, value) VALUES (?, ?)
ON CONFLICT (key) DO UPDATE SET value = excluded.value
"""

_SELECT_CONFIG = "SELECT value FROM config WHERE key = ?"

_UPSERT_SECRET = """
INSERT INTO secrets (key, value, created_at, updated_at)
VALUES (?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
ON CONFLICT (key)
DO UPDATE SET value = excluded.value,
              updated_at = CURRENT_TIMESTAMP
"""

_SELECT_SECRET = "SELECT value FROM secrets WHERE key = ?"

_SELECT_RECORD = """
SELECT key, value, created_at, updated_at
FROM secrets
WHERE key = ?
"""

_SELECT_ALL_RECORDS = """
SELECT key, value, created_at, updated_at
FROM secrets
ORDER BY key ASC
"""

_DELETE_SECRET = "DELETE FROM secrets WHERE key = ?"

_LIST_KEYS = "SELECT key FROM secrets ORDER BY key ASC"


class SecretRecord(BaseModel):
    """A stored secret with its bookkeeping timestamps."""

    key: str
    value: bytes
    created_at: datetime
    updated_at: datetime


def _parse_timestamp(value: Union[str, datetime]) -> datetime:
    """SQLite ``CURRENT_TIMESTAMP`` is UTC text without an offset."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def _to_record(row: tuple) -> SecretRecord:
    key, value, created_at, updated_at = row
    return SecretRecord(
        key=key,
        value=bytes(value),
        created_at=_parse_timestamp(created_at),
        updated_at=_parse_timestamp(updated_at),
    )


class SecretStore:
    """Persistent mapping of secret keys to encrypted blobs.

    Usage::

        with SecretStore("/path/to/lockbox.db") as store:
            store.set_secret("API_KEY", blob)

    Pass ``":memory:"`` for a throwaway in-memory store.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = str(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> "SecretStore":
        """Open the database and create the tables if needed.

        Raises:
            StorageError: If the file cannot be opened or migrated.
        """
        if self._conn is not None:
            return self
        try:
            # the remote server reads from worker threads
            conn = sqlite3.connect(
                self._path, isolation_level=None, check_same_thread=False,
            )
        except sqlite3.Error as err:
            raise StorageError(f"failed to open database: {err}") from err
        try:
            if self._path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=FULL")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as err:
            conn.close()
            raise StorageError(f"migration failed: {err}") from err
        self._conn = conn
        logger.debug("Opened store at %s", self._path)
        return self

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SecretStore":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _execute(
        self,
        sql: str,
        params: tuple = (),
        action: str = "query",
        collect: Callable[[sqlite3.Cursor], Any] = attrgetter("rowcount"),
    ) -> Any:
        """Run one statement and return ``collect(cursor)``.

        Raises:
            StorageError: If the store is closed or SQLite fails.
            InvalidValue: If a text parameter cannot be encoded as UTF-8.
        """
        with self._lock:
            if self._conn is None:
                raise StorageError("store is not open")
            try:
                return collect(self._conn.execute(sql, params))
            except sqlite3.Error as err:
                raise StorageError(f"failed to {action}: {err}") from err
            except UnicodeEncodeError as err:
                raise InvalidValue(
                    f"failed to {action}: key is not valid UTF-8 text"
                ) from err

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self, name: str) -> bytes:
        """Return a config value.

        Raises:
            NotFound: If no entry exists under ``name``.
        """
        row = self._execute(
            _SELECT_CONFIG, (name,), "get config", sqlite3.Cursor.fetchone,
        )
        if row is None:
            raise NotFound(name, kind="config")
        return bytes(row[0])

    def set_config(self, name: str, value: bytes) -> None:
        """Insert or replace a config value."""
        self._execute(_UPSERT_CONFIG, (name, value), "set config")

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def set_secret(self, key: str, encrypted_value: bytes) -> None:
        """Insert or fully replace an encrypted secret.

        Overwriting keeps ``created_at`` and refreshes ``updated_at``.
        """
        self._execute(_UPSERT_SECRET, (key, encrypted_value), "set secret")
        logger.debug("Store set: key=%s", key)

    def get_secret(self, key: str) -> bytes:
        """Return the encrypted blob stored under ``key``.

        Raises:
            NotFound: If the secret does not exist.
        """
        row = self._execute(
            _SELECT_SECRET, (key,), "get secret", sqlite3.Cursor.fetchone,
        )
        if row is None:
            raise NotFound(key)
        return bytes(row[0])

    def get_record(self, key: str) -> SecretRecord:
        row = self._execute(
            _SELECT_RECORD, (key,), "get secret", sqlite3.Cursor.fetchone,
        )
        if row is None:
            raise NotFound(key)
        return _to_record(row)

    def records(self) -> list[SecretRecord]:
        """All secrets with timestamps, ascending by key."""
        rows = self._execute(
            _SELECT_ALL_RECORDS, (), "list secrets", sqlite3.Cursor.fetchall,
        )
        return [_to_record(row) for row in rows]

    def delete_secret(self, key: str) -> None:
        """Remove a secret.

        Raises:
            NotFound: If no row was deleted.
        """
        deleted = self._execute(_DELETE_SECRET, (key,), "delete secret")
        if deleted == 0:
            raise NotFound(key)
        logger.debug("Store delete: key=%s", key)

    def list_secrets(self) -> list[str]:
        """Return all secret keys in ascending lexical order."""
        rows = self._execute(
            _LIST_KEYS, (), "list secrets", sqlite3.Cursor.fetchall,
        )
        return [row[0] for row in rows]
