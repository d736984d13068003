from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from pathlib import Path
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_VERSION = 1
KEY_NAMESPACE = "assistive"
DB_PATH_ENV = "ASSISTIVE_DB_PATH"


def record_key(feature: str, name: str, version: int) -> str:
    """Build a namespaced, versioned record key: ``assistive:<feature>:<name>:v<N>``.

    A schema change gets a new version (and therefore a new key); records
    stored under an older version are left untouched.
    """

    for part in (feature, name):
        if part.strip() == "" or ":" in part:
            raise ValueError(f"invalid key part: {part!r}")
    if version < 1:
        raise ValueError("version must be >= 1")
    return f"{KEY_NAMESPACE}:{feature}:{name}:v{int(version)}"


class KeyValueStore(Protocol):
    def read(self, key: str, fallback: T) -> T: ...
    def write(self, key: str, value: Any) -> bool: ...
    def delete(self, key: str) -> bool: ...


def _decode(key: str, raw: str | None, fallback: T) -> T:
    if raw is None or raw == "":
        return fallback
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("ignoring malformed record %s", key)
        return fallback


def _encode(key: str, value: Any) -> str | None:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        logger.warning("record %s is not JSON-serializable; not saved", key)
        return None


class MemoryStore:
    """In-process store with the same best-effort semantics as SqliteStore."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def read(self, key: str, fallback: T) -> T:
        return _decode(key, self._data.get(key), fallback)

    def write(self, key: str, value: Any) -> bool:
        payload = _encode(key, value)
        if payload is None:
            return False
        self._data[key] = payload
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def put_raw(self, key: str, payload: str) -> None:
        self._data[key] = payload


def default_db_path() -> Path:
    explicit = os.environ.get(DB_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".assistive_sim.sqlite3"


def open_db(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        _migrate(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS record (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


class SqliteStore:
    """Key/value JSON records in a local sqlite file.

    Reads never raise: a missing or corrupt record, or an unusable database,
    yields the caller's fallback. Writes are best-effort and report success
    as a bool instead of raising.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._conn: sqlite3.Connection | None = None
        try:
            self._conn = open_db(path)
        except (OSError, sqlite3.Error) as exc:
            logger.warning("persistence unavailable at %s: %s", path, exc)

    @property
    def available(self) -> bool:
        return self._conn is not None

    def read(self, key: str, fallback: T) -> T:
        if self._conn is None:
            return fallback
        try:
            row = self._conn.execute("SELECT payload FROM record WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            logger.warning("failed to read %s: %s", key, exc)
            return fallback
        return _decode(key, None if row is None else str(row[0]), fallback)

    def write(self, key: str, value: Any) -> bool:
        if self._conn is None:
            return False
        payload = _encode(key, value)
        if payload is None:
            return False
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO record(key, payload, updated_at_utc) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        payload = excluded.payload,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (key, payload, _utc_now_iso()),
                )
        except sqlite3.Error as exc:
            logger.warning("failed to write %s: %s", key, exc)
            return False
        return True

    def delete(self, key: str) -> bool:
        if self._conn is None:
            return False
        try:
            with self._conn:
                cur = self._conn.execute("DELETE FROM record WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            logger.warning("failed to delete %s: %s", key, exc)
            return False
        return cur.rowcount > 0

    def close(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is not None:
            conn.close()
