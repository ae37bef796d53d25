"""Alert condition persistence: protocol + SQLite and JSON backends.

AlertConditionStore is the protocol. Code against it.
Primary: SqliteConditionStore (ACID, concurrent-safe)
Fallback: JsonConditionStore (single file, in-process locking only)

Both keep conditions keyed by (stream_id, condition_id), return them in
insertion order, and use the condition's version for optimistic
concurrency: an update whose version no longer matches the stored one is
rejected with ConflictingUpdate.

I/O failures are retried a bounded number of times before surfacing as
StorageUnavailable.
"""

from __future__ import annotations

import copy
import json
import os
import sqlite3
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from vigil.collaborators import StreamLookup
from vigil.conditions.types import AlertCondition
from vigil.errors import ConditionNotFound, ConflictingUpdate, StorageUnavailable
from vigil.observability import get_logger


def _logger():
    """Lazy logger -- reflects the active formatter, not import-time state."""
    return get_logger(__name__)


T = TypeVar("T")

_DEFAULT_DIR = "~/.vigil"
_TRANSIENT = (sqlite3.OperationalError, OSError)


@runtime_checkable
class AlertConditionStore(Protocol):
    """Protocol for alert condition persistence."""

    def add(self, stream_id: str, condition: AlertCondition) -> None: ...
    def get(self, stream_id: str, condition_id: str) -> AlertCondition: ...
    def update(self, stream_id: str, condition: AlertCondition) -> AlertCondition: ...
    def remove(self, stream_id: str, condition_id: str) -> None: ...
    def list(self, stream_id: str) -> list[AlertCondition]: ...


def _resolve_dir(state_dir: str) -> Path:
    path = Path(state_dir or _DEFAULT_DIR).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def _check_owner(stream_id: str, condition: AlertCondition) -> None:
    if condition.stream_id != stream_id:
        raise ValueError(
            f"Condition {condition.id!r} belongs to stream {condition.stream_id!r}, "
            f"not {stream_id!r}."
        )


def _detached(condition: AlertCondition) -> AlertCondition:
    return replace(condition, parameters=copy.deepcopy(condition.parameters))


class _RetryingStore:
    """Shared retry + stream-check plumbing for the backends."""

    def __init__(self, streams: StreamLookup | None, retries: int) -> None:
        if retries < 1:
            raise ValueError(f"retries must be >= 1, got {retries}")
        self._streams = streams
        self._retries = retries
        self._lock = threading.Lock()

    def _ensure_stream(self, stream_id: str) -> None:
        if self._streams is not None:
            self._streams.load(stream_id)

    def _run(self, operation: str, fn: Callable[[], T]) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=0.05, max=1.0),
            retry=retry_if_exception_type(_TRANSIENT),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        _logger().warning(
                            "store.retry",
                            operation=operation,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    return fn()
        except _TRANSIENT as e:
            _logger().error("store.unavailable", operation=operation, error=str(e))
            raise StorageUnavailable(operation, e) from e
        raise StorageUnavailable(operation)  # pragma: no cover


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------


class SqliteConditionStore(_RetryingStore):
    """ACID-safe condition persistence with SQLite.

    File layout: {state_dir}/{name}.db
    Insertion order is kept by an autoincrement sequence column.
    """

    def __init__(
        self,
        state_dir: str = "",
        streams: StreamLookup | None = None,
        retries: int = 3,
        name: str = "conditions",
    ) -> None:
        super().__init__(streams, retries)
        self._db_path = _resolve_dir(state_dir) / f"{name}.db"
        self._conn: sqlite3.Connection | None = None

    def _ensure_connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        # All public methods hold self._lock while touching the connection.
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA busy_timeout = 3000")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS alert_conditions (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                stream_id TEXT NOT NULL,
                type TEXT NOT NULL,
                title TEXT NOT NULL,
                parameters TEXT NOT NULL,
                creator_user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 0
            )
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_alert_conditions_stream "
            "ON alert_conditions(stream_id)"
        )
        conn.commit()
        self._conn = conn
        return conn

    @staticmethod
    def _row_to_condition(row: tuple) -> AlertCondition:
        return AlertCondition.from_dict({
            "id": row[0],
            "stream_id": row[1],
            "type": row[2],
            "title": row[3],
            "parameters": json.loads(row[4]),
            "creator_user_id": row[5],
            "created_at": row[6],
            "version": row[7],
        })

    _COLUMNS = "id, stream_id, type, title, parameters, creator_user_id, created_at, version"

    @staticmethod
    def _write(conn: sqlite3.Connection, sql: str, params: tuple) -> sqlite3.Cursor:
        """Execute and commit one statement, rolling back if either step fails."""
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return cursor

    def add(self, stream_id: str, condition: AlertCondition) -> None:
        _check_owner(stream_id, condition)
        self._ensure_stream(stream_id)

        def _insert() -> None:
            with self._lock:
                conn = self._ensure_connection()
                try:
                    self._write(
                        conn,
                        f"INSERT INTO alert_conditions ({self._COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        (
                            condition.id,
                            stream_id,
                            condition.type,
                            condition.title,
                            json.dumps(condition.parameters),
                            condition.creator_user_id,
                            condition.created_at.isoformat(),
                            condition.version,
                        ),
                    )
                except sqlite3.IntegrityError:
                    raise ConflictingUpdate(
                        condition.id, f"Alert condition {condition.id!r} already exists."
                    ) from None

        self._run("add", _insert)

    def get(self, stream_id: str, condition_id: str) -> AlertCondition:
        def _select() -> tuple | None:
            with self._lock:
                conn = self._ensure_connection()
                return conn.execute(
                    f"SELECT {self._COLUMNS} FROM alert_conditions "
                    "WHERE stream_id = ? AND id = ?",
                    (stream_id, condition_id),
                ).fetchone()

        row = self._run("get", _select)
        if row is None:
            raise ConditionNotFound(stream_id, condition_id)
        return self._row_to_condition(row)

    def update(self, stream_id: str, condition: AlertCondition) -> AlertCondition:
        _check_owner(stream_id, condition)

        def _update() -> int:
            with self._lock:
                conn = self._ensure_connection()
                cursor = self._write(
                    conn,
                    "UPDATE alert_conditions SET type = ?, title = ?, parameters = ?, "
                    "version = version + 1 "
                    "WHERE stream_id = ? AND id = ? AND version = ?",
                    (
                        condition.type,
                        condition.title,
                        json.dumps(condition.parameters),
                        stream_id,
                        condition.id,
                        condition.version,
                    ),
                )
                if cursor.rowcount:
                    return cursor.rowcount
                exists = conn.execute(
                    "SELECT 1 FROM alert_conditions WHERE stream_id = ? AND id = ?",
                    (stream_id, condition.id),
                ).fetchone()
                return -1 if exists else 0

        result = self._run("update", _update)
        if result == 0:
            raise ConditionNotFound(stream_id, condition.id)
        if result < 0:
            raise ConflictingUpdate(condition.id)
        return replace(condition, version=condition.version + 1)

    def remove(self, stream_id: str, condition_id: str) -> None:
        def _delete() -> int:
            with self._lock:
                conn = self._ensure_connection()
                cursor = self._write(
                    conn,
                    "DELETE FROM alert_conditions WHERE stream_id = ? AND id = ?",
                    (stream_id, condition_id),
                )
                return cursor.rowcount

        if self._run("remove", _delete) == 0:
            raise ConditionNotFound(stream_id, condition_id)

    def list(self, stream_id: str) -> list[AlertCondition]:
        self._ensure_stream(stream_id)

        def _select_all() -> list[tuple]:
            with self._lock:
                conn = self._ensure_connection()
                return conn.execute(
                    f"SELECT {self._COLUMNS} FROM alert_conditions "
                    "WHERE stream_id = ? ORDER BY seq",
                    (stream_id,),
                ).fetchall()

        return [self._row_to_condition(row) for row in self._run("list", _select_all)]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


# ---------------------------------------------------------------------------
# JSON backend
# ---------------------------------------------------------------------------


class JsonConditionStore(_RetryingStore):
    """Persists conditions as one JSON document, rewritten on every change.

    File layout: {state_dir}/{name}.json
    JSON structure: { stream_id: [ AlertCondition.to_dict(), ... ] }
    Conditions are copied on the way in and out, like rows from the SQLite
    backend, so callers never share parameter dicts with the store.
    """

    def __init__(
        self,
        state_dir: str = "",
        streams: StreamLookup | None = None,
        retries: int = 3,
        name: str = "conditions",
    ) -> None:
        super().__init__(streams, retries)
        self._path = _resolve_dir(state_dir) / f"{name}.json"
        self._data: dict[str, list[AlertCondition]] = {}
        self._run("load", self._load)

    def _load(self) -> None:
        if not self._path.exists():
            return
        raw: dict[str, list[dict[str, Any]]] = json.loads(self._path.read_text())
        self._data = {
            stream_id: [AlertCondition.from_dict(d) for d in items]
            for stream_id, items in raw.items()
        }

    def _flush(self) -> None:
        """Write the whole document. Must be called with _lock held."""
        out = {
            stream_id: [c.to_dict() for c in items]
            for stream_id, items in self._data.items()
            if items
        }
        tmp = self._path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(out, indent=2))
        os.replace(tmp, self._path)

    def _index(self, stream_id: str, condition_id: str) -> int:
        for i, c in enumerate(self._data.get(stream_id, [])):
            if c.id == condition_id:
                return i
        return -1

    def add(self, stream_id: str, condition: AlertCondition) -> None:
        _check_owner(stream_id, condition)
        self._ensure_stream(stream_id)

        def _insert() -> None:
            with self._lock:
                if any(c.id == condition.id for items in self._data.values() for c in items):
                    raise ConflictingUpdate(
                        condition.id, f"Alert condition {condition.id!r} already exists."
                    )
                self._data.setdefault(stream_id, []).append(_detached(condition))
                try:
                    self._flush()
                except OSError:
                    self._data[stream_id].pop()
                    raise

        self._run("add", _insert)

    def get(self, stream_id: str, condition_id: str) -> AlertCondition:
        with self._lock:
            i = self._index(stream_id, condition_id)
            if i < 0:
                raise ConditionNotFound(stream_id, condition_id)
            return _detached(self._data[stream_id][i])

    def update(self, stream_id: str, condition: AlertCondition) -> AlertCondition:
        _check_owner(stream_id, condition)

        def _replace() -> AlertCondition:
            with self._lock:
                i = self._index(stream_id, condition.id)
                if i < 0:
                    raise ConditionNotFound(stream_id, condition.id)
                current = self._data[stream_id][i]
                if current.version != condition.version:
                    raise ConflictingUpdate(condition.id)
                stored = replace(_detached(condition), version=condition.version + 1)
                self._data[stream_id][i] = stored
                try:
                    self._flush()
                except OSError:
                    self._data[stream_id][i] = current
                    raise
                return _detached(stored)

        return self._run("update", _replace)

    def remove(self, stream_id: str, condition_id: str) -> None:
        def _delete() -> None:
            with self._lock:
                i = self._index(stream_id, condition_id)
                if i < 0:
                    raise ConditionNotFound(stream_id, condition_id)
                removed = self._data[stream_id].pop(i)
                try:
                    self._flush()
                except OSError:
                    self._data[stream_id].insert(i, removed)
                    raise

        self._run("remove", _delete)

    def list(self, stream_id: str) -> list[AlertCondition]:
        self._ensure_stream(stream_id)
        with self._lock:
            return [_detached(c) for c in self._data.get(stream_id, [])]
