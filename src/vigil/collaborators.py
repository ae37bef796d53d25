"""Interfaces to the systems alert-condition management calls into.

StreamLookup        : does a stream exist, and what is it
AuthorizationCheck  : may the caller perform an action on a resource
TriggerHistory      : when did a condition last trigger (evaluation engine)
IdentityContext     : who is calling

Each protocol ships with a small in-process implementation used for local
wiring (CLI) and tests. Production deployments plug in their own.
"""

from __future__ import annotations

import fnmatch
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

from vigil.errors import StreamNotFound


@dataclass(frozen=True)
class Stream:
    id: str
    title: str = ""
    description: str = ""


@runtime_checkable
class StreamLookup(Protocol):
    def load(self, stream_id: str) -> Stream: ...


@runtime_checkable
class AuthorizationCheck(Protocol):
    def check(self, action: str, resource_id: str) -> bool: ...


@runtime_checkable
class TriggerHistory(Protocol):
    def last_trigger_time(self, condition_id: str) -> datetime | None: ...
    def clear(self, condition_id: str) -> None: ...


@runtime_checkable
class IdentityContext(Protocol):
    def current_principal_name(self) -> str: ...


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class MemoryStreamLookup:
    """Dict-backed stream catalog."""

    def __init__(self, streams: list[Stream] | None = None) -> None:
        self._streams: dict[str, Stream] = {s.id: s for s in streams or []}

    def add(self, stream: Stream) -> None:
        self._streams[stream.id] = stream

    def load(self, stream_id: str) -> Stream:
        stream = self._streams.get(stream_id)
        if stream is None:
            raise StreamNotFound(stream_id)
        return stream

    def all(self) -> list[Stream]:
        return list(self._streams.values())


class YamlStreamLookup:
    """Stream catalog kept in a YAML file.

    File layout: {path}
    YAML structure: { stream_id: { title: ..., description: ... } }

    Re-read on every load() so edits by other processes are picked up.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    def _read(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}
        raw = yaml.safe_load(self._path.read_text()) or {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): (v if isinstance(v, dict) else {}) for k, v in raw.items()}

    def load(self, stream_id: str) -> Stream:
        entry = self._read().get(stream_id)
        if entry is None:
            raise StreamNotFound(stream_id)
        return Stream(
            id=stream_id,
            title=entry.get("title", ""),
            description=entry.get("description", ""),
        )

    def add(self, stream: Stream) -> None:
        data = self._read()
        data[stream.id] = {"title": stream.title, "description": stream.description}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(yaml.safe_dump(data, sort_keys=False))

    def all(self) -> list[Stream]:
        return [self.load(stream_id) for stream_id in self._read()]


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class StaticAuthorization:
    """Grants a fixed set of permissions.

    Permissions are "action:resource_id" strings; shell-style wildcards
    work in either half, e.g. "streams:read:*" or "*".
    """

    def __init__(self, permissions: list[str] | None = None) -> None:
        self._permissions = list(permissions or [])

    def check(self, action: str, resource_id: str) -> bool:
        wanted = f"{action}:{resource_id}"
        return any(fnmatch.fnmatchcase(wanted, p) for p in self._permissions)


# ---------------------------------------------------------------------------
# Trigger history
# ---------------------------------------------------------------------------


class MemoryTriggerHistory:
    """Last-trigger timestamps per condition, as reported by the evaluation engine."""

    def __init__(self) -> None:
        self._last: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def record(self, condition_id: str, at: datetime | None = None) -> None:
        ts = at or datetime.now(UTC)
        with self._lock:
            prev = self._last.get(condition_id)
            if prev is None or ts > prev:
                self._last[condition_id] = ts

    def last_trigger_time(self, condition_id: str) -> datetime | None:
        with self._lock:
            return self._last.get(condition_id)

    def clear(self, condition_id: str) -> None:
        with self._lock:
            self._last.pop(condition_id, None)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass
class StaticIdentity:
    principal: str = field(default="admin")

    def current_principal_name(self) -> str:
        return self.principal
