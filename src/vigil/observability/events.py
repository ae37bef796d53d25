"""Typed event dataclasses for alert-condition lifecycle.

All events are frozen (immutable) dataclasses. The manager emits these;
it doesn't know about log lines or audit sinks. Subscribers handle routing.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ConditionCreated:
    stream_id: str
    condition_id: str
    type: str
    title: str
    creator_user_id: str
    timestamp: str  # ISO


@dataclass(frozen=True)
class ConditionUpdated:
    stream_id: str
    condition_id: str
    type: str
    title: str
    version: int
    timestamp: str


@dataclass(frozen=True)
class ConditionDeleted:
    stream_id: str
    condition_id: str
    timestamp: str


@dataclass(frozen=True)
class ConditionsListed:
    stream_id: str
    count: int
    in_grace_period: int


@dataclass(frozen=True)
class ConditionRejected:
    """A create/update request that never reached the store."""

    stream_id: str
    operation: str  # "create" | "update"
    type_id: str
    error_code: str
    reason: str
    condition_id: str | None = None
