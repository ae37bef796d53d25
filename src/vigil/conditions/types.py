"""Core types for alert conditions.

AlertCondition = a parameterized rule bound to one stream.
ConditionSummary = the list view of a condition, grace status included.
ConditionLocator = (stream_id, condition_id) for building resource ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def parse_ts(value: str | datetime) -> datetime:
    """ISO string or datetime to an aware datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


@dataclass(frozen=True)
class AlertCondition:
    """A validated alert condition.

    id, stream_id, type, creator_user_id and created_at never change after
    creation. version is bumped by the store on every successful update.
    """

    id: str
    stream_id: str
    type: str
    title: str
    parameters: dict[str, Any] = field(default_factory=dict)
    creator_user_id: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "stream_id": self.stream_id,
            "type": self.type,
            "title": self.title,
            "parameters": dict(self.parameters),
            "creator_user_id": self.creator_user_id,
            "created_at": self.created_at.isoformat(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AlertCondition:
        return cls(
            id=d["id"],
            stream_id=d["stream_id"],
            type=d["type"],
            title=d.get("title", ""),
            parameters=dict(d.get("parameters") or {}),
            creator_user_id=d.get("creator_user_id", ""),
            created_at=parse_ts(d["created_at"]),
            version=d.get("version", 0),
        )


@dataclass(frozen=True)
class ConditionLocator:
    stream_id: str
    condition_id: str

    @property
    def path(self) -> str:
        return f"/streams/{self.stream_id}/alerts/conditions/{self.condition_id}"


@dataclass(frozen=True)
class CreatedCondition:
    """Result of a successful create: the stored value plus where it lives."""

    condition: AlertCondition
    locator: ConditionLocator


@dataclass(frozen=True)
class ConditionSummary:
    id: str
    type: str  # lower-cased for display
    creator_user_id: str
    created_at: datetime
    parameters: dict[str, Any]
    in_grace_period: bool
    title: str

    @classmethod
    def from_condition(cls, condition: AlertCondition, in_grace_period: bool) -> ConditionSummary:
        return cls(
            id=condition.id,
            type=condition.type.lower(),
            creator_user_id=condition.creator_user_id,
            created_at=condition.created_at,
            parameters=dict(condition.parameters),
            in_grace_period=in_grace_period,
            title=condition.title,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "creator_user_id": self.creator_user_id,
            "created_at": self.created_at.isoformat(),
            "parameters": dict(self.parameters),
            "in_grace_period": self.in_grace_period,
            "title": self.title,
        }


@dataclass(frozen=True)
class GracePeriodState:
    """Derived per-condition cool-down state. Never persisted."""

    last_triggered_at: datetime | None
    grace_minutes: int
