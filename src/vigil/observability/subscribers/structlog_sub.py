"""Routes lifecycle events to structured log lines via the configured LogFormatter.

Always-on subscriber, registered by emitter.configure(). These lines are the
audit trail for condition changes.
"""

from __future__ import annotations

from dataclasses import asdict

from vigil.observability.events import (
    ConditionCreated,
    ConditionDeleted,
    ConditionRejected,
    ConditionsListed,
    ConditionUpdated,
)
from vigil.observability.linker import VigilEventLinker
from vigil.observability.logging import get_logger


def _get_logger():
    """Lazy logger -- always reflects the active formatter, not stale import-time state."""
    return get_logger("vigil.events")


def _to_dict(event: object) -> dict:
    """Convert frozen dataclass to dict for structlog."""
    return asdict(event)  # type: ignore[arg-type]


def register_structlog_subscriber() -> None:
    """Register log handlers for all lifecycle events on VigilEventLinker."""

    @VigilEventLinker.on(ConditionCreated)
    def _log_created(event: ConditionCreated) -> None:
        _get_logger().info("condition.created", **_to_dict(event))

    @VigilEventLinker.on(ConditionUpdated)
    def _log_updated(event: ConditionUpdated) -> None:
        _get_logger().info("condition.updated", **_to_dict(event))

    @VigilEventLinker.on(ConditionDeleted)
    def _log_deleted(event: ConditionDeleted) -> None:
        _get_logger().info("condition.deleted", **_to_dict(event))

    @VigilEventLinker.on(ConditionsListed)
    def _log_listed(event: ConditionsListed) -> None:
        _get_logger().debug("conditions.listed", **_to_dict(event))

    @VigilEventLinker.on(ConditionRejected)
    def _log_rejected(event: ConditionRejected) -> None:
        _get_logger().warning("condition.rejected", **_to_dict(event))
