"""AlertConditionManager: create, update, list and delete stream alert conditions.

Composes factory + store + grace tracker behind the four caller-facing
operations. Holds no state between calls; everything durable lives in the
store. Emits lifecycle events.

Per condition:  Requested -> Valid -> Stored -> (Updated -> Stored)* -> Deleted
A request that fails validation never reaches Stored.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from vigil.collaborators import (
    AuthorizationCheck,
    IdentityContext,
    StreamLookup,
    TriggerHistory,
)
from vigil.conditions.factory import AlertConditionFactory, BuildResult
from vigil.conditions.grace import GracePeriodTracker
from vigil.conditions.store import AlertConditionStore
from vigil.conditions.types import (
    AlertCondition,
    ConditionLocator,
    ConditionSummary,
    CreatedCondition,
)
from vigil.errors import PermissionDenied
from vigil.observability import emit, get_logger
from vigil.observability.events import (
    ConditionCreated,
    ConditionDeleted,
    ConditionRejected,
    ConditionsListed,
    ConditionUpdated,
)

STREAMS_READ = "streams:read"
STREAMS_EDIT = "streams:edit"


def _logger():
    return get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AlertConditionManager:
    """Lifecycle manager for alert conditions bound to streams.

    Usage:
        manager = AlertConditionManager(streams, store, factory, tracker)
        created = manager.create("S1", "field_value",
                                 {"field": "level", "value": "3"}, "High severity", "admin")
        for summary in manager.list("S1"):
            ...

    authorizer and identity are optional. Without an authorizer every call is
    assumed to be pre-authorized by the caller. Without an identity,
    create() needs an explicit creator_user_id.
    """

    def __init__(
        self,
        streams: StreamLookup,
        store: AlertConditionStore,
        factory: AlertConditionFactory,
        tracker: GracePeriodTracker,
        authorizer: AuthorizationCheck | None = None,
        identity: IdentityContext | None = None,
    ) -> None:
        self.streams = streams
        self.store = store
        self.factory = factory
        self.tracker = tracker
        self.authorizer = authorizer
        self.identity = identity

    @property
    def history(self) -> TriggerHistory:
        return self.tracker.history

    def _authorize(self, action: str, stream_id: str) -> None:
        if self.authorizer is not None and not self.authorizer.check(action, stream_id):
            _logger().warning("condition.permission_denied", action=action, stream_id=stream_id)
            raise PermissionDenied(action, stream_id)

    def _creator(self, creator_user_id: str | None) -> str:
        if creator_user_id:
            return creator_user_id
        if self.identity is None:
            raise ValueError("creator_user_id is required when no IdentityContext is configured")
        return self.identity.current_principal_name()

    def _accept(
        self,
        result: BuildResult,
        operation: str,
        stream_id: str,
        type_id: str,
        condition_id: str | None = None,
    ) -> AlertCondition:
        """Log and raise a factory error, or hand back the built condition."""
        if result.error is not None:
            err = result.error
            _logger().error(
                "condition.invalid",
                operation=operation,
                stream_id=stream_id,
                type_id=type_id,
                condition_id=condition_id,
                error=err.error_code.value,
                details=err.details,
            )
            emit(ConditionRejected(
                stream_id=stream_id,
                operation=operation,
                type_id=type_id,
                error_code=err.error_code.value,
                reason=err.message,
                condition_id=condition_id,
            ))
            raise err
        return result.unwrap()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(
        self,
        stream_id: str,
        type_id: str,
        parameters: dict[str, Any] | None,
        title: str,
        creator_user_id: str | None = None,
    ) -> CreatedCondition:
        self._authorize(STREAMS_EDIT, stream_id)
        stream = self.streams.load(stream_id)

        result = self.factory.build_new(
            stream.id, type_id, parameters, title, self._creator(creator_user_id)
        )
        condition = self._accept(result, "create", stream.id, type_id)
        self.store.add(stream.id, condition)

        emit(ConditionCreated(
            stream_id=stream.id,
            condition_id=condition.id,
            type=condition.type,
            title=condition.title,
            creator_user_id=condition.creator_user_id,
            timestamp=_now_iso(),
        ))
        return CreatedCondition(
            condition=condition,
            locator=ConditionLocator(stream_id=stream.id, condition_id=condition.id),
        )

    def update(
        self,
        stream_id: str,
        condition_id: str,
        type_id: str,
        parameters: dict[str, Any] | None,
        title: str,
    ) -> None:
        self._authorize(STREAMS_EDIT, stream_id)
        stream = self.streams.load(stream_id)
        existing = self.store.get(stream.id, condition_id)

        result = self.factory.apply_update(existing, type_id, parameters, title)
        updated = self._accept(result, "update", stream.id, type_id, condition_id)
        stored = self.store.update(stream.id, updated)

        emit(ConditionUpdated(
            stream_id=stream.id,
            condition_id=stored.id,
            type=stored.type,
            title=stored.title,
            version=stored.version,
            timestamp=_now_iso(),
        ))

    def get(self, stream_id: str, condition_id: str) -> AlertCondition:
        self._authorize(STREAMS_READ, stream_id)
        stream = self.streams.load(stream_id)
        return self.store.get(stream.id, condition_id)

    def list(self, stream_id: str) -> list[ConditionSummary]:
        """Summaries in store order, grace status computed now."""
        self._authorize(STREAMS_READ, stream_id)
        stream = self.streams.load(stream_id)

        now = self.tracker.now()
        summaries = [
            ConditionSummary.from_condition(c, self.tracker.is_in_grace_period(c, now))
            for c in self.store.list(stream.id)
        ]

        emit(ConditionsListed(
            stream_id=stream.id,
            count=len(summaries),
            in_grace_period=sum(1 for s in summaries if s.in_grace_period),
        ))
        return summaries

    def delete(self, stream_id: str, condition_id: str) -> None:
        self._authorize(STREAMS_EDIT, stream_id)
        stream = self.streams.load(stream_id)
        self.store.remove(stream.id, condition_id)
        self.history.clear(condition_id)

        emit(ConditionDeleted(
            stream_id=stream.id,
            condition_id=condition_id,
            timestamp=_now_iso(),
        ))
