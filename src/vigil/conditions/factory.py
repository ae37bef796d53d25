"""AlertConditionFactory: build and re-validate AlertCondition values.

Both operations are pure. Failures come back as values inside a
BuildResult rather than being raised, so the orchestrating layer decides
how each error kind reaches the caller.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, Callable

from vigil.conditions.registry import ConditionTypeRegistry, TypeDescriptor
from vigil.conditions.types import AlertCondition
from vigil.errors import InvalidParameters, TypeMismatch, VigilError


@dataclass(frozen=True)
class BuildResult:
    condition: AlertCondition | None = None
    error: VigilError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AlertCondition:
        """Return the condition or raise the carried error."""
        if self.error is not None:
            raise self.error
        assert self.condition is not None
        return self.condition


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


class AlertConditionFactory:
    """Resolves types against an injected registry and validates parameters.

    Usage:
        factory = AlertConditionFactory(default_registry())
        result = factory.build_new("S1", "field_value", {"field": "level", "value": "3"},
                                   "High severity", "admin")
        condition = result.unwrap()
    """

    def __init__(
        self,
        registry: ConditionTypeRegistry,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
        allow_type_change: bool = False,
    ) -> None:
        self.registry = registry
        self._clock = clock
        self._id_factory = id_factory
        self.allow_type_change = allow_type_change

    def build_new(
        self,
        stream_id: str,
        type_id: str,
        parameters: dict[str, Any] | None,
        title: str,
        creator_user_id: str,
    ) -> BuildResult:
        try:
            descriptor = self.registry.resolve(type_id)
            params = self._validate(descriptor, parameters, title)
        except VigilError as e:
            return BuildResult(error=e)

        condition = AlertCondition(
            id=self._id_factory(),
            stream_id=stream_id,
            type=descriptor.type_id,
            title=title.strip(),
            parameters=params,
            creator_user_id=creator_user_id,
            created_at=self._clock(),
        )
        return BuildResult(condition=condition)

    def apply_update(
        self,
        existing: AlertCondition,
        type_id: str,
        parameters: dict[str, Any] | None,
        title: str,
    ) -> BuildResult:
        """Replace title and parameters; identity fields carry over untouched."""
        try:
            descriptor = self.registry.resolve(type_id)
            if descriptor.type_id != existing.type.lower() and not self.allow_type_change:
                raise TypeMismatch(existing.type, descriptor.type_id)
            params = self._validate(descriptor, parameters, title)
        except VigilError as e:
            return BuildResult(error=e)

        updated = replace(
            existing,
            type=descriptor.type_id,
            title=title.strip(),
            parameters=params,
        )
        return BuildResult(condition=updated)

    @staticmethod
    def _validate(
        descriptor: TypeDescriptor, parameters: dict[str, Any] | None, title: str
    ) -> dict[str, Any]:
        raw = {} if parameters is None else parameters
        problems = descriptor.validate(raw)
        if not isinstance(title, str) or not title.strip():
            problems.append({"path": "title", "issue": "title must be a non-empty string"})
        if problems:
            raise InvalidParameters(descriptor.type_id, problems)
        return copy.deepcopy(raw)
