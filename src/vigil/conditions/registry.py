"""Condition type registry: type id -> TypeDescriptor.

A descriptor pairs a type id with the JSON Schema (Draft 2020-12) its
parameters must satisfy. Parameters that pass are stored exactly as given;
optional settings such as grace are defaulted by the code that reads them.

The registry is an ordinary object: build one at startup (usually via
default_registry()) and hand it to the factory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jsonschema

from vigil.errors import UnknownConditionType


@dataclass(frozen=True)
class TypeDescriptor:
    type_id: str
    name: str
    schema: dict[str, Any]

    def validate(self, parameters: Any) -> list[dict[str, str]]:
        """Return one {"path", "issue"} entry per schema violation (empty if valid)."""
        validator = jsonschema.Draft202012Validator(self.schema)
        errors = sorted(validator.iter_errors(parameters), key=lambda e: e.json_path)
        return [{"path": e.json_path, "issue": e.message} for e in errors]


class ConditionTypeRegistry:
    """Maps condition type ids to descriptors. Lookups are case-insensitive."""

    def __init__(self) -> None:
        self._descriptors: dict[str, TypeDescriptor] = {}

    def register(self, descriptor: TypeDescriptor) -> None:
        key = descriptor.type_id.lower()
        if key in self._descriptors:
            raise ValueError(f"Condition type {descriptor.type_id!r} is already registered.")
        self._descriptors[key] = descriptor

    def resolve(self, type_id: str) -> TypeDescriptor:
        descriptor = self._descriptors.get((type_id or "").lower())
        if descriptor is None:
            raise UnknownConditionType(type_id, self.available())
        return descriptor

    def available(self) -> list[str]:
        return [d.type_id for d in self._descriptors.values()]

    def __contains__(self, type_id: object) -> bool:
        return isinstance(type_id, str) and type_id.lower() in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


# ---------------------------------------------------------------------------
# Built-in condition types
# ---------------------------------------------------------------------------

_COMMON_PROPERTIES: dict[str, Any] = {
    # Minutes after a trigger during which the condition stays quiet
    "grace": {"type": "integer", "minimum": 0},
    # Number of matching messages attached to a triggered alert
    "backlog": {"type": "integer", "minimum": 0},
    "repeat_notifications": {"type": "boolean"},
    "query": {"type": "string"},
}


def _object_schema(required: dict[str, Any]) -> dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": list(required),
        "properties": {**required, **_COMMON_PROPERTIES},
        "additionalProperties": False,
    }


def _enum_pattern(*choices: str) -> dict[str, Any]:
    return {"type": "string", "pattern": "(?i)^(" + "|".join(choices) + ")$"}


FIELD_VALUE = TypeDescriptor(
    type_id="field_value",
    name="Field Content Alert Condition",
    schema=_object_schema({
        "field": {"type": "string", "minLength": 1},
        "value": {"type": ["string", "number", "boolean"]},
    }),
)

MESSAGE_COUNT = TypeDescriptor(
    type_id="message_count",
    name="Message Count Alert Condition",
    schema=_object_schema({
        "time": {"type": "integer", "minimum": 1},
        "threshold": {"type": "integer", "minimum": 0},
        "threshold_type": _enum_pattern("more", "less"),
    }),
)

FIELD_AGGREGATE = TypeDescriptor(
    type_id="field_aggregate",
    name="Field Aggregation Alert Condition",
    schema=_object_schema({
        "field": {"type": "string", "minLength": 1},
        "type": _enum_pattern("mean", "min", "max", "sum", "stddev"),
        "threshold": {"type": "number"},
        "threshold_type": _enum_pattern("higher", "lower"),
        "time": {"type": "integer", "minimum": 1},
    }),
)

BUILTIN_TYPES: tuple[TypeDescriptor, ...] = (FIELD_VALUE, MESSAGE_COUNT, FIELD_AGGREGATE)


def default_registry() -> ConditionTypeRegistry:
    """A fresh registry holding the built-in condition types."""
    registry = ConditionTypeRegistry()
    for descriptor in BUILTIN_TYPES:
        registry.register(descriptor)
    return registry
