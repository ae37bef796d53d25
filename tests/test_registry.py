"""Tests for ConditionTypeRegistry and the built-in condition types."""

from __future__ import annotations

import pytest

from vigil.conditions.registry import (
    BUILTIN_TYPES,
    FIELD_VALUE,
    ConditionTypeRegistry,
    TypeDescriptor,
    default_registry,
)
from vigil.errors import UnknownConditionType


class TestResolve:
    def test_builtin_types_registered_in_order(self):
        registry = default_registry()
        assert registry.available() == ["field_value", "message_count", "field_aggregate"]
        assert len(registry) == len(BUILTIN_TYPES)

    def test_resolve_known(self):
        assert default_registry().resolve("field_value") is FIELD_VALUE

    def test_resolve_is_case_insensitive(self):
        registry = default_registry()
        assert registry.resolve("FIELD_VALUE").type_id == "field_value"
        assert "Message_Count" in registry

    def test_resolve_unknown_raises(self):
        with pytest.raises(UnknownConditionType) as exc:
            default_registry().resolve("nonexistent")
        assert exc.value.type_id == "nonexistent"
        assert "field_value" in exc.value.message

    def test_resolve_empty_raises(self):
        with pytest.raises(UnknownConditionType):
            default_registry().resolve("")

    def test_registries_are_independent(self):
        a = default_registry()
        b = ConditionTypeRegistry()
        assert "field_value" in a
        assert "field_value" not in b

    def test_duplicate_registration_rejected(self):
        registry = default_registry()
        with pytest.raises(ValueError, match="already registered"):
            registry.register(FIELD_VALUE)

    def test_custom_type(self):
        registry = ConditionTypeRegistry()
        registry.register(TypeDescriptor(
            type_id="always",
            name="Always",
            schema={"type": "object", "additionalProperties": False},
        ))
        assert registry.resolve("always").validate({}) == []


class TestFieldValueSchema:
    def test_valid(self):
        assert FIELD_VALUE.validate({"field": "level", "value": "3"}) == []

    def test_missing_required(self):
        problems = FIELD_VALUE.validate({"field": "level"})
        assert len(problems) == 1
        assert "'value' is a required property" in problems[0]["issue"]

    def test_wrong_type(self):
        problems = FIELD_VALUE.validate({"field": 7, "value": "3"})
        assert problems
        assert problems[0]["path"] == "$.field"

    def test_unknown_key_rejected(self):
        problems = FIELD_VALUE.validate({"field": "level", "value": "3", "colour": "red"})
        assert any("colour" in p["issue"] for p in problems)

    def test_negative_grace_out_of_range(self):
        problems = FIELD_VALUE.validate({"field": "level", "value": "3", "grace": -1})
        assert problems[0]["path"] == "$.grace"

    def test_boolean_is_not_an_integer(self):
        assert FIELD_VALUE.validate({"field": "level", "value": "3", "grace": True})


class TestMessageCountSchema:
    def setup_method(self):
        self.descriptor = default_registry().resolve("message_count")

    def test_valid(self):
        raw = {"time": 5, "threshold": 100, "threshold_type": "MORE", "grace": 10}
        assert self.descriptor.validate(raw) == []

    def test_zero_time_rejected(self):
        raw = {"time": 0, "threshold": 1, "threshold_type": "more"}
        assert self.descriptor.validate(raw)[0]["path"] == "$.time"

    def test_bad_threshold_type(self):
        raw = {"time": 1, "threshold": 1, "threshold_type": "sideways"}
        assert self.descriptor.validate(raw)[0]["path"] == "$.threshold_type"


class TestFieldAggregateSchema:
    def test_valid(self):
        descriptor = default_registry().resolve("field_aggregate")
        raw = {
            "field": "took_ms",
            "type": "MEAN",
            "threshold": 250.5,
            "threshold_type": "higher",
            "time": 10,
        }
        assert descriptor.validate(raw) == []

    def test_missing_everything_reports_each_key(self):
        descriptor = default_registry().resolve("field_aggregate")
        problems = descriptor.validate({})
        assert len(problems) == 5
        assert all("required property" in p["issue"] for p in problems)
