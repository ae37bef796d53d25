"""Tests for AlertConditionFactory: build_new, apply_update, error values."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from vigil.conditions.factory import AlertConditionFactory, BuildResult
from vigil.conditions.registry import default_registry
from vigil.errors import InvalidParameters, TypeMismatch, UnknownConditionType

from conftest import T0

FIELD_PARAMS = {"field": "level", "value": "3"}


class TestBuildNew:
    def test_builds_condition(self, factory):
        result = factory.build_new("S1", "field_value", FIELD_PARAMS, "High severity", "admin")
        assert result.ok
        c = result.unwrap()
        assert c.type == "field_value"
        assert c.stream_id == "S1"
        assert c.title == "High severity"
        assert c.creator_user_id == "admin"
        assert c.created_at == T0
        assert c.version == 0
        assert c.parameters["field"] == "level"
        assert c.parameters["value"] == "3"

    def test_type_is_canonicalized(self, factory):
        c = factory.build_new("S1", "FIELD_VALUE", FIELD_PARAMS, "t", "admin").unwrap()
        assert c.type == "field_value"

    def test_does_not_mutate_input(self, factory):
        params = dict(FIELD_PARAMS)
        factory.build_new("S1", "field_value", params, "t", "admin")
        assert params == FIELD_PARAMS

    def test_parameters_stored_exactly_as_given(self, factory):
        c = factory.build_new("S1", "field_value", {"field": "level", "value": 3}, "t", "admin").unwrap()
        assert c.parameters == {"field": "level", "value": 3}

    def test_enum_case_kept(self, factory):
        params = {"time": 5, "threshold": 10, "threshold_type": "MORE"}
        c = factory.build_new("S1", "message_count", params, "t", "admin").unwrap()
        assert c.parameters == params

    def test_parameters_are_a_copy(self, factory):
        params = {"field": "level", "value": "3"}
        c = factory.build_new("S1", "field_value", params, "t", "admin").unwrap()
        params["value"] = "changed"
        assert c.parameters["value"] == "3"

    def test_unknown_type_is_returned_not_raised(self, factory):
        result = factory.build_new("S1", "nonexistent", {}, "t", "admin")
        assert not result.ok
        assert result.condition is None
        assert isinstance(result.error, UnknownConditionType)

    def test_invalid_parameters_returned(self, factory):
        result = factory.build_new("S1", "field_value", {"field": ""}, "t", "admin")
        assert isinstance(result.error, InvalidParameters)
        paths = {d["path"] for d in result.error.details}
        assert "$.field" in paths
        with pytest.raises(InvalidParameters):
            result.unwrap()

    def test_none_parameters_treated_as_empty(self, factory):
        result = factory.build_new("S1", "field_value", None, "t", "admin")
        assert isinstance(result.error, InvalidParameters)

    def test_blank_title_rejected(self, factory):
        result = factory.build_new("S1", "field_value", FIELD_PARAMS, "   ", "admin")
        assert isinstance(result.error, InvalidParameters)
        assert result.error.details[-1]["path"] == "title"

    def test_injected_id_factory(self):
        ids = iter(["a", "b"])
        f = AlertConditionFactory(default_registry(), id_factory=lambda: next(ids))
        assert f.build_new("S1", "field_value", FIELD_PARAMS, "t", "u").unwrap().id == "a"
        assert f.build_new("S1", "field_value", FIELD_PARAMS, "t", "u").unwrap().id == "b"


class TestApplyUpdate:
    def test_replaces_mutable_fields_only(self, factory, clock):
        original = factory.build_new("S1", "field_value", FIELD_PARAMS, "old", "admin").unwrap()
        clock.advance(hours=1)
        result = factory.apply_update(
            original, "field_value", {"field": "level", "value": "5", "grace": 3}, "new"
        )
        updated = result.unwrap()
        assert updated.title == "new"
        assert updated.parameters["value"] == "5"
        assert updated.parameters["grace"] == 3
        assert updated.id == original.id
        assert updated.stream_id == original.stream_id
        assert updated.creator_user_id == original.creator_user_id
        assert updated.created_at == original.created_at == T0
        # pure: the original value is untouched
        assert original.title == "old"

    def test_type_change_rejected_by_default(self, factory):
        original = factory.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin").unwrap()
        result = factory.apply_update(
            original, "message_count", {"time": 1, "threshold": 1, "threshold_type": "more"}, "t"
        )
        assert isinstance(result.error, TypeMismatch)
        assert result.error.existing_type == "field_value"
        assert result.error.requested_type == "message_count"

    def test_same_type_different_case_is_not_a_change(self, factory):
        original = factory.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin").unwrap()
        assert factory.apply_update(original, "Field_Value", FIELD_PARAMS, "t").ok

    def test_type_change_allowed_when_configured(self):
        f = AlertConditionFactory(default_registry(), allow_type_change=True)
        original = f.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin").unwrap()
        updated = f.apply_update(
            original, "message_count", {"time": 1, "threshold": 1, "threshold_type": "less"}, "t"
        ).unwrap()
        assert updated.type == "message_count"
        assert updated.id == original.id

    def test_unknown_type_on_update(self, factory):
        original = factory.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin").unwrap()
        result = factory.apply_update(original, "gone", FIELD_PARAMS, "t")
        assert isinstance(result.error, UnknownConditionType)

    def test_invalid_parameters_on_update(self, factory):
        original = factory.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin").unwrap()
        result = factory.apply_update(original, "field_value", {"field": "level"}, "t")
        assert isinstance(result.error, InvalidParameters)


class TestBuildResult:
    def test_unwrap_ok(self, factory):
        result = factory.build_new("S1", "field_value", FIELD_PARAMS, "t", "admin")
        assert result.unwrap() is result.condition

    def test_unwrap_error_raises_carried_error(self):
        err = UnknownConditionType("x")
        with pytest.raises(UnknownConditionType) as exc:
            BuildResult(error=err).unwrap()
        assert exc.value is err


# ---------------------------------------------------------------------------
# Property-based
# ---------------------------------------------------------------------------

_text = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=12)

_field_value_params = st.fixed_dictionaries(
    {"field": _text, "value": st.one_of(_text, st.integers(), st.booleans())},
    optional={
        "grace": st.integers(min_value=0, max_value=10_000),
        "backlog": st.integers(min_value=0, max_value=500),
        "repeat_notifications": st.booleans(),
        "query": _text,
    },
)


class TestProperties:
    @given(st.lists(_field_value_params, min_size=1, max_size=20))
    @settings(max_examples=30)
    def test_valid_params_round_trip_and_ids_unique(self, param_sets):
        f = AlertConditionFactory(default_registry())
        ids = set()
        for params in param_sets:
            c = f.build_new("S1", "field_value", params, "title", "u").unwrap()
            assert c.parameters == params
            ids.add(c.id)
        assert len(ids) == len(param_sets)

    @given(st.lists(st.tuples(_text, _field_value_params), min_size=1, max_size=15))
    @settings(max_examples=30)
    def test_identity_preserved_over_successive_updates(self, updates):
        created_at = datetime(2020, 1, 1, tzinfo=UTC)
        f = AlertConditionFactory(default_registry(), clock=lambda: created_at)
        original = f.build_new("S1", "field_value", {"field": "a", "value": "b"}, "t", "u").unwrap()
        current = original
        for title, params in updates:
            current = f.apply_update(current, "field_value", params, title).unwrap()
            assert current.title == title
        assert current.id == original.id
        assert current.stream_id == original.stream_id
        assert current.creator_user_id == original.creator_user_id
        assert current.created_at == original.created_at
        assert current.type == original.type
