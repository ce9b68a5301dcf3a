"""Tests for data models."""

import json

from fuzzhead.models import (
    UNSUPPORTED,
    Diagnostic,
    ExecutionOutcome,
    OutcomeStatus,
    SourceUnit,
    TypeDescriptor,
    describe_value,
)


class Opaque:
    pass


class TestExecutionOutcome:
    def given_success(self):
        self.outcome = ExecutionOutcome(
            class_name="Foo",
            method_name="add",
            args=[1, 2],
            kwargs={},
            status=OutcomeStatus.SUCCESS,
            duration_ms=3,
            return_value=3,
        )

    def given_error(self):
        self.outcome = ExecutionOutcome(
            class_name="Foo",
            method_name="add",
            args=[Opaque()],
            kwargs={"flag": True},
            status=OutcomeStatus.ERROR,
            duration_ms=0,
            error="boom",
        )

    def when_serialized_to_json(self):
        self.parsed = json.loads(json.dumps(self.outcome.to_dict()))

    def test_success_serializes(self):
        self.given_success()
        self.when_serialized_to_json()
        assert self.parsed == {
            "method": "Foo.add",
            "args": ["1", "2"],
            "status": "success",
            "duration_ms": 3,
            "return_value": "3",
        }

    def test_error_serializes_without_return_value(self):
        self.given_error()
        self.when_serialized_to_json()
        assert self.parsed["error"] == "boom"
        assert self.parsed["args"] == ["{...Opaque}"]
        assert self.parsed["kwargs"] == {"flag": "true"}
        assert "return_value" not in self.parsed


class TestModels:
    def test_describe_value(self):
        assert describe_value("abc") == '"abc"'
        assert describe_value(None) == "null"
        assert describe_value(Opaque()) == "{...Opaque}"

    def test_diagnostic_format(self):
        assert Diagnostic("bad", "a.py", 2, 5).format() == "a.py (2,5): bad"
        assert Diagnostic("config problem").format() == "config problem"

    def test_source_unit_stem(self):
        assert SourceUnit("src/pkg/calc.py", "").stem == "calc"

    def test_type_descriptor_str(self):
        assert str(TypeDescriptor.named("Board")) == "Board"
        assert str(TypeDescriptor.number()) == "number"
        assert TypeDescriptor.string().is_primitive
        assert not TypeDescriptor.unknown().is_primitive

    def test_sentinel_repr(self):
        assert repr(UNSUPPORTED) == "<unsupported>"
