"""Tests for the error taxonomy."""

import pytest

from fuzzhead.errors import (
    CompilationError,
    ErrorCode,
    ExecutionError,
    FuzzTimeoutError,
    ModuleImportError,
    ResourceError,
    ValidationError,
    error_envelope,
    status_for,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError("bad", "code", ""), 400),
        (CompilationError("bad", ["x.py (1,1): invalid syntax"]), 422),
        (ModuleImportError("bad", "x.py"), 422),
        (ExecutionError("bad", "Foo.bar", [1]), 422),
        (ResourceError("bad", "github_file", "not_found"), 503),
        (FuzzTimeoutError("slow", 1.5), 408),
        (RuntimeError("surprise"), 500),
    ],
)
def test_status_mapping(error, status):
    assert status_for(error) == status


class TestErrorEnvelope:
    def test_fuzzer_error_payload(self):
        error = CompilationError("Compilation failed", ["x.py (2,5): expected ':'"])
        envelope = error_envelope(error, "partial\noutput")
        assert envelope["success"] is False
        assert envelope["output"] == "partial\noutput"
        assert envelope["error"]["code"] == ErrorCode.COMPILATION_ERROR.value
        assert envelope["error"]["type"] == "CompilationError"
        assert envelope["error"]["details"] == {"diagnostics": ["x.py (2,5): expected ':'"]}
        assert envelope["error"]["timestamp"] == error.timestamp

    def test_unknown_error_payload(self):
        envelope = error_envelope(KeyError("missing"))
        assert envelope["error"]["code"] == "UNKNOWN_ERROR"
        assert envelope["error"]["type"] == "KeyError"
        assert envelope["error"]["details"] == {}
