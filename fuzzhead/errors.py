"""Error taxonomy and response envelope helpers."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""

    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"
    IMPORT_ERROR = "IMPORT_ERROR"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    RESOURCE_ERROR = "RESOURCE_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


STATUS_CODES = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.COMPILATION_ERROR: 422,
    ErrorCode.IMPORT_ERROR: 422,
    ErrorCode.EXECUTION_ERROR: 422,
    ErrorCode.RESOURCE_ERROR: 503,
    ErrorCode.TIMEOUT_ERROR: 408,
    ErrorCode.UNKNOWN_ERROR: 500,
}

def _now() -> str:
    return datetime.now(UTC).isoformat()


class FuzzerError(Exception):
    """Base class for every error the fuzzer reports to its caller."""

    code = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = _now()

    @property
    def type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "code": self.code.value,
            "type": self.type,
            "timestamp": self.timestamp,
            "details": self.details,
        }


class ValidationError(FuzzerError):
    """The request envelope was malformed."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message, {"field": field, "value": value})
        self.field = field


class CompilationError(FuzzerError):
    """A source unit produced at least one blocking diagnostic."""

    code = ErrorCode.COMPILATION_ERROR

    def __init__(self, message: str, diagnostics: list[str] | None = None):
        super().__init__(message, {"diagnostics": list(diagnostics or [])})
        self.diagnostics = self.details["diagnostics"]


class ModuleImportError(FuzzerError):
    """The compiled artifact could not be loaded or resolved."""

    code = ErrorCode.IMPORT_ERROR

    def __init__(self, message: str, module_path: str | None = None):
        super().__init__(message, {"module_path": module_path})


class ExecutionError(FuzzerError):
    """A fuzzed method raised. Recovered inside the harness."""

    code = ErrorCode.EXECUTION_ERROR

    def __init__(self, message: str, method_name: str, args: list[Any] | None = None):
        super().__init__(
            message, {"method_name": method_name, "args": [repr(a) for a in args or []]}
        )


class ResourceError(FuzzerError):
    """Source acquisition failed."""

    code = ErrorCode.RESOURCE_ERROR

    def __init__(self, message: str, resource: str, operation: str):
        super().__init__(message, {"resource": resource, "operation": operation})
        self.operation = operation


class FuzzTimeoutError(FuzzerError):
    """The whole invocation exceeded its time budget."""

    code = ErrorCode.TIMEOUT_ERROR

    def __init__(self, message: str, duration: float):
        super().__init__(message, {"duration": duration})


def status_for(error: BaseException) -> int:
    """Map an error to its HTTP status code."""
    if isinstance(error, FuzzerError):
        return STATUS_CODES.get(error.code, 500)
    return 500


def error_payload(error: BaseException) -> dict:
    """Describe any exception in the structured error shape."""
    if isinstance(error, FuzzerError):
        return error.to_dict()
    return {
        "message": str(error) or "An unexpected error occurred",
        "code": ErrorCode.UNKNOWN_ERROR.value,
        "type": type(error).__name__,
        "timestamp": _now(),
        "details": {},
    }


def error_envelope(error: BaseException, transcript: str = "") -> dict:
    """Build the failure envelope, echoing whatever transcript accumulated.

    Args:
        error: The error that aborted the invocation
        transcript: Flattened transcript collected up to the failure

    Returns:
        Envelope dict with success=False, the error payload and the output
    """
    return {
        "success": False,
        "error": error_payload(error),
        "output": transcript,
    }
