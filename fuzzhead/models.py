"""Data models shared by the compiler, locator, synthesizer and harness."""

import ast
import json
from dataclasses import dataclass, field
from enum import Enum
from types import CodeType
from typing import Any

from fuzzhead.errors import CompilationError


@dataclass(frozen=True)
class SourceUnit:
    """Source text addressed by a virtual path."""

    path: str
    text: str

    @property
    def stem(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        return name.rsplit(".", 1)[0] or "module"


@dataclass(frozen=True)
class Diagnostic:
    """A compiler message, optionally localized to a 1-based position."""

    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    blocking: bool = True

    def format(self) -> str:
        if self.file is not None and self.line is not None:
            return f"{self.file} ({self.line},{self.column or 1}): {self.message}"
        return self.message


@dataclass
class CompiledProgram:
    """Result of compiling one SourceUnit.

    ``code`` is the loadable artifact; it is None whenever a blocking
    diagnostic was produced.
    """

    unit: SourceUnit
    diagnostics: list[Diagnostic] = field(default_factory=list)
    tree: ast.Module | None = None
    code: CodeType | None = None

    @property
    def succeeded(self) -> bool:
        return self.code is not None

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.blocking]

    def raise_for_errors(self) -> None:
        """Raise CompilationError if no artifact was produced."""
        if self.succeeded:
            return
        raise CompilationError(
            f"Compilation failed for {self.unit.path}",
            [d.format() for d in self.diagnostics],
        )


class TypeKind(Enum):
    """Classification of a declared parameter type."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NAMED = "named"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TypeDescriptor:
    """Static description of a parameter's declared type."""

    kind: TypeKind
    name: str | None = None  # only set for NAMED

    @classmethod
    def string(cls) -> "TypeDescriptor":
        return cls(TypeKind.STRING)

    @classmethod
    def number(cls) -> "TypeDescriptor":
        return cls(TypeKind.NUMBER)

    @classmethod
    def boolean(cls) -> "TypeDescriptor":
        return cls(TypeKind.BOOLEAN)

    @classmethod
    def named(cls, name: str) -> "TypeDescriptor":
        return cls(TypeKind.NAMED, name)

    @classmethod
    def unknown(cls) -> "TypeDescriptor":
        return cls(TypeKind.UNKNOWN)

    @property
    def is_primitive(self) -> bool:
        return self.kind in (TypeKind.STRING, TypeKind.NUMBER, TypeKind.BOOLEAN)

    def __str__(self) -> str:
        if self.kind is TypeKind.NAMED:
            return self.name or ""
        return self.kind.value


@dataclass(frozen=True)
class Parameter:
    """A method parameter and how it is passed."""

    name: str
    descriptor: TypeDescriptor
    keyword_only: bool = False


@dataclass
class CallableMethod:
    """A fuzzable method on a target class."""

    name: str
    parameters: list[Parameter]
    owner: str  # name of the owning TargetClass
    is_async: bool = False

    @property
    def descriptors(self) -> list[TypeDescriptor]:
        return [p.descriptor for p in self.parameters]

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass
class TargetClass:
    """A class that derives from a target base marker."""

    name: str
    methods: list[CallableMethod] = field(default_factory=list)
    line: int | None = None


class _Unsupported:
    """Type of the UNSUPPORTED sentinel."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<unsupported>"


UNSUPPORTED = _Unsupported()


@dataclass(frozen=True)
class MockValue:
    """A synthesized argument tagged with the type it was built for."""

    descriptor: TypeDescriptor
    value: Any

    @property
    def is_unsupported(self) -> bool:
        return self.value is UNSUPPORTED


class OutcomeStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ExecutionOutcome:
    """Result of a single method invocation."""

    class_name: str
    method_name: str
    args: list[Any]
    kwargs: dict[str, Any]
    status: OutcomeStatus
    duration_ms: int
    return_value: Any = None
    error: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.class_name}.{self.method_name}"

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "method": self.qualified_name,
            "args": [describe_value(a) for a in self.args],
            "status": self.status.value,
            "duration_ms": self.duration_ms,
        }
        if self.kwargs:
            result["kwargs"] = {k: describe_value(v) for k, v in self.kwargs.items()}
        if self.error is not None:
            result["error"] = self.error
        elif self.return_value is not None:
            result["return_value"] = describe_value(self.return_value)
        return result


def describe_value(value: Any) -> str:
    """Render a value for the transcript.

    Plain JSON values are dumped as JSON; other objects are shown by type
    name only, as ``{...TypeName}``.
    """
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return f"{{...{type(value).__name__}}}"
