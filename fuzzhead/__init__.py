"""Reflection-driven fuzz harness for Python classes."""

from fuzzhead.compiler import ArtifactLoader, ModuleExports, compile_source
from fuzzhead.config import CompilerConfig, FuzzerConfig, LocatorConfig
from fuzzhead.errors import (
    CompilationError,
    ErrorCode,
    ExecutionError,
    FuzzerError,
    FuzzTimeoutError,
    ModuleImportError,
    ResourceError,
    ValidationError,
)
from fuzzhead.harness import ExecutionHarness
from fuzzhead.locator import locate_targets
from fuzzhead.markers import FuzzTarget, fuzzable
from fuzzhead.models import (
    UNSUPPORTED,
    CallableMethod,
    CompiledProgram,
    Diagnostic,
    ExecutionOutcome,
    MockValue,
    OutcomeStatus,
    SourceUnit,
    TargetClass,
    TypeDescriptor,
    TypeKind,
)
from fuzzhead.report import RunReport, Severity
from fuzzhead.runner import FuzzResult, fuzz_repository, fuzz_source
from fuzzhead.synthesizer import DEFAULT_RULES, MockValueSynthesizer, RegistrationRule

__all__ = [
    # Markers
    "FuzzTarget",
    "fuzzable",
    # Models
    "SourceUnit",
    "Diagnostic",
    "CompiledProgram",
    "TypeKind",
    "TypeDescriptor",
    "TargetClass",
    "CallableMethod",
    "MockValue",
    "UNSUPPORTED",
    "OutcomeStatus",
    "ExecutionOutcome",
    # Configuration
    "CompilerConfig",
    "LocatorConfig",
    "FuzzerConfig",
    # Errors
    "ErrorCode",
    "FuzzerError",
    "ValidationError",
    "CompilationError",
    "ModuleImportError",
    "ExecutionError",
    "ResourceError",
    "FuzzTimeoutError",
    # Pipeline
    "compile_source",
    "ArtifactLoader",
    "ModuleExports",
    "locate_targets",
    "MockValueSynthesizer",
    "RegistrationRule",
    "DEFAULT_RULES",
    "ExecutionHarness",
    "RunReport",
    "Severity",
    "FuzzResult",
    "fuzz_source",
    "fuzz_repository",
]
