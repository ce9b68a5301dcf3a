"""Compile Python source units and load the resulting artifacts."""

import ast
import inspect
import logging
import re
import shutil
import sys
import tempfile
import types
import uuid
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fuzzhead.config import CompilerConfig
from fuzzhead.errors import ModuleImportError
from fuzzhead.models import CompiledProgram, Diagnostic, SourceUnit

logger = logging.getLogger(__name__)

SUPPORTED_MODES = ("exec",)


def compile_source(
    unit: SourceUnit, config: CompilerConfig | None = None
) -> CompiledProgram:
    """Compile a source unit into a loadable code object.

    Never raises: every failure is reported as a blocking diagnostic and
    leaves ``code`` unset. Output is deterministic for a given unit and
    config.

    Args:
        unit: The source to compile
        config: Compiler options (defaults when omitted)

    Returns:
        CompiledProgram with diagnostics, syntax tree and artifact
    """
    config = config or CompilerConfig()
    program = CompiledProgram(unit=unit)

    if config.mode not in SUPPORTED_MODES:
        program.diagnostics.append(
            Diagnostic(f"Unsupported compile mode '{config.mode}'; expected 'exec'")
        )
        return program

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            program.tree = ast.parse(
                unit.text,
                filename=unit.path,
                mode=config.mode,
                feature_version=config.feature_version,
            )
            code = compile(
                program.tree,
                unit.path,
                config.mode,
                dont_inherit=config.dont_inherit,
                optimize=config.optimize,
            )
        except SyntaxError as e:
            program.diagnostics.append(_syntax_error_diagnostic(e, unit.path))
            code = None
        except (ValueError, TypeError, RecursionError) as e:
            program.diagnostics.append(Diagnostic(str(e)))
            code = None

    for warning in caught:
        program.diagnostics.append(
            Diagnostic(
                message=str(warning.message),
                file=unit.path,
                line=warning.lineno or None,
                column=1 if warning.lineno else None,
                blocking=config.warnings_as_errors,
            )
        )

    if code is not None and not any(d.blocking for d in program.diagnostics):
        program.code = code
        logger.info(f"Compiled {unit.path} ({len(program.warnings)} warnings)")
    else:
        logger.info(f"Compilation of {unit.path} blocked")
    return program


def _syntax_error_diagnostic(error: SyntaxError, path: str) -> Diagnostic:
    if error.lineno is None:
        return Diagnostic(error.msg or str(error))
    return Diagnostic(
        message=error.msg,
        file=path,
        line=error.lineno,
        column=error.offset if error.offset and error.offset > 0 else 1,
    )


def _is_zero_arg_constructible(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


@dataclass
class ModuleExports:
    """Lookup table of a loaded artifact's exported members.

    Built once after a successful load. Exported classes are reachable both
    under their exported name and under their declared ``__name__``.
    """

    module_name: str
    path: str
    members: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_module(cls, module: types.ModuleType) -> "ModuleExports":
        namespace = vars(module)
        declared = namespace.get("__all__")
        if isinstance(declared, (list, tuple)):
            names = [n for n in declared if isinstance(n, str) and n in namespace]
        else:
            names = [n for n in namespace if not n.startswith("_")]

        members = {name: namespace[name] for name in names}
        for value in list(members.values()):
            if isinstance(value, type):
                members.setdefault(value.__name__, value)
        return cls(module_name=module.__name__, path=module.__file__ or "", members=members)

    def get(self, name: str) -> Any | None:
        return self.members.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.members

    def without(self, class_names: set[str]) -> "ModuleExports":
        """A copy that drops the named classes under every name they export as."""
        members = {
            name: value
            for name, value in self.members.items()
            if name not in class_names
            and not (isinstance(value, type) and value.__name__ in class_names)
        }
        return ModuleExports(module_name=self.module_name, path=self.path, members=members)

    def local_classes(self) -> dict[str, type]:
        """Exported classes defined by the module itself, by declared name."""
        result = {}
        for value in self.members.values():
            if isinstance(value, type) and value.__module__ == self.module_name:
                result.setdefault(value.__name__, value)
        return result

    def zero_arg_classes(self) -> dict[str, type]:
        return {
            name: value
            for name, value in self.local_classes().items()
            if _is_zero_arg_constructible(value)
        }


class ArtifactLoader:
    """Load compiled programs as throwaway modules.

    Each load gets a unique temporary file and module name so concurrent
    invocations never collide. Everything is removed on exit.

    Usage:
        async with ArtifactLoader() as loader:
            exports = await loader.load(program)
    """

    def __init__(self, root: str | None = None):
        self._root = root
        self._workdir: Path | None = None
        self._module_names: list[str] = []

    async def __aenter__(self) -> "ArtifactLoader":
        self._workdir = Path(tempfile.mkdtemp(prefix="fuzzhead-", dir=self._root))
        logger.debug(f"Created artifact directory {self._workdir}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Drop loaded modules and delete temporary files."""
        for name in self._module_names:
            sys.modules.pop(name, None)
        self._module_names.clear()
        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
            logger.debug(f"Removed artifact directory {self._workdir}")
            self._workdir = None

    async def load(self, program: CompiledProgram) -> ModuleExports:
        """Execute a compiled program in a fresh module.

        Args:
            program: A successfully compiled program

        Returns:
            ModuleExports lookup table for the loaded module

        Raises:
            ModuleImportError: If there is no artifact or the module body raises
        """
        if self._workdir is None:
            raise RuntimeError("ArtifactLoader used outside of its context")
        if not program.succeeded:
            raise ModuleImportError(
                f"No artifact was produced for {program.unit.path}", program.unit.path
            )

        token = uuid.uuid4().hex[:12]
        stem = re.sub(r"\W", "_", program.unit.stem)
        path = self._workdir / f"fuzz-{stem}-{token}.py"
        path.write_text(program.unit.text)

        module_name = f"_fuzzhead_{stem}_{token}"
        module = types.ModuleType(module_name)
        module.__file__ = str(path)
        sys.modules[module_name] = module
        self._module_names.append(module_name)

        try:
            exec(program.code, module.__dict__)
        except (Exception, SystemExit) as e:
            logger.warning(f"Loading {program.unit.path} failed: {e!r}")
            raise ModuleImportError(
                f"Could not import compiled module: {e}", program.unit.path
            ) from e

        exports = ModuleExports.from_module(module)
        logger.info(f"Loaded {program.unit.path} as {module_name}")
        return exports
