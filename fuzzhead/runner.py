"""Orchestrate compile -> load -> discover -> execute for one invocation."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from fuzzhead.compiler import ArtifactLoader, compile_source
from fuzzhead.config import FuzzerConfig
from fuzzhead.errors import CompilationError, FuzzerError, ResourceError
from fuzzhead.harness import ExecutionHarness
from fuzzhead.locator import locate_targets, target_class_names
from fuzzhead.models import ExecutionOutcome, SourceUnit, TargetClass
from fuzzhead.report import RunReport
from fuzzhead.synthesizer import (
    DEFAULT_RULES,
    MockValueSynthesizer,
    RegistrationRule,
    apply_rules,
)

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 50


@dataclass
class FuzzResult:
    """Targets found and calls made for one source unit."""

    path: str
    targets: list[TargetClass] = field(default_factory=list)
    outcomes: list[ExecutionOutcome] = field(default_factory=list)

    @property
    def errors(self) -> list[ExecutionOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "targets": [t.name for t in self.targets],
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class SourceProvider(Protocol):
    """Acquires source text from a hosted repository."""

    async def fetch_file(self, repo_url: str, file_path: str, branch: str) -> str: ...

    async def list_python_files(self, repo_url: str, branch: str) -> list[str]: ...


async def fuzz_source(
    unit: SourceUnit,
    report: RunReport,
    config: FuzzerConfig | None = None,
    rules: list[RegistrationRule] | None = None,
    synthesizer: MockValueSynthesizer | None = None,
) -> FuzzResult:
    """Fuzz a single source unit.

    Args:
        unit: Source to compile and run
        report: Transcript for this invocation
        config: Run configuration
        rules: Generator registration rules (DEFAULT_RULES when omitted)
        synthesizer: Value synthesizer (a fresh one when omitted)

    Returns:
        FuzzResult with discovered targets and outcomes

    Raises:
        CompilationError: If the unit produced a blocking diagnostic
        ModuleImportError: If the compiled module could not be loaded
    """
    config = config or FuzzerConfig()
    rules = DEFAULT_RULES if rules is None else rules
    synthesizer = synthesizer or MockValueSynthesizer()

    program = compile_source(unit, config.compiler)
    for warning in program.warnings:
        report.warning(f"Compiler warning: {warning.format()}")
    program.raise_for_errors()
    report.line(f"Successfully compiled {unit.path}")

    report.line(f"\nFuzzing file: {unit.path}")
    report.line(SEPARATOR)

    result = FuzzResult(path=unit.path)
    async with ArtifactLoader() as loader:
        exports = await loader.load(program)
        report.info("Successfully imported compiled module", module=exports.module_name)

        reserved = target_class_names(program, config.locator)
        apply_rules(rules, exports, synthesizer, report, reserved)

        result.targets = locate_targets(program, report, config.locator)
        harness = ExecutionHarness(exports, synthesizer, report)
        result.outcomes = await harness.run(result.targets)

    return result


async def fuzz_repository(
    source: SourceProvider,
    repo_url: str,
    report: RunReport,
    branch: str | None = None,
    file_path: str | None = None,
    config: FuzzerConfig | None = None,
    rules: list[RegistrationRule] | None = None,
) -> list[FuzzResult]:
    """Fuzz one file, or the first few Python files, of a repository.

    Units are processed independently: a file that fails to fetch or
    compile is reported as a warning and the next one proceeds.

    Raises:
        ResourceError: If listing fails or no file could be fetched
    """
    config = config or FuzzerConfig()
    branch = branch or config.default_branch
    contents: dict[str, str] = {}

    if file_path:
        contents[file_path] = await _fetch(source, repo_url, file_path, branch, report)
    else:
        report.line("🔍 Searching for Python files in repository...")
        candidates = await source.list_python_files(repo_url, branch)
        report.line(f"🔍 Found {len(candidates)} Python file(s):")
        for candidate in candidates:
            report.line(f"   - {candidate}")

        to_fetch = candidates[: config.max_repo_files]
        report.line(f"📥 Fetching content for {len(to_fetch)} files...")
        for candidate in to_fetch:
            try:
                contents[candidate] = await _fetch(
                    source, repo_url, candidate, branch, report
                )
            except FuzzerError as e:
                report.warning(f"Failed to fetch {candidate}", error=str(e))
                report.line(f"⚠️  Warning: Failed to fetch {candidate}: {e}")

    if not contents:
        raise ResourceError(
            "No files could be fetched from the repository",
            "github_files",
            "fetch_failed",
        )

    results = []
    for path, text in contents.items():
        report.line(f"\n📝 Processing file: {path}")
        try:
            results.append(
                await fuzz_source(SourceUnit(path, text), report, config, rules)
            )
        except CompilationError as e:
            report.warning(f"Compilation failed for {path}", diagnostics=e.diagnostics)
            report.line(f"⚠️  Warning: Compilation failed for {path}")
            report.line(f"   Errors: {', '.join(e.diagnostics)}")
    return results


async def _fetch(
    source: SourceProvider, repo_url: str, path: str, branch: str, report: RunReport
) -> str:
    report.line(f"\n📥 Fetching file from GitHub: {repo_url}")
    report.line(f"   File: {path}")
    report.line(f"   Branch: {branch}")
    report.line(SEPARATOR)
    text = await source.fetch_file(repo_url, path, branch)
    report.line(f"✅ Successfully fetched file ({len(text)} characters)")
    return text
