"""Tests for the execution harness."""

import random

import pytest

from fuzzhead.compiler import ArtifactLoader, compile_source
from fuzzhead.harness import ExecutionHarness
from fuzzhead.locator import locate_targets
from fuzzhead.models import OutcomeStatus, SourceUnit
from fuzzhead.report import RunReport
from fuzzhead.synthesizer import MockValueSynthesizer

HEADER = "from fuzzhead.markers import FuzzTarget, fuzzable\n"


class TestExecutionHarness:
    async def given_source(self, text):
        self.report = RunReport()
        self.synthesizer = MockValueSynthesizer(random.Random(7))
        program = compile_source(SourceUnit("target.py", HEADER + text))
        assert program.succeeded, program.diagnostics
        self.loader = ArtifactLoader()
        await self.loader.__aenter__()
        self.exports = await self.loader.load(program)
        self.targets = locate_targets(program, self.report)

    async def when_run(self):
        harness = ExecutionHarness(self.exports, self.synthesizer, self.report)
        try:
            self.outcomes = await harness.run(self.targets)
        finally:
            self.loader.close()

    def then_outcomes_are(self, expected):
        assert [(o.method_name, o.status) for o in self.outcomes] == expected

    async def test_successful_call_records_return_value(self):
        await self.given_source(
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def add(self, a: int, b: int) -> int:\n"
            "        return a + b\n"
        )
        await self.when_run()
        self.then_outcomes_are([("add", OutcomeStatus.SUCCESS)])
        outcome = self.outcomes[0]
        assert len(outcome.args) == 2
        assert all(isinstance(a, int) for a in outcome.args)
        assert outcome.return_value == sum(outcome.args)
        assert outcome.duration_ms >= 0
        assert "✅ Success" in self.report.transcript()
        assert f"Output: {outcome.return_value}" in self.report.transcript()

    async def test_error_is_recorded_and_execution_continues(self):
        """A raising method is local: later methods and classes still run."""
        await self.given_source(
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def add(self, a: int) -> int:\n"
            "        raise ValueError('boom')\n"
            "    @fuzzable\n"
            "    def after(self) -> str:\n"
            "        return 'ok'\n"
            "class Bar(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def later(self) -> None:\n"
            "        pass\n"
        )
        await self.when_run()
        self.then_outcomes_are(
            [
                ("add", OutcomeStatus.ERROR),
                ("after", OutcomeStatus.SUCCESS),
                ("later", OutcomeStatus.SUCCESS),
            ]
        )
        assert self.outcomes[0].error == "boom"
        assert self.report.summary().errors == 1
        assert "Message: boom" in self.report.transcript()

    async def test_unsupported_parameter_skips_method(self):
        """A sentinel argument means no call, no outcome and one skip line."""
        await self.given_source(
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def add(self, a: 'CustomType') -> None:\n"
            "        raise AssertionError('must not be called')\n"
            "    @fuzzable\n"
            "    def untyped(self, a) -> None:\n"
            "        raise AssertionError('must not be called')\n"
        )
        await self.when_run()
        self.then_outcomes_are([])
        skips = [line for line in self.report.lines if "Skipping" in line]
        assert skips == [
            "  -> Skipping Foo.add(...) due to unsupported parameter types.",
            "  -> Skipping Foo.untyped(...) due to unsupported parameter types.",
        ]
        assert self.report.summary().errors == 0

    async def test_methods_share_one_instance_in_order(self):
        await self.given_source(
            "class Foo(FuzzTarget):\n"
            "    instances = 0\n"
            "    def __init__(self):\n"
            "        Foo.instances += 1\n"
            "        self.calls = []\n"
            "    @fuzzable\n"
            "    def first(self) -> None:\n"
            "        self.calls.append('first')\n"
            "    @fuzzable\n"
            "    def second(self) -> list:\n"
            "        self.calls.append('second')\n"
            "        return self.calls\n"
        )
        await self.when_run()
        assert self.outcomes[1].return_value == ["first", "second"]
        assert self.exports.get("Foo").instances == 1

    async def test_async_methods_are_awaited(self):
        await self.given_source(
            "import asyncio\n"
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    async def slow(self, text: str) -> str:\n"
            "        await asyncio.sleep(0)\n"
            "        return text * 2\n"
        )
        await self.when_run()
        outcome = self.outcomes[0]
        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.return_value == outcome.args[0] * 2

    async def test_keyword_only_parameters_passed_by_name(self):
        await self.given_source(
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def go(self, *, flag: bool) -> bool:\n"
            "        return flag\n"
        )
        await self.when_run()
        outcome = self.outcomes[0]
        assert outcome.args == []
        assert outcome.return_value is outcome.kwargs["flag"]

    async def test_failed_instantiation_skips_class(self):
        await self.given_source(
            "class Bad(FuzzTarget):\n"
            "    def __init__(self):\n"
            "        raise RuntimeError('cannot build')\n"
            "    @fuzzable\n"
            "    def go(self) -> None: pass\n"
            "class Good(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def go(self) -> None: pass\n"
        )
        await self.when_run()
        assert [o.class_name for o in self.outcomes] == ["Good"]
        assert "Failed to instantiate Bad: cannot build" in self.report.transcript()
        assert self.report.summary().errors == 1

    async def test_exit_from_method_is_recorded_as_error(self):
        await self.given_source(
            "import sys\n"
            "class Foo(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def quit(self, a: int) -> None:\n"
            "        sys.exit(2)\n"
            "    @fuzzable\n"
            "    def after(self) -> str:\n"
            "        return 'still running'\n"
        )
        await self.when_run()
        self.then_outcomes_are(
            [("quit", OutcomeStatus.ERROR), ("after", OutcomeStatus.SUCCESS)]
        )
        assert self.outcomes[0].error == "SystemExit(2)"
        assert "Message: SystemExit(2)" in self.report.transcript()

    async def test_exit_from_constructor_skips_class(self):
        await self.given_source(
            "import sys\n"
            "class Foo(FuzzTarget):\n"
            "    def __init__(self):\n"
            "        sys.exit()\n"
            "    @fuzzable\n"
            "    def go(self) -> None: pass\n"
        )
        await self.when_run()
        assert self.outcomes == []
        assert "Failed to instantiate Foo: SystemExit(None)" in self.report.transcript()
        assert self.report.summary().errors == 1

    async def test_class_missing_at_runtime_is_skipped_with_warning(self):
        await self.given_source(
            "class Gone(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def go(self) -> None: pass\n"
            "del Gone\n"
        )
        await self.when_run()
        assert self.outcomes == []
        assert "Class Gone not found in compiled module" in self.report.transcript()
        summary = self.report.summary()
        assert summary.warnings == 1
        assert summary.errors == 0

    async def test_registered_generator_feeds_named_parameter(self):
        await self.given_source(
            "class Board:\n"
            "    def __init__(self):\n"
            "        self.cells = [0] * 81\n"
            "class Game(FuzzTarget):\n"
            "    @fuzzable\n"
            "    def load(self, board: Board) -> int:\n"
            "        return len(board.cells)\n"
        )
        self.synthesizer.register("Board", self.exports.get("Board"))
        await self.when_run()
        assert self.outcomes[0].return_value == 81
        assert "Calling Game.load({...Board})" in self.report.transcript()


@pytest.mark.parametrize("value", [1, "x", None])
def test_sentinel_is_distinct_from_values(value):
    from fuzzhead.models import UNSUPPORTED

    assert UNSUPPORTED is not value
    assert UNSUPPORTED != value
