"""Execute fuzzable methods against instantiated target classes."""

import inspect
import logging
import time

from fuzzhead.compiler import ModuleExports
from fuzzhead.errors import ExecutionError
from fuzzhead.models import (
    CallableMethod,
    ExecutionOutcome,
    OutcomeStatus,
    TargetClass,
    describe_value,
)
from fuzzhead.report import RunReport
from fuzzhead.synthesizer import MockValueSynthesizer

logger = logging.getLogger(__name__)


class ExecutionHarness:
    """Run discovered targets sequentially against one loaded module.

    Each target class is instantiated once with no arguments and its
    methods run in declaration order on that single instance, so later
    methods observe state left by earlier ones. A method that raises is
    recorded as an error outcome and execution continues.
    """

    def __init__(
        self,
        exports: ModuleExports,
        synthesizer: MockValueSynthesizer,
        report: RunReport,
    ):
        self.exports = exports
        self.synthesizer = synthesizer
        self.report = report

    async def run(self, targets: list[TargetClass]) -> list[ExecutionOutcome]:
        """Execute every target in order.

        Args:
            targets: Target classes from the locator

        Returns:
            One outcome per attempted call, in execution order
        """
        outcomes: list[ExecutionOutcome] = []
        for target in targets:
            outcomes.extend(await self.run_target(target))
        logger.info(f"Executed {len(outcomes)} calls across {len(targets)} targets")
        return outcomes

    async def run_target(self, target: TargetClass) -> list[ExecutionOutcome]:
        cls = self.exports.get(target.name)
        if not isinstance(cls, type):
            self.report.warning(
                f"Class {target.name} not found in compiled module",
                module=self.exports.module_name,
            )
            self.report.line(
                f"   - ⚠️  Class {target.name} not found in compiled module, "
                f"skipping execution"
            )
            return []

        try:
            instance = cls()
        except (Exception, SystemExit) as e:
            message = failure_message(e)
            self.report.error(f"Failed to instantiate {target.name}", error=message)
            self.report.line(f"   - ❌ Failed to instantiate {target.name}: {message}")
            return []
        self.report.line(f"   - Instantiated {target.name} successfully.")

        outcomes = []
        for method in target.methods:
            outcome = await self.call_method(instance, method)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    async def call_method(
        self, instance: object, method: CallableMethod
    ) -> ExecutionOutcome | None:
        """Synthesize arguments and invoke one method.

        Returns:
            The outcome, or None when the call was skipped
        """
        mocks = [self.synthesizer.generate(p.descriptor) for p in method.parameters]
        if any(m.is_unsupported for m in mocks):
            unsupported = [
                str(p.descriptor)
                for p, m in zip(method.parameters, mocks)
                if m.is_unsupported
            ]
            self.report.warning(
                f"Skipping {method.qualified_name} due to unsupported parameter types",
                types=unsupported,
            )
            self.report.line(
                f"  -> Skipping {method.qualified_name}(...) due to unsupported "
                f"parameter types."
            )
            return None

        args = [m.value for p, m in zip(method.parameters, mocks) if not p.keyword_only]
        kwargs = {p.name: m.value for p, m in zip(method.parameters, mocks) if p.keyword_only}

        rendered = [describe_value(a) for a in args]
        rendered += [f"{k}={describe_value(v)}" for k, v in kwargs.items()]
        self.report.line(f"  -> Calling {method.qualified_name}({', '.join(rendered)})... ")
        self.report.info(f"Method called: {method.qualified_name}", args=rendered)

        start = time.perf_counter()
        try:
            result = getattr(instance, method.name)(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except (Exception, SystemExit) as e:
            duration_ms = int((time.perf_counter() - start) * 1000)
            message = failure_message(e)
            failure = ExecutionError(message, method.qualified_name, args)
            self.report.error(
                f"Method error: {method.qualified_name}",
                code=failure.code.value,
                **failure.details,
            )
            self.report.append_to_last("❌ Error")
            self.report.line(f"     Message: {message}")
            return ExecutionOutcome(
                class_name=method.owner,
                method_name=method.name,
                args=args,
                kwargs=kwargs,
                status=OutcomeStatus.ERROR,
                duration_ms=duration_ms,
                error=message,
            )

        duration_ms = int((time.perf_counter() - start) * 1000)
        self.report.info(
            f"Method result: {method.qualified_name}",
            result=describe_value(result),
            duration=f"{duration_ms}ms",
        )
        self.report.append_to_last("✅ Success")
        if result is not None:
            self.report.line(f"     Output: {describe_value(result)}")
        return ExecutionOutcome(
            class_name=method.owner,
            method_name=method.name,
            args=args,
            kwargs=kwargs,
            status=OutcomeStatus.SUCCESS,
            duration_ms=duration_ms,
            return_value=result,
        )


def failure_message(error: BaseException) -> str:
    """Readable message for an exception raised by fuzzed code."""
    if isinstance(error, SystemExit):
        return f"SystemExit({error.code!r})"
    return str(error) or type(error).__name__
