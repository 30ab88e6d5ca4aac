"""Harness session: sandbox lifecycle, iteration loop and reporting."""

from __future__ import annotations

import gc
import logging
import time
import traceback
import weakref
from typing import Any, Callable, List, Optional, Sequence

from .configuration import HarnessOptions
from .console import Console, ConsoleListener, PlainTextConsole, TestRunnerConsole
from .errors import HarnessError, SandboxUnavailableError
from .leaks import GcSnapshotProvider, SnapshotProvider, attribute_snapshot, format_attribution
from .reporters import MemoryReporter, get_memory_reporters
from .sandbox import Sandbox, SandboxFactory
from .unit_test import TestResults, UnitTestRunner
from .utils import Color, NullColor, PrintFn, format_duration, format_size, stderr_print


SANDBOX_DESCRIPTION = "Sandbox Loader"


class HarnessSession:
    """Runs every test module under ``options.root_paths`` in one sandbox.

    The lifecycle is explicit: :meth:`setup` builds the console and the
    sandbox, :meth:`run` iterates the tests and unloads the sandbox, and
    :meth:`teardown` detaches the console listener. :meth:`run` calls the
    other two when needed.
    """

    def __init__(
        self,
        options: HarnessOptions,
        sandbox_factory: SandboxFactory,
        *,
        print_fn: Optional[PrintFn] = None,
        snapshot_provider: Optional[SnapshotProvider] = None,
        memory_reporters: Optional[Sequence[MemoryReporter]] = None,
        on_done: Optional[Callable[[TestResults], None]] = None,
        max_snapshot_depth: Optional[int] = None,
    ) -> None:
        self.options = options
        self._sandbox_factory = sandbox_factory
        self._print = print_fn if print_fn is not None else stderr_print()
        self._color = Color if options.color else NullColor
        self.snapshot_provider = snapshot_provider
        if snapshot_provider is None and options.profile_memory:
            self.snapshot_provider = GcSnapshotProvider()
        self.memory_reporters: List[MemoryReporter] = list(
            memory_reporters if memory_reporters is not None
            else get_memory_reporters()
        )
        self.on_done = on_done
        self.max_snapshot_depth = max_snapshot_depth

        self.results = TestResults()
        self.iterations_left = options.iterations
        self.console: Optional[Console] = None
        self.sandbox: Optional[Sandbox] = None
        self.listener: Optional[ConsoleListener] = None
        self._runner: Optional[UnitTestRunner] = None

    # Lifecycle -----------------------------------------------------------

    def setup(self) -> None:
        for warning in self.options.warnings:
            self._print(f"{self._color.YELLOW}Warning: {warning}{self._color.RESET}\n")

        if self.options.listen_logger is not None:
            self.listener = ConsoleListener(self._print, self.options.pointless_errors)
            self.listener.register(logging.getLogger(self.options.listen_logger or None))

        base = PlainTextConsole(self._print)
        self.console = TestRunnerConsole(base, self._print, verbose=self.options.verbose)
        self.sandbox = self._sandbox_factory(self.console)
        self._runner = UnitTestRunner(self.sandbox, self.console, timeout=self.options.timeout)

    def run(self) -> TestResults:
        """Run every iteration, unload the sandbox and return the totals."""

        try:
            if self.sandbox is None:
                self.setup()
        except Exception as exc:
            self._print("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
            self._print(f"{exc}\n")
            self.results = TestResults(passed=0, failed=1)
            self.teardown()
            self._finish()
            return self.results

        try:
            while self.iterations_left > 0:
                self.next_iteration()
        except Exception as exc:
            self.results.failed += 1
            self._require_console().error("test iteration threw an exception.")
            self._require_console().exception(exc)

        self.cleanup()
        self.teardown()
        return self.results

    def teardown(self) -> None:
        if self.listener is not None:
            self.listener.unregister()
            self.listener = None

    def __enter__(self) -> "HarnessSession":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.teardown()

    # Iterations ----------------------------------------------------------

    def next_iteration(self) -> TestResults:
        """Run every test module once and fold the counts into the totals."""

        runner = self._require_runner()
        iteration = self.options.iterations - self.iterations_left + 1
        start = time.monotonic()

        iteration_results = runner.run(self.options.root_paths)
        self.results.add(iteration_results)
        self.report_memory_usage()
        self.iterations_left -= 1

        if self.options.verbose:
            elapsed = time.monotonic() - start
            self._print(
                f"{self._color.BLUE}Iteration {iteration}/{self.options.iterations} complete"
                f" - elapsed: {format_duration(elapsed)}{self._color.RESET}\n"
            )
        return iteration_results

    # Memory --------------------------------------------------------------

    def report_memory_usage(self) -> None:
        gc.collect()
        sandbox = self._require_sandbox()

        if self.snapshot_provider is not None:
            self._report_snapshot(sandbox)

        reports = [reporter.report() for reporter in self.memory_reporters]
        if reports:
            self._print("\n")
        for report in reports:
            if report.memory_used is None:
                self._print(f"{report.description}: unknown\n")
            elif report.unit == "bytes":
                self._print(
                    f"{report.description}: {report.memory_used} ({format_size(report.memory_used)})\n"
                )
            else:
                self._print(f"{report.description}: {report.memory_used} {report.unit}\n")

        alive = sandbox.memory.live_objects()
        self._print(f"Tracked memory objects in testing sandbox: {len(alive)}\n")

    def _report_snapshot(self, sandbox: Sandbox) -> None:
        provider = self.snapshot_provider
        assert provider is not None
        provider.attach(sandbox.named_global_scopes())
        if isinstance(provider, GcSnapshotProvider):
            provider.add_candidates(sandbox.memory.live_objects())
        try:
            snapshot = provider.snapshot()
            if snapshot is None:
                return
            attribution = attribute_snapshot(snapshot, max_depth=self.max_snapshot_depth)
        except HarnessError as exc:
            self._print(f"{self._color.YELLOW}Warning: memory profiling failed: {exc}{self._color.RESET}\n")
            return
        finally:
            provider.attach({})
            if isinstance(provider, GcSnapshotProvider):
                provider.clear_candidates()

        lines = format_attribution(attribution)
        self._print("\n" + lines[0] + "\n")
        for line in lines[1:]:
            self._print(line + "\n")
        if attribution.cyclic:
            self._print(
                f"{self._color.YELLOW}  {attribution.cyclic} with cyclic parent chains"
                f" (counted in UNKNOWN){self._color.RESET}\n"
            )

    # Unload --------------------------------------------------------------

    def cleanup(self) -> TestResults:
        """Unload the sandbox, report leaked objects and print the totals."""

        console = self._require_console()
        try:
            sandbox = self._require_sandbox()
            refs = self._track_for_leaks(sandbox)
            self._runner = None
            self.sandbox = None
            sandbox.unload()
            del sandbox
            gc.collect()

            for ref in refs:
                obj = ref()
                if obj is not None:
                    console.warn("LEAK", _describe_leak(obj))
                del obj
        except Exception as exc:
            self.results.failed += 1
            console.error("unload() threw an exception.")
            console.exception(exc)

        self._print("\n")
        color = self._color.GREEN if self.results.failed == 0 else self._color.RED
        self._print(
            f"{color}{self.results.passed} of {self.results.total} tests passed.{self._color.RESET}\n"
        )
        self._finish()
        return self.results

    @staticmethod
    def _track_for_leaks(sandbox: Sandbox) -> List["weakref.ReferenceType[Any]"]:
        for name, scope in sandbox.named_global_scopes().items():
            sandbox.memory.track(scope, f"module global scope: {name}")
        sandbox.memory.track(sandbox, SANDBOX_DESCRIPTION)
        return [info.weakref for info in sandbox.memory.get_objects()]

    # Helpers -------------------------------------------------------------

    def _finish(self) -> None:
        if self.on_done is not None:
            self.on_done(self.results)

    def _require_sandbox(self) -> Sandbox:
        if self.sandbox is None:
            raise SandboxUnavailableError("the session has no sandbox; call setup() first")
        return self.sandbox

    def _require_runner(self) -> UnitTestRunner:
        if self._runner is None:
            raise SandboxUnavailableError("the session has no sandbox; call setup() first")
        return self._runner

    def _require_console(self) -> Console:
        if self.console is None:
            raise SandboxUnavailableError("the session has no console; call setup() first")
        return self.console


def _describe_leak(obj: Any) -> Any:
    for attribute in ("__url__", "__file__"):
        value = getattr(obj, attribute, None)
        if value:
            return value
    return obj


def run_tests(
    options: HarnessOptions,
    sandbox_factory: SandboxFactory,
    **kwargs: Any,
) -> TestResults:
    """Create a :class:`HarnessSession`, run it and return the totals."""

    return HarnessSession(options, sandbox_factory, **kwargs).run()
