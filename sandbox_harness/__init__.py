"""Test harness for module-loading sandboxes with heap leak attribution."""
from __future__ import annotations

from .configuration import HarnessOptions
from .console import ConsoleListener, PlainTextConsole, TestRunnerConsole
from .errors import HarnessError, SandboxUnavailableError, SnapshotFormatError
from .memory import MemoryTracker, TrackedObject
from .sandbox import LoadedModule, Sandbox
from .session import HarnessSession, run_tests
from .unit_test import TestContext, TestResults, UnitTestRunner, find_test_modules


__all__ = [
    "ConsoleListener",
    "HarnessError",
    "HarnessOptions",
    "HarnessSession",
    "LoadedModule",
    "MemoryTracker",
    "PlainTextConsole",
    "Sandbox",
    "SandboxUnavailableError",
    "SnapshotFormatError",
    "TestContext",
    "TestResults",
    "TestRunnerConsole",
    "TrackedObject",
    "UnitTestRunner",
    "find_test_modules",
    "run_tests",
]
