from __future__ import annotations


class HarnessError(Exception):
    """Base class for errors raised by the harness."""


class SnapshotFormatError(HarnessError, ValueError):
    """Raised when a heap snapshot does not have the documented shape."""


class SandboxUnavailableError(HarnessError):
    """Raised when an operation needs a sandbox and the session has none."""
