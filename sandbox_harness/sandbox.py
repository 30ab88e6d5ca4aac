"""Capability the harness needs from a module-loading sandbox.

Building a sandbox is up to the host; the harness only receives a factory
that returns something implementing :class:`Sandbox`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Mapping, Union, TYPE_CHECKING

from .memory import MemoryTracker

if TYPE_CHECKING:
    from .console import Console


class LoadedModule(ABC):
    """A module loaded into the sandbox."""

    @property
    @abstractmethod
    def global_scope(self) -> Any:
        """Return the object that holds the module's globals."""


class Sandbox(ABC):
    """Abstract module-loading sandbox."""

    def __init__(self) -> None:
        self.memory = MemoryTracker()

    @property
    @abstractmethod
    def sandboxes(self) -> Mapping[str, LoadedModule]:
        """Return every loaded module keyed by its URL or path."""

    @abstractmethod
    def require(self, module: Union[str, Path]) -> Any:
        """Load ``module`` (if needed) and return its exports."""

    @abstractmethod
    def unload(self) -> None:
        """Release every module loaded by this sandbox."""

    def named_global_scopes(self) -> Mapping[str, Any]:
        return {name: loaded.global_scope for name, loaded in self.sandboxes.items()}


SandboxFactory = Callable[["Console"], Sandbox]
