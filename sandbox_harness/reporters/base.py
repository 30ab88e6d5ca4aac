from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MemoryReport:
    """One line of the memory usage report."""

    description: str
    memory_used: Optional[int]
    unit: str = "bytes"


class MemoryReporter(ABC):
    """Abstract source of a single memory figure."""

    description: str = ""
    unit: str = "bytes"

    @abstractmethod
    def memory_used(self) -> Optional[int]:
        """Return the current figure, or None if it cannot be measured."""

    def report(self) -> MemoryReport:
        return MemoryReport(self.description, self.memory_used(), self.unit)
