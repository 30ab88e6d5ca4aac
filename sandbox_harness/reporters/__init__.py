"""Memory reporters printed after every test iteration."""
from __future__ import annotations

from typing import List

from .base import MemoryReport, MemoryReporter
from .process import AvailableMemoryReporter, GcObjectReporter, ResidentMemoryReporter


def get_memory_reporters() -> List[MemoryReporter]:
    """Return the reporters available on the current host."""

    return [
        ResidentMemoryReporter(),
        AvailableMemoryReporter(),
        GcObjectReporter(),
    ]


__all__ = [
    "MemoryReport",
    "MemoryReporter",
    "get_memory_reporters",
]
