from __future__ import annotations

import gc
import os
import sys
from typing import Optional

from ..utils import load_psutil
from .base import MemoryReporter


_PSUTIL = load_psutil()


class ResidentMemoryReporter(MemoryReporter):
    """Resident set size of the harness process."""

    description = "resident set size"

    def memory_used(self) -> Optional[int]:
        if _PSUTIL is not None:
            try:
                return int(_PSUTIL.Process().memory_info().rss)
            except Exception:
                pass

        try:
            import resource
        except ImportError:
            return None

        # ru_maxrss is the peak, in kilobytes on Linux and bytes on macOS.
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        if sys.platform == "darwin":
            return int(peak)
        return int(peak) * 1024


class AvailableMemoryReporter(MemoryReporter):
    """Physical memory still available to the system."""

    description = "available system memory"

    def memory_used(self) -> Optional[int]:
        if _PSUTIL is not None:
            try:
                return int(_PSUTIL.virtual_memory().available)
            except Exception:
                pass

        try:
            page_size = os.sysconf("SC_PAGE_SIZE")
            avail_pages = os.sysconf("SC_AVPHYS_PAGES")
        except (AttributeError, OSError, ValueError):
            return None

        if isinstance(page_size, int) and isinstance(avail_pages, int):
            return page_size * avail_pages
        return None


class GcObjectReporter(MemoryReporter):
    """Number of objects tracked by the garbage collector."""

    description = "gc tracked objects"
    unit = "objects"

    def memory_used(self) -> Optional[int]:
        return len(gc.get_objects())
