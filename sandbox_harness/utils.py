from __future__ import annotations

import importlib
import importlib.util
import os
import sys
from functools import partial
from typing import Any, Callable, Mapping, Optional


PrintFn = Callable[[str], None]


class Color:
    """ANSI color codes for terminal output"""

    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


class NullColor:
    GREEN = ""
    RED = ""
    YELLOW = ""
    BLUE = ""
    RESET = ""
    BOLD = ""


def stderr_print() -> PrintFn:
    """Return a ``print`` that writes to stderr without adding a newline."""

    return partial(print, end="", file=sys.stderr, flush=True)


def load_psutil() -> Optional[Any]:
    """Return the psutil module if available."""

    if importlib.util.find_spec("psutil") is None:
        return None
    return importlib.import_module("psutil")


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""

    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


def format_size(num_bytes: Optional[int]) -> str:
    """Return a human-friendly representation of ``num_bytes``."""

    if num_bytes is None or num_bytes < 0:
        return "unknown"

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    value = float(num_bytes)
    for unit in units:
        if value < 1024.0:
            return f"{value:.2f} {unit}"
        value /= 1024.0
    return f"{value:.2f} EB"


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True if the specified environment variable is truthy."""

    source = os.environ if environ is None else environ
    value = source.get(name)
    if value is None:
        return False

    normalized = value.strip().lower()
    if not normalized:
        return False

    return normalized not in {"0", "false", "no", "off"}
