from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple, Union

from .console import DEFAULT_POINTLESS_ERRORS
from .utils import env_flag


ENV_PREFIX = "SANDBOX_HARNESS_"
ITERATIONS_ENV = ENV_PREFIX + "ITERATIONS"
VERBOSE_ENV = ENV_PREFIX + "VERBOSE"
TIMEOUT_ENV = ENV_PREFIX + "TIMEOUT"
PROFILE_ENV = ENV_PREFIX + "PROFILE"
COLOR_ENV = ENV_PREFIX + "COLOR"

DEFAULT_ITERATIONS = 1


@dataclass(frozen=True)
class HarnessOptions:
    """Settings for one harness session."""

    root_paths: Tuple[Path, ...] = ()
    iterations: int = DEFAULT_ITERATIONS
    verbose: bool = False
    # Seconds allowed for each coroutine test; None waits forever.
    timeout: Optional[float] = None
    profile_memory: bool = False
    color: bool = False
    pointless_errors: Tuple[str, ...] = DEFAULT_POINTLESS_ERRORS
    # Logger echoed as "console:" lines while running; "" is the root
    # logger and None disables the listener.
    listen_logger: Optional[str] = ""
    warnings: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_paths", tuple(Path(p) for p in self.root_paths))
        if self.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def with_overrides(self, **changes: object) -> "HarnessOptions":
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        root_paths: Sequence[Union[str, Path]],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HarnessOptions":
        """Build options from ``SANDBOX_HARNESS_*`` environment variables.

        Unparseable numbers fall back to the defaults; the reason is kept in
        ``warnings`` so the session can print it.
        """

        source = os.environ if environ is None else environ
        warnings = []

        iterations = DEFAULT_ITERATIONS
        raw_iterations = source.get(ITERATIONS_ENV)
        if raw_iterations is not None and raw_iterations.strip():
            try:
                iterations = int(raw_iterations.strip())
                if iterations < 0:
                    raise ValueError
            except ValueError:
                iterations = DEFAULT_ITERATIONS
                warnings.append(
                    f"{ITERATIONS_ENV}: invalid iteration count {raw_iterations!r}, using {DEFAULT_ITERATIONS}"
                )

        timeout: Optional[float] = None
        raw_timeout = source.get(TIMEOUT_ENV)
        if raw_timeout is not None and raw_timeout.strip():
            try:
                timeout = float(raw_timeout.strip())
                if timeout <= 0:
                    raise ValueError
            except ValueError:
                timeout = None
                warnings.append(f"{TIMEOUT_ENV}: invalid timeout {raw_timeout!r}, ignoring")

        return cls(
            root_paths=tuple(Path(p) for p in root_paths),
            iterations=iterations,
            verbose=env_flag(VERBOSE_ENV, source),
            timeout=timeout,
            profile_memory=env_flag(PROFILE_ENV, source),
            color=env_flag(COLOR_ENV, source),
            warnings=tuple(warnings),
        )
