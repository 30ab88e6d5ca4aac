"""Console abstraction used by the sandbox and by test modules."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Iterable, Optional, Sequence

from .utils import PrintFn


DEFAULT_POINTLESS_ERRORS = (
    "Invalid chrome URI:",
)


def _stringify(args: Iterable[Any]) -> str:
    return " ".join(str(arg) for arg in args)


class Console:
    """Base console. Every level funnels into :meth:`_emit`."""

    def log(self, *args: Any) -> None:
        self._emit("info", args)

    def info(self, *args: Any) -> None:
        self._emit("info", args)

    def warn(self, *args: Any) -> None:
        self._emit("warning", args)

    def error(self, *args: Any) -> None:
        self._emit("error", args)

    def debug(self, *args: Any) -> None:
        self._emit("debug", args)

    def exception(self, exc: BaseException) -> None:
        formatted = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self._emit("error", ("An exception occurred.\n" + formatted.rstrip("\n"),))

    def trace(self) -> None:
        stack = "".join(traceback.format_stack()[:-1])
        self._emit("info", ("Traceback (most recent call last):\n" + stack.rstrip("\n"),))

    def _emit(self, level: str, args: Sequence[Any]) -> None:
        raise NotImplementedError


class PlainTextConsole(Console):
    """Writes ``"<level>: <message>"`` lines through ``print_fn``."""

    def __init__(self, print_fn: PrintFn) -> None:
        self._print = print_fn

    def _emit(self, level: str, args: Sequence[Any]) -> None:
        self._print(f"{level}: {_stringify(args)}\n")


class TestRunnerConsole(Console):
    """Wraps ``base`` and collapses passing assertions to dots.

    Only ``info`` is filtered; every other level is forwarded unchanged.
    """

    __test__ = False

    def __init__(self, base: Console, print_fn: PrintFn, *, verbose: bool = False) -> None:
        self.base = base
        self._print = print_fn
        self.verbose = verbose

    def info(self, *args: Any) -> None:
        if self.verbose:
            self.base.info(*args)
        elif args and args[0] == "pass:":
            self._print(".")

    def log(self, *args: Any) -> None:
        self.base.log(*args)

    def warn(self, *args: Any) -> None:
        self.base.warn(*args)

    def error(self, *args: Any) -> None:
        self.base.error(*args)

    def debug(self, *args: Any) -> None:
        self.base.debug(*args)

    def exception(self, exc: BaseException) -> None:
        self.base.exception(exc)

    def trace(self) -> None:
        self.base.trace()


class ConsoleListener(logging.Handler):
    """Echoes host log records to the harness output.

    Messages starting with one of ``pointless_errors`` are dropped.
    """

    def __init__(
        self,
        print_fn: PrintFn,
        pointless_errors: Sequence[str] = DEFAULT_POINTLESS_ERRORS,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._print = print_fn
        self.pointless_errors = tuple(pointless_errors)
        self._logger: Optional[logging.Logger] = None

    def is_pointless(self, message: str) -> bool:
        return message.startswith(self.pointless_errors)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        if not self.is_pointless(message):
            self._print(f"console: {message}\n")

    def register(self, logger: logging.Logger) -> None:
        if self._logger is not None:
            return
        logger.addHandler(self)
        self._logger = logger

    def unregister(self) -> None:
        if self._logger is None:
            return
        self._logger.removeHandler(self)
        self._logger = None

    @property
    def registered(self) -> bool:
        return self._logger is not None
