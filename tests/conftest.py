"""Pytest configuration and an importlib-backed sandbox for the harness tests."""

from __future__ import annotations

import importlib.util
import itertools
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Union

import pytest


def _ensure_repo_on_path() -> None:
    """Make the repository importable without an editable install."""
    repo_root = Path(__file__).resolve().parent.parent
    if repo_root.exists():
        path_str = str(repo_root)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_repo_on_path()

from sandbox_harness.console import Console  # noqa: E402
from sandbox_harness.sandbox import LoadedModule, Sandbox  # noqa: E402


_MODULE_COUNTER = itertools.count()


class ImportedModule(LoadedModule):
    def __init__(self, module: Any) -> None:
        self.module = module

    @property
    def global_scope(self) -> Any:
        return self.module


class ImportlibSandbox(Sandbox):
    """Loads each module from its path without touching ``sys.modules``."""

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console
        self._modules: Dict[str, ImportedModule] = {}

    @property
    def sandboxes(self) -> Mapping[str, LoadedModule]:
        return dict(self._modules)

    def require(self, module: Union[str, Path]) -> Any:
        path = Path(module).resolve()
        key = str(path)
        if key in self._modules:
            return self._modules[key].module

        name = f"sandboxed_{path.stem.replace('-', '_')}_{next(_MODULE_COUNTER)}"
        spec = importlib.util.spec_from_file_location(name, key)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot load {path}")
        loaded = importlib.util.module_from_spec(spec)
        loaded.console = self.console
        loaded.memory = self.memory
        spec.loader.exec_module(loaded)
        self._modules[key] = ImportedModule(loaded)
        return loaded

    def unload(self) -> None:
        for entry in self._modules.values():
            hook = getattr(entry.module, "on_unload", None)
            if callable(hook):
                hook()
        self._modules.clear()


class Output:
    """Collects everything the harness prints."""

    def __init__(self) -> None:
        self.chunks: List[str] = []

    def __call__(self, text: str) -> None:
        self.chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)


@pytest.fixture
def output() -> Output:
    return Output()


@pytest.fixture
def write_module(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


class LeakySandbox(ImportlibSandbox):
    """Forgets to release its modules on unload."""

    retained: List[Any] = []

    def unload(self) -> None:
        LeakySandbox.retained.extend(entry.module for entry in self._modules.values())
        self._modules.clear()


class BrokenUnloadSandbox(ImportlibSandbox):
    def unload(self) -> None:
        raise RuntimeError("unload failed")


@pytest.fixture
def leaky_sandbox():
    LeakySandbox.retained.clear()
    yield LeakySandbox
    LeakySandbox.retained.clear()
