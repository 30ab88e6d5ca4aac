"""Snapshot capability implemented by a host environment.

The attributor never talks to a host directly. A host plugs in a
:class:`SnapshotProvider` that can capture a parent-pointer graph and tell
which object IDs are the named roots of that graph.
"""

from __future__ import annotations

import gc
import types
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Set, Union

from .snapshot import HeapGraph, HeapNode, HeapSnapshot, NamedRoots, load_profiler_result


DEFAULT_MAX_OBJECTS = 200_000


class SnapshotProvider(ABC):
    """Abstract capability used to capture heap snapshots."""

    def __init__(self) -> None:
        self._named_objects: Dict[str, Any] = {}

    def attach(self, named_objects: Mapping[str, Any]) -> None:
        """Remember the live objects that act as named roots."""

        self._named_objects = dict(named_objects)

    @abstractmethod
    def capture_snapshot(self) -> HeapGraph:
        """Return the parent-pointer graph of the live objects."""

    @abstractmethod
    def resolve_named_roots(self) -> NamedRoots:
        """Return the object ID of every named root."""

    def snapshot(self) -> Optional[HeapSnapshot]:
        """Capture a full snapshot, or None when nothing is available."""

        graph = self.capture_snapshot()
        return HeapSnapshot(graph=graph, named_roots=self.resolve_named_roots())


class NullSnapshotProvider(SnapshotProvider):
    """Fallback used when the host cannot profile memory."""

    def capture_snapshot(self) -> HeapGraph:
        return {}

    def resolve_named_roots(self) -> NamedRoots:
        return {}

    def snapshot(self) -> Optional[HeapSnapshot]:
        return None


class JsonSnapshotProvider(SnapshotProvider):
    """Replays a recorded profiler result ``{"success": ..., "data": ...}``.

    Named roots come from the recording, so :meth:`attach` has no effect on
    the IDs returned.
    """

    def __init__(self, source: Union[str, Path]) -> None:
        super().__init__()
        if isinstance(source, Path):
            source = source.read_text(encoding="utf-8")
        self._recorded = load_profiler_result(source)

    def capture_snapshot(self) -> HeapGraph:
        if self._recorded is None:
            return {}
        return dict(self._recorded.graph)

    def resolve_named_roots(self) -> NamedRoots:
        if self._recorded is None:
            return {}
        return dict(self._recorded.named_roots)

    def snapshot(self) -> Optional[HeapSnapshot]:
        return self._recorded


class GcSnapshotProvider(SnapshotProvider):
    """Builds a snapshot from the interpreter's garbage collector.

    Objects are discovered breadth-first from the named roots through
    ``gc.get_referents``; the first object that reaches another becomes its
    parent. Other named roots and module objects are not descended into, so
    each root only claims what it reaches on its own. ``candidates`` are
    extra objects (for example tracked objects still alive after a run)
    whose parent is their first referrer, which may lie outside the graph.
    """

    def __init__(
        self,
        candidates: Optional[Iterable[Any]] = None,
        *,
        max_objects: int = DEFAULT_MAX_OBJECTS,
    ) -> None:
        super().__init__()
        self._candidates: List[Any] = list(candidates or ())
        self.max_objects = max_objects

    def add_candidates(self, objects: Iterable[Any]) -> None:
        self._candidates.extend(objects)

    def clear_candidates(self) -> None:
        self._candidates.clear()

    def resolve_named_roots(self) -> NamedRoots:
        return {name: id(obj) for name, obj in self._named_objects.items()}

    def capture_snapshot(self) -> HeapGraph:
        graph: HeapGraph = {}
        root_ids: Set[int] = {id(obj) for obj in self._named_objects.values()}
        queue: Deque[Any] = deque()

        for obj in self._named_objects.values():
            if id(obj) not in graph:
                graph[id(obj)] = HeapNode(parent=None)
                queue.append(obj)

        # Containers built here must not show up as referrers.
        ignored: Set[int] = {id(graph), id(queue), id(self._named_objects), id(self._candidates)}

        while queue and len(graph) < self.max_objects:
            current = queue.popleft()
            for referent in gc.get_referents(current):
                referent_id = id(referent)
                if referent_id in graph or referent_id in root_ids:
                    continue
                graph[referent_id] = HeapNode(parent=id(current))
                if len(graph) >= self.max_objects:
                    break
                if isinstance(referent, types.ModuleType):
                    continue
                queue.append(referent)

        for candidate in self._candidates:
            candidate_id = id(candidate)
            if candidate_id in graph:
                continue
            graph[candidate_id] = HeapNode(parent=self._first_referrer(candidate, ignored))

        return graph

    @staticmethod
    def _first_referrer(obj: Any, ignored: Set[int]) -> Optional[int]:
        for referrer in gc.get_referrers(obj):
            if id(referrer) in ignored or isinstance(referrer, types.FrameType):
                continue
            return id(referrer)
        return None
