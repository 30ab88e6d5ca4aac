"""Attribute every object in a heap snapshot to the named root retaining it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Set

from ..errors import SnapshotFormatError
from .snapshot import HeapGraph, HeapNode, HeapSnapshot, NamedRoots, ObjectId


UNKNOWN = "UNKNOWN"


class _CycleDetected(Exception):
    pass


@dataclass
class Attribution:
    """Result of one attribution pass over a snapshot."""

    tally: Dict[str, int] = field(default_factory=lambda: {UNKNOWN: 0})
    object_count: int = 0
    module_count: int = 0
    # Objects whose chain ends without a root or a gap, roots included.
    unattributed: int = 0
    # Objects whose parent chain looped or ran past ``max_depth``.
    cyclic: int = 0

    @property
    def attributed(self) -> int:
        return sum(self.tally.values())


def _walk_to_root(
    object_id: ObjectId,
    graph: Mapping[ObjectId, HeapNode],
    root_names: Mapping[ObjectId, str],
    max_depth: Optional[int],
) -> Optional[str]:
    """Return the bucket for ``object_id``.

    The nearest ancestor that is a named root wins. A parent missing from
    the graph resolves to UNKNOWN. None means the chain ran out of parents
    without reaching either.
    """

    parent = graph[object_id].parent
    if parent is None:
        return None

    visited: Set[ObjectId] = {object_id}
    depth = 0
    while parent is not None:
        if parent in root_names:
            return root_names[parent]
        if parent not in graph:
            return UNKNOWN
        if parent in visited:
            raise _CycleDetected
        depth += 1
        if max_depth is not None and depth > max_depth:
            raise _CycleDetected
        visited.add(parent)
        parent = graph[parent].parent

    return None


def attribute_objects(
    graph: HeapGraph,
    named_roots: NamedRoots,
    *,
    max_depth: Optional[int] = None,
) -> Attribution:
    """Count, per named root, the objects whose parent chain reaches it.

    ``graph`` and ``named_roots`` must already use integer IDs (see
    :meth:`HeapSnapshot.from_raw`). When two names share an ID, the later
    name receives the objects.
    """

    if max_depth is not None and max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    if UNKNOWN in named_roots:
        raise SnapshotFormatError(f"{UNKNOWN!r} is reserved and cannot name a root")

    attribution = Attribution(module_count=len(named_roots))
    root_names: Dict[ObjectId, str] = {}
    for name, root_id in named_roots.items():
        attribution.tally[name] = 0
        root_names[root_id] = name

    for object_id in graph:
        attribution.object_count += 1
        try:
            bucket = _walk_to_root(object_id, graph, root_names, max_depth)
        except _CycleDetected:
            attribution.cyclic += 1
            bucket = UNKNOWN

        if bucket is None:
            attribution.unattributed += 1
            continue
        attribution.tally[bucket] += 1

    return attribution


def attribute_snapshot(snapshot: HeapSnapshot, *, max_depth: Optional[int] = None) -> Attribution:
    return attribute_objects(snapshot.graph, snapshot.named_roots, max_depth=max_depth)


def iter_attribution_lines(attribution: Attribution) -> Iterator[str]:
    yield f"object count is {attribution.object_count} in {attribution.module_count} modules"
    for name, count in attribution.tally.items():
        yield f"  {count} in {name}"


def format_attribution(attribution: Attribution) -> List[str]:
    """Return the human-readable report lines for ``attribution``."""

    return list(iter_attribution_lines(attribution))
