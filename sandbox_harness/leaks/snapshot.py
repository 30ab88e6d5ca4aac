"""In-memory form of a heap snapshot.

A raw snapshot arrives as ``{"graph": {<id>: {"parent": <id>}}, "namedObjects":
{<name>: <id>}}``. Profilers that serialize through JSON hand over string
keys, so every ID is normalized to ``int`` here, once, and the rest of the
package only ever sees integers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..errors import SnapshotFormatError


ObjectId = int


@dataclass(frozen=True)
class HeapNode:
    """A single object in a snapshot and the object retaining it."""

    parent: Optional[ObjectId] = None


HeapGraph = Dict[ObjectId, HeapNode]
NamedRoots = Dict[str, ObjectId]


def normalize_object_id(value: Any) -> ObjectId:
    """Return ``value`` as a canonical object ID.

    Accepts integers and strings holding an integer. Booleans, floats with a
    fractional part and anything else raise :class:`SnapshotFormatError`.
    """

    if isinstance(value, bool):
        raise SnapshotFormatError(f"object id must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError:
            pass
    raise SnapshotFormatError(f"object id must be an integer, got {value!r}")


def _normalize_parent(value: Any) -> Optional[ObjectId]:
    if value is None:
        return None
    return normalize_object_id(value)


@dataclass(frozen=True)
class HeapSnapshot:
    """A point-in-time capture of live objects and their named roots."""

    graph: HeapGraph = field(default_factory=dict)
    named_roots: NamedRoots = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Mapping[str, Any]) -> "HeapSnapshot":
        if not isinstance(data, Mapping):
            raise SnapshotFormatError("snapshot must be a mapping")

        raw_graph = data.get("graph", {})
        raw_named = data.get("namedObjects", {})
        if not isinstance(raw_graph, Mapping):
            raise SnapshotFormatError("snapshot 'graph' must be a mapping")
        if not isinstance(raw_named, Mapping):
            raise SnapshotFormatError("snapshot 'namedObjects' must be a mapping")

        graph: HeapGraph = {}
        for raw_id, record in raw_graph.items():
            object_id = normalize_object_id(raw_id)
            if object_id in graph:
                raise SnapshotFormatError(f"duplicate object id {object_id} (from {raw_id!r})")
            if record is None:
                parent = None
            elif isinstance(record, Mapping):
                parent = _normalize_parent(record.get("parent"))
            else:
                raise SnapshotFormatError(
                    f"graph entry for {raw_id!r} must be a mapping, got {type(record).__name__}"
                )
            graph[object_id] = HeapNode(parent=parent)

        named_roots: NamedRoots = {}
        for name, raw_id in raw_named.items():
            named_roots[str(name)] = normalize_object_id(raw_id)

        return cls(graph=graph, named_roots=named_roots)

    def to_raw(self) -> Dict[str, Any]:
        return {
            "graph": {
                str(object_id): {"parent": node.parent}
                for object_id, node in self.graph.items()
            },
            "namedObjects": dict(self.named_roots),
        }


def load_profiler_result(text: str) -> Optional[HeapSnapshot]:
    """Parse a profiler envelope ``{"success": ..., "data": ...}``.

    Returns None when the profiler reported failure.
    """

    try:
        envelope = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"profiler result is not valid JSON: {exc}") from exc

    if not isinstance(envelope, Mapping):
        raise SnapshotFormatError("profiler result must be a JSON object")
    if not envelope.get("success"):
        return None
    return HeapSnapshot.from_raw(envelope.get("data") or {})
