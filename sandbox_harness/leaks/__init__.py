"""Heap snapshot capture and leak attribution."""
from __future__ import annotations

from .attributor import UNKNOWN, Attribution, attribute_objects, attribute_snapshot, format_attribution
from .providers import GcSnapshotProvider, JsonSnapshotProvider, NullSnapshotProvider, SnapshotProvider
from .snapshot import HeapGraph, HeapNode, HeapSnapshot, NamedRoots, load_profiler_result, normalize_object_id


__all__ = [
    "UNKNOWN",
    "Attribution",
    "GcSnapshotProvider",
    "HeapGraph",
    "HeapNode",
    "HeapSnapshot",
    "JsonSnapshotProvider",
    "NamedRoots",
    "NullSnapshotProvider",
    "SnapshotProvider",
    "attribute_objects",
    "attribute_snapshot",
    "format_attribution",
    "load_profiler_result",
    "normalize_object_id",
]
