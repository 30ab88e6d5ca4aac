"""Weak-reference bookkeeping for objects expected to die on unload."""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass(frozen=True)
class TrackedObject:
    """An object registered with :class:`MemoryTracker`."""

    weakref: "weakref.ReferenceType[Any]"
    description: str

    def get(self) -> Optional[Any]:
        return self.weakref()

    @property
    def alive(self) -> bool:
        return self.weakref() is not None


class MemoryTracker:
    """Keeps weak references to objects so survivors can be reported."""

    def __init__(self) -> None:
        self._objects: List[TrackedObject] = []

    def track(self, obj: Any, description: str = "") -> bool:
        """Track ``obj``; return False if it cannot be weakly referenced."""

        try:
            ref = weakref.ref(obj)
        except TypeError:
            return False
        self._objects.append(TrackedObject(ref, description or type(obj).__name__))
        return True

    def get_objects(self) -> List[TrackedObject]:
        return list(self._objects)

    def live_objects(self) -> List[Any]:
        """Return the tracked objects that are still alive."""

        survivors = []
        for info in self._objects:
            obj = info.get()
            if obj is not None:
                survivors.append(obj)
        return survivors

    def clear(self) -> None:
        self._objects.clear()

    def __len__(self) -> int:
        return len(self._objects)
