"""
Event Emitter
=============

Turns the structural deltas of one pass into the net hierarchy events
and publishes them to any number of independent readers.

COALESCING RULE:
================
Only the state at the start and at the end of a pass matter:

- ADDED     not a member at start, member at end
- MODIFIED  member at both, direct parent differs
- REMOVED   member at start, not a member at end

Transient states inside a pass never reach readers.
"""

from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from ..contracts.events import HierarchyEvent, StructuralDelta
from ..contracts.temporal import ReaderId
from .index import RelationIndex


class EventEmitter:
    """Computes the net per-entity effect of a pass."""

    def coalesce(
        self,
        deltas: Iterable[StructuralDelta],
        index: RelationIndex
    ) -> Tuple[HierarchyEvent, ...]:
        """
        One event per touched entity, in order of first touch.

        The first delta touching an entity tells its direct parent at the
        start of the pass; the index tells the parent at the end.
        """
        start_parent: Dict[Hashable, Optional[Hashable]] = {}
        for delta in deltas:
            if delta.entity not in start_parent:
                start_parent[delta.entity] = delta.before

        events: List[HierarchyEvent] = []
        for entity, before in start_parent.items():
            after = index.parent(entity)
            if before is None and after is not None:
                events.append(HierarchyEvent.added(entity))
            elif before is not None and after is None:
                events.append(HierarchyEvent.removed(entity))
            elif before is not None and before != after:
                events.append(HierarchyEvent.modified(entity))
        return tuple(events)


class EventChannel:
    """
    Additive event feed with a cursor per reader.

    A reader only sees events published after it registered. Each reader
    observes every such event exactly once. Events every reader has
    consumed are trimmed.
    """

    def __init__(self):
        self._events: List[HierarchyEvent] = []
        # Absolute position of self._events[0]
        self._offset = 0
        self._cursors: Dict[ReaderId, int] = {}
        self._next_reader = 0

    def register_reader(self) -> ReaderId:
        reader = ReaderId(self._next_reader)
        self._next_reader += 1
        self._cursors[reader] = self._offset + len(self._events)
        return reader

    def unregister_reader(self, reader: ReaderId):
        del self._cursors[reader]
        self._trim()

    def publish(self, events: Iterable[HierarchyEvent]):
        """Append a batch. With no readers registered the batch is dropped."""
        if not self._cursors:
            self._offset += sum(1 for _ in events)
            return
        self._events.extend(events)

    def read(self, reader: ReaderId) -> Tuple[HierarchyEvent, ...]:
        """Everything published since this reader's last read."""
        if reader not in self._cursors:
            raise KeyError(f"Unknown reader {reader.value}")
        start = self._cursors[reader] - self._offset
        batch = tuple(self._events[start:])
        self._cursors[reader] = self._offset + len(self._events)
        self._trim()
        return batch

    def pending(self, reader: ReaderId) -> int:
        if reader not in self._cursors:
            raise KeyError(f"Unknown reader {reader.value}")
        return self._offset + len(self._events) - self._cursors[reader]

    @property
    def reader_count(self) -> int:
        return len(self._cursors)

    def _trim(self):
        if not self._cursors:
            self._offset += len(self._events)
            self._events = []
            return
        consumed = min(self._cursors.values()) - self._offset
        if consumed > 0:
            del self._events[:consumed]
            self._offset += consumed
