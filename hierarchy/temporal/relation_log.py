"""
Relation Log
============

Append-only change feed of the parent relation, with sequence numbering.

INVARIANTS:
- No updates or deletes - append only
- Every entry has a strictly increasing sequence number
- read_since(cursor) is exclusive of the cursor: nothing is redelivered

This is the SOURCE OF TRUTH the hierarchy is derived from.
The hierarchy itself is a projection and can be rebuilt from this log.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional, Protocol, Tuple

from ..contracts.events import RelationEvent, RelationEventKind
from ..contracts.temporal import LogSequence
from ..identity import Entity, EntityAllocator


class ChangeFeedReader(Protocol):
    """Interface the maintenance pass consumes."""

    def read_since(self, cursor: LogSequence) -> Tuple[RelationEvent, ...]:
        ...


@dataclass(frozen=True)
class LogState:
    """
    Immutable snapshot of log state.
    """
    head_sequence: LogSequence
    entry_count: int

    @staticmethod
    def empty() -> 'LogState':
        return LogState(head_sequence=LogSequence.origin(), entry_count=0)


class RelationLog:
    """
    Append-only relation event log.

    GUARANTEES:
    ===========
    1. NO updates - entries are immutable once written
    2. NO deletes - log only grows
    3. Deterministic - same entries in same order -> same derived hierarchy
    """

    def __init__(self):
        self._entries: List[RelationEvent] = []
        self._sequence_counter = LogSequence.origin()

    @property
    def state(self) -> LogState:
        """Get current log state (immutable snapshot)."""
        return LogState(
            head_sequence=self._sequence_counter,
            entry_count=len(self._entries)
        )

    def append(self, event: RelationEvent) -> RelationEvent:
        """
        Append a pre-built event.

        The event must carry the next sequence number.
        """
        expected = self._sequence_counter.next()
        if event.sequence != expected:
            raise ValueError(
                f"Invalid sequence append: expected {expected.value}, got {event.sequence.value}"
            )
        self._entries.append(event)
        self._sequence_counter = event.sequence
        return event

    def append_inserted(self, entity: Hashable, parent: Hashable) -> RelationEvent:
        return self.append(RelationEvent.inserted(self._sequence_counter.value + 1, entity, parent))

    def append_modified(
        self,
        entity: Hashable,
        old_parent: Optional[Hashable],
        new_parent: Hashable
    ) -> RelationEvent:
        return self.append(RelationEvent.modified(
            self._sequence_counter.value + 1, entity, old_parent, new_parent
        ))

    def append_removed(self, entity: Hashable) -> RelationEvent:
        return self.append(RelationEvent.removed(self._sequence_counter.value + 1, entity))

    def read_since(self, cursor: LogSequence) -> Tuple[RelationEvent, ...]:
        """Every entry with a sequence strictly greater than the cursor."""
        # Sequences are dense and start at 1, so the cursor is also an offset.
        return tuple(self._entries[cursor.value:])

    def replay(
        self,
        from_seq: Optional[LogSequence] = None,
        until_seq: Optional[LogSequence] = None
    ) -> Iterator[RelationEvent]:
        """
        Replay entries in sequence order.

        Args:
            from_seq: Start from this sequence (inclusive), None = start
            until_seq: Stop at this sequence (inclusive), None = end
        """
        start = (from_seq.value if from_seq else 1)
        end = (until_seq.value if until_seq else len(self._entries))

        for entry in self._entries:
            if entry.sequence.value < start:
                continue
            if entry.sequence.value > end:
                break
            yield entry

    def get_entry(self, sequence: LogSequence) -> Optional[RelationEvent]:
        """Get specific entry by sequence number."""
        if sequence.value < 1 or sequence.value > len(self._entries):
            return None
        return self._entries[sequence.value - 1]

    def __len__(self) -> int:
        return len(self._entries)


class ParentStorage:
    """
    Flagged storage of the parent relation.

    Every mutation that changes the relation appends one event to the
    attached RelationLog. Setting the same parent twice is a no-op and
    produces no event.
    """

    def __init__(
        self,
        log: Optional[RelationLog] = None,
        allocator: Optional[EntityAllocator] = None
    ):
        self._log = log if log is not None else RelationLog()
        self._allocator = allocator
        self._parents: Dict[Hashable, Hashable] = {}

    @property
    def log(self) -> RelationLog:
        return self._log

    def set_parent(self, entity: Hashable, parent: Hashable) -> Optional[RelationEvent]:
        """Insert or overwrite the relation. Returns the appended event, if any."""
        if entity in self._parents:
            old_parent = self._parents[entity]
            if old_parent == parent:
                return None
            self._parents[entity] = parent
            return self._log.append_modified(entity, old_parent, parent)

        self._parents[entity] = parent
        return self._log.append_inserted(entity, parent)

    def remove(self, entity: Hashable) -> Optional[RelationEvent]:
        if entity not in self._parents:
            return None
        del self._parents[entity]
        return self._log.append_removed(entity)

    def purge(self, entity: Entity) -> List[RelationEvent]:
        """
        Delete an entity and drop every relation it takes part in.

        Emits REMOVED for the entity's own relation and for each relation
        whose parent is the entity.
        """
        if self._allocator is None:
            raise ValueError("purge requires an EntityAllocator")
        self._allocator.delete(entity)

        emitted = []
        own = self.remove(entity)
        if own is not None:
            emitted.append(own)
        for child in [c for c, p in self._parents.items() if p == entity]:
            emitted.append(self.remove(child))
        return emitted

    def get(self, entity: Hashable) -> Optional[Hashable]:
        return self._parents.get(entity)

    def items(self) -> List[Tuple[Hashable, Hashable]]:
        return list(self._parents.items())

    def __contains__(self, entity: object) -> bool:
        return entity in self._parents

    def __len__(self) -> int:
        return len(self._parents)
