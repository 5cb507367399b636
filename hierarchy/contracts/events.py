"""
Event Contracts

Immutable records flowing between the layers:

- RelationEvent: input, one change of the "parent of X is Y" relation
- StructuralDelta: internal, one effect of an admit/revoke on the index
- HierarchyEvent: output, net change of one entity over a pass
- AuditLogEntry / MetricPoint: diagnostics
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Optional, Tuple

from .base import Timestamp
from .temporal import LogSequence


# =============================================================================
# INPUT: RELATION CHANGE FEED
# =============================================================================

class RelationEventKind(Enum):
    """Kinds of change the relation storage reports."""
    INSERTED = "inserted"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class RelationEvent:
    """
    One change of the parent relation, as delivered by the feed.

    INVARIANTS:
    - INSERTED and MODIFIED always carry the new parent
    - REMOVED never carries a parent
    - old_parent is only meaningful for MODIFIED
    """
    sequence: LogSequence
    entity: Hashable
    kind: RelationEventKind
    parent: Optional[Hashable] = None
    old_parent: Optional[Hashable] = None

    def __post_init__(self):
        if self.kind is RelationEventKind.REMOVED:
            if self.parent is not None:
                raise ValueError("REMOVED relation events carry no parent")
        elif self.parent is None:
            raise ValueError(f"{self.kind.value.upper()} relation events require a parent")
        if self.old_parent is not None and self.kind is not RelationEventKind.MODIFIED:
            raise ValueError("old_parent is only valid on MODIFIED relation events")

    @staticmethod
    def inserted(sequence: int, entity: Hashable, parent: Hashable) -> RelationEvent:
        return RelationEvent(LogSequence(sequence), entity, RelationEventKind.INSERTED, parent)

    @staticmethod
    def modified(
        sequence: int,
        entity: Hashable,
        old_parent: Optional[Hashable],
        new_parent: Hashable
    ) -> RelationEvent:
        return RelationEvent(
            LogSequence(sequence), entity, RelationEventKind.MODIFIED,
            parent=new_parent, old_parent=old_parent
        )

    @staticmethod
    def removed(sequence: int, entity: Hashable) -> RelationEvent:
        return RelationEvent(LogSequence(sequence), entity, RelationEventKind.REMOVED)


# =============================================================================
# INTERNAL: STRUCTURAL DELTAS
# =============================================================================

class DeltaKind(Enum):
    """Structural effect of one index mutation."""
    JOINED = "joined"
    REPARENTED = "reparented"
    LEFT = "left"


@dataclass(frozen=True)
class StructuralDelta:
    """
    Effect of a successful admit/revoke on the relation index.

    `before` is the direct parent prior to the mutation (None when the
    entity was not admitted), `after` the direct parent afterwards (None
    when it left).
    """
    entity: Hashable
    kind: DeltaKind
    before: Optional[Hashable] = None
    after: Optional[Hashable] = None


# =============================================================================
# OUTPUT: HIERARCHY CHANGE FEED
# =============================================================================

class HierarchyEventKind(Enum):
    """Net effect of a pass on one entity."""
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class HierarchyEvent:
    """Published notification for downstream readers."""
    entity: Hashable
    kind: HierarchyEventKind

    @staticmethod
    def added(entity: Hashable) -> HierarchyEvent:
        return HierarchyEvent(entity, HierarchyEventKind.ADDED)

    @staticmethod
    def modified(entity: Hashable) -> HierarchyEvent:
        return HierarchyEvent(entity, HierarchyEventKind.MODIFIED)

    @staticmethod
    def removed(entity: Hashable) -> HierarchyEvent:
        return HierarchyEvent(entity, HierarchyEventKind.REMOVED)


# =============================================================================
# OBSERVABILITY CONTRACTS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    FEED = "feed"
    STRUCTURAL = "structural"
    CONSISTENCY = "consistency"
    PUBLICATION = "publication"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def metadata_value(self, key: str) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return None


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
