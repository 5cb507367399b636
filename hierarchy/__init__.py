"""
Entity Hierarchy

Maintains a parent/child tree over opaque entity handles, derived from a
sequenced change feed of the relation "parent of X is Y".

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable types shared by every layer
   - MUST NOT: Import any other layer

2. TEMPORAL LAYER (temporal/)
   - Responsibility: Append-only relation log, flagged parent storage
   - Outputs: RelationEvent with strictly increasing sequence numbers
   - MUST NOT: Interpret or validate relations

3. CORE (core/)
   - Responsibility: Relation index, validity gate, topological order,
     net event coalescing
   - Outputs: HierarchySnapshot, HierarchyEvent
   - MUST NOT: Read the log, create or destroy entities

4. OBSERVABILITY (observability/)
   - Responsibility: Audit log and metrics of every pass
   - MUST NOT: Modify hierarchy behavior

5. ENGINE (engine.py)
   - Responsibility: Run one maintenance pass with exclusive access and
     publish its result atomically

CONSTRAINTS ENFORCED:
=====================
- Single writer, many readers: readers only ever see published snapshots
- Deterministic: same log from the same state gives the same hierarchy
- Explicit errors: structural violations are recorded, never raised
- No cycles, no self-parents, parents always precede children in order
"""

from .contracts.events import (
    HierarchyEvent, HierarchyEventKind, RelationEvent, RelationEventKind
)
from .contracts.temporal import LogSequence, ReaderId
from .core import HierarchySnapshot
from .engine import HierarchyConfig, HierarchySystem, PassReport, rebuild_from_log
from .identity import Entity, EntityAllocator
from .temporal import ParentStorage, RelationLog

__all__ = [
    'Entity',
    'EntityAllocator',
    'HierarchyConfig',
    'HierarchyEvent',
    'HierarchyEventKind',
    'HierarchySnapshot',
    'HierarchySystem',
    'LogSequence',
    'ParentStorage',
    'PassReport',
    'ReaderId',
    'RelationEvent',
    'RelationEventKind',
    'RelationLog',
    'rebuild_from_log',
]
