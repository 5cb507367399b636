"""
Core Hierarchy Maintenance

RESPONSIBILITY: Admit and revoke edges, validate them, order the admitted
forest, and compute the net change feed of a pass
ALLOWED INPUTS: RelationEvent (through the engine)
OUTPUTS: Topological order, HierarchyEvent

WHAT THIS LAYER MUST NOT DO:
============================
- Read the relation log directly (the engine feeds it)
- Create or destroy entities
- Judge what "parent" means beyond structural validity
- Publish partial results of a pass

Modules:
- index: Relation index (parent/children maps, structural deltas)
- validity: Self-parent, liveness and cycle checks
- topology: Parent-before-child ordering over a NetworkX projection
- emitter: Net event coalescing and the per-reader event channel
- snapshot: Immutable published view of the hierarchy
"""

from .index import RelationIndex, IndexConfig
from .validity import ValidityChecker, ValidityConfig
from .topology import TopologyBuilder, TopologyResult, TopologyMetrics
from .emitter import EventEmitter, EventChannel
from .snapshot import HierarchySnapshot

__all__ = [
    'RelationIndex',
    'IndexConfig',
    'ValidityChecker',
    'ValidityConfig',
    'TopologyBuilder',
    'TopologyResult',
    'TopologyMetrics',
    'EventEmitter',
    'EventChannel',
    'HierarchySnapshot',
]
