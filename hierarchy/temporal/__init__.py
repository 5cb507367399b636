"""
Temporal Layer
==============

Event-sourced input for the hierarchy.

INVARIANTS:
- The parent relation is recorded as an append-only, sequenced log
- The hierarchy is derived from the log, never stored separately
- Same log -> same derived hierarchy (deterministic)

Modules:
- relation_log: Append-only relation events and the flagged parent storage
"""

from .relation_log import (
    ChangeFeedReader, LogState, RelationLog, ParentStorage
)

__all__ = [
    'ChangeFeedReader',
    'LogState',
    'RelationLog',
    'ParentStorage',
]
