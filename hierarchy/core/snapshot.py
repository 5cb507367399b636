"""
Hierarchy Snapshot
==================

Immutable view of the hierarchy published at the end of a pass.

WHY A SNAPSHOT:
Readers query between passes while the next pass works on a private copy
of the index. Publication is a single reference swap, so readers never see
a half-applied pass.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Mapping, Optional, Tuple
import hashlib

from ..contracts.temporal import LogSequence
from .index import RelationIndex


@dataclass(frozen=True)
class HierarchySnapshot:
    """
    Complete derived hierarchy after a pass.

    `order` lists every entity in the hierarchy, each parent before all of
    its descendants. `parents` holds members only; anchors are roots.
    """
    pass_number: int
    cursor: LogSequence
    order: Tuple[Hashable, ...]
    parents: Mapping[Hashable, Hashable] = field(default_factory=dict)
    child_lists: Mapping[Hashable, Tuple[Hashable, ...]] = field(default_factory=dict)
    _members: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_members", frozenset(self.order))

    @staticmethod
    def empty() -> HierarchySnapshot:
        return HierarchySnapshot(pass_number=0, cursor=LogSequence.origin(), order=())

    @staticmethod
    def capture(
        index: RelationIndex,
        order: Tuple[Hashable, ...],
        pass_number: int,
        cursor: LogSequence
    ) -> HierarchySnapshot:
        # Restrict to ordered entities so dropped orphans can never leak
        present = set(order)
        return HierarchySnapshot(
            pass_number=pass_number,
            cursor=cursor,
            order=order,
            parents={e: p for e, p in index.parent_items() if e in present},
            child_lists={
                node: index.children(node)
                for node in order if index.children(node)
            }
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    def parent(self, entity: Hashable) -> Optional[Hashable]:
        return self.parents.get(entity)

    def children(self, entity: Hashable) -> Tuple[Hashable, ...]:
        return self.child_lists.get(entity, ())

    def all_in_order(self) -> Tuple[Hashable, ...]:
        return self.order

    def all_children(self, entity: Hashable) -> Tuple[Hashable, ...]:
        """Every descendant of the entity, in pre-order."""
        result: List[Hashable] = []
        stack = list(reversed(self.children(entity)))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.children(current)))
        return tuple(result)

    def roots(self) -> Tuple[Hashable, ...]:
        return tuple(e for e in self.order if e not in self.parents)

    def depth(self, entity: Hashable) -> Optional[int]:
        """Number of edges up to the root; None when not in the hierarchy."""
        if entity not in self:
            return None
        depth = 0
        current = entity
        while current in self.parents:
            current = self.parents[current]
            depth += 1
        return depth

    def contains(self, entity: Hashable) -> bool:
        return entity in self

    def __contains__(self, entity: object) -> bool:
        return entity in self._members

    def __len__(self) -> int:
        return len(self.order)

    # =========================================================================
    # DETERMINISM
    # =========================================================================

    @property
    def state_hash(self) -> str:
        """
        Deterministic hash over order and parent map.

        Same log replayed from the same state -> same hash.
        """
        content = "|".join(
            f"{entity!r}<{self.parents.get(entity)!r}" for entity in self.order
        )
        return hashlib.sha256(content.encode()).hexdigest()

    def to_dict(self) -> Dict[str, object]:
        return {
            'pass_number': self.pass_number,
            'cursor': self.cursor.value,
            'order': [repr(e) for e in self.order],
            'state_hash': self.state_hash,
        }
