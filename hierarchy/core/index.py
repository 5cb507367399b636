"""
Relation Index
==============

Owns the admitted parent/children maps of the hierarchy.

Two kinds of entity live in the index:

- MEMBERS have an admitted edge (an entry in the parent map). Only members
  produce hierarchy events.
- ANCHORS have no admitted edge. They join when a member names them as
  parent and form the roots of the admitted forest.

The index trusts its callers: edges must be cleared by the ValidityChecker
before admit() is called. Every structural effect is recorded as a
StructuralDelta; the index never talks to the event feed.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional, Tuple

from ..contracts.events import DeltaKind, StructuralDelta


@dataclass
class IndexConfig:
    """Configuration for the relation index."""
    # Keep an anchor root in the hierarchy after its last child leaves
    retain_anchors: bool = True


class RelationIndex:
    """
    Mutable parent/children maps plus the delta record of one pass.

    INVARIANTS (restored by the maintenance pass):
    - every c in children(p) has parent(c) == p
    - every parent of a member is itself in the index
    - sibling order is insertion order
    """

    def __init__(self, config: Optional[IndexConfig] = None):
        self._config = config or IndexConfig()
        # Ordered set of everything in the hierarchy (members and anchors)
        self._nodes: Dict[Hashable, None] = {}
        self._parents: Dict[Hashable, Hashable] = {}
        self._children: Dict[Hashable, List[Hashable]] = {}
        self._deltas: List[StructuralDelta] = []

    # =========================================================================
    # QUERIES
    # =========================================================================

    def has(self, entity: Hashable) -> bool:
        """Whether the entity currently has a position in the hierarchy."""
        return entity in self._nodes

    def is_member(self, entity: Hashable) -> bool:
        """Whether the entity has an admitted edge."""
        return entity in self._parents

    def is_anchor(self, entity: Hashable) -> bool:
        return entity in self._nodes and entity not in self._parents

    def parent(self, entity: Hashable) -> Optional[Hashable]:
        return self._parents.get(entity)

    def children(self, entity: Hashable) -> Tuple[Hashable, ...]:
        return tuple(self._children.get(entity, ()))

    def nodes(self) -> Iterator[Hashable]:
        return iter(self._nodes)

    def members(self) -> Iterator[Hashable]:
        return iter(self._parents)

    def parent_items(self) -> Iterator[Tuple[Hashable, Hashable]]:
        return iter(self._parents.items())

    @property
    def member_count(self) -> int:
        return len(self._parents)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, entity: object) -> bool:
        return entity in self._nodes

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def admit(self, entity: Hashable, parent: Hashable) -> bool:
        """
        Record the edge entity -> parent.

        Relocates the entity when it already had a different parent.
        Returns True when the entity was newly admitted, False when it was
        already a member (reparented or unchanged).
        """
        if entity == parent:
            raise ValueError(f"entity {entity!r} cannot be its own parent")

        if parent not in self._nodes:
            self._nodes[parent] = None

        if entity in self._parents:
            old_parent = self._parents[entity]
            if old_parent == parent:
                return False
            self._detach(entity, old_parent)
            self._parents[entity] = parent
            self._children.setdefault(parent, []).append(entity)
            self._deltas.append(StructuralDelta(
                entity, DeltaKind.REPARENTED, before=old_parent, after=parent
            ))
            return False

        self._nodes.setdefault(entity, None)
        self._parents[entity] = parent
        self._children.setdefault(parent, []).append(entity)
        self._deltas.append(StructuralDelta(entity, DeltaKind.JOINED, after=parent))
        return True

    def revoke(self, entity: Hashable) -> bool:
        """
        Remove the entity and, by cascade, every descendant.

        Descendants are revoked parent-first, each exactly once.
        Returns False when the entity was not in the hierarchy.
        """
        if entity not in self._nodes:
            return False

        top_parent = self._parents.get(entity)
        if top_parent is not None:
            self._detach(entity, top_parent)

        visited = set()
        stack = [entity]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)

            old_parent = self._parents.pop(current, None)
            if old_parent is not None:
                self._deltas.append(StructuralDelta(
                    current, DeltaKind.LEFT, before=old_parent
                ))
            self._nodes.pop(current, None)

            # Reversed so the first child is revoked first
            stack.extend(reversed(self._children.pop(current, [])))

        return True

    def revoke_membership(self, entity: Hashable) -> bool:
        """
        Revoke the entity only if it holds an admitted edge.

        Anchors have no edge to lose and stay in place.
        """
        if entity not in self._parents:
            return False
        return self.revoke(entity)

    def _detach(self, entity: Hashable, parent: Hashable):
        siblings = self._children.get(parent)
        if siblings is not None:
            siblings.remove(entity)
            if not siblings:
                del self._children[parent]
        if not self._config.retain_anchors and self.is_anchor(parent) and parent not in self._children:
            del self._nodes[parent]

    # =========================================================================
    # PASS SUPPORT
    # =========================================================================

    def take_deltas(self) -> Tuple[StructuralDelta, ...]:
        """Return the deltas recorded so far and reset the record."""
        deltas = tuple(self._deltas)
        self._deltas = []
        return deltas

    @property
    def pending_deltas(self) -> int:
        return len(self._deltas)

    def copy(self) -> RelationIndex:
        """Working copy for a pass. Deltas are not carried over."""
        clone = RelationIndex(self._config)
        clone._nodes = dict(self._nodes)
        clone._parents = dict(self._parents)
        clone._children = {p: list(c) for p, c in self._children.items()}
        return clone
