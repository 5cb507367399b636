"""
Validity Checker
================

Pure validation gate run before any edge is committed to the index.

The raw parent relation is untrusted input. The checker never mutates
anything; it only answers whether an edge may be admitted and, if not,
why. Rules are applied in order:

1. self-parent
2. dead entity / dead proposed parent
3. cycle: walking the admitted parent chain upward from the proposed
   parent reaches the entity. The walk is bounded by the member count;
   exceeding the bound counts as a cycle.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable, Optional

from ..contracts.base import Error, ErrorCode, LivenessCheck, always_alive
from .index import RelationIndex


@dataclass
class ValidityConfig:
    """Configuration for the validity checker."""
    # Explicit upper bound for the ancestor walk; None = current member count
    walk_bound: Optional[int] = None
    # Also reject edges whose child entity is itself dead
    reject_dead_entity: bool = True


class ValidityChecker:
    """
    Decide admissibility of a proposed edge against the current index.

    GUARANTEES:
    ===========
    1. No side effects on the index
    2. Terminates in at most walk_bound steps
    3. Same index + same edge -> same verdict
    """

    def __init__(
        self,
        is_alive: Optional[LivenessCheck] = None,
        config: Optional[ValidityConfig] = None
    ):
        self._is_alive = is_alive or always_alive
        self._config = config or ValidityConfig()

    def is_admissible(
        self,
        entity: Hashable,
        proposed_parent: Hashable,
        index: RelationIndex
    ) -> bool:
        return self.check(entity, proposed_parent, index) is None

    def check(
        self,
        entity: Hashable,
        proposed_parent: Hashable,
        index: RelationIndex
    ) -> Optional[Error]:
        """Return the violation for this edge, or None when it is admissible."""
        if proposed_parent == entity:
            return Error.create(
                ErrorCode.SELF_PARENT,
                "Entity cannot be its own parent",
                entity=entity
            )

        if self._config.reject_dead_entity and not self._is_alive(entity):
            return Error.create(
                ErrorCode.DEAD_ENTITY,
                "Entity is dead",
                entity=entity,
                parent=proposed_parent
            )

        if not self._is_alive(proposed_parent):
            return Error.create(
                ErrorCode.DEAD_PARENT,
                "Proposed parent is dead",
                entity=entity,
                parent=proposed_parent
            )

        return self._check_ancestry(entity, proposed_parent, index)

    def _check_ancestry(
        self,
        entity: Hashable,
        proposed_parent: Hashable,
        index: RelationIndex
    ) -> Optional[Error]:
        bound = self._config.walk_bound
        if bound is None:
            bound = index.member_count

        current = proposed_parent
        steps = 0
        while index.is_member(current):
            current = index.parent(current)
            steps += 1
            if current == entity:
                return Error.create(
                    ErrorCode.CYCLE_DETECTED,
                    "Proposed parent is a descendant of the entity",
                    entity=entity,
                    parent=proposed_parent,
                    depth=steps
                )
            if steps > bound:
                return Error.create(
                    ErrorCode.WALK_BOUND_EXCEEDED,
                    "Ancestor walk exceeded its bound",
                    entity=entity,
                    parent=proposed_parent,
                    bound=bound
                )
        return None
