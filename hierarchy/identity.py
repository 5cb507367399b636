"""
Entity Identity
===============

Reference implementation of the identity collaborator.

The hierarchy never creates or destroys entities. It only hashes them and
asks whether they are alive. This module provides generation-stamped
handles so a recycled id never compares equal to a handle that died.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List


@dataclass(frozen=True, order=True)
class Entity:
    """Opaque entity handle: slot id plus generation stamp."""
    id: int
    generation: int = 1

    def __str__(self) -> str:
        return f"({self.id}, {self.generation})"


class EntityAllocator:
    """
    Allocates and recycles entity handles.

    GUARANTEES:
    ===========
    1. A live handle is unique among live handles
    2. Deleting bumps the slot generation, so stale handles stay dead
    3. Freed slots are reused lowest-first (deterministic allocation)
    """

    def __init__(self):
        self._generations: List[int] = []
        self._alive: Dict[int, bool] = {}
        self._free: List[int] = []

    def create(self) -> Entity:
        if self._free:
            self._free.sort()
            slot = self._free.pop(0)
            self._generations[slot] += 1
        else:
            slot = len(self._generations)
            self._generations.append(1)
        self._alive[slot] = True
        return Entity(slot, self._generations[slot])

    def create_many(self, count: int) -> List[Entity]:
        return [self.create() for _ in range(count)]

    def delete(self, entity: Entity) -> bool:
        """Kill a live entity. Returns False for unknown or already dead handles."""
        if not self.is_alive(entity):
            return False
        self._alive[entity.id] = False
        self._free.append(entity.id)
        return True

    def is_alive(self, entity: object) -> bool:
        if not isinstance(entity, Entity):
            return False
        if entity.id >= len(self._generations):
            return False
        return (
            self._alive.get(entity.id, False)
            and self._generations[entity.id] == entity.generation
        )

    def __iter__(self) -> Iterator[Entity]:
        for slot, generation in enumerate(self._generations):
            if self._alive.get(slot, False):
                yield Entity(slot, generation)

    def __len__(self) -> int:
        return sum(1 for alive in self._alive.values() if alive)
