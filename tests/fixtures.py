"""
Hierarchy Test Fixtures

Explicit relation scenarios and invariant checks shared by the tests.

RULES:
======
1. Scenarios are written as relation events, exactly as a feed delivers them
2. Invariants are checked against an independent NetworkX oracle
"""

from __future__ import annotations
from typing import Dict, Hashable, Optional, Tuple

import networkx as nx

from hierarchy.contracts.base import LivenessCheck
from hierarchy.contracts.events import HierarchyEvent, HierarchyEventKind
from hierarchy.core.snapshot import HierarchySnapshot
from hierarchy.engine import HierarchyConfig, HierarchySystem, PassReport
from hierarchy.temporal.relation_log import RelationLog


class HierarchyHarness:
    """Relation log + hierarchy system + one registered reader."""

    def __init__(
        self,
        config: Optional[HierarchyConfig] = None,
        is_alive: Optional[LivenessCheck] = None
    ):
        self.log = RelationLog()
        self.system = HierarchySystem(self.log, is_alive=is_alive, config=config)
        self.reader = self.system.register_reader()

    def insert(self, entity: Hashable, parent: Hashable) -> 'HierarchyHarness':
        self.log.append_inserted(entity, parent)
        return self

    def modify(self, entity: Hashable, old_parent: Hashable, new_parent: Hashable) -> 'HierarchyHarness':
        self.log.append_modified(entity, old_parent, new_parent)
        return self

    def remove(self, entity: Hashable) -> 'HierarchyHarness':
        self.log.append_removed(entity)
        return self

    def chain(self, *entities: Hashable) -> 'HierarchyHarness':
        """chain('A', 'B', 'C'): B's parent is A, C's parent is B."""
        for parent, child in zip(entities, entities[1:]):
            self.insert(child, parent)
        return self

    def run(self) -> PassReport:
        return self.system.run_pass()

    def events(self) -> Tuple[HierarchyEvent, ...]:
        return self.system.read_events(self.reader)

    def run_and_read(self) -> Tuple[HierarchyEvent, ...]:
        self.run()
        return self.events()


def event_set(events) -> set:
    return {(e.entity, e.kind) for e in events}


def added(*entities) -> set:
    return {(e, HierarchyEventKind.ADDED) for e in entities}


def modified(*entities) -> set:
    return {(e, HierarchyEventKind.MODIFIED) for e in entities}


def removed(*entities) -> set:
    return {(e, HierarchyEventKind.REMOVED) for e in entities}


def expected_events(
    before: HierarchySnapshot,
    after: HierarchySnapshot
) -> Dict[Hashable, HierarchyEventKind]:
    """Net events implied by two consecutive snapshots."""
    expected = {}
    for entity in set(before.parents) | set(after.parents):
        old, new = before.parent(entity), after.parent(entity)
        if old is None and new is not None:
            expected[entity] = HierarchyEventKind.ADDED
        elif old is not None and new is None:
            expected[entity] = HierarchyEventKind.REMOVED
        elif old != new:
            expected[entity] = HierarchyEventKind.MODIFIED
    return expected


def assert_hierarchy_invariants(snapshot: HierarchySnapshot):
    """Invariants that must hold after every pass."""
    order = snapshot.all_in_order()
    position = {entity: i for i, entity in enumerate(order)}

    # Each entity exactly once
    assert len(position) == len(order), "entity listed twice in order"

    for child, parent in snapshot.parents.items():
        assert child != parent, f"{child!r} is its own parent"
        assert child in position and parent in position
        assert position[parent] < position[child], f"{parent!r} not before {child!r}"
        assert child in snapshot.children(parent)

    for parent, children in snapshot.child_lists.items():
        for child in children:
            assert snapshot.parent(child) == parent

    # Bounded ancestor walk
    bound = len(snapshot.parents)
    for entity in snapshot.parents:
        current, steps = entity, 0
        while current in snapshot.parents:
            current = snapshot.parents[current]
            steps += 1
            assert steps <= bound, f"ancestor walk from {entity!r} does not terminate"

    # Independent oracle: parent -> child edges form a branching
    graph = nx.DiGraph()
    graph.add_nodes_from(order)
    graph.add_edges_from((p, c) for c, p in snapshot.parents.items())
    if graph:
        assert nx.is_branching(graph)
