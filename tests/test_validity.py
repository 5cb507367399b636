"""
Validity Checker Tests

Every rule of the admission gate, checked in isolation.
"""

import pytest

from hierarchy.contracts.base import ErrorCode
from hierarchy.core.index import RelationIndex
from hierarchy.core.validity import ValidityChecker, ValidityConfig
from hierarchy.identity import EntityAllocator


@pytest.fixture
def chain_index():
    """A <- B <- C (C's parent is B, B's parent is A)."""
    index = RelationIndex()
    index.admit("B", "A")
    index.admit("C", "B")
    index.take_deltas()
    return index


class TestRules:

    def test_self_parent(self, chain_index):
        error = ValidityChecker().check("B", "B", chain_index)

        assert error.code is ErrorCode.SELF_PARENT
        assert error.context_value("entity") == "B"

    def test_cycle_through_descendant(self, chain_index):
        error = ValidityChecker().check("A", "C", chain_index)

        assert error.code is ErrorCode.CYCLE_DETECTED
        assert error.context_value("parent") == "C"
        assert error.context_value("depth") == "2"

    def test_direct_child_as_parent(self, chain_index):
        error = ValidityChecker().check("B", "C", chain_index)

        assert error.code is ErrorCode.CYCLE_DETECTED

    @pytest.mark.parametrize("entity,parent", [
        ("D", "C"),      # new leaf
        ("C", "A"),      # reparent upward
        ("X", "Y"),      # both unknown
        ("A", "root"),   # anchor gains a parent
    ])
    def test_admissible_edges(self, chain_index, entity, parent):
        checker = ValidityChecker()

        assert checker.check(entity, parent, chain_index) is None
        assert checker.is_admissible(entity, parent, chain_index)

    def test_no_side_effects(self, chain_index):
        before = dict(chain_index.parent_items())

        ValidityChecker().check("A", "C", chain_index)
        ValidityChecker().check("D", "C", chain_index)

        assert dict(chain_index.parent_items()) == before
        assert chain_index.pending_deltas == 0
        assert not chain_index.has("D")


class TestLiveness:

    def test_dead_parent(self):
        allocator = EntityAllocator()
        a, b = allocator.create_many(2)
        allocator.delete(a)

        error = ValidityChecker(allocator.is_alive).check(b, a, RelationIndex())

        assert error.code is ErrorCode.DEAD_PARENT

    def test_dead_entity(self):
        allocator = EntityAllocator()
        a, b = allocator.create_many(2)
        allocator.delete(b)

        error = ValidityChecker(allocator.is_alive).check(b, a, RelationIndex())

        assert error.code is ErrorCode.DEAD_ENTITY

    def test_dead_entity_allowed_when_configured(self):
        allocator = EntityAllocator()
        a, b = allocator.create_many(2)
        allocator.delete(b)
        checker = ValidityChecker(
            allocator.is_alive, ValidityConfig(reject_dead_entity=False)
        )

        assert checker.check(b, a, RelationIndex()) is None

    def test_self_parent_checked_before_liveness(self):
        allocator = EntityAllocator()
        a = allocator.create()
        allocator.delete(a)

        error = ValidityChecker(allocator.is_alive).check(a, a, RelationIndex())

        assert error.code is ErrorCode.SELF_PARENT


class TestWalkBound:

    def test_explicit_bound_exceeded(self, chain_index):
        checker = ValidityChecker(config=ValidityConfig(walk_bound=1))

        error = checker.check("X", "C", chain_index)

        assert error.code is ErrorCode.WALK_BOUND_EXCEEDED
        assert error.context_value("bound") == "1"

    def test_bound_large_enough(self, chain_index):
        checker = ValidityChecker(config=ValidityConfig(walk_bound=2))

        assert checker.check("X", "C", chain_index) is None

    def test_default_bound_terminates_on_corrupted_index(self):
        """A cycle already inside the index cannot hang the walk."""
        index = RelationIndex()
        index.admit("A", "B")
        index.admit("B", "A")

        error = ValidityChecker().check("X", "A", index)

        assert error.code is ErrorCode.WALK_BOUND_EXCEEDED
        assert error.code.is_structural
