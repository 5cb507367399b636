"""
Hierarchy Snapshot Tests

Read-side queries over a published pass.
"""

import pytest

from hierarchy.contracts.events import HierarchyEventKind
from hierarchy.contracts.temporal import LogSequence
from hierarchy.core.snapshot import HierarchySnapshot

from tests.fixtures import HierarchyHarness


@pytest.fixture
def published():
    """A -> B -> {C, D}, plus a lone tree root -> X."""
    h = HierarchyHarness().chain("A", "B", "C").insert("D", "B").insert("X", "root")
    report = h.run()
    return h.system, report


class TestQueries:

    def test_all_children_is_preorder(self, published):
        system, _ = published

        assert system.all_children("A") == ("B", "C", "D")
        assert system.all_children("B") == ("C", "D")
        assert system.all_children("C") == ()

    def test_roots_include_anchors(self, published):
        system, _ = published

        assert system.roots() == ("A", "root")

    def test_depth(self, published):
        snapshot = published[0].snapshot

        assert snapshot.depth("A") == 0
        assert snapshot.depth("D") == 2
        assert snapshot.depth("X") == 1
        assert snapshot.depth("ghost") is None

    def test_membership(self, published):
        snapshot = published[0].snapshot

        assert "C" in snapshot
        assert snapshot.contains("root")
        assert "ghost" not in snapshot
        assert len(snapshot) == 6

    def test_report_filters_by_kind(self, published):
        _, report = published

        added = report.events_of(HierarchyEventKind.ADDED)
        assert [e.entity for e in added] == ["B", "C", "D", "X"]
        assert report.events_of(HierarchyEventKind.REMOVED) == ()


class TestSerialization:

    def test_empty_snapshot(self):
        snapshot = HierarchySnapshot.empty()

        assert snapshot.all_in_order() == ()
        assert snapshot.cursor == LogSequence(0)
        assert snapshot.roots() == ()

    def test_to_dict(self, published):
        snapshot = published[0].snapshot

        data = snapshot.to_dict()

        assert data['pass_number'] == 1
        assert data['cursor'] == 4
        assert data['order'] == ["'A'", "'B'", "'C'", "'D'", "'root'", "'X'"]
        assert data['state_hash'] == snapshot.state_hash

    def test_state_hash_tracks_structure(self):
        first = HierarchyHarness().chain("A", "B", "C")
        first.run()
        second = HierarchyHarness().insert("B", "A").insert("C", "A")
        second.run()

        assert first.system.snapshot.all_in_order() == second.system.snapshot.all_in_order()
        assert first.system.snapshot.state_hash != second.system.snapshot.state_hash
