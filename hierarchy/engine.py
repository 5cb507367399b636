"""
Engine Orchestration Module

Runs the maintenance pass and publishes its result.

DESIGN PRINCIPLES:
==================
1. One pass at a time, with exclusive access to the index
2. Each pass works on a private copy; publication is a reference swap
3. A pass that raises publishes nothing and does not move the cursor
4. Structural violations are data (Error), never exceptions
5. All diagnostics go through the observability layer

PASS FLOW:
==========
1. Read relation events since the cursor
2. Revoke entities the identity collaborator reports dead
3. Gate each edge through the validity checker, apply it to the index
4. Rebuild the topological order, drop unreachable entities
5. Coalesce deltas into net events
6. Publish snapshot, events and cursor together
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable, List, Optional, Tuple
import time

from .contracts.base import Error, ErrorCode, LivenessCheck, always_alive
from .contracts.events import (
    AuditEventType, HierarchyEvent, HierarchyEventKind, RelationEvent, RelationEventKind
)
from .contracts.temporal import LogSequence, ReaderId
from .core import (
    EventChannel, EventEmitter, HierarchySnapshot, IndexConfig, RelationIndex,
    TopologyBuilder, TopologyMetrics, ValidityChecker, ValidityConfig
)
from .observability import ObservabilityConfig, ObservabilityEngine
from .temporal.relation_log import ChangeFeedReader


@dataclass
class HierarchyConfig:
    """Unified configuration for the hierarchy system."""
    index: IndexConfig = None
    validity: ValidityConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.index = self.index or IndexConfig()
        self.validity = self.validity or ValidityConfig()
        self.observability = self.observability or ObservabilityConfig()


@dataclass(frozen=True)
class PassReport:
    """What one maintenance pass consumed and published."""
    pass_number: int
    from_cursor: LogSequence
    to_cursor: LogSequence
    events_consumed: int
    events: Tuple[HierarchyEvent, ...] = ()
    errors: Tuple[Error, ...] = ()
    faults: Tuple[Error, ...] = ()
    swept: Tuple[Hashable, ...] = ()
    duration_ms: float = 0.0

    def events_of(self, kind: HierarchyEventKind) -> Tuple[HierarchyEvent, ...]:
        return tuple(e for e in self.events if e.kind is kind)


class HierarchySystem:
    """
    Maintains the hierarchy derived from a relation change feed.

    Single writer: run_pass() is the only mutation. Readers use the query
    methods, the published snapshot, or their own event reader between
    passes.
    """

    def __init__(
        self,
        feed: ChangeFeedReader,
        is_alive: Optional[LivenessCheck] = None,
        config: Optional[HierarchyConfig] = None
    ):
        self._config = config or HierarchyConfig()
        self._feed = feed
        self._is_alive = is_alive or always_alive

        self._validity = ValidityChecker(self._is_alive, self._config.validity)
        self._topology = TopologyBuilder()
        self._emitter = EventEmitter()
        self._channel = EventChannel()
        self._observability = ObservabilityEngine(self._config.observability)

        self._index = RelationIndex(self._config.index)
        self._snapshot = HierarchySnapshot.empty()
        self._cursor = LogSequence.origin()
        self._pass_count = 0

    # =========================================================================
    # MAINTENANCE PASS
    # =========================================================================

    def run_pass(self) -> PassReport:
        """
        Consume new relation events and publish the resulting hierarchy.
        """
        started = time.perf_counter()
        pass_number = self._pass_count + 1
        from_cursor = self._cursor

        events = sorted(self._feed.read_since(self._cursor), key=lambda e: e.sequence)
        to_cursor = events[-1].sequence if events else self._cursor

        working = self._index.copy()
        errors: List[Error] = []

        swept = self._sweep_dead(working)
        for event in events:
            error = self._apply(event, working)
            if error is not None:
                errors.append(error)

        topology = self._topology.rebuild(working)
        faults: List[Error] = []
        if not topology.is_consistent:
            for orphan in topology.unreachable:
                faults.append(Error.create(
                    ErrorCode.UNREACHABLE_ENTITY,
                    "Entity unreachable from any root, dropped",
                    entity=orphan
                ))
                working.revoke(orphan)
            topology = self._topology.rebuild(working)

        published = self._emitter.coalesce(working.take_deltas(), working)
        snapshot = HierarchySnapshot.capture(working, topology.order, pass_number, to_cursor)

        # Commit: nothing above is visible to readers until here
        self._index = working
        self._snapshot = snapshot
        self._cursor = to_cursor
        self._pass_count = pass_number
        self._channel.publish(published)

        duration_ms = (time.perf_counter() - started) * 1000
        report = PassReport(
            pass_number=pass_number,
            from_cursor=from_cursor,
            to_cursor=to_cursor,
            events_consumed=len(events),
            events=published,
            errors=tuple(errors),
            faults=tuple(faults),
            swept=swept,
            duration_ms=duration_ms
        )
        self._observe(report, snapshot)
        return report

    def _sweep_dead(self, index: RelationIndex) -> Tuple[Hashable, ...]:
        """Revoke hierarchy entities whose identity has died."""
        dead = [e for e in index.nodes() if not self._is_alive(e)]
        return tuple(entity for entity in dead if index.revoke(entity))

    def _apply(self, event: RelationEvent, index: RelationIndex) -> Optional[Error]:
        """Apply one relation event. Returns the violation if the edge was rejected."""
        if event.kind is RelationEventKind.REMOVED:
            index.revoke_membership(event.entity)
            return None

        error = self._validity.check(event.entity, event.parent, index)
        if error is not None:
            # A rejected edge counts as a removal of the entity
            index.revoke_membership(event.entity)
            return error.with_context("sequence", str(event.sequence.value))

        index.admit(event.entity, event.parent)
        return None

    def _observe(self, report: PassReport, snapshot: HierarchySnapshot):
        obs = self._observability
        obs.log_audit(
            action="events_read",
            details=f"{report.from_cursor.value}..{report.to_cursor.value}",
            layer="feed",
            event_type=AuditEventType.FEED
        )
        obs.collect_metric("relation_events_total", report.events_consumed)

        for entity in report.swept:
            obs.log_audit(
                action="dead_entity_revoked",
                entity_id=str(entity),
                layer="index",
                event_type=AuditEventType.STRUCTURAL
            )

        for error in report.errors:
            obs.log_error(error, layer="validity", action="edge_rejected")
            obs.collect_metric("edges_rejected_total", 1, {"code": error.code.name})

        for fault in report.faults:
            obs.log_error(fault, layer="topology", action="unreachable_entity")
            obs.collect_metric("consistency_faults_total", 1)

        for event in report.events:
            obs.collect_metric("hierarchy_events_total", 1, {"kind": event.kind.value})
        obs.log_audit(
            action="events_published",
            details=str(len(report.events)),
            layer="emitter",
            event_type=AuditEventType.PUBLICATION
        )

        obs.collect_metric("entities_admitted", len(snapshot))
        obs.collect_metric("pass_duration_ms", report.duration_ms)

    # =========================================================================
    # QUERY INTERFACE (published snapshot)
    # =========================================================================

    @property
    def snapshot(self) -> HierarchySnapshot:
        return self._snapshot

    def parent(self, entity: Hashable) -> Optional[Hashable]:
        return self._snapshot.parent(entity)

    def children(self, entity: Hashable) -> Tuple[Hashable, ...]:
        return self._snapshot.children(entity)

    def all_in_order(self) -> Tuple[Hashable, ...]:
        return self._snapshot.all_in_order()

    def all_children(self, entity: Hashable) -> Tuple[Hashable, ...]:
        return self._snapshot.all_children(entity)

    def roots(self) -> Tuple[Hashable, ...]:
        return self._snapshot.roots()

    def contains(self, entity: Hashable) -> bool:
        return entity in self._snapshot

    def metrics(self) -> TopologyMetrics:
        return self._topology.compute_metrics(self._index)

    # =========================================================================
    # EVENT INTERFACE
    # =========================================================================

    def register_reader(self) -> ReaderId:
        return self._channel.register_reader()

    def unregister_reader(self, reader: ReaderId):
        self._channel.unregister_reader(reader)

    def read_events(self, reader: ReaderId) -> Tuple[HierarchyEvent, ...]:
        return self._channel.read(reader)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def cursor(self) -> LogSequence:
        return self._cursor

    @property
    def pass_count(self) -> int:
        return self._pass_count

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability


def rebuild_from_log(
    feed: ChangeFeedReader,
    is_alive: Optional[LivenessCheck] = None,
    config: Optional[HierarchyConfig] = None
) -> HierarchySnapshot:
    """
    Derive the hierarchy from scratch with a single pass over the whole feed.

    The hierarchy is a projection; this must agree with the incremental
    result for the same log.
    """
    system = HierarchySystem(feed, is_alive=is_alive, config=config)
    system.run_pass()
    return system.snapshot
