"""
Observability & Audit Layer

RESPONSIBILITY: Diagnostics channel of the maintenance pass: audit log and
metrics
ALLOWED INPUTS: Audit records and metric points from any layer
OUTPUTS: AuditLogEntry lists, MetricPoint series, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify hierarchy behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Raise into the maintenance pass

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable records only
- NEVER modifies events or hierarchy state
- Provides read-only access to logs and metrics
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum
import hashlib
import itertools

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import Error, Timestamp, TimeRange
from ..contracts.events import AuditEventType, AuditLogEntry, MetricPoint


LAYERS = ('feed', 'validity', 'index', 'topology', 'emitter', 'engine')


# =============================================================================
# LOG COLLECTORS (One per layer)
# =============================================================================

class LogCollector:
    """
    Append-only collector of audit entries for one layer.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if time_range:
            entries = [
                e for e in entries
                if time_range.contains(e.timestamp)
            ]

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        return list(entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMING = "timing"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect metrics from all layers.

    Metrics are append-only time series data points.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        """Register standard metrics."""
        defaults = [
            MetricDefinition(
                name="relation_events_total",
                metric_type=MetricType.COUNTER,
                description="Relation events consumed from the feed"
            ),
            MetricDefinition(
                name="edges_rejected_total",
                metric_type=MetricType.COUNTER,
                description="Edges rejected by the validity checker",
                labels=("code",)
            ),
            MetricDefinition(
                name="entities_admitted",
                metric_type=MetricType.GAUGE,
                description="Entities in the hierarchy after a pass"
            ),
            MetricDefinition(
                name="consistency_faults_total",
                metric_type=MetricType.COUNTER,
                description="Entities dropped as unreachable from any root"
            ),
            MetricDefinition(
                name="hierarchy_events_total",
                metric_type=MetricType.COUNTER,
                description="Hierarchy events published",
                labels=("kind",)
            ),
            MetricDefinition(
                name="pass_duration_ms",
                metric_type=MetricType.TIMING,
                description="Maintenance pass duration in milliseconds"
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        """Register a new metric definition."""
        self._definitions[definition.name] = definition
        if definition.name not in self._metrics:
            self._metrics[definition.name] = []

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        if metric_name not in self._metrics:
            self._metrics[metric_name] = []

        label_tuple = tuple(sorted(labels.items())) if labels else ()

        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=Timestamp.now(),
            labels=label_tuple
        )
        self._metrics[metric_name].append(point)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        """Get the latest value for a metric."""
        points = self._metrics.get(metric_name, [])
        return points[-1] if points else None

    def total(self, metric_name: str, **labels: str) -> float:
        """Sum of a counter, optionally restricted to matching labels."""
        wanted = set(labels.items())
        return sum(
            p.value for p in self._metrics.get(metric_name, [])
            if wanted <= set(p.labels)
        )

    def get_definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True
    enable_audit: bool = True


class ObservabilityEngine:
    """
    Central diagnostics channel.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {
            layer: LogCollector(layer) for layer in LAYERS
        }
        self._metrics = MetricsCollector() if self._config.enable_metrics else None
        self._counter = itertools.count(1)

    def collect_audit(self, entry: AuditLogEntry):
        """Collect an audit log entry from any layer."""
        if not self._config.enable_audit:
            return
        collector = self._collectors.get(entry.layer)
        if collector:
            collector.collect(entry)

    def log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        outcome: str = "success",
        details: str = "",
        layer: str = "engine",
        event_type: AuditEventType = AuditEventType.SYSTEM
    ):
        """Helper to log audit entry directly."""
        seq = next(self._counter)
        entry_id = hashlib.sha256(f"{layer}_{action}|{seq}".encode()).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            layer=layer,
            action=action,
            entity_id=entity_id,
            metadata=(
                ("outcome", outcome),
                ("details", details)
            )
        )
        self.collect_audit(entry)

    def log_error(self, error: Error, layer: str, action: str):
        """Record an Error value as an audit entry."""
        event_type = (
            AuditEventType.STRUCTURAL if error.code.is_structural
            else AuditEventType.CONSISTENCY
        )
        self.log_audit(
            action=action,
            entity_id=error.context_value("entity"),
            outcome=error.code.name,
            details=error.message,
            layer=layer,
            event_type=event_type
        )

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Collect a metric data point."""
        if self._metrics:
            self._metrics.record(metric_name, value, labels)

    def get_layer_log(
        self,
        layer_name: str,
        time_range: Optional[TimeRange] = None
    ) -> List[AuditLogEntry]:
        """Get log for a specific layer."""
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries(time_range=time_range)

    def get_unified_log(
        self,
        time_range: Optional[TimeRange] = None,
        layers: Optional[List[str]] = None
    ) -> List[AuditLogEntry]:
        """Get unified log from all or specified layers."""
        target_layers = layers or list(self._collectors.keys())

        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                all_entries.extend(collector.get_entries(time_range=time_range))

        # Sort by timestamp
        all_entries.sort(key=lambda e: e.timestamp.value)
        return all_entries

    def get_metrics(self) -> Optional[MetricsCollector]:
        """Get metrics collector (read-only access)."""
        return self._metrics

    def generate_audit_report(self, time_range: Optional[TimeRange] = None) -> Dict:
        """Aggregate the audit log by layer and event type."""
        entries = self.get_unified_log(time_range=time_range)

        by_layer: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_event_type': by_type,
            'generated_at': Timestamp.now().to_iso()
        }
