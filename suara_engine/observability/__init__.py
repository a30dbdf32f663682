"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail, metrics, moderation event outbox
ALLOWED INPUTS: Audit entries, metric points, moderation events from any layer
OUTPUTS: Read-only copies of collected entries, aggregates, reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify engine behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Block other layers beyond a short append lock

BOUNDARY ENFORCEMENT:
=====================
- Collectors are append-only
- Readers get copies, never the internal lists
- Safe to call from every lane worker thread
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum
import hashlib
import threading

from ..contracts.base import Timestamp, TimeRange, Error
from ..contracts.events import (
    AuditLogEntry, AuditEventType, MetricPoint, ModerationEvent
)
from ..temporal.clock import LogicalClock


LAYERS = ('intake', 'scoring', 'assignment', 'aggregation', 'storage', 'dependency', 'moderation')


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
        self._lock = threading.Lock()
    
    def collect(self, entry: AuditLogEntry):
        with self._lock:
            self._entries.append(entry)
    
    def get_entries(
        self,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)
        
        if time_range:
            entries = [e for e in entries if time_range.contains(e.timestamp)]
        
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        
        return entries
    
    @property
    def layer_name(self) -> str:
        return self._layer_name
    
    @property
    def entry_count(self) -> int:
        with self._lock:
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
    Append-only time series of metric points.
    """
    
    def __init__(self, clock: Optional[LogicalClock] = None):
        self._clock = clock
        self._lock = threading.Lock()
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()
    
    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="submissions_processed_total",
                metric_type=MetricType.COUNTER,
                description="Submissions that reached the engine",
                labels=("status",)
            ),
            MetricDefinition(
                name="decisions_total",
                metric_type=MetricType.COUNTER,
                description="Assignment decisions by type",
                labels=("decision",)
            ),
            MetricDefinition(
                name="dependency_fallbacks_total",
                metric_type=MetricType.COUNTER,
                description="Collaborator calls replaced by their fallback value",
                labels=("dependency",)
            ),
            MetricDefinition(
                name="capacity_redirects_total",
                metric_type=MetricType.COUNTER,
                description="Decisions redirected because a capacity limit was hit",
                labels=("code",)
            ),
            MetricDefinition(
                name="invariant_violations_total",
                metric_type=MetricType.COUNTER,
                description="Aborted operations caused by internal logic faults",
                labels=("code",)
            ),
            MetricDefinition(
                name="clusters_open",
                metric_type=MetricType.GAUGE,
                description="Open clusters in the geo index"
            ),
            MetricDefinition(
                name="pending_entries",
                metric_type=MetricType.GAUGE,
                description="Deferred submissions awaiting corroboration"
            ),
            MetricDefinition(
                name="assignment_duration_ms",
                metric_type=MetricType.TIMING,
                description="Lane-held time of one assignment in milliseconds"
            ),
        ]
        for definition in defaults:
            self.register_metric(definition)
    
    def register_metric(self, definition: MetricDefinition):
        with self._lock:
            self._definitions[definition.name] = definition
            self._metrics.setdefault(definition.name, [])
    
    def definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)
    
    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        label_tuple = tuple(sorted(labels.items())) if labels else ()
        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=_now(self._clock),
            labels=label_tuple
        )
        with self._lock:
            self._metrics.setdefault(metric_name, []).append(point)
    
    def get_metric(
        self,
        metric_name: str,
        time_range: Optional[TimeRange] = None,
        labels: Optional[Dict[str, str]] = None
    ) -> List[MetricPoint]:
        with self._lock:
            points = list(self._metrics.get(metric_name, []))
        
        if time_range:
            points = [p for p in points if time_range.contains(p.timestamp)]
        if labels:
            wanted = set(labels.items())
            points = [p for p in points if wanted <= set(p.labels)]
        return points
    
    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        with self._lock:
            points = self._metrics.get(metric_name, [])
            return points[-1] if points else None
    
    def total(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Sum of a counter, optionally restricted to matching labels."""
        return sum(p.value for p in self.get_metric(metric_name, labels=labels))
    
    def compute_aggregates(
        self,
        metric_name: str,
        time_range: Optional[TimeRange] = None
    ) -> Dict[str, float]:
        points = self.get_metric(metric_name, time_range)
        if not points:
            return {}
        
        values = [p.value for p in points]
        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# OBSERVABILITY ENGINE (Orchestrates all observability)
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True


class ObservabilityEngine:
    """
    Central observability sink for the engine.
    
    Besides audit and metrics it keeps the moderation outbox: events the
    moderation collaborator must see (expired or evicted pending
    submissions and aborted operations).
    """
    
    def __init__(
        self,
        config: Optional[ObservabilityConfig] = None,
        clock: Optional[LogicalClock] = None
    ):
        self._config = config or ObservabilityConfig()
        self._clock = clock
        self._collectors: Dict[str, LogCollector] = {
            name: LogCollector(name) for name in LAYERS
        }
        self._metrics = MetricsCollector(clock) if self._config.enable_metrics else None
        self._moderation: List[ModerationEvent] = []
        self._moderation_lock = threading.Lock()
        self._sequence = 0
        self._sequence_lock = threading.Lock()
    
    def collect_audit(self, entry: AuditLogEntry):
        collector = self._collectors.get(entry.layer)
        if collector:
            collector.collect(entry)
    
    def log_audit(
        self,
        layer: str,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        **metadata: object
    ) -> AuditLogEntry:
        """Build and collect an audit entry."""
        with self._sequence_lock:
            self._sequence += 1
            sequence = self._sequence
        
        entry_hash = hashlib.sha256(
            f"{layer}|{action}|{entity_id}|{sequence}".encode()
        ).hexdigest()[:16]
        
        entry = AuditLogEntry(
            entry_id=f"audit_{entry_hash}",
            event_type=event_type,
            timestamp=_now(self._clock),
            layer=layer,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=tuple(sorted((k, str(v)) for k, v in metadata.items()))
        )
        self.collect_audit(entry)
        return entry
    
    def log_error(self, layer: str, error: Error, entity_id: Optional[str] = None) -> AuditLogEntry:
        return self.log_audit(
            layer, AuditEventType.ERROR, error.code.name.lower(),
            entity_id=entity_id, message=error.message, **dict(error.context)
        )
    
    def collect_metric(
        self,
        metric_name: str,
        value: float = 1.0,
        labels: Optional[Dict[str, str]] = None
    ):
        if self._metrics:
            self._metrics.record(metric_name, value, labels)
    
    def raise_moderation(self, event: ModerationEvent):
        with self._moderation_lock:
            self._moderation.append(event)
        self.log_audit(
            'moderation', AuditEventType.MODERATION, event.reason.value,
            entity_id=event.submission_id.value, entity_type="submission",
            detail=event.detail
        )
    
    def moderation_events(self) -> List[ModerationEvent]:
        with self._moderation_lock:
            return list(self._moderation)
    
    def drain_moderation(self) -> List[ModerationEvent]:
        """Hand pending moderation events to the collaborator and clear the outbox."""
        with self._moderation_lock:
            drained, self._moderation = self._moderation, []
        return drained
    
    def get_unified_log(
        self,
        time_range: Optional[TimeRange] = None,
        layers: Optional[List[str]] = None
    ) -> List[AuditLogEntry]:
        target_layers = layers or list(self._collectors.keys())
        
        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                all_entries.extend(collector.get_entries(time_range=time_range))
        
        all_entries.sort(key=lambda e: e.timestamp.value)
        return all_entries
    
    def get_layer_log(
        self,
        layer_name: str,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries(time_range=time_range, event_type=event_type)
    
    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._metrics
    
    def generate_audit_report(
        self,
        time_range: Optional[TimeRange] = None
    ) -> Dict:
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
            'moderation_pending': len(self.moderation_events()),
            'time_range': {
                'start': entries[0].timestamp.to_iso() if entries else None,
                'end': entries[-1].timestamp.to_iso() if entries else None,
            },
            'generated_at': _now(self._clock).to_iso()
        }


def _now(clock: Optional[LogicalClock]) -> Timestamp:
    if clock is None:
        return Timestamp.now()
    return Timestamp(clock.now())


__all__ = [
    'LogCollector', 'MetricType', 'MetricDefinition', 'MetricsCollector',
    'ObservabilityConfig', 'ObservabilityEngine', 'LAYERS',
]
