"""
Observability Tests
===================

Audit collection per layer, labelled metrics and the moderation outbox.
"""

from datetime import datetime, timezone

from suara_engine.contracts.base import (
    Error, ErrorCode, IssueCategory, SubmissionId, Timestamp
)
from suara_engine.contracts.events import (
    AuditEventType, ModerationEvent, ModerationReason
)
from suara_engine.observability import (
    LAYERS, ObservabilityConfig, ObservabilityEngine
)
from suara_engine.temporal import LogicalClock


T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def engine():
    return ObservabilityEngine(clock=LogicalClock.manual(T0))


def event(n):
    return ModerationEvent(
        event_id=f"moderation_{n}",
        reason=ModerationReason.PENDING_EXPIRED,
        submission_id=SubmissionId(f"sub_{n}"),
        category=IssueCategory.LIGHTING,
        raised_at=Timestamp(T0),
    )


class TestAudit:
    
    def test_entries_land_in_their_layer(self):
        obs = engine()
        obs.log_audit('scoring', AuditEventType.SCORING, "scored", entity_id="sub_1", total=6.5)
        
        entries = obs.get_layer_log('scoring')
        assert len(entries) == 1
        assert entries[0].action == "scored"
        assert dict(entries[0].metadata)["total"] == "6.5"
        assert entries[0].timestamp == Timestamp(T0)
        assert obs.get_layer_log('intake') == []
    
    def test_unknown_layer_is_ignored(self):
        obs = engine()
        obs.log_audit('nowhere', AuditEventType.SCORING, "scored")
        assert obs.get_unified_log() == []
    
    def test_error_entries_carry_context(self):
        obs = engine()
        obs.log_error('storage', Error.create(ErrorCode.VERSION_CONFLICT, "stale", cluster="c1"))
        entry = obs.get_layer_log('storage', event_type=AuditEventType.ERROR)[0]
        assert entry.action == "version_conflict"
        assert dict(entry.metadata)["cluster"] == "c1"
    
    def test_entry_ids_unique(self):
        obs = engine()
        for _ in range(5):
            obs.log_audit('intake', AuditEventType.INTAKE, "accepted", entity_id="sub_1")
        ids = [e.entry_id for e in obs.get_layer_log('intake')]
        assert len(set(ids)) == 5
    
    def test_report(self):
        obs = engine()
        obs.log_audit('intake', AuditEventType.INTAKE, "accepted")
        obs.raise_moderation(event(1))
        report = obs.generate_audit_report()
        assert report['total_entries'] == 2
        assert report['by_layer'] == {'intake': 1, 'moderation': 1}
        assert report['moderation_pending'] == 1
        assert set(LAYERS) >= set(report['by_layer'])


class TestMetrics:
    
    def test_labelled_totals(self):
        obs = engine()
        obs.collect_metric("decisions_total", 1.0, {"decision": "defer"})
        obs.collect_metric("decisions_total", 1.0, {"decision": "defer"})
        obs.collect_metric("decisions_total", 1.0, {"decision": "create_new"})
        metrics = obs.get_metrics()
        
        assert metrics.total("decisions_total") == 3
        assert metrics.total("decisions_total", {"decision": "defer"}) == 2
        assert metrics.definition("decisions_total").labels == ("decision",)
    
    def test_aggregates(self):
        obs = engine()
        for value in (10.0, 20.0, 30.0):
            obs.collect_metric("assignment_duration_ms", value)
        aggregates = obs.get_metrics().compute_aggregates("assignment_duration_ms")
        assert aggregates['count'] == 3
        assert aggregates['avg'] == 20.0
    
    def test_metrics_disabled(self):
        obs = ObservabilityEngine(ObservabilityConfig(enable_metrics=False))
        obs.collect_metric("decisions_total", 1.0)
        assert obs.get_metrics() is None


class TestModerationOutbox:
    
    def test_drain_hands_over_once(self):
        obs = engine()
        obs.raise_moderation(event(1))
        obs.raise_moderation(event(2))
        
        drained = obs.drain_moderation()
        assert [e.event_id for e in drained] == ["moderation_1", "moderation_2"]
        assert obs.moderation_events() == []
        assert obs.get_layer_log('moderation')[0].action == "pending_expired"
