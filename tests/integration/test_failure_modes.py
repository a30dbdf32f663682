"""
Failure Mode Tests

Collaborator timeouts, intake rejections, storage conflicts and aborted
operations.

AXIOM UNDER TEST:
=================
Faults surface as typed Error data in the outcome, never as exceptions
out of process(). Nothing half-applied remains after an aborted step.
"""

import time

import pytest

from suara_engine.adapters import SubmitterHistoryProvider, ValidationConfig
from suara_engine.contracts.base import (
    Error, ErrorCode, GeoPoint, InvariantViolation, SubmitterId
)
from suara_engine.contracts.events import (
    DecisionType, ModerationReason, OutcomeStatus, SubmitterHistory
)
from suara_engine.engine import CivicIssueEngine, EngineConfig
from suara_engine.intake import IntakeValidator
from suara_engine.storage import ConcurrentUpdate, InMemoryClusterStore
from suara_engine.temporal import LogicalClock

from .fixtures import (
    LAMP, T0, FixedValidator, make_engine, make_submission
)


FAST_TIMEOUTS = EngineConfig(validation=ValidationConfig(
    classification_timeout_seconds=0.05,
    media_timeout_seconds=0.05,
    history_timeout_seconds=0.05,
))


class SlowValidator(FixedValidator):
    def classify(self, content: str) -> float:
        time.sleep(0.5)
        return super().classify(content)


class BrokenValidator(FixedValidator):
    def classify(self, content: str) -> float:
        raise ConnectionError("validator offline")


class NanValidator(FixedValidator):
    def classify(self, content: str) -> float:
        return float("nan")


class ConflictingStore(InMemoryClusterStore):
    """Refuses the first `conflicts` commits with a version conflict."""
    
    def __init__(self, conflicts: int):
        super().__init__()
        self.conflicts = conflicts
        self.attempts = 0
    
    def commit(self, changes):
        self.attempts += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ConcurrentUpdate(Error.create(ErrorCode.VERSION_CONFLICT, "simulated conflict"))
        super().commit(changes)


class CorruptStore(InMemoryClusterStore):
    def commit(self, changes):
        raise InvariantViolation(Error.create(ErrorCode.RADIUS_SHRINK, "simulated shrink"))


def engine_with_store(store):
    return CivicIssueEngine(store=store, clock=LogicalClock.manual(T0))


# =============================================================================
# COLLABORATOR FAILURES
# =============================================================================

class TestValidatorFallback:
    """A failed content validation degrades to a zero sub-score and the decision still happens."""
    
    def assert_fallback(self, engine, outcome):
        assert outcome.status == OutcomeStatus.ACCEPTED
        assert outcome.quality.corroboration_score == 0.0
        assert outcome.quality.corroboration_available is False
        assert outcome.decision.decision_type == DecisionType.CREATE_NEW
        metrics = engine.observability.get_metrics()
        assert metrics.total("dependency_fallbacks_total", {"dependency": "content_validation"}) == 1
        assert [e.action for e in engine.observability.get_layer_log('dependency')] == ["fallback"]
    
    def test_timeout(self):
        engine = make_engine(config=FAST_TIMEOUTS, validator=SlowValidator())
        started = time.perf_counter()
        outcome = engine.process(make_submission(1))
        elapsed = time.perf_counter() - started
        
        self.assert_fallback(engine, outcome)
        assert elapsed < 0.5
        engine.shutdown()
    
    def test_raising_validator(self):
        engine = make_engine(validator=BrokenValidator())
        self.assert_fallback(engine, engine.process(make_submission(1)))
    
    def test_unusable_score(self):
        engine = make_engine(validator=NanValidator())
        self.assert_fallback(engine, engine.process(make_submission(1)))
    
    def test_working_validator_scores(self):
        validator = FixedValidator(2.0)
        engine = make_engine(validator=validator)
        outcome = engine.process(make_submission(1))
        
        assert outcome.quality.corroboration_score == 2.0
        assert outcome.quality.corroboration_available is True
        assert validator.calls == 1


class HistoryProvider(SubmitterHistoryProvider):
    def __init__(self, history=None, fail=False):
        self.history = history
        self.fail = fail
    
    def lookup(self, submitter_id):
        if self.fail:
            raise TimeoutError("identity service unreachable")
        return self.history


class TestTrustFallback:
    
    WARGA = SubmitterId("warga_0001")
    
    def test_unknown_submitter_falls_back_to_floor(self):
        engine = make_engine()
        weight = engine.refresh_trust(self.WARGA, HistoryProvider(fail=True))
        
        assert weight.value == 1.0
        metrics = engine.observability.get_metrics()
        assert metrics.total("dependency_fallbacks_total", {"dependency": "submitter_history"}) == 1
    
    def test_failed_refresh_keeps_last_known(self):
        engine = make_engine()
        verified = SubmitterHistory(submitter_id=self.WARGA, phone_verified=True, ktp_verified=True)
        first = engine.refresh_trust(self.WARGA, HistoryProvider(verified))
        assert first.value == pytest.approx(3.0)
        
        second = engine.refresh_trust(self.WARGA, HistoryProvider(fail=True))
        assert second.value == pytest.approx(3.0)
        assert engine.trust_weight_of(self.WARGA) == first


# =============================================================================
# INTAKE REJECTIONS
# =============================================================================

class TestIntakeRejection:
    
    @pytest.mark.parametrize("kwargs,reason", [
        ({"location": GeoPoint(latitude=10.0, longitude=100.0)}, "OUT_OF_BOUNDS"),
        ({"accuracy": 1000.0}, "ACCURACY_REJECTED"),
        ({"images": 6}, "TOO_MANY_MEDIA"),
    ])
    def test_rejected_before_clustering(self, kwargs, reason):
        engine = make_engine()
        outcome = engine.process(make_submission(1, **kwargs))
        
        assert outcome.status == OutcomeStatus.INPUT_REJECTED
        assert outcome.error.code == ErrorCode.INPUT_REJECTED
        assert dict(outcome.error.context)["reason"] == reason
        assert outcome.decision is None
        assert len(engine.store) == 0
        assert len(engine.pool) == 0
    
    def test_rejection_is_counted(self):
        engine = make_engine()
        engine.process(make_submission(1, accuracy=1500.0))
        metrics = engine.observability.get_metrics()
        assert metrics.total("submissions_processed_total", {"status": "input_rejected"}) == 1
    
    def test_non_canonical_category(self):
        result = IntakeValidator().category("Health")
        assert result.is_failure
        context = dict(result.error.context)
        assert context["reason"] == "UNKNOWN_CATEGORY"
        assert context["non_canonical"] == "True"
    
    def test_canonical_category_parses(self):
        result = IntakeValidator().category("water_drainage")
        assert result.is_success


# =============================================================================
# ABORTED OPERATIONS
# =============================================================================

class TestAlreadyAssigned:
    
    def test_reprocessing_a_clustered_submission(self):
        engine = make_engine()
        submission = make_submission(1)
        created = engine.process(submission).cluster
        
        again = engine.process(submission)
        
        assert again.error.code == ErrorCode.ALREADY_ASSIGNED
        assert again.decision.decision_type == DecisionType.DEFER
        assert engine.get_cluster(created.cluster_id).version == created.version
        assert engine.get_cluster(created.cluster_id).member_count == 1
        assert len(engine.pool) == 0
        events = engine.observability.moderation_events()
        assert [e.reason for e in events] == [ModerationReason.INVARIANT_VIOLATION]
        metrics = engine.observability.get_metrics()
        assert metrics.total("invariant_violations_total", {"code": "ALREADY_ASSIGNED"}) == 1
    
    def test_reprocessing_a_pending_submission(self):
        engine = make_engine()
        submission = make_submission(1, content=LAMP, weight=0.4)
        engine.process(submission)
        
        again = engine.process(submission)
        
        assert again.error.code == ErrorCode.ALREADY_ASSIGNED
        assert len(engine.pool) == 1


class TestStorageFaults:
    
    def test_version_conflict_is_retried(self):
        store = ConflictingStore(conflicts=1)
        engine = engine_with_store(store)
        outcome = engine.process(make_submission(1))
        
        assert outcome.status == OutcomeStatus.ACCEPTED
        assert outcome.decision.decision_type == DecisionType.CREATE_NEW
        assert store.attempts == 2
        assert len(engine.index) == 1
    
    def test_persistent_conflict_defers(self):
        store = ConflictingStore(conflicts=100)
        engine = engine_with_store(store)
        submission = make_submission(1)
        outcome = engine.process(submission)
        
        assert outcome.decision.decision_type == DecisionType.DEFER
        assert store.attempts == engine.config.max_commit_attempts
        assert submission.submission_id in engine.pool
        assert len(engine.store) == 0
    
    def test_invariant_violation_aborts_cleanly(self):
        engine = engine_with_store(CorruptStore())
        submission = make_submission(1)
        outcome = engine.process(submission)
        
        assert outcome.error.code == ErrorCode.RADIUS_SHRINK
        assert outcome.decision.decision_type == DecisionType.DEFER
        assert len(engine.store) == 0
        assert len(engine.index) == 0
        assert submission.submission_id in engine.pool
        events = engine.observability.moderation_events()
        assert events[-1].reason == ModerationReason.INVARIANT_VIOLATION
    
    def test_aborted_founding_returns_entries_to_pool(self):
        store = CorruptStore()
        engine = engine_with_store(store)
        d, e, f = [make_submission(n, content=LAMP, weight=0.4) for n in (1, 2, 3)]
        engine.process(d)
        engine.process(e)
        
        outcome = engine.process(f)
        
        assert outcome.error.code == ErrorCode.RADIUS_SHRINK
        assert {x.submission.submission_id for x in engine.pool.entries()} == {
            d.submission_id, e.submission_id, f.submission_id
        }
