"""
Engine Orchestration Module

This module provides the unified interface for scoring and clustering
civic-issue submissions while keeping every layer behind its contract.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. One decision per (category, geocell) lane at a time; lanes run in parallel
3. Faults are converted to Error data here and never escape process()
4. All operations are traceable through observability
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
import hashlib
import os
import time

from .adapters import (
    BoundedCaller, ContentValidator, SubmitterHistoryProvider,
    ValidationConfig, ValidationGateway
)
from .contracts.base import (
    CapacityExceeded, ClusterId, ClusterStatus, DependencyUnavailable,
    EngineFault, Error, ErrorCode, InputRejected, InvariantViolation, Result,
    SubmitterId, Timestamp
)
from .contracts.events import (
    AssignmentOutcome, AuditEventType, Decision, DecisionType, IssueCluster,
    ModerationEvent, ModerationReason, OutcomeStatus, PendingEntry,
    QualityScoreBreakdown, Submission, TrustWeight
)
from .core import (
    AggregatorConfig, AssignerConfig, ClusterAggregator, ClusterAssigner,
    DeferredPool, DeferredPoolConfig, LaneLocks
)
from .geo import GeoIndex, GeoIndexConfig, LaneKey
from .intake import IntakeConfig, IntakeValidator
from .matching import SimilarityConfig, SimilarityMatcher
from .observability import ObservabilityConfig, ObservabilityEngine
from .query import ClusterRecommendation, PriorityRanker
from .scoring import (
    QualityScorer, QualityScorerConfig, TrustRegistry, TrustScorer,
    TrustScorerConfig
)
from .storage import ClusterStore, ConcurrentUpdate, InMemoryClusterStore
from .temporal import LogicalClock


@dataclass
class EngineConfig:
    """Unified configuration for the entire engine."""
    intake: IntakeConfig = None
    quality: QualityScorerConfig = None
    trust: TrustScorerConfig = None
    similarity: SimilarityConfig = None
    geo: GeoIndexConfig = None
    assigner: AssignerConfig = None
    aggregator: AggregatorConfig = None
    pending: DeferredPoolConfig = None
    validation: ValidationConfig = None
    observability: ObservabilityConfig = None
    max_commit_attempts: int = 3
    batch_workers: int = 4

    def __post_init__(self):
        self.intake = self.intake or IntakeConfig()
        self.quality = self.quality or QualityScorerConfig()
        self.trust = self.trust or TrustScorerConfig()
        self.similarity = self.similarity or SimilarityConfig()
        self.geo = self.geo or GeoIndexConfig()
        self.assigner = self.assigner or AssignerConfig()
        self.aggregator = self.aggregator or AggregatorConfig()
        self.pending = self.pending or DeferredPoolConfig()
        self.validation = self.validation or ValidationConfig()
        self.observability = self.observability or ObservabilityConfig()
        if self.max_commit_attempts < 1:
            raise ValueError("max_commit_attempts must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
        """
        Build a config from SUARA_* environment variables.

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ

        def number(name: str, default: float) -> float:
            raw = env.get(name)
            return float(raw) if raw not in (None, "") else default

        assigner = AssignerConfig()
        validation = ValidationConfig()
        pending = DeferredPoolConfig()

        return cls(
            similarity=SimilarityConfig(
                threshold=number("SUARA_SIMILARITY_THRESHOLD", SimilarityConfig().threshold)
            ),
            geo=GeoIndexConfig(
                cell_size_degrees=number("SUARA_GEOCELL_DEGREES", GeoIndexConfig().cell_size_degrees)
            ),
            assigner=AssignerConfig(
                search_radius_meters=number("SUARA_SEARCH_RADIUS_METERS", assigner.search_radius_meters),
                max_cluster_radius_meters=assigner.max_cluster_radius_meters,
                high_weight_threshold=number("SUARA_HIGH_WEIGHT_THRESHOLD", assigner.high_weight_threshold),
                min_weight_for_cluster=number("SUARA_MIN_WEIGHT_FOR_CLUSTER", assigner.min_weight_for_cluster),
                min_similar_reports=int(number("SUARA_MIN_SIMILAR_REPORTS", assigner.min_similar_reports)),
                max_members=assigner.max_members,
            ),
            pending=DeferredPoolConfig(
                max_entries_per_lane=int(number("SUARA_PENDING_LANE_CAPACITY", pending.max_entries_per_lane)),
                horizon_seconds=number("SUARA_PENDING_HORIZON_HOURS", pending.horizon_seconds / 3600.0) * 3600.0,
            ),
            validation=ValidationConfig(
                classification_timeout_seconds=number(
                    "SUARA_CLASSIFICATION_TIMEOUT", validation.classification_timeout_seconds),
                media_timeout_seconds=number("SUARA_MEDIA_TIMEOUT", validation.media_timeout_seconds),
                history_timeout_seconds=number("SUARA_HISTORY_TIMEOUT", validation.history_timeout_seconds),
                max_workers=int(number("SUARA_WORKERS", validation.max_workers)),
            ),
            batch_workers=int(number("SUARA_WORKERS", 4)),
        )


class CivicIssueEngine:
    """
    Unified engine for civic-issue scoring and clustering.

    LAYER FLOW:
    ===========
    1. Intake: Submission -> accepted or INPUT_REJECTED
    2. Scoring: corroboration (bounded external call) -> QualityScoreBreakdown
    3. Assignment: lane-locked Decision (MergeInto / CreateNew / Defer)
    4. Aggregation: new IssueCluster snapshot
    5. Storage: versioned, all-or-nothing commit; GeoIndex republished
    6. Observability: audit, metrics and moderation outbox

    The store is an explicit object owned here; pass one in to share it.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        validator: Optional[ContentValidator] = None,
        store: Optional[ClusterStore] = None,
        clock: Optional[LogicalClock] = None
    ):
        self._config = config or EngineConfig()
        self._clock = clock or LogicalClock.live()

        self._intake = IntakeValidator(self._config.intake)
        self._quality = QualityScorer(self._config.quality)
        self._caller = BoundedCaller(self._config.validation.max_workers)
        self._gateway = ValidationGateway(validator, self._caller, self._config.validation)
        self._trust = TrustRegistry(
            TrustScorer(self._config.trust), self._caller, self._config.validation
        )

        self._store = store or InMemoryClusterStore()
        self._index = GeoIndex(self._config.geo)
        self._pool = DeferredPool(self._index.grid, self._config.pending)
        self._matcher = SimilarityMatcher(self._config.similarity)
        self._assigner = ClusterAssigner(
            self._index, self._matcher, self._pool, self._config.assigner
        )
        self._aggregator = ClusterAggregator(self._config.aggregator)
        self._lanes = LaneLocks()
        self._ranker = PriorityRanker()
        self._observability = ObservabilityEngine(self._config.observability, self._clock)

        for cluster in self._store.clusters(ClusterStatus.OPEN):
            self._index.insert(cluster)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def store(self) -> ClusterStore:
        return self._store

    @property
    def index(self) -> GeoIndex:
        return self._index

    @property
    def pool(self) -> DeferredPool:
        return self._pool

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    # =========================================================================
    # SUBMISSION PROCESSING
    # =========================================================================

    def process(self, submission: Submission) -> AssignmentOutcome:
        """
        Run one submission through intake, scoring and assignment.

        Never raises for engine faults: rejections, capacity redirects and
        aborted operations are reported in the returned outcome.
        """
        started = time.perf_counter()
        sid = submission.submission_id.value

        try:
            self._intake.require(submission)
        except InputRejected as fault:
            self._observability.log_error('intake', fault.error, entity_id=sid)
            self._observability.collect_metric(
                "submissions_processed_total", 1.0,
                {"status": OutcomeStatus.INPUT_REJECTED.value}
            )
            return AssignmentOutcome(
                submission_id=submission.submission_id,
                status=OutcomeStatus.INPUT_REJECTED,
                error=fault.error,
            )
        self._observability.log_audit(
            'intake', AuditEventType.INTAKE, "accepted",
            entity_id=sid, entity_type="submission",
            category=submission.category.value,
        )

        quality = self._quality.score(submission, self._corroboration(submission))
        self._observability.log_audit(
            'scoring', AuditEventType.SCORING, "scored",
            entity_id=sid, entity_type="submission",
            total=quality.total, grade=quality.grade.value,
        )

        now = self._now()
        lane = self._index.grid.lane_of(submission.category, submission.location)
        with self._lanes.hold(lane):
            outcome = self._assign(submission, quality, now)
            if outcome.decision and outcome.decision.decision_type != DecisionType.DEFER:
                self._reevaluate_lane(lane, now)

        self._observability.collect_metric(
            "submissions_processed_total", 1.0, {"status": outcome.status.value}
        )
        self._observability.collect_metric(
            "assignment_duration_ms", (time.perf_counter() - started) * 1000.0
        )
        self._record_gauges()
        return outcome

    def process_batch(
        self,
        submissions: Sequence[Submission],
        max_workers: Optional[int] = None
    ) -> List[AssignmentOutcome]:
        """Process many submissions across worker threads. Results keep input order."""
        workers = max_workers or self._config.batch_workers
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="suara-lane") as executor:
            futures = [executor.submit(self.process, s) for s in submissions]
            return [future.result() for future in futures]

    def _corroboration(self, submission: Submission) -> Optional[float]:
        try:
            return self._gateway.corroboration(submission)
        except DependencyUnavailable as fault:
            # Degrade to a zero sub-score
            self._observability.log_audit(
                'dependency', AuditEventType.DEPENDENCY, "fallback",
                entity_id=submission.submission_id.value, entity_type="submission",
                code=fault.code.name, message=fault.error.message,
            )
            self._observability.collect_metric(
                "dependency_fallbacks_total", 1.0, {"dependency": "content_validation"}
            )
            return None

    def _assign(
        self,
        submission: Submission,
        quality: QualityScoreBreakdown,
        now: Timestamp
    ) -> AssignmentOutcome:
        """Decide and apply under the lane lock."""
        sid = submission.submission_id
        owner = self._store.cluster_of(sid)
        if owner is not None or sid in self._pool:
            fault = InvariantViolation(Error.create(
                ErrorCode.ALREADY_ASSIGNED, "submission was already decided",
                submission=sid.value, owner=owner.value if owner else "pending",
            ))
            return self._abort(submission, quality, fault, now, defer=False)

        weight = submission.trust_weight
        status = OutcomeStatus.ACCEPTED
        capacity_error: Optional[Error] = None
        excluded: set = set()
        decision = self._assigner.assign(submission, quality, weight)

        # Only version conflicts count against the attempt limit; a capacity
        # redirect excludes one more cluster or ends in Defer
        conflicts = 0
        while conflicts < self._config.max_commit_attempts:
            try:
                cluster = self._apply(decision, submission, quality, now)
            except CapacityExceeded as fault:
                status = OutcomeStatus.CAPACITY_EXCEEDED
                capacity_error = fault.error
                self._record_capacity(submission, decision, fault)
                if decision.decision_type == DecisionType.MERGE_INTO:
                    # Next open candidate first; creation only when none is left
                    excluded.add(decision.cluster_id.value)
                    decision = self._assigner.assign(
                        submission, quality, weight, exclude=excluded
                    )
                else:
                    decision = Decision.defer(reason=fault.error.message)
                continue
            except ConcurrentUpdate as fault:
                conflicts += 1
                self._observability.log_error('storage', fault.error, entity_id=sid.value)
                decision = self._assigner.assign(submission, quality, weight, exclude=excluded)
                continue
            except InvariantViolation as fault:
                return self._abort(submission, quality, fault, now, defer=True)

            self._record_decision(submission, decision, cluster)
            return AssignmentOutcome(
                submission_id=sid,
                status=status,
                decision=decision,
                quality=quality,
                cluster=cluster,
                error=capacity_error,
            )

        # Contention did not settle; keep the submission for the next pass
        decision = Decision.defer(reason="commit attempts exhausted")
        self._defer(submission, quality, now)
        self._record_decision(submission, decision, None)
        return AssignmentOutcome(
            submission_id=sid, status=status, decision=decision,
            quality=quality, error=capacity_error,
        )

    def _apply(
        self,
        decision: Decision,
        submission: Submission,
        quality: QualityScoreBreakdown,
        now: Timestamp,
        from_pool: bool = False
    ) -> Optional[IssueCluster]:
        """
        Carry out one decision. Returns the changed cluster (None for Defer).

        Deferred entries are claimed before the commit and given back to the
        pool if anything fails, so a fault leaves nothing half-moved.
        """
        if decision.decision_type == DecisionType.DEFER:
            if not from_pool:
                self._defer(submission, quality, now)
            return None

        claim_ids = list(decision.founding_member_ids)
        if from_pool:
            claim_ids.append(submission.submission_id)
        claimed = self._pool.claim(claim_ids) if claim_ids else []
        if claim_ids and not claimed:
            raise ConcurrentUpdate(Error.create(
                ErrorCode.VERSION_CONFLICT, "deferred submissions were claimed elsewhere",
                submission=submission.submission_id.value,
            ))

        try:
            if decision.decision_type == DecisionType.MERGE_INTO:
                current = self._store.get(decision.cluster_id)
                if current is None or not current.is_open:
                    raise ConcurrentUpdate(Error.create(
                        ErrorCode.VERSION_CONFLICT, "merge target is no longer open",
                        cluster=decision.cluster_id.value,
                    ))
                cluster = self._aggregator.merge(current, submission, quality, now)
                self._store.commit([(cluster, current.version)])
            else:
                founding = [
                    (entry.submission, entry.quality)
                    for entry in claimed
                    if entry.submission.submission_id != submission.submission_id
                ]
                founding.append((submission, quality))
                cluster = self._aggregator.create(founding, now)
                self._store.commit([(cluster, None)])
        except EngineFault:
            self._pool.restore(claimed)
            raise

        self._reindex(cluster.cluster_id)
        return cluster

    def _defer(self, submission: Submission, quality: QualityScoreBreakdown, now: Timestamp) -> None:
        if submission.submission_id in self._pool:
            return
        evicted = self._pool.add(PendingEntry(
            submission=submission,
            quality=quality,
            weight=submission.trust_weight,
            deferred_at=now,
        ))
        if evicted is not None:
            fault = CapacityExceeded(Error.create(
                ErrorCode.PENDING_POOL_FULL, "deferred lane full, oldest entry evicted",
                evicted=evicted.submission.submission_id.value,
            ))
            self._record_capacity(submission, Decision.defer(), fault)
            self._surface(ModerationReason.PENDING_EVICTED, evicted.submission, now,
                          detail="deferred lane capacity reached")

    def _abort(
        self,
        submission: Submission,
        quality: QualityScoreBreakdown,
        fault: InvariantViolation,
        now: Timestamp,
        defer: bool
    ) -> AssignmentOutcome:
        """Invariant violation: nothing was committed; leave the submission deferred."""
        sid = submission.submission_id.value
        self._observability.log_error('assignment', fault.error, entity_id=sid)
        self._observability.collect_metric(
            "invariant_violations_total", 1.0, {"code": fault.code.name}
        )
        self._surface(ModerationReason.INVARIANT_VIOLATION, submission, now,
                      detail=fault.error.message)
        if defer and self._store.cluster_of(submission.submission_id) is None:
            self._defer(submission, quality, now)
        decision = Decision.defer(reason=f"aborted: {fault.code.name}")
        self._record_decision(submission, decision, None)
        return AssignmentOutcome(
            submission_id=submission.submission_id,
            status=OutcomeStatus.ACCEPTED,
            decision=decision,
            quality=quality,
            error=fault.error,
        )

    def _reevaluate_lane(self, lane: LaneKey, now: Timestamp) -> int:
        """
        Give deferred entries of a lane another chance. Caller holds the lane.

        Returns how many entries left the pool.
        """
        settled = 0
        for entry in self._pool.entries(lane):
            if entry.submission.submission_id not in self._pool:
                continue
            decision = self._assigner.assign(entry.submission, entry.quality, entry.weight)
            if decision.decision_type == DecisionType.DEFER:
                continue
            try:
                cluster = self._apply(decision, entry.submission, entry.quality, now, from_pool=True)
            except EngineFault as fault:
                self._observability.log_error('assignment', fault.error,
                                              entity_id=entry.submission.submission_id.value)
                continue
            self._record_decision(entry.submission, decision, cluster)
            settled += 1
        return settled

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def sweep(self, now: Optional[Timestamp] = None) -> List[ModerationEvent]:
        """
        Periodic pass over the deferred pool.

        Expired entries go to moderation; the rest are re-evaluated. Each
        lane is swept under its own lock.
        """
        now = now or self._now()
        raised: List[ModerationEvent] = []
        for lane in self._pool.lanes():
            with self._lanes.hold(lane):
                for entry in self._pool.expire(now, lane):
                    raised.append(self._surface(
                        ModerationReason.PENDING_EXPIRED, entry.submission, now,
                        detail=f"deferred since {entry.deferred_at.to_iso()}"
                    ))
                self._reevaluate_lane(lane, now)
        self._record_gauges()
        return raised

    def close_cluster(self, cluster_id: ClusterId) -> Result:
        """Close an open cluster and drop it from the GeoIndex."""
        current = self._store.get(cluster_id)
        if current is None:
            return Result.failure(Error.create(
                ErrorCode.CLUSTER_NOT_FOUND, "no such cluster", cluster=cluster_id.value
            ))
        with self._lanes.hold(self._lane_of(current)):
            current = self._store.get(cluster_id)
            try:
                closed = self._aggregator.close(current, self._now())
                self._store.commit([(closed, current.version)])
            except EngineFault as fault:
                self._observability.log_error('aggregation', fault.error, entity_id=cluster_id.value)
                return Result.failure(fault.error)
            self._reindex(cluster_id)

        self._observability.log_audit(
            'aggregation', AuditEventType.CLUSTER_CHANGE, "closed",
            entity_id=cluster_id.value, entity_type="cluster",
            members=closed.member_count,
        )
        self._record_gauges()
        return Result.success(closed)

    def merge_clusters(self, target_id: ClusterId, source_id: ClusterId) -> Result:
        """Fold a duplicate cluster into target. Source ends MERGED."""
        target = self._store.get(target_id)
        source = self._store.get(source_id)
        if target is None or source is None:
            missing = target_id if target is None else source_id
            return Result.failure(Error.create(
                ErrorCode.CLUSTER_NOT_FOUND, "no such cluster", cluster=missing.value
            ))

        with self._lanes.hold_many([self._lane_of(target), self._lane_of(source)]):
            target = self._store.get(target_id)
            source = self._store.get(source_id)
            try:
                grown, retired = self._aggregator.absorb(target, source, self._now())
                self._store.commit([(grown, target.version), (retired, source.version)])
            except EngineFault as fault:
                self._observability.log_error('aggregation', fault.error, entity_id=target_id.value)
                if isinstance(fault, CapacityExceeded):
                    self._observability.collect_metric(
                        "capacity_redirects_total", 1.0, {"code": fault.code.name}
                    )
                return Result.failure(fault.error)
            self._reindex(target_id)
            self._reindex(source_id)

        self._observability.log_audit(
            'aggregation', AuditEventType.CLUSTER_CHANGE, "merged",
            entity_id=target_id.value, entity_type="cluster",
            source=source_id.value, members=grown.member_count,
        )
        self._record_gauges()
        return Result.success(grown)

    def refresh_trust(
        self,
        submitter_id: SubmitterId,
        provider: SubmitterHistoryProvider
    ) -> TrustWeight:
        """Recompute a submitter's weight; a failed lookup keeps the last known one."""
        weight, fault = self._trust.refresh(submitter_id, provider, self._now())
        if fault is not None:
            self._observability.log_audit(
                'dependency', AuditEventType.DEPENDENCY, "fallback",
                entity_id=submitter_id.value, entity_type="submitter",
                code=fault.code.name, message=fault.error.message,
            )
            self._observability.collect_metric(
                "dependency_fallbacks_total", 1.0, {"dependency": "submitter_history"}
            )
        return weight

    def trust_weight_of(self, submitter_id: SubmitterId) -> TrustWeight:
        return self._trust.weight_of(submitter_id)

    # =========================================================================
    # QUERY INTERFACE
    # =========================================================================

    def get_cluster(self, cluster_id: ClusterId) -> Optional[IssueCluster]:
        return self._store.get(cluster_id)

    def cluster_of(self, submission: Submission) -> Optional[IssueCluster]:
        cluster_id = self._store.cluster_of(submission.submission_id)
        return self._store.get(cluster_id) if cluster_id else None

    def ranked_clusters(self, limit: Optional[int] = None) -> List[ClusterRecommendation]:
        return self._ranker.rank(self._store.clusters(ClusterStatus.OPEN), limit)

    def stats(self) -> Dict:
        clusters = self._store.clusters()
        by_status = {status.value: 0 for status in ClusterStatus}
        for cluster in clusters:
            by_status[cluster.status.value] += 1

        live = [c for c in clusters if c.status != ClusterStatus.MERGED]
        clustered = sum(c.member_count for c in live)
        pending = len(self._pool)
        open_clusters = [c for c in live if c.is_open]

        return {
            'clusters_by_status': by_status,
            'pending_entries': pending,
            'clustered_submissions': clustered,
            'average_cluster_size': (
                sum(c.member_count for c in open_clusters) / len(open_clusters)
                if open_clusters else 0.0
            ),
            'clustered_fraction': (
                clustered / (clustered + pending) if clustered + pending else 0.0
            ),
            'moderation_pending': len(self._observability.moderation_events()),
        }

    def shutdown(self) -> None:
        self._caller.shutdown()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _now(self) -> Timestamp:
        return Timestamp(self._clock.now())

    def _lane_of(self, cluster: IssueCluster) -> LaneKey:
        return self._index.grid.lane_of(cluster.category, cluster.centroid)

    def _reindex(self, cluster_id: ClusterId) -> None:
        # Always publish the stored snapshot, never a possibly stale local copy
        latest = self._store.get(cluster_id)
        if latest is not None:
            self._index.update(latest)

    def _surface(
        self,
        reason: ModerationReason,
        submission: Submission,
        now: Timestamp,
        detail: str = ""
    ) -> ModerationEvent:
        event_hash = hashlib.sha256(
            f"{reason.value}|{submission.submission_id.value}|{now.to_iso()}".encode()
        ).hexdigest()[:16]
        event = ModerationEvent(
            event_id=f"moderation_{event_hash}",
            reason=reason,
            submission_id=submission.submission_id,
            category=submission.category,
            raised_at=now,
            detail=detail,
        )
        self._observability.raise_moderation(event)
        return event

    def _record_decision(
        self,
        submission: Submission,
        decision: Decision,
        cluster: Optional[IssueCluster]
    ) -> None:
        self._observability.log_audit(
            'assignment', AuditEventType.DECISION, decision.decision_type.value,
            entity_id=submission.submission_id.value, entity_type="submission",
            cluster=cluster.cluster_id.value if cluster else "",
            reason=decision.reason,
        )
        self._observability.collect_metric(
            "decisions_total", 1.0, {"decision": decision.decision_type.value}
        )
        if cluster is not None:
            self._observability.log_audit(
                'aggregation', AuditEventType.CLUSTER_CHANGE,
                "created" if cluster.version == 1 else "grown",
                entity_id=cluster.cluster_id.value, entity_type="cluster",
                members=cluster.member_count, radius=round(cluster.radius_meters, 1),
                version=cluster.version,
            )

    def _record_capacity(
        self,
        submission: Submission,
        decision: Decision,
        fault: CapacityExceeded
    ) -> None:
        self._observability.log_audit(
            'assignment', AuditEventType.CAPACITY, "redirected",
            entity_id=submission.submission_id.value, entity_type="submission",
            code=fault.code.name, decision=decision.decision_type.value,
        )
        self._observability.collect_metric(
            "capacity_redirects_total", 1.0, {"code": fault.code.name}
        )

    def _record_gauges(self) -> None:
        self._observability.collect_metric("clusters_open", float(len(self._index)))
        self._observability.collect_metric("pending_entries", float(len(self._pool)))


__all__ = ['CivicIssueEngine', 'EngineConfig']
