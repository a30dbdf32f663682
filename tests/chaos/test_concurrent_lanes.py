"""
Chaos Test: Concurrent Lanes

Many submissions pushed through process_batch on several worker threads,
across categories and geocells, with duplicates mixed in.

INVARIANTS UNDER TEST:
======================
- Every accepted submission ends in exactly one cluster or in the pool
- No cluster exceeds the member cap or loses containment
- Decisions in one lane are serialized: same-lane reports never split
"""

import itertools

from suara_engine.contracts.base import ClusterStatus, ErrorCode, IssueCategory
from suara_engine.contracts.events import OutcomeStatus
from suara_engine.geo import haversine_meters

from tests.integration.fixtures import (
    FLOOD, GARBAGE, LAMP, ORIGIN, POTHOLE, make_engine, make_submission, offset
)


TEXTS = {
    IssueCategory.INFRASTRUCTURE: POTHOLE,
    IssueCategory.LIGHTING: LAMP,
    IssueCategory.WATER_DRAINAGE: FLOOD,
    IssueCategory.CLEANLINESS: GARBAGE,
}
SPOTS = [ORIGIN, offset(ORIGIN, dlat=0.05), offset(ORIGIN, dlon=0.05)]
WEIGHTS = [0.4, 1.0, 0.4, 3.5, 0.4]


def mixed_reports(per_lane: int = 10):
    reports = []
    counter = itertools.count(1)
    for category, text in TEXTS.items():
        for spot in SPOTS:
            for i in range(per_lane):
                n = next(counter)
                reports.append(make_submission(
                    n, content=text, category=category,
                    location=offset(spot, dlat=0.0001 * i),
                    weight=WEIGHTS[n % len(WEIGHTS)],
                ))
    return reports


def assert_consistent(engine, accepted_ids):
    live = [c for c in engine.store.clusters() if c.status != ClusterStatus.MERGED]
    clustered = [m for c in live for m in c.member_ids]
    pending = [e.submission.submission_id for e in engine.pool.entries()]
    
    assert len(clustered) == len(set(clustered))
    assert not set(clustered) & set(pending)
    assert set(clustered) | set(pending) == set(accepted_ids)
    
    for cluster in live:
        assert cluster.member_count <= 50
        assert len({m.submitter_id for m in cluster.members}) == cluster.member_count
        for member in cluster.members:
            reach = haversine_meters(cluster.centroid, member.location) + member.accuracy_meters
            assert reach <= cluster.radius_meters + 1e-6
        assert engine.store.cluster_of(cluster.members[0].submission_id) == cluster.cluster_id


class TestConcurrentLanes:
    
    def test_mixed_batch_stays_consistent(self):
        engine = make_engine()
        reports = mixed_reports()
        
        outcomes = engine.process_batch(reports, max_workers=8)
        
        assert len(outcomes) == len(reports)
        assert all(o.status == OutcomeStatus.ACCEPTED for o in outcomes)
        assert_consistent(engine, [r.submission_id for r in reports])
    
    def test_one_lane_under_contention_forms_one_cluster(self):
        engine = make_engine()
        reports = [
            make_submission(n, location=offset(ORIGIN, dlat=0.00005 * n), weight=1.0)
            for n in range(1, 31)
        ]
        
        engine.process_batch(reports, max_workers=8)
        
        clusters = engine.store.clusters()
        assert len(clusters) == 1
        assert clusters[0].member_count == 30
        assert len(engine.index) == 1
    
    def test_duplicates_in_one_batch(self):
        engine = make_engine()
        reports = mixed_reports(per_lane=3)
        doubled = reports + reports
        
        outcomes = engine.process_batch(doubled, max_workers=8)
        
        rejected = [o for o in outcomes if o.error and o.error.code == ErrorCode.ALREADY_ASSIGNED]
        assert len(rejected) == len(reports)
        assert_consistent(engine, [r.submission_id for r in reports])
    
    def test_sweep_after_batch_keeps_consistency(self):
        engine = make_engine()
        reports = mixed_reports(per_lane=4)
        engine.process_batch(reports, max_workers=6)
        
        engine.clock.advance(hours=80)
        expired = engine.sweep()
        
        remaining = [
            r.submission_id for r in reports
            if r.submission_id not in {e.submission_id for e in expired}
        ]
        assert_consistent(engine, remaining)
