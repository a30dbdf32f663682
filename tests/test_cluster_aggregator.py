"""
Cluster Aggregator Tests
========================

Geometry (weighted centroid, covering radius), member cap, versioning,
absorb and close.
"""

import pytest
from datetime import datetime, timedelta, timezone

from suara_engine.contracts.base import (
    CapacityExceeded, ClusterStatus, ErrorCode, GeoPoint, IssueCategory,
    InvariantViolation, QualityGrade, SubmissionId, SubmitterId, Timestamp
)
from suara_engine.contracts.events import QualityScoreBreakdown, Submission
from suara_engine.core import AggregatorConfig, ClusterAggregator, priority_score
from suara_engine.geo import haversine_meters


T1 = Timestamp(datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc))
ORIGIN = GeoPoint(-6.2050, 106.8150)


def quality(total=5.0):
    return QualityScoreBreakdown(
        text_score=min(total, 3.0), media_score=max(total - 3.0, 0.0),
        location_score=0.0, corroboration_score=0.0,
        total=total, grade=QualityGrade.LOW,
    )


def submission(n, lat=ORIGIN.latitude, lon=ORIGIN.longitude, weight=1.0,
               accuracy=10.0, category=IssueCategory.INFRASTRUCTURE):
    return Submission(
        submission_id=SubmissionId(f"sub_{n:03d}"),
        content="jalan berlubang depan pasar",
        category=category,
        location=GeoPoint(lat, lon),
        accuracy_meters=accuracy,
        submitter_id=SubmitterId(f"warga_{n}"),
        trust_weight=weight,
        created_at=Timestamp(T1.value + timedelta(minutes=n)),
    )


class TestCreate:
    
    def test_single_member_cluster(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality())], T1)
        
        assert cluster.member_count == 1
        assert cluster.centroid == ORIGIN
        assert cluster.radius_meters == 50.0
        assert cluster.version == 1
        assert cluster.status == ClusterStatus.OPEN
        assert cluster.cluster_id.value.startswith("cluster_")
    
    def test_cluster_id_is_deterministic(self):
        aggregator = ClusterAggregator()
        founding = [(submission(1), quality()), (submission(2), quality())]
        first = aggregator.create(founding, T1)
        second = aggregator.create(list(reversed(founding)), T1)
        assert first.cluster_id == second.cluster_id
    
    def test_rejects_mixed_categories(self):
        aggregator = ClusterAggregator()
        with pytest.raises(InvariantViolation):
            aggregator.create([
                (submission(1), quality()),
                (submission(2, category=IssueCategory.SAFETY), quality()),
            ], T1)
    
    def test_rejects_too_many_founders(self):
        aggregator = ClusterAggregator(AggregatorConfig(max_members=2))
        with pytest.raises(CapacityExceeded) as raised:
            aggregator.create([(submission(n), quality()) for n in range(3)], T1)
        assert raised.value.code == ErrorCode.CLUSTER_FULL


class TestMerge:
    
    def test_centroid_shifts_by_weight_ratio(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1, weight=1.0), quality())], T1)
        north = ORIGIN.latitude + 0.0027
        merged = aggregator.merge(cluster, submission(2, lat=north, weight=3.0), quality(), T1)
        
        expected = (ORIGIN.latitude * 1.0 + north * 3.0) / 4.0
        assert merged.centroid.latitude == pytest.approx(expected)
        assert merged.weight_sum == pytest.approx(4.0)
        assert merged.version == cluster.version + 1
    
    def test_containment_after_merge(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality())], T1)
        for n, offset in enumerate([0.002, -0.0015, 0.001], start=2):
            cluster = aggregator.merge(
                cluster, submission(n, lat=ORIGIN.latitude + offset, accuracy=30.0),
                quality(), T1
            )
        for member in cluster.members:
            reach = haversine_meters(cluster.centroid, member.location) + member.accuracy_meters
            assert reach <= cluster.radius_meters + 1e-6
    
    def test_radius_never_shrinks(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1, accuracy=200.0), quality())], T1)
        before = cluster.radius_meters
        grown = aggregator.merge(cluster, submission(2, accuracy=1.0), quality(), T1)
        assert grown.radius_meters >= before
    
    def test_average_quality(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality(4.0))], T1)
        merged = aggregator.merge(cluster, submission(2), quality(8.0), T1)
        assert merged.avg_quality == pytest.approx(6.0)
    
    def test_member_cap(self):
        aggregator = ClusterAggregator(AggregatorConfig(max_members=2))
        cluster = aggregator.create([(submission(1), quality()), (submission(2), quality())], T1)
        with pytest.raises(CapacityExceeded) as raised:
            aggregator.merge(cluster, submission(3), quality(), T1)
        assert raised.value.code == ErrorCode.CLUSTER_FULL
    
    def test_radius_bound(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality())], T1)
        far = submission(2, lat=ORIGIN.latitude + 0.02, weight=1.0)
        with pytest.raises(CapacityExceeded) as raised:
            aggregator.merge(cluster, far, quality(), T1)
        assert raised.value.code == ErrorCode.RADIUS_EXCEEDED
    
    def test_rejects_category_mismatch_and_duplicates(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality())], T1)
        with pytest.raises(InvariantViolation):
            aggregator.merge(cluster, submission(2, category=IssueCategory.LIGHTING), quality(), T1)
        with pytest.raises(InvariantViolation) as raised:
            aggregator.merge(cluster, submission(1), quality(), T1)
        assert raised.value.code == ErrorCode.ALREADY_ASSIGNED
    
    def test_input_snapshot_untouched(self):
        aggregator = ClusterAggregator()
        cluster = aggregator.create([(submission(1), quality())], T1)
        aggregator.merge(cluster, submission(2), quality(), T1)
        assert cluster.member_count == 1
        assert cluster.version == 1


class TestLifecycle:
    
    def test_absorb(self):
        aggregator = ClusterAggregator()
        target = aggregator.create([(submission(1), quality())], T1)
        source = aggregator.create([(submission(2, lat=ORIGIN.latitude + 0.001), quality())], T1)
        grown, retired = aggregator.absorb(target, source, T1)
        
        assert grown.member_count == 2
        assert retired.status == ClusterStatus.MERGED
        assert retired.merged_into == target.cluster_id
        assert grown.radius_meters >= max(target.radius_meters, source.radius_meters)
    
    def test_absorb_across_categories_refused(self):
        aggregator = ClusterAggregator()
        target = aggregator.create([(submission(1), quality())], T1)
        source = aggregator.create(
            [(submission(2, category=IssueCategory.SAFETY), quality())], T1
        )
        with pytest.raises(InvariantViolation):
            aggregator.absorb(target, source, T1)
    
    def test_close_then_merge_refused(self):
        aggregator = ClusterAggregator()
        closed = aggregator.close(aggregator.create([(submission(1), quality())], T1), T1)
        assert closed.status == ClusterStatus.CLOSED
        with pytest.raises(InvariantViolation) as raised:
            aggregator.merge(closed, submission(2), quality(), T1)
        assert raised.value.code == ErrorCode.CLUSTER_NOT_OPEN


class TestPriority:
    
    def test_monotonic_in_each_input(self):
        base = priority_score(2.0, 5.0, IssueCategory.LIGHTING, 2)
        assert priority_score(3.0, 5.0, IssueCategory.LIGHTING, 2) > base
        assert priority_score(2.0, 6.0, IssueCategory.LIGHTING, 2) > base
        assert priority_score(2.0, 5.0, IssueCategory.SAFETY, 2) > base
        assert priority_score(2.0, 5.0, IssueCategory.LIGHTING, 3) > base
    
    def test_bounded(self):
        assert 0.0 <= priority_score(0.0, 0.0, IssueCategory.CLEANLINESS, 0) <= 10.0
        assert priority_score(250.0, 12.0, IssueCategory.SAFETY, 50) <= 10.0
