"""
Cluster Aggregator
==================

Maintains the running geometry and weight of an issue cluster.

Every operation takes a cluster snapshot and returns a NEW snapshot with
version + 1. Nothing is mutated in place, so a fault raised halfway
through leaves the stored cluster untouched.

GEOMETRY:
=========
- centroid: mean of member points weighted by submitter trust weight
- radius:   smallest value covering every member point expanded by its
            GPS accuracy, floored at 50 m, never smaller than before
- a result that would need more than 1000 m, or more than 50 members,
  is refused with CapacityExceeded
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple
import math

import numpy as np

from ..contracts.base import (
    ClusterId, ClusterStatus, Error, ErrorCode, GeoPoint, IssueCategory,
    Timestamp, CapacityExceeded, InvariantViolation
)
from ..contracts.events import (
    ClusterMember, IssueCluster, QualityScoreBreakdown, Submission
)
from ..contracts.limits import LIMITS
from ..geo import haversine_many


CATEGORY_SEVERITY: Dict[IssueCategory, float] = {
    IssueCategory.SAFETY: 1.0,
    IssueCategory.WATER_DRAINAGE: 0.8,
    IssueCategory.INFRASTRUCTURE: 0.7,
    IssueCategory.LIGHTING: 0.6,
    IssueCategory.ENVIRONMENT: 0.5,
    IssueCategory.CLEANLINESS: 0.4,
}


@dataclass(frozen=True)
class AggregatorConfig:
    max_members: int = LIMITS.clustering.max_cluster_size
    min_radius_meters: float = LIMITS.clustering.min_cluster_radius_meters
    max_radius_meters: float = LIMITS.clustering.max_cluster_radius_meters
    
    # Priority blend; each term is monotonic increasing in its input
    weight_factor: float = 0.35
    quality_factor: float = 0.25
    severity_factor: float = 0.25
    count_factor: float = 0.15
    weight_scale: float = 10.0


def priority_score(
    weight_sum: float,
    avg_quality: float,
    category: IssueCategory,
    member_count: int,
    config: Optional[AggregatorConfig] = None
) -> float:
    """
    Ranking score in [0, 10]. Used only by downstream surfacing, never by
    assignment decisions.
    """
    cfg = config or AggregatorConfig()
    weight_term = 1.0 - math.exp(-max(weight_sum, 0.0) / cfg.weight_scale)
    quality_term = max(0.0, min(avg_quality, LIMITS.quality.maximum)) / LIMITS.quality.maximum
    severity_term = CATEGORY_SEVERITY[category]
    count_term = math.log1p(max(member_count, 0)) / math.log1p(cfg.max_members)
    blended = (
        cfg.weight_factor * weight_term +
        cfg.quality_factor * quality_term +
        cfg.severity_factor * severity_term +
        cfg.count_factor * min(count_term, 1.0)
    )
    return round(10.0 * blended, 6)


def member_from(submission: Submission, quality: QualityScoreBreakdown) -> ClusterMember:
    return ClusterMember(
        submission_id=submission.submission_id,
        submitter_id=submission.submitter_id,
        location=submission.location,
        accuracy_meters=submission.accuracy_meters,
        weight=submission.trust_weight,
        quality_total=quality.total,
        content=submission.content,
        created_at=submission.created_at,
    )


class ClusterAggregator:
    """Create, grow, absorb and close cluster snapshots."""
    
    def __init__(self, config: Optional[AggregatorConfig] = None):
        self._config = config or AggregatorConfig()
    
    @property
    def config(self) -> AggregatorConfig:
        return self._config
    
    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------
    
    def create(
        self,
        founding: Sequence[Tuple[Submission, QualityScoreBreakdown]],
        now: Timestamp
    ) -> IssueCluster:
        """Seed a new cluster from its founding members."""
        if not founding:
            raise InvariantViolation(Error.create(
                ErrorCode.INVARIANT_VIOLATION, "cluster needs at least one founding member"
            ))
        categories = {s.category for s, _ in founding}
        if len(categories) != 1:
            raise InvariantViolation(Error.create(
                ErrorCode.INVARIANT_VIOLATION, "founding members span several categories"
            ))
        ids = [s.submission_id.value for s, _ in founding]
        if len(set(ids)) != len(ids):
            raise InvariantViolation(Error.create(
                ErrorCode.ALREADY_ASSIGNED, "duplicate founding member"
            ))
        if len(founding) > self._config.max_members:
            raise CapacityExceeded(Error.create(
                ErrorCode.CLUSTER_FULL, "too many founding members",
                count=len(founding)
            ))
        
        members = tuple(
            sorted((member_from(s, q) for s, q in founding),
                   key=lambda m: (m.created_at.value, m.submission_id.value))
        )
        category = categories.pop()
        centroid, radius = self._geometry(members, previous_radius=0.0)
        
        return self._with_members(
            IssueCluster(
                cluster_id=ClusterId.generate("|".join(sorted(ids))),
                category=category,
                members=members,
                centroid=centroid,
                radius_meters=radius,
                weight_sum=0.0,
                avg_quality=0.0,
                priority=0.0,
                status=ClusterStatus.OPEN,
                created_at=now,
                updated_at=now,
                version=1,
            ),
            members, centroid, radius, now, bump=False
        )
    
    def merge(
        self,
        cluster: IssueCluster,
        submission: Submission,
        quality: QualityScoreBreakdown,
        now: Timestamp
    ) -> IssueCluster:
        """Add one submission to an open cluster."""
        self._require_open(cluster)
        if submission.category != cluster.category:
            raise InvariantViolation(Error.create(
                ErrorCode.INVARIANT_VIOLATION, "category mismatch on merge",
                cluster=cluster.cluster_id.value,
                submission=submission.submission_id.value,
            ))
        if submission.submission_id in cluster.member_ids:
            raise InvariantViolation(Error.create(
                ErrorCode.ALREADY_ASSIGNED, "submission already a member",
                cluster=cluster.cluster_id.value,
                submission=submission.submission_id.value,
            ))
        if cluster.member_count + 1 > self._config.max_members:
            raise CapacityExceeded(Error.create(
                ErrorCode.CLUSTER_FULL, "cluster member cap reached",
                cluster=cluster.cluster_id.value,
            ))
        
        members = cluster.members + (member_from(submission, quality),)
        centroid, radius = self._geometry(members, previous_radius=cluster.radius_meters)
        return self._with_members(cluster, members, centroid, radius, now)
    
    def absorb(
        self,
        target: IssueCluster,
        source: IssueCluster,
        now: Timestamp
    ) -> Tuple[IssueCluster, IssueCluster]:
        """
        Fold a duplicate cluster into target.
        
        Returns (grown target, source marked MERGED).
        """
        self._require_open(target)
        self._require_open(source)
        if target.cluster_id == source.cluster_id:
            raise InvariantViolation(Error.create(
                ErrorCode.INVARIANT_VIOLATION, "cannot merge a cluster into itself"
            ))
        if target.category != source.category:
            raise InvariantViolation(Error.create(
                ErrorCode.INVARIANT_VIOLATION, "clusters never merge across categories",
                target=target.cluster_id.value, source=source.cluster_id.value,
            ))
        if target.member_count + source.member_count > self._config.max_members:
            raise CapacityExceeded(Error.create(
                ErrorCode.CLUSTER_FULL, "combined clusters exceed member cap",
                target=target.cluster_id.value, source=source.cluster_id.value,
            ))
        
        members = target.members + source.members
        centroid, radius = self._geometry(
            members, previous_radius=max(target.radius_meters, source.radius_meters)
        )
        grown = self._with_members(target, members, centroid, radius, now)
        retired = replace(
            source,
            status=ClusterStatus.MERGED,
            merged_into=target.cluster_id,
            updated_at=now,
            version=source.version + 1,
        )
        return grown, retired
    
    def close(self, cluster: IssueCluster, now: Timestamp) -> IssueCluster:
        self._require_open(cluster)
        return replace(cluster, status=ClusterStatus.CLOSED, updated_at=now,
                       version=cluster.version + 1)
    
    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    
    def _with_members(
        self,
        cluster: IssueCluster,
        members: Tuple[ClusterMember, ...],
        centroid: GeoPoint,
        radius: float,
        now: Timestamp,
        bump: bool = True
    ) -> IssueCluster:
        weight_sum = round(sum(m.weight for m in members), 6)
        avg_quality = round(sum(m.quality_total for m in members) / len(members), 6)
        return replace(
            cluster,
            members=members,
            centroid=centroid,
            radius_meters=radius,
            weight_sum=weight_sum,
            avg_quality=avg_quality,
            priority=priority_score(
                weight_sum, avg_quality, cluster.category, len(members), self._config
            ),
            updated_at=now,
            version=cluster.version + 1 if bump else cluster.version,
        )
    
    def _geometry(
        self,
        members: Sequence[ClusterMember],
        previous_radius: float
    ) -> Tuple[GeoPoint, float]:
        weights = np.array([m.weight for m in members], dtype=float)
        latitudes = np.array([m.location.latitude for m in members], dtype=float)
        longitudes = np.array([m.location.longitude for m in members], dtype=float)
        accuracies = np.array([m.accuracy_meters for m in members], dtype=float)
        
        centroid = GeoPoint(
            latitude=float(np.average(latitudes, weights=weights)),
            longitude=float(np.average(longitudes, weights=weights)),
        )
        reach = haversine_many(centroid, latitudes, longitudes) + accuracies
        covering = float(np.max(reach))
        
        if covering > self._config.max_radius_meters:
            raise CapacityExceeded(Error.create(
                ErrorCode.RADIUS_EXCEEDED, "members do not fit the maximum cluster radius",
                required=round(covering, 1),
            ))
        
        radius = max(self._config.min_radius_meters, covering, previous_radius)
        return centroid, radius
    
    def _require_open(self, cluster: IssueCluster) -> None:
        if cluster.status != ClusterStatus.OPEN:
            raise InvariantViolation(Error.create(
                ErrorCode.CLUSTER_NOT_OPEN, "cluster is not open",
                cluster=cluster.cluster_id.value, status=cluster.status.value,
            ))
