"""
Core Clustering Engine

RESPONSIBILITY: Decide where each scored submission belongs, keep cluster
geometry, hold deferred submissions awaiting corroboration
ALLOWED INPUTS: Submission + QualityScoreBreakdown from the scoring layer,
open clusters from the GeoIndex
OUTPUTS: Decision, new IssueCluster snapshots (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Persist data (that's the storage layer's job)
- Call external collaborators
- Score quality or trust
- Use priority when deciding an assignment (priority is for ranking only)
- Merge across categories

BOUNDARY ENFORCEMENT:
=====================
- ClusterAssigner only reads: it returns a Decision and changes nothing
- ClusterAggregator returns NEW snapshots with an incremented version
- The deferred pool is the only mutable structure here and it is
  lock-guarded
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Collection, List, Optional

from ..contracts.events import (
    ClusterCandidate, Decision, QualityScoreBreakdown, Submission
)
from ..contracts.limits import LIMITS
from ..geo import GeoIndex
from ..matching import SimilarityMatcher
from .aggregator import (
    AggregatorConfig, ClusterAggregator, CATEGORY_SEVERITY, member_from,
    priority_score
)
from .corroboration import corroborating_entries
from .lanes import LaneLocks
from .pending import DeferredPool, DeferredPoolConfig


# =============================================================================
# ASSIGNMENT
# =============================================================================

@dataclass(frozen=True)
class AssignerConfig:
    search_radius_meters: float = LIMITS.clustering.max_cluster_radius_meters
    max_cluster_radius_meters: float = LIMITS.clustering.max_cluster_radius_meters
    high_weight_threshold: float = LIMITS.clustering.high_weight_threshold
    min_weight_for_cluster: float = LIMITS.clustering.min_weight_for_cluster
    min_similar_reports: int = LIMITS.clustering.min_similar_reports
    max_members: int = LIMITS.clustering.max_cluster_size

    def __post_init__(self):
        if self.search_radius_meters <= 0:
            raise ValueError("search_radius_meters must be positive")
        if self.min_similar_reports < 1:
            raise ValueError("min_similar_reports must be at least 1")


class ClusterAssigner:
    """
    Decides MergeInto / CreateNew / Defer for one submission.

    DECISION ORDER:
    ===============
    1. Open clusters of the same category within the search radius
    2. Keep those whose representative text is similar enough and whose
       envelope still covers the submission's accuracy-expanded position
    3. Best candidate (similarity desc, distance asc, id asc) -> MergeInto
    4. Heavy submitter on their own -> CreateNew
    5. Enough independent corroboration in the deferred pool -> CreateNew
       with the deferred submissions as founding members
    6. Otherwise -> Defer

    The assigner never mutates anything. The engine applies the decision
    under the lane lock.
    """

    def __init__(
        self,
        index: GeoIndex,
        matcher: SimilarityMatcher,
        pool: DeferredPool,
        config: Optional[AssignerConfig] = None
    ):
        self._index = index
        self._matcher = matcher
        self._pool = pool
        self._config = config or AssignerConfig()

    @property
    def config(self) -> AssignerConfig:
        return self._config

    def assign(
        self,
        submission: Submission,
        quality: QualityScoreBreakdown,
        trust_weight: float,
        exclude: Collection[str] = ()
    ) -> Decision:
        """
        Decide for one submission.

        `exclude` lists cluster ids that must not be merged into (a full
        cluster that already refused this submission).
        """
        if quality.rejected:
            return Decision.defer("location accuracy rejected")

        candidates = self.candidates(submission, exclude)
        if candidates:
            best = candidates[0]
            return Decision.merge_into(
                best.cluster.cluster_id,
                reason=f"similarity {best.similarity:.2f} at {best.distance_meters:.0f} m",
                considered=len(candidates),
            )
        return self.evaluate_creation(submission, trust_weight)

    def candidates(
        self,
        submission: Submission,
        exclude: Collection[str] = ()
    ) -> List[ClusterCandidate]:
        nearby = [
            (cluster, distance)
            for cluster, distance in self._index.query(
                submission.location, self._config.search_radius_meters,
                submission.category
            )
            if cluster.cluster_id.value not in exclude
            and distance + submission.accuracy_meters <= self._config.max_cluster_radius_meters
        ]
        return self._matcher.rank_candidates(
            submission.content, submission.category, nearby
        )

    def evaluate_creation(
        self,
        submission: Submission,
        trust_weight: float,
        considered: int = 0
    ) -> Decision:
        """Steps 4 to 6: decide between founding a cluster and deferring."""
        if trust_weight >= self._config.high_weight_threshold:
            return Decision.create_new(
                reason=f"weight {trust_weight:.2f} founds a cluster alone",
                considered=considered,
            )

        nearby = self._pool.nearby(
            submission.location, self._config.search_radius_meters,
            submission.category
        )
        group = corroborating_entries(
            submission, nearby, self._matcher, limit=self._config.max_members - 1
        )
        group_weight = trust_weight + sum(entry.weight for entry in group)
        reports = len(group) + 1

        if (group_weight >= self._config.min_weight_for_cluster
                or reports >= self._config.min_similar_reports):
            return Decision.create_new(
                founding=tuple(entry.submission.submission_id for entry in group),
                reason=f"{reports} independent reports, weight {group_weight:.2f}",
                considered=considered,
            )

        return Decision.defer(
            reason=f"{reports} independent reports, weight {group_weight:.2f}",
            considered=considered,
        )


__all__ = [
    'ClusterAssigner', 'AssignerConfig',
    'ClusterAggregator', 'AggregatorConfig', 'CATEGORY_SEVERITY',
    'member_from', 'priority_score',
    'DeferredPool', 'DeferredPoolConfig', 'LaneLocks',
    'corroborating_entries',
]
