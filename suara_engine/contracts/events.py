"""
Event and Record Contracts

Records exchanged between layers and with external collaborators.

ALL TYPES ARE IMMUTABLE:
========================
- Frozen dataclasses
- Tuples instead of lists
- State changes produce NEW records (IssueCluster carries a version)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum

from .base import (
    SubmissionId, SubmitterId, ClusterId, Timestamp, GeoPoint,
    AdministrativeAddress, IssueCategory, MediaKind, QualityGrade,
    TrustLevel, ClusterStatus, SubmissionStatus, Error
)
from .limits import LIMITS


# =============================================================================
# SUBMISSION RECORDS (produced by the intake collaborator)
# =============================================================================

@dataclass(frozen=True)
class MediaEvidence:
    """
    Reference to an uploaded photo or video.
    
    embedded_location is the EXIF/container GPS position when the storage
    collaborator could extract one.
    """
    media_ref: str
    kind: MediaKind
    embedded_location: Optional[GeoPoint] = None


@dataclass(frozen=True)
class Submission:
    """
    One normalized civic-issue report.
    
    Immutable after creation except for status, which is owned by
    downstream moderation (and changed by producing a new record).
    """
    submission_id: SubmissionId
    content: str
    category: IssueCategory
    location: GeoPoint
    accuracy_meters: float
    submitter_id: SubmitterId
    trust_weight: float
    created_at: Timestamp
    media: Tuple[MediaEvidence, ...] = field(default_factory=tuple)
    address: Optional[AdministrativeAddress] = None
    status: SubmissionStatus = SubmissionStatus.RECEIVED
    
    def __post_init__(self):
        if self.accuracy_meters < 0:
            raise ValueError("accuracy_meters must be non-negative")
        if not 0.0 < self.trust_weight <= LIMITS.trust.maximum:
            raise ValueError(
                f"trust_weight must be in (0, {LIMITS.trust.maximum}]"
            )
    
    @property
    def image_count(self) -> int:
        return sum(1 for m in self.media if m.kind == MediaKind.IMAGE)
    
    @property
    def video_count(self) -> int:
        return sum(1 for m in self.media if m.kind == MediaKind.VIDEO)


# =============================================================================
# SCORING RECORDS
# =============================================================================

@dataclass(frozen=True)
class QualityScoreBreakdown:
    """
    Evidentiary quality of one submission.
    
    Sub-scores are bounded individually; total is their sum in [0, 12].
    """
    text_score: float
    media_score: float
    location_score: float
    corroboration_score: float
    total: float
    grade: QualityGrade
    rejected: bool = False
    corroboration_available: bool = False
    media_location_consistent: Optional[bool] = None
    hints: Tuple[str, ...] = field(default_factory=tuple)
    
    def __post_init__(self):
        if not LIMITS.quality.minimum <= self.total <= LIMITS.quality.maximum:
            raise ValueError("total must be between 0 and 12")
    
    @property
    def meets_minimum(self) -> bool:
        return self.total >= LIMITS.quality.low_threshold


@dataclass(frozen=True)
class SubmitterHistory:
    """
    Verification state and track record of one submitter.
    
    Produced by the identity-verification collaborator.
    """
    submitter_id: SubmitterId
    phone_verified: bool = False
    ktp_verified: bool = False
    selfie_verified: bool = False
    social_links: int = 0
    endorsements: int = 0
    total_submissions: int = 0
    confirmed_submissions: int = 0
    
    def __post_init__(self):
        for name in ("social_links", "endorsements", "total_submissions",
                     "confirmed_submissions"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass(frozen=True)
class TrustBonus:
    name: str
    amount: float


@dataclass(frozen=True)
class TrustWeight:
    """Per-submitter weight in [1.0, 5.0] with its bonus breakdown."""
    submitter_id: SubmitterId
    value: float
    level: TrustLevel
    bonuses: Tuple[TrustBonus, ...] = field(default_factory=tuple)
    ignored_bonuses: Tuple[str, ...] = field(default_factory=tuple)
    computed_at: Optional[Timestamp] = field(default=None, compare=False)
    
    def __post_init__(self):
        if not LIMITS.trust.minimum <= self.value <= LIMITS.trust.maximum:
            raise ValueError("trust weight must be between 1.0 and 5.0")


# =============================================================================
# CLUSTER RECORDS
# =============================================================================

@dataclass(frozen=True)
class ClusterMember:
    """What a cluster remembers about each member submission."""
    submission_id: SubmissionId
    submitter_id: SubmitterId
    location: GeoPoint
    accuracy_meters: float
    weight: float
    quality_total: float
    content: str
    created_at: Timestamp


@dataclass(frozen=True)
class IssueCluster:
    """
    Snapshot of one real-world problem.
    
    INVARIANTS:
    - every member point lies within radius_meters of centroid
    - len(members) <= 50
    - radius_meters never shrinks across versions
    """
    cluster_id: ClusterId
    category: IssueCategory
    members: Tuple[ClusterMember, ...]
    centroid: GeoPoint
    radius_meters: float
    weight_sum: float
    avg_quality: float
    priority: float
    status: ClusterStatus
    created_at: Timestamp
    updated_at: Timestamp
    version: int = 1
    merged_into: Optional[ClusterId] = None
    
    @property
    def member_count(self) -> int:
        return len(self.members)
    
    @property
    def member_ids(self) -> Tuple[SubmissionId, ...]:
        return tuple(m.submission_id for m in self.members)
    
    @property
    def is_open(self) -> bool:
        return self.status == ClusterStatus.OPEN
    
    def representative(self) -> ClusterMember:
        """Highest-quality member, most recent on ties."""
        return max(
            self.members,
            key=lambda m: (m.quality_total, m.created_at.value, m.submission_id.value)
        )


@dataclass(frozen=True)
class ClusterCandidate:
    """Transient pairing of a nearby cluster with its match evidence."""
    cluster: IssueCluster
    distance_meters: float
    similarity: float


# =============================================================================
# DECISIONS AND OUTCOMES
# =============================================================================

class DecisionType(Enum):
    MERGE_INTO = "merge_into"
    CREATE_NEW = "create_new"
    DEFER = "defer"


@dataclass(frozen=True)
class Decision:
    """
    Assignment decision for one submission.
    
    founding_member_ids lists the deferred submissions pulled into a new
    cluster (empty for a single-witness creation).
    """
    decision_type: DecisionType
    cluster_id: Optional[ClusterId] = None
    founding_member_ids: Tuple[SubmissionId, ...] = field(default_factory=tuple)
    reason: str = ""
    candidates_considered: int = 0
    
    @staticmethod
    def merge_into(cluster_id: ClusterId, reason: str = "", considered: int = 0) -> Decision:
        return Decision(DecisionType.MERGE_INTO, cluster_id=cluster_id,
                        reason=reason, candidates_considered=considered)
    
    @staticmethod
    def create_new(founding: Tuple[SubmissionId, ...] = (), reason: str = "",
                   considered: int = 0) -> Decision:
        return Decision(DecisionType.CREATE_NEW, founding_member_ids=founding,
                        reason=reason, candidates_considered=considered)
    
    @staticmethod
    def defer(reason: str = "", considered: int = 0) -> Decision:
        return Decision(DecisionType.DEFER, reason=reason,
                        candidates_considered=considered)


class OutcomeStatus(Enum):
    """Status codes surfaced to the calling collaborator."""
    ACCEPTED = "accepted"
    INPUT_REJECTED = "input_rejected"
    CAPACITY_EXCEEDED = "capacity_exceeded"


@dataclass(frozen=True)
class PendingEntry:
    """A deferred submission awaiting corroboration."""
    submission: Submission
    quality: QualityScoreBreakdown
    weight: float
    deferred_at: Timestamp


@dataclass(frozen=True)
class AssignmentOutcome:
    """
    Everything the engine hands back for one submission.
    
    status is ACCEPTED for every submission that reached the assigner,
    CAPACITY_EXCEEDED when a capacity limit redirected the decision, and
    INPUT_REJECTED when intake validation stopped it.
    """
    submission_id: SubmissionId
    status: OutcomeStatus
    decision: Optional[Decision] = None
    quality: Optional[QualityScoreBreakdown] = None
    cluster: Optional[IssueCluster] = None
    error: Optional[Error] = None


class ModerationReason(Enum):
    PENDING_EXPIRED = "pending_expired"
    PENDING_EVICTED = "pending_evicted"
    INVARIANT_VIOLATION = "invariant_violation"


@dataclass(frozen=True)
class ModerationEvent:
    """Surfaced to the moderation collaborator instead of dropping data."""
    event_id: str
    reason: ModerationReason
    submission_id: SubmissionId
    category: IssueCategory
    raised_at: Timestamp
    detail: str = ""


# =============================================================================
# OBSERVABILITY RECORDS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    INTAKE = "intake"
    SCORING = "scoring"
    DECISION = "decision"
    CLUSTER_CHANGE = "cluster_change"
    DEPENDENCY = "dependency"
    CAPACITY = "capacity"
    MODERATION = "moderation"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
