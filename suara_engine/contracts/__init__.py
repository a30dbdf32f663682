"""
Contracts shared by every layer of the engine.

Layers import types from here and never from each other's implementations.
"""

from .base import (
    ErrorCode, Error, Result,
    EngineFault, InputRejected, DependencyUnavailable, CapacityExceeded,
    InvariantViolation,
    SubmissionId, SubmitterId, ClusterId, Timestamp, TimeRange,
    GeoPoint, AdministrativeAddress,
    IssueCategory, MediaKind, AccuracyGrade, QualityGrade, TrustLevel,
    ClusterStatus, SubmissionStatus, accuracy_grade,
)
from .events import (
    MediaEvidence, Submission, QualityScoreBreakdown, SubmitterHistory,
    TrustBonus, TrustWeight, ClusterMember, IssueCluster, ClusterCandidate,
    DecisionType, Decision, OutcomeStatus, PendingEntry, AssignmentOutcome,
    ModerationReason, ModerationEvent, AuditEventType, AuditLogEntry,
    MetricPoint,
)
from .limits import LIMITS, EARTH_RADIUS_METERS

__all__ = [
    'ErrorCode', 'Error', 'Result',
    'EngineFault', 'InputRejected', 'DependencyUnavailable',
    'CapacityExceeded', 'InvariantViolation',
    'SubmissionId', 'SubmitterId', 'ClusterId', 'Timestamp', 'TimeRange',
    'GeoPoint', 'AdministrativeAddress',
    'IssueCategory', 'MediaKind', 'AccuracyGrade', 'QualityGrade',
    'TrustLevel', 'ClusterStatus', 'SubmissionStatus', 'accuracy_grade',
    'MediaEvidence', 'Submission', 'QualityScoreBreakdown',
    'SubmitterHistory', 'TrustBonus', 'TrustWeight', 'ClusterMember',
    'IssueCluster', 'ClusterCandidate', 'DecisionType', 'Decision',
    'OutcomeStatus', 'PendingEntry', 'AssignmentOutcome', 'ModerationReason',
    'ModerationEvent', 'AuditEventType', 'AuditLogEntry', 'MetricPoint',
    'LIMITS', 'EARTH_RADIUS_METERS',
]
