"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto
import hashlib

from .limits import LIMITS


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    Every failure the engine can produce is enumerated here.
    """
    # Intake errors (surfaced to the caller)
    INPUT_REJECTED = auto()
    OUT_OF_BOUNDS = auto()
    ACCURACY_REJECTED = auto()
    UNKNOWN_CATEGORY = auto()
    TOO_MANY_MEDIA = auto()
    
    # Collaborator errors (recovered locally)
    DEPENDENCY_UNAVAILABLE = auto()
    VALIDATION_TIMEOUT = auto()
    HISTORY_LOOKUP_FAILED = auto()
    
    # Capacity errors (redirected to the next decision branch)
    CAPACITY_EXCEEDED = auto()
    CLUSTER_FULL = auto()
    RADIUS_EXCEEDED = auto()
    PENDING_POOL_FULL = auto()
    
    # Internal logic faults
    INVARIANT_VIOLATION = auto()
    ALREADY_ASSIGNED = auto()
    RADIUS_SHRINK = auto()
    CLUSTER_NOT_FOUND = auto()
    CLUSTER_NOT_OPEN = auto()
    VERSION_CONFLICT = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    
    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )
    
    @staticmethod
    def create(code: ErrorCode, message: str, **context: object) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple(sorted((k, str(v)) for k, v in context.items()))
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None
    
    @property
    def is_success(self) -> bool:
        return self.error is None
    
    @property
    def is_failure(self) -> bool:
        return self.error is not None
    
    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)
    
    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# FAULTS (raised internally, converted to Error at the engine boundary)
# =============================================================================

class EngineFault(Exception):
    """Base class for faults raised inside the engine. Always carries an Error."""
    
    def __init__(self, error: Error):
        self.error = error
        super().__init__(error.message)
    
    @property
    def code(self) -> ErrorCode:
        return self.error.code


class InputRejected(EngineFault):
    """Submission failed intake validation and must not be clustered."""


class DependencyUnavailable(EngineFault):
    """An external collaborator timed out or failed."""


class CapacityExceeded(EngineFault):
    """A bounded structure (cluster, pending pool) cannot take another entry."""


class InvariantViolation(EngineFault):
    """Internal logic fault. The surrounding operation must be aborted."""


# =============================================================================
# IDENTITY TYPES (Immutable, hash-verified)
# =============================================================================

@dataclass(frozen=True)
class SubmissionId:
    """Immutable submission identifier assigned by the intake collaborator."""
    value: str
    
    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("SubmissionId value must be a non-empty string")
    
    @staticmethod
    def generate(submitter_id: str, timestamp: datetime, content: str) -> SubmissionId:
        """Generate deterministic submission ID from content."""
        seed = f"{submitter_id}|{timestamp.isoformat()}|{content}"
        content_hash = hashlib.sha256(seed.encode('utf-8')).hexdigest()
        return SubmissionId(value=f"sub_{content_hash[:16]}")


@dataclass(frozen=True)
class SubmitterId:
    """Immutable (possibly anonymous) reporter identifier."""
    value: str
    
    def __post_init__(self):
        if not self.value or not isinstance(self.value, str):
            raise ValueError("SubmitterId value must be a non-empty string")


@dataclass(frozen=True, order=True)
class ClusterId:
    """Immutable cluster identifier. Ordered so ties break on the lower id."""
    value: str
    
    @staticmethod
    def generate(seed: str) -> ClusterId:
        """Generate deterministic cluster ID from seed."""
        cluster_hash = hashlib.sha256(seed.encode('utf-8')).hexdigest()[:16]
        return ClusterId(value=f"cluster_{cluster_hash}")


# =============================================================================
# TEMPORAL TYPES (Immutable, explicit semantics)
# =============================================================================

@dataclass(frozen=True, order=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime
    
    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))
    
    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))
    
    @staticmethod
    def from_iso(iso_string: str) -> Timestamp:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return Timestamp(value=dt)
    
    def to_iso(self) -> str:
        return self.value.isoformat()
    
    def seconds_since(self, other: Timestamp) -> float:
        return (self.value - other.value).total_seconds()


@dataclass(frozen=True)
class TimeRange:
    """Immutable time range for queries."""
    start: Timestamp
    end: Timestamp
    
    def __post_init__(self):
        if self.start.value > self.end.value:
            raise ValueError("TimeRange start must be before or equal to end")
    
    def contains(self, timestamp: Timestamp) -> bool:
        return self.start.value <= timestamp.value <= self.end.value


# =============================================================================
# SPATIAL TYPES
# =============================================================================

@dataclass(frozen=True)
class GeoPoint:
    """WGS84 point in decimal degrees."""
    latitude: float
    longitude: float
    
    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError("latitude must be between -90 and 90")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError("longitude must be between -180 and 180")
    
    def within_national_bounds(self) -> bool:
        bounds = LIMITS.location
        return (
            bounds.min_latitude <= self.latitude <= bounds.max_latitude and
            bounds.min_longitude <= self.longitude <= bounds.max_longitude
        )


@dataclass(frozen=True)
class AdministrativeAddress:
    """Administrative address resolved by the geocoding collaborator."""
    street: Optional[str] = None
    kelurahan: Optional[str] = None
    kecamatan: Optional[str] = None
    kabupaten: Optional[str] = None
    provinsi: Optional[str] = None
    
    def administrative_levels(self) -> int:
        """Number of filled administrative levels (kelurahan..provinsi)."""
        return sum(
            1 for part in (self.kelurahan, self.kecamatan, self.kabupaten, self.provinsi)
            if part
        )
    
    @property
    def is_complete(self) -> bool:
        return self.administrative_levels() == 4


# =============================================================================
# CLASSIFICATIONS (Explicit, closed sets)
# =============================================================================

class IssueCategory(Enum):
    """
    Canonical six-category set.
    
    Some intake code paths also emit HEALTH, EDUCATION, GOVERNANCE and
    SOCIAL. Those are not part of the canonical set and are rejected at
    intake instead of being mapped to a guess.
    """
    INFRASTRUCTURE = "infrastructure"
    CLEANLINESS = "cleanliness"
    LIGHTING = "lighting"
    WATER_DRAINAGE = "water_drainage"
    ENVIRONMENT = "environment"
    SAFETY = "safety"
    
    @staticmethod
    def parse(value: str) -> Optional[IssueCategory]:
        normalized = value.strip().lower().replace('/', '_').replace(' ', '_')
        if normalized == "water":
            normalized = "water_drainage"
        for category in IssueCategory:
            if category.value == normalized:
                return category
        return None


class MediaKind(Enum):
    IMAGE = "image"
    VIDEO = "video"


class AccuracyGrade(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"
    VAGUE = "vague"
    REJECT = "reject"


class QualityGrade(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TrustLevel(Enum):
    BASIC = "BASIC"
    VERIFIED = "VERIFIED"
    PREMIUM = "PREMIUM"


class ClusterStatus(Enum):
    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"


class SubmissionStatus(Enum):
    """Moderation-owned status. The engine only sets the initial value."""
    RECEIVED = "received"
    REJECTED = "rejected"
    CLUSTERED = "clustered"
    PENDING = "pending"
    ESCALATED = "escalated"


def accuracy_grade(accuracy_meters: float) -> AccuracyGrade:
    """Map a GPS accuracy radius onto the fixed tiers."""
    thresholds = LIMITS.location
    if accuracy_meters >= thresholds.gps_accuracy_reject:
        return AccuracyGrade.REJECT
    if accuracy_meters < thresholds.gps_accuracy_excellent:
        return AccuracyGrade.EXCELLENT
    if accuracy_meters < thresholds.gps_accuracy_good:
        return AccuracyGrade.GOOD
    if accuracy_meters < thresholds.gps_accuracy_poor:
        return AccuracyGrade.POOR
    return AccuracyGrade.VAGUE
