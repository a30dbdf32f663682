"""
System Limits and Constants

Fixed numeric bounds shared by every layer. Values are frozen; layers read
them through LIMITS and never patch them at runtime. Tunable values that a
deployment may override live in the per-layer config dataclasses instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SubmissionLimits:
    max_images: int = 5
    max_text_length: int = 5000
    min_text_length: int = 10


@dataclass(frozen=True)
class TrustLimits:
    minimum: float = 1.0
    maximum: float = 5.0
    verified_threshold: float = 2.1
    premium_threshold: float = 4.1
    
    phone_bonus: float = 0.5
    ktp_bonus: float = 1.5
    selfie_bonus: float = 0.5
    social_bonus: float = 1.0
    endorsement_bonus: float = 0.1
    endorsement_bonus_max: float = 0.5
    accuracy_bonus_max: float = 0.5
    history_bonus_max: float = 0.3


@dataclass(frozen=True)
class QualityLimits:
    minimum: float = 0.0
    maximum: float = 12.0
    
    text_max: float = 3.0
    media_max: float = 4.0
    location_max: float = 2.0
    corroboration_max: float = 3.0
    
    low_threshold: float = 4.0
    medium_threshold: float = 7.0
    high_threshold: float = 10.0


@dataclass(frozen=True)
class ClusteringLimits:
    min_weight_for_cluster: float = 1.0
    high_weight_threshold: float = 3.0
    min_similar_reports: int = 3
    max_cluster_radius_meters: float = 1000.0
    min_cluster_radius_meters: float = 50.0
    similarity_threshold: float = 0.7
    max_cluster_size: int = 50


@dataclass(frozen=True)
class LocationLimits:
    # Indonesia bounding box
    min_latitude: float = -11.0
    max_latitude: float = 6.0
    min_longitude: float = 95.0
    max_longitude: float = 141.0
    
    gps_accuracy_excellent: float = 10.0
    gps_accuracy_good: float = 50.0
    gps_accuracy_poor: float = 200.0
    gps_accuracy_reject: float = 1000.0


@dataclass(frozen=True)
class ProcessingLimits:
    max_media_processing_seconds: float = 30.0
    max_classification_seconds: float = 5.0


@dataclass(frozen=True)
class Limits:
    submission: SubmissionLimits = field(default_factory=SubmissionLimits)
    trust: TrustLimits = field(default_factory=TrustLimits)
    quality: QualityLimits = field(default_factory=QualityLimits)
    clustering: ClusteringLimits = field(default_factory=ClusteringLimits)
    location: LocationLimits = field(default_factory=LocationLimits)
    processing: ProcessingLimits = field(default_factory=ProcessingLimits)


LIMITS = Limits()

EARTH_RADIUS_METERS = 6371000.0
