"""
Quality Scorer
==============

Evidentiary-completeness score of a single submission.

SCORE LAYOUT (total 0..12):
===========================
- text           0..3   length in range, detail, location/time references
- media          0..4   photos, video, embedded GPS agreeing with the report
- location       0..2   GPS accuracy tier, administrative address
- corroboration  0..3   external content-validation sub-score (0 if absent)

The scorer is a pure function of the submission and the optional
corroboration sub-score. It never calls collaborators itself.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import re

from ..contracts.base import AccuracyGrade, QualityGrade, accuracy_grade
from ..contracts.events import Submission, QualityScoreBreakdown
from ..contracts.limits import LIMITS
from ..geo import haversine_meters


_LOCATION_REFERENCE = re.compile(
    r'\b(jalan|jln|jl|gang|gg|rt|rw|no|nomor|depan|dekat|samping|belakang|'
    r'seberang|simpang|perempatan|pertigaan|kelurahan|kecamatan|pasar|'
    r'sekolah|masjid|gereja|halte|jembatan)\b',
    re.IGNORECASE
)

_TIME_REFERENCE = re.compile(
    r'\b(pagi|siang|sore|malam|kemarin|tadi|hari ini|minggu lalu|jam|pukul|'
    r'senin|selasa|rabu|kamis|jumat|sabtu|minggu|sejak)\b|\b\d{1,2}[:.]\d{2}\b',
    re.IGNORECASE
)


@dataclass(frozen=True)
class QualityScorerConfig:
    """Point values inside each capped component."""
    length_points: float = 1.0
    detail_points: float = 0.5
    detail_min_length: int = 100
    location_reference_points: float = 1.0
    time_reference_points: float = 0.5
    
    points_per_image: float = 1.0
    max_scored_images: int = 2
    video_points: float = 1.0
    gps_metadata_points: float = 1.0
    # Embedded GPS farther than this (plus the reported accuracy) disagrees
    gps_metadata_tolerance_meters: float = 200.0
    
    excellent_accuracy_points: float = 1.5
    good_accuracy_points: float = 1.0
    poor_accuracy_points: float = 0.5
    complete_address_points: float = 0.5
    partial_address_points: float = 0.25


def quality_grade(total: float) -> QualityGrade:
    """Fixed thresholds: HIGH at 10, MEDIUM at 7, LOW below."""
    if total >= LIMITS.quality.high_threshold:
        return QualityGrade.HIGH
    if total >= LIMITS.quality.medium_threshold:
        return QualityGrade.MEDIUM
    return QualityGrade.LOW


class QualityScorer:
    """
    Derive a QualityScoreBreakdown from a submission.
    
    Deterministic: the same submission and corroboration value always
    produce the same breakdown. Cost is linear in content length.
    """
    
    def __init__(self, config: Optional[QualityScorerConfig] = None):
        self._config = config or QualityScorerConfig()
    
    def score(
        self,
        submission: Submission,
        corroboration: Optional[float] = None
    ) -> QualityScoreBreakdown:
        limits = LIMITS.quality
        hints: List[str] = []
        
        text_score = self._score_text(submission.content, hints)
        media_score, media_consistent = self._score_media(submission, hints)
        location_score, rejected = self._score_location(submission, hints)
        
        corroboration_available = corroboration is not None
        corroboration_score = 0.0
        if corroboration_available:
            corroboration_score = _clamp(float(corroboration), 0.0, limits.corroboration_max)
        
        total = round(text_score + media_score + location_score + corroboration_score, 4)
        total = _clamp(total, limits.minimum, limits.maximum)
        
        return QualityScoreBreakdown(
            text_score=text_score,
            media_score=media_score,
            location_score=location_score,
            corroboration_score=corroboration_score,
            total=total,
            grade=quality_grade(total),
            rejected=rejected,
            corroboration_available=corroboration_available,
            media_location_consistent=media_consistent,
            hints=tuple(hints),
        )
    
    def _score_text(self, content: str, hints: List[str]) -> float:
        cfg = self._config
        text = content.strip()
        length = len(text)
        
        score = 0.0
        if LIMITS.submission.min_text_length <= length <= LIMITS.submission.max_text_length:
            score += cfg.length_points
            if length >= cfg.detail_min_length:
                score += cfg.detail_points
        else:
            hints.append("description_length_out_of_range")
        
        if _LOCATION_REFERENCE.search(text):
            score += cfg.location_reference_points
        else:
            hints.append("add_location_reference")
        
        if _TIME_REFERENCE.search(text):
            score += cfg.time_reference_points
        
        return min(score, LIMITS.quality.text_max)
    
    def _score_media(
        self,
        submission: Submission,
        hints: List[str]
    ) -> Tuple[float, Optional[bool]]:
        cfg = self._config
        if not submission.media:
            hints.append("add_photo")
            return 0.0, None
        
        score = min(submission.image_count, cfg.max_scored_images) * cfg.points_per_image
        if submission.video_count > 0:
            score += cfg.video_points
        
        # Embedded GPS only counts when every tagged item agrees with the report
        tagged = [m.embedded_location for m in submission.media if m.embedded_location]
        consistent: Optional[bool] = None
        if tagged:
            tolerance = cfg.gps_metadata_tolerance_meters + submission.accuracy_meters
            consistent = all(
                haversine_meters(point, submission.location) <= tolerance
                for point in tagged
            )
            if consistent:
                score += cfg.gps_metadata_points
            else:
                hints.append("media_location_mismatch")
        
        return min(score, LIMITS.quality.media_max), consistent
    
    def _score_location(
        self,
        submission: Submission,
        hints: List[str]
    ) -> Tuple[float, bool]:
        cfg = self._config
        grade = accuracy_grade(submission.accuracy_meters)
        if grade == AccuracyGrade.REJECT:
            hints.append("gps_accuracy_rejected")
            return 0.0, True
        
        score = {
            AccuracyGrade.EXCELLENT: cfg.excellent_accuracy_points,
            AccuracyGrade.GOOD: cfg.good_accuracy_points,
            AccuracyGrade.POOR: cfg.poor_accuracy_points,
            AccuracyGrade.VAGUE: 0.0,
        }[grade]
        
        address = submission.address
        if address is not None and address.is_complete:
            score += cfg.complete_address_points
        elif address is not None and address.administrative_levels() >= 2:
            score += cfg.partial_address_points
        if address is None or not address.kelurahan:
            hints.append("add_kelurahan")
        
        return min(score, LIMITS.quality.location_max), False


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
