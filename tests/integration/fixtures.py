"""
Integration Test Fixtures

Explicit, hand-written submissions for deterministic testing.
No random generation.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from suara_engine import CivicIssueEngine, EngineConfig
from suara_engine.adapters import ContentValidator
from suara_engine.contracts.base import (
    AdministrativeAddress, GeoPoint, IssueCategory, MediaKind, SubmissionId,
    SubmitterId, Timestamp
)
from suara_engine.contracts.events import MediaEvidence, Submission
from suara_engine.temporal import LogicalClock


# =============================================================================
# FIXED TIMESTAMPS AND PLACES (deterministic)
# =============================================================================

T0 = datetime(2026, 3, 2, 8, 0, 0, tzinfo=timezone.utc)

# Centre of a 0.01 degree geocell in Jakarta Pusat; +-0.004 stays in the cell
ORIGIN = GeoPoint(latitude=-6.2050, longitude=106.8150)
# ~300 m north of ORIGIN
NORTH_300M = GeoPoint(latitude=-6.2050 + 0.002698, longitude=106.8150)

ADDRESS = AdministrativeAddress(
    street="Jl. Kebon Sirih", kelurahan="Kebon Sirih", kecamatan="Menteng",
    kabupaten="Jakarta Pusat", provinsi="DKI Jakarta"
)


# =============================================================================
# REPORT TEXTS
# =============================================================================

POTHOLE = "Jalan berlubang besar depan pasar Minggu membahayakan pengendara motor malam"
# Seven of POTHOLE's ten tokens: similarity exactly 0.7
POTHOLE_SHORT = "Jalan berlubang besar depan pasar Minggu membahayakan"
LAMP = "Lampu jalan mati depan sekolah gelap gulita sejak kemarin"
FLOOD = "Saluran air tersumbat sampah banjir setiap hujan deras sore"
GARBAGE = "Sampah menumpuk pinggir kali bau menyengat dekat masjid"


def make_submission(
    n: int,
    content: str = POTHOLE,
    location: GeoPoint = ORIGIN,
    weight: float = 1.0,
    category: IssueCategory = IssueCategory.INFRASTRUCTURE,
    accuracy: float = 15.0,
    submitter: Optional[str] = None,
    minutes: Optional[int] = None,
    images: int = 1,
) -> Submission:
    """Submission number n, n minutes after T0 unless told otherwise."""
    media = tuple(
        MediaEvidence(media_ref=f"img_{n}_{i}", kind=MediaKind.IMAGE, embedded_location=location)
        for i in range(images)
    )
    return Submission(
        submission_id=SubmissionId(f"sub_{n:04d}"),
        content=content,
        category=category,
        location=location,
        accuracy_meters=accuracy,
        submitter_id=SubmitterId(submitter or f"warga_{n:04d}"),
        trust_weight=weight,
        created_at=Timestamp(T0 + timedelta(minutes=n if minutes is None else minutes)),
        media=media,
        address=ADDRESS,
    )


def offset(point: GeoPoint, dlat: float = 0.0, dlon: float = 0.0) -> GeoPoint:
    return GeoPoint(latitude=point.latitude + dlat, longitude=point.longitude + dlon)


class FixedValidator(ContentValidator):
    """Stub content validator returning a constant sub-score."""
    
    def __init__(self, score: float = 2.0):
        self.score = score
        self.calls = 0
    
    def classify(self, content: str) -> float:
        self.calls += 1
        return self.score


def make_engine(
    config: Optional[EngineConfig] = None,
    validator: Optional[ContentValidator] = None,
    start: datetime = T0,
) -> CivicIssueEngine:
    """Engine on a manual clock so horizons are driven by the test."""
    return CivicIssueEngine(
        config=config,
        validator=validator,
        clock=LogicalClock.manual(start),
    )


def process_all(engine: CivicIssueEngine, submissions: Sequence[Submission]):
    return [engine.process(s) for s in submissions]
