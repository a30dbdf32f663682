"""
Intake Validation Layer

RESPONSIBILITY: Reject submissions that must never reach clustering
ALLOWED INPUTS: Normalized Submission records, raw category labels
OUTPUTS: Result (success with the submission, or INPUT_REJECTED error data)

WHAT THIS LAYER MUST NOT DO:
============================
- Score quality (short or long text is scored, not rejected)
- Look at other submissions or clusters
- Call external collaborators

BOUNDARY ENFORCEMENT:
=====================
- validate() returns failures as Error data; require() raises InputRejected
- Every rejection carries a specific ErrorCode in its context
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ..contracts.base import (
    AccuracyGrade, Error, ErrorCode, InputRejected, IssueCategory, Result,
    accuracy_grade
)
from ..contracts.events import Submission
from ..contracts.limits import LIMITS


# Labels seen in other deployments that are not part of the canonical set
NON_CANONICAL_CATEGORIES = frozenset({"health", "education", "governance", "social"})


@dataclass(frozen=True)
class IntakeConfig:
    max_images: int = LIMITS.submission.max_images


class IntakeValidator:
    """Stateless gate in front of scoring and clustering."""

    def __init__(self, config: Optional[IntakeConfig] = None):
        self._config = config or IntakeConfig()

    def validate(self, submission: Submission) -> Result:
        if not submission.location.within_national_bounds():
            return self._reject(
                ErrorCode.OUT_OF_BOUNDS, "location is outside national bounds",
                submission,
                latitude=submission.location.latitude,
                longitude=submission.location.longitude,
            )

        if accuracy_grade(submission.accuracy_meters) == AccuracyGrade.REJECT:
            return self._reject(
                ErrorCode.ACCURACY_REJECTED, "GPS accuracy too coarse to place the report",
                submission, accuracy=submission.accuracy_meters,
            )

        if submission.image_count > self._config.max_images:
            return self._reject(
                ErrorCode.TOO_MANY_MEDIA, "too many images attached",
                submission, images=submission.image_count,
            )

        return Result.success(submission)

    def require(self, submission: Submission) -> Submission:
        """Like validate(), but raises InputRejected for the engine boundary to convert."""
        result = self.validate(submission)
        if result.is_failure:
            raise InputRejected(result.error)
        return submission

    def category(self, raw: str) -> Result:
        """Resolve a raw category label against the canonical six."""
        parsed = IssueCategory.parse(raw)
        if parsed is not None:
            return Result.success(parsed)
        known_elsewhere = raw.strip().lower() in NON_CANONICAL_CATEGORIES
        return Result.failure(Error.create(
            ErrorCode.INPUT_REJECTED,
            "category is not part of the canonical set",
            reason=ErrorCode.UNKNOWN_CATEGORY.name,
            category=raw,
            non_canonical=known_elsewhere,
        ))

    def _reject(self, reason: ErrorCode, message: str, submission: Submission, **context) -> Result:
        return Result.failure(Error.create(
            ErrorCode.INPUT_REJECTED, message,
            reason=reason.name,
            submission=submission.submission_id.value,
            **context
        ))


__all__ = ['IntakeValidator', 'IntakeConfig', 'NON_CANONICAL_CATEGORIES']
