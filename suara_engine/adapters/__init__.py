"""
Collaborator Adapters
=====================

Narrow interfaces to the external collaborators the engine consumes, and
the bounded-call wrapper every collaborator call goes through.

BOUNDARY ENFORCEMENT:
- Collaborators are injected; the engine never constructs network clients
- Every call has a timeout and is cancelled when it expires
- A failed or late call raises DependencyUnavailable; callers decide the
  fallback (zero sub-score, last known weight)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
import math

from ..contracts.base import (
    DependencyUnavailable, Error, ErrorCode, SubmitterId
)
from ..contracts.events import Submission, SubmitterHistory
from ..contracts.limits import LIMITS

T = TypeVar("T")


class ContentValidator(ABC):
    """
    AI content-validation collaborator.
    
    Checks that the report text (and media, when the implementation looks
    at it) is consistent and returns a corroboration sub-score in [0, 3].
    """
    
    @abstractmethod
    def classify(self, content: str) -> float:
        """Return the corroboration sub-score for this content."""


class SubmitterHistoryProvider(ABC):
    """Identity-verification collaborator (KTP, selfie, social, endorsements)."""
    
    @abstractmethod
    def lookup(self, submitter_id: SubmitterId) -> SubmitterHistory:
        """Return the submitter's current verification state and track record."""


@dataclass(frozen=True)
class ValidationConfig:
    classification_timeout_seconds: float = LIMITS.processing.max_classification_seconds
    media_timeout_seconds: float = LIMITS.processing.max_media_processing_seconds
    history_timeout_seconds: float = LIMITS.processing.max_classification_seconds
    max_workers: int = 4


class BoundedCaller:
    """
    Run collaborator calls on a worker pool with a hard wait limit.
    
    The lane thread never waits longer than the timeout. A late call is
    cancelled if it has not started; one already running is abandoned and
    its result discarded.
    """
    
    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="suara-collab"
        )
    
    def call(self, dependency: str, fn: Callable[[], T], timeout_seconds: float) -> T:
        future = self._executor.submit(fn)
        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeout:
            future.cancel()
            raise DependencyUnavailable(Error.create(
                ErrorCode.VALIDATION_TIMEOUT,
                f"{dependency} did not answer within {timeout_seconds}s",
                dependency=dependency,
            ))
        except DependencyUnavailable:
            raise
        except Exception as exc:
            raise DependencyUnavailable(Error.create(
                ErrorCode.DEPENDENCY_UNAVAILABLE,
                f"{dependency} failed: {exc}",
                dependency=dependency,
            )) from exc
    
    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class ValidationGateway:
    """
    Fetch the corroboration sub-score for a submission.
    
    Media-bearing submissions get the media-processing budget; text-only
    ones the classification budget. Returns None when no validator is
    configured; raises DependencyUnavailable on timeout, failure or a
    non-finite answer.
    """
    
    def __init__(
        self,
        validator: Optional[ContentValidator],
        caller: BoundedCaller,
        config: Optional[ValidationConfig] = None
    ):
        self._validator = validator
        self._caller = caller
        self._config = config or ValidationConfig()
    
    @property
    def enabled(self) -> bool:
        return self._validator is not None
    
    def corroboration(self, submission: Submission) -> Optional[float]:
        if self._validator is None:
            return None
        timeout = (
            self._config.media_timeout_seconds if submission.media
            else self._config.classification_timeout_seconds
        )
        validator = self._validator
        score = self._caller.call(
            "content_validation", lambda: validator.classify(submission.content), timeout
        )
        if score is None or not math.isfinite(float(score)):
            raise DependencyUnavailable(Error.create(
                ErrorCode.DEPENDENCY_UNAVAILABLE,
                "content validation returned no usable score",
                dependency="content_validation",
            ))
        return float(score)


__all__ = [
    'ContentValidator', 'SubmitterHistoryProvider', 'ValidationConfig',
    'BoundedCaller', 'ValidationGateway',
]
