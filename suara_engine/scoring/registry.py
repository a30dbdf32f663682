"""
Trust Registry
==============

Holds the latest TrustWeight per submitter and refreshes it from the
identity-verification collaborator on demand (schedule or verification
change). A failed lookup keeps the last known weight, or the 1.0 floor
for a submitter never scored before.
"""

from __future__ import annotations
from typing import Dict, Optional, Tuple
import threading

from ..adapters import BoundedCaller, SubmitterHistoryProvider, ValidationConfig
from ..contracts.base import DependencyUnavailable, SubmitterId, Timestamp
from ..contracts.events import SubmitterHistory, TrustWeight
from .trust import TrustScorer


class TrustRegistry:
    
    def __init__(
        self,
        scorer: TrustScorer,
        caller: BoundedCaller,
        config: Optional[ValidationConfig] = None
    ):
        self._scorer = scorer
        self._caller = caller
        self._config = config or ValidationConfig()
        self._weights: Dict[str, TrustWeight] = {}
        self._lock = threading.Lock()
    
    def weight_of(self, submitter_id: SubmitterId) -> TrustWeight:
        with self._lock:
            known = self._weights.get(submitter_id.value)
        if known is not None:
            return known
        return self._scorer.floor(SubmitterHistory(submitter_id=submitter_id))
    
    def apply(self, history: SubmitterHistory, now: Optional[Timestamp] = None) -> TrustWeight:
        """Recompute from a history the collaborator pushed to us."""
        weight = self._scorer.recompute(history, computed_at=now)
        with self._lock:
            self._weights[history.submitter_id.value] = weight
        return weight
    
    def refresh(
        self,
        submitter_id: SubmitterId,
        provider: SubmitterHistoryProvider,
        now: Optional[Timestamp] = None
    ) -> Tuple[TrustWeight, Optional[DependencyUnavailable]]:
        """
        Pull the history and recompute.
        
        Returns (weight, fault); fault is set when the lookup failed and the
        returned weight is the degraded fallback.
        """
        try:
            history = self._caller.call(
                "submitter_history",
                lambda: provider.lookup(submitter_id),
                self._config.history_timeout_seconds,
            )
        except DependencyUnavailable as fault:
            return self.weight_of(submitter_id), fault
        return self.apply(history, now), None
