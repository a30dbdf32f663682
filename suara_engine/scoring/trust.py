"""
Trust Scorer
============

Per-submitter trust weight from verification state and track record.

The scorer runs on a schedule or when verification state changes, never
per submission. Bonuses are individually capped and the total is clamped
to [1.0, 5.0]. A bonus whose prerequisite is missing (a selfie match with
no verified ID document) is ignored and reported, and the rest of the
computation proceeds.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..contracts.base import TrustLevel, Timestamp
from ..contracts.events import SubmitterHistory, TrustBonus, TrustWeight
from ..contracts.limits import LIMITS


@dataclass(frozen=True)
class TrustScorerConfig:
    # Accuracy bonus is only earned after this many reports
    min_submissions_for_accuracy: int = 5
    history_bonus_per_confirmed: float = 0.01


def trust_level(weight: float) -> TrustLevel:
    if weight >= LIMITS.trust.premium_threshold:
        return TrustLevel.PREMIUM
    if weight >= LIMITS.trust.verified_threshold:
        return TrustLevel.VERIFIED
    return TrustLevel.BASIC


class TrustScorer:
    """
    Recompute a TrustWeight from a SubmitterHistory.
    
    Idempotent: the same history always yields the same weight and
    bonus breakdown.
    """
    
    def __init__(self, config: Optional[TrustScorerConfig] = None):
        self._config = config or TrustScorerConfig()
    
    def recompute(
        self,
        history: SubmitterHistory,
        computed_at: Optional[Timestamp] = None
    ) -> TrustWeight:
        bonuses, ignored = self._collect_bonuses(history)
        
        limits = LIMITS.trust
        raw = limits.minimum + sum(b.amount for b in bonuses)
        value = round(max(limits.minimum, min(limits.maximum, raw)), 4)
        
        return TrustWeight(
            submitter_id=history.submitter_id,
            value=value,
            level=trust_level(value),
            bonuses=tuple(bonuses),
            ignored_bonuses=tuple(ignored),
            computed_at=computed_at,
        )
    
    def floor(self, history: SubmitterHistory) -> TrustWeight:
        """Weight of an unverified submitter with no history."""
        return TrustWeight(
            submitter_id=history.submitter_id,
            value=LIMITS.trust.minimum,
            level=trust_level(LIMITS.trust.minimum),
        )
    
    def _collect_bonuses(
        self,
        history: SubmitterHistory
    ) -> Tuple[List[TrustBonus], List[str]]:
        limits = LIMITS.trust
        bonuses: List[TrustBonus] = []
        ignored: List[str] = []
        
        if history.phone_verified:
            bonuses.append(TrustBonus("phone", limits.phone_bonus))
        
        if history.ktp_verified:
            bonuses.append(TrustBonus("ktp", limits.ktp_bonus))
        
        if history.selfie_verified:
            if history.ktp_verified:
                bonuses.append(TrustBonus("selfie", limits.selfie_bonus))
            else:
                ignored.append("selfie")
        
        if history.social_links > 0:
            bonuses.append(TrustBonus("social", limits.social_bonus))
        
        if history.endorsements > 0:
            amount = min(
                history.endorsements * limits.endorsement_bonus,
                limits.endorsement_bonus_max
            )
            bonuses.append(TrustBonus("endorsements", round(amount, 4)))
        
        accuracy = self._accuracy_bonus(history, ignored)
        if accuracy > 0:
            bonuses.append(TrustBonus("accuracy", accuracy))
        
        if history.confirmed_submissions > 0:
            amount = min(
                history.confirmed_submissions * self._config.history_bonus_per_confirmed,
                limits.history_bonus_max
            )
            bonuses.append(TrustBonus("history", round(amount, 4)))
        
        return bonuses, ignored
    
    def _accuracy_bonus(self, history: SubmitterHistory, ignored: List[str]) -> float:
        if history.total_submissions < self._config.min_submissions_for_accuracy:
            return 0.0
        if history.confirmed_submissions > history.total_submissions:
            # More confirmations than reports: inconsistent record
            ignored.append("accuracy")
            return 0.0
        rate = history.confirmed_submissions / history.total_submissions
        return round(rate * LIMITS.trust.accuracy_bonus_max, 4)
