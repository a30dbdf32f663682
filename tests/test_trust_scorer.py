"""
Trust Scorer Tests
==================

Bonus rules, clamping, inconsistent histories and the registry fallback.
"""

import pytest

from suara_engine.adapters import BoundedCaller, SubmitterHistoryProvider, ValidationConfig
from suara_engine.contracts.base import ErrorCode, SubmitterId, TrustLevel
from suara_engine.contracts.events import SubmitterHistory
from suara_engine.scoring import TrustRegistry, TrustScorer


WARGA = SubmitterId("warga_7")


def history(**fields):
    return SubmitterHistory(submitter_id=WARGA, **fields)


class TestTrustScorer:
    
    def test_unverified_floor(self):
        weight = TrustScorer().recompute(history())
        assert weight.value == 1.0
        assert weight.level == TrustLevel.BASIC
    
    def test_identity_bonuses(self):
        weight = TrustScorer().recompute(
            history(phone_verified=True, ktp_verified=True, selfie_verified=True)
        )
        assert weight.value == pytest.approx(3.5)
        assert weight.level == TrustLevel.VERIFIED
        assert {b.name for b in weight.bonuses} == {"phone", "ktp", "selfie"}
    
    def test_selfie_without_ktp_is_ignored(self):
        weight = TrustScorer().recompute(history(phone_verified=True, selfie_verified=True))
        assert weight.value == pytest.approx(1.5)
        assert "selfie" in weight.ignored_bonuses
    
    def test_clamped_at_maximum(self):
        weight = TrustScorer().recompute(history(
            phone_verified=True, ktp_verified=True, selfie_verified=True,
            social_links=3, endorsements=20,
            total_submissions=100, confirmed_submissions=100,
        ))
        assert weight.value == 5.0
        assert weight.level == TrustLevel.PREMIUM
    
    def test_endorsements_capped(self):
        weight = TrustScorer().recompute(history(endorsements=50))
        assert weight.value == pytest.approx(1.5)
    
    def test_inconsistent_history_drops_accuracy_bonus_only(self):
        weight = TrustScorer().recompute(history(
            phone_verified=True, total_submissions=5, confirmed_submissions=10
        ))
        assert "accuracy" in weight.ignored_bonuses
        # phone 0.5 + history min(10 * 0.01, 0.3)
        assert weight.value == pytest.approx(1.6)
    
    def test_accuracy_needs_enough_reports(self):
        few = TrustScorer().recompute(history(total_submissions=4, confirmed_submissions=4))
        many = TrustScorer().recompute(history(total_submissions=5, confirmed_submissions=5))
        assert all(b.name != "accuracy" for b in few.bonuses)
        assert any(b.name == "accuracy" for b in many.bonuses)
    
    def test_idempotent(self):
        scorer = TrustScorer()
        record = history(phone_verified=True, endorsements=3, total_submissions=8,
                         confirmed_submissions=6)
        assert scorer.recompute(record) == scorer.recompute(record)


class StaticProvider(SubmitterHistoryProvider):
    def __init__(self, record):
        self.record = record
    
    def lookup(self, submitter_id):
        return self.record


class BrokenProvider(SubmitterHistoryProvider):
    def lookup(self, submitter_id):
        raise ConnectionError("verification service down")


class TestTrustRegistry:
    
    def setup_method(self):
        self.caller = BoundedCaller(max_workers=2)
        self.registry = TrustRegistry(TrustScorer(), self.caller, ValidationConfig())
    
    def teardown_method(self):
        self.caller.shutdown()
    
    def test_refresh_stores_weight(self):
        weight, fault = self.registry.refresh(
            WARGA, StaticProvider(history(phone_verified=True, ktp_verified=True))
        )
        assert fault is None
        assert weight.value == pytest.approx(3.0)
        assert self.registry.weight_of(WARGA) == weight
    
    def test_failed_lookup_keeps_last_known(self):
        known, _ = self.registry.refresh(WARGA, StaticProvider(history(ktp_verified=True)))
        weight, fault = self.registry.refresh(WARGA, BrokenProvider())
        
        assert fault is not None
        assert fault.code == ErrorCode.DEPENDENCY_UNAVAILABLE
        assert weight == known
    
    def test_failed_lookup_for_unknown_submitter_uses_floor(self):
        weight, fault = self.registry.refresh(SubmitterId("baru"), BrokenProvider())
        assert fault is not None
        assert weight.value == 1.0
