"""
Logical Clock Tests
===================

Manual clocks drive every horizon the engine measures.
"""

import pytest
from datetime import datetime, timedelta, timezone

from suara_engine.temporal import LogicalClock


T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


class TestManualClock:
    
    def test_holds_until_advanced(self):
        clock = LogicalClock.manual(T0)
        assert clock.now() == T0
        assert clock.now() == T0
        assert clock.advance(hours=72) == T0 + timedelta(hours=72)
        assert clock.now() == T0 + timedelta(hours=72)
    
    def test_naive_start_is_utc(self):
        clock = LogicalClock.manual(datetime(2026, 3, 2, 8, 0))
        assert clock.now() == T0
    
    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            LogicalClock.manual(T0).advance(seconds=-1)


class TestLiveClock:
    
    def test_is_utc(self):
        assert LogicalClock.live().now().tzinfo is not None
    
    def test_cannot_advance(self):
        with pytest.raises(RuntimeError):
            LogicalClock.live().advance(seconds=1)
    
    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            LogicalClock("frozen")
        with pytest.raises(ValueError):
            LogicalClock("replay")
