"""
Logical Clock
=============

Injectable clock so that every "now" the engine reads (cluster timestamps,
pending-pool ages, audit entries) can be driven deterministically.

MODES:
======
1. LIVE:   system UTC time
2. MANUAL: a fixed instant moved forward explicitly with advance()
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading


class LogicalClock:
    
    def __init__(self, mode: str = "live", start: Optional[datetime] = None):
        if mode not in ("live", "manual"):
            raise ValueError(f"unknown clock mode: {mode}")
        self._mode = mode
        self._lock = threading.Lock()
        self._current = _utc(start) if start else datetime.now(timezone.utc)
    
    @classmethod
    def live(cls) -> LogicalClock:
        return cls("live")
    
    @classmethod
    def manual(cls, start: datetime) -> LogicalClock:
        return cls("manual", start=start)
    
    def now(self) -> datetime:
        if self._mode == "live":
            return datetime.now(timezone.utc)
        with self._lock:
            return self._current
    
    def advance(self, seconds: float = 0.0, **delta: float) -> datetime:
        """Move a MANUAL clock forward. Accepts timedelta keywords."""
        if self._mode != "manual":
            raise RuntimeError("only a manual clock can be advanced")
        step = timedelta(seconds=seconds, **delta)
        if step < timedelta(0):
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._current = self._current + step
            return self._current
    
    @property
    def mode(self) -> str:
        return self._mode
    
    def __repr__(self) -> str:
        if self._mode == "live":
            return "LogicalClock(LIVE)"
        return f"LogicalClock(MANUAL, at={self._current.isoformat()})"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
