"""Time sources for the engine."""

from .clock import LogicalClock

__all__ = ['LogicalClock']
