"""Per-lane serialization for assignment decisions."""

from __future__ import annotations
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, Iterator
import threading

from ..geo import LaneKey


class LaneLocks:
    """
    One lock per (category, geocell) lane.

    Decisions in the same lane run one at a time; different lanes proceed
    in parallel. Lane locks are created on first use and never removed.
    """

    def __init__(self):
        self._locks: Dict[LaneKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, lane: LaneKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(lane)
            if lock is None:
                lock = threading.Lock()
                self._locks[lane] = lock
            return lock

    @contextmanager
    def hold(self, lane: LaneKey) -> Iterator[None]:
        lock = self.lock_for(lane)
        with lock:
            yield

    @contextmanager
    def hold_many(self, lanes: Iterable[LaneKey]) -> Iterator[None]:
        """Hold several lanes at once, always acquired in the same order."""
        ordered = sorted(set(lanes), key=lambda lane: (lane[0].value, lane[1]))
        with ExitStack() as stack:
            for lane in ordered:
                stack.enter_context(self.lock_for(lane))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
