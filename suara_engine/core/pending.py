"""
Deferred Pool
=============

Holds submissions that could neither join a cluster nor found one yet,
keyed by (category, geocell) lane.

Entries leave the pool in exactly three ways:
- claimed as members of a new or existing cluster
- evicted when their lane overflows (oldest first)
- expired after the horizon
Evicted and expired entries are handed back to the caller so they can be
surfaced to moderation. Nothing is silently dropped.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import threading

from ..contracts.base import GeoPoint, IssueCategory, SubmissionId, Timestamp
from ..contracts.events import PendingEntry
from ..geo import GeoGrid, LaneKey, haversine_meters


@dataclass(frozen=True)
class DeferredPoolConfig:
    max_entries_per_lane: int = 200
    horizon_seconds: float = 72 * 3600.0

    def __post_init__(self):
        if self.max_entries_per_lane < 1:
            raise ValueError("max_entries_per_lane must be at least 1")
        if self.horizon_seconds <= 0:
            raise ValueError("horizon_seconds must be positive")


class DeferredPool:
    """Lane-keyed store of PendingEntry records."""

    def __init__(self, grid: GeoGrid, config: Optional[DeferredPoolConfig] = None):
        self._grid = grid
        self._config = config or DeferredPoolConfig()
        self._lanes: Dict[LaneKey, Dict[str, PendingEntry]] = {}
        self._lane_of: Dict[str, LaneKey] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> DeferredPoolConfig:
        return self._config

    def lane_for(self, entry: PendingEntry) -> LaneKey:
        return self._grid.lane_of(entry.submission.category, entry.submission.location)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(self, entry: PendingEntry) -> Optional[PendingEntry]:
        """
        Defer a submission.

        Returns the entry evicted to make room, if the lane was full.
        """
        key = entry.submission.submission_id.value
        lane = self.lane_for(entry)
        with self._lock:
            if key in self._lane_of:
                raise ValueError(f"submission {key} is already deferred")
            bucket = self._lanes.setdefault(lane, {})
            evicted = None
            if len(bucket) >= self._config.max_entries_per_lane:
                evicted = min(bucket.values(), key=_age_order)
                self._drop(evicted)
            bucket[key] = entry
            self._lane_of[key] = lane
        return evicted

    def claim(self, submission_ids: Iterable[SubmissionId]) -> List[PendingEntry]:
        """
        Atomically take entries out of the pool.

        All-or-nothing: if any id is no longer pending (another lane claimed
        it first) nothing is taken and an empty list is returned.
        """
        keys = [s.value for s in submission_ids]
        with self._lock:
            if any(k not in self._lane_of for k in keys):
                return []
            claimed = [self._lanes[self._lane_of[k]][k] for k in keys]
            for entry in claimed:
                self._drop(entry)
        return claimed

    def restore(self, entries: Sequence[PendingEntry]) -> None:
        """Put back entries claimed for an operation that was aborted."""
        with self._lock:
            for entry in entries:
                key = entry.submission.submission_id.value
                if key in self._lane_of:
                    continue
                lane = self.lane_for(entry)
                self._lanes.setdefault(lane, {})[key] = entry
                self._lane_of[key] = lane

    def expire(self, now: Timestamp, lane: Optional[LaneKey] = None) -> List[PendingEntry]:
        """Remove and return entries deferred longer than the horizon."""
        with self._lock:
            buckets = [self._lanes.get(lane, {})] if lane is not None else list(self._lanes.values())
            aged = [
                entry
                for bucket in buckets
                for entry in bucket.values()
                if now.seconds_since(entry.deferred_at) > self._config.horizon_seconds
            ]
            for entry in aged:
                self._drop(entry)
        aged.sort(key=_age_order)
        return aged

    def _drop(self, entry: PendingEntry) -> None:
        key = entry.submission.submission_id.value
        lane = self._lane_of.pop(key)
        bucket = self._lanes[lane]
        del bucket[key]
        if not bucket:
            del self._lanes[lane]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def nearby(
        self,
        point: GeoPoint,
        radius_meters: float,
        category: IssueCategory
    ) -> List[Tuple[PendingEntry, float]]:
        """Pending entries of `category` within radius_meters, nearest first."""
        cells = self._grid.cells_within(point, radius_meters)
        with self._lock:
            found = [
                entry
                for cell in cells
                for entry in self._lanes.get((category, cell), {}).values()
            ]
        hits = []
        for entry in found:
            distance = haversine_meters(point, entry.submission.location)
            if distance <= radius_meters:
                hits.append((entry, distance))
        hits.sort(key=lambda pair: (pair[1], pair[0].submission.submission_id.value))
        return hits

    def entries(self, lane: Optional[LaneKey] = None) -> List[PendingEntry]:
        with self._lock:
            if lane is not None:
                found = list(self._lanes.get(lane, {}).values())
            else:
                found = [e for bucket in self._lanes.values() for e in bucket.values()]
        found.sort(key=_age_order)
        return found

    def lanes(self) -> List[LaneKey]:
        with self._lock:
            return sorted(self._lanes.keys(), key=lambda lane: (lane[0].value, lane[1]))

    def __contains__(self, submission_id: SubmissionId) -> bool:
        with self._lock:
            return submission_id.value in self._lane_of

    def __len__(self) -> int:
        with self._lock:
            return len(self._lane_of)


def _age_order(entry: PendingEntry):
    return (entry.deferred_at.value, entry.submission.submission_id.value)
