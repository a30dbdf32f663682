"""
Geospatial Layer

RESPONSIBILITY: Distances, geocell bucketing, radius queries over active clusters
ALLOWED INPUTS: GeoPoint, IssueCluster snapshots
OUTPUTS: Distances in meters, ordered tuples of IssueCluster snapshots

WHAT THIS LAYER MUST NOT DO:
============================
- Decide whether a submission belongs to a cluster
- Compare texts
- Mutate cluster snapshots (it only indexes them)

BOUNDARY ENFORCEMENT:
=====================
- Clusters are bucketed by (category, geocell); categories never mix
- Queries read one published snapshot; writers publish a new one
- Query results are finite tuples, never live cursors
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
import math
import threading

import numpy as np

from ..contracts.base import ClusterId, GeoPoint, IssueCategory, ClusterStatus
from ..contracts.events import IssueCluster
from ..contracts.limits import EARTH_RADIUS_METERS

METERS_PER_DEGREE_LAT = 111320.0

GeoCell = Tuple[int, int]
LaneKey = Tuple[IssueCategory, GeoCell]


# =============================================================================
# DISTANCE
# =============================================================================

def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def haversine_many(
    origin: GeoPoint,
    latitudes: Sequence[float],
    longitudes: Sequence[float]
) -> np.ndarray:
    """Vectorized distance from origin to each (lat, lon) pair."""
    lat1 = np.radians(origin.latitude)
    lon1 = np.radians(origin.longitude)
    lat2 = np.radians(np.asarray(latitudes, dtype=float))
    lon2 = np.radians(np.asarray(longitudes, dtype=float))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.minimum(1.0, np.sqrt(h)))


# =============================================================================
# GEOCELL GRID
# =============================================================================

@dataclass(frozen=True)
class GeoIndexConfig:
    """Grid configuration. 0.01 degrees is roughly 1.1 km at the equator."""
    cell_size_degrees: float = 0.01
    
    def __post_init__(self):
        if self.cell_size_degrees <= 0:
            raise ValueError("cell_size_degrees must be positive")


class GeoGrid:
    """Maps points onto fixed-size lat/lon cells."""
    
    def __init__(self, cell_size_degrees: float = 0.01):
        self._cell_size = cell_size_degrees
    
    @property
    def cell_size_degrees(self) -> float:
        return self._cell_size
    
    def cell_of(self, point: GeoPoint) -> GeoCell:
        return (
            math.floor(point.latitude / self._cell_size),
            math.floor(point.longitude / self._cell_size),
        )
    
    def lane_of(self, category: IssueCategory, point: GeoPoint) -> LaneKey:
        return (category, self.cell_of(point))
    
    def cells_within(self, point: GeoPoint, radius_meters: float) -> List[GeoCell]:
        """Every cell that can hold a point within radius_meters of point."""
        lat_span = radius_meters / METERS_PER_DEGREE_LAT
        cos_lat = max(math.cos(math.radians(point.latitude)), 1e-6)
        lon_span = radius_meters / (METERS_PER_DEGREE_LAT * cos_lat)
        
        row_min = math.floor((point.latitude - lat_span) / self._cell_size)
        row_max = math.floor((point.latitude + lat_span) / self._cell_size)
        col_min = math.floor((point.longitude - lon_span) / self._cell_size)
        col_max = math.floor((point.longitude + lon_span) / self._cell_size)
        
        return [
            (row, col)
            for row in range(row_min, row_max + 1)
            for col in range(col_min, col_max + 1)
        ]


# =============================================================================
# GEO INDEX (copy-on-write)
# =============================================================================

class GeoIndex:
    """
    Spatial index over OPEN clusters keyed by (category, geocell).
    
    Writers serialize on a lock and publish a fresh outer mapping; readers
    take the published mapping once, so a query never observes a
    half-applied update. Query cost is bounded by the cells covering the
    radius plus the clusters found in them.
    """
    
    def __init__(self, config: Optional[GeoIndexConfig] = None):
        self._config = config or GeoIndexConfig()
        self._grid = GeoGrid(self._config.cell_size_degrees)
        self._write_lock = threading.Lock()
        self._published: Mapping[LaneKey, Mapping[str, IssueCluster]] = {}
        self._placement: Dict[str, LaneKey] = {}
    
    @property
    def grid(self) -> GeoGrid:
        return self._grid
    
    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    
    def insert(self, cluster: IssueCluster) -> None:
        """Index a new open cluster."""
        if cluster.status != ClusterStatus.OPEN:
            raise ValueError("only open clusters can be indexed")
        with self._write_lock:
            if cluster.cluster_id.value in self._placement:
                raise ValueError(f"cluster {cluster.cluster_id.value} already indexed")
            self._publish(cluster.cluster_id.value, cluster)
    
    def update(self, cluster: IssueCluster) -> None:
        """
        Re-index a cluster after its centroid or radius changed.
        
        An update older than the indexed snapshot is ignored, so writers
        finishing out of order cannot roll the index back.
        """
        with self._write_lock:
            indexed = self._indexed(cluster.cluster_id.value)
            if indexed is not None and indexed.version > cluster.version:
                return
            if cluster.status != ClusterStatus.OPEN:
                self._publish(cluster.cluster_id.value, None)
            else:
                self._publish(cluster.cluster_id.value, cluster)
    
    def remove(self, cluster_id: ClusterId) -> bool:
        """Drop a closed or merged cluster. Returns False if it was not indexed."""
        with self._write_lock:
            if cluster_id.value not in self._placement:
                return False
            self._publish(cluster_id.value, None)
            return True
    
    def _indexed(self, cluster_key: str) -> Optional[IssueCluster]:
        lane = self._placement.get(cluster_key)
        if lane is None:
            return None
        return self._published.get(lane, {}).get(cluster_key)
    
    def _publish(self, cluster_key: str, cluster: Optional[IssueCluster]) -> None:
        snapshot = dict(self._published)
        
        old_lane = self._placement.pop(cluster_key, None)
        if old_lane is not None:
            bucket = dict(snapshot.get(old_lane, {}))
            bucket.pop(cluster_key, None)
            if bucket:
                snapshot[old_lane] = bucket
            else:
                snapshot.pop(old_lane, None)
        
        if cluster is not None:
            new_lane = self._grid.lane_of(cluster.category, cluster.centroid)
            bucket = dict(snapshot.get(new_lane, {}))
            bucket[cluster_key] = cluster
            snapshot[new_lane] = bucket
            self._placement[cluster_key] = new_lane
        
        self._published = snapshot
    
    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    
    def query(
        self,
        point: GeoPoint,
        radius_meters: float,
        category: IssueCategory
    ) -> Tuple[Tuple[IssueCluster, float], ...]:
        """
        Open clusters of `category` whose centroid is within radius_meters.
        
        Returns (cluster, distance) pairs, nearest first; equal distances
        are ordered by cluster id.
        """
        snapshot = self._published
        found: List[IssueCluster] = []
        for cell in self._grid.cells_within(point, radius_meters):
            bucket = snapshot.get((category, cell))
            if bucket:
                found.extend(bucket.values())
        
        if not found:
            return ()
        
        distances = haversine_many(
            point,
            [c.centroid.latitude for c in found],
            [c.centroid.longitude for c in found],
        )
        hits = [
            (cluster, float(distance))
            for cluster, distance in zip(found, distances)
            if distance <= radius_meters
        ]
        hits.sort(key=lambda pair: (pair[1], pair[0].cluster_id.value))
        return tuple(hits)
    
    def get(self, cluster_id: ClusterId) -> Optional[IssueCluster]:
        snapshot = self._published
        lane = self._placement.get(cluster_id.value)
        if lane is None:
            return None
        return snapshot.get(lane, {}).get(cluster_id.value)
    
    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._published.values())
    
    def __iter__(self) -> Iterator[IssueCluster]:
        snapshot = self._published
        for bucket in snapshot.values():
            yield from bucket.values()


__all__ = [
    'GeoCell', 'LaneKey', 'GeoGrid', 'GeoIndex', 'GeoIndexConfig',
    'haversine_meters', 'haversine_many', 'METERS_PER_DEGREE_LAT',
]
