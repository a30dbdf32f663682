"""
Cluster Storage Layer

RESPONSIBILITY: Hold the authoritative cluster snapshots and their history
ALLOWED INPUTS: IssueCluster snapshots produced by the aggregator
OUTPUTS: Latest snapshots, version history, submission -> cluster lookups

WHAT THIS LAYER MUST NOT DO:
============================
- Compute geometry or priority
- Decide assignments
- Overwrite history (every committed version is kept, append-only)

BOUNDARY ENFORCEMENT:
=====================
- The store is an explicit object owned by the engine; there is no
  process-wide registry
- A commit applies every snapshot in it or none of them
- Commits check the expected version so a stale read cannot overwrite a
  newer snapshot
"""

from __future__ import annotations
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple
import threading

from ..contracts.base import (
    ClusterId, ClusterStatus, EngineFault, Error, ErrorCode, SubmissionId,
    InvariantViolation
)
from ..contracts.events import IssueCluster


class ConcurrentUpdate(EngineFault):
    """The snapshot being replaced changed since it was read. Re-query and retry."""


# =============================================================================
# STORAGE INTERFACE (Dependency Inversion)
# =============================================================================

class ClusterStore:
    """
    Abstract cluster store.
    
    The persistence collaborator can provide a database-backed
    implementation with the same versioned semantics.
    """
    
    def get(self, cluster_id: ClusterId) -> Optional[IssueCluster]:
        raise NotImplementedError
    
    def history(self, cluster_id: ClusterId) -> List[IssueCluster]:
        raise NotImplementedError
    
    def commit(self, changes: Sequence[Tuple[IssueCluster, Optional[int]]]) -> None:
        """
        Atomically write snapshots.
        
        Each change is (new snapshot, expected current version); an
        expected version of None means the cluster must not exist yet.
        """
        raise NotImplementedError
    
    def cluster_of(self, submission_id: SubmissionId) -> Optional[ClusterId]:
        raise NotImplementedError
    
    def clusters(self, status: Optional[ClusterStatus] = None) -> List[IssueCluster]:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY STORE (Reference Implementation)
# =============================================================================

class InMemoryClusterStore(ClusterStore):
    """
    In-memory, thread-safe cluster store.
    
    Suitable for tests and for deployments that hand snapshots to an
    external persistence collaborator after each commit.
    """
    
    def __init__(self):
        self._lock = threading.RLock()
        self._latest: Dict[str, IssueCluster] = {}
        self._history: Dict[str, List[IssueCluster]] = {}
        self._assignments: Dict[str, ClusterId] = {}
    
    def get(self, cluster_id: ClusterId) -> Optional[IssueCluster]:
        with self._lock:
            return self._latest.get(cluster_id.value)
    
    def history(self, cluster_id: ClusterId) -> List[IssueCluster]:
        with self._lock:
            return list(self._history.get(cluster_id.value, []))
    
    def cluster_of(self, submission_id: SubmissionId) -> Optional[ClusterId]:
        with self._lock:
            return self._assignments.get(submission_id.value)
    
    def clusters(self, status: Optional[ClusterStatus] = None) -> List[IssueCluster]:
        with self._lock:
            found = list(self._latest.values())
        if status is not None:
            found = [c for c in found if c.status == status]
        found.sort(key=lambda c: c.cluster_id.value)
        return found
    
    def commit(self, changes: Sequence[Tuple[IssueCluster, Optional[int]]]) -> None:
        with self._lock:
            retiring = {
                c.cluster_id.value for c, _ in changes if c.status == ClusterStatus.MERGED
            }
            for cluster, expected_version in changes:
                self._validate(cluster, expected_version, retiring)
            
            for cluster, _ in changes:
                key = cluster.cluster_id.value
                self._latest[key] = cluster
                self._history.setdefault(key, []).append(cluster)
            
            # Assignment pointers follow the clusters that still hold members
            for cluster, _ in changes:
                if cluster.status == ClusterStatus.MERGED:
                    continue
                for member_id in cluster.member_ids:
                    self._assignments[member_id.value] = cluster.cluster_id
    
    def _validate(
        self,
        cluster: IssueCluster,
        expected_version: Optional[int],
        retiring: Set[str]
    ) -> None:
        key = cluster.cluster_id.value
        current = self._latest.get(key)
        
        if expected_version is None:
            if current is not None:
                raise ConcurrentUpdate(Error.create(
                    ErrorCode.VERSION_CONFLICT, "cluster already exists", cluster=key
                ))
        else:
            if current is None:
                raise InvariantViolation(Error.create(
                    ErrorCode.CLUSTER_NOT_FOUND, "cluster to update does not exist",
                    cluster=key
                ))
            if current.version != expected_version:
                raise ConcurrentUpdate(Error.create(
                    ErrorCode.VERSION_CONFLICT, "cluster changed since it was read",
                    cluster=key, expected=expected_version, actual=current.version
                ))
            if cluster.version <= current.version:
                raise InvariantViolation(Error.create(
                    ErrorCode.INVARIANT_VIOLATION, "snapshot version must increase",
                    cluster=key
                ))
            if cluster.radius_meters < current.radius_meters:
                raise InvariantViolation(Error.create(
                    ErrorCode.RADIUS_SHRINK, "cluster radius may not shrink",
                    cluster=key, previous=current.radius_meters,
                    proposed=cluster.radius_meters
                ))
        
        if cluster.status != ClusterStatus.MERGED:
            for member_id in cluster.member_ids:
                owner = self._assignments.get(member_id.value)
                if owner is not None and owner != cluster.cluster_id and not self._is_retiring(owner, retiring):
                    raise InvariantViolation(Error.create(
                        ErrorCode.ALREADY_ASSIGNED, "submission already belongs to another cluster",
                        submission=member_id.value, owner=owner.value
                    ))
    
    def _is_retiring(self, owner: ClusterId, retiring: Set[str]) -> bool:
        # Members of a cluster being absorbed legitimately change owner
        if owner.value in retiring:
            return True
        current = self._latest.get(owner.value)
        return current is not None and current.status == ClusterStatus.MERGED
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._latest)
    
    def __iter__(self) -> Iterator[IssueCluster]:
        return iter(self.clusters())


__all__ = ['ClusterStore', 'InMemoryClusterStore', 'ConcurrentUpdate']
