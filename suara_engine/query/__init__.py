"""
Query Layer

RESPONSIBILITY: Read-only surfacing of clusters for downstream consumers
ALLOWED INPUTS: IssueCluster snapshots from storage
OUTPUTS: ClusterRecommendation records (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Modify clusters
- Feed anything back into assignment decisions
- Call external collaborators

BOUNDARY ENFORCEMENT:
=====================
- Pure functions over snapshots; ordering is deterministic
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..contracts.base import IssueCategory
from ..contracts.events import IssueCluster


class UrgencyLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


CATEGORY_LABELS: Dict[IssueCategory, str] = {
    IssueCategory.INFRASTRUCTURE: "Infrastruktur",
    IssueCategory.CLEANLINESS: "Kebersihan",
    IssueCategory.LIGHTING: "Penerangan",
    IssueCategory.WATER_DRAINAGE: "Air & Drainase",
    IssueCategory.ENVIRONMENT: "Lingkungan",
    IssueCategory.SAFETY: "Keamanan",
}

SUGGESTED_ACTIONS: Dict[IssueCategory, Tuple[str, ...]] = {
    IssueCategory.INFRASTRUCTURE: (
        "Koordinasi dengan Dinas Pekerjaan Umum",
        "Survey lapangan untuk assessment kerusakan",
        "Alokasi anggaran untuk perbaikan",
        "Jadwalkan perbaikan berdasarkan prioritas",
    ),
    IssueCategory.CLEANLINESS: (
        "Koordinasi dengan Dinas Kebersihan",
        "Pengangkutan sampah dan pembersihan area",
        "Penambahan tempat sampah",
        "Sosialisasi kepada masyarakat",
    ),
    IssueCategory.LIGHTING: (
        "Koordinasi dengan Dinas Perhubungan",
        "Pemeriksaan jaringan lampu jalan",
        "Penggantian lampu yang rusak",
        "Monitoring berkelanjutan",
    ),
    IssueCategory.WATER_DRAINAGE: (
        "Koordinasi dengan Dinas Sumber Daya Air",
        "Normalisasi saluran yang tersumbat",
        "Pemeriksaan jaringan drainase",
        "Kesiapsiagaan banjir",
    ),
    IssueCategory.ENVIRONMENT: (
        "Koordinasi dengan Dinas Lingkungan Hidup",
        "Pembersihan dan penataan area",
        "Sosialisasi kepada masyarakat",
        "Monitoring berkelanjutan",
    ),
    IssueCategory.SAFETY: (
        "Koordinasi dengan Kepolisian setempat",
        "Peningkatan patroli keamanan",
        "Instalasi sistem keamanan",
        "Pembentukan ronda masyarakat",
    ),
}


@dataclass(frozen=True)
class ClusterRecommendation:
    cluster: IssueCluster
    priority: float
    urgency: UrgencyLevel
    display_name: str
    suggested_actions: Tuple[str, ...]


class PriorityRanker:
    """Orders clusters for the review queue. Ranking only."""

    def rank(
        self,
        clusters: Iterable[IssueCluster],
        limit: Optional[int] = None,
        open_only: bool = True
    ) -> List[ClusterRecommendation]:
        """Highest priority first; equal priorities by cluster id."""
        selected = [c for c in clusters if c.is_open or not open_only]
        selected.sort(key=lambda c: (-c.priority, c.cluster_id.value))
        if limit is not None:
            selected = selected[:max(limit, 0)]
        return [self.recommend(c) for c in selected]

    def recommend(self, cluster: IssueCluster) -> ClusterRecommendation:
        return ClusterRecommendation(
            cluster=cluster,
            priority=cluster.priority,
            urgency=self.urgency_level(cluster),
            display_name=self.display_name(cluster),
            suggested_actions=self.suggested_actions(cluster.category),
        )

    @staticmethod
    def urgency_level(cluster: IssueCluster) -> UrgencyLevel:
        score = cluster.priority / 10.0
        if score >= 0.8:
            return UrgencyLevel.CRITICAL
        if score >= 0.6:
            return UrgencyLevel.HIGH
        if score >= 0.4:
            return UrgencyLevel.MEDIUM
        return UrgencyLevel.LOW

    @staticmethod
    def suggested_actions(category: IssueCategory) -> Tuple[str, ...]:
        return SUGGESTED_ACTIONS[category]

    @staticmethod
    def display_name(cluster: IssueCluster) -> str:
        return (
            f"{CATEGORY_LABELS[cluster.category]} - "
            f"{cluster.centroid.latitude:.4f}, {cluster.centroid.longitude:.4f}"
        )


__all__ = [
    'PriorityRanker', 'ClusterRecommendation', 'UrgencyLevel',
    'CATEGORY_LABELS', 'SUGGESTED_ACTIONS',
]
