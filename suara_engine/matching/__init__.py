"""
Similarity Layer

RESPONSIBILITY: Bounded lexical similarity between report texts
ALLOWED INPUTS: Report texts, categories, cluster snapshots
OUTPUTS: Scores in [0, 1], ordered ClusterCandidate tuples

WHAT THIS LAYER MUST NOT DO:
============================
- Use a trained or semantic model (scores are token-set Jaccard)
- Look at geography beyond the distance it is handed
- Mutate clusters

Duplicate reports of the same physical issue share vocabulary even across
phrasing variance ("jalan berlubang di depan no. 5"), so a normalized
token-set overlap with stop words removed is enough to separate them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple
import re

from ..contracts.base import IssueCategory
from ..contracts.events import IssueCluster, ClusterCandidate
from ..contracts.limits import LIMITS


INDONESIAN_STOP_WORDS: FrozenSet[str] = frozenset({
    'yang', 'dan', 'di', 'ke', 'dari', 'untuk', 'dengan', 'ini', 'itu', 'ada',
    'adalah', 'atau', 'juga', 'akan', 'pada', 'oleh', 'dalam', 'bisa',
    'dapat', 'sudah', 'masih', 'harus', 'kalau', 'jika', 'tapi', 'tetapi',
    'sangat', 'sekali', 'saya', 'kami', 'kita', 'nya', 'pak', 'bu', 'mohon',
    'tolong',
})


@dataclass(frozen=True)
class SimilarityConfig:
    threshold: float = LIMITS.clustering.similarity_threshold
    stop_words: FrozenSet[str] = field(default=INDONESIAN_STOP_WORDS)


class SimilarityMatcher:
    """
    Deterministic, symmetric token-set Jaccard similarity.
    
    Texts that reduce to no tokens after stop-word removal never match:
    an empty report carries no evidence of being the same issue.
    """
    
    _TOKEN = re.compile(r'\b\w+\b')
    
    def __init__(self, config: Optional[SimilarityConfig] = None):
        self._config = config or SimilarityConfig()
    
    @property
    def threshold(self) -> float:
        return self._config.threshold
    
    def tokenize(self, text: str) -> FrozenSet[str]:
        """Lowercase word tokens with stop words removed."""
        tokens = self._TOKEN.findall(text.lower())
        return frozenset(t for t in tokens if t not in self._config.stop_words)
    
    def similarity(self, text_a: str, text_b: str) -> float:
        return self.token_similarity(self.tokenize(text_a), self.tokenize(text_b))
    
    def token_similarity(self, tokens_a: FrozenSet[str], tokens_b: FrozenSet[str]) -> float:
        if not tokens_a or not tokens_b:
            return 0.0
        intersection = len(tokens_a & tokens_b)
        union = len(tokens_a | tokens_b)
        return intersection / union
    
    def category_similarity(
        self,
        text_a: str,
        category_a: IssueCategory,
        text_b: str,
        category_b: IssueCategory
    ) -> float:
        """Text similarity, forced to 0 across categories."""
        if category_a != category_b:
            return 0.0
        return self.similarity(text_a, text_b)
    
    def is_match(self, score: float) -> bool:
        return score >= self._config.threshold
    
    def rank_candidates(
        self,
        content: str,
        category: IssueCategory,
        nearby: Iterable[Tuple[IssueCluster, float]]
    ) -> List[ClusterCandidate]:
        """
        Score each (cluster, distance) against its representative text.
        
        Returns candidates at or above threshold ordered by similarity
        (desc), then distance (asc), then cluster id (asc).
        """
        tokens = self.tokenize(content)
        candidates: List[ClusterCandidate] = []
        for cluster, distance in nearby:
            if cluster.category != category:
                continue
            score = self.token_similarity(
                tokens, self.tokenize(cluster.representative().content)
            )
            if self.is_match(score):
                candidates.append(ClusterCandidate(
                    cluster=cluster,
                    distance_meters=distance,
                    similarity=score,
                ))
        
        candidates.sort(key=lambda c: (-c.similarity, c.distance_meters, c.cluster.cluster_id.value))
        return candidates


__all__ = [
    'SimilarityMatcher', 'SimilarityConfig', 'INDONESIAN_STOP_WORDS',
]
