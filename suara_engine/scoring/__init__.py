"""
Scoring Layer

RESPONSIBILITY: Quality score per submission, trust weight per submitter
ALLOWED INPUTS: Submission, SubmitterHistory, optional corroboration sub-score
OUTPUTS: QualityScoreBreakdown, TrustWeight (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Call external collaborators (the engine fetches corroboration first)
- Hold shared mutable state in the scorers (they run with unbounded parallelism;
  TrustRegistry is the single lock-guarded store of computed weights)
- Make clustering decisions
"""

from .quality import QualityScorer, QualityScorerConfig, quality_grade
from .trust import TrustScorer, TrustScorerConfig, trust_level
from .registry import TrustRegistry

__all__ = [
    'QualityScorer', 'QualityScorerConfig', 'quality_grade',
    'TrustScorer', 'TrustScorerConfig', 'trust_level', 'TrustRegistry',
]
