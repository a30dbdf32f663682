"""
Suara Civic-Issue Engine

Scores civic-issue reports and groups reports about the same real-world
problem into clusters. Each layer communicates only through explicit
contracts, never through shared mutable state.

LAYER STRUCTURE:
================

1. INTAKE LAYER (intake/)
   - Responsibility: Reject reports that must never reach clustering
   - Allowed inputs: Normalized Submission records
   - Outputs: Result with INPUT_REJECTED error data
   - MUST NOT: Score, cluster, call collaborators

2. SCORING LAYER (scoring/)
   - Responsibility: Quality score per report, trust weight per submitter
   - Allowed inputs: Submission, SubmitterHistory, corroboration sub-score
   - Outputs: QualityScoreBreakdown, TrustWeight (immutable)
   - MUST NOT: Hold shared state in the scorers, make clustering decisions

3. MATCHING & GEO LAYERS (matching/, geo/)
   - Responsibility: Text similarity, spatial lookup of open clusters
   - Allowed inputs: Report text, points, cluster snapshots
   - Outputs: Similarity scores, snapshot query results
   - MUST NOT: Decide assignments

4. CORE CLUSTERING ENGINE (core/)
   - Responsibility: MergeInto / CreateNew / Defer, cluster geometry,
     deferred pool, per-lane serialization
   - Allowed inputs: Scored submissions, GeoIndex snapshots
   - Outputs: Decision, new IssueCluster snapshots
   - MUST NOT: Persist data, use priority for decisions

5. STORAGE LAYER (storage/)
   - Responsibility: Versioned, all-or-nothing cluster commits
   - MUST NOT: Compute geometry, decide assignments

6. QUERY LAYER (query/)
   - Responsibility: Priority ranking and recommendations, read-only

7. OBSERVABILITY & AUDIT LAYER (observability/)
   - Responsibility: Audit log, metrics, moderation outbox
   - MUST NOT: Modify system behavior

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: records are frozen, clusters change by new version
- Deterministic: identical inputs produce identical scores and decisions
- Explicit errors: faults become Error data at the engine boundary
- Nothing is dropped: aged or evicted deferred reports go to moderation
"""

from .engine import CivicIssueEngine, EngineConfig

__version__ = "0.1.0"

__all__ = ['CivicIssueEngine', 'EngineConfig', '__version__']
