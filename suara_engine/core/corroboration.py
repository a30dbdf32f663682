"""
Corroboration Groups
====================

Finds the deferred submissions that back up a new one.

A similarity graph is built over the new submission and its nearby
pending entries (edge when similarity >= threshold); the connected
component holding the new submission is the candidate group. Each
submitter counts once, so a single person repeating a report cannot
corroborate themselves.
"""

from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

import networkx as nx

from ..contracts.events import PendingEntry, Submission
from ..matching import SimilarityMatcher


def corroborating_entries(
    submission: Submission,
    nearby: Sequence[Tuple[PendingEntry, float]],
    matcher: SimilarityMatcher,
    limit: int
) -> List[PendingEntry]:
    """
    Pending entries corroborating `submission`, oldest first, at most `limit`.

    Entries by the same submitter as `submission` are never included;
    among several entries by one other submitter the heaviest is kept.
    """
    entries = [
        entry for entry, _ in nearby
        if entry.submission.category == submission.category
        and entry.submission.submission_id != submission.submission_id
    ]
    if not entries or limit <= 0:
        return []

    root = submission.submission_id.value
    tokens: Dict[str, frozenset] = {root: matcher.tokenize(submission.content)}
    by_id: Dict[str, PendingEntry] = {}
    for entry in entries:
        key = entry.submission.submission_id.value
        by_id[key] = entry
        tokens[key] = matcher.tokenize(entry.submission.content)

    graph = nx.Graph()
    graph.add_nodes_from(tokens)
    keys = sorted(tokens)
    for i, a in enumerate(keys):
        for b in keys[i + 1:]:
            if matcher.is_match(matcher.token_similarity(tokens[a], tokens[b])):
                graph.add_edge(a, b)

    component = nx.node_connected_component(graph, root)

    best: Dict[str, PendingEntry] = {}
    for key in component:
        if key == root:
            continue
        entry = by_id[key]
        submitter = entry.submission.submitter_id.value
        if submitter == submission.submitter_id.value:
            continue
        current = best.get(submitter)
        if current is None or _preference(entry) < _preference(current):
            best[submitter] = entry

    chosen = sorted(best.values(), key=_arrival)
    return chosen[:limit]


def _preference(entry: PendingEntry):
    return (-entry.weight, entry.submission.created_at.value, entry.submission.submission_id.value)


def _arrival(entry: PendingEntry):
    return (entry.submission.created_at.value, entry.submission.submission_id.value)
