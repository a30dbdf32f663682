"""
Integration Tests Package

End-to-end tests through CivicIssueEngine.

TEST AXIOMS:
=============
1. Determinism: same submissions + clock = same decisions and clusters
2. Transactional lanes: a failed operation leaves stored clusters untouched
3. Explicit failure: rejections and aborts surface as status, error and
   moderation events, never silently
"""
