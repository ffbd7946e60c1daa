# tests/property/__init__.py
"""Property-based tests for fanout.

Test categories:
- pool: free-list bookkeeping under arbitrary acquire/release sequences
- scheduler: completion, ordering and concurrency invariants of the loop
"""
