# tests/fixtures/__init__.py
"""Shared test doubles for fanout tests.

Available helpers:
- ScriptedTransport: transport whose transfers finish after a scripted number of loop passes
- ListProducer: producer returning pre-scripted batches, one per poll
"""

from tests.fixtures.transports import ListProducer, ScriptedTransport

__all__ = [
    "ListProducer",
    "ScriptedTransport",
]
