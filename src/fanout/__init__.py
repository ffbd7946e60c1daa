# src/fanout/__init__.py
"""
fanout: bounded-concurrency multiplexed transfer scheduler.

Pushes payloads from a producer to a destination through a fixed pool of
reusable transfer slots, all driven by one non-blocking control loop.
"""

__version__ = "0.1.0"
