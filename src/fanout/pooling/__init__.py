# src/fanout/pooling/__init__.py
"""Handle pool, request queue and scheduler configuration."""

from fanout.pooling.config import LocatorErrorPolicy, SchedulerConfig, load_config
from fanout.pooling.handle import HandleState, TransferHandle
from fanout.pooling.pool import HandlePool
from fanout.pooling.queue import RequestQueue

__all__ = [
    "HandlePool",
    "HandleState",
    "LocatorErrorPolicy",
    "RequestQueue",
    "SchedulerConfig",
    "TransferHandle",
    "load_config",
]
