# src/fanout/contracts/__init__.py
"""Shared contracts: status type, records and the error taxonomy.

This package is a leaf: it must not import from fanout.pooling,
fanout.transport or fanout.engine at module level.
"""

from fanout.contracts.errors import (
    CallbackAbort,
    ConfigurationError,
    DriverError,
    LocatorError,
    PoolExhaustedError,
    RegistrationError,
    SchedulerError,
    TransferError,
)
from fanout.contracts.records import CompletionRecord, RunSummary, SchedulerState, TransferRequest
from fanout.contracts.status import (
    STATUS_OK,
    DriverCode,
    LocatorCode,
    Status,
    StatusDomain,
    TransferCode,
)

__all__ = [
    "STATUS_OK",
    "CallbackAbort",
    "CompletionRecord",
    "ConfigurationError",
    "DriverCode",
    "DriverError",
    "LocatorCode",
    "LocatorError",
    "PoolExhaustedError",
    "RegistrationError",
    "RunSummary",
    "SchedulerError",
    "SchedulerState",
    "Status",
    "StatusDomain",
    "TransferCode",
    "TransferError",
    "TransferRequest",
]
