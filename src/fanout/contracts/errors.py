# src/fanout/contracts/errors.py
"""Exception taxonomy for the transfer scheduler.

Fatal errors (ConfigurationError, LocatorError under the abort policy,
RegistrationError, DriverError, CallbackAbort, PoolExhaustedError) propagate
out of Scheduler.run() and terminate the run.

TransferError is NOT raised by the scheduler. A single failed transfer is
reported through the failure callback and the loop continues.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fanout.contracts.status import Status

if TYPE_CHECKING:
    from fanout.contracts.records import CompletionRecord


class SchedulerError(Exception):
    """Base class for all scheduler errors.

    Attributes:
        status: Status that caused the error, if one exists
        message: Human-readable explanation
    """

    def __init__(self, message: str | None = None, *, status: Status | None = None) -> None:
        if message is None:
            message = status.explain() if status is not None else type(self).__name__
        self.status = status
        self.message = message
        super().__init__(message)

    def explain(self) -> str:
        """Human-readable explanation for the top-level caller."""
        return self.message


class ConfigurationError(SchedulerError):
    """The scheduler could not be set up (concurrency bound, signal handler, config)."""


class LocatorError(SchedulerError):
    """A target locator was malformed when binding it to a handle."""


class RegistrationError(SchedulerError):
    """The multiplexer rejected adding or removing a handle."""


class DriverError(SchedulerError):
    """The multiplexer failed internally while driving transfers."""


class PoolExhaustedError(SchedulerError):
    """acquire() was called on a pool with no free handles.

    This is a programming error in the caller: the scheduler checks
    size() before acquiring.
    """


class CallbackAbort(SchedulerError):
    """A completion callback returned a non-ok status, aborting the run."""


class TransferError(SchedulerError):
    """One transfer failed for transport reasons.

    Recoverable. Raised only by callers that choose to turn a failed
    completion record into an exception.
    """

    def __init__(self, message: str | None = None, *, status: Status | None = None, locator: str | None = None) -> None:
        super().__init__(message, status=status)
        self.locator = locator

    @classmethod
    def from_record(cls, record: CompletionRecord) -> TransferError:
        locator = record.handle.locator
        return cls(
            f"Transfer to {locator} failed: {record.status.explain()}",
            status=record.status,
            locator=locator,
        )
