# src/fanout/contracts/status.py
"""Unified status type spanning the three result domains.

Every operation that can fail without raising returns a Status:

- transfer: outcome of one transfer performed by the transport
- driver: outcome of a multiplexer call (add/remove/advance/wait)
- locator: outcome of validating a target locator

IMPORTANT: in the driver domain CALL_AGAIN is ok. It signals that the
caller should simply drive the multiplexer again, nothing is wrong.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum


class StatusDomain(StrEnum):
    """Which subsystem produced a Status."""

    TRANSFER = "transfer"
    DRIVER = "driver"
    LOCATOR = "locator"


class TransferCode(IntEnum):
    """Outcome codes for a single transfer."""

    OK = 0
    CONNECT_FAILED = 1
    TIMEOUT = 2
    SEND_FAILED = 3
    RECEIVE_FAILED = 4
    PROTOCOL_ERROR = 5
    TOO_MANY_REDIRECTS = 6
    HTTP_ERROR = 7
    FAILED = 99


class DriverCode(IntEnum):
    """Outcome codes for multiplexer calls."""

    CALL_AGAIN = -1
    OK = 0
    BAD_HANDLE = 1
    ALREADY_ADDED = 2
    LIMIT_REACHED = 3
    BAD_ARGUMENT = 4
    CLOSED = 5
    INTERNAL_ERROR = 6


class LocatorCode(IntEnum):
    """Outcome codes for locator validation."""

    OK = 0
    MALFORMED = 1
    MISSING_SCHEME = 2
    UNSUPPORTED_SCHEME = 3
    MISSING_HOST = 4


_DESCRIPTIONS: dict[StatusDomain, dict[int, str]] = {
    StatusDomain.TRANSFER: {
        TransferCode.OK: "No error",
        TransferCode.CONNECT_FAILED: "Could not connect to server",
        TransferCode.TIMEOUT: "Timeout was reached",
        TransferCode.SEND_FAILED: "Failed sending data to the peer",
        TransferCode.RECEIVE_FAILED: "Failure when receiving data from the peer",
        TransferCode.PROTOCOL_ERROR: "Protocol error in response",
        TransferCode.TOO_MANY_REDIRECTS: "Number of redirects hit maximum amount",
        TransferCode.HTTP_ERROR: "HTTP response code said error",
        TransferCode.FAILED: "Transfer failed",
    },
    StatusDomain.DRIVER: {
        DriverCode.CALL_AGAIN: "Please call again",
        DriverCode.OK: "No error",
        DriverCode.BAD_HANDLE: "Invalid transfer handle",
        DriverCode.ALREADY_ADDED: "Handle already registered",
        DriverCode.LIMIT_REACHED: "Maximum number of active handles reached",
        DriverCode.BAD_ARGUMENT: "Invalid argument",
        DriverCode.CLOSED: "Multiplexer is closed",
        DriverCode.INTERNAL_ERROR: "Internal driver error",
    },
    StatusDomain.LOCATOR: {
        LocatorCode.OK: "No error",
        LocatorCode.MALFORMED: "Malformed locator",
        LocatorCode.MISSING_SCHEME: "Locator has no scheme",
        LocatorCode.UNSUPPORTED_SCHEME: "Unsupported locator scheme",
        LocatorCode.MISSING_HOST: "Locator has no host",
    },
}

_OK_CODES: dict[StatusDomain, frozenset[int]] = {
    StatusDomain.TRANSFER: frozenset({TransferCode.OK}),
    StatusDomain.DRIVER: frozenset({DriverCode.OK, DriverCode.CALL_AGAIN}),
    StatusDomain.LOCATOR: frozenset({LocatorCode.OK}),
}


@dataclass(frozen=True)
class Status:
    """Result of an operation in one of the three domains.

    Use the factory methods to create instances.

    Attributes:
        domain: Subsystem that produced the status
        code: Domain-specific code (see TransferCode, DriverCode, LocatorCode)
        message: Optional detail overriding the default description
    """

    domain: StatusDomain
    code: int
    message: str | None = None

    @classmethod
    def ok(cls) -> Status:
        """The canonical non-error status."""
        return cls(StatusDomain.DRIVER, DriverCode.OK)

    @classmethod
    def transfer(cls, code: TransferCode, message: str | None = None) -> Status:
        return cls(StatusDomain.TRANSFER, code, message)

    @classmethod
    def driver(cls, code: DriverCode, message: str | None = None) -> Status:
        return cls(StatusDomain.DRIVER, code, message)

    @classmethod
    def locator(cls, code: LocatorCode, message: str | None = None) -> Status:
        return cls(StatusDomain.LOCATOR, code, message)

    @property
    def is_ok(self) -> bool:
        """True iff the status does not represent a failure."""
        return self.code in _OK_CODES[self.domain]

    def __bool__(self) -> bool:
        return self.is_ok

    def explain(self) -> str:
        """Human readable description of the status."""
        if self.message:
            return self.message
        return _DESCRIPTIONS[self.domain].get(self.code, f"Unknown {self.domain} code {self.code}")

    def __str__(self) -> str:
        return self.explain()


STATUS_OK = Status.ok()
