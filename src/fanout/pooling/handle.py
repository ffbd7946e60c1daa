# src/fanout/pooling/handle.py
"""Transfer handle: one reusable slot of the handle pool.

A handle holds everything a transport needs to perform one transfer
(locator, method, payload) plus the outcome of the last transfer. It never
performs I/O itself; the Multiplexer drives it.

Payload modes:
- owned copy: the handle keeps its own bytes, safe after the caller's
  buffer goes away
- external reference: the handle keeps a memoryview of the caller's
  buffer, which must stay alive and unchanged until completion
"""

from __future__ import annotations

from enum import StrEnum

import httpx

from fanout.contracts.status import Status
from fanout.transport.locator import parse_locator


class HandleState(StrEnum):
    """Completion state of the last transfer run on a handle."""

    NOT_RUN = "not_run"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TransferHandle:
    """Identity and mutable state for one transfer slot.

    Attributes:
        index: Slot index in the owning HandlePool (stable for its lifetime)
        method: HTTP method the transport uses for this handle
        response_code: Response status code seen by the transport, if any
    """

    def __init__(self, index: int, *, method: str = "POST") -> None:
        self.index = index
        self.method = method
        self.response_code: int | None = None
        self._url: httpx.URL | None = None
        self._locator: str | None = None
        self._payload: bytes | memoryview | None = None
        self._status: Status | None = None

    def __repr__(self) -> str:
        return f"TransferHandle(index={self.index}, locator={self._locator!r}, state={self.state})"

    def bind(self, locator: str) -> Status:
        """Bind a target locator.

        On a malformed locator the previously bound locator is kept.

        Returns:
            Locator-domain status
        """
        url, status = parse_locator(locator)
        if url is None:
            return status
        self._url = url
        self._locator = locator
        return status

    @property
    def locator(self) -> str | None:
        return self._locator

    @property
    def url(self) -> httpx.URL | None:
        return self._url

    def attach_payload(self, data: str | bytes | bytearray | memoryview, *, copy: bool = True) -> None:
        """Attach the request body.

        Args:
            data: Payload. str is encoded as UTF-8 and therefore always copied.
            copy: If False, keep a memoryview of the caller's buffer instead of a copy
        """
        if isinstance(data, str):
            self._payload = data.encode("utf-8")
        elif copy:
            self._payload = bytes(data)
        else:
            self._payload = memoryview(data)

    def clear_payload(self) -> None:
        self._payload = None

    @property
    def payload(self) -> bytes | memoryview | None:
        return self._payload

    def payload_bytes(self) -> bytes:
        """Payload as bytes for the transport (empty if none attached)."""
        if self._payload is None:
            return b""
        return bytes(self._payload)

    @property
    def status(self) -> Status | None:
        """Status of the last completed transfer, None if not run yet."""
        return self._status

    @property
    def state(self) -> HandleState:
        if self._status is None:
            return HandleState.NOT_RUN
        return HandleState.SUCCEEDED if self._status.is_ok else HandleState.FAILED

    def record(self, status: Status) -> None:
        """Record the outcome of a transfer. Called by the Multiplexer."""
        self._status = status

    def reset(self) -> None:
        """Forget the last transfer before the slot is reused.

        The bound locator is kept; it is rebound on the next admission.
        """
        self._payload = None
        self._status = None
        self.response_code = None
