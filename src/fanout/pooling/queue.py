# src/fanout/pooling/queue.py
"""FIFO queue of requests awaiting a free handle."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from fanout.contracts.records import TransferRequest


class RequestQueue:
    """Unbounded FIFO of TransferRequest.

    Assigns each request a sequence number on enqueue so admission order can
    be audited.
    """

    def __init__(self) -> None:
        self._items: deque[TransferRequest] = deque()
        self._next_sequence = 0

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def push(self, payload: str | bytes, *, locator: str | None = None) -> TransferRequest:
        request = TransferRequest(payload=payload, sequence=self._next_sequence, locator=locator)
        self._next_sequence += 1
        self._items.append(request)
        return request

    def extend(self, items: Iterable[str | bytes | TransferRequest]) -> int:
        """Enqueue items in order. Returns how many were added.

        A TransferRequest keeps its payload and locator but gets a fresh
        sequence number.
        """
        count = 0
        for item in items:
            if isinstance(item, TransferRequest):
                self.push(item.payload, locator=item.locator)
            else:
                self.push(item)
            count += 1
        return count

    def pop(self) -> TransferRequest:
        """Remove and return the oldest request.

        Raises:
            IndexError: If the queue is empty
        """
        return self._items.popleft()

    def peek(self) -> TransferRequest | None:
        return self._items[0] if self._items else None
