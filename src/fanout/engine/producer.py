# src/fanout/engine/producer.py
"""Producers: sources of new request payloads.

A producer is polled by the scheduler once per refill interval. A poll
never blocks for longer than the producer's timeout: a silent producer
yields an empty batch and the scheduler carries on with its transfers.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable
from typing import BinaryIO, Protocol, cast

import structlog

from fanout.contracts.records import TransferRequest

logger = structlog.get_logger(__name__)

ProducedItem = str | bytes | TransferRequest


class Producer(Protocol):
    """Source of payloads for the scheduler.

    Implementations:
    - StreamProducer: newline-delimited payloads from a binary stream (stdin)
    - StaticProducer: a fixed batch handed over on the first poll
    """

    def poll(self) -> list[ProducedItem]:
        """Return zero or more new items within a bounded wait."""
        ...

    @property
    def exhausted(self) -> bool:
        """True once no further items can ever be produced."""
        ...


# End-of-stream marker placed on the line queue by the reader thread
_EOF = object()


class StreamProducer:
    """Reads newline-delimited payloads from a binary stream.

    A background reader thread feeds lines into a queue; poll() waits at most
    timeout_seconds for the first line, then takes every line already
    available without waiting further. Empty lines are skipped.

    Payloads are opaque bytes: the stream is never decoded, so any byte
    sequence on a line is forwarded unchanged.

    The reader thread is a daemon: a read blocked on an idle stream cannot
    be interrupted, so close() only waits for it briefly.

    Example:
        producer = StreamProducer(sys.stdin.buffer, timeout_seconds=5.0)
        batch = producer.poll()  # [] if nothing arrived within 5 seconds
    """

    def __init__(self, stream: BinaryIO, *, timeout_seconds: float = 5.0) -> None:
        """Initialize producer.

        Args:
            stream: Binary stream to read from (consumed by a background thread)
            timeout_seconds: Max wait for the first line of one poll
        """
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
        self._stream = stream
        self._timeout = timeout_seconds
        self._lines: queue.Queue[object] = queue.Queue()
        self._reader: threading.Thread | None = None
        self._eof = False

    def _read(self) -> None:
        try:
            for line in self._stream:
                self._lines.put(line)
        except (OSError, ValueError) as e:
            logger.warning("producer_read_failed", error=str(e), error_type=type(e).__name__)
        finally:
            self._lines.put(_EOF)

    def _ensure_reader(self) -> None:
        if self._reader is None:
            self._reader = threading.Thread(target=self._read, name="fanout-producer", daemon=True)
            self._reader.start()

    @property
    def exhausted(self) -> bool:
        return self._eof

    def poll(self) -> list[ProducedItem]:
        if self._eof:
            return []
        self._ensure_reader()

        try:
            item = self._lines.get(timeout=self._timeout)
        except queue.Empty:
            logger.debug("producer_poll_timeout", timeout_seconds=self._timeout)
            return []

        payloads: list[ProducedItem] = []
        while True:
            if item is _EOF:
                self._eof = True
                logger.debug("producer_end_of_stream")
                break
            payload = cast(bytes, item).rstrip(b"\r\n")
            if payload:
                payloads.append(payload)
            try:
                item = self._lines.get_nowait()
            except queue.Empty:
                break
        return payloads

    def close(self, timeout: float = 0.1) -> None:
        """Wait briefly for the reader thread to finish."""
        if self._reader is not None:
            self._reader.join(timeout)


class StaticProducer:
    """Hands a fixed batch of items to the scheduler on the first poll."""

    def __init__(self, items: Iterable[ProducedItem]) -> None:
        self._items: list[ProducedItem] | None = list(items)

    @property
    def exhausted(self) -> bool:
        return self._items is None

    def poll(self) -> list[ProducedItem]:
        if self._items is None:
            return []
        items, self._items = self._items, None
        return items
