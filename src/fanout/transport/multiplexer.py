# src/fanout/transport/multiplexer.py
"""Multiplexer: drives every active transfer from one control flow.

Each registered handle gets one transfer coroutine on a private asyncio
event loop. The loop only runs inside advance() and await_readiness(), so
the caller keeps a single synchronous control flow and never blocks on an
individual transfer:

    mux.add(handle)
    while mux.active_count:
        mux.advance()                        # non-blocking progress pass
        for record in mux.drain_completions():
            ...                              # handle outcome
            mux.remove(record.handle)
        mux.await_readiness(100)             # sleep until something finishes

Not thread-safe: exactly one control loop owns a Multiplexer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterator
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from fanout.contracts.errors import DriverError
from fanout.contracts.records import CompletionRecord
from fanout.contracts.status import DriverCode, Status, TransferCode
from fanout.transport.http import Transport

if TYPE_CHECKING:
    from fanout.pooling.handle import TransferHandle

logger = structlog.get_logger(__name__)


class Multiplexer:
    """Non-blocking driver for many concurrent transfers.

    Handles are keyed by their pool index. A handle is "active" from a
    successful add() until remove(); it is "running" while its transfer
    has not finished yet. Finished handles stay active until removed, and
    are reported by drain_completions() exactly once.
    """

    def __init__(self, transport: Transport) -> None:
        """Initialize multiplexer.

        Args:
            transport: Collaborator performing the individual transfers
        """
        self._transport = transport
        self._loop = asyncio.new_event_loop()
        self._tasks: dict[int, asyncio.Task[Status]] = {}
        self._handles: dict[int, TransferHandle] = {}
        self._reported: set[int] = set()
        self._max_active: int | None = None
        self._closed = False

    def __enter__(self) -> Multiplexer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_count(self) -> int:
        """Number of registered handles (running or finished but not removed)."""
        return len(self._tasks)

    @property
    def running_count(self) -> int:
        """Number of registered handles whose transfer has not finished."""
        return sum(1 for task in self._tasks.values() if not task.done())

    def active_indices(self) -> frozenset[int]:
        return frozenset(self._tasks)

    def is_active(self, handle: TransferHandle) -> bool:
        return handle.index in self._tasks

    def set_max_connections(self, limit: int) -> Status:
        """Bound the number of active handles and transport connections."""
        if limit < 1:
            return Status.driver(DriverCode.BAD_ARGUMENT, f"max connections must be >= 1, got {limit}")
        try:
            self._transport.set_max_connections(limit)
        except (ValueError, RuntimeError) as e:
            return Status.driver(DriverCode.BAD_ARGUMENT, f"Transport rejected max connections {limit}: {e}")
        self._max_active = limit
        return Status.driver(DriverCode.OK)

    def add(self, handle: TransferHandle) -> Status:
        """Register a handle and schedule its transfer.

        On a non-ok status the handle is not active.
        """
        if self._closed:
            return Status.driver(DriverCode.CLOSED)
        if handle.index in self._tasks:
            return Status.driver(DriverCode.ALREADY_ADDED, f"Handle {handle.index} is already registered")
        if self._max_active is not None and len(self._tasks) >= self._max_active:
            return Status.driver(
                DriverCode.LIMIT_REACHED,
                f"Cannot register handle {handle.index}: {self._max_active} handles already active",
            )

        task = self._loop.create_task(self._drive(handle), name=f"transfer-{handle.index}")
        self._tasks[handle.index] = task
        self._handles[handle.index] = handle
        return Status.driver(DriverCode.OK)

    def remove(self, handle: TransferHandle) -> Status:
        """Unregister a handle.

        Intended for handles already reported by drain_completions(). Removing
        a handle whose transfer is still running cancels the transfer.
        """
        task = self._tasks.pop(handle.index, None)
        if task is None:
            return Status.driver(DriverCode.BAD_HANDLE, f"Handle {handle.index} is not registered")
        del self._handles[handle.index]
        self._reported.discard(handle.index)
        if not task.done():
            task.cancel()
        return Status.driver(DriverCode.OK)

    async def _drive(self, handle: TransferHandle) -> Status:
        try:
            return await self._transport.perform(handle)
        except httpx.HTTPError as e:
            return Status.transfer(TransferCode.FAILED, f"Transfer on handle {handle.index} failed: {e}")

    def _require_open(self) -> None:
        if self._closed:
            raise DriverError(status=Status.driver(DriverCode.CLOSED))

    def _run(self, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            self._loop.run_until_complete(coro)
        except RuntimeError as e:
            raise DriverError(
                f"Multiplexer event loop failed: {e}",
                status=Status.driver(DriverCode.INTERNAL_ERROR, str(e)),
            ) from e

    def advance(self) -> int:
        """Make one non-blocking progress pass over all active transfers.

        Returns:
            Number of active handles whose transfer is still running

        Raises:
            DriverError: If the multiplexer is closed or its loop fails
        """
        self._require_open()
        self._run(asyncio.sleep(0))
        return self.running_count

    def _finished_indices(self) -> list[int]:
        return [index for index, task in self._tasks.items() if task.done() and index not in self._reported]

    def drain_completions(self) -> Iterator[CompletionRecord]:
        """Yield one record per handle finished since the last drain.

        The sequence is finite: it covers handles finished at the time it is
        started and then ends. Call advance() and drain again for more.

        Raises:
            Exception: Whatever a transport raised other than httpx.HTTPError.
                That is a bug in the transport and is not converted.
        """
        for index in self._finished_indices():
            task = self._tasks.get(index)
            if task is None or not task.done() or index in self._reported:
                # Removed (and possibly re-added) by the consumer while the drain was suspended
                continue
            self._reported.add(index)
            handle = self._handles[index]
            status = task.result()
            handle.record(status)
            yield CompletionRecord(handle=handle, status=status)

    def await_readiness(self, timeout_ms: int) -> int:
        """Block until at least one running transfer finishes or timeout_ms elapses.

        Returns:
            Number of finished handles waiting to be drained

        Raises:
            DriverError: If the multiplexer is closed or its loop fails
        """
        self._require_open()
        ready = len(self._finished_indices())
        if ready:
            return ready
        running = {task for task in self._tasks.values() if not task.done()}
        if not running:
            return 0
        self._run(asyncio.wait(running, timeout=timeout_ms / 1000, return_when=asyncio.FIRST_COMPLETED))
        return len(self._finished_indices())

    def close(self) -> None:
        """Cancel all transfers, release the transport and close the loop."""
        if self._closed:
            return
        self._closed = True
        for task in self._tasks.values():
            task.cancel()
        pending = asyncio.all_tasks(self._loop)
        if pending:
            self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        abandoned = len(self._tasks)
        self._tasks.clear()
        self._handles.clear()
        self._reported.clear()
        try:
            self._loop.run_until_complete(self._transport.aclose())
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        finally:
            self._loop.close()
        if abandoned:
            logger.debug("multiplexer_closed", abandoned=abandoned)
