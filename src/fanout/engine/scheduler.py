# src/fanout/engine/scheduler.py
"""Scheduler loop: admission, completion and refill for pooled transfers.

Ties together the handle pool, the request queue, the multiplexer and the
producer in one synchronous control loop:

    FILLING   poll the producer once, admit as many requests as slots allow
    STEADY    advance, drain completions (callback, remove, release, admit
              next), refill from the producer when the interval elapses,
              wait for readiness
    STOPPING  cancellation observed: no more polls or admissions, in-flight
              transfers are still driven to completion
    STOPPED   no active transfers left

The pool size is the only concurrency bound. Queued requests are admitted
strictly in FIFO order.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from fanout.contracts.errors import (
    CallbackAbort,
    ConfigurationError,
    LocatorError,
    RegistrationError,
    SchedulerError,
)
from fanout.contracts.records import CompletionRecord, RunSummary, SchedulerState, TransferRequest
from fanout.contracts.status import LocatorCode, Status
from fanout.engine.cancellation import CancellationToken
from fanout.engine.clock import DEFAULT_CLOCK, Clock, Stopwatch
from fanout.engine.producer import Producer
from fanout.pooling.config import LocatorErrorPolicy, SchedulerConfig
from fanout.pooling.handle import TransferHandle
from fanout.pooling.pool import HandlePool
from fanout.pooling.queue import RequestQueue
from fanout.transport.http import HttpxTransport
from fanout.transport.multiplexer import Multiplexer

logger = structlog.get_logger(__name__)

CompletionCallback = Callable[[CompletionRecord], Status]


class Scheduler:
    """Bounded-concurrency scheduler for transfers to one destination.

    The scheduler takes ownership of the multiplexer: close() (or leaving
    the `with` block) closes it and abandons any transfer still in flight.

    Usage:
        config = SchedulerConfig(pool_size=50, refill_interval_seconds=5)
        with Scheduler("https://example.com/hook", config, producer=producer) as scheduler:
            summary = scheduler.run(on_success, on_failure)

    Callbacks receive a CompletionRecord and return a Status. A non-ok
    status aborts the run with CallbackAbort.
    """

    def __init__(
        self,
        locator: str | None,
        config: SchedulerConfig,
        *,
        producer: Producer,
        multiplexer: Multiplexer | None = None,
        cancellation: CancellationToken | None = None,
        clock: Clock | None = None,
        method: str = "POST",
    ) -> None:
        """Initialize scheduler and allocate its handle pool.

        Args:
            locator: Shared destination; None if every request carries its own
            config: Scheduler configuration
            producer: Source of new payloads
            multiplexer: Driver for active transfers (default: httpx-backed)
            cancellation: Token observed once per iteration (default: private token)
            clock: Time source for the refill interval and idle waits
            method: HTTP method used for every transfer

        Raises:
            ConfigurationError: If the multiplexer rejects the concurrency bound
        """
        self._locator = locator
        self._config = config
        self._producer = producer
        self._cancel = cancellation or CancellationToken()
        self._clock = clock or DEFAULT_CLOCK
        self._pool = HandlePool(config.pool_size, method=method)
        self._queue = RequestQueue()
        if multiplexer is None:
            multiplexer = Multiplexer(HttpxTransport(timeout=config.request_timeout_seconds))
        self._mux = multiplexer
        self._refill_timer = Stopwatch(self._clock)
        self._summary = RunSummary()
        self._state = SchedulerState.FILLING
        self._log = logger.bind(pool_size=config.pool_size)

        status = self._mux.set_max_connections(config.pool_size)
        if not status.is_ok:
            raise ConfigurationError(
                f"Could not set maximal number of connections to {config.pool_size}: {status.explain()}",
                status=status,
            )

    def __enter__(self) -> Scheduler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the multiplexer, abandoning transfers still in flight."""
        self._mux.close()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def summary(self) -> RunSummary:
        return self._summary

    @property
    def pool(self) -> HandlePool:
        return self._pool

    @property
    def queue(self) -> RequestQueue:
        return self._queue

    @property
    def multiplexer(self) -> Multiplexer:
        return self._mux

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancel

    def _transition(self, state: SchedulerState) -> None:
        self._log.debug("scheduler_state", previous=self._state, state=state)
        self._state = state
        self._summary.state = state

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def _admit(self, request: TransferRequest) -> bool:
        """Move one request into a free handle and register it.

        Returns:
            True if the request is now active, False if it was skipped

        Raises:
            LocatorError: Malformed locator under the abort policy
            RegistrationError: The multiplexer rejected the handle
        """
        index = self._pool.acquire()
        handle = self._pool.handle(index)

        locator = request.locator if request.locator is not None else self._locator
        if locator is None:
            status = Status.locator(LocatorCode.MALFORMED, f"Request {request.sequence} has no locator")
        else:
            status = handle.bind(locator)
        if not status.is_ok:
            self._pool.release(index)
            if self._config.locator_error_policy is LocatorErrorPolicy.ABORT:
                raise LocatorError(status=status)
            self._summary.skipped += 1
            self._log.warning("request_skipped", sequence=request.sequence, error=status.explain())
            return False

        if request.payload:
            handle.attach_payload(request.payload, copy=self._config.copy_payloads)
        else:
            handle.clear_payload()

        status = self._mux.add(handle)
        if not status.is_ok:
            handle.reset()
            self._pool.release(index)
            raise RegistrationError(f"Could not register handle {index}: {status.explain()}", status=status)

        self._summary.admitted += 1
        if self._mux.active_count > self._summary.max_active:
            self._summary.max_active = self._mux.active_count
        self._log.debug("request_admitted", sequence=request.sequence, handle=index)
        return True

    def _admit_next(self) -> bool:
        """Admit the oldest queued request that can be admitted, if a slot is free."""
        while self._queue and self._pool.size() > 0:
            if self._admit(self._queue.pop()):
                return True
        return False

    def _fill(self) -> None:
        """Admit queued requests until the queue is empty or no slot is free."""
        while self._admit_next():
            pass

    def _refill(self) -> None:
        """Poll the producer, enqueue what it returned and fill free slots."""
        if self._cancel.cancelled:
            return
        received = self._queue.extend(self._producer.poll())
        self._summary.polls += 1
        self._log.debug("producer_polled", received=received, queued=len(self._queue))
        # The poll may have taken up to the producer timeout
        if self._cancel.cancelled:
            return
        self._fill()

    def _refill_due(self) -> bool:
        return self._refill_timer.elapsed() >= self._config.refill_interval_seconds

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _recycle(self, handle: TransferHandle) -> None:
        status = self._mux.remove(handle)
        if not status.is_ok:
            raise RegistrationError(f"Could not remove handle {handle.index}: {status.explain()}", status=status)
        handle.reset()
        self._pool.release(handle.index)
        if not self._cancel.cancelled:
            self._admit_next()

    def _drain(self, on_success: CompletionCallback, on_failure: CompletionCallback) -> None:
        for record in self._mux.drain_completions():
            if record.status.is_ok:
                self._summary.succeeded += 1
                verdict = on_success(record)
            else:
                self._summary.failed += 1
                verdict = on_failure(record)
            if not verdict.is_ok:
                raise CallbackAbort(f"Completion callback aborted the run: {verdict.explain()}", status=verdict)
            self._recycle(record.handle)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _stop_if_idle(self) -> None:
        if (
            self._config.exit_when_idle
            and not self._cancel.cancelled
            and self._producer.exhausted
            and not self._queue
            and self._mux.active_count == 0
        ):
            self._log.debug("scheduler_idle")
            self._cancel.cancel()

    def _wait(self) -> None:
        if self._mux.active_count:
            self._mux.await_readiness(self._config.readiness_timeout_ms)
            return
        # Nothing in flight: sleep until the next refill, in readiness-sized steps
        timeout = self._config.readiness_timeout_ms / 1000
        if not self._cancel.cancelled:
            remaining = self._config.refill_interval_seconds - self._refill_timer.elapsed()
            timeout = min(timeout, max(remaining, 0.0))
        self._clock.sleep(timeout)

    def run(self, on_success: CompletionCallback, on_failure: CompletionCallback) -> RunSummary:
        """Run until cancelled and every in-flight transfer has completed.

        Args:
            on_success: Called for each transfer that succeeded
            on_failure: Called for each transfer that failed

        Returns:
            Counters for the run

        Raises:
            CallbackAbort: A callback returned a non-ok status
            LocatorError: Malformed locator under the abort policy
            RegistrationError: The multiplexer rejected add or remove
            DriverError: The multiplexer failed
            PoolExhaustedError: Internal admission bug
        """
        if self._state is not SchedulerState.FILLING:
            raise RuntimeError(f"Scheduler.run() called in state {self._state}; a scheduler runs once")

        self._log.info("scheduler_started", locator=self._locator)
        try:
            self._refill()
            self._refill_timer.tick()
            self._transition(SchedulerState.STEADY)

            while True:
                self._mux.advance()
                self._drain(on_success, on_failure)

                if not self._cancel.cancelled and self._refill_due():
                    self._refill()
                    self._refill_timer.tick()

                self._stop_if_idle()
                if self._cancel.cancelled:
                    if self._state is SchedulerState.STEADY:
                        self._log.info(
                            "scheduler_stopping",
                            active=self._mux.active_count,
                            queued=len(self._queue),
                        )
                        self._transition(SchedulerState.STOPPING)
                    if self._mux.active_count == 0:
                        break

                self._wait()
        except SchedulerError as e:
            self._log.error(
                "scheduler_aborted",
                error=e.explain(),
                error_type=type(e).__name__,
                active=self._mux.active_count,
                queued=len(self._queue),
            )
            self._transition(SchedulerState.STOPPED)
            raise

        self._transition(SchedulerState.STOPPED)
        self._log.info(
            "scheduler_stopped",
            admitted=self._summary.admitted,
            succeeded=self._summary.succeeded,
            failed=self._summary.failed,
            skipped=self._summary.skipped,
            abandoned=len(self._queue),
        )
        return self._summary
