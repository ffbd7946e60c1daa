# src/fanout/engine/apps.py
"""Applications built on the scheduler.

Each application is a plain object exposing one run() operation:

- Notifier: POSTs every payload read from a producer (stdin by default) to
  one destination until interrupted
- Fetcher: GETs a fixed list of URLs with bounded parallelism and returns
  once all of them completed
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from contextlib import ExitStack
from typing import Any, Protocol

import structlog

from fanout.contracts.records import RunSummary, TransferRequest
from fanout.engine.cancellation import CancellationToken, interrupt_cancels
from fanout.engine.clock import Clock
from fanout.engine.producer import Producer, StaticProducer, StreamProducer
from fanout.engine.scheduler import CompletionCallback, Scheduler
from fanout.pooling.config import LocatorErrorPolicy, SchedulerConfig, load_config
from fanout.transport.http import HttpxTransport, Transport
from fanout.transport.multiplexer import Multiplexer

logger = structlog.get_logger(__name__)


class App(Protocol):
    """Anything that can be run to completion and report a summary."""

    def run(self, *args: Any, **kwargs: Any) -> RunSummary: ...


class Notifier:
    """Pushes producer payloads to one destination with bounded concurrency.

    Runs until SIGINT (or the cancellation token) is observed and all
    in-flight transfers have completed. With exit_when_idle configured it
    also stops once the producer is exhausted and all work is done.

    Example:
        notifier = Notifier("https://example.com/hook", load_config(refill_interval_seconds=5))
        summary = notifier.run(on_success, on_failure)
    """

    # Reference concurrency bound when no config is supplied
    DEFAULT_POOL_SIZE = 100

    def __init__(
        self,
        url: str,
        config: SchedulerConfig | None = None,
        *,
        producer: Producer | None = None,
        transport: Transport | None = None,
        cancellation: CancellationToken | None = None,
        clock: Clock | None = None,
        handle_interrupt: bool = True,
        on_interrupt: Callable[[], None] | None = None,
    ) -> None:
        """Initialize notifier.

        Args:
            url: Destination for every POST
            config: Scheduler configuration (default: pool of 100, 1s refill)
            producer: Payload source (default: stdin, newline-delimited)
            transport: Transfer collaborator (default: HttpxTransport)
            cancellation: Token to observe (default: private token)
            clock: Time source for the scheduler
            handle_interrupt: Install a SIGINT handler cancelling the token during run()
            on_interrupt: Extra notification when SIGINT arrives
        """
        self.url = url
        self.config = config or load_config(pool_size=self.DEFAULT_POOL_SIZE)
        self._producer = producer
        self._transport = transport
        self.cancellation = cancellation or CancellationToken()
        self._clock = clock
        self._handle_interrupt = handle_interrupt
        self._on_interrupt = on_interrupt

    def run(self, on_success: CompletionCallback, on_failure: CompletionCallback) -> RunSummary:
        transport = self._transport or HttpxTransport(timeout=self.config.request_timeout_seconds)

        with ExitStack() as stack:
            producer = self._producer
            if producer is None:
                stdin_producer = StreamProducer(sys.stdin.buffer, timeout_seconds=self.config.producer_timeout_seconds)
                stack.callback(stdin_producer.close)
                producer = stdin_producer
            if self._handle_interrupt:
                stack.enter_context(interrupt_cancels(self.cancellation, on_interrupt=self._on_interrupt))
            scheduler = stack.enter_context(
                Scheduler(
                    self.url,
                    self.config,
                    producer=producer,
                    multiplexer=Multiplexer(transport),
                    cancellation=self.cancellation,
                    clock=self._clock,
                    method="POST",
                )
            )
            return scheduler.run(on_success, on_failure)


class Fetcher:
    """GETs every URL of a fixed list once with bounded parallelism.

    Response bodies are discarded; the completion callback sees the
    handle's response code and status.
    """

    # Number of simultaneous transfers when not configured
    DEFAULT_MAX_PARALLEL = 10

    def __init__(
        self,
        urls: Iterable[str],
        *,
        max_parallel: int = DEFAULT_MAX_PARALLEL,
        transport: Transport | None = None,
        skip_bad_locators: bool = False,
        request_timeout_seconds: float = 30.0,
        clock: Clock | None = None,
    ) -> None:
        self.urls = list(urls)
        self.config = load_config(
            pool_size=max_parallel,
            exit_when_idle=True,
            request_timeout_seconds=request_timeout_seconds,
            locator_error_policy=LocatorErrorPolicy.SKIP if skip_bad_locators else LocatorErrorPolicy.ABORT,
        )
        self._transport = transport
        self._clock = clock

    def run(self, on_complete: CompletionCallback) -> RunSummary:
        """Fetch every URL, calling on_complete for each finished transfer."""
        producer = StaticProducer(TransferRequest(payload=b"", locator=url) for url in self.urls)
        transport = self._transport or HttpxTransport(timeout=self.config.request_timeout_seconds)
        logger.info("fetch_started", urls=len(self.urls), max_parallel=self.config.pool_size)
        with Scheduler(
            None,
            self.config,
            producer=producer,
            multiplexer=Multiplexer(transport),
            clock=self._clock,
            method="GET",
        ) as scheduler:
            return scheduler.run(on_complete, on_complete)
