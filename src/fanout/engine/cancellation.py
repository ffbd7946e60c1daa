# src/fanout/engine/cancellation.py
"""Cooperative cancellation.

A CancellationToken is passed explicitly into the scheduler and checked
once per loop iteration. It never interrupts a transfer in progress:
cancelling stops new admissions and producer polls, and the scheduler
exits once every in-flight transfer has completed.
"""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import FrameType
from typing import Any

import structlog

from fanout.contracts.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class CancellationToken:
    """Thread- and signal-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def install_interrupt_handler(
    token: CancellationToken,
    *,
    on_interrupt: Callable[[], None] | None = None,
) -> Callable[[int, FrameType | None], Any] | int | None:
    """Make SIGINT cancel the token instead of raising KeyboardInterrupt.

    Args:
        token: Token to cancel when SIGINT arrives
        on_interrupt: Optional extra notification (e.g. printing a banner)

    Returns:
        The previously installed SIGINT handler

    Raises:
        ConfigurationError: If the handler cannot be installed (not the main thread)
    """

    def _handle(signum: int, frame: FrameType | None) -> None:
        logger.info("interrupt_received", signal=signum)
        if on_interrupt is not None:
            on_interrupt()
        token.cancel()

    try:
        return signal.signal(signal.SIGINT, _handle)
    except (ValueError, OSError) as e:
        raise ConfigurationError(f"Could not install handler for interruption signal: {e}") from e


@contextmanager
def interrupt_cancels(
    token: CancellationToken,
    *,
    on_interrupt: Callable[[], None] | None = None,
) -> Iterator[CancellationToken]:
    """Install the SIGINT handler for the duration of a block and restore the previous one."""
    previous = install_interrupt_handler(token, on_interrupt=on_interrupt)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
