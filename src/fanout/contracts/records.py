# src/fanout/contracts/records.py
"""Records exchanged between the scheduler, its collaborators and callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from fanout.contracts.status import Status

if TYPE_CHECKING:
    from fanout.pooling.handle import TransferHandle


class SchedulerState(StrEnum):
    """Lifecycle state of a scheduler run."""

    FILLING = "filling"
    STEADY = "steady"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class TransferRequest:
    """One unit of work waiting for a free slot.

    Attributes:
        payload: Opaque request body
        sequence: Enqueue order, assigned by the RequestQueue
        locator: Per-request target; None means the scheduler's shared destination
    """

    payload: str | bytes
    sequence: int = 0
    locator: str | None = None


@dataclass(frozen=True)
class CompletionRecord:
    """A finished transfer as reported by the multiplexer.

    Passed to the success/failure callbacks. The handle is only valid
    for the duration of the callback: it is recycled right after.
    """

    handle: TransferHandle
    status: Status

    @property
    def succeeded(self) -> bool:
        return self.status.is_ok


@dataclass
class RunSummary:
    """Counters describing one scheduler run."""

    admitted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    polls: int = 0
    max_active: int = 0
    state: SchedulerState = SchedulerState.FILLING

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed
