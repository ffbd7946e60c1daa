# tests/property/test_scheduler_properties.py
"""Property-based tests for the Scheduler loop.

For any pool size and any mix of transfer durations and outcomes:
- every admitted request yields exactly one completion
- requests start in FIFO order
- the number of simultaneous transfers never exceeds the pool size
- the pool is fully free again when the run ends
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from fanout.contracts.records import CompletionRecord, SchedulerState
from fanout.contracts.status import Status, TransferCode
from fanout.engine.producer import StaticProducer
from fanout.engine.scheduler import Scheduler
from fanout.pooling.config import load_config
from fanout.transport.multiplexer import Multiplexer
from tests.fixtures import ScriptedTransport

URL = "http://hooks.example/notify"

transfers = st.lists(
    st.tuples(st.integers(min_value=0, max_value=8), st.booleans()),
    max_size=25,
)


@given(pool_size=st.integers(min_value=1, max_value=6), script=transfers)
def test_every_request_completes_exactly_once(pool_size: int, script: list[tuple[int, bool]]) -> None:
    payloads = [f"p{i}" for i in range(len(script))]
    transport = ScriptedTransport(
        {p: steps for p, (steps, _) in zip(payloads, script, strict=True)},
        failures={p: Status.transfer(TransferCode.FAILED) for p, (_, ok) in zip(payloads, script, strict=True) if not ok},
    )
    completions: list[str] = []

    def on_complete(record: CompletionRecord) -> Status:
        completions.append(ScriptedTransport.key(record.handle))
        return Status.ok()

    config = load_config(pool_size=pool_size, refill_interval_seconds=0.05, readiness_timeout_ms=5, exit_when_idle=True)
    with Scheduler(URL, config, producer=StaticProducer(payloads), multiplexer=Multiplexer(transport)) as scheduler:
        summary = scheduler.run(on_complete, on_complete)
        free_at_end = scheduler.pool.size()

    assert sorted(completions) == sorted(payloads)
    assert transport.started == payloads
    assert transport.peak <= pool_size
    assert summary.max_active <= pool_size
    assert summary.admitted == len(payloads)
    assert summary.failed == sum(1 for _, ok in script if not ok)
    assert summary.completed == len(payloads)
    assert summary.state is SchedulerState.STOPPED
    assert free_at_end == pool_size


@given(pool_size=st.integers(min_value=1, max_value=5), total=st.integers(min_value=1, max_value=15))
def test_cancellation_stops_admission(pool_size: int, total: int) -> None:
    """Cancelled on the first transfer start: only the initially admitted requests ever run."""
    from fanout.engine.cancellation import CancellationToken

    token = CancellationToken()
    transport = ScriptedTransport(default_steps=2, on_start=lambda key: token.cancel())
    payloads = [f"p{i}" for i in range(total)]

    def on_complete(record: CompletionRecord) -> Status:
        return Status.ok()

    config = load_config(pool_size=pool_size, refill_interval_seconds=0.05, readiness_timeout_ms=5)
    with Scheduler(
        URL, config, producer=StaticProducer(payloads), multiplexer=Multiplexer(transport), cancellation=token
    ) as scheduler:
        summary = scheduler.run(on_complete, on_complete)
        queued = len(scheduler.queue)

    admitted = min(pool_size, total)
    assert summary.admitted == admitted
    assert summary.completed == admitted
    assert queued == total - admitted
    assert summary.polls == 1
