# src/fanout/engine/__init__.py
"""Scheduling engine: clock, cancellation, producers, scheduler loop and applications."""

from fanout.engine.apps import App, Fetcher, Notifier
from fanout.engine.cancellation import CancellationToken, install_interrupt_handler, interrupt_cancels
from fanout.engine.clock import DEFAULT_CLOCK, Clock, MockClock, Stopwatch, SystemClock
from fanout.engine.producer import Producer, StaticProducer, StreamProducer
from fanout.engine.scheduler import CompletionCallback, Scheduler

__all__ = [
    "DEFAULT_CLOCK",
    "App",
    "CancellationToken",
    "Clock",
    "CompletionCallback",
    "Fetcher",
    "MockClock",
    "Notifier",
    "Producer",
    "Scheduler",
    "StaticProducer",
    "Stopwatch",
    "StreamProducer",
    "SystemClock",
    "install_interrupt_handler",
    "interrupt_cancels",
]
