# src/fanout/transport/__init__.py
"""Transfer execution: locator validation, HTTP transport and the multiplexer."""

from fanout.transport.http import HttpxTransport, Transport
from fanout.transport.locator import SUPPORTED_SCHEMES, parse_locator
from fanout.transport.multiplexer import Multiplexer

__all__ = [
    "SUPPORTED_SCHEMES",
    "HttpxTransport",
    "Multiplexer",
    "Transport",
    "parse_locator",
]
