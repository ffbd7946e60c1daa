# src/fanout/core/__init__.py
"""Core infrastructure: logging configuration."""

from fanout.core.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
