# src/fanout/pooling/config.py
"""Scheduler configuration."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, model_validator

from fanout.contracts.errors import ConfigurationError


class LocatorErrorPolicy(StrEnum):
    """What to do when a queued request has a malformed locator.

    ABORT: terminate the whole run with LocatorError
    SKIP: log it, free the slot and admit the next queued request
    """

    ABORT = "abort"
    SKIP = "skip"


class SchedulerConfig(BaseModel):
    """Scheduler configuration.

    Attributes:
        pool_size: Number of reusable handles, the only concurrency bound (>= 1)
        refill_interval_seconds: How often the producer is polled for new payloads
        readiness_timeout_ms: Upper bound on one readiness wait; also bounds how
            late a refill deadline or cancellation is noticed
        producer_timeout_seconds: Max wait for the producer on one poll
        request_timeout_seconds: Per-transfer timeout handed to the transport
        copy_payloads: Copy payloads into handles (False keeps a reference)
        locator_error_policy: abort or skip requests with malformed locators
        exit_when_idle: Stop once the producer is exhausted and all work is done
    """

    model_config = {"extra": "forbid"}

    pool_size: int = Field(100, ge=1, description="Number of concurrent transfers")
    refill_interval_seconds: float = Field(1.0, gt=0, description="Producer poll interval in seconds")
    readiness_timeout_ms: int = Field(100, ge=1, le=1000, description="Readiness wait in milliseconds")
    producer_timeout_seconds: float = Field(5.0, gt=0, description="Max producer wait in seconds")
    request_timeout_seconds: float = Field(30.0, gt=0, description="Per-transfer timeout in seconds")
    copy_payloads: bool = Field(True, description="Copy payloads into handles")
    locator_error_policy: LocatorErrorPolicy = Field(
        LocatorErrorPolicy.ABORT, description="Policy for malformed locators at admission"
    )
    exit_when_idle: bool = Field(False, description="Stop when producer is exhausted and no work remains")

    @model_validator(mode="after")
    def _validate_timing_invariants(self) -> Self:
        """Validate readiness_timeout_ms does not exceed the refill interval."""
        if self.readiness_timeout_ms / 1000 > self.refill_interval_seconds:
            raise ValueError(
                f"readiness_timeout_ms ({self.readiness_timeout_ms}) cannot exceed "
                f"refill_interval_seconds ({self.refill_interval_seconds}s)"
            )
        return self


def load_config(**values: Any) -> SchedulerConfig:
    """Build a SchedulerConfig, reporting invalid values as ConfigurationError.

    Raises:
        ConfigurationError: With one line per invalid field
    """
    try:
        return SchedulerConfig(**values)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors())
        raise ConfigurationError(f"Invalid scheduler configuration: {problems}") from e
