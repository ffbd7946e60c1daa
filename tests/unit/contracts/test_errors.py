# tests/unit/contracts/test_errors.py
"""Tests for the scheduler exception taxonomy."""

import pytest

from fanout.contracts.errors import (
    CallbackAbort,
    ConfigurationError,
    DriverError,
    LocatorError,
    PoolExhaustedError,
    RegistrationError,
    SchedulerError,
    TransferError,
)
from fanout.contracts.records import CompletionRecord
from fanout.contracts.status import DriverCode, LocatorCode, Status, TransferCode
from fanout.pooling.handle import TransferHandle


class TestSchedulerError:
    @pytest.mark.parametrize(
        "error_cls",
        [
            CallbackAbort,
            ConfigurationError,
            DriverError,
            LocatorError,
            PoolExhaustedError,
            RegistrationError,
            TransferError,
        ],
    )
    def test_all_errors_share_the_base(self, error_cls: type[SchedulerError]) -> None:
        assert issubclass(error_cls, SchedulerError)

    def test_message_defaults_to_status_explanation(self) -> None:
        error = LocatorError(status=Status.locator(LocatorCode.MISSING_SCHEME))
        assert error.explain() == "Locator has no scheme"
        assert str(error) == "Locator has no scheme"

    def test_explicit_message_wins(self) -> None:
        status = Status.driver(DriverCode.LIMIT_REACHED)
        error = RegistrationError("Could not register handle 3", status=status)
        assert error.explain() == "Could not register handle 3"
        assert error.status is status

    def test_no_message_and_no_status_uses_class_name(self) -> None:
        assert DriverError().explain() == "DriverError"
        assert DriverError().status is None


class TestTransferError:
    def test_from_failed_record(self) -> None:
        handle = TransferHandle(0)
        handle.bind("http://example.com/hook")
        status = Status.transfer(TransferCode.CONNECT_FAILED)
        record = CompletionRecord(handle=handle, status=status)

        error = TransferError.from_record(record)

        assert error.locator == "http://example.com/hook"
        assert error.status is status
        assert "Could not connect to server" in error.explain()
        assert "http://example.com/hook" in error.explain()
