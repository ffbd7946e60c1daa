# tests/unit/engine/test_cancellation.py
"""Tests for CancellationToken and the SIGINT handler."""

import signal
import threading

from fanout.contracts.errors import ConfigurationError
from fanout.engine.cancellation import CancellationToken, install_interrupt_handler, interrupt_cancels


class TestCancellationToken:
    def test_initially_not_cancelled(self) -> None:
        token = CancellationToken()
        assert not token.cancelled
        assert "cancelled=False" in repr(token)

    def test_cancel_is_sticky(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled

    def test_cancel_from_another_thread(self) -> None:
        token = CancellationToken()
        worker = threading.Thread(target=token.cancel)
        worker.start()
        worker.join()
        assert token.cancelled


class TestInterruptHandler:
    def test_sigint_cancels_token(self) -> None:
        token = CancellationToken()
        notified: list[bool] = []

        with interrupt_cancels(token, on_interrupt=lambda: notified.append(True)):
            signal.raise_signal(signal.SIGINT)

        assert token.cancelled
        assert notified == [True]

    def test_previous_handler_is_restored(self) -> None:
        def sentinel(signum: int, frame: object) -> None:
            pass

        signal.signal(signal.SIGINT, sentinel)
        with interrupt_cancels(CancellationToken()):
            assert signal.getsignal(signal.SIGINT) is not sentinel
        assert signal.getsignal(signal.SIGINT) is sentinel

    def test_install_returns_previous_handler(self) -> None:
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        previous = install_interrupt_handler(CancellationToken())
        assert previous == signal.SIG_IGN

    def test_install_outside_main_thread_is_configuration_error(self) -> None:
        errors: list[BaseException] = []

        def install() -> None:
            try:
                install_interrupt_handler(CancellationToken())
            except ConfigurationError as e:
                errors.append(e)

        worker = threading.Thread(target=install)
        worker.start()
        worker.join()

        assert len(errors) == 1
        assert "interruption signal" in str(errors[0])

    def test_install_failure_propagates_from_context_manager(self) -> None:
        result: list[BaseException] = []

        def run() -> None:
            try:
                with interrupt_cancels(CancellationToken()):
                    pass
            except ConfigurationError as e:
                result.append(e)

        worker = threading.Thread(target=run)
        worker.start()
        worker.join()

        assert len(result) == 1
        assert isinstance(result[0].__cause__, ValueError)
