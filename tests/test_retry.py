"""
tests/test_retry.py

Bounded retry with exponential backoff.
"""

from __future__ import annotations

import pytest

from updater.retry import RetryExecutor


class Flaky:
    def __init__(self, failures: int, error: BaseException | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.error = error or ConnectionError("boom")

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


@pytest.fixture()
def executor(recording_sleep) -> RetryExecutor:
    return RetryExecutor(sleep=recording_sleep)


def test_first_success_does_not_sleep(executor, recording_sleep) -> None:
    operation = Flaky(failures=0)
    assert executor.run(operation, 3, 1.0) == "ok"
    assert operation.calls == 1
    assert recording_sleep.calls == []


def test_recovers_after_transient_failures(executor, recording_sleep) -> None:
    operation = Flaky(failures=2)
    assert executor.run(operation, 3, 0.5) == "ok"
    assert operation.calls == 3
    assert recording_sleep.calls == [0.5, 1.0]


def test_attempts_are_bounded_and_final_error_reraised(executor, recording_sleep) -> None:
    error = ConnectionError("still down")
    operation = Flaky(failures=100, error=error)

    with pytest.raises(ConnectionError) as excinfo:
        executor.run(operation, 3, 1.0)

    assert excinfo.value is error
    assert operation.calls == 4
    assert recording_sleep.calls == [1.0, 2.0, 4.0]


def test_zero_retries_means_single_attempt(executor, recording_sleep) -> None:
    operation = Flaky(failures=1)
    with pytest.raises(ConnectionError):
        executor.run(operation, 0, 1.0)
    assert operation.calls == 1
    assert recording_sleep.calls == []


def test_non_retryable_errors_propagate_immediately(executor, recording_sleep) -> None:
    operation = Flaky(failures=5, error=KeyError("nope"))
    with pytest.raises(KeyError):
        executor.run(operation, 3, 1.0, retryable=(ConnectionError,))
    assert operation.calls == 1
    assert recording_sleep.calls == []


def test_negative_retries_rejected(executor) -> None:
    with pytest.raises(ValueError):
        executor.run(lambda: "ok", -1, 1.0)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


def test_backoff_waits_on_cancel_event_instead_of_sleeping(recording_sleep, recording_event) -> None:
    executor = RetryExecutor(sleep=recording_sleep, cancel_event=recording_event)

    assert executor.run(Flaky(failures=2), 3, 0.5) == "ok"
    assert recording_event.waits == [0.5, 1.0]
    assert recording_sleep.calls == []


def test_set_cancel_event_stops_retrying(recording_event) -> None:
    recording_event.set()
    error = ConnectionError("down")
    operation = Flaky(failures=100, error=error)
    executor = RetryExecutor(cancel_event=recording_event)

    with pytest.raises(ConnectionError) as excinfo:
        executor.run(operation, 5, 30.0)

    assert excinfo.value is error
    assert operation.calls == 1
    assert recording_event.waits == [30.0]
