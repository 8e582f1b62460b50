from __future__ import annotations

import threading

import pytest

from src.services.resilience import (
    CircuitBreaker,
    CircuitState,
    get_circuit_breaker,
    reset_circuit_breaker,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _open_breaker(clock: FakeClock, threshold: int = 3, reset_timeout: float = 30.0) -> CircuitBreaker:
    breaker = CircuitBreaker(failure_threshold=threshold, reset_timeout=reset_timeout, clock=clock)
    for _ in range(threshold):
        assert breaker.allow()
        breaker.record_failure()
    return breaker


def test_opens_after_threshold_consecutive_failures():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30.0, clock=clock)

    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.allow()

    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert breaker.allow() is False


def test_success_resets_consecutive_failure_count():
    breaker = CircuitBreaker(failure_threshold=3, clock=FakeClock())
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 2


def test_stays_open_until_reset_timeout_elapses():
    clock = FakeClock()
    breaker = _open_breaker(clock)

    clock.advance(29.9)
    assert breaker.allow() is False
    assert breaker.state == CircuitState.OPEN

    clock.advance(0.1)
    assert breaker.allow() is True
    assert breaker.state == CircuitState.HALF_OPEN


def test_half_open_permits_exactly_one_trial():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(30)

    assert breaker.allow() is True
    assert breaker.allow() is False
    assert breaker.allow() is False


def test_half_open_success_closes_circuit():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(30)
    assert breaker.allow()

    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0
    assert breaker.allow()


def test_half_open_failure_reopens_with_fresh_timestamp():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(30)
    assert breaker.allow()

    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN

    clock.advance(29)
    assert breaker.allow() is False
    clock.advance(1)
    assert breaker.allow() is True


def test_release_trial_frees_the_half_open_slot():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(30)
    assert breaker.allow()
    assert breaker.allow() is False

    breaker.release_trial()
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.allow() is True


def _half_open_with_stale_permit(clock: FakeClock):
    breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30.0, clock=clock)
    stale = breaker.acquire()
    for _ in range(3):
        breaker.record_failure()
    clock.advance(30)
    trial = breaker.acquire()
    assert trial is not None and trial.trial
    return breaker, stale, trial


def test_permit_from_closed_period_cannot_release_trial():
    breaker, stale, trial = _half_open_with_stale_permit(FakeClock())

    breaker.release_trial(stale)

    assert breaker.allow() is False
    assert breaker.snapshot()["trial_in_flight"] is True


def test_late_outcome_from_closed_period_leaves_trial_undecided():
    breaker, stale, trial = _half_open_with_stale_permit(FakeClock())

    breaker.record_success(stale)
    assert breaker.state == CircuitState.HALF_OPEN
    breaker.record_failure(stale)
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.failure_count == 3

    breaker.record_success(trial)
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0


def test_trial_permit_failure_reopens():
    clock = FakeClock()
    breaker, _, trial = _half_open_with_stale_permit(clock)

    breaker.record_failure(trial)
    assert breaker.state == CircuitState.OPEN
    assert breaker.acquire() is None


def test_permit_from_earlier_closed_period_is_ignored_after_recovery():
    breaker, stale, trial = _half_open_with_stale_permit(FakeClock())
    breaker.record_success(trial)

    breaker.record_failure(stale)
    assert breaker.failure_count == 0

    current = breaker.acquire()
    breaker.record_failure(current)
    assert breaker.failure_count == 1


def test_used_trial_permit_cannot_release_next_trial():
    clock = FakeClock()
    breaker, _, first = _half_open_with_stale_permit(clock)
    breaker.record_failure(first)
    clock.advance(30)
    second = breaker.acquire()
    assert second is not None

    breaker.release_trial(first)
    assert breaker.acquire() is None
    breaker.release_trial(second)
    assert breaker.acquire() is not None


def test_only_allow_moves_open_to_half_open():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(120)
    assert breaker.state == CircuitState.OPEN
    assert breaker.snapshot()["state"] == "open"


def test_reset_returns_to_closed():
    breaker = _open_breaker(FakeClock())
    breaker.reset()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0
    assert breaker.allow()


@pytest.mark.parametrize("threshold", [0, -1])
def test_rejects_invalid_threshold(threshold: int):
    with pytest.raises(ValueError):
        CircuitBreaker(failure_threshold=threshold)


def test_concurrent_failure_burst_opens_once_and_grants_single_trial():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=5, reset_timeout=10.0, clock=clock)
    barrier = threading.Barrier(20)

    def fail() -> None:
        barrier.wait()
        breaker.record_failure()

    threads = [threading.Thread(target=fail) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert breaker.state == CircuitState.OPEN
    assert breaker.failure_count == 20

    clock.advance(10)
    grants: list[bool] = []
    lock = threading.Lock()
    barrier = threading.Barrier(20)

    def probe() -> None:
        barrier.wait()
        allowed = breaker.allow()
        with lock:
            grants.append(allowed)

    threads = [threading.Thread(target=probe) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert grants.count(True) == 1


def test_process_wide_breaker_uses_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QUESTIONFLOW_FAILURE_THRESHOLD", "7")
    reset_circuit_breaker()
    try:
        breaker = get_circuit_breaker()
        assert breaker is get_circuit_breaker()
        assert breaker.failure_threshold == 7
    finally:
        reset_circuit_breaker()
