# -*- coding: utf-8 -*-
"""
Circuit Breaker
===============

Tracks the health of the generation backend and gates calls to it.

States:
- CLOSED: calls allowed; consecutive failures are counted
- OPEN: calls refused until ``reset_timeout`` has elapsed
- HALF_OPEN: exactly one trial call is allowed; its outcome closes or
  re-opens the circuit

The OPEN -> HALF_OPEN move happens lazily inside ``acquire()``/``allow()``;
there is no background timer. One lock serialises every read and
transition, so the breaker can be shared by concurrent workflow runs and
threads.

``acquire()`` returns a ``Permit`` naming the call it admitted. Outcomes
reported with a permit only count where that call belongs: the HALF_OPEN
trial permit alone decides the trial, and a permit issued while CLOSED only
moves the failure count of that same CLOSED period. ``allow()`` is the
permit-less form; outcomes reported without a permit apply to the current
state.

Usage:
    breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30.0)

    permit = breaker.acquire()
    if permit is not None:
        try:
            text = await model.generate(prompt, tier)
        except TransientBackendError:
            breaker.record_failure(permit)
        else:
            breaker.record_success(permit)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import threading
import time
from typing import Any, Callable, Optional

from src.logging import get_logger

logger = get_logger("CircuitBreaker")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True, eq=False)
class Permit:
    """Admission ticket for one backend call. Compared by identity."""

    trial: bool
    generation: int


class CircuitBreaker:
    """Three-state circuit breaker with a lazily evaluated cooldown."""

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 30.0,
        name: str = "generation",
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if reset_timeout < 0:
            raise ValueError("reset_timeout must be non-negative")

        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        # Bumped on every entry into CLOSED
        self._generation = 0
        self._trial: Optional[Permit] = None

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def acquire(self) -> Optional[Permit]:
        """Admit one backend call, or return None when the circuit refuses it."""
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return Permit(trial=False, generation=self._generation)

            if self._state == CircuitState.OPEN:
                elapsed = self._clock() - (self._opened_at or 0.0)
                if elapsed < self.reset_timeout:
                    return None
                self._transition(CircuitState.HALF_OPEN)

            # HALF_OPEN: a single trial per cooldown
            if self._trial is not None:
                return None
            self._trial = Permit(trial=True, generation=self._generation)
            return self._trial

    def allow(self) -> bool:
        """Return True when the caller may attempt a backend call."""
        return self.acquire() is not None

    def record_success(self, permit: Optional[Permit] = None) -> None:
        with self._lock:
            if not self._owns_outcome(permit):
                return
            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.CLOSED)
            self._failure_count = 0
            self._trial = None

    def record_failure(self, permit: Optional[Permit] = None) -> None:
        with self._lock:
            if not self._owns_outcome(permit):
                return
            self._failure_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._open()
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                self._open()
            self._trial = None

    def release_trial(self, permit: Optional[Permit] = None) -> None:
        """Give back a HALF_OPEN trial slot whose call never completed (e.g. cancelled)."""
        with self._lock:
            if permit is None or permit is self._trial:
                self._trial = None

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._opened_at = None
            self._generation += 1
            self._trial = None

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "failure_threshold": self.failure_threshold,
                "reset_timeout": self.reset_timeout,
                "opened_at": self._opened_at,
                "trial_in_flight": self._trial is not None,
            }

    # Callers must hold self._lock
    def _owns_outcome(self, permit: Optional[Permit]) -> bool:
        if permit is None:
            return True
        if permit.trial:
            return permit is self._trial
        return self._state == CircuitState.CLOSED and permit.generation == self._generation

    def _open(self) -> None:
        self._opened_at = self._clock()
        self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.CLOSED:
            self._generation += 1
        if new_state == CircuitState.OPEN:
            logger.warning(
                f"Circuit '{self.name}' {old_state.value} -> open "
                f"after {self._failure_count} failure(s)"
            )
        else:
            logger.info(f"Circuit '{self.name}' {old_state.value} -> {new_state.value}")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.name}, "
            f"state={self._state.value}, "
            f"failures={self._failure_count})"
        )


_breaker: Optional[CircuitBreaker] = None
_breaker_lock = threading.Lock()


def get_circuit_breaker() -> CircuitBreaker:
    """Process-wide breaker for the generation backend, built from workflow settings."""
    global _breaker
    with _breaker_lock:
        if _breaker is None:
            from src.agents.question.config import get_workflow_settings

            settings = get_workflow_settings()
            _breaker = CircuitBreaker(
                failure_threshold=settings.failure_threshold,
                reset_timeout=settings.reset_timeout_seconds,
            )
        return _breaker


def reset_circuit_breaker() -> None:
    global _breaker
    with _breaker_lock:
        _breaker = None


__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "Permit",
    "get_circuit_breaker",
    "reset_circuit_breaker",
]
