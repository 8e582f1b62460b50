"""
Resilience services.

Usage:
    from src.services.resilience import get_circuit_breaker

    breaker = get_circuit_breaker()
    permit = breaker.acquire()
    if permit is not None:
        ...
        breaker.record_success(permit)
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    Permit,
    get_circuit_breaker,
    reset_circuit_breaker,
)

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "Permit",
    "get_circuit_breaker",
    "reset_circuit_breaker",
]
