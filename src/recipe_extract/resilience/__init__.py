"""Failure isolation: circuit breaking and bounded retries."""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerState,
    get_breaker,
    reset_breakers,
)
from .retry import BackoffPolicy, RetryResult, Wait, retry

__all__ = [
    "BackoffPolicy",
    "CircuitBreaker",
    "CircuitBreakerState",
    "RetryResult",
    "Wait",
    "get_breaker",
    "reset_breakers",
    "retry",
]
