"""Consecutive-failure circuit breaker for external dependencies.

One breaker exists per dependency for the lifetime of the process. Counters
are guarded by a lock so concurrent extractions observe a consistent
open/closed state without otherwise serializing.
"""

from collections.abc import Callable
from dataclasses import dataclass
import logging
import math
import threading
import time

from recipe_extract import constants
from recipe_extract.exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CircuitBreakerState:
    """Point-in-time snapshot of a breaker."""

    consecutive_failures: int
    last_failure_time: float | None
    is_open: bool
    threshold: int
    cooldown: float


class CircuitBreaker:
    """Short-circuits calls after ``threshold`` consecutive failures.

    While open and inside the cooldown, ``before()`` returns False. Once the
    cooldown has elapsed since the last failure, exactly one caller is let
    through as a probe; its outcome either closes the breaker or re-opens it
    for another cooldown.
    """

    def __init__(
        self,
        name: str,
        *,
        threshold: int = constants.BREAKER_THRESHOLD,
        cooldown: float = constants.BREAKER_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        if cooldown <= 0:
            raise ValueError("cooldown must be > 0")
        self.name = name
        self.threshold = threshold
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._last_failure: float | None = None
        self._open = False
        self._probe_in_flight = False

    def before(self) -> bool:
        """Return True when a call to the dependency may proceed."""
        with self._lock:
            if not self._open:
                return True
            if self._probe_in_flight or self._remaining_locked() > 0:
                return False
            self._probe_in_flight = True
            logger.info("Circuit '%s' half-open: allowing one probe call", self.name)
            return True

    def on_success(self) -> None:
        with self._lock:
            if self._open:
                logger.info("Circuit '%s' closed after successful call", self.name)
            self._failures = 0
            self._open = False
            self._probe_in_flight = False

    def on_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure = self._clock()
            self._probe_in_flight = False
            if self._failures >= self.threshold and not self._open:
                logger.warning(
                    "Circuit '%s' opened after %d consecutive failures",
                    self.name,
                    self._failures,
                )
            self._open = self._failures >= self.threshold

    def release_probe(self) -> None:
        """Give up an admitted probe without recording an outcome.

        Used when the probing call is cancelled; the next caller after the
        cooldown is admitted as a fresh probe.
        """
        with self._lock:
            if self._probe_in_flight:
                logger.info("Circuit '%s' probe abandoned without an outcome", self.name)
            self._probe_in_flight = False

    def remaining_cooldown(self) -> float:
        """Seconds until the next probe is allowed; 0 when closed."""
        with self._lock:
            return self._remaining_locked() if self._open else 0.0

    def guard(self) -> None:
        """Raise ServiceUnavailable when ``before()`` refuses the call."""
        if self.before():
            return
        remaining = self.remaining_cooldown()
        raise ServiceUnavailable(
            f"The {self.name} service is temporarily unavailable due to recent "
            f"failures. Please try again in {math.ceil(remaining)} seconds.",
            retry_after=remaining,
        )

    def reset(self) -> None:
        with self._lock:
            self._failures = 0
            self._last_failure = None
            self._open = False
            self._probe_in_flight = False

    @property
    def state(self) -> CircuitBreakerState:
        with self._lock:
            return CircuitBreakerState(
                consecutive_failures=self._failures,
                last_failure_time=self._last_failure,
                is_open=self._open,
                threshold=self.threshold,
                cooldown=self.cooldown,
            )

    def _remaining_locked(self) -> float:
        if self._last_failure is None:
            return 0.0
        return max(0.0, self.cooldown - (self._clock() - self._last_failure))


_registry: dict[str, CircuitBreaker] = {}
_registry_lock = threading.Lock()


def get_breaker(
    name: str,
    *,
    threshold: int = constants.BREAKER_THRESHOLD,
    cooldown: float = constants.BREAKER_COOLDOWN,
) -> CircuitBreaker:
    """Return the process-wide breaker for ``name``, creating it on first use."""
    with _registry_lock:
        breaker = _registry.get(name)
        if breaker is None:
            breaker = CircuitBreaker(name, threshold=threshold, cooldown=cooldown)
            _registry[name] = breaker
        return breaker


def reset_breakers() -> None:
    """Reset every registered breaker."""
    with _registry_lock:
        breakers = list(_registry.values())
    for breaker in breakers:
        breaker.reset()
