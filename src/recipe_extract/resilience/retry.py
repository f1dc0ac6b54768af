"""Retry combinator shared by the polling and query loops.

An operation is retried while a classifier maps its exception to a backoff;
a ``None`` classification is fatal and re-raises immediately. ``Wait``
classifications (e.g. "not ready yet") sleep without spending the error
budget and reset the consecutive-error count.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
import random
import time

from recipe_extract.exceptions import ProcessingTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Linear backoff: ``base + step * n + U(0, jitter)`` for the n-th error."""

    step: float
    base: float = 0.0
    jitter: float = 0.0

    def delay(self, error_number: int, rng: Callable[[], float] = random.random) -> float:
        jitter = rng() * self.jitter if self.jitter > 0 else 0.0
        return self.base + self.step * error_number + jitter


@dataclass(frozen=True, slots=True)
class Wait:
    """Retry after ``seconds`` without counting an error."""

    seconds: float


type Classification = BackoffPolicy | Wait | None


@dataclass(frozen=True, slots=True)
class RetryResult[T]:
    """Value of the successful attempt and the number of error retries spent."""

    value: T
    retries: int
    attempts: int


async def retry[T](
    operation: Callable[[], Awaitable[T]],
    *,
    classify: Callable[[Exception], Classification],
    max_retries: int,
    deadline: float | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
    label: str = "operation",
) -> RetryResult[T]:
    """Run ``operation`` until it succeeds, fails fatally, or exhausts its budget.

    Args:
        operation: Zero-argument coroutine factory, invoked once per attempt.
        classify: Maps an exception to a ``BackoffPolicy`` (transient error),
            ``Wait`` (not an error, try again later) or ``None`` (fatal).
        max_retries: Consecutive transient errors tolerated before the last
            one is re-raised. ``max_retries + 1`` erroring attempts are made.
        deadline: Optional ``clock()`` value after which no further sleep is
            started; crossing it raises ProcessingTimeout.

    Cancellation of the surrounding task propagates out of the sleep.
    """
    consecutive_errors = 0
    retries = 0
    attempts = 0
    while True:
        attempts += 1
        try:
            value = await operation()
        except Exception as exc:
            decision = classify(exc)
            if decision is None:
                raise
            if isinstance(decision, Wait):
                consecutive_errors = 0
                delay = decision.seconds
            else:
                consecutive_errors += 1
                if consecutive_errors > max_retries:
                    logger.warning(
                        "%s failed after %d retries: %s", label, retries, exc
                    )
                    raise
                retries += 1
                delay = decision.delay(consecutive_errors, rng)
                logger.info(
                    "%s transient failure (%d/%d), retrying in %.1fs: %s",
                    label,
                    consecutive_errors,
                    max_retries,
                    delay,
                    exc,
                )
            if deadline is not None and clock() + delay > deadline:
                raise ProcessingTimeout(
                    f"{label} did not complete within its time budget"
                ) from exc
            await sleep(delay)
        else:
            return RetryResult(value=value, retries=retries, attempts=attempts)
