"""Retry engine with exponential backoff and explicit outcomes.

An operation reports each attempt as one of three outcomes:

- ``Success(value)`` ends the loop and returns ``value``.
- ``Continue(error)`` schedules another attempt; ``error`` is raised if the
  budget runs out.
- ``Stop(error)`` raises ``error`` immediately without further attempts.

Exceptions raised by the operation itself are treated like ``Continue``.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pydantic import Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from promotion_harness.models.base import Model

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    """Attempt failed but may succeed later."""

    error: BaseException


@dataclass(frozen=True)
class Stop:
    """Attempt failed permanently."""

    error: BaseException


@dataclass(frozen=True)
class Success[T]:
    """Attempt produced a value."""

    value: T


type Outcome[T] = Continue | Stop | Success[T]

type RetryHook = Callable[[BaseException, int], None]


class RetryPolicy(Model):
    """Retry budget and backoff shape.

    The delay before attempt n+1 is ``min(min_timeout * factor ** (n - 1),
    max_timeout)`` seconds, or a random value up to that bound when
    ``randomize`` is set.
    """

    retries: int = Field(default=3, ge=0)
    min_timeout: float = Field(default=1.0, ge=0)
    max_timeout: float = Field(default=30.0, ge=0)
    factor: float = Field(default=2.0, ge=1)
    randomize: bool = False

    @property
    def max_attempts(self) -> int:
        """Total number of times the operation may run."""
        return self.retries + 1

    def delay(self, attempt: int) -> float:
        """Upper bound of the delay after the given failed attempt."""
        return min(self.min_timeout * self.factor ** (attempt - 1), self.max_timeout)

    def wait_strategy(self) -> wait_base:
        """Build the tenacity wait strategy for this policy."""
        if self.randomize:
            return wait_random_exponential(
                multiplier=self.min_timeout,
                exp_base=self.factor,
                max=self.max_timeout,
            )
        return wait_exponential(
            multiplier=self.min_timeout,
            exp_base=self.factor,
            max=self.max_timeout,
        )


class _Bail(Exception):
    """Carries a Stop error through tenacity without being retried."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


async def retry[T](
    operation: Callable[[], Awaitable[Outcome[T]]],
    policy: RetryPolicy,
    *,
    on_retry: RetryHook | None = None,
) -> T:
    """Run an operation until it succeeds, bails or exhausts the policy.

    Args:
        operation: Async callable returning Continue, Stop or Success
        policy: Retry budget and backoff parameters
        on_retry: Called with the error and attempt number before each wait

    Returns:
        The value of the first Success outcome

    Raises:
        BaseException: The Stop error, or the last error once all attempts
            are used, propagated unchanged

    """

    def before_sleep(state: RetryCallState) -> None:
        if state.outcome is None:
            return
        error = state.outcome.exception()
        log.debug(
            "Attempt %d/%d failed: %s", state.attempt_number, policy.max_attempts, error
        )
        if on_retry is not None and error is not None:
            on_retry(error, state.attempt_number)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait_strategy(),
        retry=retry_if_not_exception_type(_Bail),
        before_sleep=before_sleep,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                outcome = await operation()
                match outcome:
                    case Success(value=value):
                        return value
                    case Stop(error=error):
                        raise _Bail(error)
                    case Continue(error=error):
                        raise error
    except _Bail as bail:
        stopped = bail.error
    else:
        raise RuntimeError("Retry loop ended without an outcome")

    raise stopped
