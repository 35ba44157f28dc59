"""
Retry Module

Optimistic-concurrency helpers. Updates read the current object, apply a
mutation and write it back; when the write loses a race (ConflictError) the
whole read-mutate-write cycle runs again with a bounded backoff.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .constants import BootstrapConstants
from .exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class RetryPolicy:
    """
    Bounded backoff for conflict retries.

    Attributes:
        steps: Maximum number of attempts
        duration: Initial delay between attempts in seconds
        factor: Multiplier applied to the delay after each attempt
        jitter: Random extra delay, as a fraction of the current delay
    """
    steps: int = BootstrapConstants.RETRY_STEPS
    duration: float = BootstrapConstants.RETRY_DURATION
    factor: float = BootstrapConstants.RETRY_FACTOR
    jitter: float = BootstrapConstants.RETRY_JITTER

    @classmethod
    def no_retry(cls) -> 'RetryPolicy':
        """A policy that makes exactly one attempt."""
        return cls(steps=1, duration=0.0, factor=1.0, jitter=0.0)

    def delays(self):
        """Yield the sleep before each attempt after the first."""
        delay = self.duration
        for _ in range(max(self.steps - 1, 0)):
            wait = delay
            if self.jitter > 0:
                wait += random.uniform(0, self.jitter * delay)
            yield wait
            delay *= self.factor


def retry_on_conflict(policy: RetryPolicy, fn: Callable[[], T],
                      sleep: Callable[[float], None] = time.sleep) -> T:
    """
    Run fn, re-running it while it raises ConflictError.

    Args:
        policy: Retry bounds and backoff
        fn: Mutation to attempt; must re-read state on every call
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever fn returns on its first non-conflicting run

    Raises:
        ConflictError: If every attempt conflicted
        Exception: Any other error from fn, immediately
    """
    delays = policy.delays()
    attempt = 1
    while True:
        try:
            return fn()
        except ConflictError as e:
            wait = next(delays, None)
            if wait is None:
                logger.debug(f"Giving up after {attempt} conflicting attempt(s): {e}")
                raise
            logger.debug(f"Conflict on attempt {attempt}, retrying in {wait:.3f}s: {e}")
            sleep(wait)
            attempt += 1


def optimistic_update(read_current: Callable[[], T],
                      mutate: Callable[[T], Optional[T]],
                      write: Callable[[T], T],
                      policy: Optional[RetryPolicy] = None,
                      sleep: Callable[[float], None] = time.sleep) -> Optional[T]:
    """
    Read, mutate and write an object, retrying the cycle on conflict.

    Args:
        read_current: Returns the current stored object
        mutate: Returns the desired object, or None when no write is needed
        write: Persists the object and returns the stored result
        policy: Retry bounds (defaults to RetryPolicy())
        sleep: Sleep function (injectable for tests)

    Returns:
        The written object, or None when mutate reported nothing to change

    Raises:
        ConflictError: If the write kept conflicting until the policy was exhausted
    """
    def attempt() -> Optional[T]:
        desired = mutate(read_current())
        if desired is None:
            return None
        return write(desired)

    return retry_on_conflict(policy or RetryPolicy(), attempt, sleep=sleep)
