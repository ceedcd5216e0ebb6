"""Bounded exponential-backoff executor for collaborator calls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .errors import is_retryable

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 8.0

RetryObserver = Callable[[int, BaseException], None]


def execute_with_retry(
    operation: Callable[[], T],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS,
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
    jitter: float = 0.0,
    on_retry: Optional[RetryObserver] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation`` until it succeeds or the retry budget is exhausted.

    The operation runs at most ``max_retries + 1`` times. Attempt ``n`` is
    followed by a wait of ``initial_delay * 2 ** (n - 1)`` seconds (capped at
    ``max_delay``) plus up to ``jitter`` seconds of noise. Errors explicitly
    marked non-retryable are re-raised after the first attempt, and the last
    error is re-raised unchanged once retries run out.
    """
    if max_retries < 0:
        raise ValueError("max_retries cannot be negative")

    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if on_retry is not None and error is not None:
            on_retry(retry_state.attempt_number, error)

    wait = wait_exponential(multiplier=initial_delay, exp_base=2, max=max_delay)
    if jitter > 0:
        wait = wait + wait_random(0, jitter)

    retrying = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait,
        retry=retry_if_exception(is_retryable),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)


def log_retry(label: str) -> RetryObserver:
    """Observer that records each retry as a warning under ``label``."""

    def _observer(attempt: int, error: BaseException) -> None:
        logger.warning("Retrying %s (attempt %s): %s", label, attempt, error)

    return _observer


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget shared by every collaborator call in a generation run."""

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    jitter: float = 0.0
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_settings(cls, settings: "Settings", *, sleep: Callable[[float], None] = time.sleep) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay=settings.retry_initial_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter=settings.retry_jitter_seconds,
            sleep=sleep,
        )

    def run(self, operation: Callable[[], T], label: str) -> T:
        return execute_with_retry(
            operation,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            on_retry=log_retry(label),
            sleep=self.sleep,
        )


__all__ = [
    "DEFAULT_INITIAL_DELAY_SECONDS",
    "DEFAULT_MAX_DELAY_SECONDS",
    "DEFAULT_MAX_RETRIES",
    "RetryPolicy",
    "execute_with_retry",
    "log_retry",
]
