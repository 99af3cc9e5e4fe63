"""Exponential backoff for transient API failures, on top of tenacity.

``on`` takes exception classes or any tenacity retry strategy, so strategies
combine with ``|`` and ``&``.

Example:
    from tenacity import retry_if_exception_message
    from gcengine.infra.retry import on_status_code, retry

    @retry(on=on_status_code(429, 503) | retry_if_exception_message(match=".*rateLimitExceeded.*"))
    async def list_zones():
        ...
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_base,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)

log = logger.bind(component="retry")


def on_status_code(*codes: int) -> retry_if_exception:
    """Retry on exceptions whose ``status`` attribute is one of ``codes``."""
    return retry_if_exception(lambda e: getattr(e, "status", None) in codes)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    log.warning(
        "Retry {n}/{total} after {kind}: {error}. Waiting {delay:.1f}s",
        n=state.attempt_number, total=state.retry_object.stop.max_attempt_number,
        kind=type(error).__name__, error=error,
        delay=state.next_action.sleep if state.next_action else 0.0,
    )


def retrying(
    on: type[Exception] | tuple[type[Exception], ...] | retry_base = Exception,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 60.0,
    jitter: bool = True,
) -> AsyncRetrying:
    """Retry controller waiting ``base_delay * exponential_base ** n`` seconds before retry ``n + 1``.

    Args:
        on: Exception classes, or a tenacity retry strategy deciding whether a
            failure is retried.
        max_attempts: Maximum number of attempts, including the first one.
        base_delay: Delay before the first retry, in seconds.
        exponential_base: Multiplier applied per attempt.
        max_delay: Cap for a single delay.
        jitter: Add up to 10% of ``base_delay`` at random to each delay.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(
            initial=base_delay,
            max=max_delay,
            exp_base=exponential_base,
            jitter=base_delay * 0.1 if jitter else 0.0,
        ),
        retry=on if isinstance(on, retry_base) else retry_if_exception_type(on),
        before_sleep=_log_retry,
        reraise=True,
    )


def retry[**P, T](
    on: type[Exception] | tuple[type[Exception], ...] | retry_base = Exception,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 60.0,
    jitter: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator form of :func:`retrying` for async functions."""

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async for attempt in retrying(on, max_attempts, base_delay, exponential_base, max_delay, jitter):
                with attempt:
                    return await func(*args, **kwargs)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
