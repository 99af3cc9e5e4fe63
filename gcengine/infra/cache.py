"""In-process async caches: a memoized supplier and a single-flight keyed cache."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

type ExceptionTypes = type[BaseException] | tuple[type[BaseException], ...]

_MISSING = object()


class Memoized[T]:
    """Memoizing async supplier with expiry.

    Loads are retried on ``retry_on`` errors (timeouts by default). Errors in
    ``never_retry_on`` are remembered and re-raised on every later call
    without touching the remote side again, so a rejected credential is not
    hammered until the entry is invalidated. Other failures are not cached.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        *,
        ttl: float,
        attempts: int = 3,
        retry_on: ExceptionTypes = TimeoutError,
        never_retry_on: ExceptionTypes = (),
        wait: float = 1.0,
        name: str = "supplier",
    ) -> None:
        self._loader = loader
        self._ttl = ttl
        self._attempts = attempts
        self._retry_on = retry_on
        self._never_retry_on = never_retry_on
        self._wait = wait
        self._value: object = _MISSING
        self._expires_at = 0.0
        self._sticky: BaseException | None = None
        self._lock = asyncio.Lock()
        self._log = logger.bind(component="cache", name=name)

    def _fresh(self) -> bool:
        return self._value is not _MISSING and asyncio.get_running_loop().time() < self._expires_at

    async def get(self) -> T:
        if self._sticky is not None:
            raise self._sticky
        if self._fresh():
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if self._sticky is not None:
                raise self._sticky
            if self._fresh():
                return self._value  # type: ignore[return-value]

            try:
                value = await self._load()
            except self._never_retry_on as e:
                self._log.warning("Load failed permanently: {error}", error=e)
                self._sticky = e
                raise

            self._value = value
            self._expires_at = asyncio.get_running_loop().time() + self._ttl
            return value

    async def _load(self) -> T:
        def before_sleep(state: RetryCallState) -> None:
            self._log.debug(
                "Load attempt {n} failed: {error}",
                n=state.attempt_number, error=state.outcome.exception() if state.outcome else None,
            )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_fixed(self._wait),
            retry=(
                retry_if_exception_type(self._retry_on)
                & retry_if_not_exception_type(self._never_retry_on)
            ),
            before_sleep=before_sleep,
            reraise=True,
        ):
            with attempt:
                return await self._loader()
        raise AssertionError("unreachable")

    def invalidate(self) -> None:
        self._value = _MISSING
        self._sticky = None


class SingleFlightCache[K: Hashable, V]:
    """Keyed async cache running at most one load per key at a time.

    Concurrent callers for the same key share the in-flight load. Successful
    values are kept until invalidated; failures propagate to every waiter
    and are not cached.
    """

    def __init__(self, loader: Callable[[K], Awaitable[V]], *, name: str = "cache") -> None:
        self._loader = loader
        self._values: dict[K, V] = {}
        self._inflight: dict[K, asyncio.Future[V]] = {}
        self._log = logger.bind(component="cache", name=name)

    def cached(self, key: K) -> V | None:
        return self._values.get(key)

    def invalidate(self, key: K) -> None:
        self._values.pop(key, None)

    async def get(self, key: K) -> V:
        if key in self._values:
            return self._values[key]

        if (pending := self._inflight.get(key)) is not None:
            self._log.debug("Joining in-flight load for {key}", key=key)
            return await asyncio.shield(pending)

        future: asyncio.Future[V] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await self._loader(key)
        except Exception as e:
            future.set_exception(e)
            future.exception()  # mark retrieved when nobody else is waiting
            raise
        except BaseException:
            future.cancel()
            raise
        finally:
            self._inflight.pop(key, None)

        self._values[key] = value
        future.set_result(value)
        return value
