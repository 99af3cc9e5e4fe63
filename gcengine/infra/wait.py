"""Polling helpers for resources that settle asynchronously."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


async def wait_for_ready[T](
    poll_fn: Callable[[], Awaitable[T | None]],
    ready_check: Callable[[T], bool],
    *,
    terminal_check: Callable[[T], bool] | None = None,
    timeout: float = 300.0,
    interval: float = 5.0,
    description: str = "resource",
) -> T:
    """Poll until ``poll_fn`` returns something that passes ``ready_check``.

    A ``None`` poll result means "not visible yet" and is polled again.

    Args:
        poll_fn: Async function returning the current resource state.
        ready_check: Returns True once the resource is ready.
        terminal_check: Returns True if the resource reached a state it will
            never leave (e.g. TERMINATED while waiting for RUNNING).
        timeout: Maximum time to wait in seconds.
        interval: Fixed time between polls in seconds.
        description: Used in error messages.

    Raises:
        TimeoutError: If ``timeout`` elapses first.
        RuntimeError: If the resource reaches a terminal state.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        result = await poll_fn()

        if result is not None:
            if ready_check(result):
                return result
            if terminal_check is not None and terminal_check(result):
                raise RuntimeError(f"{description} reached terminal state: {result}")

        if loop.time() >= deadline:
            raise TimeoutError(f"Timeout waiting for {description} after {timeout:.1f}s")

        await asyncio.sleep(interval)
