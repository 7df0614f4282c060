"""Bounded retry with exponential backoff for startup connections."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from src.core.errors import BridgeError, StartupError

logger = structlog.get_logger()

T = TypeVar("T")


def backoff_delays(attempts: int, initial_delay: float, max_delay: float) -> list[float]:
    """Delays slept between consecutive attempts (one fewer than attempts)."""
    delays = []
    delay = initial_delay
    for _ in range(max(attempts - 1, 0)):
        delays.append(min(delay, max_delay))
        delay *= 2
    return delays


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    target: str,
    attempts: int = 5,
    initial_delay: float = 0.5,
    max_delay: float = 10.0,
    retry_on: tuple[type[BaseException], ...] = (BridgeError, OSError),
    stop_event: asyncio.Event | None = None,
) -> T:
    """Run operation until it succeeds or attempts are exhausted.

    Raises StartupError once every attempt has failed, or if stop_event is
    set while waiting between attempts.
    """
    attempts = max(attempts, 1)
    delays = backoff_delays(attempts, initial_delay, max_delay)
    last_error: BaseException | None = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            last_error = e
            logger.warning(
                "Connection attempt failed",
                target=target,
                attempt=attempt,
                attempts=attempts,
                error=str(e),
            )

        if attempt == attempts:
            break

        delay = delays[attempt - 1]
        if stop_event is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
                raise StartupError(target, attempt, last_error)
            except asyncio.TimeoutError:
                pass

    raise StartupError(target, attempts, last_error)
