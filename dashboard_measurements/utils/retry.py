import asyncio
import random
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def backoff_delay(
    attempt: int, base_delay: float, max_delay: float, jitter: float
) -> float:
    """Seconds to wait after failed attempt ``attempt`` (1-based).

    The delay doubles per attempt up to ``max_delay``, plus up to ``jitter``
    of itself at random so concurrent callers spread out.
    """
    delay = min(base_delay * 2 ** (attempt - 1), max_delay)
    return delay + random.uniform(0, delay * jitter)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    retries: int = 5,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    retry_on: Iterable[type[BaseException]] = (Exception,),
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
) -> T:
    """Await ``func`` until it succeeds or ``retries`` attempts have failed.

    Only ``retry_on`` errors are retried; the last one is re-raised.
    ``on_retry(attempt, error, delay)`` runs before each wait.
    """
    retryable = tuple(retry_on)
    attempt = 1
    while True:
        try:
            return await func()
        except retryable as exc:  # type: ignore[misc]
            if attempt >= retries:
                raise
            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            if on_retry:
                on_retry(attempt, exc, delay)
            await asyncio.sleep(delay)
            attempt += 1
