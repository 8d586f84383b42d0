"""
Helpers for awaiting remote operations.
`go` and `go_timeout` never raise: they return a Result holding either the
error or the value. `retry_operation` bounds each attempt with its own deadline.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_RETRY_TIMEOUT_SECONDS = 5.0
DEFAULT_RETRY_DELAY_SECONDS = 0.05


class Result(Generic[T]):
    """Either an error or a value, never both"""

    __slots__ = ("error", "value")

    def __init__(self, error: Optional[BaseException] = None, value: Optional[T] = None):
        self.error = error
        self.value = value

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self):
        yield self.error
        yield self.value

    def __repr__(self) -> str:
        if self.ok:
            return f"Result(value={self.value!r})"
        return f"Result(error={self.error!r})"


async def go(awaitable: Awaitable[T]) -> Result[T]:
    try:
        return Result(value=await awaitable)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return Result(error=e)


async def go_timeout(timeout: float, awaitable: Awaitable[T]) -> Result[T]:
    """Like `go`, cancelling the awaitable if it has not finished after `timeout` seconds"""
    return await go(asyncio.wait_for(awaitable, timeout))


async def retry_operation(
    attempts: int,
    operation: Callable[[], Awaitable[T]],
    timeouts: Optional[Sequence[float]] = None,
    delay: float = DEFAULT_RETRY_DELAY_SECONDS,
) -> T:
    """
    Run `operation` up to `attempts` times.

    Attempts counted here are on top of any retry inside the operation itself:
    `ChainClient` reads retry once on their own, so two attempts of a read can
    reach the RPC node up to four times.

    Args:
        attempts: Total number of attempts, at least 1
        operation: Factory producing a fresh awaitable for every attempt
        timeouts: Per-attempt deadlines in seconds; the last one is reused when
            there are more attempts than entries
        delay: Pause between a failed attempt and the next one

    Returns:
        The value of the first successful attempt

    Raises:
        The error of the last attempt when every attempt failed
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    last_error: Optional[BaseException] = None
    for attempt in range(attempts):
        timeout = _attempt_timeout(timeouts, attempt)
        try:
            return await asyncio.wait_for(operation(), timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            if attempt + 1 < attempts:
                await asyncio.sleep(delay)

    raise last_error


def _attempt_timeout(timeouts: Optional[Sequence[float]], attempt: int) -> float:
    if not timeouts:
        return DEFAULT_RETRY_TIMEOUT_SECONDS
    return timeouts[min(attempt, len(timeouts) - 1)]


def chunk(items: Sequence[Any], size: int) -> list:
    """Split items into consecutive lists of at most `size` elements"""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]
