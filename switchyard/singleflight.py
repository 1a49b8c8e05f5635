"""
Single-flight: at most one in-progress execution per key.

Concurrent callers asking for the same key share one future. The future is
forgotten once it settles, so the next call after completion starts fresh.
Callers that want to remember results (or failures) do so themselves.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar


T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Example:
        flight = SingleFlight()
        router = await flight.do("po", build_router)
    """

    def __init__(self):
        self._calls: Dict[Hashable, "asyncio.Future[T]"] = {}

    def start(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """
        Return the in-flight future for ``key``, starting ``fn()`` if there is none.

        Must be called with a running event loop.
        """
        future = self._calls.get(key)
        if future is None:
            future = asyncio.ensure_future(fn())
            self._calls[key] = future
            future.add_done_callback(lambda done, key=key: self._settled(key, done))
        return future

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Await the shared execution for ``key``.

        A cancelled caller does not cancel the shared execution.
        """
        return await asyncio.shield(self.start(key, fn))

    def pending(self, key: Hashable) -> Optional["asyncio.Future[T]"]:
        return self._calls.get(key)

    def forget(self, key: Hashable) -> None:
        """Drop the in-flight future; later callers start a new execution."""
        self._calls.pop(key, None)

    def forget_all(self) -> None:
        self._calls.clear()

    def _settled(self, key: Hashable, future: "asyncio.Future[Any]") -> None:
        if self._calls.get(key) is future:
            del self._calls[key]
        # Mark the exception retrieved when every waiter has gone away
        if not future.cancelled():
            future.exception()
