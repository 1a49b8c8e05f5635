"""
Shared resource provider.

Holds the process-wide persistence client handle (database client, pool,
...). The handle is created once per process and shared by every entry
point's container. Concurrent first requests wait on one connection
attempt; a failed attempt is not cached, so the next request tries again.
"""

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

from .singleflight import SingleFlight


logger = logging.getLogger("switchyard.data")

Connector = Callable[[], Union[Any, Awaitable[Any]]]


class SharedResourceProvider:
    """
    Lazily connects and caches one shared handle.

    Args:
        connect: Creates the handle; may be sync or async
        close: Optional hook that releases the handle
        name: Label used in logs

    Example:
        async def connect():
            client = Client(settings.database_url)
            await client.connect()
            return client

        resources = SharedResourceProvider(connect, close=lambda c: c.disconnect())
    """

    def __init__(
        self,
        connect: Connector,
        *,
        close: Optional[Callable[[Any], Any]] = None,
        name: str = "shared-resource",
    ):
        self._connect = connect
        self._close = close
        self.name = name
        self._handle: Any = None
        self._flight: SingleFlight = SingleFlight()

    @property
    def connected(self) -> bool:
        return self._handle is not None

    async def get(self) -> Any:
        """Return the handle, connecting on first use."""
        if self._handle is not None:
            return self._handle
        return await self._flight.do(self.name, self._create)

    async def _create(self) -> Any:
        started = time.perf_counter()
        logger.info("Connecting %s...", self.name)
        try:
            handle = self._connect()
            if inspect.isawaitable(handle):
                handle = await handle
        except Exception:
            logger.error("Failed to connect %s", self.name, exc_info=True)
            raise

        self._handle = handle
        logger.info(
            "%s connected in %.1fms", self.name, (time.perf_counter() - started) * 1000,
        )
        return handle

    async def close(self) -> None:
        """Release the handle; the next ``get()`` reconnects."""
        handle, self._handle = self._handle, None
        self._flight.forget(self.name)
        if handle is None or self._close is None:
            return
        try:
            result = self._close(handle)
            if inspect.isawaitable(result):
                await result
            logger.info("%s closed", self.name)
        except Exception:
            logger.warning("Error closing %s", self.name, exc_info=True)

    def reset(self) -> None:
        """Forget the cached handle without closing it."""
        self._handle = None
        self._flight.forget(self.name)
