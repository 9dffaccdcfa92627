"""Redis-backed shared store."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from litestar_rollout.exceptions import StoredValueError, StoreUnavailableError

__all__ = ("RedisSharedStore",)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode(key: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StoredValueError(key, str(exc)) from exc
    return str(value)


class RedisSharedStore:
    """:class:`~litestar_rollout.storage.base.SharedStore` over ``redis.asyncio``.

    Connection and timeout failures are raised as
    :class:`~litestar_rollout.exceptions.StoreUnavailableError`. After a failure
    the store reports itself disconnected for ``reconnect_interval`` seconds so
    callers go straight to their fallback instead of paying for a timeout on
    every read.

    Args:
        redis: An ``redis.asyncio.Redis`` client.
        reconnect_interval: Seconds to stay disconnected after a failure.
        owns_client: Close the client in :meth:`close`.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        redis: Redis,
        reconnect_interval: float = 5.0,
        owns_client: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis = redis
        self.reconnect_interval = reconnect_interval
        self._owns_client = owns_client
        self._clock = clock
        self._failed_at: float | None = None

    @classmethod
    def from_url(
        cls,
        url: str,
        reconnect_interval: float = 5.0,
        socket_timeout: float | None = None,
    ) -> RedisSharedStore:
        """Create a store owning a new client connected to ``url``."""
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(redis=client, reconnect_interval=reconnect_interval, owns_client=True)

    @property
    def client(self) -> Redis:
        return self._redis

    def is_connected(self) -> bool:
        if self._failed_at is None:
            return True
        return self._clock() - self._failed_at >= self.reconnect_interval

    async def _call(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await func()
        except (RedisError, OSError) as exc:
            if self._failed_at is None:
                logger.warning("Lost connection to Redis during %s", operation, extra={"error": str(exc)})
            self._failed_at = self._clock()
            raise StoreUnavailableError(operation, exc) from exc
        if self._failed_at is not None:
            logger.info("Reconnected to Redis")
            self._failed_at = None
        return result

    async def get(self, key: str) -> str | None:
        """Read ``key``.

        Raises:
            StoredValueError: The stored value is not valid UTF-8.
        """
        try:
            value = await self._call("get", lambda: self._redis.get(key))
        except UnicodeDecodeError as exc:
            raise StoredValueError(key, str(exc)) from exc
        return _decode(key, value)

    async def set(self, key: str, value: str) -> None:
        await self._call("set", lambda: self._redis.set(key, value))

    async def delete(self, key: str) -> None:
        await self._call("delete", lambda: self._redis.delete(key))

    async def keys(self, pattern: str) -> list[str]:
        async def scan() -> list[str]:
            found: list[str] = []
            async for raw in self._redis.scan_iter(match=pattern):
                key = _decode(pattern, raw)
                if key:
                    found.append(key)
            return found

        try:
            return await self._call("keys", scan)
        except UnicodeDecodeError as exc:
            raise StoredValueError(pattern, str(exc)) from exc

    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        """Read several keys; values that are not valid UTF-8 come back as ``None``."""
        if not keys:
            return []
        try:
            values = await self._call("mget", lambda: self._redis.mget(list(keys)))
        except UnicodeDecodeError:
            # a decoding client fails the whole reply, so retry key by key
            return [await self._get_or_none(key) for key in keys]
        return [self._text_or_none(key, value) for key, value in zip(keys, values, strict=True)]

    async def _get_or_none(self, key: str) -> str | None:
        try:
            return await self.get(key)
        except StoredValueError as exc:
            logger.warning("Skipping undecodable value at %s", key, extra={"key": key, "error": exc.reason})
            return None

    def _text_or_none(self, key: str, value: Any) -> str | None:
        try:
            return _decode(key, value)
        except StoredValueError as exc:
            logger.warning("Skipping undecodable value at %s", key, extra={"key": key, "error": exc.reason})
            return None

    async def ping(self) -> bool:
        """Round-trip health probe; never raises."""
        try:
            await self._call("ping", self._redis.ping)
        except StoreUnavailableError:
            return False
        return True

    async def close(self) -> None:
        if self._owns_client:
            await self._redis.aclose()
