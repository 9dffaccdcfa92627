"""In-memory shared store for development and single-process deployments."""

from __future__ import annotations

from collections.abc import Sequence
from fnmatch import fnmatchcase

__all__ = ("MemorySharedStore",)


class MemorySharedStore:
    """A :class:`~litestar_rollout.storage.base.SharedStore` backed by a dict.

    Always connected. Nothing is shared between processes.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def is_connected(self) -> bool:
        return True

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in self._data if fnmatchcase(key, pattern)]

    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        return [self._data.get(key) for key in keys]

    async def close(self) -> None:
        self._data.clear()
