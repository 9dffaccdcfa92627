"""Protocol for the shared key-value store holding serialized flags."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

__all__ = ("SharedStore",)


@runtime_checkable
class SharedStore(Protocol):
    """Network-accessible key-value store shared by every service instance.

    Implementations raise :class:`~litestar_rollout.exceptions.StoreUnavailableError`
    when the store cannot be reached, and
    :class:`~litestar_rollout.exceptions.StoredValueError` from ``get`` and
    ``keys`` when stored bytes are not valid UTF-8. ``is_connected`` is a cheap,
    non-blocking probe consulted before each round trip; ``ping`` makes an actual
    round trip and never raises.
    """

    def is_connected(self) -> bool: ...

    async def ping(self) -> bool: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def mget(self, keys: Sequence[str]) -> list[str | None]: ...

    async def close(self) -> None: ...
