"""Process-local last-known-good flag registry."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from litestar_rollout.models.flag import FeatureFlag

__all__ = ("FallbackRegistry",)


class FallbackRegistry:
    """Flags written by this process, served when the shared store is unavailable.

    Lives only as long as the process. Writes cannot fail.
    """

    def __init__(self) -> None:
        self._flags: dict[str, FeatureFlag] = {}

    def __len__(self) -> int:
        return len(self._flags)

    def __contains__(self, key: object) -> bool:
        return key in self._flags

    def __iter__(self) -> Iterator[FeatureFlag]:
        return iter(list(self._flags.values()))

    def get(self, key: str) -> FeatureFlag | None:
        return self._flags.get(key)

    def set(self, flag: FeatureFlag) -> None:
        self._flags[flag.key] = flag

    def delete(self, key: str) -> None:
        self._flags.pop(key, None)

    def values(self) -> list[FeatureFlag]:
        return list(self._flags.values())

    def clear(self) -> None:
        self._flags.clear()
