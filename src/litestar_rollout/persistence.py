"""Three-tier flag persistence: TTL cache, shared store, local fallback.

Reads go cache -> shared store -> fallback registry. Writes always land in the
cache and the fallback registry, then best-effort in the shared store. A failed
shared-store write is logged and swallowed, so while the store is degraded
other instances may keep serving the previous definition.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from litestar_rollout.cache import FlagCache
from litestar_rollout.exceptions import FlagDeserializationError, StoredValueError, StoreUnavailableError
from litestar_rollout.serialization import dump_flag, load_flag
from litestar_rollout.storage.fallback import FallbackRegistry
from litestar_rollout.types import CacheState

if TYPE_CHECKING:
    from litestar_rollout.models.flag import FeatureFlag
    from litestar_rollout.storage.base import SharedStore

__all__ = ("DEFAULT_KEY_PREFIX", "PersistenceTier")

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "ff:"


class PersistenceTier:
    """Owns the cache, the shared store client and the fallback registry.

    Args:
        store: Shared key-value store.
        cache: Read cache, defaults to a 30 second TTL cache.
        fallback: Local fallback registry.
        prefix: Key prefix for stored flags.
    """

    def __init__(
        self,
        store: SharedStore,
        cache: FlagCache | None = None,
        fallback: FallbackRegistry | None = None,
        prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else FlagCache()
        self.fallback = fallback if fallback is not None else FallbackRegistry()
        self.prefix = prefix

    def storage_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get_flag(self, key: str) -> FeatureFlag | None:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for flag %s", key)
            return cached

        logger.debug("Cache miss for flag %s", key)
        flag = await self._read_through(key)
        if flag is not None:
            return flag
        return self.fallback.get(key)

    async def _read_through(self, key: str) -> FeatureFlag | None:
        if not self.store.is_connected():
            return None

        stale = self.cache.state(key) is CacheState.STALE
        if stale:
            self.cache.mark_refetching(key)
        try:
            payload = await self.store.get(self.storage_key(key))
            if payload is None:
                return None
            flag = load_flag(key, payload)
        except StoreUnavailableError as exc:
            logger.warning(
                "Shared store error reading flag %s, using fallback",
                key,
                extra={"flag_key": key, "error": str(exc)},
            )
            return None
        except (FlagDeserializationError, StoredValueError) as exc:
            logger.warning(
                "Corrupt stored flag %s treated as missing",
                key,
                extra={"flag_key": key, "error": exc.reason},
            )
            return None
        finally:
            if stale:
                self.cache.settle(key)

        self.cache.set(flag)
        return flag

    async def get_all_flags(self) -> list[FeatureFlag]:
        """Every stored flag; the fallback registry when the store is unusable."""
        if self.store.is_connected():
            try:
                keys = await self.store.keys(f"{self.prefix}*")
                if not keys:
                    return []
                payloads = await self.store.mget(keys)
            except (StoreUnavailableError, StoredValueError) as exc:
                logger.warning("Shared store error listing flags, using fallback", extra={"error": str(exc)})
            else:
                return self._decode_all(keys, payloads)
        return self.fallback.values()

    def _decode_all(self, keys: list[str], payloads: list[str | None]) -> list[FeatureFlag]:
        flags: list[FeatureFlag] = []
        for storage_key, payload in zip(keys, payloads, strict=True):
            if payload is None:
                continue
            key = storage_key.removeprefix(self.prefix)
            try:
                flags.append(load_flag(key, payload))
            except FlagDeserializationError as exc:
                logger.warning("Skipping corrupt stored flag %s", key, extra={"flag_key": key, "error": exc.reason})
        return flags

    async def save_flag(self, flag: FeatureFlag) -> None:
        self.cache.set(flag)
        self.fallback.set(flag)

        if not self.store.is_connected():
            logger.warning(
                "Shared store disconnected, flag %s saved locally only", flag.key, extra={"flag_key": flag.key}
            )
            return
        try:
            await self.store.set(self.storage_key(flag.key), dump_flag(flag))
        except StoreUnavailableError as exc:
            logger.warning(
                "Shared store error saving flag %s, saved locally only",
                flag.key,
                extra={"flag_key": flag.key, "error": str(exc)},
            )

    async def delete_flag(self, key: str) -> None:
        self.cache.invalidate(key)
        self.fallback.delete(key)

        if not self.store.is_connected():
            logger.warning("Shared store disconnected, flag %s deleted locally only", key, extra={"flag_key": key})
            return
        try:
            await self.store.delete(self.storage_key(key))
        except StoreUnavailableError as exc:
            logger.warning(
                "Shared store error deleting flag %s, deleted locally only",
                key,
                extra={"flag_key": key, "error": str(exc)},
            )

    def register_fallback(self, flag: FeatureFlag) -> None:
        self.fallback.set(flag)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def close(self) -> None:
        await self.store.close()
