"""Tests for the cache / shared store / fallback persistence tier."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

import pytest

from litestar_rollout import (
    CacheState,
    FeatureFlag,
    FlagCache,
    MemorySharedStore,
    PersistenceTier,
    StoreUnavailableError,
)
from litestar_rollout.serialization import dump_flag


class FlakyStore(MemorySharedStore):
    """Memory store that can be switched into failing or disconnected mode."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.connected = True
        self.calls: list[str] = []

    def is_connected(self) -> bool:
        return self.connected

    async def ping(self) -> bool:
        return not self.failing

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failing:
            raise StoreUnavailableError(operation, ConnectionError("connection refused"))

    async def get(self, key: str) -> str | None:
        self._check("get")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self._check("set")
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        self._check("delete")
        await super().delete(key)

    async def keys(self, pattern: str) -> list[str]:
        self._check("keys")
        return await super().keys(pattern)

    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        self._check("mget")
        return await super().mget(keys)


@pytest.fixture
def flaky() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def tier(flaky: FlakyStore, cache: FlagCache) -> PersistenceTier:
    return PersistenceTier(store=flaky, cache=cache)


class TestReads:
    """Tests for the read path."""

    async def test_missing_everywhere(self, persistence: PersistenceTier) -> None:
        assert await persistence.get_flag("missing") is None

    async def test_save_then_get(self, persistence: PersistenceTier, simple_flag: FeatureFlag) -> None:
        await persistence.save_flag(simple_flag)

        assert await persistence.get_flag("test-flag") == simple_flag
        assert await persistence.store.get("ff:test-flag") == dump_flag(simple_flag)

    async def test_cache_hit_skips_store(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag
    ) -> None:
        await tier.save_flag(simple_flag)
        flaky.calls.clear()

        assert await tier.get_flag("test-flag") == simple_flag
        assert flaky.calls == []

    async def test_store_read_populates_cache(
        self, persistence: PersistenceTier, store: MemorySharedStore, simple_flag: FeatureFlag
    ) -> None:
        await store.set("ff:test-flag", dump_flag(simple_flag))

        assert await persistence.get_flag("test-flag") == simple_flag
        assert persistence.cache.state("test-flag") is CacheState.FRESH

    async def test_store_read_does_not_populate_fallback(
        self, persistence: PersistenceTier, store: MemorySharedStore, simple_flag: FeatureFlag
    ) -> None:
        await store.set("ff:test-flag", dump_flag(simple_flag))

        await persistence.get_flag("test-flag")

        assert "test-flag" not in persistence.fallback

    async def test_out_of_band_change_visible_after_ttl(
        self, persistence: PersistenceTier, store: MemorySharedStore, clock, simple_flag: FeatureFlag
    ) -> None:
        """Test that another instance's write is seen once the cached copy is 30 seconds old."""
        await persistence.save_flag(simple_flag)
        await store.set("ff:test-flag", dump_flag(replace(simple_flag, enabled=False)))

        clock.advance(29)
        assert (await persistence.get_flag("test-flag")).enabled is True

        clock.advance(1)
        assert (await persistence.get_flag("test-flag")).enabled is False

    async def test_stale_entry_without_store_value_settles(
        self, persistence: PersistenceTier, store: MemorySharedStore, clock, simple_flag: FeatureFlag
    ) -> None:
        await persistence.save_flag(simple_flag)
        await store.delete("ff:test-flag")
        clock.advance(31)

        assert await persistence.get_flag("test-flag") == simple_flag
        assert persistence.cache.state("test-flag") is CacheState.STALE

    async def test_corrupt_payload_is_a_miss(
        self, persistence: PersistenceTier, store: MemorySharedStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        await store.set("ff:broken", "{not json")

        with caplog.at_level(logging.WARNING, logger="litestar_rollout.persistence"):
            assert await persistence.get_flag("broken") is None

        assert "Corrupt stored flag broken" in caplog.text

    async def test_mistyped_payload_falls_back(
        self, persistence: PersistenceTier, store: MemorySharedStore
    ) -> None:
        """Test that a killed flag stored with a string ``enabled`` is not switched back on."""
        persistence.register_fallback(FeatureFlag(key="kill", name="Kill", enabled=False))
        await store.set("ff:kill", '{"key":"kill","name":"Kill","enabled":"false","environments":"production"}')

        flag = await persistence.get_flag("kill")

        assert flag is not None
        assert flag.enabled is False
        assert flag.environments is None

    async def test_corrupt_payload_falls_back(
        self, persistence: PersistenceTier, store: MemorySharedStore
    ) -> None:
        persistence.register_fallback(FeatureFlag(key="broken", name="Broken", enabled=True))
        await store.set("ff:broken", '{"key": "broken"}')

        flag = await persistence.get_flag("broken")

        assert flag is not None
        assert flag.enabled is True

    async def test_outage_serves_fallback(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag, caplog: pytest.LogCaptureFixture
    ) -> None:
        tier.register_fallback(simple_flag)
        flaky.failing = True

        with caplog.at_level(logging.WARNING, logger="litestar_rollout.persistence"):
            assert await tier.get_flag("test-flag") == simple_flag

        assert "using fallback" in caplog.text

    async def test_disconnected_store_is_not_called(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag
    ) -> None:
        tier.register_fallback(simple_flag)
        flaky.connected = False

        assert await tier.get_flag("test-flag") == simple_flag
        assert flaky.calls == []


class TestGetAll:
    """Tests for enumerating flags."""

    async def test_lists_prefixed_keys_only(
        self, persistence: PersistenceTier, store: MemorySharedStore, simple_flag: FeatureFlag
    ) -> None:
        await persistence.save_flag(simple_flag)
        await store.set("other:thing", "{}")

        assert [f.key for f in await persistence.get_all_flags()] == ["test-flag"]

    async def test_empty_store(self, persistence: PersistenceTier) -> None:
        assert await persistence.get_all_flags() == []

    async def test_skips_corrupt_entries(
        self, persistence: PersistenceTier, store: MemorySharedStore, simple_flag: FeatureFlag
    ) -> None:
        await persistence.save_flag(simple_flag)
        await store.set("ff:broken", "{not json")

        assert [f.key for f in await persistence.get_all_flags()] == ["test-flag"]

    async def test_outage_returns_fallback(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag, flag_with_rules: FeatureFlag
    ) -> None:
        await tier.save_flag(simple_flag)
        tier.register_fallback(flag_with_rules)
        flaky.failing = True

        assert {f.key for f in await tier.get_all_flags()} == {"test-flag", "rules-flag"}


class TestWrites:
    """Tests for save and delete."""

    async def test_save_during_outage_is_local_only(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag, caplog: pytest.LogCaptureFixture
    ) -> None:
        flaky.failing = True

        with caplog.at_level(logging.WARNING, logger="litestar_rollout.persistence"):
            await tier.save_flag(simple_flag)

        assert "saved locally only" in caplog.text
        assert await tier.get_flag("test-flag") == simple_flag
        flaky.failing = False
        assert await flaky.get("ff:test-flag") is None

    async def test_save_while_disconnected(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag
    ) -> None:
        flaky.connected = False

        await tier.save_flag(simple_flag)

        assert flaky.calls == []
        assert "test-flag" in tier.fallback

    async def test_delete_clears_every_tier(
        self, persistence: PersistenceTier, store: MemorySharedStore, simple_flag: FeatureFlag
    ) -> None:
        await persistence.save_flag(simple_flag)

        await persistence.delete_flag("test-flag")

        assert "test-flag" not in persistence.cache
        assert "test-flag" not in persistence.fallback
        assert await store.get("ff:test-flag") is None
        assert await persistence.get_flag("test-flag") is None

    async def test_delete_during_outage_clears_local_tiers(
        self, tier: PersistenceTier, flaky: FlakyStore, simple_flag: FeatureFlag
    ) -> None:
        await tier.save_flag(simple_flag)
        flaky.failing = True

        await tier.delete_flag("test-flag")

        assert "test-flag" not in tier.cache
        assert "test-flag" not in tier.fallback

    async def test_custom_prefix(self, store: MemorySharedStore, simple_flag: FeatureFlag) -> None:
        tier = PersistenceTier(store=store, prefix="flags:")

        await tier.save_flag(simple_flag)

        assert await store.keys("flags:*") == ["flags:test-flag"]
        assert tier.storage_key("x") == "flags:x"

    async def test_close_closes_store(self, persistence: PersistenceTier, store: MemorySharedStore) -> None:
        await store.set("ff:a", "1")
        await persistence.close()
        assert await store.get("ff:a") is None
