"""Shared store implementations and the local fallback registry."""

from __future__ import annotations

from litestar_rollout.storage.base import SharedStore
from litestar_rollout.storage.fallback import FallbackRegistry
from litestar_rollout.storage.memory import MemorySharedStore

__all__ = ("FallbackRegistry", "MemorySharedStore", "SharedStore")
