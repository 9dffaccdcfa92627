"""Configuration for the feature flag service and Litestar plugin."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from litestar_rollout.cache import DEFAULT_CACHE_TTL
from litestar_rollout.engine import DEFAULT_ENVIRONMENT
from litestar_rollout.exceptions import ConfigurationError
from litestar_rollout.persistence import DEFAULT_KEY_PREFIX

if TYPE_CHECKING:
    from redis.asyncio import Redis

__all__ = ("ENVIRONMENT_VARIABLE", "FeatureFlagsConfig")

ENVIRONMENT_VARIABLE = "FEATURE_FLAGS_ENVIRONMENT"

Backend = Literal["memory", "redis"]


def _default_environment() -> str:
    return os.environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_ENVIRONMENT


@dataclass
class FeatureFlagsConfig:
    """Settings for :class:`~litestar_rollout.service.FeatureFlagService`.

    Attributes:
        backend: ``"memory"`` for a process-local store, ``"redis"`` for a shared one.
        redis_url: Connection URL used when ``backend="redis"`` and no client is given.
        redis_client: Pre-built ``redis.asyncio`` client; takes precedence over ``redis_url``.
        key_prefix: Prefix of the keys holding serialized flags.
        cache_ttl: Seconds a flag read from the shared store is served from the local cache.
        cache_max_size: Upper bound on cached flags, ``None`` for unbounded.
        default_environment: Environment assumed when a context carries none. Read
            from ``FEATURE_FLAGS_ENVIRONMENT`` by default.
        reconnect_interval: Seconds to skip the shared store after a connection failure.
        socket_timeout: Redis socket timeout in seconds for clients built from ``redis_url``.
        bootstrap: Default flags, as a mapping with a ``flags`` list or a path to a JSON file.
        dependency_key: Name under which the service is injected into route handlers.
        state_key: Attribute of ``app.state`` holding the service.
    """

    backend: Backend = "memory"
    redis_url: str | None = None
    redis_client: Redis | None = None
    key_prefix: str = DEFAULT_KEY_PREFIX
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_max_size: int | None = None
    default_environment: str = field(default_factory=_default_environment)
    reconnect_interval: float = 5.0
    socket_timeout: float | None = None
    bootstrap: Mapping[str, Any] | str | Path | None = None
    dependency_key: str = "feature_flags"
    state_key: str = "feature_flags"

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "redis"):
            raise ConfigurationError(f"Unknown backend {self.backend!r}, expected 'memory' or 'redis'")
        if self.backend == "redis" and self.redis_url is None and self.redis_client is None:
            raise ConfigurationError("The redis backend requires redis_url or redis_client")
        if self.cache_ttl <= 0:
            raise ConfigurationError(f"cache_ttl must be positive, got {self.cache_ttl!r}")
        if self.cache_max_size is not None and self.cache_max_size < 1:
            raise ConfigurationError(f"cache_max_size must be at least 1, got {self.cache_max_size!r}")
