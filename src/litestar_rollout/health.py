"""Health reporting for the flag service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from litestar_rollout.cache import CacheStats
from litestar_rollout.types import HealthStatus

__all__ = ("HealthCheckResult",)


@dataclass(slots=True)
class HealthCheckResult:
    """Snapshot of the service's persistence health.

    ``DEGRADED`` means the shared store is unreachable and evaluations are
    served from the local cache and fallback registry only.
    """

    status: HealthStatus
    store_connected: bool
    cache: CacheStats
    fallback_flags: int
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "storeConnected": self.store_connected,
            "cache": {
                "hits": self.cache.hits,
                "misses": self.cache.misses,
                "hitRate": round(self.cache.hit_rate, 4),
                "size": self.cache.size,
                "maxSize": self.cache.max_size,
            },
            "fallbackFlags": self.fallback_flags,
            "checkedAt": self.checked_at.isoformat(),
        }
