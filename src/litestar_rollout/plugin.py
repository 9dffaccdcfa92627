"""Litestar plugin wiring a :class:`FeatureFlagService` into an application."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from litestar_rollout.bootstrap import BootstrapLoader
from litestar_rollout.config import FeatureFlagsConfig
from litestar_rollout.context import EvaluationContext
from litestar_rollout.exceptions import ConfigurationError
from litestar_rollout.service import FeatureFlagService

if TYPE_CHECKING:
    from litestar import Litestar
    from litestar.config.app import AppConfig

__all__ = ("FeatureFlagsPlugin",)

logger = logging.getLogger(__name__)


class FeatureFlagsPlugin(InitPluginProtocol):
    """Create the flag service on startup and inject it into route handlers.

    The service is stored on ``app.state`` under ``config.state_key`` and
    provided as a dependency named ``config.dependency_key``. No routes are
    registered.

    Example:
        >>> app = Litestar(route_handlers=[...], plugins=[FeatureFlagsPlugin()])
    """

    __slots__ = ("_config", "_service")

    def __init__(self, config: FeatureFlagsConfig | None = None) -> None:
        self._config = config or FeatureFlagsConfig()
        self._service: FeatureFlagService | None = None

    @property
    def config(self) -> FeatureFlagsConfig:
        return self._config

    @property
    def service(self) -> FeatureFlagService | None:
        """The running service, ``None`` outside the application lifespan."""
        return self._service

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        app_config.dependencies[self._config.dependency_key] = Provide(self._provide_service, sync_to_thread=False)
        app_config.lifespan.append(self._lifespan)
        app_config.signature_namespace.update(
            {"FeatureFlagService": FeatureFlagService, "EvaluationContext": EvaluationContext}
        )
        return app_config

    def _provide_service(self) -> FeatureFlagService:
        if self._service is None:
            raise ConfigurationError("Feature flag service requested outside the application lifespan")
        return self._service

    @asynccontextmanager
    async def _lifespan(self, app: Litestar) -> AsyncGenerator[None, None]:
        service = FeatureFlagService.from_config(self._config)
        if self._config.bootstrap is not None:
            service.register_default_flags(BootstrapLoader().load(self._config.bootstrap))
        self._service = service
        setattr(app.state, self._config.state_key, service)
        logger.debug("Feature flag service started with %s backend", self._config.backend)
        try:
            yield
        finally:
            await service.close()
            self._service = None
