"""Fraktal - Main SDK entry point."""

from __future__ import annotations

import httpx

from fraktal.core.config import Config
from fraktal.core.logging import configure_from_config, get_logger
from fraktal.events.registry import EventHandler
from fraktal.fabconnect.client import FabconnectClient
from fraktal.firefly.client import FireFlyClient
from fraktal.services.package import PackageService
from fraktal.services.role import RoleService


class Fraktal:
    """
    Main client for the fraktal SDK.

    Composes the FireFly client with the package and role services, plus a
    Fabconnect client when `fabconnect_url` is configured.

    Example:
        >>> async with Fraktal() as fraktal:
        ...     fraktal.on_event("CreatePackage", handle_created)
        ...     await fraktal.initialize()
        ...     await fraktal.packages.create_package(...)
    """

    def __init__(
        self,
        config: Config | None = None,
        log_level: int | str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Fraktal client.

        Args:
            config: Library configuration (read from FRAKTAL_* env vars if omitted)
            log_level: Logging level (default: the configured log_level)
            http_client: Shared httpx client for FireFly requests
        """
        self._config = config or Config.from_env()

        configure_from_config(self._config, level=log_level)
        self._logger = get_logger("client")
        self._logger.info(
            f"Initializing fraktal (FireFly: {self._config.firefly_url}, "
            f"namespace: {self._config.namespace})"
        )

        self._firefly = FireFlyClient(self._config, http_client=http_client)
        self._packages = PackageService(self._firefly, self._config)
        self._roles = RoleService(self._firefly, self._config)
        self._fabconnect = (
            FabconnectClient.from_config(self._config) if self._config.fabconnect_url else None
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def firefly(self) -> FireFlyClient:
        return self._firefly

    @property
    def packages(self) -> PackageService:
        return self._packages

    @property
    def roles(self) -> RoleService:
        return self._roles

    @property
    def fabconnect(self) -> FabconnectClient | None:
        """Fabconnect client, or None when no fabconnect_url is configured."""
        return self._fabconnect

    def on_event(self, event_name: str, handler: EventHandler) -> None:
        """Register a package event handler (see PackageService.on_event)."""
        self._packages.on_event(event_name, handler)

    async def initialize(self) -> None:
        """Initialize both services. Safe to call repeatedly."""
        await self._packages.initialize()
        await self._roles.initialize()
        self._logger.info("fraktal initialized")

    async def close(self) -> None:
        await self._packages.close()
        await self._firefly.close()
        if self._fabconnect is not None:
            await self._fabconnect.close()

    async def __aenter__(self) -> Fraktal:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
