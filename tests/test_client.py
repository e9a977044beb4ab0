"""Tests for the Fraktal facade."""

from unittest.mock import AsyncMock

import pytest

from fraktal import Fraktal
from fraktal.core.config import Config


@pytest.fixture
def fraktal() -> Fraktal:
    return Fraktal(
        Config(firefly_url="http://firefly.test:5000", fabconnect_url="http://fab.test:3000")
    )


class TestFraktal:
    def test_composes_services(self, fraktal) -> None:
        assert fraktal.packages.api_name == "pm3package"
        assert fraktal.roles.api_name == "pm3roleauth"
        assert fraktal.fabconnect is not None
        assert fraktal.firefly.namespace == "default"

    def test_no_fabconnect_without_url(self) -> None:
        client = Fraktal(Config(firefly_url="http://firefly.test:5000"))

        assert client.fabconnect is None

    def test_on_event_forwards_to_packages(self, fraktal) -> None:
        handler = AsyncMock()
        fraktal.on_event("ExecuteTransfer", handler)

        assert fraktal.packages.dispatcher.registry.handlers_for("ExecuteTransfer") == (handler,)

    @pytest.mark.asyncio
    async def test_initialize_initializes_both_services(self, fraktal, monkeypatch) -> None:
        packages_init = AsyncMock()
        roles_init = AsyncMock()
        monkeypatch.setattr(fraktal.packages, "initialize", packages_init)
        monkeypatch.setattr(fraktal.roles, "initialize", roles_init)

        await fraktal.initialize()

        packages_init.assert_awaited_once()
        roles_init.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, fraktal, monkeypatch) -> None:
        ff_close = AsyncMock()
        monkeypatch.setattr(fraktal.firefly, "close", ff_close)

        async with fraktal as client:
            assert client is fraktal

        ff_close.assert_awaited_once()
