"""
Base class for services backed by one chaincode contract API.

Handles the shared FireFly setup: the contract interface (FFI) and the
contract API bound to a Fabric channel/chaincode are looked up first and
only created when missing, so `initialize()` can be repeated safely.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from fraktal.core.config import Config
from fraktal.core.logging import get_logger
from fraktal.core.types import InvokeResponse

if TYPE_CHECKING:
    from fraktal.firefly.client import FireFlyClient


def parse_json_result(result: Any) -> Any:
    """Query results may arrive as JSON text; unparseable text becomes None."""
    if isinstance(result, str):
        try:
            return json.loads(result)
        except ValueError:
            return None
    return result


class ContractService:
    """Shared contract interface/API setup and invoke/query helpers."""

    def __init__(
        self,
        ff: FireFlyClient,
        interface: dict[str, Any],
        chaincode: str,
        config: Config | None = None,
    ) -> None:
        self._ff = ff
        self._config = config or ff.config
        self._interface = interface
        self._chaincode = chaincode
        self._initialized = False
        self._logger = get_logger(f"services.{type(self).__name__}")

    @property
    def api_name(self) -> str:
        return self._interface["name"]

    @property
    def interface(self) -> dict[str, Any]:
        return self._interface

    @property
    def initialized(self) -> bool:
        """Whether `initialize()` has completed."""
        return self._initialized

    # ==================== Interface & API ====================

    async def get_contract_interface(self) -> dict[str, Any] | None:
        interfaces = await self._ff.get_contract_interfaces(name=self.api_name)
        return interfaces[0] if interfaces else None

    async def ensure_contract_interface(self) -> bool:
        """Create the contract interface if missing. Returns True if created."""
        if await self.get_contract_interface():
            return False

        await self._ff.create_contract_interface(self._interface, publish=True, confirm=True)
        self._logger.info(f"Created contract interface {self.api_name}")
        return True

    async def get_contract_api(self) -> dict[str, Any] | None:
        apis = await self._ff.get_contract_apis(name=self.api_name)
        return apis[0] if apis else None

    async def ensure_contract_api(self) -> dict[str, Any] | None:
        """Create the contract API if missing; returns the API record."""
        iface = await self.get_contract_interface()
        api = await self.get_contract_api()
        if api or not iface:
            return api

        api = await self._ff.create_contract_api(
            {
                "interface": {"id": iface["id"]},
                "location": {"channel": self._config.channel, "chaincode": self._chaincode},
                "name": self.api_name,
            },
            publish=True,
            confirm=True,
        )
        self._logger.info(
            f"Created contract API {self.api_name} "
            f"(channel={self._config.channel}, chaincode={self._chaincode})"
        )
        return api

    # ==================== Calls ====================

    async def _invoke(
        self,
        method: str,
        input: dict[str, Any],
        transient: dict[str, str] | None = None,
    ) -> InvokeResponse:
        body: dict[str, Any] = {"input": input}
        if transient:
            body["options"] = {"transientMap": transient}
        self._logger.debug(f"Invoking {self.api_name}.{method}")
        res = await self._ff.invoke_contract_api(self.api_name, method, body)
        if res.error:
            self._logger.warning(f"{self.api_name}.{method} failed: {res.error}")
        return res

    async def _query(self, method: str, input: dict[str, Any] | None = None) -> Any:
        self._logger.debug(f"Querying {self.api_name}.{method}")
        return await self._ff.query_contract_api(self.api_name, method, {"input": input or {}})
