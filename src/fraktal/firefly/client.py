"""
Hyperledger FireFly REST client.

Thin async wrapper over the namespace-scoped FireFly API used by the
package and role services: datatypes, contract interfaces, contract APIs,
contract listeners, invoke/query, data records and messages. Push
notifications go through FireFlyEventStream (see `listen`).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from fraktal.core.config import Config
from fraktal.core.exceptions import FireFlyError, NetworkError
from fraktal.core.logging import get_logger
from fraktal.core.types import InvokeResponse
from fraktal.firefly.stream import FireFlyEventStream


def _flags(publish: bool | None = None, confirm: bool | None = None) -> dict[str, str]:
    params = {}
    if publish is not None:
        params["publish"] = "true" if publish else "false"
    if confirm is not None:
        params["confirm"] = "true" if confirm else "false"
    return params


class FireFlyClient:
    """
    Client for one FireFly namespace.

    Example:
        >>> ff = FireFlyClient(Config(firefly_url="http://localhost:5000"))
        >>> status = await ff.get_status()
        >>> apis = await ff.get_contract_apis(name="pm3package")
    """

    def __init__(
        self,
        config: Config,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize FireFly client.

        Args:
            config: Library configuration (URL, namespace, timeouts)
            http_client: Shared httpx client; created lazily if omitted
        """
        self._config = config
        self._base_url = config.api_base_url
        self._timeout = config.request_timeout
        self._logger = get_logger("firefly")
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._streams: list[FireFlyEventStream] = []

    @property
    def config(self) -> Config:
        return self._config

    @property
    def streams(self) -> tuple[FireFlyEventStream, ...]:
        """Event streams opened by `listen` that have not been closed."""
        return tuple(s for s in self._streams if not s.closed)

    @property
    def namespace(self) -> str:
        return self._config.namespace

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_http_client = True
        return self._http_client

    async def close(self) -> None:
        """Close event streams and the HTTP client."""
        for stream in self._streams:
            if not stream.closed:
                await stream.close()
        self._streams.clear()
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        allow_not_found: bool = False,
    ) -> Any:
        client = await self._get_client()
        url = f"{self._base_url}{path}"
        self._logger.debug(f"{method} {url} params={dict(params or {})}")

        try:
            response = await client.request(method, url, params=params, json=body)
        except httpx.RequestError as e:
            raise NetworkError(
                f"FireFly request failed: {e}",
                url=url,
                details={"method": method, "error": str(e)},
            ) from e

        if allow_not_found and response.status_code == 404:
            return None

        if response.status_code >= 400:
            try:
                error_body = response.json()
            except ValueError:
                error_body = response.text
            message = error_body.get("error") if isinstance(error_body, dict) else None
            raise FireFlyError(
                message or f"{method} {path} failed with status {response.status_code}",
                status_code=response.status_code,
                url=url,
                details={"method": method, "response": error_body},
            )

        if not response.content:
            return None
        return response.json()

    # ==================== Status ====================

    async def get_status(self) -> dict[str, Any]:
        """Node, org and plugin status."""
        return await self._request("GET", "/status")

    # ==================== Datatypes ====================

    async def get_datatypes(
        self, name: str | None = None, version: str | None = None
    ) -> list[dict[str, Any]]:
        params = {k: v for k, v in (("name", name), ("version", version)) if v}
        return await self._request("GET", "/datatypes", params=params) or []

    async def create_datatype(
        self, payload: dict[str, Any], publish: bool = True, confirm: bool = True
    ) -> dict[str, Any]:
        return await self._request(
            "POST", "/datatypes", params=_flags(publish, confirm), body=payload
        )

    # ==================== Contract interfaces & APIs ====================

    async def get_contract_interfaces(self, name: str | None = None) -> list[dict[str, Any]]:
        params = {"name": name} if name else None
        return await self._request("GET", "/contracts/interfaces", params=params) or []

    async def create_contract_interface(
        self, ffi: dict[str, Any], publish: bool = True, confirm: bool = True
    ) -> dict[str, Any]:
        return await self._request(
            "POST", "/contracts/interfaces", params=_flags(publish, confirm), body=ffi
        )

    async def get_contract_apis(self, name: str | None = None) -> list[dict[str, Any]]:
        params = {"name": name} if name else None
        return await self._request("GET", "/apis", params=params) or []

    async def create_contract_api(
        self, body: dict[str, Any], publish: bool = True, confirm: bool = True
    ) -> dict[str, Any]:
        return await self._request("POST", "/apis", params=_flags(publish, confirm), body=body)

    # ==================== Contract listeners ====================

    async def get_contract_api_listeners(
        self, api_name: str, event_path: str
    ) -> list[dict[str, Any]]:
        path = f"/apis/{quote(api_name)}/listeners/{quote(event_path)}"
        return await self._request("GET", path) or []

    async def create_contract_api_listener(
        self,
        api_name: str,
        event_path: str,
        body: dict[str, Any],
        publish: bool = True,
        confirm: bool = True,
    ) -> dict[str, Any]:
        path = f"/apis/{quote(api_name)}/listeners/{quote(event_path)}"
        return await self._request("POST", path, params=_flags(publish, confirm), body=body)

    # ==================== Invoke / query ====================

    async def invoke_contract_api(
        self,
        api_name: str,
        method_path: str,
        body: dict[str, Any],
        confirm: bool = True,
        publish: bool = True,
    ) -> InvokeResponse:
        """Submit a contract transaction and return the invocation receipt."""
        path = f"/apis/{quote(api_name)}/invoke/{quote(method_path)}"
        data = await self._request("POST", path, params=_flags(publish, confirm), body=body)
        return InvokeResponse.from_api_response(data or {})

    async def query_contract_api(
        self,
        api_name: str,
        method_path: str,
        body: dict[str, Any],
        confirm: bool = True,
        publish: bool = True,
    ) -> Any:
        """Evaluate a read-only contract function; returns its JSON result."""
        path = f"/apis/{quote(api_name)}/query/{quote(method_path)}"
        return await self._request("POST", path, params=_flags(publish, confirm), body=body)

    # ==================== Data & messages ====================

    async def get_data(self, data_id: str) -> dict[str, Any] | None:
        """Fetch a stored data record, or None if it does not exist."""
        return await self._request("GET", f"/data/{quote(data_id)}", allow_not_found=True)

    async def upload_data(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/data", body=body)

    async def send_broadcast_message(
        self, body: dict[str, Any], confirm: bool = False
    ) -> dict[str, Any]:
        return await self._request(
            "POST", "/messages/broadcast", params=_flags(confirm=confirm), body=body
        )

    async def send_private_message(
        self, body: dict[str, Any], confirm: bool = False
    ) -> dict[str, Any]:
        return await self._request(
            "POST", "/messages/private", params=_flags(confirm=confirm), body=body
        )

    # ==================== Push notifications ====================

    def listen(
        self,
        subscription: dict[str, Any],
        callback: Callable[[dict[str, Any]], Awaitable[None] | None],
    ) -> FireFlyEventStream:
        """
        Open an ephemeral WebSocket subscription.

        Must be called from a running event loop. The callback receives each
        delivered event as a dict.
        """
        stream = FireFlyEventStream(
            ws_url=self._config.ws_url or "",
            namespace=self._config.namespace,
            subscription=subscription,
            callback=callback,
        )
        stream.start()
        self._streams = [s for s in self._streams if not s.closed]
        self._streams.append(stream)
        return stream
