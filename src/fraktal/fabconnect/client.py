"""
Fabconnect REST client.

Direct access to the Fabric connector FireFly runs on top of: chain info,
CA identity management, and raw transaction submit/query for cases the
contract API does not cover (e.g. calling chaincode as a specific signer).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from fraktal.core.config import Config
from fraktal.core.exceptions import ConfigurationError, NetworkError
from fraktal.core.logging import get_logger


@dataclass
class TxResponse:
    """Result of a synchronous transaction submission."""

    transaction_hash: str
    status: str
    block_number: int | None = None
    signer: str | None = None
    signer_msp: str | None = None
    headers: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> TxResponse:
        return cls(
            transaction_hash=data.get("transactionHash", ""),
            status=data.get("status", ""),
            block_number=data.get("blockNumber"),
            signer=data.get("signer"),
            signer_msp=data.get("signerMSP"),
            headers=data.get("headers") or {},
        )


def tx_body(
    signer: str,
    channel: str,
    chaincode: str,
    func: str,
    args: list[str] | None = None,
    transient_map: dict[str, str] | None = None,
    init: bool = False,
) -> dict[str, Any]:
    """Build a SendTransaction request body."""
    return {
        "headers": {
            "signer": signer,
            "channel": channel,
            "chaincode": chaincode,
            "type": "SendTransaction",
        },
        "func": func,
        "args": args or [],
        "transientMap": transient_map or {},
        "init": init,
    }


class FabconnectClient:
    """
    Client for a Fabconnect instance.

    Example:
        >>> fab = FabconnectClient("http://localhost:5102")
        >>> info = await fab.get_chain_info("pm3", "admin")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._logger = get_logger("fabconnect")
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @classmethod
    def from_config(cls, config: Config) -> FabconnectClient:
        if not config.fabconnect_url:
            raise ConfigurationError("fabconnect_url is not configured")
        return cls(config.fabconnect_url, timeout=config.request_timeout)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_http_client = True
        return self._http_client

    async def close(self) -> None:
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        client = await self._get_client()
        url = f"{self._base_url}{path}"
        self._logger.debug(f"{method} {url}")

        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=body,
                headers={"accept": "application/json"},
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Failed to {action}: {e}", url=url) from e

        if not response.is_success:
            raise NetworkError(
                f"Failed to {action}: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                url=url,
                details={"response": response.text},
            )
        return response.json()

    # ==================== Chain ====================

    async def get_chain_info(self, channel: str, signer: str) -> Any:
        data = await self._request(
            "GET",
            "/chaininfo",
            "get chain info",
            params={"fly-channel": channel, "fly-signer": signer},
        )
        return data.get("result") if isinstance(data, dict) else data

    # ==================== Identities ====================

    async def get_identities(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/identities", "get identities")

    async def enroll_identity(
        self, username: str, secret: str, attributes: dict[str, str] | None = None
    ) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"/identities/{quote(username, safe='')}/enroll",
            "enroll identity",
            body={"secret": secret, "attributes": attributes or {}},
        )

    async def reenroll_identity(
        self, username: str, attributes: dict[str, bool] | None = None
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/identities/{quote(username, safe='')}/reenroll",
            "reenroll identity",
            body={"attributes": attributes or {}},
        )

    async def modify_identity(self, username: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a CA identity (name, type, maxEnrollments, attributes)."""
        return await self._request(
            "PUT",
            f"/identities/{quote(username, safe='')}",
            "modify identity",
            body=payload,
        )

    # ==================== Transactions ====================

    async def submit_tx(self, body: dict[str, Any]) -> TxResponse:
        """Submit a transaction and wait for it to be committed."""
        data = await self._request(
            "POST", "/transactions", "submit transaction", params={"fly-sync": "true"}, body=body
        )
        return TxResponse.from_api_response(data)

    async def query(
        self,
        signer: str,
        channel: str,
        chaincode: str,
        func: str,
        args: list[str] | None = None,
        strongread: bool = False,
    ) -> Any:
        return await self._request(
            "POST",
            "/query",
            "query",
            body={
                "headers": {"signer": signer, "channel": channel, "chaincode": chaincode},
                "func": func,
                "args": args or [],
                "strongread": strongread,
            },
        )
