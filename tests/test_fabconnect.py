"""Tests for the Fabconnect client."""

import json

import httpx
import pytest

from fraktal.core.config import Config
from fraktal.core.exceptions import ConfigurationError, NetworkError
from fraktal.fabconnect.client import FabconnectClient, tx_body


def make_client(handler) -> tuple[FabconnectClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recorder(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return FabconnectClient("http://fabconnect.test:3000/", http_client=http_client), requests


class TestFabconnectClient:
    @pytest.mark.asyncio
    async def test_chain_info_unwraps_result(self) -> None:
        fab, requests = make_client(lambda r: httpx.Response(200, json={"result": {"height": 12}}))

        assert await fab.get_chain_info("pm3", "admin") == {"height": 12}
        assert requests[0].url.params["fly-channel"] == "pm3"
        assert requests[0].url.params["fly-signer"] == "admin"

    @pytest.mark.asyncio
    async def test_enroll_identity(self) -> None:
        fab, requests = make_client(lambda r: httpx.Response(200, json={"name": "alice"}))

        await fab.enroll_identity("alice@org1", "s3cret")

        request = requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/identities/alice@org1/enroll"
        assert json.loads(request.content) == {"secret": "s3cret", "attributes": {}}

    @pytest.mark.asyncio
    async def test_submit_tx_is_synchronous(self) -> None:
        response = {
            "headers": {"id": "req-1", "type": "TransactionSuccess"},
            "blockNumber": 7,
            "signerMSP": "Org1MSP",
            "signer": "admin",
            "transactionHash": "0xabc",
            "status": "VALID",
        }
        fab, requests = make_client(lambda r: httpx.Response(200, json=response))
        body = tx_body("admin", "pm3", "pm3package", "PackageExists", ["pkg-1"])

        tx = await fab.submit_tx(body)

        assert tx.transaction_hash == "0xabc"
        assert tx.block_number == 7
        assert requests[0].url.params["fly-sync"] == "true"
        sent = json.loads(requests[0].content)
        assert sent["headers"]["type"] == "SendTransaction"
        assert sent["args"] == ["pkg-1"]

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        fab, _ = make_client(lambda r: httpx.Response(500, text="internal"))

        with pytest.raises(NetworkError, match="Failed to query") as exc_info:
            await fab.query("admin", "pm3", "pm3package", "ReadBlockchainPackage", ["pkg-1"])

        assert exc_info.value.status_code == 500

    def test_from_config_requires_url(self) -> None:
        with pytest.raises(ConfigurationError):
            FabconnectClient.from_config(Config(firefly_url="http://ff:5000"))
