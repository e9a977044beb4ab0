"""Tests for the FireFly REST client using httpx.MockTransport."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from fraktal.core.exceptions import FireFlyError, NetworkError
from fraktal.firefly.client import FireFlyClient
from fraktal.firefly.stream import FireFlyEventStream

BASE = "http://firefly.test:5000/api/v1/namespaces/default"


def make_client(config, handler) -> tuple[FireFlyClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recorder(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return FireFlyClient(config, http_client=http_client), requests


class TestRequests:
    @pytest.mark.asyncio
    async def test_get_datatypes_filters(self, config) -> None:
        ff, requests = make_client(config, lambda r: httpx.Response(200, json=[{"id": "dt-1"}]))

        result = await ff.get_datatypes(name="PackageDetails", version="1.0.0")

        assert result == [{"id": "dt-1"}]
        assert str(requests[0].url) == f"{BASE}/datatypes?name=PackageDetails&version=1.0.0"

    @pytest.mark.asyncio
    async def test_create_interface_sends_flags(self, config) -> None:
        ff, requests = make_client(config, lambda r: httpx.Response(202, json={"id": "ffi-1"}))

        await ff.create_contract_interface({"name": "pm3package"}, publish=True, confirm=True)

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/namespaces/default/contracts/interfaces"
        assert request.url.params["publish"] == "true"
        assert request.url.params["confirm"] == "true"
        assert json.loads(request.content) == {"name": "pm3package"}

    @pytest.mark.asyncio
    async def test_listener_paths(self, config) -> None:
        ff, requests = make_client(config, lambda r: httpx.Response(200, json=[]))

        assert await ff.get_contract_api_listeners("pm3package", "CreatePackage") == []
        assert requests[0].url.path.endswith("/apis/pm3package/listeners/CreatePackage")

    @pytest.mark.asyncio
    async def test_invoke_returns_receipt(self, config) -> None:
        receipt = {"id": "op-1", "status": "Pending", "namespace": "default", "tx": "tx-1"}
        ff, requests = make_client(config, lambda r: httpx.Response(202, json=receipt))

        res = await ff.invoke_contract_api(
            "pm3package", "CreatePackage", {"input": {"externalId": "pkg-1"}}
        )

        assert res.id == "op-1"
        assert res.tx == "tx-1"
        assert res.ok
        assert requests[0].url.path.endswith("/apis/pm3package/invoke/CreatePackage")

    @pytest.mark.asyncio
    async def test_query_returns_json(self, config) -> None:
        ff, requests = make_client(config, lambda r: httpx.Response(200, json=True))

        assert await ff.query_contract_api("pm3package", "PackageExists", {"input": {}}) is True
        assert requests[0].url.path.endswith("/apis/pm3package/query/PackageExists")

    @pytest.mark.asyncio
    async def test_get_data_not_found_is_none(self, config) -> None:
        ff, _ = make_client(config, lambda r: httpx.Response(404, json={"error": "FF10143"}))

        assert await ff.get_data("missing") is None

    @pytest.mark.asyncio
    async def test_private_message(self, config) -> None:
        ff, requests = make_client(config, lambda r: httpx.Response(202, json={"header": {}}))

        await ff.send_private_message({"data": []})

        assert requests[0].url.path.endswith("/messages/private")
        assert requests[0].url.params["confirm"] == "false"


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_raises_firefly_error(self, config) -> None:
        ff, _ = make_client(
            config, lambda r: httpx.Response(409, json={"error": "FF10127: conflict"})
        )

        with pytest.raises(FireFlyError) as exc_info:
            await ff.create_datatype({"name": "PackageDetails"})

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "FF10127: conflict"
        assert exc_info.value.details["method"] == "POST"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, config) -> None:
        ff, _ = make_client(config, lambda r: httpx.Response(502, text="bad gateway"))

        with pytest.raises(FireFlyError) as exc_info:
            await ff.get_status()

        assert exc_info.value.is_server_error()
        assert exc_info.value.details["response"] == "bad gateway"

    @pytest.mark.asyncio
    async def test_connection_error_raises_network_error(self, config) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        ff, _ = make_client(config, refuse)

        with pytest.raises(NetworkError, match="connection refused"):
            await ff.get_contract_apis(name="pm3package")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_keeps_injected_client_open(self, config) -> None:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        ff = FireFlyClient(config, http_client=http_client)

        await ff.close()

        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_closed_streams_are_forgotten(self, config, monkeypatch) -> None:
        monkeypatch.setattr(FireFlyEventStream, "start", lambda self: None)
        ff = FireFlyClient(config)

        first = ff.listen({"filter": {"events": "message_confirmed"}}, MagicMock())
        await first.close()
        second = ff.listen({"filter": {"events": "blockchain_event"}}, MagicMock())

        assert ff.streams == (second,)

        await second.close()
        second_close = AsyncMock()
        monkeypatch.setattr(second, "close", second_close)
        await ff.close()

        second_close.assert_not_awaited()
        assert ff.streams == ()
