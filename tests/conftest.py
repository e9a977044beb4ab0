from unittest.mock import MagicMock

import pytest

from fraktal.core.config import Config
from fraktal.core.types import InvokeResponse, Location, PackageDetails, Size, Urgency
from fraktal.firefly.client import FireFlyClient
from fraktal.firefly.stream import FireFlyEventStream


@pytest.fixture
def config() -> Config:
    return Config(firefly_url="http://firefly.test:5000", namespace="default")


@pytest.fixture
def mock_ff(config):
    """FireFly client double: async methods are AsyncMocks, listen() is sync."""
    ff = MagicMock(spec=FireFlyClient)
    ff.config = config
    ff.namespace = config.namespace

    ff.get_datatypes.return_value = []
    ff.get_contract_interfaces.return_value = []
    ff.get_contract_apis.return_value = []
    ff.get_contract_api_listeners.return_value = []
    ff.create_contract_interface.return_value = {"id": "iface-1", "name": "pm3package"}
    ff.create_contract_api.return_value = {"id": "api-1", "name": "pm3package"}
    ff.invoke_contract_api.return_value = InvokeResponse(
        id="op-1", status="Succeeded", namespace="default"
    )
    ff.get_data.return_value = None
    ff.listen.return_value = MagicMock(spec=FireFlyEventStream)
    return ff


@pytest.fixture
def package_details() -> PackageDetails:
    return PackageDetails(
        pickup_location=Location(address="1 Dock Rd", lat=59.33, lng=18.06),
        drop_location=Location(address="9 Harbour St"),
        size=Size(width=30, height=20, depth=10),
        weight_kg=5.0,
        urgency=Urgency.HIGH,
    )
