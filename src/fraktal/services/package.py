"""
Package lifecycle service.

Wraps the package chaincode exposed through a FireFly contract API:
creating packages with their private details and PII, status updates,
ownership transfer (propose, accept, execute) and integrity checks.
Contract events and confirmed data messages are delivered to handlers
registered with `on_event`.

Example:
    >>> ff = FireFlyClient(Config.from_env())
    >>> packages = PackageService(ff)
    >>> packages.on_event("CreatePackage", lambda e: print(e.output))
    >>> await packages.initialize()
    >>> await packages.create_package("pkg-1", "Org2MSP", details, {"name": "Alice"}, salt)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TypeVar

from fraktal.contracts.ffi import event_names
from fraktal.contracts.package import (
    PACKAGE_DETAILS_DT_NAME,
    PACKAGE_DETAILS_DT_VERSION,
    TRANSFER_OFFER_DT_NAME,
    TRANSFER_OFFER_DT_VERSION,
    package_details_datatype,
    package_interface,
    transfer_offer_datatype,
)
from fraktal.core.config import Config
from fraktal.core.exceptions import NotFoundError
from fraktal.core.types import (
    BlockchainPackage,
    InvokeResponse,
    PackageDetails,
    PrivateTransferTerms,
    Status,
    StoreObject,
    TransferOffer,
)
from fraktal.events.dispatcher import EventDispatcher
from fraktal.events.registry import EventHandler
from fraktal.integrity import canonical_json, compute_store_object_hash
from fraktal.services.base import ContractService, parse_json_result

if TYPE_CHECKING:
    from fraktal.firefly.client import FireFlyClient

_R = TypeVar("_R")


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_dict(value: Any) -> dict[str, Any]:
    if hasattr(value, "to_api_dict"):
        return value.to_api_dict()
    return dict(value)


def _as_bool(result: Any) -> bool:
    return parse_json_result(result) is True


class PackageService(ContractService):
    """
    High-level API for the package chaincode.

    Responsibilities:
    - Ensure the PackageDetails and TransferOffer datatypes exist
    - Ensure the contract interface, contract API and event listeners exist
    - Forward contract calls, passing private data through the transient map
    - Dispatch contract events and data messages to registered handlers
    """

    def __init__(self, ff: FireFlyClient, config: Config | None = None) -> None:
        """
        Initialize PackageService.

        Args:
            ff: FireFly client for the namespace the chaincode is exposed in
            config: Library configuration (defaults to the client's)
        """
        config = config or ff.config
        super().__init__(
            ff,
            package_interface(config.package_chaincode),
            chaincode=config.package_chaincode,
            config=config,
        )
        self._dispatcher = EventDispatcher(
            ff,
            self.api_name,
            event_names(self._interface),
            dedupe_window=config.dedupe_window,
        )

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    async def initialize(self) -> None:
        """
        Prepare FireFly for the package chaincode and start listening.

        Safe to call multiple times: anything that already exists is left
        untouched and subscriptions are opened once.

        Raises:
            NetworkError: If an event subscription cannot be established
                within `connect_timeout`; the service stays uninitialized
        """
        if not await self._data_type_exists():
            await self._ff.create_datatype(
                package_details_datatype(self._config.namespace), publish=True, confirm=True
            )
            self._logger.info(f"Created datatype {PACKAGE_DETAILS_DT_NAME}")

        if not await self._transfer_offer_data_type_exists():
            await self._ff.create_datatype(
                transfer_offer_datatype(self._config.namespace), publish=True, confirm=True
            )
            self._logger.info(f"Created datatype {TRANSFER_OFFER_DT_NAME}")

        await self.ensure_contract_interface()
        api = await self.ensure_contract_api()
        if api:
            await self._dispatcher.ensure_remote_listeners(api["id"])
            self._dispatcher.start()
            await self._dispatcher.wait_connected(self._config.connect_timeout)
        else:
            self._logger.warning(f"Contract API {self.api_name} unavailable; not listening")

        self._initialized = True

    def on_event(self, event_name: str, handler: EventHandler) -> None:
        """Register a handler for a contract event name, or ``"message"``."""
        self._dispatcher.register_handler(event_name, handler)

    async def close(self) -> None:
        await self._dispatcher.close()

    # ==================== Datatypes ====================

    async def _data_type_exists(self) -> bool:
        found = await self._ff.get_datatypes(
            name=PACKAGE_DETAILS_DT_NAME, version=PACKAGE_DETAILS_DT_VERSION
        )
        return len(found) > 0

    async def _transfer_offer_data_type_exists(self) -> bool:
        found = await self._ff.get_datatypes(
            name=TRANSFER_OFFER_DT_NAME, version=TRANSFER_OFFER_DT_VERSION
        )
        return len(found) > 0

    async def get_data_type(self) -> dict[str, Any]:
        """The PackageDetails datatype; raises NotFoundError if absent."""
        found = await self._ff.get_datatypes(
            name=PACKAGE_DETAILS_DT_NAME, version=PACKAGE_DETAILS_DT_VERSION
        )
        if not found:
            raise NotFoundError("Data type does not exist", resource=PACKAGE_DETAILS_DT_NAME)
        return found[0]

    async def get_transfer_offer_data_type(self) -> dict[str, Any]:
        """The TransferOffer datatype; raises NotFoundError if absent."""
        found = await self._ff.get_datatypes(
            name=TRANSFER_OFFER_DT_NAME, version=TRANSFER_OFFER_DT_VERSION
        )
        if not found:
            raise NotFoundError(
                "Transfer Offer data type does not exist", resource=TRANSFER_OFFER_DT_NAME
            )
        return found[0]

    # ==================== Local data ====================

    async def get_local_package(self, data_id: str) -> dict[str, Any] | None:
        return await self._ff.get_data(data_id)

    async def upload_package(self, details_with_id: Mapping[str, Any]) -> dict[str, Any]:
        """Store a PackageDetails record (with its ``id``) in FireFly."""
        return await self._ff.upload_data(
            {
                "datatype": {"name": PACKAGE_DETAILS_DT_NAME, "version": PACKAGE_DETAILS_DT_VERSION},
                "id": details_with_id["id"],
                "value": dict(details_with_id),
            }
        )

    async def broadcast_package_details(
        self, details_with_id: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Broadcast a PackageDetails record to every member of the network."""
        return await self._ff.send_broadcast_message(
            {
                "data": [
                    {
                        "datatype": {
                            "name": PACKAGE_DETAILS_DT_NAME,
                            "version": PACKAGE_DETAILS_DT_VERSION,
                        },
                        "value": dict(details_with_id),
                    }
                ]
            }
        )

    async def send_transfer_offer(
        self, offer: TransferOffer, recipients: list[str]
    ) -> dict[str, Any]:
        """Send a TransferOffer privately to the given organizations."""
        return await self._ff.send_private_message(
            {
                "header": {"tag": "transfer_offer"},
                "group": {"members": [{"identity": r} for r in recipients]},
                "data": [
                    {
                        "datatype": {
                            "name": TRANSFER_OFFER_DT_NAME,
                            "version": TRANSFER_OFFER_DT_VERSION,
                        },
                        "value": offer.to_api_dict(),
                    }
                ],
            }
        )

    # ==================== Package calls ====================

    async def create_package(
        self,
        external_id: str,
        recipient_org_msp: str,
        package_details: PackageDetails | Mapping[str, Any],
        pii: Mapping[str, Any],
        salt: str,
        broadcast: bool = True,
    ) -> InvokeResponse:
        """
        Create a package on-chain.

        Package details, PII and salt travel in the transient map and never
        reach the ledger; the chaincode stores their hash. When `broadcast`
        is set and the invocation succeeded, the public details are also
        uploaded as a PackageDetails record keyed by `external_id`.
        """
        details = _as_dict(package_details)
        res = await self._invoke(
            "CreatePackage",
            {"externalId": external_id, "recipientOrgMSP": recipient_org_msp},
            transient={
                "pii": canonical_json(dict(pii)),
                "packageDetails": canonical_json(details),
                "salt": str(salt),
            },
        )
        if res.ok and broadcast:
            await self.upload_package({**details, "id": external_id})
        return res

    async def update_package_status(self, external_id: str, status: Status | str) -> InvokeResponse:
        return await self._invoke(
            "UpdatePackageStatus",
            {"externalId": external_id, "status": Status(status).value},
        )

    def _record(self, record_type: type[_R], method: str, res: Any) -> _R | None:
        """Parse a query result, treating an unexpected shape as no result."""
        if not isinstance(res, Mapping):
            return None
        try:
            return record_type.from_api_response(dict(res))
        except (KeyError, TypeError, ValueError) as e:
            self._logger.debug(f"Ignoring malformed {method} result: {e!r}")
            return None

    async def read_blockchain_package(self, external_id: str) -> BlockchainPackage | None:
        res = parse_json_result(
            await self._query("ReadBlockchainPackage", {"externalId": external_id})
        )
        return self._record(BlockchainPackage, "ReadBlockchainPackage", res)

    async def package_exists(self, external_id: str) -> bool:
        return _as_bool(await self._query("PackageExists", {"externalId": external_id}))

    async def read_package_details_and_pii(self, external_id: str) -> StoreObject | None:
        """Private store object; only readable by the owning organization."""
        res = parse_json_result(
            await self._query("ReadPackageDetailsAndPII", {"externalId": external_id})
        )
        return self._record(StoreObject, "ReadPackageDetailsAndPII", res)

    async def delete_package(self, external_id: str) -> InvokeResponse:
        return await self._invoke("DeletePackage", {"externalId": external_id})

    async def check_package_details_and_pii_hash(
        self, external_id: str, expected_hash: str
    ) -> bool:
        return _as_bool(
            await self._query(
                "CheckPackageDetailsAndPIIHash",
                {"externalId": external_id, "expectedHash": expected_hash},
            )
        )

    # ==================== Transfers ====================

    async def propose_transfer(
        self,
        external_id: str,
        to_msp: str,
        terms_id: str,
        price: float,
        expiry_iso: str | None = None,
    ) -> InvokeResponse:
        """
        Propose transferring a package to another organization.

        The price is private and sent through the transient map.
        """
        private_terms = PrivateTransferTerms(price=price)
        return await self._invoke(
            "ProposeTransfer",
            {
                "externalId": external_id,
                "termsId": terms_id,
                "toMSP": to_msp,
                "createdISO": _iso_now(),
                "expiryISO": expiry_iso,
            },
            transient={"privateTransferTerms": canonical_json(private_terms)},
        )

    async def read_transfer_terms(self, terms_id: str) -> dict[str, Any] | None:
        res = parse_json_result(await self._query("ReadTransferTerms", {"termsId": terms_id}))
        return dict(res) if isinstance(res, Mapping) else None

    async def read_private_transfer_terms(self, terms_id: str) -> PrivateTransferTerms | None:
        res = parse_json_result(
            await self._query("ReadPrivateTransferTerms", {"termsId": terms_id})
        )
        return self._record(PrivateTransferTerms, "ReadPrivateTransferTerms", res)

    async def accept_transfer(
        self,
        external_id: str,
        terms_id: str,
        private_terms: PrivateTransferTerms | Mapping[str, Any],
    ) -> InvokeResponse:
        """Accept proposed terms; the private terms must match the proposal's."""
        return await self._invoke(
            "AcceptTransfer",
            {"externalId": external_id, "termsId": terms_id},
            transient={"privateTransferTerms": canonical_json(_as_dict(private_terms))},
        )

    async def execute_transfer(
        self,
        external_id: str,
        terms_id: str,
        store_object: StoreObject | Mapping[str, Any],
    ) -> InvokeResponse:
        """
        Complete an accepted transfer.

        `store_object` must be the same salt, PII and package details given
        to `create_package`; the chaincode verifies it against the stored
        hash before handing the data to the new owner.
        """
        return await self._invoke(
            "ExecuteTransfer",
            {"externalId": external_id, "termsId": terms_id},
            transient={"storeObject": canonical_json(_as_dict(store_object))},
        )

    # ==================== Integrity ====================

    @staticmethod
    def compute_package_hash(
        package_details: PackageDetails | Mapping[str, Any],
        pii: Mapping[str, Any],
        salt: str,
    ) -> str:
        """Digest the chaincode stores for a package's private data."""
        return compute_store_object_hash(package_details, pii, salt)
