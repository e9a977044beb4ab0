"""Unit tests for types module."""

import pytest

from fraktal.core.exceptions import ValidationError
from fraktal.core.types import (
    BlockchainPackage,
    InvokeResponse,
    Location,
    PackageDetails,
    PrivateTransferTerms,
    Size,
    Status,
    StoreObject,
    Transfer,
    TransferStatus,
    TransferTerms,
    Urgency,
)


class TestSize:
    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValidationError, match="width must be positive"):
            Size(width=0, height=1, depth=1)

    def test_rejects_bool(self) -> None:
        with pytest.raises(ValidationError):
            Size(width=True, height=1, depth=1)


class TestLocation:
    def test_empty_address_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Location(address="")

    def test_missing_coordinates_kept_as_null(self) -> None:
        data = Location(address="Dock 4").to_api_dict()

        assert data == {"address": "Dock 4", "lat": None, "lng": None}


class TestPackageDetails:
    def test_to_api_dict_is_camel_case(self, package_details) -> None:
        data = package_details.to_api_dict()

        assert set(data) == {"pickupLocation", "dropLocation", "size", "weightKg", "urgency"}
        assert data["urgency"] == "high"

    def test_with_id(self, package_details) -> None:
        assert package_details.with_id("pkg-1")["id"] == "pkg-1"

    def test_urgency_from_string(self) -> None:
        details = PackageDetails(
            pickup_location=Location(address="A"),
            drop_location=Location(address="B"),
            size=Size(width=1, height=1, depth=1),
            weight_kg=1,
            urgency="low",
        )

        assert details.urgency is Urgency.LOW

    def test_unknown_urgency_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown urgency"):
            PackageDetails(
                pickup_location=Location(address="A"),
                drop_location=Location(address="B"),
                size=Size(width=1, height=1, depth=1),
                weight_kg=1,
                urgency="asap",
            )

    def test_round_trip(self, package_details) -> None:
        assert PackageDetails.from_api_response(package_details.to_api_dict()) == package_details


class TestStoreObject:
    def test_empty_salt_rejected(self, package_details) -> None:
        with pytest.raises(ValidationError):
            StoreObject(salt="", pii={}, package_details=package_details)

    def test_pii_must_be_mapping(self, package_details) -> None:
        with pytest.raises(ValidationError):
            StoreObject(salt="s", pii=["Alice"], package_details=package_details)  # type: ignore


class TestChainRecords:
    def test_blockchain_package(self) -> None:
        pkg = BlockchainPackage.from_api_response(
            {"externalId": "pkg-1", "ownerOrgMSP": "Org1MSP", "status": "proposed"}
        )

        assert pkg.status is Status.PROPOSED
        assert pkg.package_details_and_pii_hash == ""

    def test_transfer(self) -> None:
        transfer = Transfer.from_api_response(
            {
                "terms": {
                    "externalPackageId": "pkg-1",
                    "fromMSP": "Org1MSP",
                    "toMSP": "Org2MSP",
                    "createdISO": "2024-01-01T00:00:00.000Z",
                },
                "status": "accepted",
                "transferTermsHash": "aa",
            }
        )

        assert transfer.status is TransferStatus.ACCEPTED
        assert transfer.terms.expiry_iso is None

    def test_terms_require_msps(self) -> None:
        with pytest.raises(ValidationError):
            TransferTerms(external_package_id="pkg-1", from_msp="", to_msp="Org2MSP", created_iso="")

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValidationError, match="negative"):
            PrivateTransferTerms(price=-0.5)


class TestInvokeResponse:
    def test_from_api_response(self) -> None:
        res = InvokeResponse.from_api_response(
            {"id": "op-1", "status": "Succeeded", "namespace": "default", "error": ""}
        )

        assert res.ok
        assert res.error is None
        assert res.raw["namespace"] == "default"
