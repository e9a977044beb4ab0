"""
Type definitions for fraktal.

This module contains the enums, data classes, and type definitions for the
package lifecycle: public package details, private PII, on-chain package
records, transfer terms and contract invocation receipts.

Attributes are snake_case; `to_api_dict()` / `from_api_response()` convert
to and from the camelCase shapes used by the chaincode and FireFly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fraktal.core.exceptions import ContractError, ValidationError


class Urgency(str, Enum):
    """How urgent a delivery is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class Status(str, Enum):
    """Current lifecycle status of a package."""

    PENDING = "pending"  # Created but not yet ready for pickup
    PROPOSED = "proposed"  # Transfer proposed to another organization
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"  # Reached the drop location
    SUCCEEDED = "succeeded"  # Business process completed
    FAILED = "failed"  # Irrecoverable


class TransferStatus(str, Enum):
    """Status of a transfer proposal between organizations."""

    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    EXPIRED = "expired"


def _require_positive(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{name} must be a number", details={name: value})
    if value <= 0:
        raise ValidationError(f"{name} must be positive", details={name: value})


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} cannot be empty", details={name: value})


@dataclass
class Size:
    """Package dimensions."""

    width: float
    height: float
    depth: float

    def __post_init__(self) -> None:
        _require_positive("width", self.width)
        _require_positive("height", self.height)
        _require_positive("depth", self.depth)

    def to_api_dict(self) -> dict[str, Any]:
        return {"width": self.width, "height": self.height, "depth": self.depth}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Size:
        return cls(width=data["width"], height=data["height"], depth=data["depth"])


@dataclass
class Location:
    """A location with address and optional coordinates."""

    address: str
    lat: float | None = None
    lng: float | None = None

    def __post_init__(self) -> None:
        _require_text("address", self.address)

    def to_api_dict(self) -> dict[str, Any]:
        return {"address": self.address, "lat": self.lat, "lng": self.lng}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Location:
        return cls(address=data["address"], lat=data.get("lat"), lng=data.get("lng"))


@dataclass
class PackageDetails:
    """Public, sharable package information."""

    pickup_location: Location
    drop_location: Location
    size: Size
    weight_kg: float
    urgency: Urgency = Urgency.NONE

    def __post_init__(self) -> None:
        _require_positive("weight_kg", self.weight_kg)
        try:
            self.urgency = Urgency(self.urgency)
        except ValueError:
            raise ValidationError(
                f"Unknown urgency: {self.urgency}",
                details={"allowed": [u.value for u in Urgency]},
            ) from None

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "pickupLocation": self.pickup_location.to_api_dict(),
            "dropLocation": self.drop_location.to_api_dict(),
            "size": self.size.to_api_dict(),
            "weightKg": self.weight_kg,
            "urgency": self.urgency.value,
        }

    def with_id(self, package_id: str) -> dict[str, Any]:
        """Wire shape of the broadcastable PackageDetails datatype record."""
        return {"id": package_id, **self.to_api_dict()}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> PackageDetails:
        return cls(
            pickup_location=Location.from_api_response(data["pickupLocation"]),
            drop_location=Location.from_api_response(data["dropLocation"]),
            size=Size.from_api_response(data["size"]),
            weight_kg=data["weightKg"],
            urgency=Urgency(data.get("urgency", Urgency.NONE.value)),
        )


@dataclass
class StoreObject:
    """
    Private data kept by the owning organization.

    The same object is hashed at creation time and presented again at
    transfer time for integrity verification.
    """

    salt: str
    pii: dict[str, Any]
    package_details: PackageDetails

    def __post_init__(self) -> None:
        _require_text("salt", self.salt)
        if not isinstance(self.pii, dict):
            raise ValidationError("pii must be a mapping", details={"type": type(self.pii).__name__})

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "salt": self.salt,
            "pii": self.pii,
            "packageDetails": self.package_details.to_api_dict(),
        }

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> StoreObject:
        return cls(
            salt=data["salt"],
            pii=data.get("pii", {}),
            package_details=PackageDetails.from_api_response(data["packageDetails"]),
        )


@dataclass
class BlockchainPackage:
    """Public on-chain package record."""

    external_id: str
    owner_org_msp: str
    status: Status
    package_details_and_pii_hash: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> BlockchainPackage:
        return cls(
            external_id=data["externalId"],
            owner_org_msp=data["ownerOrgMSP"],
            status=Status(data["status"]),
            package_details_and_pii_hash=data.get("packageDetailsAndPIIHash", ""),
        )

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "externalId": self.external_id,
            "ownerOrgMSP": self.owner_org_msp,
            "status": self.status.value,
            "packageDetailsAndPIIHash": self.package_details_and_pii_hash,
        }


@dataclass
class TransferTerms:
    """Public transfer terms."""

    external_package_id: str
    from_msp: str
    to_msp: str
    created_iso: str
    expiry_iso: str | None = None

    def __post_init__(self) -> None:
        _require_text("from_msp", self.from_msp)
        _require_text("to_msp", self.to_msp)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> TransferTerms:
        return cls(
            external_package_id=data["externalPackageId"],
            from_msp=data["fromMSP"],
            to_msp=data["toMSP"],
            created_iso=data["createdISO"],
            expiry_iso=data.get("expiryISO"),
        )

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "externalPackageId": self.external_package_id,
            "fromMSP": self.from_msp,
            "toMSP": self.to_msp,
            "createdISO": self.created_iso,
            "expiryISO": self.expiry_iso,
        }


@dataclass
class PrivateTransferTerms:
    """Transfer terms shared only between the two organizations."""

    price: float

    def __post_init__(self) -> None:
        if isinstance(self.price, bool) or not isinstance(self.price, (int, float)):
            raise ValidationError("price must be a number", details={"price": self.price})
        if self.price < 0:
            raise ValidationError("Price cannot be negative", details={"price": self.price})

    def to_api_dict(self) -> dict[str, Any]:
        return {"price": self.price}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> PrivateTransferTerms:
        return cls(price=data["price"])


@dataclass
class Transfer:
    """A transfer proposal with its status and terms hash."""

    terms: TransferTerms
    status: TransferStatus
    transfer_terms_hash: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Transfer:
        return cls(
            terms=TransferTerms.from_api_response(data["terms"]),
            status=TransferStatus(data["status"]),
            transfer_terms_hash=data.get("transferTermsHash", ""),
        )


@dataclass
class TransferOffer:
    """Transfer offer sent privately to the receiving organization."""

    external_package_id: str
    terms_id: str
    from_msp: str
    to_msp: str
    price: float
    created_iso: str
    expiry_iso: str | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "externalPackageId": self.external_package_id,
            "termsId": self.terms_id,
            "fromMSP": self.from_msp,
            "toMSP": self.to_msp,
            "price": self.price,
            "createdISO": self.created_iso,
            "expiryISO": self.expiry_iso,
        }

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> TransferOffer:
        return cls(
            external_package_id=data["externalPackageId"],
            terms_id=data["termsId"],
            from_msp=data["fromMSP"],
            to_msp=data["toMSP"],
            price=data["price"],
            created_iso=data["createdISO"],
            expiry_iso=data.get("expiryISO"),
        )


@dataclass
class InvokeResponse:
    """Receipt returned by FireFly for a contract invocation."""

    id: str
    status: str
    namespace: str | None = None
    error: str | None = None
    tx: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> InvokeResponse:
        return cls(
            id=data.get("id", ""),
            status=data.get("status", ""),
            namespace=data.get("namespace"),
            error=data.get("error") or None,
            tx=data.get("tx"),
            raw=data,
        )

    @property
    def ok(self) -> bool:
        return not self.error

    def raise_for_error(self, method: str | None = None) -> InvokeResponse:
        """Raise ContractError if the receipt carries an error."""
        if self.error:
            raise ContractError(
                self.error,
                method=method,
                transaction_id=self.tx,
                details={"id": self.id, "status": self.status},
            )
        return self
