"""
Event and message envelopes delivered to registered handlers.

Two envelope kinds exist, one per push stream:

- BlockchainEventDelivery: a named contract event (CreatePackage, ...)
- DatatypeMessage: a confirmed FireFly data message with a JSON value

Both always carry an EventHeader. Signer identity is an empty string when
the notification did not carry one.

Payloads are plain dicts on the envelope; `payload()` / `classify_message()`
turn them into the typed variants below, falling back to a catch-all
variant for shapes this library does not know.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

MESSAGE_EVENT = "message"
JSON_VALIDATOR = "json"


@dataclass
class EventHeader:
    """Signer identity of a delivered notification."""

    signing_key: str = ""
    author: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any] | None) -> EventHeader:
        if not data:
            return cls()
        extra = {k: v for k, v in data.items() if k not in ("key", "author")}
        return cls(
            signing_key=data.get("key") or "",
            author=data.get("author") or "",
            extra=extra,
        )


@dataclass
class BlockchainEventDelivery:
    """Normalized contract event."""

    name: str
    output: dict[str, Any]
    timestamp: str
    header: EventHeader = field(default_factory=EventHeader)
    transaction_id: str | None = None
    event_id: str | None = None

    def payload(self) -> PackageEvent:
        """Typed view of `output`."""
        return parse_event_output(self.name, self.output)


@dataclass
class DatatypeMessage:
    """Normalized confirmed data message."""

    id: str
    header: EventHeader
    validator: str
    namespace: str
    hash: str
    created: str
    value: Any
    signing_key: str = ""
    author: str = ""
    datatype: dict[str, Any] | None = None

    @classmethod
    def from_data_record(
        cls, record: Mapping[str, Any], message_header: Mapping[str, Any] | None
    ) -> DatatypeMessage:
        """Merge a fetched data record with the outer message header."""
        header = EventHeader.from_api_response(message_header)
        return cls(
            id=record.get("id", ""),
            header=header,
            validator=record.get("validator", ""),
            namespace=record.get("namespace", ""),
            hash=record.get("hash", ""),
            created=record.get("created", ""),
            value=record.get("value"),
            signing_key=header.signing_key,
            author=header.author,
            datatype=record.get("datatype"),
        )


# ─── Contract event variants ────────────────────────────────────────


def _has_keys(data: Any, *keys: str) -> bool:
    return isinstance(data, Mapping) and all(k in data for k in keys)


@dataclass
class CreatePackageEvent:
    external_id: str
    owner_org_msp: str
    status: str
    package_details_and_pii_hash: str

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId", "ownerOrgMSP", "status", "packageDetailsAndPIIHash")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> CreatePackageEvent:
        return cls(
            external_id=data["externalId"],
            owner_org_msp=data["ownerOrgMSP"],
            status=data["status"],
            package_details_and_pii_hash=data["packageDetailsAndPIIHash"],
        )


@dataclass
class StatusUpdatedEvent:
    external_id: str
    status: str

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId", "status")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> StatusUpdatedEvent:
        return cls(external_id=data["externalId"], status=data["status"])


@dataclass
class DeletePackageEvent:
    external_id: str

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> DeletePackageEvent:
        return cls(external_id=data["externalId"])


@dataclass
class ProposeTransferEvent:
    external_id: str
    terms_id: str
    from_msp: str
    to_msp: str

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId", "termsId", "fromMSP", "toMSP")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> ProposeTransferEvent:
        return cls(
            external_id=data["externalId"],
            terms_id=data["termsId"],
            from_msp=data["fromMSP"],
            to_msp=data["toMSP"],
        )


@dataclass
class AcceptTransferEvent:
    external_id: str
    terms_id: str

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId", "termsId")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> AcceptTransferEvent:
        return cls(external_id=data["externalId"], terms_id=data["termsId"])


@dataclass
class ExecuteTransferEvent:
    external_id: str
    terms_id: str
    new_owner_msp: str | None = None

    @classmethod
    def matches(cls, data: Any) -> bool:
        return _has_keys(data, "externalId", "termsId")

    @classmethod
    def from_output(cls, data: Mapping[str, Any]) -> ExecuteTransferEvent:
        return cls(
            external_id=data["externalId"],
            terms_id=data["termsId"],
            new_owner_msp=data.get("newOwnerMSP") or data.get("toMSP"),
        )


@dataclass
class UnknownEvent:
    """Catch-all for events with an unrecognized name or shape."""

    name: str
    data: Any


PackageEvent = Union[
    CreatePackageEvent,
    StatusUpdatedEvent,
    DeletePackageEvent,
    ProposeTransferEvent,
    AcceptTransferEvent,
    ExecuteTransferEvent,
    UnknownEvent,
]

EVENT_VARIANTS: dict[str, type] = {
    "CreatePackage": CreatePackageEvent,
    "StatusUpdated": StatusUpdatedEvent,
    "DeletePackage": DeletePackageEvent,
    "ProposeTransfer": ProposeTransferEvent,
    "AcceptTransfer": AcceptTransferEvent,
    "ExecuteTransfer": ExecuteTransferEvent,
}


def parse_event_output(name: str, output: Any) -> PackageEvent:
    """Pick the typed variant for a contract event by name and shape."""
    variant = EVENT_VARIANTS.get(name)
    if variant is not None and variant.matches(output):
        return variant.from_output(output)
    return UnknownEvent(name=name, data=output)


# ─── Message value variants ─────────────────────────────────────────


@dataclass
class PackageDetailsMessageValue:
    id: str
    pickup_location: dict[str, Any]
    drop_location: dict[str, Any]
    size: dict[str, Any]
    weight_kg: float
    urgency: str


@dataclass
class TransferOfferMessageValue:
    external_package_id: str
    terms_id: str
    from_msp: str
    to_msp: str
    price: float
    created_iso: str
    expiry_iso: str | None = None


@dataclass
class GenericMessageValue:
    """Catch-all for message values of an unrecognized shape."""

    value: Any


MessageValue = Union[PackageDetailsMessageValue, TransferOfferMessageValue, GenericMessageValue]


def is_package_details_message(msg: DatatypeMessage) -> bool:
    """True if the message carries a PackageDetails record."""
    return msg.validator == JSON_VALIDATOR and _has_keys(
        msg.value, "id", "pickupLocation", "dropLocation", "size", "weightKg", "urgency"
    )


def is_transfer_offer_message(msg: DatatypeMessage) -> bool:
    """True if the message carries a TransferOffer record."""
    return msg.validator == JSON_VALIDATOR and _has_keys(
        msg.value, "externalPackageId", "termsId", "fromMSP", "toMSP", "price", "createdISO"
    )


def classify_message(msg: DatatypeMessage) -> MessageValue:
    """Typed view of a message value."""
    value = msg.value
    if is_package_details_message(msg):
        return PackageDetailsMessageValue(
            id=value["id"],
            pickup_location=value["pickupLocation"],
            drop_location=value["dropLocation"],
            size=value["size"],
            weight_kg=value["weightKg"],
            urgency=value["urgency"],
        )
    if is_transfer_offer_message(msg):
        return TransferOfferMessageValue(
            external_package_id=value["externalPackageId"],
            terms_id=value["termsId"],
            from_msp=value["fromMSP"],
            to_msp=value["toMSP"],
            price=value["price"],
            created_iso=value["createdISO"],
            expiry_iso=value.get("expiryISO"),
        )
    return GenericMessageValue(value=value)
