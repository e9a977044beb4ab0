"""Tests for envelope types, typed event variants and message predicates."""

from fraktal.events.types import (
    AcceptTransferEvent,
    BlockchainEventDelivery,
    CreatePackageEvent,
    DatatypeMessage,
    EventHeader,
    ExecuteTransferEvent,
    GenericMessageValue,
    PackageDetailsMessageValue,
    ProposeTransferEvent,
    StatusUpdatedEvent,
    TransferOfferMessageValue,
    UnknownEvent,
    classify_message,
    is_package_details_message,
    is_transfer_offer_message,
    parse_event_output,
)


def make_message(value, validator="json") -> DatatypeMessage:
    return DatatypeMessage.from_data_record(
        {"id": "d1", "validator": validator, "namespace": "default", "value": value},
        {"key": "0xabc", "author": "org1"},
    )


class TestEventHeader:
    def test_defaults_to_empty_strings(self) -> None:
        header = EventHeader.from_api_response(None)

        assert header.signing_key == ""
        assert header.author == ""
        assert header.extra == {}

    def test_extra_fields_kept(self) -> None:
        header = EventHeader.from_api_response(
            {"key": "0xabc", "author": "org1", "topics": ["t"], "tag": "x"}
        )

        assert header.signing_key == "0xabc"
        assert header.extra == {"topics": ["t"], "tag": "x"}


class TestParseEventOutput:
    def test_create_package(self) -> None:
        event = parse_event_output(
            "CreatePackage",
            {
                "externalId": "pkg-1",
                "ownerOrgMSP": "Org1MSP",
                "status": "pending",
                "packageDetailsAndPIIHash": "ab" * 32,
            },
        )

        assert isinstance(event, CreatePackageEvent)
        assert event.owner_org_msp == "Org1MSP"

    def test_status_updated(self) -> None:
        event = parse_event_output("StatusUpdated", {"externalId": "pkg-1", "status": "in_transit"})

        assert event == StatusUpdatedEvent(external_id="pkg-1", status="in_transit")

    def test_transfer_events(self) -> None:
        propose = parse_event_output(
            "ProposeTransfer",
            {"externalId": "pkg-1", "termsId": "t-1", "fromMSP": "Org1MSP", "toMSP": "Org2MSP"},
        )
        accept = parse_event_output("AcceptTransfer", {"externalId": "pkg-1", "termsId": "t-1"})
        execute = parse_event_output(
            "ExecuteTransfer", {"externalId": "pkg-1", "termsId": "t-1", "newOwnerMSP": "Org2MSP"}
        )

        assert isinstance(propose, ProposeTransferEvent)
        assert isinstance(accept, AcceptTransferEvent)
        assert isinstance(execute, ExecuteTransferEvent)
        assert execute.new_owner_msp == "Org2MSP"

    def test_unknown_name_falls_back(self) -> None:
        event = parse_event_output("Audit", {"x": 1})

        assert event == UnknownEvent(name="Audit", data={"x": 1})

    def test_wrong_shape_falls_back(self) -> None:
        event = parse_event_output("CreatePackage", {"externalId": "pkg-1"})

        assert isinstance(event, UnknownEvent)

    def test_delivery_payload(self) -> None:
        delivery = BlockchainEventDelivery(
            name="StatusUpdated",
            output={"externalId": "pkg-1", "status": "delivered"},
            timestamp="2024-01-01T00:00:00Z",
        )

        assert delivery.header == EventHeader()
        assert delivery.payload() == StatusUpdatedEvent(external_id="pkg-1", status="delivered")


class TestMessagePredicates:
    def test_package_details(self) -> None:
        msg = make_message(
            {
                "id": "pkg-1",
                "pickupLocation": {"address": "A"},
                "dropLocation": {"address": "B"},
                "size": {"width": 1, "height": 1, "depth": 1},
                "weightKg": 5,
                "urgency": "low",
            }
        )

        assert is_package_details_message(msg)
        assert not is_transfer_offer_message(msg)
        value = classify_message(msg)
        assert isinstance(value, PackageDetailsMessageValue)
        assert value.weight_kg == 5

    def test_transfer_offer(self) -> None:
        msg = make_message(
            {
                "externalPackageId": "pkg-1",
                "termsId": "t-1",
                "fromMSP": "Org1MSP",
                "toMSP": "Org2MSP",
                "price": 42.5,
                "createdISO": "2024-01-01T00:00:00.000Z",
            }
        )

        assert is_transfer_offer_message(msg)
        value = classify_message(msg)
        assert isinstance(value, TransferOfferMessageValue)
        assert value.expiry_iso is None

    def test_generic_fallback(self) -> None:
        msg = make_message(["not", "a", "record"])

        assert not is_package_details_message(msg)
        assert classify_message(msg) == GenericMessageValue(value=["not", "a", "record"])

    def test_non_json_validator_never_matches(self) -> None:
        msg = make_message({"id": "x", "termsId": "t"}, validator="none")

        assert not is_transfer_offer_message(msg)
        assert isinstance(classify_message(msg), GenericMessageValue)
