"""Event dispatch: handler registry, envelopes and the FireFly dispatcher."""

from fraktal.events.dispatcher import EventDispatcher
from fraktal.events.registry import EventHandler, HandlerRegistry
from fraktal.events.types import (
    MESSAGE_EVENT,
    AcceptTransferEvent,
    BlockchainEventDelivery,
    CreatePackageEvent,
    DatatypeMessage,
    DeletePackageEvent,
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

__all__ = [
    "EventDispatcher",
    "EventHandler",
    "HandlerRegistry",
    "MESSAGE_EVENT",
    "EventHeader",
    "BlockchainEventDelivery",
    "DatatypeMessage",
    "CreatePackageEvent",
    "StatusUpdatedEvent",
    "DeletePackageEvent",
    "ProposeTransferEvent",
    "AcceptTransferEvent",
    "ExecuteTransferEvent",
    "UnknownEvent",
    "PackageDetailsMessageValue",
    "TransferOfferMessageValue",
    "GenericMessageValue",
    "classify_message",
    "is_package_details_message",
    "is_transfer_offer_message",
    "parse_event_output",
]
