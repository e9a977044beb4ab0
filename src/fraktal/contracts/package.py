"""
Package contract interface and FireFly datatypes.

The interface mirrors the deployed package chaincode; the datatypes
validate the broadcast PackageDetails records and the private
TransferOffer messages exchanged between organizations.
"""

from __future__ import annotations

from typing import Any

from fraktal.contracts.ffi import event, interface, method

INTERFACE_VERSION = "1.0"

PACKAGE_EVENTS = (
    "CreatePackage",
    "StatusUpdated",
    "DeletePackage",
    "ProposeTransfer",
    "AcceptTransfer",
    "ExecuteTransfer",
)


def package_interface(name: str = "pm3package") -> dict[str, Any]:
    """FFI document for the package chaincode."""
    return interface(
        name,
        INTERFACE_VERSION,
        description="Package lifecycle and ownership transfer",
        methods=[
            method("CreatePackage", "externalId", "recipientOrgMSP"),
            method("UpdatePackageStatus", "externalId", "status"),
            method("ReadBlockchainPackage", "externalId", returns={"type": "object"}),
            method("PackageExists", "externalId", returns={"type": "boolean"}),
            method("ReadPackageDetailsAndPII", "externalId", returns={"type": "object"}),
            method("DeletePackage", "externalId"),
            method(
                "CheckPackageDetailsAndPIIHash",
                "externalId",
                "expectedHash",
                returns={"type": "boolean"},
            ),
            method("ProposeTransfer", "externalId", "termsId", "toMSP", "createdISO", "expiryISO"),
            method("ReadTransferTerms", "termsId", returns={"type": "object"}),
            method("ReadPrivateTransferTerms", "termsId", returns={"type": "object"}),
            method("AcceptTransfer", "externalId", "termsId"),
            method("ExecuteTransfer", "externalId", "termsId"),
        ],
        events=[
            event("CreatePackage", "externalId", "ownerOrgMSP", "status", "packageDetailsAndPIIHash"),
            event("StatusUpdated", "externalId", "status"),
            event("DeletePackage", "externalId"),
            event("ProposeTransfer", "externalId", "termsId", "fromMSP", "toMSP"),
            event("AcceptTransfer", "externalId", "termsId"),
            event("ExecuteTransfer", "externalId", "termsId"),
        ],
    )


# ─── Datatypes ──────────────────────────────────────────────────────

PACKAGE_DETAILS_DT_NAME = "PackageDetails"
PACKAGE_DETAILS_DT_VERSION = "1.0.0"

TRANSFER_OFFER_DT_NAME = "TransferOffer"
TRANSFER_OFFER_DT_VERSION = "1.0.0"

_SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"

_LOCATION = {
    "type": "object",
    "properties": {
        "address": {"type": "string"},
        "lat": {"type": ["number", "null"]},
        "lng": {"type": ["number", "null"]},
    },
    "required": ["address"],
    "additionalProperties": False,
}

_SIZE = {
    "type": "object",
    "properties": {
        "width": {"type": "number"},
        "height": {"type": "number"},
        "depth": {"type": "number"},
    },
    "required": ["width", "height", "depth"],
    "additionalProperties": False,
}


def _schema_id(namespace: str, name: str, version: str) -> str:
    return f"ff://{namespace}/{name}/{version}"


def package_details_datatype(namespace: str = "default") -> dict[str, Any]:
    """FireFly datatype request for PackageDetails records."""
    return {
        "name": PACKAGE_DETAILS_DT_NAME,
        "version": PACKAGE_DETAILS_DT_VERSION,
        "validator": "json",
        "value": {
            "$schema": _SCHEMA_DRAFT,
            "$id": _schema_id(namespace, PACKAGE_DETAILS_DT_NAME, PACKAGE_DETAILS_DT_VERSION),
            "title": PACKAGE_DETAILS_DT_NAME,
            "type": "object",
            "properties": {
                "id": {"type": "string"},
                "pickupLocation": {"$ref": "#/definitions/Location"},
                "dropLocation": {"$ref": "#/definitions/Location"},
                "size": {"$ref": "#/definitions/Size"},
                "weightKg": {"type": "number"},
                "urgency": {"type": "string", "enum": ["high", "medium", "low", "none"]},
                "price": {"type": "number"},
            },
            "required": ["id", "pickupLocation", "dropLocation", "size", "weightKg", "urgency"],
            "additionalProperties": False,
            "definitions": {"Location": _LOCATION, "Size": _SIZE},
        },
    }


def transfer_offer_datatype(namespace: str = "default") -> dict[str, Any]:
    """FireFly datatype request for TransferOffer messages."""
    return {
        "name": TRANSFER_OFFER_DT_NAME,
        "version": TRANSFER_OFFER_DT_VERSION,
        "validator": "json",
        "value": {
            "$schema": _SCHEMA_DRAFT,
            "$id": _schema_id(namespace, TRANSFER_OFFER_DT_NAME, TRANSFER_OFFER_DT_VERSION),
            "title": TRANSFER_OFFER_DT_NAME,
            "type": "object",
            "properties": {
                "externalPackageId": {"type": "string"},
                "termsId": {"type": "string"},
                "fromMSP": {"type": "string"},
                "toMSP": {"type": "string"},
                "price": {"type": "number"},
                "createdISO": {"type": "string"},
                "expiryISO": {"type": ["string", "null"]},
            },
            "required": ["externalPackageId", "termsId", "fromMSP", "toMSP", "price", "createdISO"],
            "additionalProperties": False,
        },
    }
