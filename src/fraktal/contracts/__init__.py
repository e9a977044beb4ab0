"""Contract interfaces (FFI) and FireFly datatypes."""

from fraktal.contracts.ffi import event_names
from fraktal.contracts.package import (
    PACKAGE_DETAILS_DT_NAME,
    PACKAGE_DETAILS_DT_VERSION,
    PACKAGE_EVENTS,
    TRANSFER_OFFER_DT_NAME,
    TRANSFER_OFFER_DT_VERSION,
    package_details_datatype,
    package_interface,
    transfer_offer_datatype,
)
from fraktal.contracts.role import role_interface

__all__ = [
    "PACKAGE_DETAILS_DT_NAME",
    "PACKAGE_DETAILS_DT_VERSION",
    "PACKAGE_EVENTS",
    "TRANSFER_OFFER_DT_NAME",
    "TRANSFER_OFFER_DT_VERSION",
    "event_names",
    "package_details_datatype",
    "package_interface",
    "role_interface",
    "transfer_offer_datatype",
]
