"""
fraktal - Package lifecycle client for Hyperledger FireFly

Create packages with private details, transfer ownership between
organizations, and react to chaincode events.

Usage:
    >>> from fraktal import Fraktal
    >>>
    >>> async with Fraktal() as fraktal:
    ...     fraktal.on_event("CreatePackage", lambda e: print(e.output))
    ...     await fraktal.initialize()
    ...     salt = generate_salt()
    ...     await fraktal.packages.create_package(
    ...         "pkg-1", "Org2MSP", details, {"name": "Alice"}, salt
    ...     )
"""

from fraktal.client import Fraktal
from fraktal.core.config import Config
from fraktal.core.exceptions import (
    ConfigurationError,
    ContractError,
    FireFlyError,
    FraktalError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
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
    TransferOffer,
    TransferStatus,
    TransferTerms,
    Urgency,
)
from fraktal.events import (
    BlockchainEventDelivery,
    DatatypeMessage,
    EventDispatcher,
    EventHeader,
    HandlerRegistry,
)
from fraktal.fabconnect import FabconnectClient
from fraktal.firefly import FireFlyClient
from fraktal.integrity import (
    canonical_json,
    compute_integrity_hash,
    compute_store_object_hash,
    generate_salt,
    verify_integrity_hash,
)
from fraktal.services import PackageService, Permission, Role, RoleService

__version__ = "0.1.0"

__all__ = [
    # Client
    "Fraktal",
    "Config",
    "FireFlyClient",
    "FabconnectClient",
    # Services
    "PackageService",
    "RoleService",
    "Permission",
    "Role",
    # Events
    "EventDispatcher",
    "HandlerRegistry",
    "EventHeader",
    "BlockchainEventDelivery",
    "DatatypeMessage",
    # Integrity
    "canonical_json",
    "compute_integrity_hash",
    "compute_store_object_hash",
    "verify_integrity_hash",
    "generate_salt",
    # Types
    "BlockchainPackage",
    "InvokeResponse",
    "Location",
    "PackageDetails",
    "PrivateTransferTerms",
    "Size",
    "Status",
    "StoreObject",
    "Transfer",
    "TransferOffer",
    "TransferStatus",
    "TransferTerms",
    "Urgency",
    # Exceptions
    "FraktalError",
    "ConfigurationError",
    "ContractError",
    "FireFlyError",
    "NetworkError",
    "NotFoundError",
    "ValidationError",
]
