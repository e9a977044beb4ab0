"""Role/permission contract interface."""

from __future__ import annotations

from typing import Any

from fraktal.contracts.ffi import interface, method

INTERFACE_VERSION = "1.0"


def role_interface(name: str = "pm3roleauth") -> dict[str, Any]:
    """FFI document for the role authorization chaincode."""
    return interface(
        name,
        INTERFACE_VERSION,
        description="Role-based permissions for package operations",
        methods=[
            method("getPermissions", "identityIdentifier", returns={"type": "array"}),
            method("setPermissions", "targetIdentityIdentifier", "permissionsJson"),
            method("grantPermissionsToOrg", "targetMSP", "permissionsJson"),
            method("revokePermissionsFromOrg", "targetMSP"),
            method("removePermissionsFromOrg", "targetMSP", "permissionsJson"),
            method("getCallerPermissions", returns={"type": "array"}),
            method("callerHasPermission", "permission", returns={"type": "boolean"}),
            method("getCallerIdentifier", returns={"type": "string"}),
        ],
    )
