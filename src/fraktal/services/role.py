"""Role/permission service over the role authorization chaincode."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from fraktal.contracts.role import role_interface
from fraktal.core.config import Config
from fraktal.core.types import InvokeResponse
from fraktal.integrity import canonical_json
from fraktal.services.base import ContractService, parse_json_result

if TYPE_CHECKING:
    from fraktal.firefly.client import FireFlyClient


class Role(str, Enum):
    PM3 = "pm3"
    OMBUD = "ombud"
    TRANSPORTER = "transporter"


class Permission(str, Enum):
    """Permissions enforced by the chaincode."""

    PACKAGE_CREATE = "package:create"
    PACKAGE_READ = "package:read"
    PACKAGE_READ_PRIVATE = "package:read:private"
    PACKAGE_UPDATE_STATUS = "package:updateStatus"
    PACKAGE_DELETE = "package:delete"
    TRANSFER_PROPOSE = "transfer:propose"
    TRANSFER_ACCEPT = "transfer:accept"
    TRANSFER_EXECUTE = "transfer:execute"


def _permissions_json(permissions: list[Permission | str]) -> str:
    return canonical_json([Permission(p).value for p in permissions])


def _as_permission_list(result: Any) -> list[str]:
    """Arrays pass through; JSON text is parsed; anything else is empty."""
    parsed = parse_json_result(result)
    if not isinstance(parsed, list):
        return []
    return [p for p in parsed if isinstance(p, str)]


class RoleService(ContractService):
    """
    High-level API for the role authorization chaincode.

    Permission changes are only accepted from the administrating
    organization; the chaincode enforces this, not the client.
    """

    def __init__(self, ff: FireFlyClient, config: Config | None = None) -> None:
        config = config or ff.config
        super().__init__(
            ff,
            role_interface(config.role_chaincode),
            chaincode=config.role_chaincode,
            config=config,
        )

    async def initialize(self) -> None:
        """Ensure the contract interface and API exist. Safe to repeat."""
        await self.ensure_contract_interface()
        await self.ensure_contract_api()
        self._initialized = True

    # ==================== Queries ====================

    async def get_permissions(self, identity: str | None = None) -> list[str]:
        """
        Permissions of `identity`, or of the caller when omitted.

        The chaincode returns a JSON array; FireFly may hand it back parsed
        or as text. Anything that is not an array yields ``[]``.
        """
        input = {"identityIdentifier": identity} if identity else {}
        res = await self._query("getPermissions", input)
        permissions = _as_permission_list(res)
        self._logger.debug(f"Permissions for {identity or 'caller'}: {permissions}")
        return permissions

    async def get_caller_permissions(self) -> list[str]:
        return _as_permission_list(await self._query("getCallerPermissions"))

    async def has_permission(self, permission: Permission | str) -> bool:
        res = await self._query("callerHasPermission", {"permission": Permission(permission).value})
        return parse_json_result(res) is True

    async def get_caller_identifier(self) -> str:
        """The caller's identity identifier as seen by the chaincode."""
        res = await self._query("getCallerIdentifier")
        return res if isinstance(res, str) else ""

    # ==================== Updates ====================

    async def set_permissions(
        self, target_identity: str, permissions: list[Permission | str]
    ) -> InvokeResponse:
        return await self._invoke(
            "setPermissions",
            {
                "targetIdentityIdentifier": target_identity,
                "permissionsJson": _permissions_json(permissions),
            },
        )

    async def grant_permissions_to_org(
        self, target_msp: str, permissions: list[Permission | str]
    ) -> InvokeResponse:
        return await self._invoke(
            "grantPermissionsToOrg",
            {"targetMSP": target_msp, "permissionsJson": _permissions_json(permissions)},
        )

    async def revoke_permissions_from_org(self, target_msp: str) -> InvokeResponse:
        """Drop every permission granted to an organization."""
        return await self._invoke("revokePermissionsFromOrg", {"targetMSP": target_msp})

    async def remove_permissions_from_org(
        self, target_msp: str, permissions: list[Permission | str]
    ) -> InvokeResponse:
        """Remove only the listed permissions from an organization."""
        return await self._invoke(
            "removePermissionsFromOrg",
            {"targetMSP": target_msp, "permissionsJson": _permissions_json(permissions)},
        )
