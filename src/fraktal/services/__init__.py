"""Contract-backed services."""

from fraktal.services.base import ContractService
from fraktal.services.package import PackageService
from fraktal.services.role import Permission, Role, RoleService

__all__ = [
    "ContractService",
    "PackageService",
    "Permission",
    "Role",
    "RoleService",
]
