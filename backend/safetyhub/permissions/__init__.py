# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    CATALOG_PERMISSIONS,
    USER_PERMISSIONS,
    CATALOG_CREATE,
    CATALOG_UPDATE,
    CATALOG_DELETE,
    USERS_MANAGE,
)
from .roles import DEFAULT_ROLE_PERMISSIONS, ROLE_DESCRIPTIONS, SELF_SERVICE_ROLES

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "CATALOG_PERMISSIONS",
    "USER_PERMISSIONS",
    "CATALOG_CREATE",
    "CATALOG_UPDATE",
    "CATALOG_DELETE",
    "USERS_MANAGE",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLE_DESCRIPTIONS",
    "SELF_SERVICE_ROLES",
]
