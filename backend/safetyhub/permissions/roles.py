# Overview: Default role -> permission mappings seeded by `flask system init`.

from .definitions import CATALOG_CREATE, CATALOG_DELETE, CATALOG_UPDATE, USERS_MANAGE


# WHY these mappings:
# - admin: everything
# - seller: full catalog management, no user administration
# - customer: read-only storefront access (public routes need no scope)

DEFAULT_ROLE_PERMISSIONS = {
    "admin": [
        CATALOG_CREATE,
        CATALOG_UPDATE,
        CATALOG_DELETE,
        USERS_MANAGE,
    ],
    "seller": [
        CATALOG_CREATE,
        CATALOG_UPDATE,
        CATALOG_DELETE,
    ],
    "customer": [],
}

ROLE_DESCRIPTIONS = {
    "admin": "Platform administrator",
    "seller": "Merchant managing their own catalog",
    "customer": "Storefront shopper",
}

# Roles a user may pick at /v1/auth/register. Admins are created from the CLI.
SELF_SERVICE_ROLES = frozenset({"seller", "customer"})
