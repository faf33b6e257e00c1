# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)
# Codes are the scope strings embedded in access tokens.

from .categories import PermissionCategory


CATALOG_CREATE = "catalog:create"
CATALOG_UPDATE = "catalog:update"
CATALOG_DELETE = "catalog:delete"
USERS_MANAGE = "users:manage"


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        CATALOG_CREATE,
        "Create Catalog Entries",
        "Create brands, categories and products; upload assets",
        PermissionCategory.CATALOG,
    ),
    (
        CATALOG_UPDATE,
        "Update Catalog Entries",
        "Edit brands, categories, products, variants, media and SEO",
        PermissionCategory.CATALOG,
    ),
    (
        CATALOG_DELETE,
        "Delete Catalog Entries",
        "Delete brands and categories; archive products",
        PermissionCategory.CATALOG,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        USERS_MANAGE,
        "Manage Users",
        "Assign roles and revoke sessions",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = CATALOG_PERMISSIONS + USER_PERMISSIONS
