from .auth import User, Role, Permission, RolePermission, UserRole, RefreshToken
from .catalog import Brand, Category
from .products import (
    Product,
    ProductAttribute,
    ProductOption,
    ProductOptionValue,
    ProductVariant,
    VariantOptionValue,
    ProductMedia,
    ProductSEO,
    PRODUCT_STATUSES,
    MEDIA_TYPES,
)

__all__ = [
    'User', 'Role', 'Permission', 'RolePermission', 'UserRole', 'RefreshToken',
    'Brand', 'Category',
    'Product', 'ProductAttribute', 'ProductOption', 'ProductOptionValue',
    'ProductVariant', 'VariantOptionValue', 'ProductMedia', 'ProductSEO',
    'PRODUCT_STATUSES', 'MEDIA_TYPES',
]
