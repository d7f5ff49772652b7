# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVOICE_PERMISSIONS,
    RECEIPT_PERMISSIONS,
    CREDIT_NOTE_PERMISSIONS,
    REFUND_PERMISSIONS,
    CUSTOMER_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    SUPER_ADMIN_ROLE,
    ADMIN_ROLE,
    SALES_REP_ROLE,
    STOCK_KEEPER_ROLE,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    has_permission,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "INVOICE_PERMISSIONS",
    "RECEIPT_PERMISSIONS",
    "CREDIT_NOTE_PERMISSIONS",
    "REFUND_PERMISSIONS",
    "CUSTOMER_PERMISSIONS",
    "USER_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "SUPER_ADMIN_ROLE",
    "ADMIN_ROLE",
    "SALES_REP_ROLE",
    "STOCK_KEEPER_ROLE",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "has_permission",
]
