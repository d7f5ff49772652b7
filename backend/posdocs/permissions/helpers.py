# Overview: Utility functions for permission lookups and capability checks.

from .definitions import PERMISSION_DEFINITIONS

SUPER_ADMIN_KEY = "*"
WILDCARD_SUFFIX = ".*"


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all permissions in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """
    Check that a grantable key exists in the permission space.

    Accepts concrete codes, "<category>.*" for a known category, and "*".
    """
    if code == SUPER_ADMIN_KEY:
        return True
    if code.endswith(WILDCARD_SUFFIX):
        category = code[: -len(WILDCARD_SUFFIX)]
        return any(perm[3] == category for perm in PERMISSION_DEFINITIONS)
    return code in get_all_permission_codes()


def has_permission(granted, required: str) -> bool:
    """
    Capability-set membership check.

    Three checks, in order: exact key, category wildcard ("invoice.*" grants
    "invoice.create"), then super-admin "*".
    """
    granted = set(granted or ())

    if required in granted:
        return True

    category, sep, _action = required.partition(".")
    if sep and f"{category}{WILDCARD_SUFFIX}" in granted:
        return True

    return SUPER_ADMIN_KEY in granted
