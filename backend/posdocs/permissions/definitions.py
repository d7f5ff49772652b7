# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)
# Codes are "<category>.<action>"; roles may also hold "<category>.*" or "*".

from .categories import PermissionCategory


# -- INVOICES --

INVOICE_PERMISSIONS = [
    (
        "invoice.view",
        "View Invoices",
        "View invoices and their edit history",
        PermissionCategory.INVOICE,
    ),
    (
        "invoice.create",
        "Create Invoices",
        "Issue new invoices",
        PermissionCategory.INVOICE,
    ),
    (
        "invoice.update",
        "Edit Invoices",
        "Append edits (items, deposits) to an invoice",
        PermissionCategory.INVOICE,
    ),
]


# -- RECEIPTS --

RECEIPT_PERMISSIONS = [
    (
        "receipt.view",
        "View Receipts",
        "View receipts",
        PermissionCategory.RECEIPT,
    ),
    (
        "receipt.create",
        "Create Receipts",
        "Create cash receipts and generate receipts from invoice edits",
        PermissionCategory.RECEIPT,
    ),
]


# -- CREDIT NOTES --

CREDIT_NOTE_PERMISSIONS = [
    (
        "creditNote.view",
        "View Credit Notes",
        "View credit notes",
        PermissionCategory.CREDIT_NOTE,
    ),
    (
        "creditNote.create",
        "Create Credit Notes",
        "Create draft or approved credit notes",
        PermissionCategory.CREDIT_NOTE,
    ),
    (
        "creditNote.update",
        "Edit Credit Notes",
        "Edit or approve DRAFT credit notes",
        PermissionCategory.CREDIT_NOTE,
    ),
]


# -- REFUNDS --

REFUND_PERMISSIONS = [
    (
        "refund.view",
        "View Refunds",
        "View refunds",
        PermissionCategory.REFUND,
    ),
    (
        "refund.create",
        "Create Refunds",
        "Create refunds, standalone or from a credit note",
        PermissionCategory.REFUND,
    ),
    (
        "refund.update",
        "Edit Refunds",
        "Edit or finalize DRAFT refunds",
        PermissionCategory.REFUND,
    ),
]


# -- CUSTOMERS / USERS --

CUSTOMER_PERMISSIONS = [
    (
        "customer.view",
        "View Customers",
        "View customer records",
        PermissionCategory.CUSTOMER,
    ),
]

USER_PERMISSIONS = [
    (
        "user.manage",
        "Manage Users",
        "Create users and assign roles",
        PermissionCategory.USER,
    ),
]


PERMISSION_DEFINITIONS = (
    INVOICE_PERMISSIONS
    + RECEIPT_PERMISSIONS
    + CREDIT_NOTE_PERMISSIONS
    + REFUND_PERMISSIONS
    + CUSTOMER_PERMISSIONS
    + USER_PERMISSIONS
)
