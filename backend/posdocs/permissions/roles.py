# Overview: Default roles and the permission keys each one holds.

SUPER_ADMIN_ROLE = "Super Admin"
ADMIN_ROLE = "Admin"
SALES_REP_ROLE = "Sales Representative"
STOCK_KEEPER_ROLE = "Stock-Keeper"


DEFAULT_ROLE_PERMISSIONS = {
    SUPER_ADMIN_ROLE: ["*"],
    ADMIN_ROLE: [
        "invoice.*",
        "receipt.*",
        "creditNote.*",
        "refund.*",
        "customer.*",
        "user.manage",
    ],
    # Sales reps issue documents but cannot finalize edits to credit notes/refunds
    SALES_REP_ROLE: [
        "invoice.view",
        "invoice.create",
        "invoice.update",
        "receipt.view",
        "receipt.create",
        "creditNote.view",
        "creditNote.create",
        "refund.view",
        "refund.create",
        "customer.view",
    ],
    STOCK_KEEPER_ROLE: [
        "invoice.view",
        "receipt.view",
        "creditNote.view",
        "refund.view",
        "customer.view",
    ],
}
