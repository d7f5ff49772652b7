# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories; each is also the key prefix of its permissions."""
    INVOICE = "invoice"
    RECEIPT = "receipt"
    CREDIT_NOTE = "creditNote"
    REFUND = "refund"
    CUSTOMER = "customer"
    USER = "user"
