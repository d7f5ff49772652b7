from .auth import Role, User, SessionToken
from .customers import Customer
from .invoices import Invoice, InvoiceLine, InvoiceEdit, InvoiceEditLine
from .documents import Receipt, ReceiptLine, CreditNote, CreditNoteLine, Refund, RefundLine

__all__ = [
    'Role', 'User', 'SessionToken',
    'Customer',
    'Invoice', 'InvoiceLine', 'InvoiceEdit', 'InvoiceEditLine',
    'Receipt', 'ReceiptLine', 'CreditNote', 'CreditNoteLine', 'Refund', 'RefundLine',
]
