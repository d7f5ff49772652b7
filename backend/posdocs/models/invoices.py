from __future__ import annotations

from ..extensions import db
from posdocs.money import money_to_json
from posdocs.time_utils import to_utc_z


MONEY = db.Numeric(12, 2)

PAYMENT_TERMS = {"net7", "net15", "net30", "net60", "dueOnReceipt"}
PAYMENT_METHODS = {"cash", "card", "bank_transfer", "cheque", "other"}
INVOICE_STATUSES = {"pending", "partial", "paid", "overpaid"}

VERSION_SOURCE_INVOICE = "invoice"
VERSION_SOURCE_EDIT = "edit"


class InvoiceLineColumns:
    """Columns shared by invoice and invoice-edit lines (post-discount amount, no unit price)."""
    id = db.Column(db.Integer, primary_key=True)
    position = db.Column(db.Integer, nullable=False)
    product_code = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=False, default="")
    quantity = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    amount = db.Column(MONEY, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productCode": self.product_code,
            "description": self.description,
            "quantity": float(self.quantity),
            "discount": float(self.discount),
            "amount": money_to_json(self.amount),
        }


class Invoice(db.Model):
    """
    Base invoice: immutable identity plus the initial financial snapshot.

    Later changes never touch the financial columns. They are appended as
    InvoiceEdit rows; edit_ids/edit_count/head_edit_id are the only columns
    written after creation. head_edit_id is a plain id (not a relationship)
    so the chain stays an arena of rows addressed by id.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable reference (e.g., "INV-1A2B-3C4D")
    invoice_number = db.Column(db.String(32), nullable=False, unique=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    payment_terms = db.Column(db.String(16), nullable=False, default="dueOnReceipt")
    issued_at = db.Column(db.DateTime(timezone=True), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    message = db.Column(db.Text, nullable=True)
    signature = db.Column(db.Text, nullable=True)

    # Initial snapshot
    deposit_received = db.Column(MONEY, nullable=False, default=0)
    subtotal = db.Column(MONEY, nullable=False)
    tax = db.Column(MONEY, nullable=False)
    total = db.Column(MONEY, nullable=False)
    balance_due = db.Column(MONEY, nullable=False)
    due = db.Column(MONEY, nullable=False)
    status = db.Column(db.String(16), nullable=False, index=True)

    # Edit chain bookkeeping
    edit_ids = db.Column(db.JSON, nullable=False, default=list)
    edit_count = db.Column(db.Integer, nullable=False, default=0)
    head_edit_id = db.Column(db.Integer, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    sales_rep = db.relationship("User", foreign_keys=[sales_rep_id])
    lines = db.relationship(
        "InvoiceLine",
        order_by="InvoiceLine.position",
        backref="invoice",
        lazy=True,
    )

    def financials_dict(self) -> dict:
        return {
            "depositReceived": money_to_json(self.deposit_received),
            "subtotal": money_to_json(self.subtotal),
            "tax": money_to_json(self.tax),
            "total": money_to_json(self.total),
            "balanceDue": money_to_json(self.balance_due),
            "due": money_to_json(self.due),
            "status": self.status,
        }

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "customerId": self.customer_id,
            "salesRepId": self.sales_rep_id,
            "paymentTerms": self.payment_terms,
            "issuedAt": to_utc_z(self.issued_at),
            "dueDate": to_utc_z(self.due_date),
            "message": self.message,
            "signature": self.signature,
            "items": [line.to_dict() for line in self.lines],
            "editIds": list(self.edit_ids or []),
            "editCount": self.edit_count,
            "headEditId": self.head_edit_id,
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }
        data.update(self.financials_dict())
        return data


class InvoiceLine(InvoiceLineColumns, db.Model):
    __tablename__ = "invoice_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)


class InvoiceEdit(db.Model):
    """
    Immutable snapshot of an invoice after one edit.

    Each edit points at the version it followed (previous_version_id) and
    records whether that was the base invoice or another edit. Rows are
    never updated or deleted.
    """
    __tablename__ = "invoice_edits"
    __table_args__ = (
        db.Index("ix_invoice_edits_base_created", "base_invoice_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_reference = db.Column(db.String(32), nullable=False)
    base_invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    previous_version_id = db.Column(db.Integer, nullable=False)
    previous_version_source = db.Column(db.String(8), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    payment_terms = db.Column(db.String(16), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    message = db.Column(db.Text, nullable=True)
    signature = db.Column(db.Text, nullable=True)

    # Cumulative deposit and the delta against the previous version
    deposit_received = db.Column(MONEY, nullable=False)
    deposit_added = db.Column(MONEY, nullable=False)
    payment_method = db.Column(db.String(16), nullable=True)

    subtotal = db.Column(MONEY, nullable=False)
    tax = db.Column(MONEY, nullable=False)
    total = db.Column(MONEY, nullable=False)
    balance_due = db.Column(MONEY, nullable=False)
    due = db.Column(MONEY, nullable=False)
    status = db.Column(db.String(16), nullable=False)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    base_invoice = db.relationship("Invoice", backref=db.backref("edits", lazy=True, order_by="InvoiceEdit.id"))
    lines = db.relationship(
        "InvoiceEditLine",
        order_by="InvoiceEditLine.position",
        backref="edit",
        lazy=True,
    )

    def financials_dict(self) -> dict:
        return {
            "depositReceived": money_to_json(self.deposit_received),
            "subtotal": money_to_json(self.subtotal),
            "tax": money_to_json(self.tax),
            "total": money_to_json(self.total),
            "balanceDue": money_to_json(self.balance_due),
            "due": money_to_json(self.due),
            "status": self.status,
        }

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "invoiceReference": self.invoice_reference,
            "baseInvoiceId": self.base_invoice_id,
            "previousVersionId": self.previous_version_id,
            "previousVersionSource": self.previous_version_source,
            "customerId": self.customer_id,
            "salesRepId": self.sales_rep_id,
            "paymentTerms": self.payment_terms,
            "dueDate": to_utc_z(self.due_date),
            "message": self.message,
            "signature": self.signature,
            "items": [line.to_dict() for line in self.lines],
            "depositAdded": money_to_json(self.deposit_added),
            "paymentMethod": self.payment_method,
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }
        data.update(self.financials_dict())
        return data


class InvoiceEditLine(InvoiceLineColumns, db.Model):
    __tablename__ = "invoice_edit_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    invoice_edit_id = db.Column(db.Integer, db.ForeignKey("invoice_edits.id"), nullable=False, index=True)
