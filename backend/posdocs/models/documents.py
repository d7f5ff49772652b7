from __future__ import annotations

from ..extensions import db
from posdocs.money import money_to_json
from posdocs.time_utils import to_utc_z


MONEY = db.Numeric(12, 2)

SALE_TYPE_CASH = "cash"
SALE_TYPE_INVOICE = "invoice"

RECEIPT_STATUS_DRAFT = "draft"
RECEIPT_STATUS_COMPLETED = "completed"

REFUND_SOURCE_CREDIT_NOTE = "FROM_CREDITNOTE"
REFUND_SOURCE_STANDALONE = "STANDALONE"


class Receipt(db.Model):
    """
    Receipt for a completed sale: either a cash sale or a deposit taken
    against an invoice edit.

    (invoice_id, invoice_edit_id) is unique. SQL treats NULLs as distinct,
    so cash receipts (both NULL) never collide, while at most one receipt
    can exist per invoice edit. That constraint, not the service's lookup,
    is what makes generation idempotent under concurrency.
    """
    __tablename__ = "receipts"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "invoice_edit_id", name="uq_receipts_invoice_edit"),
        db.Index("ix_receipts_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    receipt_number = db.Column(db.String(32), nullable=False, unique=True)
    sale_type = db.Column(db.String(16), nullable=False, default=SALE_TYPE_CASH)

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)
    invoice_edit_id = db.Column(db.Integer, db.ForeignKey("invoice_edits.id"), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    deposit = db.Column(MONEY, nullable=False, default=0)
    subtotal_before_discount = db.Column(MONEY, nullable=False)
    subtotal_after_discount = db.Column(MONEY, nullable=False)
    tax = db.Column(MONEY, nullable=False)
    total = db.Column(MONEY, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=RECEIPT_STATUS_DRAFT)
    should_print = db.Column("print", db.Boolean, nullable=False, default=False)
    message = db.Column(db.Text, nullable=True)
    signature = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "ReceiptLine",
        order_by="ReceiptLine.position",
        backref="receipt",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receiptNumber": self.receipt_number,
            "saleType": self.sale_type,
            "invoiceId": self.invoice_id,
            "invoiceEditId": self.invoice_edit_id,
            "customerId": self.customer_id,
            "salesRepId": self.sales_rep_id,
            "items": [line.to_dict() for line in self.lines],
            "deposit": money_to_json(self.deposit),
            "subtotalBeforeDiscount": money_to_json(self.subtotal_before_discount),
            "subtotalAfterDiscount": money_to_json(self.subtotal_after_discount),
            "tax": money_to_json(self.tax),
            "total": money_to_json(self.total),
            "status": self.status,
            "print": self.should_print,
            "message": self.message,
            "signature": self.signature,
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }


class ReceiptLine(db.Model):
    """Receipt line: unit price plus the post-discount amount."""
    __tablename__ = "receipt_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey("receipts.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    product_code = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=False, default="")
    quantity = db.Column(db.Numeric(12, 2), nullable=False)
    price = db.Column(MONEY, nullable=False)
    discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    amount = db.Column(MONEY, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productCode": self.product_code,
            "description": self.description,
            "quantity": float(self.quantity),
            "price": money_to_json(self.price),
            "discount": float(self.discount),
            "amount": money_to_json(self.amount),
        }


class CreditNote(db.Model):
    """
    Credit issued to a customer. Two-state document: DRAFT -> APPROVED.
    APPROVED is terminal.
    """
    __tablename__ = "credit_notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    credit_note_number = db.Column(db.String(32), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.Text, nullable=True)
    sales_rep_signature = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    products = db.relationship(
        "CreditNoteLine",
        order_by="CreditNoteLine.position",
        backref="credit_note",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "creditNoteNumber": self.credit_note_number,
            "customerId": self.customer_id,
            "salesRepId": self.sales_rep_id,
            "products": [line.to_dict() for line in self.products],
            "message": self.message,
            "salesRepSignature": self.sales_rep_signature,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class CreditNoteLine(db.Model):
    __tablename__ = "credit_note_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    credit_note_id = db.Column(db.Integer, db.ForeignKey("credit_notes.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    product_code = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Numeric(12, 2), nullable=False)
    price = db.Column(MONEY, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productCode": self.product_code,
            "description": self.description,
            "quantity": float(self.quantity),
            "price": money_to_json(self.price),
        }


class Refund(db.Model):
    """
    Refund issued to a customer, standalone or generated from a credit note.
    Two-state document: DRAFT -> REFUNDED. REFUNDED is terminal.

    credit_note_id is unique (NULLs distinct), so a credit note yields at
    most one refund.
    """
    __tablename__ = "refunds"
    __table_args__ = (
        db.UniqueConstraint("credit_note_id", name="uq_refunds_credit_note"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    refund_number = db.Column(db.String(32), nullable=False, unique=True)
    source = db.Column(db.String(16), nullable=False)
    credit_note_id = db.Column(db.Integer, db.ForeignKey("credit_notes.id"), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    sales_rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.Text, nullable=True)
    sales_rep_signature = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    credit_note = db.relationship("CreditNote")
    products = db.relationship(
        "RefundLine",
        order_by="RefundLine.position",
        backref="refund",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refundNumber": self.refund_number,
            "source": self.source,
            "creditNoteId": self.credit_note_id,
            "creditNoteNumber": self.credit_note.credit_note_number if self.credit_note else None,
            "customerId": self.customer_id,
            "salesRepId": self.sales_rep_id,
            "products": [line.to_dict() for line in self.products],
            "message": self.message,
            "salesRepSignature": self.sales_rep_signature,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class RefundLine(db.Model):
    __tablename__ = "refund_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    refund_id = db.Column(db.Integer, db.ForeignKey("refunds.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    product_code = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Numeric(12, 2), nullable=False)
    price = db.Column(MONEY, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productCode": self.product_code,
            "description": self.description,
            "quantity": float(self.quantity),
            "price": money_to_json(self.price),
        }
