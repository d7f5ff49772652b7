# Overview: Idempotent generation of documents that depend on a prior document.

"""
Dependent Document Generation

- Receipt from an invoice edit: at most one per (invoice, edit).
- Refund from a credit note: at most one per credit note.

IDEMPOTENCY:
A store lookup runs first and returns an existing document unchanged with
already_exists=True. That lookup is optimistic: two concurrent requests can
both miss it. The database's unique constraint then rejects the slower
insert, and the loser re-reads and returns the winner's document instead
of failing. Retrying a generation request is therefore always safe.

SNAPSHOTS:
Receipts generated from an edit copy the edit's stored totals rather than
recomputing from lines, so the receipt records the figures as they stood at
edit time. Tax is back-derived from the total (total x 0.125 / 1.125).
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import CreditNote, Receipt, Refund, RefundLine
from ..models.documents import (
    RECEIPT_STATUS_COMPLETED,
    REFUND_SOURCE_CREDIT_NOTE,
    SALE_TYPE_INVOICE,
)
from ..validation import NotFoundError, ValidationError, optional_string, require_id
from .calculation_service import back_derived_tax, subtotal_before_discount
from .invoice_service import carried_items, get_edit, get_invoice
from .lifecycle_service import CREDIT_NOTE_LIFECYCLE, REFUND_LIFECYCLE
from .receipt_service import build_receipt_lines
from .reference_service import RECEIPT_PREFIX, REFUND_PREFIX, insert_with_reference


@dataclass(frozen=True)
class GenerationResult:
    document: Receipt | Refund
    already_exists: bool


# =============================================================================
# RECEIPT FROM INVOICE EDIT
# =============================================================================

def find_receipt_for_edit(invoice_id: int, edit_id: int) -> Receipt | None:
    return (
        db.session.query(Receipt)
        .filter(Receipt.invoice_id == invoice_id, Receipt.invoice_edit_id == edit_id)
        .first()
    )


def generate_receipt_from_invoice(
    *,
    invoice_id,
    edit_id,
    signature=None,
    user_id: int | None = None,
) -> GenerationResult:
    """
    Generate the receipt for the deposit taken in one invoice edit.

    Preconditions, in order:
    1. The edit belongs to the invoice.
    2. The edit added a deposit (depositAdded > 0).
    3. No receipt exists yet for (invoice, edit); otherwise that receipt is
       returned with already_exists=True.
    """
    invoice = get_invoice(invoice_id)
    edit = get_edit(edit_id)

    if edit.base_invoice_id != invoice.id:
        raise ValidationError("Invoice edit does not belong to this invoice", field="editId")

    if edit.deposit_added <= 0:
        raise ValidationError(
            "Receipt cannot be generated for an edit with zero deposit",
            field="editId",
        )

    invoice_pk = invoice.id
    edit_pk = edit.id

    existing = find_receipt_for_edit(invoice_pk, edit_pk)
    if existing is not None:
        current_app.logger.info(
            "Receipt %s already exists for invoice %s edit %s", existing.receipt_number, invoice_pk, edit_pk
        )
        return GenerationResult(existing, True)

    signature = optional_string(signature, "signature") or edit.signature
    items = carried_items(edit)

    def build(reference: str) -> Receipt:
        receipt = Receipt(
            receipt_number=reference,
            sale_type=SALE_TYPE_INVOICE,
            invoice_id=invoice_pk,
            invoice_edit_id=edit_pk,
            customer_id=edit.customer_id,
            sales_rep_id=edit.sales_rep_id,
            deposit=edit.deposit_added,
            subtotal_before_discount=subtotal_before_discount(items),
            subtotal_after_discount=edit.subtotal,
            tax=back_derived_tax(edit.total),
            total=edit.total,
            status=RECEIPT_STATUS_COMPLETED,
            should_print=True,
            message=edit.message,
            signature=signature,
            created_by_user_id=user_id,
        )
        receipt.lines = build_receipt_lines(items)
        return receipt

    receipt, already_exists = insert_with_reference(
        build,
        prefix=RECEIPT_PREFIX,
        column=Receipt.receipt_number,
        recover=lambda: find_receipt_for_edit(invoice_pk, edit_pk),
    )

    if already_exists:
        current_app.logger.warning(
            "Concurrent receipt generation for invoice %s edit %s; returning %s",
            invoice_pk,
            edit_pk,
            receipt.receipt_number,
        )
    else:
        current_app.logger.info(
            "Receipt %s generated for invoice %s edit %s", receipt.receipt_number, invoice_pk, edit_pk
        )
    return GenerationResult(receipt, already_exists)


# =============================================================================
# REFUND FROM CREDIT NOTE
# =============================================================================

def find_refund_for_credit_note(credit_note_id: int) -> Refund | None:
    return db.session.query(Refund).filter(Refund.credit_note_id == credit_note_id).first()


def generate_refund_from_credit_note(
    *,
    credit_note_id,
    signature=None,
    user_id: int | None = None,
) -> GenerationResult:
    """
    Refund an approved credit note in full.

    The refund copies the credit note's customer, sales rep and products and
    is created directly in its terminal REFUNDED state.
    """
    credit_note_id = require_id(credit_note_id, "creditNoteId")
    credit_note = db.session.get(CreditNote, credit_note_id)
    if not credit_note:
        raise NotFoundError("Credit note not found")

    if not CREDIT_NOTE_LIFECYCLE.is_terminal(credit_note.status):
        raise ValidationError(
            "Only approved credit notes can be refunded",
            field="creditNoteId",
        )

    existing = find_refund_for_credit_note(credit_note.id)
    if existing is not None:
        return GenerationResult(existing, True)

    signature = optional_string(signature, "signature") or credit_note.sales_rep_signature
    products = [
        (line.product_code, line.description, line.quantity, line.price)
        for line in credit_note.products
    ]

    def build(reference: str) -> Refund:
        refund = Refund(
            refund_number=reference,
            source=REFUND_SOURCE_CREDIT_NOTE,
            credit_note_id=credit_note_id,
            customer_id=credit_note.customer_id,
            sales_rep_id=credit_note.sales_rep_id,
            message=credit_note.message,
            sales_rep_signature=signature,
            status=REFUND_LIFECYCLE.terminal,
            created_by_user_id=user_id,
        )
        refund.products = [
            RefundLine(
                position=position,
                product_code=code,
                description=description,
                quantity=quantity,
                price=price,
            )
            for position, (code, description, quantity, price) in enumerate(products)
        ]
        return refund

    refund, already_exists = insert_with_reference(
        build,
        prefix=REFUND_PREFIX,
        column=Refund.refund_number,
        recover=lambda: find_refund_for_credit_note(credit_note_id),
    )

    if already_exists:
        current_app.logger.warning(
            "Concurrent refund generation for credit note %s; returning %s",
            credit_note_id,
            refund.refund_number,
        )
    else:
        current_app.logger.info(
            "Refund %s generated from credit note %s", refund.refund_number, credit_note_id
        )
    return GenerationResult(refund, already_exists)
