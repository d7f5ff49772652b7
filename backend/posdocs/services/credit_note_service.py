# Overview: Service-layer operations for credit notes.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import CreditNote, CreditNoteLine
from ..time_utils import utcnow
from ..validation import NotFoundError, optional_bool, optional_string, require_id, require_string
from .lifecycle_service import CREDIT_NOTE_LIFECYCLE
from .line_item_service import NormalizedProduct, normalize_products
from .party_service import require_customer, require_sales_rep
from .reference_service import CREDIT_NOTE_PREFIX, insert_with_reference


def build_product_lines(line_model, products: list[NormalizedProduct]) -> list:
    return [
        line_model(
            position=position,
            product_code=product.product_code,
            description=product.description,
            quantity=product.quantity,
            price=product.price,
        )
        for position, product in enumerate(products)
    ]


def create_credit_note(
    *,
    customer_id,
    sales_rep_id,
    products,
    sales_rep_signature,
    message=None,
    save_draft=False,
    user_id: int | None = None,
) -> CreditNote:
    """
    Create a credit note, either as a DRAFT or directly APPROVED.
    """
    customer = require_customer(customer_id)
    sales_rep = require_sales_rep(sales_rep_id)
    normalized = normalize_products(products)
    signature = require_string(sales_rep_signature, "salesRepSignature")
    message = optional_string(message, "message")
    status = CREDIT_NOTE_LIFECYCLE.target_status(optional_bool(save_draft, "saveDraft"))

    def build(reference: str) -> CreditNote:
        credit_note = CreditNote(
            credit_note_number=reference,
            customer_id=customer.id,
            sales_rep_id=sales_rep.id,
            message=message,
            sales_rep_signature=signature,
            status=status,
            created_by_user_id=user_id,
        )
        credit_note.products = build_product_lines(CreditNoteLine, normalized)
        return credit_note

    credit_note, _ = insert_with_reference(
        build, prefix=CREDIT_NOTE_PREFIX, column=CreditNote.credit_note_number
    )
    current_app.logger.info(
        "Credit note %s created (status=%s)", credit_note.credit_note_number, credit_note.status
    )
    return credit_note


def get_credit_note(credit_note_id) -> CreditNote:
    credit_note_id = require_id(credit_note_id, "creditNoteId")
    credit_note = db.session.get(CreditNote, credit_note_id)
    if not credit_note:
        raise NotFoundError("Credit note not found")
    return credit_note


def list_credit_notes(*, status: str | None = None, limit: int = 50, offset: int = 0) -> tuple[list[CreditNote], int]:
    query = db.session.query(CreditNote)
    if status:
        CREDIT_NOTE_LIFECYCLE.validate_status(status)
        query = query.filter(CreditNote.status == status)
    total = query.count()
    credit_notes = query.order_by(CreditNote.id.desc()).offset(offset).limit(limit).all()
    return credit_notes, total


def validate_changes(data: dict) -> dict:
    """Validate the optional fields of a draft rewrite before anything is touched."""
    changes = {}
    if "customerId" in data:
        changes["customer_id"] = require_customer(data["customerId"]).id
    if "salesRepId" in data:
        changes["sales_rep_id"] = require_sales_rep(data["salesRepId"]).id
    if "products" in data:
        changes["products"] = normalize_products(data["products"])
    if "message" in data:
        changes["message"] = optional_string(data["message"], "message")
    if "salesRepSignature" in data:
        changes["sales_rep_signature"] = require_string(data["salesRepSignature"], "salesRepSignature")
    return changes


def update_credit_note(credit_note_id, data: dict, *, user_id: int | None = None) -> CreditNote:
    """
    Rewrite a DRAFT credit note.

    Only keys present in `data` change. saveDraft defaults to false, so an
    update without it approves the credit note. Approved notes are Forbidden.
    """
    credit_note = get_credit_note(credit_note_id)
    status = CREDIT_NOTE_LIFECYCLE.next_status(
        credit_note.status, optional_bool(data.get("saveDraft"), "saveDraft")
    )

    changes = validate_changes(data)
    if "products" in changes:
        credit_note.products = build_product_lines(CreditNoteLine, changes.pop("products"))
    for attr, value in changes.items():
        setattr(credit_note, attr, value)

    credit_note.status = status
    credit_note.updated_at = utcnow()
    db.session.commit()

    current_app.logger.info(
        "Credit note %s updated by user %s (status=%s)",
        credit_note.credit_note_number,
        user_id,
        credit_note.status,
    )
    return credit_note
