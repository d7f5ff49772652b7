# Overview: Service-layer operations for refunds entered by hand.

"""
Refunds are either STANDALONE or FROM_CREDITNOTE. A credit note can back at
most one refund: the refunds.credit_note_id unique constraint enforces it,
and a second manual refund against the same note is a 409.

Refunds generated from approved credit notes go through
generation_service.generate_refund_from_credit_note instead, which treats a
duplicate as success.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CreditNote, Refund, RefundLine
from ..models.documents import REFUND_SOURCE_CREDIT_NOTE, REFUND_SOURCE_STANDALONE
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_bool,
    optional_string,
    require_choice,
    require_id,
    require_string,
)
from .credit_note_service import build_product_lines, validate_changes
from .generation_service import find_refund_for_credit_note
from .lifecycle_service import REFUND_LIFECYCLE
from .line_item_service import normalize_products
from .party_service import require_customer, require_sales_rep
from .reference_service import REFUND_PREFIX, insert_with_reference


REFUND_SOURCES = {REFUND_SOURCE_CREDIT_NOTE, REFUND_SOURCE_STANDALONE}


def resolve_source(source, credit_note_id, *, refund_id: int | None = None) -> tuple[str, int | None]:
    """
    Validate a (source, creditNoteId) pair.

    FROM_CREDITNOTE needs an existing credit note that no other refund uses.
    STANDALONE refunds never reference a credit note.
    """
    source = require_choice(source, "source", REFUND_SOURCES)
    if source == REFUND_SOURCE_STANDALONE:
        return source, None

    if credit_note_id is None:
        raise ValidationError("creditNoteId is required for FROM_CREDITNOTE refunds", field="creditNoteId")
    credit_note_id = require_id(credit_note_id, "creditNoteId")
    if db.session.get(CreditNote, credit_note_id) is None:
        raise NotFoundError("Credit note not found")

    existing = find_refund_for_credit_note(credit_note_id)
    if existing is not None and existing.id != refund_id:
        raise ConflictError(
            "A refund already exists for this credit note",
            {"refundId": existing.id, "refundNumber": existing.refund_number},
        )
    return source, credit_note_id


def create_refund(
    *,
    source,
    customer_id,
    sales_rep_id,
    products,
    sales_rep_signature,
    credit_note_id=None,
    message=None,
    save_draft=False,
    user_id: int | None = None,
) -> Refund:
    source, credit_note_id = resolve_source(source, credit_note_id)
    customer = require_customer(customer_id)
    sales_rep = require_sales_rep(sales_rep_id)
    normalized = normalize_products(products)
    signature = require_string(sales_rep_signature, "salesRepSignature")
    message = optional_string(message, "message")
    status = REFUND_LIFECYCLE.target_status(optional_bool(save_draft, "saveDraft"))

    def build(reference: str) -> Refund:
        refund = Refund(
            refund_number=reference,
            source=source,
            credit_note_id=credit_note_id,
            customer_id=customer.id,
            sales_rep_id=sales_rep.id,
            message=message,
            sales_rep_signature=signature,
            status=status,
            created_by_user_id=user_id,
        )
        refund.products = build_product_lines(RefundLine, normalized)
        return refund

    recover = None
    if credit_note_id is not None:
        recover = lambda: find_refund_for_credit_note(credit_note_id)

    refund, lost_race = insert_with_reference(
        build, prefix=REFUND_PREFIX, column=Refund.refund_number, recover=recover
    )
    if lost_race:
        raise ConflictError(
            "A refund already exists for this credit note",
            {"refundId": refund.id, "refundNumber": refund.refund_number},
        )

    current_app.logger.info("Refund %s created (source=%s, status=%s)", refund.refund_number, source, status)
    return refund


def get_refund(refund_id) -> Refund:
    refund_id = require_id(refund_id, "refundId")
    refund = db.session.get(Refund, refund_id)
    if not refund:
        raise NotFoundError("Refund not found")
    return refund


def list_refunds(
    *,
    status: str | None = None,
    source: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Refund], int]:
    query = db.session.query(Refund)
    if status:
        REFUND_LIFECYCLE.validate_status(status)
        query = query.filter(Refund.status == status)
    if source:
        query = query.filter(Refund.source == require_choice(source, "source", REFUND_SOURCES))
    total = query.count()
    refunds = query.order_by(Refund.id.desc()).offset(offset).limit(limit).all()
    return refunds, total


def update_refund(refund_id, data: dict, *, user_id: int | None = None) -> Refund:
    """Rewrite a DRAFT refund. Same partial-update rules as credit notes."""
    refund = get_refund(refund_id)
    status = REFUND_LIFECYCLE.next_status(refund.status, optional_bool(data.get("saveDraft"), "saveDraft"))

    if "source" in data or "creditNoteId" in data:
        source, credit_note_id = resolve_source(
            data.get("source", refund.source),
            data.get("creditNoteId", refund.credit_note_id),
            refund_id=refund.id,
        )
    else:
        source, credit_note_id = refund.source, refund.credit_note_id

    changes = validate_changes(data)
    if "products" in changes:
        refund.products = build_product_lines(RefundLine, changes.pop("products"))
    for attr, value in changes.items():
        setattr(refund, attr, value)

    refund.source = source
    refund.credit_note_id = credit_note_id
    refund.status = status
    refund.updated_at = utcnow()
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A refund already exists for this credit note")

    current_app.logger.info(
        "Refund %s updated by user %s (status=%s)", refund.refund_number, user_id, refund.status
    )
    return refund
