# Overview: Service-layer operations for invoices and their append-only edit chain.

"""
Invoice Edit Chain Service

An invoice's history is an append-only log. The base invoice holds the
identity and the initial snapshot; each later change is a new, immutable
InvoiceEdit that points at the version it followed. The current view of an
invoice is the head edit, or the base invoice when no edit exists.

APPENDING AN EDIT (two writes, no surrounding transaction):
1. Insert the InvoiceEdit row (with its lines).
2. Append its id to invoice.edit_ids, bump edit_count, move head_edit_id.

A crash between 1 and 2 leaves a persisted edit that the base invoice does
not list. That gap is accepted and is not repaired here; unlinked_edits()
exposes it for inspection.

Nothing financial is updated after insert. Corrections are new edits.
Clients serialize edits to one invoice themselves (read latest, then
edit); there is no optimistic version check.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Invoice, InvoiceLine, InvoiceEdit, InvoiceEditLine
from ..models.invoices import (
    INVOICE_STATUSES,
    PAYMENT_METHODS,
    PAYMENT_TERMS,
    VERSION_SOURCE_EDIT,
    VERSION_SOURCE_INVOICE,
)
from ..money import parse_number, round2
from ..time_utils import due_date_for_terms, to_utc_z, utcnow
from ..validation import NotFoundError, ValidationError, optional_string, require_choice, require_id
from .calculation_service import calculate_invoice
from .concurrency import run_with_retry
from .deposit_service import ensure_deposit_accepted
from .line_item_service import NormalizedItem, back_computed_price, normalize_items
from .party_service import require_customer, require_sales_rep
from .reference_service import INVOICE_PREFIX, insert_with_reference


DEFAULT_PAYMENT_TERMS = "dueOnReceipt"


@dataclass(frozen=True)
class InvoiceView:
    """Base identity combined with the current snapshot."""
    invoice: Invoice
    current: Invoice | InvoiceEdit

    @property
    def current_source(self) -> str:
        return VERSION_SOURCE_EDIT if isinstance(self.current, InvoiceEdit) else VERSION_SOURCE_INVOICE

    def to_dict(self) -> dict:
        data = self.invoice.to_dict()
        data.update(self.current.financials_dict())
        data.update({
            "items": [line.to_dict() for line in self.current.lines],
            "salesRepId": self.current.sales_rep_id,
            "paymentTerms": self.current.payment_terms,
            "dueDate": to_utc_z(self.current.due_date),
            "message": self.current.message,
            "signature": self.current.signature,
            "currentVersionId": self.current.id,
            "currentVersionSource": self.current_source,
        })
        return data


def parse_deposit(value, field: str = "depositReceived") -> Decimal:
    amount = parse_number(value)
    if amount is None or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number", field=field)
    return round2(amount)


def _build_lines(line_model, items: list[NormalizedItem]) -> list:
    return [
        line_model(
            position=position,
            product_code=item.product_code,
            description=item.description,
            quantity=item.quantity,
            discount=item.discount,
            amount=item.amount,
        )
        for position, item in enumerate(items)
    ]


def carried_items(snapshot: Invoice | InvoiceEdit) -> list[NormalizedItem]:
    """Items of an existing snapshot, with stored amounts kept exactly."""
    return [
        NormalizedItem(
            product_code=line.product_code,
            description=line.description,
            quantity=line.quantity,
            price=back_computed_price(line.amount, line.quantity, line.discount),
            discount=line.discount,
            amount=line.amount,
        )
        for line in snapshot.lines
    ]


# =============================================================================
# CREATION
# =============================================================================

def create_invoice(
    *,
    customer_id,
    sales_rep_id,
    items,
    deposit_received=0,
    payment_terms=None,
    message=None,
    signature=None,
    user_id: int | None = None,
) -> Invoice:
    """
    Create a base invoice and its initial snapshot.

    All validation happens before the first write.
    """
    customer = require_customer(customer_id)
    sales_rep = require_sales_rep(sales_rep_id)
    normalized = normalize_items(items)
    deposit = parse_deposit(deposit_received)
    terms = require_choice(payment_terms or DEFAULT_PAYMENT_TERMS, "paymentTerms", PAYMENT_TERMS)
    message = optional_string(message, "message")
    signature = optional_string(signature, "signature")

    totals = calculate_invoice(normalized, deposit)
    issued_at = utcnow()

    def build(reference: str) -> Invoice:
        invoice = Invoice(
            invoice_number=reference,
            customer_id=customer.id,
            sales_rep_id=sales_rep.id,
            payment_terms=terms,
            issued_at=issued_at,
            due_date=due_date_for_terms(issued_at, terms),
            message=message,
            signature=signature,
            deposit_received=totals.deposit_received,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            balance_due=totals.balance_due,
            due=totals.due,
            status=totals.status,
            edit_ids=[],
            edit_count=0,
            head_edit_id=None,
            created_by_user_id=user_id,
        )
        invoice.lines = _build_lines(InvoiceLine, normalized)
        return invoice

    invoice, _ = insert_with_reference(build, prefix=INVOICE_PREFIX, column=Invoice.invoice_number)

    current_app.logger.info(
        "Invoice %s created (total=%s, status=%s)", invoice.invoice_number, invoice.total, invoice.status
    )
    return invoice


# =============================================================================
# READS
# =============================================================================

def get_invoice(invoice_id) -> Invoice:
    invoice_id = require_id(invoice_id, "invoiceId")
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def get_edit(edit_id) -> InvoiceEdit:
    edit_id = require_id(edit_id, "editId")
    edit = db.session.get(InvoiceEdit, edit_id)
    if not edit:
        raise NotFoundError("Invoice edit not found")
    return edit


def current_snapshot(invoice: Invoice) -> Invoice | InvoiceEdit:
    """The head edit, or the base invoice while the chain is empty."""
    if invoice.head_edit_id:
        head = db.session.get(InvoiceEdit, invoice.head_edit_id)
        if head is not None:
            return head
    return invoice


def get_invoice_view(invoice_id) -> InvoiceView:
    invoice = get_invoice(invoice_id)
    return InvoiceView(invoice=invoice, current=current_snapshot(invoice))


def list_edits(invoice_id) -> list[InvoiceEdit]:
    """
    Every edit of an invoice in creation order.

    Returns a new list on each call; reading it has no side effects.
    """
    invoice = get_invoice(invoice_id)
    return (
        db.session.query(InvoiceEdit)
        .filter(InvoiceEdit.base_invoice_id == invoice.id)
        .order_by(InvoiceEdit.id.asc())
        .all()
    )


def unlinked_edits(invoice: Invoice) -> list[InvoiceEdit]:
    """Edits persisted for an invoice but missing from its edit_ids."""
    linked = set(invoice.edit_ids or [])
    return [edit for edit in list_edits(invoice.id) if edit.id not in linked]


def list_invoices(*, status: str | None = None, limit: int = 50, offset: int = 0) -> tuple[list[InvoiceView], int]:
    """
    Paginated current views, newest first.

    The status filter applies to the current snapshot (head edit when
    present), not to the base invoice's initial status.
    """
    current_status = db.func.coalesce(InvoiceEdit.status, Invoice.status)
    query = db.session.query(Invoice, InvoiceEdit).outerjoin(
        InvoiceEdit, InvoiceEdit.id == Invoice.head_edit_id
    )
    if status:
        query = query.filter(current_status == require_choice(status, "status", INVOICE_STATUSES))

    total = query.count()
    rows = query.order_by(Invoice.id.desc()).offset(offset).limit(limit).all()
    views = [InvoiceView(invoice=invoice, current=edit or invoice) for invoice, edit in rows]
    return views, total


# =============================================================================
# EDITS
# =============================================================================

def append_edit(
    invoice_id,
    *,
    items=None,
    deposit_received=None,
    payment_method=None,
    payment_terms=None,
    sales_rep_id=None,
    message=None,
    signature=None,
    user_id: int | None = None,
) -> InvoiceEdit:
    """
    Append a new immutable snapshot to an invoice's chain.

    Omitted fields carry over from the current snapshot. deposit_received is
    the new cumulative deposit; the deposit policy is checked against the
    current snapshot's balance before anything is written.
    """
    invoice = get_invoice(invoice_id)
    current = current_snapshot(invoice)

    normalized = normalize_items(items) if items is not None else carried_items(current)

    previous_deposit = current.deposit_received
    new_deposit = parse_deposit(deposit_received) if deposit_received is not None else previous_deposit
    ensure_deposit_accepted(current.balance_due, previous_deposit, new_deposit)

    rep_id = require_sales_rep(sales_rep_id).id if sales_rep_id is not None else current.sales_rep_id
    terms = (
        require_choice(payment_terms, "paymentTerms", PAYMENT_TERMS)
        if payment_terms is not None
        else current.payment_terms
    )
    if payment_method is not None:
        require_choice(payment_method, "paymentMethod", PAYMENT_METHODS)
    message = optional_string(message, "message") if message is not None else current.message
    signature = optional_string(signature, "signature") if signature is not None else current.signature

    totals = calculate_invoice(normalized, new_deposit)
    deposit_added = round2(new_deposit - previous_deposit)
    previous_source = VERSION_SOURCE_EDIT if isinstance(current, InvoiceEdit) else VERSION_SOURCE_INVOICE

    def _insert() -> InvoiceEdit:
        edit = InvoiceEdit(
            invoice_reference=invoice.invoice_number,
            base_invoice_id=invoice.id,
            previous_version_id=current.id,
            previous_version_source=previous_source,
            customer_id=invoice.customer_id,
            sales_rep_id=rep_id,
            payment_terms=terms,
            due_date=due_date_for_terms(invoice.issued_at, terms),
            message=message,
            signature=signature,
            deposit_received=totals.deposit_received,
            deposit_added=deposit_added,
            payment_method=payment_method,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            balance_due=totals.balance_due,
            due=totals.due,
            status=totals.status,
            created_by_user_id=user_id,
        )
        edit.lines = _build_lines(InvoiceEditLine, normalized)
        db.session.add(edit)
        db.session.commit()
        return edit

    edit = run_with_retry(_insert)
    edit_id = edit.id

    run_with_retry(lambda: _link_edit(invoice.id, edit_id))

    current_app.logger.info(
        "Invoice %s edit %s appended (deposit_added=%s, status=%s)",
        invoice.invoice_number,
        edit_id,
        deposit_added,
        edit.status,
    )
    return edit


def _link_edit(invoice_id: int, edit_id: int) -> None:
    invoice = db.session.get(Invoice, invoice_id)
    # Reassign rather than mutate so the JSON column is flagged dirty
    invoice.edit_ids = [*(invoice.edit_ids or []), edit_id]
    invoice.edit_count = (invoice.edit_count or 0) + 1
    invoice.head_edit_id = edit_id
    db.session.commit()
