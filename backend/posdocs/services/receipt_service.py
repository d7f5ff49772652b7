# Overview: Service-layer operations for receipts (cash sales and reads).

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Receipt, ReceiptLine
from ..models.documents import (
    RECEIPT_STATUS_COMPLETED,
    RECEIPT_STATUS_DRAFT,
    SALE_TYPE_CASH,
    SALE_TYPE_INVOICE,
)
from ..validation import NotFoundError, optional_string, require_choice, require_id
from .calculation_service import (
    calculate_subtotal,
    calculate_tax,
    calculate_total,
    subtotal_before_discount,
)
from .line_item_service import NormalizedItem, normalize_items
from .party_service import require_customer, require_sales_rep
from .reference_service import RECEIPT_PREFIX, insert_with_reference


SALE_TYPES = {SALE_TYPE_CASH, SALE_TYPE_INVOICE}
RECEIPT_STATUSES = {RECEIPT_STATUS_DRAFT, RECEIPT_STATUS_COMPLETED}


def build_receipt_lines(items: list[NormalizedItem]) -> list[ReceiptLine]:
    return [
        ReceiptLine(
            position=position,
            product_code=item.product_code,
            description=item.description,
            quantity=item.quantity,
            price=item.price,
            discount=item.discount,
            amount=item.amount,
        )
        for position, item in enumerate(items)
    ]


def create_cash_receipt(
    *,
    items,
    customer_id=None,
    sales_rep_id=None,
    message=None,
    signature=None,
    save_draft: bool = False,
    user_id: int | None = None,
) -> Receipt:
    """
    Create a standalone receipt for a cash sale (no invoice).

    Totals are computed from the lines; a cash sale is paid in full, so the
    deposit equals the total. Completed receipts are flagged for printing.
    """
    customer = require_customer(customer_id) if customer_id is not None else None
    sales_rep = require_sales_rep(sales_rep_id) if sales_rep_id is not None else None
    normalized = normalize_items(items)
    message = optional_string(message, "message")
    signature = optional_string(signature, "signature")

    subtotal = calculate_subtotal(normalized)
    tax = calculate_tax(subtotal)
    total = calculate_total(subtotal, tax)
    status = RECEIPT_STATUS_DRAFT if save_draft else RECEIPT_STATUS_COMPLETED

    def build(reference: str) -> Receipt:
        receipt = Receipt(
            receipt_number=reference,
            sale_type=SALE_TYPE_CASH,
            customer_id=customer.id if customer else None,
            sales_rep_id=sales_rep.id if sales_rep else None,
            deposit=total,
            subtotal_before_discount=subtotal_before_discount(normalized),
            subtotal_after_discount=subtotal,
            tax=tax,
            total=total,
            status=status,
            should_print=status == RECEIPT_STATUS_COMPLETED,
            message=message,
            signature=signature,
            created_by_user_id=user_id,
        )
        receipt.lines = build_receipt_lines(normalized)
        return receipt

    receipt, _ = insert_with_reference(build, prefix=RECEIPT_PREFIX, column=Receipt.receipt_number)
    current_app.logger.info("Cash receipt %s created (total=%s)", receipt.receipt_number, receipt.total)
    return receipt


def get_receipt(receipt_id) -> Receipt:
    receipt_id = require_id(receipt_id, "receiptId")
    receipt = db.session.get(Receipt, receipt_id)
    if not receipt:
        raise NotFoundError("Receipt not found")
    return receipt


def list_receipts(
    *,
    sale_type: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Receipt], int]:
    query = db.session.query(Receipt)
    if sale_type:
        query = query.filter(Receipt.sale_type == require_choice(sale_type, "saleType", SALE_TYPES))
    if status:
        query = query.filter(Receipt.status == require_choice(status, "status", RECEIPT_STATUSES))

    total = query.count()
    receipts = query.order_by(Receipt.id.desc()).offset(offset).limit(limit).all()
    return receipts, total
