# Overview: Pure invoice arithmetic; the single source of truth for document totals.

"""
Invoice Calculation Service

Every create and edit recomputes through calculate_invoice(). A client may
mirror these rules for instant feedback, but stored values always come from
here. Rounding to two places happens at each derived step, not only at the
end, so recomputed values match historical rows exactly.

STATUS (derived, never transitioned):
- balance > 0, deposit > 0  -> partial
- balance > 0, deposit == 0 -> pending
- balance == 0              -> paid
- balance < 0               -> overpaid
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..money import CENT, ZERO, round2


TAX_RATE = Decimal("0.125")

STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"
STATUS_OVERPAID = "overpaid"


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    deposit_received: Decimal
    balance_due: Decimal
    due: Decimal
    status: str


def calculate_subtotal(items: Iterable) -> Decimal:
    """Sum of line amounts (already discounted), before tax."""
    return round2(sum((item.amount for item in items), ZERO))


def calculate_tax(subtotal: Decimal) -> Decimal:
    return round2(subtotal * TAX_RATE)


def calculate_total(subtotal: Decimal, tax: Decimal) -> Decimal:
    return round2(subtotal + tax)


def calculate_balance_due(total: Decimal, deposit_received: Decimal) -> Decimal:
    """Can be negative (overpaid). Anything within a cent of zero is zero."""
    balance = round2(total - deposit_received)
    if abs(balance) < CENT:
        return ZERO
    return balance


def derive_status(balance_due: Decimal, deposit_received: Decimal) -> str:
    if balance_due > 0:
        return STATUS_PARTIAL if deposit_received > 0 else STATUS_PENDING
    if balance_due == 0:
        return STATUS_PAID
    return STATUS_OVERPAID


def calculate_invoice(items: Iterable, deposit_received: Decimal) -> InvoiceTotals:
    """Compute every stored financial field for an invoice snapshot."""
    deposit = round2(deposit_received)
    subtotal = calculate_subtotal(items)
    tax = calculate_tax(subtotal)
    total = calculate_total(subtotal, tax)
    balance_due = calculate_balance_due(total, deposit)

    return InvoiceTotals(
        subtotal=subtotal,
        tax=tax,
        total=total,
        deposit_received=deposit,
        balance_due=balance_due,
        # Payable amount; never negative
        due=max(balance_due, ZERO),
        status=derive_status(balance_due, deposit),
    )


def subtotal_before_discount(items: Iterable) -> Decimal:
    """Receipt subtotal at list price: sum of round2(quantity x price)."""
    return round2(sum((round2(item.quantity * item.price) for item in items), ZERO))


def back_derived_tax(total: Decimal) -> Decimal:
    """
    Tax portion of a tax-inclusive total: total x rate / (1 + rate).

    Used for receipts generated from invoice edits, whose totals are copied
    from the edit rather than recomputed from lines.
    """
    return round2(total * TAX_RATE / (1 + TAX_RATE))
