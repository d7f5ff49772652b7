"""
Receipt generation tests.

Receipts generated from invoice edits must be idempotent per
(invoice, edit), including when two requests race past the lookup.
"""

from decimal import Decimal

import pytest

from posdocs.extensions import db
from posdocs.models import Receipt
from posdocs.services import generation_service, invoice_service, receipt_service
from posdocs.validation import NotFoundError, ValidationError

from conftest import line


@pytest.fixture
def invoice(db_session, customer, sales_rep):
    return invoice_service.create_invoice(
        customer_id=customer.id,
        sales_rep_id=sales_rep.id,
        items=[line(2, 100)],
        deposit_received=100,
        signature="rep-signature",
    )


@pytest.fixture
def edit(invoice):
    return invoice_service.append_edit(invoice.id, deposit_received=150, payment_method="card")


class TestGenerateFromInvoice:

    def test_receipt_snapshots_the_edit(self, invoice, edit):
        result = generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)
        receipt = result.document

        assert result.already_exists is False
        assert receipt.receipt_number.startswith("RCP-")
        assert receipt.sale_type == "invoice"
        assert receipt.status == "completed"
        assert receipt.should_print is True
        assert receipt.deposit == Decimal("50.00")
        assert receipt.total == Decimal("225.00")
        assert receipt.tax == Decimal("25.00")
        assert receipt.subtotal_after_discount == Decimal("200.00")
        assert receipt.subtotal_before_discount == Decimal("200.00")
        assert receipt.signature == "rep-signature"
        assert [(ln.price, ln.amount) for ln in receipt.lines] == [(Decimal("100.00"), Decimal("200.00"))]

    def test_generating_twice_returns_same_receipt(self, invoice, edit):
        first = generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)
        second = generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)

        assert first.already_exists is False
        assert second.already_exists is True
        assert second.document.receipt_number == first.document.receipt_number
        assert db.session.query(Receipt).count() == 1

    def test_discounted_line_price_is_back_computed(self, invoice):
        edit = invoice_service.append_edit(invoice.id, items=[line(2, 100, 25)], deposit_received=120)
        receipt = generation_service.generate_receipt_from_invoice(
            invoice_id=invoice.id, edit_id=edit.id
        ).document

        (receipt_line,) = receipt.lines
        assert receipt_line.price == Decimal("100.00")
        assert receipt_line.discount == Decimal("25.00")
        assert receipt_line.amount == Decimal("150.00")
        assert receipt.subtotal_before_discount == Decimal("200.00")
        assert receipt.subtotal_after_discount == Decimal("150.00")

    def test_explicit_signature_wins(self, invoice, edit):
        receipt = generation_service.generate_receipt_from_invoice(
            invoice_id=invoice.id, edit_id=edit.id, signature="cashier"
        ).document
        assert receipt.signature == "cashier"

    def test_zero_deposit_edit_rejected(self, invoice):
        edit = invoice_service.append_edit(invoice.id, message="no money moved")
        with pytest.raises(ValidationError):
            generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)
        assert db.session.query(Receipt).count() == 0

    def test_edit_of_another_invoice_rejected(self, invoice, edit, customer, sales_rep):
        other = invoice_service.create_invoice(
            customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)]
        )
        with pytest.raises(ValidationError) as exc:
            generation_service.generate_receipt_from_invoice(invoice_id=other.id, edit_id=edit.id)
        assert exc.value.field == "editId"

    def test_missing_documents(self, invoice, edit):
        with pytest.raises(NotFoundError):
            generation_service.generate_receipt_from_invoice(invoice_id=999, edit_id=edit.id)
        with pytest.raises(NotFoundError):
            generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=999)

    def test_lost_race_returns_winner(self, invoice, edit, monkeypatch):
        """
        Two requests both miss the lookup; the unique (invoice, edit) key
        rejects the slower insert, which then returns the winner's receipt.
        """
        winner = generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)
        winner_number = winner.document.receipt_number

        real_find = generation_service.find_receipt_for_edit
        lookups = []

        def stale_first_lookup(invoice_id, edit_id):
            lookups.append((invoice_id, edit_id))
            if len(lookups) == 1:
                return None
            return real_find(invoice_id, edit_id)

        monkeypatch.setattr(generation_service, "find_receipt_for_edit", stale_first_lookup)

        loser = generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)

        assert len(lookups) == 2
        assert loser.already_exists is True
        assert loser.document.receipt_number == winner_number
        assert db.session.query(Receipt).count() == 1


class TestCashReceipt:

    def test_completed_cash_sale(self, db_session, customer):
        receipt = receipt_service.create_cash_receipt(items=[line(2, 100, 10)], customer_id=customer.id)

        assert receipt.sale_type == "cash"
        assert receipt.invoice_id is None
        assert receipt.subtotal_before_discount == Decimal("200.00")
        assert receipt.subtotal_after_discount == Decimal("180.00")
        assert receipt.tax == Decimal("22.50")
        assert receipt.total == Decimal("202.50")
        assert receipt.deposit == Decimal("202.50")
        assert receipt.status == "completed"
        assert receipt.should_print is True

    def test_draft_cash_sale_is_not_printed(self, db_session):
        receipt = receipt_service.create_cash_receipt(items=[line(1, 10)], save_draft=True)
        assert receipt.status == "draft"
        assert receipt.should_print is False

    def test_cash_sales_never_collide_on_invoice_key(self, db_session):
        receipt_service.create_cash_receipt(items=[line(1, 10)])
        receipt_service.create_cash_receipt(items=[line(1, 10)])
        assert db.session.query(Receipt).count() == 2

    def test_list_filters(self, invoice, edit):
        receipt_service.create_cash_receipt(items=[line(1, 10)], save_draft=True)
        generation_service.generate_receipt_from_invoice(invoice_id=invoice.id, edit_id=edit.id)

        cash, cash_total = receipt_service.list_receipts(sale_type="cash")
        completed, completed_total = receipt_service.list_receipts(status="completed")
        assert cash_total == 1 and cash[0].sale_type == "cash"
        assert completed_total == 1 and completed[0].sale_type == "invoice"

        with pytest.raises(ValidationError):
            receipt_service.list_receipts(sale_type="barter")
