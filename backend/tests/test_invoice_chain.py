"""
Invoice edit chain tests (service layer).

Covers creation, append-only edits, deposit policy against the head
snapshot, the accepted two-write linkage gap, and listing.
"""

from decimal import Decimal

import pytest

from posdocs.extensions import db
from posdocs.models import Invoice, InvoiceEdit
from posdocs.services import invoice_service
from posdocs.services.deposit_service import AlreadySettled, DepositReduced
from posdocs.validation import ForbiddenError, NotFoundError, ValidationError

from conftest import line


@pytest.fixture
def invoice(db_session, customer, sales_rep):
    """2 x 100 with a 100 deposit."""
    return invoice_service.create_invoice(
        customer_id=customer.id,
        sales_rep_id=sales_rep.id,
        items=[line(2, 100)],
        deposit_received=100,
        payment_terms="net30",
    )


class TestCreateInvoice:

    def test_partial_deposit_invoice(self, invoice):
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.total == Decimal("225.00")
        assert invoice.balance_due == Decimal("125.00")
        assert invoice.status == "partial"
        assert invoice.edit_ids == []
        assert invoice.edit_count == 0
        assert invoice.head_edit_id is None

    def test_due_date_follows_terms(self, invoice):
        assert (invoice.due_date - invoice.issued_at).days == 30

    def test_unknown_customer(self, db_session, sales_rep):
        with pytest.raises(NotFoundError):
            invoice_service.create_invoice(customer_id=999, sales_rep_id=sales_rep.id, items=[line(1, 1)])

    def test_sales_rep_must_hold_role(self, db_session, customer, stock_keeper):
        with pytest.raises(ForbiddenError):
            invoice_service.create_invoice(customer_id=customer.id, sales_rep_id=stock_keeper.id, items=[line(1, 1)])

    def test_validation_precedes_any_write(self, db_session, customer, sales_rep):
        with pytest.raises(ValidationError):
            invoice_service.create_invoice(
                customer_id=customer.id,
                sales_rep_id=sales_rep.id,
                items=[line(1, 10), line(0, 10)],
            )
        assert db_session.query(Invoice).count() == 0

    def test_negative_deposit_rejected(self, db_session, customer, sales_rep):
        with pytest.raises(ValidationError) as exc:
            invoice_service.create_invoice(
                customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)], deposit_received=-1
            )
        assert exc.value.field == "depositReceived"

    def test_bad_payment_terms(self, db_session, customer, sales_rep):
        with pytest.raises(ValidationError):
            invoice_service.create_invoice(
                customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)], payment_terms="net90"
            )

    @pytest.mark.parametrize("terms", [["net7"], {"net": 7}, 30])
    def test_non_string_payment_terms(self, db_session, customer, sales_rep, terms):
        with pytest.raises(ValidationError) as exc:
            invoice_service.create_invoice(
                customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)], payment_terms=terms
            )
        assert exc.value.field == "paymentTerms"
        assert db_session.query(Invoice).count() == 0


class TestAppendEdit:

    def test_edit_pays_off(self, invoice):
        edit = invoice_service.append_edit(invoice.id, deposit_received=225, payment_method="cash")

        assert edit.balance_due == Decimal("0.00")
        assert edit.status == "paid"
        assert edit.deposit_added == Decimal("125.00")
        assert edit.payment_method == "cash"
        assert edit.previous_version_id == invoice.id
        assert edit.previous_version_source == "invoice"

    def test_edit_overpays_once(self, invoice):
        edit = invoice_service.append_edit(invoice.id, deposit_received=300)

        assert edit.balance_due == Decimal("-75.00")
        assert edit.due == Decimal("0.00")
        assert edit.status == "overpaid"

        with pytest.raises(AlreadySettled):
            invoice_service.append_edit(invoice.id, deposit_received=350)

    def test_no_increase_after_paid(self, invoice):
        invoice_service.append_edit(invoice.id, deposit_received=225)
        with pytest.raises(AlreadySettled):
            invoice_service.append_edit(invoice.id, deposit_received=300)

    def test_same_deposit_after_paid_is_allowed(self, invoice):
        invoice_service.append_edit(invoice.id, deposit_received=225)
        edit = invoice_service.append_edit(invoice.id, message="thanks")
        assert edit.deposit_added == Decimal("0.00")
        assert edit.message == "thanks"

    def test_deposit_cannot_shrink(self, invoice):
        with pytest.raises(DepositReduced):
            invoice_service.append_edit(invoice.id, deposit_received=50)
        assert edit_count_for(invoice.id) == 0

    def test_chain_links_and_head(self, invoice):
        first = invoice_service.append_edit(invoice.id, deposit_received=150)
        second = invoice_service.append_edit(invoice.id, deposit_received=200)

        db.session.refresh(invoice)
        assert invoice.edit_ids == [first.id, second.id]
        assert invoice.edit_count == 2
        assert invoice.head_edit_id == second.id
        assert second.previous_version_id == first.id
        assert second.previous_version_source == "edit"
        assert second.deposit_added == Decimal("50.00")

    def test_base_financials_never_change(self, invoice):
        invoice_service.append_edit(invoice.id, items=[line(1, 1000)], deposit_received=500)
        db.session.refresh(invoice)
        assert invoice.total == Decimal("225.00")
        assert invoice.deposit_received == Decimal("100.00")
        assert invoice.status == "partial"

    def test_new_items_recompute_totals(self, invoice):
        edit = invoice_service.append_edit(invoice.id, items=[line(4, 100)])
        assert edit.subtotal == Decimal("400.00")
        assert edit.total == Decimal("450.00")
        assert edit.balance_due == Decimal("350.00")
        assert edit.deposit_received == Decimal("100.00")

    def test_omitted_fields_carry_over(self, invoice):
        edit = invoice_service.append_edit(invoice.id, deposit_received=150)
        assert [edit_line.amount for edit_line in edit.lines] == [Decimal("200.00")]
        assert edit.payment_terms == "net30"
        assert edit.sales_rep_id == invoice.sales_rep_id

    def test_invalid_payment_method(self, invoice):
        with pytest.raises(ValidationError):
            invoice_service.append_edit(invoice.id, deposit_received=150, payment_method="barter")

    def test_non_string_payment_method(self, invoice):
        with pytest.raises(ValidationError) as exc:
            invoice_service.append_edit(invoice.id, deposit_received=150, payment_method=["card"])
        assert exc.value.field == "paymentMethod"
        assert edit_count_for(invoice.id) == 0

    def test_unknown_invoice(self, db_session):
        with pytest.raises(NotFoundError):
            invoice_service.append_edit(12345, deposit_received=1)


def edit_count_for(invoice_id):
    return db.session.query(InvoiceEdit).filter_by(base_invoice_id=invoice_id).count()


class TestReads:

    def test_view_uses_head_snapshot(self, invoice):
        edit = invoice_service.append_edit(invoice.id, deposit_received=225)
        data = invoice_service.get_invoice_view(invoice.id).to_dict()

        assert data["invoiceNumber"] == invoice.invoice_number
        assert data["status"] == "paid"
        assert data["balanceDue"] == 0.0
        assert data["currentVersionId"] == edit.id
        assert data["currentVersionSource"] == "edit"
        assert data["editIds"] == [edit.id]

    def test_view_without_edits_is_base(self, invoice):
        data = invoice_service.get_invoice_view(invoice.id).to_dict()
        assert data["currentVersionSource"] == "invoice"
        assert data["status"] == "partial"

    def test_list_edits_is_ordered_and_fresh(self, invoice):
        a = invoice_service.append_edit(invoice.id, deposit_received=150)
        b = invoice_service.append_edit(invoice.id, deposit_received=160)

        first = invoice_service.list_edits(invoice.id)
        second = invoice_service.list_edits(invoice.id)
        assert [e.id for e in first] == [a.id, b.id]
        assert first is not second
        assert [e.id for e in second] == [a.id, b.id]

    def test_list_filters_on_current_status(self, invoice, customer, sales_rep):
        other = invoice_service.create_invoice(
            customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)]
        )
        invoice_service.append_edit(invoice.id, deposit_received=225)

        paid, paid_total = invoice_service.list_invoices(status="paid")
        pending, _ = invoice_service.list_invoices(status="pending")
        partial, partial_total = invoice_service.list_invoices(status="partial")

        assert [v.invoice.id for v in paid] == [invoice.id]
        assert paid_total == 1
        assert [v.invoice.id for v in pending] == [other.id]
        assert partial_total == 0

    def test_list_pagination(self, db_session, customer, sales_rep):
        ids = [
            invoice_service.create_invoice(
                customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, n + 1)]
            ).id
            for n in range(3)
        ]
        views, total = invoice_service.list_invoices(limit=2, offset=1)
        assert total == 3
        assert [v.invoice.id for v in views] == [ids[1], ids[0]]


class TestLinkageGap:

    def test_crash_between_writes_leaves_unlinked_edit(self, invoice, monkeypatch):
        def crash(invoice_id, edit_id):
            raise RuntimeError("process died")

        monkeypatch.setattr(invoice_service, "_link_edit", crash)
        with pytest.raises(RuntimeError):
            invoice_service.append_edit(invoice.id, deposit_received=150)

        db.session.rollback()
        db.session.refresh(invoice)
        assert invoice.edit_ids == []
        assert invoice.head_edit_id is None

        orphans = invoice_service.unlinked_edits(invoice)
        assert len(orphans) == 1
        assert orphans[0].deposit_received == Decimal("150.00")
        # The current view still reads the base invoice
        assert invoice_service.current_snapshot(invoice) is invoice
