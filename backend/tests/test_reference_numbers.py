"""Reference number generation and duplicate-key retry tests."""

import re

import pytest

from posdocs.models import CreditNote, Invoice
from posdocs.services import reference_service
from posdocs.services.credit_note_service import create_credit_note
from posdocs.services.invoice_service import create_invoice
from posdocs.services.reference_service import (
    GenerationExhausted,
    INVOICE_PREFIX,
    generate_reference,
    new_candidate,
)
from posdocs.validation import ConflictError

from conftest import line, product


REFERENCE_PATTERN = re.compile(r"^[A-Z]+-[0-9A-F]{4}-[0-9A-F]{4}$")


def test_candidate_format():
    for prefix in ("INV", "RCP", "CN", "REF"):
        candidate = new_candidate(prefix)
        assert candidate.startswith(f"{prefix}-")
        assert REFERENCE_PATTERN.match(candidate)


def test_generate_skips_taken_numbers(db_session, customer, sales_rep):
    invoice = create_invoice(customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)])
    candidates = iter([invoice.invoice_number, "INV-0000-0001"])

    reference = generate_reference(
        INVOICE_PREFIX, Invoice.invoice_number, candidate_factory=lambda prefix: next(candidates)
    )
    assert reference == "INV-0000-0001"


def test_generate_gives_up_after_five_attempts(db_session, customer, sales_rep):
    invoice = create_invoice(customer_id=customer.id, sales_rep_id=sales_rep.id, items=[line(1, 10)])
    calls = []

    def always_taken(prefix):
        calls.append(prefix)
        return invoice.invoice_number

    with pytest.raises(GenerationExhausted) as exc:
        generate_reference(INVOICE_PREFIX, Invoice.invoice_number, candidate_factory=always_taken)

    assert len(calls) == 5
    assert isinstance(exc.value, ConflictError)
    assert exc.value.status_code == 409


def test_insert_retries_when_pre_check_misses_a_collision(db_session, customer, sales_rep, monkeypatch):
    """A concurrent writer claims our number between the check and the commit."""
    first = create_credit_note(
        customer_id=customer.id,
        sales_rep_id=sales_rep.id,
        products=[product(1, 5)],
        sales_rep_signature="sig",
    )
    customer_id, rep_id = customer.id, sales_rep.id
    candidates = iter([first.credit_note_number, "CN-AAAA-0002"])

    real_exists = reference_service.reference_exists
    checks = []

    def blind_first_check(column, reference):
        checks.append(reference)
        if len(checks) == 1:
            return False
        return real_exists(column, reference)

    monkeypatch.setattr(reference_service, "reference_exists", blind_first_check)

    second, already_existed = reference_service.insert_with_reference(
        lambda reference: CreditNote(
            credit_note_number=reference,
            customer_id=customer_id,
            sales_rep_id=rep_id,
            sales_rep_signature="sig",
            status="DRAFT",
        ),
        prefix="CN",
        column=CreditNote.credit_note_number,
        candidate_factory=lambda prefix: next(candidates),
    )

    assert already_existed is False
    assert second.credit_note_number == "CN-AAAA-0002"
    assert db_session.query(CreditNote).count() == 2
