"""Flask CLI command tests."""

import pytest

from posdocs.extensions import db
from posdocs.models import Customer, Role, User
from posdocs.services import invoice_service

from conftest import line


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def invoice(db_session, customer, sales_rep):
    return invoice_service.create_invoice(
        customer_id=customer.id,
        sales_rep_id=sales_rep.id,
        items=[line(2, 100)],
        deposit_received=100,
    )


def test_system_init_is_idempotent(runner, db_session):
    first = runner.invoke(args=["system", "init"])
    second = runner.invoke(args=["system", "init"])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert db.session.query(Role).count() == 4


def test_users_create_and_list(runner, db_session):
    result = runner.invoke(args=[
        "users", "create",
        "--username", "rep1",
        "--email", "rep1@posdocs.local",
        "--password", "Password123!",
        "--role", "Sales Representative",
    ])
    assert result.exit_code == 0, result.output
    assert "Created user rep1" in result.output

    listing = runner.invoke(args=["users", "list"])
    assert "rep1" in listing.output
    assert "Sales Representative" in listing.output


def test_users_create_rejects_weak_password(runner, db_session):
    result = runner.invoke(args=[
        "users", "create",
        "--username", "weak",
        "--email", "weak@posdocs.local",
        "--password", "short",
        "--role", "Admin",
    ])
    assert result.exit_code != 0
    assert db.session.query(User).filter_by(username="weak").first() is None


def test_customers_create(runner, db_session):
    result = runner.invoke(args=["customers", "create", "--name", "Globex", "--email", "ap@globex.test"])
    assert result.exit_code == 0
    assert db.session.query(Customer).filter_by(name="Globex").one().email == "ap@globex.test"


def test_invoice_chain_flags_unlinked_edits(runner, invoice, monkeypatch):
    linked = invoice_service.append_edit(invoice.id, deposit_received=150)

    def crash(invoice_id, edit_id):
        raise RuntimeError("process died")

    monkeypatch.setattr(invoice_service, "_link_edit", crash)
    with pytest.raises(RuntimeError):
        invoice_service.append_edit(invoice.id, deposit_received=200)
    db.session.rollback()
    monkeypatch.undo()

    result = runner.invoke(args=["invoices", "chain", str(invoice.id)])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith(invoice.invoice_number)
    assert "UNLINKED" not in next(row for row in lines if f"edit {linked.id:>5}" in row)
    assert "WARN  1 edit(s) missing from editIds" in result.output


def test_invoice_chain_unknown_invoice(runner, db_session):
    result = runner.invoke(args=["invoices", "chain", "999"])
    assert result.exit_code != 0
    assert "Invoice not found" in result.output


def test_permissions_catalogue(runner, db_session):
    result = runner.invoke(args=["system", "permissions"])

    assert result.exit_code == 0
    assert "[creditNote]" in result.output
    assert "creditNote.update" in result.output
    assert result.output.index("[invoice]") < result.output.index("[refund]")


def test_permissions_of_role(runner, db_session):
    result = runner.invoke(args=["system", "permissions", "--role", "Admin"])

    assert result.exit_code == 0
    assert "invoice.*" in result.output
    assert "wildcard" in result.output

    rep = runner.invoke(args=["system", "permissions", "--role", "Sales Representative"])
    assert "Create Invoices" in rep.output

    missing = runner.invoke(args=["system", "permissions", "--role", "Nobody"])
    assert missing.exit_code != 0
