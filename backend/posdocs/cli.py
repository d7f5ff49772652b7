# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/posdocs/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--with-users]
#   Idempotent: creates the default roles, optionally one user per role.
#
# Permission catalogue:
# - python -m flask system permissions
# - python -m flask system permissions --role "Sales Representative"
#
# Users and customers:
# - python -m flask users list
# - python -m flask users create --username rep1 --email rep1@posdocs.local --password "Password123!" --role "Sales Representative"
# - python -m flask customers create --name "Acme Ltd" --email billing@acme.test
#
# Invoice inspection:
# - python -m flask invoices chain 42
#   Print the edit chain of invoice 42 and flag edits missing from editIds.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, Role, User
from .permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    PERMISSION_DEFINITIONS,
    get_permission_definition,
    get_permissions_by_category,
)
from .services import invoice_service
from .services.auth_service import create_user, ensure_default_roles
from .validation import DomainError


DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--with-users', is_flag=True, help='Also create one default user per role')
@with_appcontext
def init_system(with_users):
    """
    Create the default roles (and optionally users).

    Default users share the password "Password123!". Change it in production.
    """
    click.echo("START Initializing POSDocs...")

    roles = ensure_default_roles()
    click.echo(f"PASS Roles: {', '.join(role.name for role in roles)}")

    if not with_users:
        return

    for role_name in DEFAULT_ROLE_PERMISSIONS:
        username = role_name.lower().replace(" ", "_").replace("-", "_")
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(
                username=username,
                email=f"{username}@posdocs.local",
                password=DEFAULT_PASSWORD,
                role_name=role_name,
            )
            click.echo(f"PASS Created user: {username} with role '{role_name}'")
        except DomainError as e:
            click.echo(f"FAIL Failed to create user '{username}': {e.message}")


@system_group.command('permissions')
@click.option('--role', 'role_name', default=None, help='Show the keys granted to one role')
@with_appcontext
def list_permissions(role_name):
    """List permission keys by category, or the grants of one role."""
    if role_name is None:
        categories = dict.fromkeys(perm[3] for perm in PERMISSION_DEFINITIONS)
        for category in categories:
            click.echo(f"[{category}]")
            for code, name, description, _ in get_permissions_by_category(category):
                click.echo(f"  {code:<22} {name:<24} {description}")
        return

    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise click.ClickException(f"Role {role_name} not found")

    click.echo(f"{role.name}:")
    for code in role.permissions or []:
        definition = get_permission_definition(code)
        label = definition["name"] if definition else "wildcard"
        click.echo(f"  {code:<22} {label}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found. Run 'python -m flask system init --with-users' first.")
        return

    for user in users:
        status = "ACTIVE" if user.is_active else "INACTIVE"
        role = user.role.name if user.role else "-"
        click.echo(f"{user.id:>4}  {user.username:<24} {role:<22} {status}")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(DEFAULT_ROLE_PERMISSIONS)), prompt=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, full_name):
    """
    Create a new user.

    Password must have 8+ characters with upper and lower case, a digit and
    a special character.
    """
    try:
        user = create_user(
            username=username,
            email=email,
            password=password,
            role_name=role,
            full_name=full_name,
        )
        click.echo(f"PASS Created user {user.username} (ID: {user.id}) with role '{role}'")
    except DomainError as e:
        raise click.ClickException(e.message)


@click.group('customers')
def customers_group():
    """Customer bootstrap commands."""


@customers_group.command('create')
@click.option('--name', prompt=True, help='Customer name')
@click.option('--email', default=None, help='Email address')
@click.option('--phone', default=None, help='Phone number')
@click.option('--billing-address', default=None)
@click.option('--shipping-address', default=None)
@with_appcontext
def create_customer_cli(name, email, phone, billing_address, shipping_address):
    customer = Customer(
        name=name,
        email=email,
        phone=phone,
        billing_address=billing_address,
        shipping_address=shipping_address,
    )
    db.session.add(customer)
    db.session.commit()
    click.echo(f"PASS Created customer {customer.name} (ID: {customer.id})")


@click.group('invoices')
def invoices_group():
    """Invoice inspection commands."""


@invoices_group.command('chain')
@click.argument('invoice_id', type=int)
@with_appcontext
def show_chain(invoice_id):
    """
    Print an invoice's edit chain.

    Edits persisted but never linked into editIds (a crash between the two
    writes of an edit) are flagged UNLINKED. Nothing is repaired.
    """
    try:
        invoice = invoice_service.get_invoice(invoice_id)
    except DomainError as e:
        raise click.ClickException(e.message)

    linked = set(invoice.edit_ids or [])
    click.echo(
        f"{invoice.invoice_number}  status={invoice.status}  total={invoice.total}  "
        f"deposit={invoice.deposit_received}  editCount={invoice.edit_count}  head={invoice.head_edit_id}"
    )
    for edit in invoice_service.list_edits(invoice.id):
        marker = "" if edit.id in linked else "  UNLINKED"
        click.echo(
            f"  edit {edit.id:>5} <- {edit.previous_version_source} {edit.previous_version_id:<5} "
            f"status={edit.status:<8} deposit={edit.deposit_received} (+{edit.deposit_added}) "
            f"balance={edit.balance_due}{marker}"
        )

    unlinked = invoice_service.unlinked_edits(invoice)
    if unlinked:
        click.echo(f"WARN  {len(unlinked)} edit(s) missing from editIds: {', '.join(str(e.id) for e in unlinked)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(customers_group)
    app.cli.add_command(invoices_group)
