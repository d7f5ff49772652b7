"""initial sales documents schema

Revision ID: 0001_initial_sales_documents
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates the complete POSDocs schema:
- roles, users, session_tokens: authentication collaborator
- customers
- invoices + invoice_lines: base invoice and its initial snapshot
- invoice_edits + invoice_edit_lines: append-only edit chain
- receipts + receipt_lines: unique (invoice_id, invoice_edit_id)
- credit_notes + credit_note_lines
- refunds + refund_lines: unique credit_note_id
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_sales_documents'
down_revision = None
branch_labels = None
depends_on = None


def _money(name, nullable=False, **kwargs):
    return sa.Column(name, sa.Numeric(precision=12, scale=2), nullable=nullable, **kwargs)


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # Authentication
    # ============================================================================
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=128), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role_id', 'users', ['role_id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])

    # ============================================================================
    # customers
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('billing_address', sa.String(length=255), nullable=True),
        sa.Column('shipping_address', sa.String(length=255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customers_email', 'customers', ['email'])

    # ============================================================================
    # invoices: base invoice, initial snapshot, chain bookkeeping
    # ============================================================================
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_rep_id', sa.Integer(), nullable=False),
        sa.Column('payment_terms', sa.String(length=16), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('signature', sa.Text(), nullable=True),
        _money('deposit_received'),
        _money('subtotal'),
        _money('tax'),
        _money('total'),
        _money('balance_due'),
        _money('due'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('edit_ids', sa.JSON(), nullable=False),
        sa.Column('edit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('head_edit_id', sa.Integer(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sales_rep_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_sales_rep_id', 'invoices', ['sales_rep_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_status_created', 'invoices', ['status', 'created_at'])

    op.create_table(
        'invoice_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('discount', sa.Numeric(precision=5, scale=2), nullable=False),
        _money('amount'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_lines_invoice_id', 'invoice_lines', ['invoice_id'])

    # ============================================================================
    # invoice_edits: immutable snapshots, append-only
    # ============================================================================
    op.create_table(
        'invoice_edits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_reference', sa.String(length=32), nullable=False),
        sa.Column('base_invoice_id', sa.Integer(), nullable=False),
        sa.Column('previous_version_id', sa.Integer(), nullable=False),
        sa.Column('previous_version_source', sa.String(length=8), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_rep_id', sa.Integer(), nullable=False),
        sa.Column('payment_terms', sa.String(length=16), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('signature', sa.Text(), nullable=True),
        _money('deposit_received'),
        _money('deposit_added'),
        sa.Column('payment_method', sa.String(length=16), nullable=True),
        _money('subtotal'),
        _money('tax'),
        _money('total'),
        _money('balance_due'),
        _money('due'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['base_invoice_id'], ['invoices.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sales_rep_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_edits_base_invoice_id', 'invoice_edits', ['base_invoice_id'])
    op.create_index('ix_invoice_edits_base_created', 'invoice_edits', ['base_invoice_id', 'id'])

    op.create_table(
        'invoice_edit_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_edit_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('discount', sa.Numeric(precision=5, scale=2), nullable=False),
        _money('amount'),
        sa.ForeignKeyConstraint(['invoice_edit_id'], ['invoice_edits.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_invoice_edit_lines_invoice_edit_id', 'invoice_edit_lines', ['invoice_edit_id'])

    # ============================================================================
    # receipts: at most one per (invoice, edit); cash sales have both NULL
    # ============================================================================
    op.create_table(
        'receipts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(length=32), nullable=False),
        sa.Column('sale_type', sa.String(length=16), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('invoice_edit_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('sales_rep_id', sa.Integer(), nullable=True),
        _money('deposit'),
        _money('subtotal_before_discount'),
        _money('subtotal_after_discount'),
        _money('tax'),
        _money('total'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('print', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('signature', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.ForeignKeyConstraint(['invoice_edit_id'], ['invoice_edits.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sales_rep_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('receipt_number'),
        sa.UniqueConstraint('invoice_id', 'invoice_edit_id', name='uq_receipts_invoice_edit'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_receipts_invoice_id', 'receipts', ['invoice_id'])
    op.create_index('ix_receipts_customer_id', 'receipts', ['customer_id'])
    op.create_index('ix_receipts_status_created', 'receipts', ['status', 'created_at'])

    op.create_table(
        'receipt_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('receipt_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        _money('price'),
        sa.Column('discount', sa.Numeric(precision=5, scale=2), nullable=False),
        _money('amount'),
        sa.ForeignKeyConstraint(['receipt_id'], ['receipts.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_receipt_lines_receipt_id', 'receipt_lines', ['receipt_id'])

    # ============================================================================
    # credit_notes: DRAFT -> APPROVED
    # ============================================================================
    op.create_table(
        'credit_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('credit_note_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_rep_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('sales_rep_signature', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sales_rep_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('credit_note_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_credit_notes_customer_id', 'credit_notes', ['customer_id'])
    op.create_index('ix_credit_notes_status', 'credit_notes', ['status'])

    op.create_table(
        'credit_note_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('credit_note_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        _money('price'),
        sa.ForeignKeyConstraint(['credit_note_id'], ['credit_notes.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_credit_note_lines_credit_note_id', 'credit_note_lines', ['credit_note_id'])

    # ============================================================================
    # refunds: DRAFT -> REFUNDED, at most one per credit note
    # ============================================================================
    op.create_table(
        'refunds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('refund_number', sa.String(length=32), nullable=False),
        sa.Column('source', sa.String(length=16), nullable=False),
        sa.Column('credit_note_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_rep_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('sales_rep_signature', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['credit_note_id'], ['credit_notes.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sales_rep_id'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('refund_number'),
        sa.UniqueConstraint('credit_note_id', name='uq_refunds_credit_note'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_refunds_customer_id', 'refunds', ['customer_id'])
    op.create_index('ix_refunds_status', 'refunds', ['status'])

    op.create_table(
        'refund_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('refund_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=12, scale=2), nullable=False),
        _money('price'),
        sa.ForeignKeyConstraint(['refund_id'], ['refunds.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_refund_lines_refund_id', 'refund_lines', ['refund_id'])


def downgrade():
    for index_name, table in [
        ('ix_refund_lines_refund_id', 'refund_lines'),
        ('ix_refunds_status', 'refunds'),
        ('ix_refunds_customer_id', 'refunds'),
        ('ix_credit_note_lines_credit_note_id', 'credit_note_lines'),
        ('ix_credit_notes_status', 'credit_notes'),
        ('ix_credit_notes_customer_id', 'credit_notes'),
        ('ix_receipt_lines_receipt_id', 'receipt_lines'),
        ('ix_receipts_status_created', 'receipts'),
        ('ix_receipts_customer_id', 'receipts'),
        ('ix_receipts_invoice_id', 'receipts'),
        ('ix_invoice_edit_lines_invoice_edit_id', 'invoice_edit_lines'),
        ('ix_invoice_edits_base_created', 'invoice_edits'),
        ('ix_invoice_edits_base_invoice_id', 'invoice_edits'),
        ('ix_invoice_lines_invoice_id', 'invoice_lines'),
        ('ix_invoices_status_created', 'invoices'),
        ('ix_invoices_status', 'invoices'),
        ('ix_invoices_sales_rep_id', 'invoices'),
        ('ix_invoices_customer_id', 'invoices'),
        ('ix_customers_email', 'customers'),
        ('ix_session_tokens_user_id', 'session_tokens'),
        ('ix_users_role_id', 'users'),
    ]:
        op.drop_index(index_name, table_name=table)

    for table in [
        'refund_lines', 'refunds',
        'credit_note_lines', 'credit_notes',
        'receipt_lines', 'receipts',
        'invoice_edit_lines', 'invoice_edits',
        'invoice_lines', 'invoices',
        'customers',
        'session_tokens', 'users', 'roles',
    ]:
        op.drop_table(table)
