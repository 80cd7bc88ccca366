"""Initial schema: accounts, sessions, financial records, document sequences

Revision ID: 0001_initial
Revises:
Create Date: 2025-01-06

This migration adds:
1. users and session_tokens (bearer sessions, hashed tokens)
2. vendors and customers
3. sale_orders and invoices (line_items as JSON, derived money columns)
4. payments and expenses
5. document_sequences (per-owner, per-year SO/INV counters)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _owned_columns():
    return [
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _owned_constraints(table):
    return [
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name=f'fk_{table}_owner'),
        sa.PrimaryKeyConstraint('id'),
    ]


def upgrade():
    # ==========================================================================
    # 1. ACCOUNTS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ==========================================================================
    # 2. PARTIES
    # ==========================================================================
    op.create_table('vendors',
        *_owned_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('tax_id', sa.String(length=64), nullable=True),
        sa.Column('payment_terms_days', sa.Integer(), nullable=False, server_default='30'),
        *_owned_constraints('vendors'),
    )
    op.create_index('ix_vendors_owner_id', 'vendors', ['owner_id'])
    op.create_index('ix_vendors_owner_name', 'vendors', ['owner_id', 'name'])

    op.create_table('customers',
        *_owned_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('tax_id', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('payment_terms_days', sa.Integer(), nullable=False, server_default='30'),
        *_owned_constraints('customers'),
    )
    op.create_index('ix_customers_owner_id', 'customers', ['owner_id'])
    op.create_index('ix_customers_owner_name', 'customers', ['owner_id', 'name'])

    # ==========================================================================
    # 3. SALE ORDERS AND INVOICES
    # ==========================================================================
    op.create_table('sale_orders',
        *_owned_columns(),
        sa.Column('order_number', sa.String(length=64), nullable=False),
        sa.Column('customer_id', sa.String(length=32), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('po_number', sa.String(length=64), nullable=True),
        sa.Column('po_date', sa.Date(), nullable=True),
        sa.Column('line_items', sa.JSON(), nullable=False),
        sa.Column('total_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Draft'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_owned_constraints('sale_orders'),
    )
    op.create_index('ix_sale_orders_owner_id', 'sale_orders', ['owner_id'])
    op.create_index('ix_sale_orders_customer_id', 'sale_orders', ['customer_id'])
    op.create_index('ix_sale_orders_owner_number', 'sale_orders', ['owner_id', 'order_number'])
    op.create_index('ix_sale_orders_owner_status', 'sale_orders', ['owner_id', 'status'])

    op.create_table('invoices',
        *_owned_columns(),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('vendor_id', sa.String(length=32), nullable=True),
        sa.Column('vendor_name', sa.String(length=255), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('po_id', sa.String(length=64), nullable=True),
        sa.Column('po_number', sa.String(length=64), nullable=True),
        sa.Column('po_date', sa.Date(), nullable=True),
        sa.Column('line_items', sa.JSON(), nullable=False),
        sa.Column('transportation_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('amount_received_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('pending_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Unpaid'),
        sa.Column('days_delayed', sa.Integer(), nullable=False, server_default='0'),
        *_owned_constraints('invoices'),
    )
    op.create_index('ix_invoices_owner_id', 'invoices', ['owner_id'])
    op.create_index('ix_invoices_vendor_id', 'invoices', ['vendor_id'])
    op.create_index('ix_invoices_owner_number', 'invoices', ['owner_id', 'invoice_number'])
    op.create_index('ix_invoices_owner_status', 'invoices', ['owner_id', 'status'])
    op.create_index('ix_invoices_owner_due', 'invoices', ['owner_id', 'due_date'])

    # ==========================================================================
    # 4. PAYMENTS AND EXPENSES
    # ==========================================================================
    op.create_table('payments',
        *_owned_columns(),
        sa.Column('invoice_id', sa.String(length=32), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=True),
        sa.Column('vendor_name', sa.String(length=255), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('method', sa.String(length=32), nullable=False),
        sa.Column('reference_number', sa.String(length=128), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_owned_constraints('payments'),
    )
    op.create_index('ix_payments_owner_id', 'payments', ['owner_id'])
    op.create_index('ix_payments_owner_invoice', 'payments', ['owner_id', 'invoice_id'])

    op.create_table('expenses',
        *_owned_columns(),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('payment_mode', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Paid'),
        sa.Column('attachment', sa.String(length=512), nullable=True),
        *_owned_constraints('expenses'),
    )
    op.create_index('ix_expenses_owner_id', 'expenses', ['owner_id'])
    op.create_index('ix_expenses_owner_date', 'expenses', ['owner_id', 'expense_date'])

    # ==========================================================================
    # 5. DOCUMENT SEQUENCES
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_document_sequences_owner'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'document_type', 'year', name='uq_doc_sequences_owner_type_year'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_document_sequences_owner_id', 'document_sequences', ['owner_id'])


def downgrade():
    op.drop_table('document_sequences')
    op.drop_table('expenses')
    op.drop_table('payments')
    op.drop_table('invoices')
    op.drop_table('sale_orders')
    op.drop_table('customers')
    op.drop_table('vendors')
    op.drop_table('session_tokens')
    op.drop_table('users')
