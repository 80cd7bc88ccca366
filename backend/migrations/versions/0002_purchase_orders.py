"""Purchase orders placed with vendors

Revision ID: 0002_purchase_orders
Revises: 0001_initial
Create Date: 2025-02-03

This migration adds:
1. purchase_orders (line_items as JSON, total and balance after advance)

invoices.po_id already exists from 0001 and stays a plain string column.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_purchase_orders'
down_revision = '0001_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('purchase_orders',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('po_number', sa.String(length=64), nullable=False),
        sa.Column('vendor_id', sa.String(length=32), nullable=True),
        sa.Column('vendor_name', sa.String(length=255), nullable=False),
        sa.Column('po_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('line_items', sa.JSON(), nullable=False),
        sa.Column('total_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('advance_paid_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('balance_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Created'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_purchase_orders_owner'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_purchase_orders_owner_id', 'purchase_orders', ['owner_id'])
    op.create_index('ix_purchase_orders_vendor_id', 'purchase_orders', ['vendor_id'])
    op.create_index('ix_purchase_orders_owner_number', 'purchase_orders', ['owner_id', 'po_number'])
    op.create_index('ix_purchase_orders_owner_status', 'purchase_orders', ['owner_id', 'status'])


def downgrade():
    op.drop_index('ix_purchase_orders_owner_status', table_name='purchase_orders')
    op.drop_index('ix_purchase_orders_owner_number', table_name='purchase_orders')
    op.drop_index('ix_purchase_orders_vendor_id', table_name='purchase_orders')
    op.drop_index('ix_purchase_orders_owner_id', table_name='purchase_orders')
    op.drop_table('purchase_orders')
