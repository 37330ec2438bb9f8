"""0001 initial inventory schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

from migrations.postgres_helpers import table_exists


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    if not table_exists('department'):
        op.create_table(
            'department',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False, unique=True),
            sa.Column('description', sa.Text(), nullable=True),
            *_timestamps(),
        )

    if not table_exists('supplier'):
        op.create_table(
            'supplier',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False, unique=True),
            sa.Column('contact_name', sa.String(length=128), nullable=True),
            sa.Column('phone', sa.String(length=32), nullable=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
        )

    if not table_exists('location'):
        op.create_table(
            'location',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False, unique=True),
            sa.Column('description', sa.Text(), nullable=True),
            *_timestamps(),
        )

    if not table_exists('product'):
        op.create_table(
            'product',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('sku', sa.String(length=64), nullable=True, unique=True),
            sa.Column('barcode', sa.String(length=64), nullable=True, unique=True),
            sa.Column('unit', sa.String(length=32), nullable=False, server_default='units'),
            sa.Column('category', sa.String(length=64), nullable=True),
            sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('cost_price', sa.Numeric(10, 2), nullable=True),
            sa.Column('department_id', sa.Integer(), sa.ForeignKey('department.id', ondelete='SET NULL'), nullable=True),
            sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('supplier.id', ondelete='SET NULL'), nullable=True),
            sa.Column('location_id', sa.Integer(), sa.ForeignKey('location.id', ondelete='SET NULL'), nullable=True),
            *_timestamps(),
            sa.CheckConstraint('min_stock_level >= 0', name='check_min_stock_level_non_negative'),
        )
        op.create_index('ix_product_name', 'product', ['name'])
        op.create_index('ix_product_category', 'product', ['category'])

    if not table_exists('stock_batch'):
        op.create_table(
            'stock_batch',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False),
            sa.Column('batch_number', sa.String(length=64), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('expiration_date', sa.Date(), nullable=True),
            sa.Column('received_date', sa.Date(), nullable=False),
            sa.Column('location_id', sa.Integer(), sa.ForeignKey('location.id', ondelete='SET NULL'), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('damaged', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('damage_reason', sa.String(length=255), nullable=True),
            sa.Column('discarded_at', sa.DateTime(), nullable=True),
            sa.Column('discard_reason', sa.String(length=32), nullable=True),
            sa.Column('last_audit_at', sa.DateTime(), nullable=True),
            sa.Column('version_id', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('product_id', 'batch_number', name='uq_stock_batch_product_batch_number'),
            sa.CheckConstraint('quantity >= 0', name='check_batch_quantity_non_negative'),
        )
        op.create_index('ix_stock_batch_product_id', 'stock_batch', ['product_id'])
        op.create_index('ix_stock_batch_expiration_date', 'stock_batch', ['expiration_date'])
        op.create_index('ix_stock_batch_status', 'stock_batch', ['status'])
        op.create_index('ix_stock_batch_product_status', 'stock_batch', ['product_id', 'status'])

    if not table_exists('discarded_item'):
        op.create_table(
            'discarded_item',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('batch_id', sa.Integer(), sa.ForeignKey('stock_batch.id', ondelete='SET NULL'), nullable=True),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(length=16), nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('discarded_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('quantity >= 0', name='check_discarded_quantity_non_negative'),
        )
        op.create_index('ix_discarded_item_batch_id', 'discarded_item', ['batch_id'])
        op.create_index('ix_discarded_item_product_id', 'discarded_item', ['product_id'])
        op.create_index('ix_discarded_item_discarded_at', 'discarded_item', ['discarded_at'])

    if not table_exists('audit_log_entry'):
        op.create_table(
            'audit_log_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id', ondelete='CASCADE'), nullable=False),
            sa.Column('batch_id', sa.Integer(), sa.ForeignKey('stock_batch.id', ondelete='SET NULL'), nullable=True),
            sa.Column('action', sa.String(length=32), nullable=False),
            sa.Column('quantity_change', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(length=255), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_audit_log_entry_product_id', 'audit_log_entry', ['product_id'])
        op.create_index('ix_audit_log_entry_batch_id', 'audit_log_entry', ['batch_id'])
        op.create_index('ix_audit_log_entry_action', 'audit_log_entry', ['action'])
        op.create_index('ix_audit_log_entry_timestamp', 'audit_log_entry', ['timestamp'])
        op.create_index('idx_audit_product_timestamp', 'audit_log_entry', ['product_id', 'timestamp'])


def downgrade():
    for table in ('audit_log_entry', 'discarded_item', 'stock_batch', 'product', 'location', 'supplier', 'department'):
        if table_exists(table):
            op.drop_table(table)
