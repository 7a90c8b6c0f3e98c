"""create_store_tables

Revision ID: 3c7e1a9f4b20
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c7e1a9f4b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


order_status_enum = sa.Enum(
    'pending', 'paid', 'preparing', 'out_for_delivery', 'delivered', 'failed', 'cancelled',
    name='store_order_status_enum',
)
delivery_type_enum = sa.Enum('delivery', 'pickup', name='store_delivery_type_enum')
payment_provider_enum = sa.Enum('paystack', 'pesapal', name='store_payment_provider_enum')


def upgrade() -> None:
    """Upgrade schema - Add storefront catalog, inventory and order tables."""

    op.create_table(
        'store_products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'store_delivery_zones',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'store_inventory',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='5', nullable=True),
        sa.Column('last_sold_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='non_negative_stock'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_inventory_product_id', 'store_inventory', ['product_id'])
    op.create_index(
        'uq_store_inventory_variant',
        'store_inventory',
        ['product_id', sa.text("coalesce(size, '')"), sa.text("coalesce(color, '')")],
        unique=True,
    )

    op.create_table(
        'store_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('merchant_reference', sa.String(length=64), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('delivery_type', delivery_type_enum, nullable=False),
        sa.Column('delivery_zone_id', sa.Uuid(), nullable=True),
        sa.Column('delivery_area', sa.String(length=100), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('subtotal_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('status', order_status_enum, server_default='pending', nullable=False),
        sa.Column('payment_provider', payment_provider_enum, nullable=True),
        sa.Column('gateway_tracking_id', sa.String(length=128), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('total_amount = subtotal_amount + delivery_fee', name='order_total_matches'),
        sa.CheckConstraint("delivery_type <> 'pickup' OR delivery_fee = 0", name='pickup_has_no_fee'),
        sa.ForeignKeyConstraint(['delivery_zone_id'], ['store_delivery_zones.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_orders_merchant_reference', 'store_orders', ['merchant_reference'], unique=True)
    op.create_index('ix_store_orders_status', 'store_orders', ['status'])
    op.create_index('ix_store_orders_gateway_tracking_id', 'store_orders', ['gateway_tracking_id'])

    op.create_table(
        'store_order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity > 0', name='positive_quantity'),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_order_items_order_id', 'store_order_items', ['order_id'])


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables."""
    op.drop_index('ix_store_order_items_order_id', table_name='store_order_items')
    op.drop_table('store_order_items')
    op.drop_index('ix_store_orders_gateway_tracking_id', table_name='store_orders')
    op.drop_index('ix_store_orders_status', table_name='store_orders')
    op.drop_index('ix_store_orders_merchant_reference', table_name='store_orders')
    op.drop_table('store_orders')
    op.drop_index('uq_store_inventory_variant', table_name='store_inventory')
    op.drop_index('ix_store_inventory_product_id', table_name='store_inventory')
    op.drop_table('store_inventory')
    op.drop_table('store_delivery_zones')
    op.drop_table('store_products')

    payment_provider_enum.drop(op.get_bind(), checkfirst=True)
    order_status_enum.drop(op.get_bind(), checkfirst=True)
    delivery_type_enum.drop(op.get_bind(), checkfirst=True)
