"""cart store and order ledger

Revision ID: 5a1f0c2d9e47
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '5a1f0c2d9e47'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True),
        sa.Column('name', sa.String(100)),
        sa.Column('role', sa.String(20), nullable=False, server_default='customer'),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_table(
        'product',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('seller_id', sa.BigInteger()),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(100)),
        sa.Column('image_url', sa.String(500)),
        sa.Column('images', sa.JSON()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
    )
    op.create_index('ix_product_category', 'product', ['category'])

    op.create_table(
        'cart',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False, unique=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_table(
        'cart_item',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('cart_id', sa.BigInteger(), sa.ForeignKey('cart.id'), nullable=False),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime()),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
        sa.CheckConstraint('quantity >= 1', name='ck_cart_item_quantity_positive'),
    )

    op.create_table(
        'order',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('shipping_address', sa.JSON()),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('receipt', sa.String(64), nullable=False, unique=True),
        sa.Column('gateway_order_id', sa.String(100)),
        sa.Column('payment_id', sa.String(100)),
        sa.Column('payment_signature', sa.String(256)),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_order_user_created', 'order', ['user_id', 'created_at'])
    op.create_index('ix_order_status_created', 'order', ['status', 'created_at'])
    op.create_index('ix_order_gateway_order_id', 'order', ['gateway_order_id'])
    op.create_table(
        'order_item',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('order_id', sa.BigInteger(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('product_id', sa.BigInteger(), nullable=False),
        sa.Column('name', sa.String(200)),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
    )
    op.create_table(
        'order_status_log',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('order_id', sa.BigInteger(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('from_status', sa.String(30)),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('updated_by', sa.BigInteger()),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('order_status_log')
    op.drop_table('order_item')
    op.drop_index('ix_order_gateway_order_id', table_name='order')
    op.drop_index('ix_order_status_created', table_name='order')
    op.drop_index('ix_order_user_created', table_name='order')
    op.drop_table('order')
    op.drop_table('cart_item')
    op.drop_table('cart')
    op.drop_index('ix_product_category', table_name='product')
    op.drop_table('product')
    op.drop_table('user')
