"""storefront catalog, cart slots, quote and contact entries

Revision ID: 5a1f0c2e9b71
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '5a1f0c2e9b71'
down_revision = None
branch_labels = None
depends_on = None

BIGINT = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade():
    op.create_table(
        'category',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('parent_id', sa.String(36), sa.ForeignKey('category.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'product',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.id'), nullable=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(50), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_quantity', sa.Integer(), nullable=True),
        sa.Column('min_quantity_unit', sa.String(20), nullable=True),
        sa.Column('colors', sa.JSON(), nullable=True),
        sa.Column('has_variants', sa.Boolean(), nullable=True),
        sa.Column('variant_type', sa.String(50), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.Column('featured', sa.Boolean(), nullable=True),
        sa.Column('image_url', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )
    op.create_table(
        'product_variant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('sku', sa.String(50), nullable=True),
        sa.Column('image_url', sa.String(255), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.UniqueConstraint('product_id', 'name', name='uq_variant_product_name'),
        sa.CheckConstraint('stock IS NULL OR stock >= 0', name='ck_variant_stock_non_negative'),
    )
    op.create_table(
        'stored_cart',
        sa.Column('key', sa.String(120), primary_key=True),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'quote_entry',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('kind', sa.String(10), nullable=False),
        sa.Column('order_code', sa.String(10), nullable=True),
        sa.Column('customer_name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(120), nullable=True),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('product_id', sa.String(36), nullable=True),
        sa.Column('product_name', sa.String(255), nullable=True),
        sa.Column('service_name', sa.String(255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('specifications', sa.Text(), nullable=True),
        sa.Column('delivery_method', sa.String(10), nullable=True),
        sa.Column('shipping', sa.JSON(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=True),
        sa.Column('delivery_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('delivery_tier', sa.String(30), nullable=True),
        sa.Column('total', sa.Numeric(10, 2), nullable=True),
        sa.Column('attended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_quote_entry_order_code', 'quote_entry', ['order_code'])
    op.create_index('ix_quote_entry_attended_created', 'quote_entry', ['attended', 'created_at'])
    op.create_table(
        'contact_entry',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(120), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('company', sa.String(120), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('attended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )


def downgrade():
    op.drop_table('contact_entry')
    op.drop_index('ix_quote_entry_attended_created', table_name='quote_entry')
    op.drop_index('ix_quote_entry_order_code', table_name='quote_entry')
    op.drop_table('quote_entry')
    op.drop_table('stored_cart')
    op.drop_table('product_variant')
    op.drop_table('product')
    op.drop_table('category')
