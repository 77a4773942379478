"""Create marketplace tables: vendors, suppliers, products, orders, order items, product groups

Revision ID: 0001_marketplace_schema
Revises:
Create Date: 2025-10-14

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_marketplace_schema'
down_revision = None
branch_labels = None
depends_on = None

MARKETPLACE_TABLES = ('vendors', 'suppliers', 'products', 'orders', 'order_items', 'product_groups')


def timestamps(updated=True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)
        )
    return columns


def profile_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_name', sa.Text(), nullable=False),
        sa.Column('owner_name', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('city', sa.Text(), nullable=False),
        sa.Column('state', sa.Text(), nullable=False),
        sa.Column('pincode', sa.Text(), nullable=False),
        sa.Column('gst_number', sa.Text(), nullable=True),
    ]


def upgrade():
    op.create_table('vendors',
        *profile_columns(),
        sa.Column('business_type', sa.Text(), server_default='street_food', nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['auth.users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='vendors_user_id_key'),
    )

    op.create_table('suppliers',
        *profile_columns(),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('fssai_license', sa.Text(), nullable=True),
        sa.Column('rating', sa.Numeric(2, 1), server_default='0', nullable=False),
        sa.Column('total_reviews', sa.Integer(), server_default='0', nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['auth.users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='suppliers_user_id_key'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='suppliers_rating_check'),
        sa.CheckConstraint('total_reviews >= 0', name='suppliers_total_reviews_check'),
    )

    op.create_table('products',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('unit', sa.Text(), nullable=False),
        sa.Column('price_per_unit', sa.Numeric(10, 2), nullable=False),
        sa.Column('min_order_quantity', sa.Numeric(10, 2), server_default='1', nullable=False),
        sa.Column('stock_available', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('price_per_unit >= 0', name='products_price_per_unit_check'),
        sa.CheckConstraint('min_order_quantity > 0', name='products_min_order_quantity_check'),
    )

    op.create_table('orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('vendor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('order_number', sa.Text(), nullable=False),
        sa.Column('order_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('payment_status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('payment_method', sa.Text(), nullable=True),
        sa.Column('payment_id', sa.Text(), nullable=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('tax', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('delivery_charge', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('group_discount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('delivery_address', sa.Text(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('items', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('customer_details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number', name='orders_order_number_key'),
        sa.CheckConstraint("order_type IN ('individual', 'group')", name='orders_order_type_check'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'delivered', 'cancelled', 'accepted', 'completed')",
            name='orders_status_check'
        ),
        sa.CheckConstraint("payment_status IN ('pending', 'completed', 'failed')", name='orders_payment_status_check'),
        sa.CheckConstraint('total_amount >= 0', name='orders_total_amount_check'),
        sa.CheckConstraint('subtotal >= 0', name='orders_subtotal_check'),
        sa.CheckConstraint('tax >= 0', name='orders_tax_check'),
        sa.CheckConstraint('delivery_charge >= 0', name='orders_delivery_charge_check'),
        sa.CheckConstraint('group_discount >= 0', name='orders_group_discount_check'),
    )

    op.create_table('order_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='RESTRICT', name='order_items_product_id_fkey'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='order_items_quantity_check'),
        sa.CheckConstraint('unit_price >= 0', name='order_items_unit_price_check'),
        sa.CheckConstraint('total_price >= 0', name='order_items_total_price_check'),
    )

    op.create_table('product_groups',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 2), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('actual_rate', sa.Numeric(10, 2), nullable=False),
        sa.Column('final_rate', sa.Numeric(10, 2), nullable=False),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('estimated_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.Text(), server_default='active', nullable=False),
        sa.Column('vendors', sa.Integer(), server_default='0', nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('active', 'accepted', 'declined', 'delivered', 'expired')",
            name='product_groups_status_check'
        ),
        sa.CheckConstraint('quantity > 0', name='product_groups_quantity_check'),
        sa.CheckConstraint('price >= 0', name='product_groups_price_check'),
        sa.CheckConstraint('actual_rate >= 0', name='product_groups_actual_rate_check'),
        sa.CheckConstraint('final_rate >= 0', name='product_groups_final_rate_check'),
        sa.CheckConstraint(
            'discount_percentage >= 0 AND discount_percentage <= 100',
            name='product_groups_discount_percentage_check'
        ),
        sa.CheckConstraint('estimated_value >= 0', name='product_groups_estimated_value_check'),
        sa.CheckConstraint('latitude >= -90 AND latitude <= 90', name='product_groups_latitude_check'),
        sa.CheckConstraint('longitude >= -180 AND longitude <= 180', name='product_groups_longitude_check'),
        sa.CheckConstraint('vendors >= 0', name='product_groups_vendors_check'),
    )

    op.create_index('idx_vendors_user_id', 'vendors', ['user_id'])
    op.create_index('idx_suppliers_user_id', 'suppliers', ['user_id'])
    op.create_index('idx_suppliers_rating', 'suppliers', [sa.text('rating DESC')])
    op.create_index('idx_products_supplier_id', 'products', ['supplier_id'])
    op.create_index('idx_products_category', 'products', ['category'])
    op.create_index('idx_orders_vendor_id', 'orders', ['vendor_id'])
    op.create_index('idx_orders_supplier_id', 'orders', ['supplier_id'])
    op.create_index('idx_orders_status', 'orders', ['status'])
    op.create_index('idx_orders_payment_status', 'orders', ['payment_status'])
    op.create_index('idx_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('idx_order_items_product_id', 'order_items', ['product_id'])
    op.create_index('idx_product_groups_created_by', 'product_groups', ['created_by'])
    op.create_index('idx_product_groups_status', 'product_groups', ['status'])
    op.create_index('idx_product_groups_deadline', 'product_groups', ['deadline'])

    # Closed to direct PostgREST access; the API applies the row policies and connects as owner
    for table in MARKETPLACE_TABLES:
        op.execute(f'ALTER TABLE {table} ENABLE ROW LEVEL SECURITY')


def downgrade():
    for table in reversed(MARKETPLACE_TABLES):
        op.drop_table(table)
