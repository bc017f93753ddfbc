"""initial_distribution_schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


zone_enum = sa.Enum('KARKH', 'RUSAFA', name='zone_enum')
order_status_enum = sa.Enum(
    'pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled',
    name='order_status_enum',
)
payment_method_enum = sa.Enum('cash', 'online', name='payment_method_enum')
payment_status_enum = sa.Enum(
    'pending', 'partially_paid', 'paid', name='payment_status_enum'
)
settlement_status_enum = sa.Enum(
    'pending', 'verified', 'settled', 'disputed', name='settlement_status_enum'
)
promotion_type_enum = sa.Enum(
    'percentage', 'fixed', 'buy_x_get_y', name='promotion_type_enum'
)


def upgrade() -> None:
    """Upgrade schema - companies, catalog, orders, settlements, promotions."""

    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name_en', sa.String(length=255), nullable=False),
        sa.Column('name_ar', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('zones', postgresql.JSONB(), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 4), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'commission_rate >= 0 AND commission_rate <= 1',
            name='ck_companies_commission_rate_fraction',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_companies'),
    )
    op.create_index('ix_companies_name_en', 'companies', ['name_en'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name_en', sa.String(length=255), nullable=False),
        sa.Column('name_ar', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name_en', sa.String(length=255), nullable=False),
        sa.Column('name_ar', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('zones', postgresql.JSONB(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['company_id'], ['companies.id'], name='fk_products_company_id_companies'
        ),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'], name='fk_products_category_id_categories'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
    )
    op.create_index('ix_products_company_id', 'products', ['company_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)

    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('shop_id', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('zone', zone_enum, nullable=False),
        sa.Column('status', order_status_enum, nullable=False),
        sa.Column('payment_method', payment_method_enum, nullable=False),
        sa.Column('payment_status', payment_status_enum, nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('promotion_id', sa.Uuid(), nullable=True),
        sa.Column('assigned_driver_id', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total >= 0', name='ck_orders_order_total_non_negative'),
        sa.ForeignKeyConstraint(
            ['company_id'], ['companies.id'], name='fk_orders_company_id_companies'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_shop_id', 'orders', ['shop_id'])
    op.create_index('ix_orders_company_id', 'orders', ['company_id'])
    op.create_index(
        'ix_orders_company_status_delivered',
        'orders',
        ['company_id', 'status', 'delivered_at'],
    )

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint(
            'quantity > 0', name='ck_order_items_order_item_quantity_positive'
        ),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_items_order_id_orders', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'], name='fk_order_items_product_id_products'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'cash_collections',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('collected_by', sa.String(length=64), nullable=False),
        sa.Column('collected_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint(
            'amount > 0', name='ck_cash_collections_cash_collection_amount_positive'
        ),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'], name='fk_cash_collections_order_id_orders'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_cash_collections'),
    )
    op.create_index('ix_cash_collections_order_id', 'cash_collections', ['order_id'])

    op.create_table(
        'settlements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_orders', sa.Integer(), nullable=False),
        sa.Column('total_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_commission', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_payout', sa.Numeric(12, 2), nullable=False),
        sa.Column('cash_collected', sa.Numeric(12, 2), nullable=False),
        sa.Column('cash_to_remit', sa.Numeric(12, 2), nullable=False),
        sa.Column('online_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 4), nullable=False),
        sa.Column('status', settlement_status_enum, nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('verified_by', sa.String(length=64), nullable=True),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('settled_by', sa.String(length=64), nullable=True),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('disputed_by', sa.String(length=64), nullable=True),
        sa.Column('disputed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dispute_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'total_payout >= 0', name='ck_settlements_settlement_payout_non_negative'
        ),
        sa.CheckConstraint(
            'period_end >= period_start', name='ck_settlements_settlement_period_ordered'
        ),
        sa.ForeignKeyConstraint(
            ['company_id'], ['companies.id'], name='fk_settlements_company_id_companies'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_settlements'),
        sa.UniqueConstraint(
            'company_id', 'period_start', 'period_end', name='uq_settlement_period'
        ),
    )
    op.create_index('ix_settlements_company_id', 'settlements', ['company_id'])
    op.create_index('ix_settlements_status', 'settlements', ['status'])

    op.create_table(
        'promotions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name_en', sa.String(length=255), nullable=False),
        sa.Column('name_ar', sa.String(length=255), nullable=False),
        sa.Column('description_en', sa.Text(), nullable=True),
        sa.Column('description_ar', sa.Text(), nullable=True),
        sa.Column('promotion_type', promotion_type_enum, nullable=False),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('buy_quantity', sa.Integer(), nullable=True),
        sa.Column('get_quantity', sa.Integer(), nullable=True),
        sa.Column('min_purchase', sa.Numeric(12, 2), nullable=True),
        sa.Column('max_discount', sa.Numeric(12, 2), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('zones', postgresql.JSONB(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'end_date > start_date', name='ck_promotions_promotion_window_ordered'
        ),
        sa.CheckConstraint(
            'value >= 0', name='ck_promotions_promotion_value_non_negative'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_promotions'),
    )

    op.create_table(
        'promotion_products',
        sa.Column('promotion_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ['promotion_id'], ['promotions.id'],
            name='fk_promotion_products_promotion_id_promotions', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_promotion_products_product_id_products', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint(
            'promotion_id', 'product_id', name='pk_promotion_products'
        ),
    )

    op.create_table(
        'promotion_categories',
        sa.Column('promotion_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ['promotion_id'], ['promotions.id'],
            name='fk_promotion_categories_promotion_id_promotions', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'],
            name='fk_promotion_categories_category_id_categories', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint(
            'promotion_id', 'category_id', name='pk_promotion_categories'
        ),
    )


def downgrade() -> None:
    """Downgrade schema - drop every distribution table and enum."""
    op.drop_table('promotion_categories')
    op.drop_table('promotion_products')
    op.drop_table('promotions')
    op.drop_index('ix_settlements_status', table_name='settlements')
    op.drop_index('ix_settlements_company_id', table_name='settlements')
    op.drop_table('settlements')
    op.drop_index('ix_cash_collections_order_id', table_name='cash_collections')
    op.drop_table('cash_collections')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_company_status_delivered', table_name='orders')
    op.drop_index('ix_orders_company_id', table_name='orders')
    op.drop_index('ix_orders_shop_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_products_sku', table_name='products')
    op.drop_index('ix_products_category_id', table_name='products')
    op.drop_index('ix_products_company_id', table_name='products')
    op.drop_table('products')
    op.drop_index('ix_categories_slug', table_name='categories')
    op.drop_table('categories')
    op.drop_index('ix_companies_name_en', table_name='companies')
    op.drop_table('companies')

    bind = op.get_bind()
    for enum in (
        promotion_type_enum,
        settlement_status_enum,
        payment_status_enum,
        payment_method_enum,
        order_status_enum,
        zone_enum,
    ):
        enum.drop(bind, checkfirst=True)
