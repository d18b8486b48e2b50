"""Initial marketplace schema: users, catalogue, billing and the earnings ledgers.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='subscriber'),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_earnings', MONEY, nullable=False, server_default='0'),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_user_email', 'users', ['email'])
    op.create_index('idx_user_role', 'users', ['role'])
    op.create_index('idx_user_status', 'users', ['status'])

    op.create_table(
        'categories',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('parent_category', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('category_type', sa.String(50), nullable=False, server_default='main_category'),
        *_timestamps(),
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'])
    op.create_table(
        'category_subcategories',
        sa.Column('parent_id', sa.String(36), sa.ForeignKey('categories.uuid', ondelete='CASCADE'), primary_key=True),
        sa.Column('child_id', sa.String(36), sa.ForeignKey('categories.uuid', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'assets',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending_review'),
        sa.Column('asset_type', sa.String(50), nullable=False),
        sa.Column('orientation', sa.String(50), nullable=True),
        sa.Column('resolution', sa.String(50), nullable=True),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('price', MONEY, nullable=False, server_default='0'),
        sa.Column('discount_price', MONEY, nullable=True),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=True),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_asset_author_id', 'assets', ['author_id'])
    op.create_index('idx_asset_status', 'assets', ['status'])
    op.create_index('idx_asset_created_at', 'assets', ['created_at'])
    op.create_index('idx_asset_price', 'assets', ['price'])

    op.create_table(
        'asset_categories',
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('categories.uuid', ondelete='CASCADE'), primary_key=True),
    )
    for table, label in (('asset_tags', 'tag'), ('asset_tools', 'tool')):
        op.create_table(
            table,
            sa.Column('uuid', sa.String(36), primary_key=True),
            sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid', ondelete='CASCADE'), nullable=False),
            sa.Column('name', sa.String(100), nullable=False),
            sa.UniqueConstraint('asset_id', 'name', name=f'uq_asset_{label}'),
        )
        op.create_index(f'idx_asset_{label}_name', table, ['name'])

    op.create_table(
        'asset_stats',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('downloads', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('likes', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    for table, label in (('asset_likes', 'like'), ('asset_downloads', 'download')):
        op.create_table(
            table,
            sa.Column('uuid', sa.String(36), primary_key=True),
            sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid', ondelete='CASCADE'), nullable=False),
            sa.Column('user_id', sa.String(36), sa.ForeignKey('users.uuid', ondelete='CASCADE'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('asset_id', 'user_id', name=f'uq_asset_{label}'),
        )
        op.create_index(f'idx_asset_{label}_user_id', table, ['user_id'])

    op.create_table(
        'plans',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('plan_type', sa.String(50), nullable=False, server_default='individual'),
        sa.Column('billing_cycle', sa.String(20), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USD'),
        sa.Column('stripe_price_id', sa.String(255), nullable=True, unique=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('slug', 'billing_cycle', name='uq_plan_slug_cycle'),
    )

    op.create_table(
        'subscriptions',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('current_period_start', sa.DateTime(), nullable=False),
        sa.Column('current_period_end', sa.DateTime(), nullable=False),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('stripe_customer_id', sa.String(255), nullable=False),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=False, unique=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False, unique=True),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.uuid'), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_subscription_plan_id', 'subscriptions', ['plan_id'])
    op.create_index('idx_subscription_status', 'subscriptions', ['status'])
    op.create_index('idx_subscription_stripe_customer_id', 'subscriptions', ['stripe_customer_id'])

    op.create_table(
        'individual_payments',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('original_price', MONEY, nullable=False),
        sa.Column('discount_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('final_price', MONEY, nullable=False),
        sa.Column('is_premium_user', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payment_method', sa.String(50), nullable=False, server_default='stripe'),
        sa.Column('stripe_session_id', sa.String(255), nullable=True, unique=True),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid'), nullable=False),
        sa.Column('transaction_date', sa.DateTime(), nullable=False),
        sa.Column('refund_date', sa.DateTime(), nullable=True),
        sa.Column('refund_reason', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_payment_user_asset', 'individual_payments', ['user_id', 'asset_id'])
    op.create_index('idx_payment_status_date', 'individual_payments', ['payment_status', 'transaction_date'])
    op.create_index('idx_payment_intent_id', 'individual_payments', ['stripe_payment_intent_id'])

    op.create_table(
        'earnings',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid'), nullable=False),
        sa.Column('payment_id', sa.String(36), sa.ForeignKey('individual_payments.uuid'), nullable=False, unique=True),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('asset_price', MONEY, nullable=False),
        sa.Column('is_premium_buyer', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('platform_fee_percentage', sa.Integer(), nullable=False),
        sa.Column('author_earning', MONEY, nullable=False),
        sa.Column('company_earning', MONEY, nullable=False),
        sa.Column('earning_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_earning_author_date', 'earnings', ['author_id', 'earning_date'])
    op.create_index('idx_earning_asset_id', 'earnings', ['asset_id'])
    op.create_index('idx_earning_date', 'earnings', ['earning_date'])

    op.create_table(
        'subscription_revenues',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('subscription_id', sa.String(36), sa.ForeignKey('subscriptions.uuid'), nullable=False),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.uuid'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('billing_cycle', sa.String(20), nullable=False),
        sa.Column('company_revenue', MONEY, nullable=False),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=False),
        sa.Column('revenue_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('subscription_id', 'stripe_subscription_id', name='uq_subscription_revenue'),
    )
    op.create_index('idx_subscription_revenue_date', 'subscription_revenues', ['revenue_date'])

    op.create_table(
        'individual_payment_revenues',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('payment_id', sa.String(36), sa.ForeignKey('individual_payments.uuid'), nullable=False, unique=True),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid'), nullable=False),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('author_revenue', MONEY, nullable=False),
        sa.Column('company_revenue', MONEY, nullable=False),
        sa.Column('is_premium_buyer', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=True),
        sa.Column('revenue_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_payment_revenue_author_date', 'individual_payment_revenues', ['author_id', 'revenue_date'])
    op.create_index('idx_payment_revenue_date', 'individual_payment_revenues', ['revenue_date'])

    op.create_table(
        'reviews',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('is_edited', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('author_reply', sa.Text(), nullable=True),
        sa.Column('replied_at', sa.DateTime(), nullable=True),
        sa.Column('asset_id', sa.String(36), sa.ForeignKey('assets.uuid', ondelete='CASCADE'), nullable=False),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('asset_id', 'buyer_id', name='uq_review_asset_buyer'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
    )
    op.create_index('idx_review_asset_created', 'reviews', ['asset_id', 'created_at'])
    op.create_index('idx_review_buyer_id', 'reviews', ['buyer_id'])

    op.create_table(
        'contact_tickets',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('subject', sa.String(200), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('admin_reply', sa.Text(), nullable=True),
        sa.Column('replied_by_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=True),
        sa.Column('replied_at', sa.DateTime(), nullable=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.uuid'), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_contact_user_created', 'contact_tickets', ['user_id', 'created_at'])
    op.create_index('idx_contact_status_created', 'contact_tickets', ['status', 'created_at'])
    op.create_index('idx_contact_category_status', 'contact_tickets', ['category', 'status'])


def downgrade():
    for table in (
        'contact_tickets',
        'reviews',
        'individual_payment_revenues',
        'subscription_revenues',
        'earnings',
        'individual_payments',
        'subscriptions',
        'plans',
        'asset_downloads',
        'asset_likes',
        'asset_stats',
        'asset_tools',
        'asset_tags',
        'asset_categories',
        'assets',
        'category_subcategories',
        'categories',
        'users',
    ):
        op.drop_table(table)
