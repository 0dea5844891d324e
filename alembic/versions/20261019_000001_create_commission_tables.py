"""Create account, referral, order, ledger and commission tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create commission engine schema."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('total_earned', sa.DECIMAL(18, 8), nullable=False, server_default='0', comment='Lifetime cashback, commission and bonus credits'),
        sa.Column('threshold_reached_at', sa.DateTime(timezone=True), nullable=True, comment='Set once, by the credit that first reached the balance threshold'),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('balance >= 0', name='check_account_balance_non_negative'),
        sa.CheckConstraint('total_earned >= 0', name='check_account_total_earned_non_negative'),
        sa.ForeignKeyConstraint(['referrer_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_referral_code', 'accounts', ['referral_code'], unique=True)
    op.create_index('ix_accounts_referrer_id', 'accounts', ['referrer_id'])

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referrer_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referral_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('referral_id', 'level', name='uq_referrals_referral_level'),
        sa.UniqueConstraint('referrer_id', 'referral_id', name='uq_referrals_pair')
    )
    op.create_index('ix_referrals_referrer_id', 'referrals', ['referrer_id'])
    op.create_index('ix_referrals_referral_id', 'referrals', ['referral_id'])
    op.create_index('idx_referrals_referrer_level', 'referrals', ['referrer_id', 'level'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_number', sa.String(64), nullable=False),
        sa.Column('buyer_id', sa.Integer(), nullable=False),
        sa.Column('total', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['buyer_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_buyer_id', 'orders', ['buyer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('unit_price', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_cost', sa.DECIMAL(18, 8), nullable=True),
        sa.CheckConstraint('quantity > 0', name='check_order_item_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='check_order_item_price_non_negative'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('related_order_id', sa.Integer(), nullable=True),
        sa.Column('related_account_id', sa.Integer(), nullable=True),
        sa.Column('balance_after', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['related_order_id'], ['orders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'related_order_id', 'kind', name='uq_ledger_entries_account_order_kind')
    )
    op.create_index('ix_ledger_entries_account_id', 'ledger_entries', ['account_id'])
    op.create_index('ix_ledger_entries_kind', 'ledger_entries', ['kind'])
    op.create_index('ix_ledger_entries_related_order_id', 'ledger_entries', ['related_order_id'])
    op.create_index('idx_ledger_entries_account_created', 'ledger_entries', ['account_id', 'created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_account_id', 'notifications', ['account_id'])
    op.create_index('idx_notifications_account_read', 'notifications', ['account_id', 'is_read'])

    op.create_table(
        'commission_distributions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('buyer_id', sa.Integer(), nullable=False),
        sa.Column('margin', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('company_share', sa.DECIMAL(18, 8), nullable=False, comment='Margin retained by the platform (no ledger entry)'),
        sa.Column('buyer_cashback', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('commission_pool', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('commissions_paid', sa.DECIMAL(18, 8), nullable=False, server_default='0', comment='Sum of upline payouts actually credited'),
        sa.Column('payouts_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['buyer_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id')
    )
    op.create_index('ix_commission_distributions_buyer_id', 'commission_distributions', ['buyer_id'])


def downgrade() -> None:
    """Drop commission engine schema."""

    op.drop_index('ix_commission_distributions_buyer_id', 'commission_distributions')
    op.drop_table('commission_distributions')

    op.drop_index('idx_notifications_account_read', 'notifications')
    op.drop_index('ix_notifications_account_id', 'notifications')
    op.drop_table('notifications')

    op.drop_index('idx_ledger_entries_account_created', 'ledger_entries')
    op.drop_index('ix_ledger_entries_related_order_id', 'ledger_entries')
    op.drop_index('ix_ledger_entries_kind', 'ledger_entries')
    op.drop_index('ix_ledger_entries_account_id', 'ledger_entries')
    op.drop_table('ledger_entries')

    op.drop_index('ix_order_items_order_id', 'order_items')
    op.drop_table('order_items')

    op.drop_index('ix_orders_status', 'orders')
    op.drop_index('ix_orders_buyer_id', 'orders')
    op.drop_index('ix_orders_order_number', 'orders')
    op.drop_table('orders')

    op.drop_index('idx_referrals_referrer_level', 'referrals')
    op.drop_index('ix_referrals_referral_id', 'referrals')
    op.drop_index('ix_referrals_referrer_id', 'referrals')
    op.drop_table('referrals')

    op.drop_index('ix_accounts_referrer_id', 'accounts')
    op.drop_index('ix_accounts_referral_code', 'accounts')
    op.drop_index('ix_accounts_email', 'accounts')
    op.drop_table('accounts')
