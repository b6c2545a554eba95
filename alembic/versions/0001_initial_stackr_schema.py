"""initial stackr schema

Revision ID: 0001_initial_stackr_schema
Revises:
Create Date: 2025-05-02

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision = '0001_initial_stackr_schema'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _user_fk(name='user_id', ondelete='CASCADE', nullable=False):
    return sa.Column(name, UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete=ondelete), nullable=nullable, index=True)


def upgrade():
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String, nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('is_superuser', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('full_name', sa.String, nullable=True),
        sa.Column('business_name', sa.String, nullable=True),
        sa.Column('occupation', sa.String, nullable=True),
        sa.Column('monthly_income_target', sa.Float, nullable=True),
        sa.Column('onboarding_steps', sa.JSON, nullable=True),
        sa.Column('onboarding_completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('subscription_tier', sa.String, nullable=False, server_default='free'),
        sa.Column('subscription_active', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('subscription_start', sa.DateTime, nullable=True),
        sa.Column('subscription_end', sa.DateTime, nullable=True),
        sa.Column('stripe_customer_id', sa.String, nullable=True, unique=True),
        sa.Column('stripe_subscription_id', sa.String, nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'bank_connections',
        _id(),
        _user_fk(),
        sa.Column('institution_id', sa.String, nullable=True),
        sa.Column('institution_name', sa.String, nullable=True),
        sa.Column('item_id', sa.String, nullable=False, unique=True),
        sa.Column('access_token', sa.String, nullable=False),
        sa.Column('status', sa.String, nullable=False, server_default='active'),
        sa.Column('transaction_cursor', sa.String, nullable=True),
        sa.Column('last_synced_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'bank_accounts',
        _id(),
        sa.Column('connection_id', UUID(as_uuid=True), sa.ForeignKey('bank_connections.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('plaid_account_id', sa.String, nullable=False, index=True),
        sa.Column('name', sa.String, nullable=False),
        sa.Column('type', sa.String, nullable=True),
        sa.Column('subtype', sa.String, nullable=True),
        sa.Column('mask', sa.String, nullable=True),
        sa.Column('balance_available', sa.Float, nullable=True),
        sa.Column('balance_current', sa.Float, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'bank_transactions',
        _id(),
        sa.Column('account_id', UUID(as_uuid=True), sa.ForeignKey('bank_accounts.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('plaid_transaction_id', sa.String, nullable=False, unique=True),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('name', sa.String, nullable=False),
        sa.Column('merchant_name', sa.String, nullable=True),
        sa.Column('category', sa.String, nullable=True),
        sa.Column('pending', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('imported_as_income', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('details', sa.JSON, nullable=True),
    )

    op.create_table(
        'incomes',
        _id(),
        _user_fk(),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('source', sa.String(100), nullable=False, server_default='Manual'),
        sa.Column('category', sa.String(50), nullable=False, server_default='other'),
        sa.Column('bank_transaction_id', UUID(as_uuid=True), sa.ForeignKey('bank_transactions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    payment_method = sa.Enum('cash', 'credit', 'debit', 'check', 'transfer', 'mobile', name='paymentmethod')
    op.create_table(
        'expenses',
        _id(),
        _user_fk(),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('category', sa.String(50), nullable=False, server_default='other'),
        sa.Column('payment_method', payment_method, nullable=False, server_default='cash'),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('is_recurring', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    goal_type = sa.Enum('savings', 'income', 'investment', 'debt', 'other', name='goaltype')
    op.create_table(
        'goals',
        _id(),
        _user_fk(),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('type', goal_type, nullable=False, server_default='savings'),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('target_amount', sa.Float, nullable=False),
        sa.Column('current_amount', sa.Float, nullable=False, server_default='0'),
        sa.Column('deadline', sa.DateTime, nullable=True),
        sa.Column('is_completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'balances',
        _id(),
        _user_fk(),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('month', sa.Integer, nullable=False),
        sa.Column('beginning_balance', sa.Float, nullable=False, server_default='0'),
        sa.Column('current_balance', sa.Float, nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'year', 'month', name='uq_balance_user_month'),
    )

    limit_period = sa.Enum('weekly', 'monthly', name='limitperiod')
    op.create_table(
        'spending_limits',
        _id(),
        _user_fk(),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('limit_amount', sa.Float, nullable=False),
        sa.Column('period', limit_period, nullable=False, server_default='monthly'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('last_alert_level', sa.String(20), nullable=True),
        sa.Column('last_alert_period_start', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'notifications',
        _id(),
        _user_fk(),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('message', sa.String, nullable=False),
        sa.Column('type', sa.String, nullable=False),
        sa.Column('level', sa.String, nullable=False, server_default='info'),
        sa.Column('link', sa.String, nullable=True),
        sa.Column('is_read', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'invoices',
        _id(),
        _user_fk(),
        sa.Column('invoice_number', sa.String(50), nullable=False, index=True),
        sa.Column('client_name', sa.String(150), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('line_items', sa.JSON, nullable=False),
        sa.Column('tax_rate', sa.Float, nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Float, nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Float, nullable=False, server_default='0'),
        sa.Column('total', sa.Float, nullable=False, server_default='0'),
        sa.Column('due_date', sa.DateTime, nullable=True),
        sa.Column('notes', sa.String(1000), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('paid', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('paid_at', sa.DateTime, nullable=True),
        sa.Column('stripe_payment_intent', sa.String, nullable=True),
        sa.Column('sent_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    gig_status = sa.Enum('open', 'assigned', 'completed', 'cancelled', name='gigstatus')
    op.create_table(
        'gigs',
        _id(),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(150), nullable=False),
        sa.Column('description', sa.String(2000), nullable=False),
        sa.Column('category', sa.String(50), nullable=False, server_default='service'),
        sa.Column('pay_amount', sa.Float, nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('is_remote', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('status', gig_status, nullable=False, server_default='open'),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'gig_applications',
        _id(),
        sa.Column('gig_id', UUID(as_uuid=True), sa.ForeignKey('gigs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('applicant_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message', sa.String(1000), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('gig_id', 'applicant_id', name='uq_gig_application'),
    )


def downgrade():
    for table in (
        'gig_applications', 'gigs', 'invoices', 'notifications', 'spending_limits', 'balances',
        'goals', 'expenses', 'incomes', 'bank_transactions', 'bank_accounts', 'bank_connections', 'users',
    ):
        op.drop_table(table)
    for enum_name in ('gigstatus', 'limitperiod', 'goaltype', 'paymentmethod'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
