"""quotes and weekly reflections

Revision ID: 0002_quotes_and_reflections
Revises: 0001_initial_stackr_schema
Create Date: 2025-06-14

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision = '0002_quotes_and_reflections'
down_revision = '0001_initial_stackr_schema'
branch_labels = None
depends_on = None


def upgrade():
    quote_tier = sa.Enum('basic', 'standard', 'premium', name='quotetier')
    quote_status = sa.Enum('draft', 'sent', 'accepted', 'declined', name='quotestatus')
    op.create_table(
        'quotes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_name', sa.String(150), nullable=False),
        sa.Column('client_email', sa.String, nullable=True),
        sa.Column('industry', sa.String(50), nullable=False),
        sa.Column('service_type', sa.String(150), nullable=False),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('experience_years', sa.Float, nullable=False, server_default='0'),
        sa.Column('profit_margin', sa.Float, nullable=False),
        sa.Column('line_items', sa.JSON, nullable=False),
        sa.Column('subtotal', sa.Float, nullable=False),
        sa.Column('tax', sa.Float, nullable=False),
        sa.Column('total', sa.Float, nullable=False),
        sa.Column('tiered_pricing', sa.JSON, nullable=False),
        sa.Column('selected_tier', quote_tier, nullable=False, server_default='standard'),
        sa.Column('status', quote_status, nullable=False, server_default='draft'),
        sa.Column('notes', sa.String(1000), nullable=True),
        sa.Column('expires_at', sa.DateTime, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'weekly_reflections',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('week_start', sa.DateTime, nullable=False),
        sa.Column('week_end', sa.DateTime, nullable=False),
        sa.Column('overall_status', sa.String(20), nullable=False),
        sa.Column('category_summary', sa.JSON, nullable=False),
        sa.Column('ai_suggestion', sa.String, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'week_start', name='uq_weekly_reflection'),
    )


def downgrade():
    op.drop_table('weekly_reflections')
    op.drop_table('quotes')
    for enum_name in ('quotestatus', 'quotetier'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
