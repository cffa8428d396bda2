"""Create billing tables.

Revision ID: 001_create_billing_tables
Revises: None
Create Date: 2025-11-09 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_billing_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create billing tables."""
    # Create club_fee_settings table
    op.create_table(
        'club_fee_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('club_id', sa.String(64), nullable=False),
        sa.Column('monthly_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(3), nullable=False),
        sa.Column('active_months', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_notification_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('club_id'),
    )

    # Create charges table
    op.create_table(
        'charges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('club_id', sa.String(64), nullable=False),
        sa.Column('kind', sa.Enum('RECURRING', 'CUSTOM', name='chargekind'), nullable=False),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency_code', sa.String(3), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('period_key', sa.String(7), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_charges_club_id', 'charges', ['club_id'])

    # Create charge_targets table; the unique constraint makes fee generation idempotent
    op.create_table(
        'charge_targets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('charge_id', sa.Integer(), nullable=False),
        sa.Column('club_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('period_key', sa.String(7), nullable=True),
        sa.ForeignKeyConstraint(['charge_id'], ['charges.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'club_id', 'user_id', 'period_key', name='uq_charge_targets_club_user_period'
        ),
    )
    op.create_index('ix_charge_targets_club_id_user_id', 'charge_targets', ['club_id', 'user_id'])

    # Create payments table
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('club_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('charge_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('note', sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(['charge_id'], ['charges.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_club_id_user_id', 'payments', ['club_id', 'user_id'])


def downgrade() -> None:
    """Drop billing tables."""
    op.drop_index('ix_payments_club_id_user_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_charge_targets_club_id_user_id', table_name='charge_targets')
    op.drop_table('charge_targets')
    op.drop_index('ix_charges_club_id', table_name='charges')
    op.drop_table('charges')
    op.drop_table('club_fee_settings')
