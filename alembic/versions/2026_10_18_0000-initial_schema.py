"""initial schema

Revision ID: 2026_10_18_0000
Revises:
Create Date: 2026-10-18 08:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import INET, JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '2026_10_18_0000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()'))


def upgrade() -> None:
    """Create schema and seed the service catalog and rate plans."""

    # ========================================================================
    # admin_users
    # ========================================================================
    op.create_table(
        'admin_users',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),

        sa.UniqueConstraint('email', name='uq_admin_users_email'),
        sa.CheckConstraint("role IN ('admin', 'moderator')", name='ck_admin_users_role'),
    )

    # ========================================================================
    # apis (service catalog)
    # ========================================================================
    op.create_table(
        'apis',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('service_provider', sa.String(255), nullable=False, server_default='Direct'),
        sa.Column('global_buy_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('global_sell_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('default_credit_charge', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.UniqueConstraint('name', name='uq_apis_name'),
        sa.CheckConstraint("type IN ('FREE', 'PRO', 'DISABLED')", name='ck_apis_type'),
        sa.CheckConstraint('default_credit_charge >= 0', name='ck_apis_credit_charge_non_negative'),
    )

    # ========================================================================
    # rate_plans
    # ========================================================================
    op.create_table(
        'rate_plans',
        _id(),
        sa.Column('plan_name', sa.String(255), nullable=False),
        sa.Column('user_type', sa.String(20), nullable=False),
        sa.Column('monthly_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('default_credits', sa.Integer(), nullable=False),
        sa.Column('renewal_required', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('topup_allowed', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('status', sa.String(20), nullable=False, server_default='Active'),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.CheckConstraint("user_type IN ('Police', 'Private', 'Custom')", name='ck_rate_plans_user_type'),
        sa.CheckConstraint("status IN ('Active', 'Inactive')", name='ck_rate_plans_status'),
        sa.CheckConstraint('default_credits >= 0', name='ck_rate_plans_default_credits'),
    )

    # ========================================================================
    # plan_apis (entitlements)
    # ========================================================================
    op.create_table(
        'plan_apis',
        _id(),
        sa.Column('plan_id', UUID(as_uuid=True), nullable=False),
        sa.Column('api_id', UUID(as_uuid=True), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('credit_cost', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('buy_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('sell_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.UniqueConstraint('plan_id', 'api_id', name='uq_plan_apis_plan_api'),
        sa.CheckConstraint('credit_cost >= 0', name='ck_plan_apis_credit_cost_non_negative'),
        sa.ForeignKeyConstraint(['plan_id'], ['rate_plans.id'], name='fk_plan_apis_plan', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['api_id'], ['apis.id'], name='fk_plan_apis_api', ondelete='CASCADE'),
    )
    op.create_index('idx_plan_apis_plan_id', 'plan_apis', ['plan_id'])

    # ========================================================================
    # provider_credentials
    # ========================================================================
    op.create_table(
        'provider_credentials',
        _id(),
        sa.Column('api_id', UUID(as_uuid=True), nullable=False),
        sa.Column('api_key', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Active'),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_used', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.UniqueConstraint('api_id', name='uq_provider_credentials_api_id'),
        sa.CheckConstraint("status IN ('Active', 'Inactive')", name='ck_provider_credentials_status'),
        sa.CheckConstraint('usage_count >= 0', name='ck_provider_credentials_usage_non_negative'),
        sa.ForeignKeyConstraint(['api_id'], ['apis.id'], name='fk_provider_credentials_api', ondelete='CASCADE'),
    )

    # ========================================================================
    # officers
    # ========================================================================
    op.create_table(
        'officers',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('mobile', sa.String(32), nullable=False),
        sa.Column('telegram_id', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Active'),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('rank', sa.String(100), nullable=True),
        sa.Column('badge_number', sa.String(100), nullable=True),
        sa.Column('station', sa.String(255), nullable=True),
        sa.Column('plan_id', UUID(as_uuid=True), nullable=True),
        sa.Column('credits_remaining', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('total_credits', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('total_queries', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('last_active'),
        _timestamp('registered_on'),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.UniqueConstraint('email', name='uq_officers_email'),
        sa.UniqueConstraint('mobile', name='uq_officers_mobile'),
        sa.UniqueConstraint('telegram_id', name='uq_officers_telegram_id'),
        sa.CheckConstraint("status IN ('Active', 'Suspended')", name='ck_officers_status'),
        sa.CheckConstraint('credits_remaining >= 0', name='ck_officers_credits_non_negative'),
        sa.CheckConstraint('total_credits >= 0', name='ck_officers_total_credits_non_negative'),
        sa.CheckConstraint('total_queries >= 0', name='ck_officers_total_queries_non_negative'),
        sa.ForeignKeyConstraint(['plan_id'], ['rate_plans.id'], name='fk_officers_plan', ondelete='SET NULL'),
    )
    op.create_index('idx_officers_status', 'officers', ['status'])
    op.create_index('idx_officers_plan_id', 'officers', ['plan_id'])
    op.create_index('idx_officers_created_at', 'officers', ['created_at'])

    # ========================================================================
    # officer_registrations
    # ========================================================================
    op.create_table(
        'officer_registrations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('mobile', sa.String(32), nullable=False),
        sa.Column('station', sa.String(255), nullable=False),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('rank', sa.String(100), nullable=True),
        sa.Column('badge_number', sa.String(100), nullable=True),
        sa.Column('additional_info', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.String(255), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        _timestamp('created_at'),

        sa.UniqueConstraint('email', name='uq_officer_registrations_email'),
        sa.UniqueConstraint('mobile', name='uq_officer_registrations_mobile'),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name='ck_officer_registrations_status'
        ),
    )

    # ========================================================================
    # queries (audit log)
    # ========================================================================
    op.create_table(
        'queries',
        _id(),
        sa.Column('officer_id', UUID(as_uuid=True), nullable=False),
        sa.Column('officer_name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('category', sa.String(255), nullable=False),
        sa.Column('input_data', sa.Text(), nullable=False),
        sa.Column('source', sa.String(255), nullable=True),
        sa.Column('result_summary', sa.Text(), nullable=True),
        sa.Column('full_result', JSONB(), nullable=True),
        sa.Column('credits_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='Processing'),
        sa.Column('ip_address', INET(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        _timestamp('created_at'),

        sa.CheckConstraint("type IN ('OSINT', 'PRO')", name='ck_queries_type'),
        sa.CheckConstraint(
            "status IN ('Processing', 'Success', 'Failed', 'Pending')", name='ck_queries_status'
        ),
        sa.CheckConstraint('credits_used >= 0', name='ck_queries_credits_non_negative'),
        sa.ForeignKeyConstraint(['officer_id'], ['officers.id'], name='fk_queries_officer', ondelete='CASCADE'),
    )
    op.create_index('idx_queries_officer_id', 'queries', ['officer_id'])
    op.create_index('idx_queries_status', 'queries', ['status'])
    op.create_index('idx_queries_created_at', 'queries', ['created_at'])

    # ========================================================================
    # credit_transactions (append-only ledger)
    # ========================================================================
    op.create_table(
        'credit_transactions',
        _id(),
        sa.Column('officer_id', UUID(as_uuid=True), nullable=False),
        sa.Column('officer_name', sa.String(255), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('balance_before', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('payment_mode', sa.String(100), nullable=False, server_default='Department Budget'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('processed_by', UUID(as_uuid=True), nullable=True),
        _timestamp('created_at'),

        sa.CheckConstraint(
            "action IN ('Renewal', 'Deduction', 'Top-up', 'Refund')", name='ck_credit_transactions_action'
        ),
        sa.CheckConstraint('balance_after >= 0', name='ck_credit_transactions_balance_non_negative'),
        sa.ForeignKeyConstraint(
            ['officer_id'], ['officers.id'], name='fk_credit_transactions_officer', ondelete='CASCADE'
        ),
    )
    op.create_index('idx_credit_transactions_officer_id', 'credit_transactions', ['officer_id'])
    op.create_index('idx_credit_transactions_created_at', 'credit_transactions', ['created_at'])

    # ========================================================================
    # Seed data
    # ========================================================================
    op.execute(
        """
        INSERT INTO apis (name, type, service_provider, global_buy_price, global_sell_price,
                          default_credit_charge, description) VALUES
        ('Phone Prefill V2', 'PRO', 'Signzy', 5.00, 10.00, 2, 'Advanced phone number verification with user data prefill'),
        ('RC Verification', 'PRO', 'Surepass', 3.00, 6.00, 1, 'Vehicle registration certificate verification'),
        ('Credit History', 'PRO', 'CIBIL', 15.00, 25.00, 5, 'Credit history and score verification'),
        ('Cell ID Location', 'PRO', 'TelecomAPI', 8.00, 15.00, 3, 'Cell tower location and coverage mapping'),
        ('Email Validator', 'FREE', 'Internal', 0.00, 0.00, 0, 'Basic email address validation and verification'),
        ('Social Media Scan', 'FREE', 'Internal', 0.00, 0.00, 0, 'Social media platform username scanning'),
        ('Phone Number Lookup', 'FREE', 'TrueCaller', 0.00, 0.00, 0, 'Basic phone number information lookup')
        ON CONFLICT (name) DO NOTHING
        """
    )
    op.execute(
        """
        INSERT INTO rate_plans (plan_name, user_type, monthly_fee, default_credits) VALUES
        ('Police Basic', 'Police', 500.00, 50),
        ('Police Pro', 'Police', 1500.00, 200),
        ('Police Enterprise', 'Police', 5000.00, 1000),
        ('Private Investigator', 'Private', 2000.00, 100),
        ('Corporate Security', 'Custom', 10000.00, 500)
        """
    )
    op.execute(
        """
        INSERT INTO admin_users (name, email, role) VALUES
        ('System Administrator', 'admin@pickme.intel', 'admin')
        ON CONFLICT (email) DO NOTHING
        """
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('credit_transactions')
    op.drop_table('queries')
    op.drop_table('officer_registrations')
    op.drop_table('officers')
    op.drop_table('provider_credentials')
    op.drop_table('plan_apis')
    op.drop_table('rate_plans')
    op.drop_table('apis')
    op.drop_table('admin_users')
