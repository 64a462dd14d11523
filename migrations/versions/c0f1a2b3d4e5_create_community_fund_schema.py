"""create_community_fund_schema

Revision ID: c0f1a2b3d4e5
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = 'c0f1a2b3d4e5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at():
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False)


def _updated_at():
    return sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False)


def _money(name, nullable=False, server_default='0'):
    return sa.Column(
        name, sa.Numeric(precision=20, scale=2),
        server_default=server_default if not nullable else None, nullable=nullable,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), server_default='', nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=True),
        sa.Column('commune_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_community_id', 'users', ['community_id'])
    op.create_index('ix_users_commune_id', 'users', ['commune_id'])

    op.create_table(
        'communes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'communities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('commune_id', sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_communities_commune_id', 'communities', ['commune_id'])

    op.create_table(
        'fiscal_years',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('year'),
    )

    op.create_table(
        'plan_activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('activity_name', sa.String(length=255), nullable=False),
        sa.Column('activity_category', sa.String(length=128), nullable=True),
        sa.Column('expenditure_family', sa.String(length=64), nullable=True),
        sa.Column('period_start', sa.Date(), nullable=True),
        sa.Column('period_end', sa.Date(), nullable=True),
        _money('forest_owner_support'),
        _money('community_contribution'),
        _money('other_funds'),
        _money('total_budget'),
        sa.Column('implementation_method', sa.String(length=32), server_default='community', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='draft', nullable=False),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plan_activities_community_id', 'plan_activities', ['community_id'])
    op.create_index('ix_plan_activities_fiscal_year_id', 'plan_activities', ['fiscal_year_id'])
    op.create_index('ix_plan_activities_status', 'plan_activities', ['status'])
    op.create_index('ix_plan_activity_scope', 'plan_activities', ['community_id', 'fiscal_year_id'])

    op.create_table(
        'budget_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plan_activity_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('unit', sa.String(length=32), server_default='', nullable=False),
        sa.Column('quantity', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        _money('unit_cost'),
        _money('amount'),
        sa.Column('expenditure_family', sa.String(length=64), nullable=True),
        sa.Column('program_category', sa.String(length=64), nullable=True),
        sa.Column('remarks', sa.Text(), server_default='', nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_budget_items_plan_activity_id', 'budget_items', ['plan_activity_id'])

    op.create_table(
        'receipts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plan_activity_id', sa.Integer(), nullable=False),
        sa.Column('budget_item_id', sa.Integer(), nullable=True),
        sa.Column('file_url', sa.String(length=1024), nullable=False),
        sa.Column('file_type', sa.String(length=8), nullable=False),
        sa.Column('uploaded_by_role', sa.String(length=32), nullable=False),
        sa.Column('vendor_name', sa.String(length=255), nullable=True),
        sa.Column('invoice_number', sa.String(length=128), nullable=True),
        _money('amount', nullable=True),
        sa.Column('uploaded_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('verified_by', sa.Integer(), nullable=True),
        sa.Column('verified_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_receipts_plan_activity_id', 'receipts', ['plan_activity_id'])
    op.create_index('ix_receipts_budget_item_id', 'receipts', ['budget_item_id'])

    op.create_table(
        'activity_progress_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plan_activity_id', sa.Integer(), nullable=False),
        sa.Column('note_text', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(length=255), server_default='', nullable=False),
        sa.Column('progress_percentage', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activity_progress_notes_plan_activity_id', 'activity_progress_notes', ['plan_activity_id'])

    op.create_table(
        'ideas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('submitted_by', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('problem_statement', sa.Text(), server_default='', nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        _money('estimated_budget_total', nullable=True),
        sa.Column('compliance', JSONB, nullable=False),
        sa.Column('status', sa.String(length=20), server_default='submitted', nullable=False),
        sa.Column('submitted_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ideas_community_id', 'ideas', ['community_id'])
    op.create_index('ix_ideas_fiscal_year_id', 'ideas', ['fiscal_year_id'])

    op.create_table(
        'meetings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('scheduled_time', sa.String(length=5), nullable=True),
        sa.Column('location', sa.String(length=255), server_default='', nullable=False),
        sa.Column('chairperson', sa.String(length=255), server_default='', nullable=False),
        sa.Column('agenda', sa.Text(), server_default='', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='scheduled', nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meetings_community_id', 'meetings', ['community_id'])
    op.create_index('ix_meetings_fiscal_year_id', 'meetings', ['fiscal_year_id'])

    op.create_table(
        'meeting_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('meeting_id', sa.Integer(), nullable=True),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('chairperson', sa.String(length=255), server_default='', nullable=False),
        sa.Column('participants_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('agenda', sa.Text(), server_default='', nullable=False),
        sa.Column('presentation_summary', sa.Text(), server_default='', nullable=False),
        sa.Column('discussion_points', sa.Text(), server_default='', nullable=False),
        sa.Column('voting_method', sa.String(length=16), server_default='hands', nullable=False),
        sa.Column('voting_results', JSONB, nullable=False),
        sa.Column('approved_contents', sa.Text(), server_default='', nullable=False),
        sa.Column('minutes_file_url', sa.String(length=1024), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('meeting_id'),
    )
    op.create_index('ix_meeting_records_community_id', 'meeting_records', ['community_id'])
    op.create_index('ix_meeting_records_fiscal_year_id', 'meeting_records', ['fiscal_year_id'])

    op.create_table(
        'fund_registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('fund_source', sa.String(length=64), nullable=False),
        sa.Column('fund_purpose', sa.String(length=128), nullable=False),
        sa.Column('is_erpa_fund', sa.Boolean(), server_default='false', nullable=False),
        _money('amount_received', server_default=None),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_reference_number', sa.String(length=128), nullable=True),
        sa.Column('payer_name', sa.String(length=255), server_default='', nullable=False),
        sa.Column('related_activity_id', sa.Integer(), nullable=True),
        sa.Column('donation_type', sa.String(length=32), nullable=True),
        sa.Column('carry_over_reference_year', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        sa.Column('recorded_by', sa.String(length=255), server_default='', nullable=False),
        sa.Column('recorded_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='registered', nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_fund_registrations_community_id', 'fund_registrations', ['community_id'])
    op.create_index('ix_fund_registrations_fiscal_year_id', 'fund_registrations', ['fiscal_year_id'])

    op.create_table(
        'disbursements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('commune_id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('plan_activity_id', sa.Integer(), nullable=True),
        sa.Column('recipient_type', sa.String(length=20), nullable=False),
        sa.Column('recipient_name', sa.String(length=255), nullable=False),
        _money('amount', server_default=None),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('channel', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='scheduled', nullable=False),
        sa.Column('payment_order_ref', sa.String(length=128), server_default='', nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_disbursements_commune_id', 'disbursements', ['commune_id'])
    op.create_index('ix_disbursements_community_id', 'disbursements', ['community_id'])
    op.create_index('ix_disbursements_fiscal_year_id', 'disbursements', ['fiscal_year_id'])
    op.create_index('ix_disbursements_status', 'disbursements', ['status'])

    op.create_table(
        'workflow_status',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('community_id', sa.Integer(), nullable=False),
        sa.Column('fiscal_year_id', sa.Integer(), nullable=False),
        sa.Column('fund_registration_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('meeting_scheduled_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('minutes_uploaded_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('plan_created_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('activities_ongoing', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('final_report_submitted', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('current_step', sa.String(length=32), server_default='fund_registration', nullable=False),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('community_id', 'fiscal_year_id', name='uq_workflow_community_year'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('payload_json', JSONB, nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity'])
    op.create_index('ix_audit_logs_occurred_at', 'audit_logs', ['occurred_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('audit_logs')
    op.drop_table('workflow_status')
    op.drop_table('disbursements')
    op.drop_table('fund_registrations')
    op.drop_table('meeting_records')
    op.drop_table('meetings')
    op.drop_table('ideas')
    op.drop_table('activity_progress_notes')
    op.drop_table('receipts')
    op.drop_table('budget_items')
    op.drop_table('plan_activities')
    op.drop_table('fiscal_years')
    op.drop_table('communities')
    op.drop_table('communes')
    op.drop_table('users')
