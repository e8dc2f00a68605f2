"""Recruitment forms and submissions.

Revision ID: 0001_recruitment_forms
Revises:
Create Date: 2026-10-19

Creates:
- recruitment_forms (schema, availability window, response counter)
- recruitment_submissions (one per applicant email per form)
"""
from alembic import op
import sqlalchemy as sa

from app.db.base import JSONType

# revision identifiers, used by Alembic.
revision = '0001_recruitment_forms'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # recruitment_forms
    # ==========================================================================
    op.create_table(
        'recruitment_forms',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', JSONType, nullable=False),
        sa.Column('description', JSONType, nullable=True),
        sa.Column('role', sa.String(20), server_default=sa.text("'participants'"), nullable=False),
        sa.Column('project_item_id', sa.String(64), nullable=True),
        sa.Column('fields_json', JSONType, nullable=False),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('max_responses', sa.Integer(), nullable=True),
        sa.Column('current_responses', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('email_notification', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), nullable=True),
        sa.Column('updated_by_user_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_recruitment_forms_active_role', 'recruitment_forms', ['is_active', 'role'])
    op.create_index('idx_recruitment_forms_window', 'recruitment_forms', ['start_date', 'end_date'])
    op.create_index('idx_recruitment_forms_project', 'recruitment_forms', ['project_item_id'])

    # ==========================================================================
    # recruitment_submissions
    # ==========================================================================
    op.create_table(
        'recruitment_submissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('form_id', sa.Uuid(), nullable=False),
        sa.Column('project_item_id', sa.String(64), nullable=True),
        sa.Column('role_applied', sa.String(20), nullable=False),
        sa.Column('applicant_name', sa.String(100), nullable=False),
        sa.Column('applicant_email', sa.String(255), nullable=False),
        sa.Column('applicant_phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column('answers_json', JSONType, nullable=False),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('reviewed_by_user_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['form_id'], ['recruitment_forms.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('form_id', 'applicant_email', name='uq_recruitment_submission_applicant'),
    )
    op.create_index('idx_recruitment_submissions_form_status', 'recruitment_submissions', ['form_id', 'status'])
    op.create_index('idx_recruitment_submissions_created', 'recruitment_submissions', ['created_at'])


def downgrade() -> None:
    op.drop_index('idx_recruitment_submissions_created', table_name='recruitment_submissions')
    op.drop_index('idx_recruitment_submissions_form_status', table_name='recruitment_submissions')
    op.drop_table('recruitment_submissions')
    op.drop_index('idx_recruitment_forms_project', table_name='recruitment_forms')
    op.drop_index('idx_recruitment_forms_window', table_name='recruitment_forms')
    op.drop_index('idx_recruitment_forms_active_role', table_name='recruitment_forms')
    op.drop_table('recruitment_forms')
