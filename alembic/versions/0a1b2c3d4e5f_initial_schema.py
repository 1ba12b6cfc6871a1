"""initial schema: users, surveys, responses, sessions

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('ADMIN', 'RESEARCHER', name='userrole')
session_action = sa.Enum(
    'VIEWED', 'ANSWERED', 'SKIPPED', 'SECTION_COMPLETED', 'ABANDONED', 'COMPLETED',
    name='sessionaction',
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('organization', sa.String(), nullable=True),
        sa.Column('research_area', sa.String(), nullable=True),
        sa.Column('purpose', sa.Text(), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_email_verified', sa.Boolean(), nullable=False),
        sa.Column('email_verification_code', sa.String(), nullable=True),
        sa.Column('email_verification_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_banned', sa.Boolean(), nullable=False),
        sa.Column('ban_reason', sa.Text(), nullable=True),
        sa.Column('banned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ban_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'surveys',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('shareable_id', sa.String(length=64), nullable=False),
        sa.Column('definition', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_surveys_id', 'surveys', ['id'])
    op.create_index('ix_surveys_title', 'surveys', ['title'])
    op.create_index('ix_surveys_shareable_id', 'surveys', ['shareable_id'], unique=True)

    op.create_table(
        'survey_responses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('respondent_id', sa.String(length=64), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('survey_id', 'respondent_id', name='uq_survey_responses_survey_respondent'),
    )
    op.create_index('ix_survey_responses_id', 'survey_responses', ['id'])
    op.create_index('ix_survey_responses_survey_id', 'survey_responses', ['survey_id'])
    op.create_index('ix_survey_responses_respondent_id', 'survey_responses', ['respondent_id'])

    op.create_table(
        'question_answers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('response_id', sa.Integer(), sa.ForeignKey('survey_responses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.String(length=64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('audio_path', sa.String(), nullable=True),
        sa.Column('file_path', sa.String(), nullable=True),
    )
    op.create_index('ix_question_answers_id', 'question_answers', ['id'])
    op.create_index('ix_question_answers_response_id', 'question_answers', ['response_id'])

    op.create_table(
        'survey_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('respondent_id', sa.String(length=64), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_activity', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('current_question_index', sa.Integer(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('is_abandoned', sa.Boolean(), nullable=False),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('language', sa.String(), nullable=True),
    )
    op.create_index('ix_survey_sessions_id', 'survey_sessions', ['id'])
    op.create_index('ix_survey_sessions_last_activity', 'survey_sessions', ['last_activity'])
    op.create_index('ix_survey_sessions_survey_respondent', 'survey_sessions', ['survey_id', 'respondent_id'])
    op.create_index('ix_survey_sessions_survey_abandoned', 'survey_sessions', ['survey_id', 'is_abandoned'])

    op.create_table(
        'session_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('survey_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.String(length=64), nullable=False),
        sa.Column('question_index', sa.Integer(), nullable=False),
        sa.Column('action', session_action, nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_session_steps_id', 'session_steps', ['id'])
    op.create_index('ix_session_steps_session_id', 'session_steps', ['session_id'])


def downgrade() -> None:
    op.drop_table('session_steps')
    op.drop_table('survey_sessions')
    op.drop_table('question_answers')
    op.drop_table('survey_responses')
    op.drop_table('surveys')
    op.drop_table('users')
    session_action.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
