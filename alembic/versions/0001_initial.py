"""Initial migration

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # 1. Users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('looking_for', sa.String(length=20), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('personality_traits', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('deal_breakers', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('lifestyle', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('preferences', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('has_kids', sa.Boolean(), server_default=sa.text('false'), nullable=True),
        sa.Column('has_pets', sa.Boolean(), server_default=sa.text('false'), nullable=True),
        sa.Column('interests', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('values', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('hobbies', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('subscription_tier', sa.String(length=20), server_default='free', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_banned', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('suspended_for_review', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_user_active_location', 'users', ['is_active', 'latitude', 'longitude'], unique=False)

    # 2. Matches table (one row per unordered pair)
    op.create_table('matches',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('pair_key', sa.String(length=32), nullable=False),
        sa.Column('user_a_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_b_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('band', sa.String(length=20), nullable=True),
        sa.Column('insight', sa.Text(), nullable=True),
        sa.Column('user_a_action', sa.String(length=20), nullable=True),
        sa.Column('user_b_action', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('ai_analysis', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_a_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['user_b_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pair_key', name='uq_match_pair_key')
    )
    op.create_index('ix_match_user_a_status', 'matches', ['user_a_id', 'status'], unique=False)
    op.create_index('ix_match_user_b_status', 'matches', ['user_b_id', 'status'], unique=False)

    # 3. Safety reports table
    op.create_table('safety_reports',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reported_by_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reported_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('evidence', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('status', sa.String(length=50), server_default='pending', nullable=False),
        sa.Column('risk_level', sa.String(length=20), nullable=True),
        sa.Column('ai_analysis', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['reported_by_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reported_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_safety_report_user_status', 'safety_reports', ['reported_user_id', 'status'], unique=False)


def downgrade() -> None:
    # Drop Safety reports
    op.drop_index('ix_safety_report_user_status', table_name='safety_reports')
    op.drop_table('safety_reports')

    # Drop Matches
    op.drop_index('ix_match_user_b_status', table_name='matches')
    op.drop_index('ix_match_user_a_status', table_name='matches')
    op.drop_table('matches')

    # Drop Users
    op.drop_index('ix_user_active_location', table_name='users')
    op.drop_table('users')
