"""Initial tea tasting schema

Revision ID: 20261017_initial
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261017_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Значения enum хранятся по именам членов AuthLinkPurpose
auth_link_purpose = sa.Enum('RATING_PAGE', 'RESULT_PAGE', 'ADMIN_PANEL', name='authlinkpurpose')

json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False),
        sa.Column('username', sa.String(100), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_telegram_id', 'users', ['telegram_id'], unique=True)

    op.create_table(
        'tastings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tastings_is_active', 'tastings', ['is_active'])

    op.create_table(
        'tea_samples',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tasting_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tasting_id'], ['tastings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tasting_id', 'position', name='uq_tea_samples_tasting_position'),
    )
    op.create_index('ix_tea_samples_tasting_id', 'tea_samples', ['tasting_id'])

    op.create_table(
        'rating_dimensions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tasting_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('min_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_value', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(['tasting_id'], ['tastings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tasting_id', 'code', name='uq_rating_dimensions_tasting_code'),
        sa.CheckConstraint('min_value < max_value', name='ck_rating_dimensions_range'),
    )
    op.create_index('ix_rating_dimensions_tasting_id', 'rating_dimensions', ['tasting_id'])

    op.create_table(
        'ratings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('tea_sample_id', sa.Integer(), nullable=False),
        sa.Column('data', json_type, nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tea_sample_id'], ['tea_samples.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'tea_sample_id', name='uq_ratings_user_sample'),
    )
    op.create_index('ix_ratings_user_id', 'ratings', ['user_id'])
    op.create_index('ix_ratings_tea_sample_id', 'ratings', ['tea_sample_id'])

    op.create_table(
        'auth_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('purpose', auth_link_purpose, nullable=False),
        sa.Column('context', json_type, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_auth_links_token', 'auth_links', ['token'], unique=True)
    op.create_index('ix_auth_links_user_id', 'auth_links', ['user_id'])
    op.create_index('ix_auth_links_expires_at', 'auth_links', ['expires_at'])


def downgrade() -> None:
    op.drop_index('ix_auth_links_expires_at', table_name='auth_links')
    op.drop_index('ix_auth_links_user_id', table_name='auth_links')
    op.drop_index('ix_auth_links_token', table_name='auth_links')
    op.drop_table('auth_links')
    auth_link_purpose.drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_ratings_tea_sample_id', table_name='ratings')
    op.drop_index('ix_ratings_user_id', table_name='ratings')
    op.drop_table('ratings')

    op.drop_index('ix_rating_dimensions_tasting_id', table_name='rating_dimensions')
    op.drop_table('rating_dimensions')

    op.drop_index('ix_tea_samples_tasting_id', table_name='tea_samples')
    op.drop_table('tea_samples')

    op.drop_index('ix_tastings_is_active', table_name='tastings')
    op.drop_table('tastings')

    op.drop_index('ix_users_telegram_id', table_name='users')
    op.drop_table('users')
