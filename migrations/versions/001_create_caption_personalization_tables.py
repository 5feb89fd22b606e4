"""Create social post, account link and manual style tables

Revision ID: create_caption_personalization
Revises:
Create Date: 2026-10-19

social_posts is the append-only post corpus, unique per (user_id,
external_post_id). social_account_links holds at most one Instagram link per
user. user_style_profiles holds the manual style override.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'create_caption_personalization'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'social_posts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('external_post_id', sa.String(128), nullable=False),
        sa.Column('caption_text', sa.Text, nullable=True),
        sa.Column('media_url', sa.Text, nullable=True),
        sa.Column('permalink', sa.String(500), nullable=True),
        sa.Column('like_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('comment_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('media_kind', sa.String(16), nullable=False, server_default='IMAGE'),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('NOW()'),
        ),
        sa.UniqueConstraint('user_id', 'external_post_id', name='uq_social_posts_user_external'),
    )
    op.create_index('ix_social_posts_user_id', 'social_posts', ['user_id'])
    op.create_index('ix_social_posts_posted_at', 'social_posts', ['posted_at'])

    op.create_table(
        'social_account_links',
        sa.Column('user_id', sa.String(64), primary_key=True),
        sa.Column('external_account_id', sa.String(64), nullable=True),
        sa.Column('external_username', sa.String(64), nullable=True),
        sa.Column('access_token', sa.Text, nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('connected', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('NOW()'),
        ),
    )

    op.create_table(
        'user_style_profiles',
        sa.Column('user_id', sa.String(64), primary_key=True),
        sa.Column('profile', postgresql.JSONB, nullable=False),
        sa.Column('declaration', postgresql.JSONB, nullable=False),
        sa.Column('is_manual', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('NOW()'),
        ),
    )


def downgrade():
    op.drop_table('user_style_profiles')
    op.drop_table('social_account_links')
    op.drop_index('ix_social_posts_posted_at', table_name='social_posts')
    op.drop_index('ix_social_posts_user_id', table_name='social_posts')
    op.drop_table('social_posts')
