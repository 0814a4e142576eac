"""initial pipeline schema

Revision ID: 3c1f0a7d2b44
Revises:
Create Date: 2026-10-19 09:12:03.118204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3c1f0a7d2b44'
down_revision = None
branch_labels = None
depends_on = None

BigIntPK = sa.BIGINT().with_variant(sa.Integer(), "sqlite")
JsonDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column('display_name', sa.Text()),
        sa.Column('avatar_url', sa.Text()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'identities',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.BIGINT(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('provider', sa.String(32), nullable=False),
        sa.Column('provider_id', sa.String(), nullable=False),
        sa.Column('access_token', sa.Text()),
        sa.Column('access_token_secret', sa.Text()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('provider', 'provider_id', name='uq_identities_provider_native'),
    )

    op.create_table(
        'raw_tweets',
        sa.Column('tweet_id', sa.String(), primary_key=True),
        sa.Column('author_user_id', sa.BIGINT(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('tweet_text', sa.Text()),
        sa.Column('tweet_created_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('captured_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('raw_data', JsonDocument, nullable=False),
    )
    op.create_index('idx_raw_tweets_author', 'raw_tweets', ['author_user_id'])

    op.create_table(
        'processed_posts',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.BIGINT(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('source_provider', sa.String(32), nullable=False),
        sa.Column('source_post_id', sa.String(), nullable=False),
        sa.Column('post_text', sa.Text()),
        sa.Column('post_created_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('like_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('retweet_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reply_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quote_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Natural key: ETL inserts rely on this for ON CONFLICT DO NOTHING
    op.create_index('idx_processed_posts_natural_key', 'processed_posts',
                    ['source_provider', 'source_post_id'], unique=True)
    op.create_index('idx_processed_posts_user', 'processed_posts', ['user_id'])

    op.create_table(
        'youtube_channel_snapshots',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column('channel_id', sa.String(), nullable=False),
        sa.Column('fetched_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('title', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('country', sa.String(8)),
        sa.Column('thumbnails', JsonDocument),
        sa.Column('view_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('subscriber_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('video_count', sa.BIGINT(), nullable=False, server_default='0'),
    )
    op.create_index('idx_channel_snapshots_channel_fetched', 'youtube_channel_snapshots',
                    ['channel_id', 'fetched_at'])


def downgrade() -> None:
    op.drop_index('idx_channel_snapshots_channel_fetched', table_name='youtube_channel_snapshots')
    op.drop_table('youtube_channel_snapshots')
    op.drop_index('idx_processed_posts_user', table_name='processed_posts')
    op.drop_index('idx_processed_posts_natural_key', table_name='processed_posts')
    op.drop_table('processed_posts')
    op.drop_index('idx_raw_tweets_author', table_name='raw_tweets')
    op.drop_table('raw_tweets')
    op.drop_table('identities')
    op.drop_table('users')
