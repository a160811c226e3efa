"""Initial schema: users, articles, verification events and reward ledger

Revision ID: 3c1d9e7a4b20
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1d9e7a4b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=256), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('ens_address', sa.String(length=256), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar', sa.String(length=2048), nullable=True),
        sa.Column('reputation', sa.Integer(), nullable=False),
        sa.Column('truth_tokens', sa.Integer(), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('truth_tokens >= 0', name='ck_users_truth_tokens_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_ens_address', 'users', ['ens_address'], unique=False)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_auth_sessions_user_id', 'auth_sessions', ['user_id'], unique=False)
    op.create_index('ix_auth_sessions_created_at', 'auth_sessions', ['created_at'], unique=False)

    op.create_table(
        'signature_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('signature', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'publisher_applications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('organization', sa.String(length=256), nullable=False),
        sa.Column('website', sa.String(length=2048), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_publisher_applications_user_id', 'publisher_applications', ['user_id'], unique=False)

    op.create_table(
        'articles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('ipfs_hash', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.String(length=2048), nullable=True),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('is_whistleblower', sa.Boolean(), nullable=False),
        sa.Column('verification_count', sa.Integer(), nullable=False),
        sa.Column('truth_score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['author_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_articles_author_id', 'articles', ['author_id'], unique=False)
    op.create_index('ix_articles_status_created', 'articles', ['status', 'created_at'], unique=False)

    op.create_table(
        'evidence',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('article_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('files', sa.JSON(), nullable=True),
        sa.Column('ipfs_hash', sa.String(length=128), nullable=True),
        sa.Column('token_reward', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_evidence_article_id', 'evidence', ['article_id'], unique=False)
    op.create_index('ix_evidence_user_id', 'evidence', ['user_id'], unique=False)

    op.create_table(
        'verifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('article_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_verifications_user_id', 'verifications', ['user_id'], unique=False)
    op.create_index('ix_verifications_article_status', 'verifications', ['article_id', 'status'], unique=False)

    op.create_table(
        'token_awards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=256), nullable=False),
        sa.Column('external_ref', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_token_awards_user', 'token_awards', ['user_id', 'id'], unique=False)

    op.create_table(
        'reward_settlements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('award_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('next_attempt_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_error', sa.String(length=512), nullable=True),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['award_id'], ['token_awards.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('award_id'),
    )
    op.create_index('ix_reward_settlements_due', 'reward_settlements', ['status', 'next_attempt_at'], unique=False)


def downgrade():
    op.drop_index('ix_reward_settlements_due', table_name='reward_settlements')
    op.drop_table('reward_settlements')
    op.drop_index('ix_token_awards_user', table_name='token_awards')
    op.drop_table('token_awards')
    op.drop_index('ix_verifications_article_status', table_name='verifications')
    op.drop_index('ix_verifications_user_id', table_name='verifications')
    op.drop_table('verifications')
    op.drop_index('ix_evidence_user_id', table_name='evidence')
    op.drop_index('ix_evidence_article_id', table_name='evidence')
    op.drop_table('evidence')
    op.drop_index('ix_articles_status_created', table_name='articles')
    op.drop_index('ix_articles_author_id', table_name='articles')
    op.drop_table('articles')
    op.drop_index('ix_publisher_applications_user_id', table_name='publisher_applications')
    op.drop_table('publisher_applications')
    op.drop_table('signature_records')
    op.drop_index('ix_auth_sessions_created_at', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_user_id', table_name='auth_sessions')
    op.drop_table('auth_sessions')
    op.drop_index('ix_users_ens_address', table_name='users')
    op.drop_table('users')
