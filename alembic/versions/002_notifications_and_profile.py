"""In-app notifications and extended user profile

Revision ID: 002_notifications_and_profile
Revises: 001_initial_schema
Create Date: 2026-10-17 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002_notifications_and_profile'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None

PROFILE_COLUMNS = (
    ('bio', sa.Text()),
    ('linkedin_url', sa.String(length=500)),
    ('github_url', sa.String(length=500)),
    ('portfolio_url', sa.String(length=500)),
    ('course', sa.String(length=150)),
    ('graduation_year', sa.Integer()),
)


def upgrade() -> None:
    for name, type_ in PROFILE_COLUMNS:
        op.add_column('users', sa.Column(name, type_, nullable=True))

    op.create_table(
        'notifications',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('idx_notifications_user_read', 'notifications', ['user_id', 'read'])


def downgrade() -> None:
    op.drop_table('notifications')
    for name, _ in reversed(PROFILE_COLUMNS):
        op.drop_column('users', name)
