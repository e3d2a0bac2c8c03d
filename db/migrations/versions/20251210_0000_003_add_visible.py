"""Add visible flag to videos and retire the __HIDDEN__ category marker

Revision ID: 003
Revises: 002
Create Date: 2025-12-10 00:00:00

Older deployments hid videos by setting category = '__HIDDEN__' when the
visibility column was missing. Those rows become visible = false with no
category.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None

HIDDEN_MARKER = '__HIDDEN__'


def upgrade():
    """Add visible column and convert legacy hidden markers."""
    from sqlalchemy import inspect
    from alembic import context

    conn = context.get_bind()
    inspector = inspect(conn)
    columns = [col['name'] for col in inspector.get_columns('videos')]

    if 'visible' not in columns:
        op.add_column('videos', sa.Column('visible', sa.Boolean(), nullable=True, server_default=sa.true()))

    videos = sa.table(
        'videos',
        sa.column('visible', sa.Boolean()),
        sa.column('category', sa.String()),
    )
    op.execute(
        videos.update()
        .where(videos.c.category == HIDDEN_MARKER)
        .values(visible=False, category=None)
    )
    op.create_index('idx_videos_visible', 'videos', ['visible'])


def downgrade():
    """Remove visible column; hidden videos become visible again."""
    op.drop_index('idx_videos_visible', table_name='videos')
    op.drop_column('videos', 'visible')
