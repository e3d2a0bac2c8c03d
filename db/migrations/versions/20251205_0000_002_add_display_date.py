"""Add display_date to videos table

Revision ID: 002
Revises: 001
Create Date: 2025-12-05 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    """Add display_date column and its ordering index."""
    # Check if column already exists (may have been added manually)
    from sqlalchemy import inspect
    from alembic import context

    conn = context.get_bind()
    inspector = inspect(conn)
    columns = [col['name'] for col in inspector.get_columns('videos')]

    if 'display_date' not in columns:
        op.add_column('videos', sa.Column('display_date', sa.TIMESTAMP(timezone=True), nullable=True,
                                          comment='Custom date used for chronological ordering'))

    indexes = [index['name'] for index in inspector.get_indexes('videos')]
    if 'idx_videos_display_date' not in indexes:
        op.create_index(
            'idx_videos_display_date',
            'videos',
            [sa.text('display_date DESC NULLS LAST')],
        )


def downgrade():
    """Remove display_date column from videos table."""
    op.drop_index('idx_videos_display_date', table_name='videos')
    op.drop_column('videos', 'display_date')
