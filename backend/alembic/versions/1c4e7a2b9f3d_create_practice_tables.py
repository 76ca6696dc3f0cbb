"""Create practice scheduling tables

Revision ID: 1c4e7a2b9f3d
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1c4e7a2b9f3d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'recurrence_groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('anchor_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('day_of_week', sa.SmallInteger(), nullable=True),
        sa.Column('nth_week', sa.SmallInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'practices',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('team_name', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('level', sa.String(), nullable=True),
        sa.Column('conditions', sa.Text(), nullable=True),
        sa.Column('fee', sa.String(), nullable=True),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('recurrence_group_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recurrence_group_id'], ['recurrence_groups.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_practices_location_date', 'practices', ['location', 'event_date'])
    op.create_index('idx_practices_recurrence_group_id', 'practices', ['recurrence_group_id'])
    op.create_index(op.f('ix_practices_owner_id'), 'practices', ['owner_id'])

    op.create_table(
        'practice_comments',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('practice_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['practice_id'], ['practices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_practice_comments_practice_id'), 'practice_comments', ['practice_id'])

    op.create_table(
        'comment_likes',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('comment_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['comment_id'], ['practice_comments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'comment_id')
    )
    op.create_index('idx_comment_likes_comment_id', 'comment_likes', ['comment_id'])

    op.create_table(
        'signups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('practice_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['practice_id'], ['practices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('practice_id', 'user_id', name='uq_signups_practice_user')
    )
    op.create_index(op.f('ix_signups_user_id'), 'signups', ['user_id'])

    op.create_table(
        'user_profiles',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('calendar_feed_token', sa.String(), nullable=True),
        sa.Column('racket', sa.String(), nullable=True),
        sa.Column('forehand_rubber', sa.String(), nullable=True),
        sa.Column('backhand_rubber', sa.String(), nullable=True),
        sa.Column('play_style', sa.String(), nullable=True),
        sa.Column('dominant_hand', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('calendar_feed_token')
    )


def downgrade() -> None:
    op.drop_table('user_profiles')

    op.drop_index(op.f('ix_signups_user_id'), table_name='signups')
    op.drop_table('signups')

    op.drop_index('idx_comment_likes_comment_id', table_name='comment_likes')
    op.drop_table('comment_likes')

    op.drop_index(op.f('ix_practice_comments_practice_id'), table_name='practice_comments')
    op.drop_table('practice_comments')

    op.drop_index(op.f('ix_practices_owner_id'), table_name='practices')
    op.drop_index('idx_practices_recurrence_group_id', table_name='practices')
    op.drop_index('idx_practices_location_date', table_name='practices')
    op.drop_table('practices')

    op.drop_table('recurrence_groups')
