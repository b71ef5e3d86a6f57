"""Create competitions, competition_users and workouts tables

Revision ID: 7f3a91c4d2e8
Revises: 
Create Date: 2026-10-12 19:04:11.512308

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7f3a91c4d2e8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'competitions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('competition_name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('workouts', sa.JSON(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('owner', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_competitions_owner', 'competitions', ['owner'])

    op.create_table(
        'competition_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('competition_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('invite_status', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['competition_id'], ['competitions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('competition_id', 'user_id')
    )
    op.create_index('ix_competition_users_competition_id', 'competition_users', ['competition_id'])
    op.create_index('ix_competition_users_user_id', 'competition_users', ['user_id'])

    op.create_table(
        'workouts',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('workout_id', sa.String(), nullable=False),
        sa.Column('workout_type', sa.String(), nullable=False),
        sa.Column('distance', sa.Float(), nullable=False),
        sa.Column('steps', sa.Integer(), nullable=True),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('total_duration', sa.Float(), nullable=True),
        sa.Column('local_date', sa.Date(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timezone_offset', sa.Integer(), nullable=True),
        sa.Column('device_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'workout_id')
    )
    op.create_index('ix_workouts_workout_type', 'workouts', ['workout_type'])
    op.create_index('ix_workouts_local_date', 'workouts', ['local_date'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_workouts_local_date', table_name='workouts')
    op.drop_index('ix_workouts_workout_type', table_name='workouts')
    op.drop_table('workouts')
    op.drop_index('ix_competition_users_user_id', table_name='competition_users')
    op.drop_index('ix_competition_users_competition_id', table_name='competition_users')
    op.drop_table('competition_users')
    op.drop_index('ix_competitions_owner', table_name='competitions')
    op.drop_table('competitions')
