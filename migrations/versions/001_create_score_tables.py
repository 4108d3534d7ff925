"""Create aggregate score tables, custom decks and legacy persistence.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'user_global_total_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('score', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_known_username', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_global_total_user', 'user_global_total_scores', ['user_id'], unique=True)
    op.create_index('idx_global_total_score', 'user_global_total_scores', ['score'])

    op.create_table(
        'user_group_total_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('group_id', sa.String(64), nullable=False),
        sa.Column('score', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_known_username', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_group_total_user_group', 'user_group_total_scores', ['user_id', 'group_id'], unique=True
    )
    op.create_index('idx_group_total_group_score', 'user_group_total_scores', ['group_id', 'score'])

    op.create_table(
        'user_global_deck_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('deck_unique_id', sa.String(255), nullable=False),
        sa.Column('score', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_known_username', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_global_deck_user_deck', 'user_global_deck_scores', ['user_id', 'deck_unique_id'], unique=True
    )
    op.create_index('idx_global_deck_deck', 'user_global_deck_scores', ['deck_unique_id'])

    op.create_table(
        'user_group_deck_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('group_id', sa.String(64), nullable=False),
        sa.Column('deck_unique_id', sa.String(255), nullable=False),
        sa.Column('score', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_known_username', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_group_deck_user_group_deck',
        'user_group_deck_scores',
        ['user_id', 'group_id', 'deck_unique_id'],
        unique=True,
    )
    op.create_index('idx_group_deck_group_deck', 'user_group_deck_scores', ['group_id', 'deck_unique_id'])

    op.create_table(
        'custom_decks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('short_name', sa.String(100), nullable=False),
        sa.Column('unique_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('owner_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('short_name'),
        sa.UniqueConstraint('unique_id'),
    )

    op.create_table(
        'legacy_persistence',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )


def downgrade() -> None:
    op.drop_table('legacy_persistence')
    op.drop_table('custom_decks')
    op.drop_index('idx_group_deck_group_deck', table_name='user_group_deck_scores')
    op.drop_index('idx_group_deck_user_group_deck', table_name='user_group_deck_scores')
    op.drop_table('user_group_deck_scores')
    op.drop_index('idx_global_deck_deck', table_name='user_global_deck_scores')
    op.drop_index('idx_global_deck_user_deck', table_name='user_global_deck_scores')
    op.drop_table('user_global_deck_scores')
    op.drop_index('idx_group_total_group_score', table_name='user_group_total_scores')
    op.drop_index('idx_group_total_user_group', table_name='user_group_total_scores')
    op.drop_table('user_group_total_scores')
    op.drop_index('idx_global_total_score', table_name='user_global_total_scores')
    op.drop_index('idx_global_total_user', table_name='user_global_total_scores')
    op.drop_table('user_global_total_scores')
