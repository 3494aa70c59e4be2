"""create user, game and move tables

Revision ID: 5b7e0c1d2a93
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7e0c1d2a93'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('identity', sa.String(length=128), nullable=False),
            sa.Column('display_name', sa.String(length=64), nullable=False),
            sa.Column('wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('losses', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('draws', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('rating', sa.Integer(), nullable=False, server_default='1000'),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('last_seen', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_user_identity', 'user', ['identity'], unique=True)

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.String(length=32), nullable=False),
            sa.Column('player1', sa.String(length=128), nullable=True),
            sa.Column('player2', sa.String(length=128), nullable=True),
            sa.Column('winner', sa.String(length=128), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('kind', sa.String(length=16), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_game_session_id', 'game', ['session_id'])
        op.create_index('ix_game_player1', 'game', ['player1'])
        op.create_index('ix_game_player2', 'game', ['player2'])

    if 'move' not in existing_tables:
        op.create_table(
            'move',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
            sa.Column('from_square', sa.String(length=32), nullable=False),
            sa.Column('to_square', sa.String(length=32), nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_move_game_id', 'move', ['game_id'])


def downgrade():
    op.drop_index('ix_move_game_id', table_name='move')
    op.drop_table('move')
    op.drop_index('ix_game_player2', table_name='game')
    op.drop_index('ix_game_player1', table_name='game')
    op.drop_index('ix_game_session_id', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_user_identity', table_name='user')
    op.drop_table('user')
