"""add game invites, game results (with forfeits) and player handicap

Revision ID: 7c8d9e0f1a2b
Revises: 1a2b3c4d5e6f
Create Date: 2026-10-06 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c8d9e0f1a2b'
down_revision = '1a2b3c4d5e6f'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    player_cols = {c['name'] for c in insp.get_columns('player')}
    if 'handicap' not in player_cols:
        op.add_column('player', sa.Column('handicap', sa.Integer(), nullable=True))
        op.execute("UPDATE player SET handicap = 0 WHERE handicap IS NULL")
        with op.batch_alter_table('player') as batch_op:
            batch_op.alter_column('handicap', existing_type=sa.Integer(), nullable=False)

    if 'game_invite' not in existing_tables:
        op.create_table(
            'game_invite',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.Column('inviter_id', sa.Integer(), nullable=False),
            sa.Column('invitee_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['game_id'], ['game.id']),
            sa.ForeignKeyConstraint(['inviter_id'], ['user.id']),
            sa.ForeignKeyConstraint(['invitee_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_invite_invitee_id', 'game_invite', ['invitee_id'], unique=False)
        op.create_index('ix_game_invite_created_at', 'game_invite', ['created_at'], unique=False)

    if 'game_result' not in existing_tables:
        op.create_table(
            'game_result',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('questions_answered', sa.Integer(), nullable=False),
            sa.Column('correct_answers', sa.Integer(), nullable=False),
            sa.Column('rating_change', sa.Integer(), nullable=True),
            sa.Column('forfeited', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['game_id'], ['game.id']),
            sa.ForeignKeyConstraint(['user_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_result_game_id', 'game_result', ['game_id'], unique=False)
        op.create_index('ix_game_result_user_id', 'game_result', ['user_id'], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_result' in existing_tables:
        op.drop_index('ix_game_result_user_id', table_name='game_result')
        op.drop_index('ix_game_result_game_id', table_name='game_result')
        op.drop_table('game_result')
    if 'game_invite' in existing_tables:
        op.drop_index('ix_game_invite_created_at', table_name='game_invite')
        op.drop_index('ix_game_invite_invitee_id', table_name='game_invite')
        op.drop_table('game_invite')

    player_cols = {c['name'] for c in insp.get_columns('player')}
    if 'handicap' in player_cols:
        with op.batch_alter_table('player') as batch_op:
            batch_op.drop_column('handicap')
