"""create claim, game_session and round_result tables

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'claim' not in existing_tables:
        op.create_table(
            'claim',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('answer', sa.String(length=8), nullable=False),
            sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
            sa.Column('explanation', sa.Text(), nullable=True),
        )
        op.create_index('ix_claim_difficulty', 'claim', ['difficulty'])

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_code', sa.String(length=4), nullable=True),
            sa.Column('team_name', sa.String(length=64), nullable=False),
            sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
            sa.Column('status', sa.String(length=64), nullable=True),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('current_round', sa.Integer(), nullable=True),
            sa.Column('total_rounds', sa.Integer(), nullable=True),
            sa.Column('claim_order', sa.Text(), nullable=True),
        )
        op.create_index('ix_game_session_game_code', 'game_session', ['game_code'], unique=True)

    if 'round_result' not in existing_tables:
        op.create_table(
            'round_result',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
            sa.Column('round_number', sa.Integer(), nullable=False),
            sa.Column('claim_id', sa.Integer(), sa.ForeignKey('claim.id'), nullable=True),
            sa.Column('verdict', sa.String(length=8), nullable=True),
            sa.Column('confidence', sa.Integer(), nullable=False),
            sa.Column('correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('speed_bonus', sa.Text(), nullable=True),
            sa.Column('forfeited', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('forfeit_reason', sa.String(length=16), nullable=True),
            sa.Column('trigger', sa.String(length=16), nullable=False),
            sa.Column('time_elapsed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('calibration', sa.String(length=16), nullable=True),
            sa.UniqueConstraint('session_id', 'round_number', name='uq_round_result_session_round'),
        )


def downgrade():
    op.drop_table('round_result')
    op.drop_index('ix_game_session_game_code', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_claim_difficulty', table_name='claim')
    op.drop_table('claim')
