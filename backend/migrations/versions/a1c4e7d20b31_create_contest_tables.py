"""create event, code, candidate and image tables

Revision ID: a1c4e7d20b31
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7d20b31'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'event' not in existing_tables:
        op.create_table(
            'event',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=True),
            sa.Column('registration_deadline', sa.DateTime(), nullable=True),
            sa.Column('voting_deadline', sa.DateTime(), nullable=True),
            sa.Column('results_open', sa.Boolean(), nullable=False, server_default=sa.false()),
        )

    if 'code' not in existing_tables:
        op.create_table(
            'code',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('auth_code', sa.String(length=32), nullable=False),
            sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
            sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('has_voted', sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index('ix_code_auth_code', 'code', ['auth_code'], unique=True)
        op.create_index('ix_code_event_id', 'code', ['event_id'])

    if 'candidate' not in existing_tables:
        op.create_table(
            'candidate',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code_id', sa.Integer(), sa.ForeignKey('code.id'), nullable=False, unique=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('costume', sa.String(length=256), nullable=False),
            sa.Column('image_id', sa.String(length=64), nullable=True),
            sa.Column('votes', sa.Integer(), nullable=False, server_default='0'),
            sa.CheckConstraint('votes >= 0', name='ck_candidate_votes_non_negative'),
        )

    if 'image' not in existing_tables:
        op.create_table(
            'image',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code_id', sa.Integer(), sa.ForeignKey('code.id'), nullable=False, unique=True),
            sa.Column('image_id', sa.String(length=64), nullable=False),
        )


def downgrade():
    op.drop_table('image')
    op.drop_table('candidate')
    op.drop_index('ix_code_event_id', table_name='code')
    op.drop_index('ix_code_auth_code', table_name='code')
    op.drop_table('code')
    op.drop_table('event')
