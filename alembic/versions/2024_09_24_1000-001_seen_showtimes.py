"""seen showtimes

Revision ID: 001
Revises:
Create Date: 2024-09-24 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'seen_showtimes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('dedup_key', sa.String(length=64), nullable=False),
        sa.Column('film_title', sa.String(length=500), nullable=False),
        sa.Column('showing_date', sa.Date(), nullable=False),
        sa.Column('times', sa.String(length=50), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dedup_key', name='uq_seen_showtimes_dedup_key')
    )
    op.create_index(op.f('ix_seen_showtimes_showing_date'), 'seen_showtimes', ['showing_date'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_seen_showtimes_showing_date'), table_name='seen_showtimes')
    op.drop_table('seen_showtimes')
