"""Add sensor metadata, ITH threshold and TTN addressing

Revision ID: 0003
Revises: 0002
Create Date: 2025-10-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0003'
down_revision: Union[str, None] = '0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('sensores', sa.Column('modelo', sa.String(length=100), nullable=True))
    op.add_column('sensores', sa.Column('area', sa.String(length=100), nullable=True))
    op.add_column('sensores', sa.Column('zona', sa.String(length=100), nullable=True))
    op.add_column('sensores', sa.Column('sala', sa.String(length=100), nullable=True))
    op.add_column('sensores', sa.Column('modo', sa.String(length=10), nullable=True))
    op.add_column('sensores', sa.Column('umbral_ith', sa.Float(), nullable=True))

    # TTN v3 application / end device ids used for downlinks
    op.add_column('sensores', sa.Column('app_id', sa.String(length=100), nullable=True))
    op.add_column('sensores', sa.Column('device_id', sa.String(length=100), nullable=True))

    op.add_column('sensores', sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    for column in ('updated_at', 'device_id', 'app_id', 'umbral_ith', 'modo', 'sala', 'zona', 'area', 'modelo'):
        op.drop_column('sensores', column)
