"""Add dev_eui to sensores and link mediciones to sensores

Revision ID: 0002
Revises: 0001
Create Date: 2025-09-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One sensor per EUI; NULL allowed for manually created sensors
    op.add_column('sensores', sa.Column('dev_eui', sa.String(length=32), nullable=True))
    op.create_index('ix_sensores_dev_eui', 'sensores', ['dev_eui'], unique=True)

    op.add_column('mediciones', sa.Column('id_sensor', sa.Integer(), nullable=True))
    op.create_foreign_key(
        'fk_mediciones_id_sensor', 'mediciones', 'sensores', ['id_sensor'], ['id_sensor']
    )
    op.create_index('ix_mediciones_id_sensor', 'mediciones', ['id_sensor'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_mediciones_id_sensor', table_name='mediciones')
    op.drop_constraint('fk_mediciones_id_sensor', 'mediciones', type_='foreignkey')
    op.drop_column('mediciones', 'id_sensor')
    op.drop_index('ix_sensores_dev_eui', table_name='sensores')
    op.drop_column('sensores', 'dev_eui')
