"""Initial schema - sensores and mediciones tables

Revision ID: 0001
Revises:
Create Date: 2025-09-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create sensores table
    op.create_table(
        'sensores',
        sa.Column('id_sensor', sa.Integer(), nullable=False),
        sa.Column('nombre_sensor', sa.String(length=100), nullable=False),
        sa.Column('id_granja', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id_sensor')
    )
    op.create_index('ix_sensores_id_granja', 'sensores', ['id_granja'], unique=False)

    # Create mediciones table (readings were not yet tied to a sensor)
    op.create_table(
        'mediciones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('temperatura', sa.Float(), nullable=False),
        sa.Column('humedad', sa.Float(), nullable=False),
        sa.Column('ith', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_mediciones_created_at', 'mediciones', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_mediciones_created_at', table_name='mediciones')
    op.drop_table('mediciones')
    op.drop_index('ix_sensores_id_granja', table_name='sensores')
    op.drop_table('sensores')
