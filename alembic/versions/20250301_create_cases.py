"""Create cases table

Revision ID: 001_cases
Revises:
Create Date: 2025-03-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_cases'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create cases table with all columns from CaseDB model."""
    op.create_table(
        'cases',
        sa.Column('case_id', sa.String(length=32), nullable=False),
        sa.Column('victim', sa.JSON(), nullable=False),
        sa.Column('victim_name', sa.String(length=200), nullable=False),
        sa.Column('victim_contact', sa.String(length=200), nullable=False),
        sa.Column('case_sdm', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False),
        sa.Column('stage', sa.Integer(), nullable=False),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('remarks', sa.JSON(), nullable=False),
        sa.Column('payment', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('case_id')
    )

    # Create indexes for filtering, queues and search
    op.create_index(op.f('ix_cases_case_id'), 'cases', ['case_id'], unique=False)
    op.create_index(op.f('ix_cases_victim_name'), 'cases', ['victim_name'], unique=False)
    op.create_index(op.f('ix_cases_victim_contact'), 'cases', ['victim_contact'], unique=False)
    op.create_index(op.f('ix_cases_case_sdm'), 'cases', ['case_sdm'], unique=False)
    op.create_index(op.f('ix_cases_status'), 'cases', ['status'], unique=False)
    op.create_index(op.f('ix_cases_stage'), 'cases', ['stage'], unique=False)
    op.create_index(op.f('ix_cases_created_at'), 'cases', ['created_at'], unique=False)


def downgrade() -> None:
    """Drop cases table and all indexes."""
    op.drop_index(op.f('ix_cases_created_at'), table_name='cases')
    op.drop_index(op.f('ix_cases_stage'), table_name='cases')
    op.drop_index(op.f('ix_cases_status'), table_name='cases')
    op.drop_index(op.f('ix_cases_case_sdm'), table_name='cases')
    op.drop_index(op.f('ix_cases_victim_contact'), table_name='cases')
    op.drop_index(op.f('ix_cases_victim_name'), table_name='cases')
    op.drop_index(op.f('ix_cases_case_id'), table_name='cases')
    op.drop_table('cases')
