"""add documents version

Revision ID: c58e1f4a9b72
Revises: a3c91e07d2b4
Create Date: 2026-10-24 14:03:27.551870

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c58e1f4a9b72'
down_revision: Union[str, None] = 'a3c91e07d2b4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column('documents', sa.Column('version', sa.Integer(), server_default='1', nullable=False))


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_column('documents', 'version')
