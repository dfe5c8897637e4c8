"""Add generated_through to recurring patterns

Revision ID: 8b5e2d7f1c43
Revises: 4e1a7c9b2d30
Create Date: 2026-03-02
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8b5e2d7f1c43"
down_revision: Union[str, Sequence[str], None] = "4e1a7c9b2d30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column("recurring_patterns", sa.Column("generated_through", sa.Date(), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_column("recurring_patterns", "generated_through")
