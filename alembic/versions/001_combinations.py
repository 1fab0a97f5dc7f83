"""Combinations table — one row per recorded pair result.

Revision ID: 001_combinations
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_combinations"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "combinations",
        sa.Column("key", sa.String(512), primary_key=True),
        sa.Column("session_id", sa.String(200), nullable=False, server_default="default"),
        sa.Column("first", sa.String(200), nullable=False),
        sa.Column("second", sa.String(200), nullable=False),
        sa.Column("result", sa.String(200), nullable=False),
        sa.Column("emoji", sa.String(32), nullable=False),
        sa.Column("was_first_discovery", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("generated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("discovered_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_combinations_session_id", "combinations", ["session_id"])
    op.create_index("ix_combinations_result", "combinations", ["result"])


def downgrade() -> None:
    op.drop_index("ix_combinations_result", table_name="combinations")
    op.drop_index("ix_combinations_session_id", table_name="combinations")
    op.drop_table("combinations")
