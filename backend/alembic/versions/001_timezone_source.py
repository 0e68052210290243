"""Timezone source tables — timezone_specs, source_metadata.

Revision ID: 001_timezone_source
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_timezone_source"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "timezone_specs",
        sa.Column("tzid", sa.String(255), primary_key=True),
        sa.Column("spec", sa.Text, nullable=False),
        sa.Column("last_modified", sa.String(32), nullable=True),
    )

    op.create_table(
        "source_metadata",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value", sa.Text, nullable=False, server_default=""),
    )


def downgrade() -> None:
    op.drop_table("source_metadata")
    op.drop_table("timezone_specs")
