"""Create product chart and purchase catalog tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

CATALOG_TABLES = ("product_charts", "product_purchases")


def upgrade() -> None:
    for table_name in CATALOG_TABLES:
        op.create_table(
            table_name,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("code", sa.Text(), nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("code", name=f"uq_{table_name}_code"),
        )


def downgrade() -> None:
    for table_name in reversed(CATALOG_TABLES):
        op.drop_table(table_name)
