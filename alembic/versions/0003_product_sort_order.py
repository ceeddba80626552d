from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0003_product_sort_order"
down_revision = "0002_theme_settings"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("products") as batch_op:
        batch_op.add_column(sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"))


def downgrade() -> None:
    with op.batch_alter_table("products") as batch_op:
        batch_op.drop_column("sort_order")
