from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0002_theme_settings"
down_revision = "0001_create_schema"
branch_labels = None
depends_on = None

_GROUP_COLUMNS = (
    "product_card",
    "product_grid",
    "components",
    "navigation",
    "animations",
    "breakpoints",
    "branding",
    "states",
    "social_media",
)


def upgrade() -> None:
    op.create_table(
        "theme_settings",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("colors", sa.JSON(), nullable=False),
        sa.Column("typography", sa.JSON(), nullable=False),
        sa.Column("layout", sa.JSON(), nullable=False),
        *[sa.Column(column, sa.JSON(), nullable=True) for column in _GROUP_COLUMNS],
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_theme_settings_tenant_id", "theme_settings", ["tenant_id"])
    op.create_index("ix_theme_settings_tenant_created", "theme_settings", ["tenant_id", "created_at"])
    # No máximo um tema ativo por tenant.
    op.create_index(
        "ux_theme_settings_tenant_active",
        "theme_settings",
        ["tenant_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )


def downgrade() -> None:
    op.drop_index("ux_theme_settings_tenant_active", table_name="theme_settings")
    op.drop_index("ix_theme_settings_tenant_created", table_name="theme_settings")
    op.drop_index("ix_theme_settings_tenant_id", table_name="theme_settings")
    op.drop_table("theme_settings")
