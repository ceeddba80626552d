from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, func, text

from app.core.database import Base

# Grupos de tokens persistidos como JSON, na ordem em que aparecem no painel.
THEME_GROUPS = (
    "colors",
    "typography",
    "layout",
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


def _new_theme_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ThemeSettings(Base):
    __tablename__ = "theme_settings"
    __table_args__ = (
        Index("ix_theme_settings_tenant_created", "tenant_id", "created_at"),
        # No máximo um tema ativo por tenant.
        Index(
            "ux_theme_settings_tenant_active",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id = Column(String(32), primary_key=True, default=_new_theme_id)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    is_active = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    colors = Column(JSON, nullable=False, default=dict)
    typography = Column(JSON, nullable=False, default=dict)
    layout = Column(JSON, nullable=False, default=dict)
    product_card = Column(JSON, nullable=True)
    product_grid = Column(JSON, nullable=True)
    components = Column(JSON, nullable=True)
    navigation = Column(JSON, nullable=True)
    animations = Column(JSON, nullable=True)
    breakpoints = Column(JSON, nullable=True)
    branding = Column(JSON, nullable=True)
    states = Column(JSON, nullable=True)
    social_media = Column(JSON, nullable=True)

    # Precisão de microssegundos: o desempate "mais recente" depende disso.
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
