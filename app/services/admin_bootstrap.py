from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.models.admin_user import AdminUser
from app.models.tenant import Tenant
from app.services.passwords import hash_password, looks_hashed
from utils.slug import normalize_slug

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"
REQUIRED_TABLES = ("tenants", "admin_users", "admin_login_attempts", "theme_settings")


def ensure_required_tables(engine: Engine) -> None:
    inspector = inspect(engine)
    missing = [table for table in REQUIRED_TABLES if not inspector.has_table(table)]
    if missing:
        logger.error("%s tables missing / migrations not applied missing=%s", BOOTSTRAP_PREFIX, ",".join(missing))
        raise RuntimeError("Tabelas ausentes. Rode `alembic upgrade head` primeiro.")


def get_or_create_tenant(db: Session, *, slug: str, name: str | None = None) -> tuple[Tenant, bool]:
    normalized = normalize_slug(slug)
    if not normalized:
        raise ValueError("Slug do tenant inválido.")

    tenant = db.query(Tenant).filter(Tenant.slug == normalized).first()
    if tenant:
        return tenant, False

    tenant = Tenant(slug=normalized, name=(name or "").strip() or normalized)
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    logger.info("%s tenant created id=%s slug=%s", BOOTSTRAP_PREFIX, tenant.id, tenant.slug)
    return tenant, True


def upsert_admin_user(
    db: Session,
    *,
    tenant_id: int,
    email: str,
    name: str,
    role: str,
    password: str | None,
) -> tuple[AdminUser, bool]:
    email = email.strip().lower()
    password_hash = None
    if password:
        password_hash = password if looks_hashed(password) else hash_password(password)

    existing = (
        db.query(AdminUser)
        .filter(AdminUser.tenant_id == tenant_id, AdminUser.email == email)
        .first()
    )
    if existing:
        existing.name = name
        existing.role = role
        existing.active = True
        if password_hash:
            existing.password_hash = password_hash
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password_hash:
        raise ValueError("Senha é obrigatória para criar um novo admin.")

    admin = AdminUser(
        tenant_id=tenant_id,
        email=email,
        name=name,
        password_hash=password_hash,
        role=role,
        active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin, True
