from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_current_admin_user
from app.models.admin_user import AdminUser
from app.models.tenant import Tenant
from app.services.admin_auth import (
    build_admin_session_cookie_options,
    clear_admin_session_cookie,
    create_admin_session,
    set_admin_session_cookie,
)
from app.services.admin_login_attempts import (
    clear_login_attempts,
    is_login_locked,
    register_failed_login,
)
from app.services.passwords import verify_password
from utils.slug import normalize_slug

router = APIRouter(prefix="/api/admin/auth", tags=["admin-auth"])
logger = logging.getLogger(__name__)


class AdminLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminUserRead(BaseModel):
    id: int
    tenant_id: int
    tenant_slug: str | None = None
    email: EmailStr
    name: str
    role: str
    active: bool


def resolve_tenant_from_slug(db: Session, slug: str) -> Tenant | None:
    normalized_slug = normalize_slug(slug or "")
    if not normalized_slug:
        return None
    return db.query(Tenant).filter(Tenant.slug == normalized_slug).first()


def resolve_admin_from_email(db: Session, email: str, password: str) -> AdminUser | None:
    """Sem tenant explícito, o login só vale se a senha casar com exatamente um admin."""
    users = (
        db.query(AdminUser)
        .filter(func.lower(AdminUser.email) == email, AdminUser.active.is_(True))
        .all()
    )
    matched = [user for user in users if verify_password(password, user.password_hash)]
    if len(matched) != 1:
        return None
    return matched[0]


def _user_to_dict(db: Session, user: AdminUser) -> dict:
    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
    return {
        "id": user.id,
        "tenant_id": user.tenant_id,
        "tenant_slug": tenant.slug if tenant else None,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "active": user.active,
    }


def _locked_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Muitas tentativas. Tente novamente em alguns minutos.",
    )


@router.post("/login", response_model=AdminUserRead)
def admin_login(
    payload: AdminLoginPayload,
    response: Response,
    request: Request,
    db: Session = Depends(get_db),
):
    normalized_email = payload.email.strip().lower()
    tenant = resolve_tenant_from_slug(db, request.headers.get("x-tenant-slug") or "")

    if tenant is None:
        user = resolve_admin_from_email(db, normalized_email, payload.password)
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")
        if is_login_locked(db, user.tenant_id, normalized_email):
            raise _locked_exception()
    else:
        if is_login_locked(db, tenant.id, normalized_email):
            raise _locked_exception()

        user = (
            db.query(AdminUser)
            .filter(
                AdminUser.tenant_id == tenant.id,
                func.lower(AdminUser.email) == normalized_email,
            )
            .first()
        )
        if not user or not user.active or not verify_password(payload.password, user.password_hash):
            locked_after = register_failed_login(db, tenant.id, normalized_email)
            db.commit()
            logger.warning("[ADMIN_AUTH] login failed tenant_id=%s locked=%s", tenant.id, locked_after)
            if locked_after:
                raise _locked_exception()
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")

    token = create_admin_session(user_id=user.id, tenant_id=user.tenant_id, role=user.role)
    cookie_options = build_admin_session_cookie_options(request)
    logger.info(
        "[AUTH_COOKIE] setting admin_session domain=%s samesite=%s secure=%s",
        cookie_options.get("domain") or "host-only",
        cookie_options["samesite"],
        cookie_options["secure"],
    )
    set_admin_session_cookie(response, token, request)

    clear_login_attempts(db, user.tenant_id, normalized_email)
    user.last_login_at = datetime.utcnow()
    db.commit()

    return _user_to_dict(db, user)


@router.post("/logout")
def admin_logout(response: Response, request: Request):
    clear_admin_session_cookie(response, request)
    return {"ok": True}


@router.get("/me", response_model=AdminUserRead)
def admin_me(
    user: AdminUser = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
):
    return _user_to_dict(db, user)
