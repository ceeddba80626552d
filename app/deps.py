# app/deps.py
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.request_context import set_request_identity
from app.models.admin_user import AdminUser
from app.services.admin_auth import ADMIN_SESSION_COOKIE, decode_admin_session

logger = logging.getLogger(__name__)


def _normalize_admin_role(role: str | None) -> str:
    return (role or "").strip().lower()


def _resolve_tenant_id(request: Request, tenant_id: int | None) -> int | None:
    if tenant_id is not None:
        return tenant_id

    path_tenant = request.path_params.get("tenant_id")
    if path_tenant is not None:
        try:
            return int(path_tenant)
        except (TypeError, ValueError):
            return None

    query_tenant = request.query_params.get("tenant_id")
    if query_tenant is not None:
        try:
            return int(query_tenant)
        except (TypeError, ValueError):
            return None

    return None


def _log_access_denied(
    *,
    reason: str,
    user: AdminUser,
    tenant_id: int | None,
    request: Request,
) -> None:
    endpoint = f"{request.method} {request.url.path}"
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s user_tenant=%s tenant_id=%s endpoint=%s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        getattr(user, "tenant_id", None),
        tenant_id,
        endpoint,
    )


def get_current_admin_user(
    request: Request,
    db: Session = Depends(get_db),
) -> AdminUser:
    token = request.cookies.get(ADMIN_SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin não autenticado")

    payload = decode_admin_session(token)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada")

    user_id = payload.get("user_id")
    tenant_id = payload.get("tenant_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")

    user = (
        db.query(AdminUser)
        .filter(AdminUser.id == int(user_id), AdminUser.active.is_(True))
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin não encontrado")

    if tenant_id is not None and int(user.tenant_id) != int(tenant_id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")

    request.state.user = user
    set_request_identity(tenant_id=str(user.tenant_id), user_id=str(user.id))
    return user


def require_admin_user(
    request: Request,
    db: Session = Depends(get_db),
) -> AdminUser:
    return get_current_admin_user(request, db)


def require_role(roles: Iterable[str]):
    """Exige sessão admin com um dos papéis e, havendo ``tenant_id`` na rota, o mesmo tenant."""
    allowed = {role.strip().lower() for role in roles}
    if "admin" in allowed or "owner" in allowed:
        allowed.update({"admin", "owner"})

    def _dependency(
        request: Request,
        user: AdminUser = Depends(require_admin_user),
    ) -> AdminUser:
        resolved_tenant_id = _resolve_tenant_id(request, None)
        if resolved_tenant_id is not None and int(user.tenant_id) != int(resolved_tenant_id):
            _log_access_denied(
                reason="tenant_mismatch",
                user=user,
                tenant_id=resolved_tenant_id,
                request=request,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant não autorizado")
        if _normalize_admin_role(user.role) not in allowed:
            _log_access_denied(
                reason="role_denied",
                user=user,
                tenant_id=resolved_tenant_id,
                request=request,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissão insuficiente")
        return user

    return _dependency
