from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import require_role
from app.models.admin_user import AdminUser
from app.models.theme_settings import THEME_GROUPS, ThemeSettings
from app.schemas.theme import ResolvedThemeOut, ThemeCreatePayload, ThemeSettingsOut, ThemeUpdatePayload
from app.services.theme_activation import theme_activation_service
from app.services.theme_errors import (
    ThemeError,
    ThemeNotFoundError,
    ThemeStorageError,
    ThemeValidationError,
)
from app.services.theme_store import theme_store
from app.services.theme_tokens import get_resolved_theme

router = APIRouter(prefix="/api/themes", tags=["themes"])
logger = logging.getLogger(__name__)


def _theme_to_dict(theme: ThemeSettings) -> dict:
    payload = {
        "id": theme.id,
        "tenant_id": theme.tenant_id,
        "name": theme.name,
        "is_active": bool(theme.is_active),
        "created_at": theme.created_at.isoformat() if theme.created_at else None,
        "updated_at": theme.updated_at.isoformat() if theme.updated_at else None,
    }
    for group in THEME_GROUPS:
        payload[group] = getattr(theme, group)
    return payload


def _to_http_exception(exc: ThemeError) -> HTTPException:
    if isinstance(exc, ThemeValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, ThemeNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ThemeStorageError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível processar o tema. Tente novamente.",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro inesperado")


@router.get("/{tenant_id}", response_model=ThemeSettingsOut)
def get_current_theme(tenant_id: int, db: Session = Depends(get_db)):
    try:
        theme = theme_activation_service.ensure_consistent(db, tenant_id)
    except ThemeError as exc:
        raise _to_http_exception(exc) from exc
    if theme is None:
        raise _to_http_exception(ThemeNotFoundError(tenant_id))
    return _theme_to_dict(theme)


@router.get("/{tenant_id}/list", response_model=List[ThemeSettingsOut])
def list_themes(
    tenant_id: int,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    return [_theme_to_dict(theme) for theme in theme_store.list_by_tenant(db, tenant_id)]


@router.get("/{tenant_id}/resolved", response_model=ResolvedThemeOut)
def get_resolved_theme_tokens(
    tenant_id: int,
    response: Response,
    if_none_match: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    resolved = get_resolved_theme(db, tenant_id)
    etag = f'"{resolved.version}"'
    if if_none_match and if_none_match.strip() == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})

    response.headers["ETag"] = etag
    response.headers["Cache-Control"] = "no-cache"
    return {
        "tenant_id": resolved.tenant_id,
        "theme_id": resolved.theme_id,
        "theme_name": resolved.theme_name,
        "source": resolved.source,
        "version": resolved.version,
        "tokens": dict(resolved.tokens),
    }


@router.post("/{tenant_id}", response_model=ThemeSettingsOut, status_code=status.HTTP_201_CREATED)
def create_theme(
    tenant_id: int,
    payload: ThemeCreatePayload,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    try:
        theme = theme_store.create(db, tenant_id, payload.model_dump(exclude_none=True))
    except ThemeError as exc:
        raise _to_http_exception(exc) from exc
    return _theme_to_dict(theme)


@router.put("/{tenant_id}", response_model=ThemeSettingsOut)
def update_theme(
    tenant_id: int,
    payload: ThemeUpdatePayload,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    theme_id = (payload.id or "").strip()
    if not theme_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID do tema é obrigatório")

    logger.info(
        "[THEME_SETTINGS] update tenant_id=%s groups=%s",
        tenant_id,
        ",".join(sorted(payload.model_dump(exclude_none=True, exclude={"id"}).keys())),
        extra={"theme_id": theme_id},
    )
    try:
        theme = theme_store.update(
            db,
            theme_id,
            payload.model_dump(exclude_none=True, exclude={"id"}),
            tenant_id=tenant_id,
        )
    except ThemeError as exc:
        raise _to_http_exception(exc) from exc
    return _theme_to_dict(theme)


@router.put("/{tenant_id}/active/{theme_id}", response_model=ThemeSettingsOut)
def activate_theme(
    tenant_id: int,
    theme_id: str,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    try:
        theme = theme_activation_service.activate(db, tenant_id, theme_id)
    except ThemeError as exc:
        raise _to_http_exception(exc) from exc
    return _theme_to_dict(theme)
