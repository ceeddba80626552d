from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from app.core.config import DEV_BOOTSTRAP_ALLOW, IS_DEV
from app.core.database import engine, get_db
from app.services.admin_bootstrap import (
    BOOTSTRAP_PREFIX,
    ensure_required_tables,
    get_or_create_tenant,
    upsert_admin_user,
)

router = APIRouter(prefix="/api/admin/bootstrap", tags=["admin-bootstrap"])
logger = logging.getLogger(__name__)


class AdminBootstrapPayload(BaseModel):
    tenant_slug: str = Field(..., min_length=1)
    tenant_name: str | None = None
    email: EmailStr
    password: str | None = Field(None, min_length=1)
    name: str = Field(..., min_length=1)
    role: Literal["admin", "owner"] = "admin"


class AdminBootstrapResponse(BaseModel):
    status: str
    created: bool
    tenant_created: bool
    tenant_id: int
    tenant_slug: str
    email: EmailStr
    name: str
    role: str
    active: bool


def _ensure_bootstrap_allowed() -> None:
    if not IS_DEV or not DEV_BOOTSTRAP_ALLOW:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


@router.post("", response_model=AdminBootstrapResponse)
def bootstrap_admin(
    payload: AdminBootstrapPayload,
    db: Session = Depends(get_db),
):
    _ensure_bootstrap_allowed()
    try:
        ensure_required_tables(engine)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        tenant, tenant_created = get_or_create_tenant(
            db,
            slug=payload.tenant_slug,
            name=payload.tenant_name,
        )
        admin, created = upsert_admin_user(
            db,
            tenant_id=tenant.id,
            email=payload.email,
            name=payload.name,
            role=payload.role,
            password=payload.password,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info(
        "%s via api %s id=%s tenant_id=%s",
        BOOTSTRAP_PREFIX,
        "created" if created else "updated",
        admin.id,
        tenant.id,
    )
    return AdminBootstrapResponse(
        status="created" if created else "updated",
        created=created,
        tenant_created=tenant_created,
        tenant_id=tenant.id,
        tenant_slug=tenant.slug,
        email=admin.email,
        name=admin.name,
        role=admin.role,
        active=admin.active,
    )
