from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import require_role
from app.models.admin_user import AdminUser
from app.models.company_info import CompanyInfo
from app.services.company_qr import ensure_company_qr_code

router = APIRouter(prefix="/api/company", tags=["company"])
logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("company_name", "company_address", "phone_number")


class CompanyInfoOut(BaseModel):
    id: int
    tenant_id: int
    company_name: str
    company_address: str
    phone_number: str
    email: Optional[str] = None
    website: Optional[str] = None
    working_hours: Optional[str] = None
    logo_url: Optional[str] = None
    qr_code: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CompanyInfoCreate(BaseModel):
    company_name: str = Field(..., min_length=1)
    company_address: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    working_hours: Optional[str] = None
    logo_url: Optional[str] = None

    @field_validator(*_REQUIRED_FIELDS)
    @classmethod
    def strip_required(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Campo obrigatório")
        return candidate

    @field_validator("website", "working_hours", "logo_url")
    @classmethod
    def strip_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.strip() or None


class CompanyInfoUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1)
    company_address: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    working_hours: Optional[str] = None
    logo_url: Optional[str] = None

    @field_validator(*_REQUIRED_FIELDS)
    @classmethod
    def strip_required(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        candidate = value.strip()
        if not candidate:
            raise ValueError("Campo obrigatório")
        return candidate

    @field_validator("website", "working_hours", "logo_url")
    @classmethod
    def strip_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.strip()


def company_to_dict(company: CompanyInfo) -> dict:
    return {
        "id": company.id,
        "tenant_id": company.tenant_id,
        "company_name": company.company_name,
        "company_address": company.company_address,
        "phone_number": company.phone_number,
        "email": company.email,
        "website": company.website,
        "working_hours": company.working_hours,
        "logo_url": company.logo_url,
        "qr_code": company.qr_code,
        "created_at": company.created_at.isoformat() if company.created_at else None,
        "updated_at": company.updated_at.isoformat() if company.updated_at else None,
    }


def _get_company(db: Session, tenant_id: int) -> CompanyInfo | None:
    return db.query(CompanyInfo).filter(CompanyInfo.tenant_id == tenant_id).first()


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[COMPANY_INFO] %s", detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


@router.get("/{tenant_id}", response_model=CompanyInfoOut)
def get_company_info(tenant_id: int, db: Session = Depends(get_db)):
    company = _get_company(db, tenant_id)
    if not company:
        raise HTTPException(status_code=404, detail="Informações da empresa não encontradas")
    company = ensure_company_qr_code(db, company)
    return company_to_dict(company)


@router.post("/{tenant_id}", response_model=CompanyInfoOut, status_code=status.HTTP_201_CREATED)
def create_company_info(
    tenant_id: int,
    payload: CompanyInfoCreate,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    if _get_company(db, tenant_id):
        raise HTTPException(status_code=409, detail="Informações da empresa já cadastradas")

    company = CompanyInfo(tenant_id=tenant_id, **payload.model_dump())
    db.add(company)
    _commit(db, "Não foi possível salvar as informações da empresa")
    db.refresh(company)
    company = ensure_company_qr_code(db, company)
    return company_to_dict(company)


@router.put("/{tenant_id}", response_model=CompanyInfoOut)
def update_company_info(
    tenant_id: int,
    payload: CompanyInfoUpdate,
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    company = _get_company(db, tenant_id)
    if not company:
        raise HTTPException(status_code=404, detail="Informações da empresa não encontradas")

    changes = payload.model_dump(exclude_none=True)
    if "website" in changes:
        new_website = changes["website"] or None
        if new_website != company.website:
            # QR code antigo aponta para o site anterior.
            company.qr_code = None
        changes["website"] = new_website
    for field, value in changes.items():
        setattr(company, field, value)

    _commit(db, "Não foi possível atualizar as informações da empresa")
    db.refresh(company)
    company = ensure_company_qr_code(db, company)
    return company_to_dict(company)
