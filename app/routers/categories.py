from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import require_role
from app.models.admin_user import AdminUser
from app.models.category import Category
from app.models.product import Product
from app.services.catalog_order import CatalogOrderNotFound, apply_sort_order, parse_order_entries

router = APIRouter(prefix="/api/categories", tags=["categories"])


class CategoryOut(BaseModel):
    id: int
    tenant_id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Nome da categoria é obrigatório")
        return candidate


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        candidate = value.strip()
        if not candidate:
            raise ValueError("Nome da categoria é obrigatório")
        return candidate


def _category_to_dict(category: Category) -> dict:
    return {
        "id": category.id,
        "tenant_id": category.tenant_id,
        "name": category.name,
        "description": category.description,
        "image_url": category.image_url,
        "sort_order": category.sort_order,
        "created_at": category.created_at.isoformat() if category.created_at else None,
        "updated_at": category.updated_at.isoformat() if category.updated_at else None,
    }


def _get_tenant_category(db: Session, tenant_id: int, category_id: int) -> Category:
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.tenant_id == tenant_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=404, detail="Categoria não encontrada")
    return category


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


@router.get("", response_model=List[CategoryOut])
def list_categories(
    tenant_id: int = Query(...),
    db: Session = Depends(get_db),
):
    categories = (
        db.query(Category)
        .filter(Category.tenant_id == tenant_id)
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    return [_category_to_dict(category) for category in categories]


@router.post("/order")
def update_category_order(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    try:
        entries = parse_order_entries(payload.get("categories") if isinstance(payload, dict) else None)
        updated = apply_sort_order(db, Category, user.tenant_id, entries)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CatalogOrderNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoria não encontrada") from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível atualizar a ordem das categorias",
        ) from exc
    return {"ok": True, "updated": updated}


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Categoria não encontrada")
    return _category_to_dict(category)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    category = Category(
        tenant_id=user.tenant_id,
        name=payload.name,
        description=payload.description,
        image_url=payload.image_url,
        sort_order=payload.sort_order,
    )
    db.add(category)
    _commit(db, "Não foi possível criar a categoria")
    db.refresh(category)
    return _category_to_dict(category)


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    category = _get_tenant_category(db, user.tenant_id, category_id)

    if payload.name is not None:
        category.name = payload.name
    if payload.description is not None:
        category.description = payload.description
    if payload.image_url is not None:
        category.image_url = payload.image_url
    if payload.sort_order is not None:
        category.sort_order = payload.sort_order

    _commit(db, "Não foi possível atualizar a categoria")
    db.refresh(category)
    return _category_to_dict(category)


@router.delete("/{category_id}", response_model=CategoryOut)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    category = _get_tenant_category(db, user.tenant_id, category_id)

    in_use = db.query(Product.id).filter(Product.category_id == category.id).first()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Categoria possui produtos vinculados",
        )

    payload = _category_to_dict(category)
    db.delete(category)
    _commit(db, "Não foi possível remover a categoria")
    return payload
