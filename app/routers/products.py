from __future__ import annotations

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

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductCategoryOut(BaseModel):
    id: int
    name: str


class ProductOut(BaseModel):
    id: int
    tenant_id: int
    category_id: Optional[int] = None
    category: Optional[ProductCategoryOut] = None
    name: str
    description: Optional[str] = None
    price_cents: int
    images: List[str]
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def _clean_images(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    return [url.strip() for url in value if isinstance(url, str) and url.strip()]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price_cents: int = Field(..., ge=0)
    category_id: Optional[int] = None
    images: List[str] = Field(default_factory=list)
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Nome do produto é obrigatório")
        return candidate

    @field_validator("images")
    @classmethod
    def clean_images(cls, value: List[str]) -> List[str]:
        return _clean_images(value) or []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    images: Optional[List[str]] = None
    sort_order: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        candidate = value.strip()
        if not candidate:
            raise ValueError("Nome do produto é obrigatório")
        return candidate

    @field_validator("images")
    @classmethod
    def clean_images(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_images(value)


def _product_to_dict(product: Product) -> dict:
    category = product.category
    return {
        "id": product.id,
        "tenant_id": product.tenant_id,
        "category_id": product.category_id,
        "category": {"id": category.id, "name": category.name} if category else None,
        "name": product.name,
        "description": product.description,
        "price_cents": product.price_cents,
        "images": list(product.images or []),
        "sort_order": product.sort_order or 0,
        "created_at": product.created_at.isoformat() if product.created_at else None,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
    }


def _validate_category_id(db: Session, tenant_id: int, category_id: Optional[int]) -> None:
    if category_id is None:
        return
    category = (
        db.query(Category)
        .filter(Category.tenant_id == tenant_id, Category.id == category_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=400, detail="Categoria inválida para o tenant")


def _get_tenant_product(db: Session, tenant_id: int, product_id: int) -> Product:
    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.tenant_id == tenant_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return product


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


@router.get("", response_model=List[ProductOut])
def list_products(
    tenant_id: int = Query(...),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.tenant_id == tenant_id)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    products = query.order_by(
        Product.sort_order.asc(), Product.created_at.desc(), Product.id.desc()
    ).all()
    return [_product_to_dict(product) for product in products]


@router.post("/order")
def update_product_order(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    try:
        entries = parse_order_entries(payload.get("products") if isinstance(payload, dict) else None)
        updated = apply_sort_order(db, Product, user.tenant_id, entries)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CatalogOrderNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado") from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível atualizar a ordem dos produtos",
        ) from exc
    return {"ok": True, "updated": updated}


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return _product_to_dict(product)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    _validate_category_id(db, user.tenant_id, payload.category_id)
    product = Product(
        tenant_id=user.tenant_id,
        category_id=payload.category_id,
        name=payload.name,
        description=payload.description,
        price_cents=payload.price_cents,
        images=payload.images,
        sort_order=payload.sort_order,
    )
    db.add(product)
    _commit(db, "Não foi possível criar o produto")
    db.refresh(product)
    return _product_to_dict(product)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    product = _get_tenant_product(db, user.tenant_id, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "category_id" in changes:
        _validate_category_id(db, user.tenant_id, payload.category_id)
        product.category_id = payload.category_id
    if payload.name is not None:
        product.name = payload.name
    if payload.description is not None:
        product.description = payload.description
    if payload.price_cents is not None:
        product.price_cents = payload.price_cents
    if payload.images is not None:
        product.images = payload.images
    if payload.sort_order is not None:
        product.sort_order = payload.sort_order

    _commit(db, "Não foi possível atualizar o produto")
    db.refresh(product)
    return _product_to_dict(product)


@router.delete("/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(require_role(["admin"])),
):
    product = _get_tenant_product(db, user.tenant_id, product_id)
    payload = _product_to_dict(product)
    db.delete(product)
    _commit(db, "Não foi possível remover o produto")
    return payload
