from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.category import Category
from app.models.company_info import CompanyInfo
from app.models.product import Product
from app.models.tenant import Tenant
from app.schemas.theme import ResolvedThemeOut
from app.services.theme_tokens import get_resolved_theme
from utils.slug import normalize_slug

logger = logging.getLogger(__name__)
PUBLIC_MENU_PREFIX = "[PUBLIC_MENU]"

router = APIRouter(prefix="/public", tags=["public-storefront"])


class PublicTenantOut(BaseModel):
    id: int
    slug: str
    name: str


class PublicProductOut(BaseModel):
    id: int
    category_id: Optional[int]
    name: str
    description: Optional[str]
    price_cents: int
    images: list[str]
    sort_order: int


class PublicCategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    image_url: Optional[str]
    sort_order: int
    products: list[PublicProductOut]


class PublicMenuOut(BaseModel):
    tenant: PublicTenantOut
    company: Optional[Dict[str, Any]]
    theme: ResolvedThemeOut
    categories: list[PublicCategoryOut]
    products_without_category: list[PublicProductOut]


def _get_tenant_by_slug(db: Session, slug: str) -> Tenant:
    normalized = normalize_slug(slug)
    tenant = (
        db.query(Tenant)
        .filter(Tenant.slug == normalized, Tenant.is_active.is_(True))
        .first()
        if normalized
        else None
    )
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant não encontrado")
    return tenant


def _public_product(product: Product) -> dict:
    return {
        "id": product.id,
        "category_id": product.category_id,
        "name": product.name,
        "description": product.description,
        "price_cents": product.price_cents,
        "images": list(product.images or []),
        "sort_order": product.sort_order or 0,
    }


def _public_company(company: CompanyInfo | None) -> dict | None:
    if company is None:
        return None
    return {
        "company_name": company.company_name,
        "company_address": company.company_address,
        "phone_number": company.phone_number,
        "email": company.email,
        "website": company.website,
        "working_hours": company.working_hours,
        "logo_url": company.logo_url,
        "qr_code": company.qr_code,
    }


@router.get("/{slug}/menu", response_model=PublicMenuOut)
def get_public_menu(slug: str, db: Session = Depends(get_db)):
    tenant = _get_tenant_by_slug(db, slug)

    categories = (
        db.query(Category)
        .filter(Category.tenant_id == tenant.id)
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    products = (
        db.query(Product)
        .filter(Product.tenant_id == tenant.id)
        .order_by(Product.sort_order.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )

    grouped: dict[int, list[dict]] = {category.id: [] for category in categories}
    without_category: list[dict] = []
    for product in products:
        if product.category_id in grouped:
            grouped[product.category_id].append(_public_product(product))
        else:
            without_category.append(_public_product(product))

    company = db.query(CompanyInfo).filter(CompanyInfo.tenant_id == tenant.id).first()
    resolved = get_resolved_theme(db, tenant.id)
    logger.info(
        "%s served tenant_id=%s categories=%s products=%s theme_source=%s",
        PUBLIC_MENU_PREFIX,
        tenant.id,
        len(categories),
        len(products),
        resolved.source,
    )

    return {
        "tenant": {"id": tenant.id, "slug": tenant.slug, "name": tenant.name},
        "company": _public_company(company),
        "theme": {
            "tenant_id": resolved.tenant_id,
            "theme_id": resolved.theme_id,
            "theme_name": resolved.theme_name,
            "source": resolved.source,
            "version": resolved.version,
            "tokens": dict(resolved.tokens),
        },
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "description": category.description,
                "image_url": category.image_url,
                "sort_order": category.sort_order,
                "products": grouped[category.id],
            }
            for category in categories
        ],
        "products_without_category": without_category,
    }
