from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.visitor_counter import VisitorCounter

router = APIRouter(prefix="/api/visitors", tags=["visitors"])
logger = logging.getLogger(__name__)


class VisitorCountOut(BaseModel):
    tenant_id: int
    count: int


def _current_count(db: Session, tenant_id: int) -> int:
    row = db.query(VisitorCounter.count).filter(VisitorCounter.tenant_id == tenant_id).first()
    return int(row[0]) if row else 0


def _increment_existing(db: Session, tenant_id: int) -> bool:
    updated = (
        db.query(VisitorCounter)
        .filter(VisitorCounter.tenant_id == tenant_id)
        .update({VisitorCounter.count: VisitorCounter.count + 1}, synchronize_session=False)
    )
    return bool(updated)


def increment_visitor_count(db: Session, tenant_id: int) -> int:
    """Incrementa no banco (``count = count + 1``), sem ler-modificar-escrever."""
    if not _increment_existing(db, tenant_id):
        db.add(VisitorCounter(tenant_id=tenant_id, count=1))
        try:
            db.commit()
            return 1
        except IntegrityError:
            db.rollback()
            # Outra requisição criou o contador primeiro.
            if not _increment_existing(db, tenant_id):
                raise

    db.commit()
    return _current_count(db, tenant_id)


@router.get("/{tenant_id}", response_model=VisitorCountOut)
def get_visitor_count(tenant_id: int, db: Session = Depends(get_db)):
    try:
        count = _current_count(db, tenant_id)
    except SQLAlchemyError as exc:
        logger.exception("[VISITORS] read failed tenant_id=%s", tenant_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível obter o contador de visitas",
        ) from exc
    return {"tenant_id": tenant_id, "count": count}


@router.post("/{tenant_id}", response_model=VisitorCountOut)
def register_visit(tenant_id: int, db: Session = Depends(get_db)):
    try:
        count = increment_visitor_count(db, tenant_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[VISITORS] increment failed tenant_id=%s", tenant_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível atualizar o contador de visitas",
        ) from exc
    return {"tenant_id": tenant_id, "count": count}
