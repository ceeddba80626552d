from __future__ import annotations

import logging
from typing import Any, List

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)
CATALOG_ORDER_PREFIX = "[CATALOG_ORDER]"


class OrderEntry(BaseModel):
    id: int
    order_number: int


class CatalogOrderNotFound(LookupError):
    def __init__(self, missing_ids: List[int]) -> None:
        super().__init__(f"IDs não encontrados: {','.join(str(item) for item in missing_ids)}")
        self.missing_ids = missing_ids


def parse_order_entries(raw: Any) -> List[OrderEntry]:
    """Valida ``[{id, order_number}, ...]`` vindo do drag-and-drop do painel."""
    if not isinstance(raw, list) or not raw:
        raise ValueError("Formato de ordenação inválido")
    try:
        entries = [OrderEntry.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise ValueError("Cada item precisa de id e order_number numéricos") from exc

    ids = [entry.id for entry in entries]
    if len(set(ids)) != len(ids):
        raise ValueError("IDs repetidos na ordenação")
    return entries


def apply_sort_order(db: Session, model, tenant_id: int, entries: List[OrderEntry]) -> int:
    """Grava ``sort_order`` de todos os itens numa única transação.

    Todos os ids precisam pertencer ao tenant; senão nada é alterado.
    """
    ids = [entry.id for entry in entries]
    rows = (
        db.query(model)
        .filter(model.tenant_id == tenant_id, model.id.in_(ids))
        .with_for_update()
        .all()
    )
    by_id = {row.id: row for row in rows}
    missing = [item_id for item_id in ids if item_id not in by_id]
    if missing:
        db.rollback()
        raise CatalogOrderNotFound(missing)

    for entry in entries:
        by_id[entry.id].sort_order = entry.order_number

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "%s failed table=%s tenant_id=%s",
            CATALOG_ORDER_PREFIX,
            model.__tablename__,
            tenant_id,
        )
        raise

    logger.info(
        "%s updated table=%s tenant_id=%s count=%s",
        CATALOG_ORDER_PREFIX,
        model.__tablename__,
        tenant_id,
        len(entries),
    )
    return len(entries)
