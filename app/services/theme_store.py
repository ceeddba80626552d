from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.theme_settings import THEME_GROUPS, ThemeSettings, utcnow
from app.schemas.theme import DEFAULT_THEME_GROUPS
from app.services.event_bus import THEME_CREATED, THEME_UPDATED, event_bus
from app.services.theme_errors import ThemeNotFoundError, ThemeStorageError, ThemeValidationError

logger = logging.getLogger(__name__)
THEME_STORE_PREFIX = "[THEME_STORE]"
THEME_NAME_MAX_LENGTH = 120


def _is_leaf(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def apply_group_patch(current: Any, patch: Any, schema: Mapping[str, Any]) -> dict[str, Any]:
    """Aplica um patch parcial sobre um grupo de tokens.

    Só chaves presentes em ``schema`` são aceitas; subgrupos (ex.: ``colors.buttons``)
    são mesclados chave a chave. Valores com tipo inesperado são ignorados.
    Sempre devolve um dict novo para que o SQLAlchemy detecte a mudança na coluna JSON.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(current)) if isinstance(current, Mapping) else {}
    if not isinstance(patch, Mapping):
        return merged

    for key, value in patch.items():
        expected = schema.get(key)
        if expected is None:
            continue
        if isinstance(expected, Mapping):
            if isinstance(value, Mapping):
                merged[key] = apply_group_patch(merged.get(key), value, expected)
            continue
        if _is_leaf(value):
            merged[key] = value
    return merged


def _validate_name(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ThemeValidationError("Nome do tema é obrigatório", field="name")
    name = raw.strip()
    if len(name) > THEME_NAME_MAX_LENGTH:
        raise ThemeValidationError("Nome do tema muito longo", field="name")
    return name


class ThemeStore:
    def list_by_tenant(self, db: Session, tenant_id: int) -> list[ThemeSettings]:
        return (
            db.query(ThemeSettings)
            .filter(ThemeSettings.tenant_id == tenant_id)
            .order_by(ThemeSettings.created_at.asc(), ThemeSettings.id.asc())
            .all()
        )

    def get(self, db: Session, tenant_id: int) -> ThemeSettings:
        """Tema ativo do tenant; sem ativo, o criado mais recentemente."""
        active = (
            db.query(ThemeSettings)
            .filter(ThemeSettings.tenant_id == tenant_id, ThemeSettings.is_active.is_(True))
            .order_by(ThemeSettings.updated_at.desc(), ThemeSettings.id.desc())
            .first()
        )
        if active is not None:
            return active

        latest = (
            db.query(ThemeSettings)
            .filter(ThemeSettings.tenant_id == tenant_id)
            .order_by(ThemeSettings.created_at.desc(), ThemeSettings.id.desc())
            .first()
        )
        if latest is None:
            raise ThemeNotFoundError(tenant_id)
        return latest

    def get_by_id(self, db: Session, tenant_id: int | None, theme_id: str) -> ThemeSettings:
        query = db.query(ThemeSettings).filter(ThemeSettings.id == theme_id)
        if tenant_id is not None:
            query = query.filter(ThemeSettings.tenant_id == tenant_id)
        theme = query.first()
        if theme is None:
            raise ThemeNotFoundError(tenant_id, theme_id)
        return theme

    def create(self, db: Session, tenant_id: int, data: Mapping[str, Any]) -> ThemeSettings:
        name = _validate_name(data.get("name"))
        is_first = (
            db.query(ThemeSettings.id).filter(ThemeSettings.tenant_id == tenant_id).first() is None
        )

        values = {
            group: apply_group_patch(DEFAULT_THEME_GROUPS[group], data.get(group), DEFAULT_THEME_GROUPS[group])
            for group in THEME_GROUPS
        }
        theme = ThemeSettings(tenant_id=tenant_id, name=name, is_active=is_first, **values)
        db.add(theme)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not is_first:
                logger.exception("%s create failed tenant_id=%s", THEME_STORE_PREFIX, tenant_id)
                raise ThemeStorageError("Falha ao criar tema") from exc
            # Outra requisição criou o primeiro tema ao mesmo tempo; este nasce inativo.
            logger.warning(
                "%s concurrent first theme tenant_id=%s; creating inactive",
                THEME_STORE_PREFIX,
                tenant_id,
            )
            theme = ThemeSettings(tenant_id=tenant_id, name=name, is_active=False, **values)
            db.add(theme)
            self._commit(db, "create", tenant_id)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s create failed tenant_id=%s", THEME_STORE_PREFIX, tenant_id)
            raise ThemeStorageError("Falha ao criar tema") from exc

        db.refresh(theme)
        logger.info(
            "%s created tenant_id=%s theme_id=%s active=%s",
            THEME_STORE_PREFIX,
            tenant_id,
            theme.id,
            theme.is_active,
            extra={"theme_id": theme.id},
        )
        event_bus.emit(THEME_CREATED, {"tenant_id": tenant_id, "theme_id": theme.id})
        return theme

    def update(
        self,
        db: Session,
        theme_id: str,
        partial: Mapping[str, Any],
        tenant_id: int | None = None,
    ) -> ThemeSettings:
        theme = self.get_by_id(db, tenant_id, theme_id)

        if partial.get("name") is not None:
            theme.name = _validate_name(partial["name"])

        for group in THEME_GROUPS:
            patch = partial.get(group)
            if patch is None:
                continue
            current = getattr(theme, group)
            if current is None:
                current = DEFAULT_THEME_GROUPS[group]
            setattr(theme, group, apply_group_patch(current, patch, DEFAULT_THEME_GROUPS[group]))

        theme.updated_at = utcnow()
        self._commit(db, "update", theme.tenant_id)
        db.refresh(theme)
        event_bus.emit(THEME_UPDATED, {"tenant_id": theme.tenant_id, "theme_id": theme.id})
        return theme

    @staticmethod
    def _commit(db: Session, operation: str, tenant_id: int) -> None:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s %s failed tenant_id=%s", THEME_STORE_PREFIX, operation, tenant_id)
            raise ThemeStorageError("Falha ao salvar tema") from exc


theme_store = ThemeStore()
