from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import DefaultDict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.theme_settings import ThemeSettings, utcnow
from app.services.event_bus import THEME_ACTIVATED, event_bus
from app.services.theme_errors import ThemeConflictError, ThemeNotFoundError, ThemeStorageError
from app.services.theme_store import ThemeStore, theme_store

logger = logging.getLogger(__name__)
THEME_ACTIVATION_PREFIX = "[THEME_ACTIVATION]"


class ThemeActivationService:
    """Garante no máximo um tema ativo por tenant.

    Ativações do mesmo tenant são serializadas por um lock em processo e
    executadas numa única transação com lock de linha (``SELECT ... FOR UPDATE``)
    quando o banco suporta. O índice único parcial em ``is_active`` barra o
    restante entre processos.
    """

    def __init__(self, store: ThemeStore | None = None) -> None:
        self._store = store or theme_store
        self._locks: DefaultDict[int, Lock] = defaultdict(Lock)
        self._locks_guard = Lock()

    def _tenant_lock(self, tenant_id: int) -> Lock:
        with self._locks_guard:
            return self._locks[int(tenant_id)]

    def activate(self, db: Session, tenant_id: int, theme_id: str) -> ThemeSettings:
        with self._tenant_lock(tenant_id):
            try:
                rows = (
                    db.query(ThemeSettings)
                    .filter(ThemeSettings.tenant_id == tenant_id)
                    .with_for_update()
                    .all()
                )
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("%s lock failed tenant_id=%s", THEME_ACTIVATION_PREFIX, tenant_id)
                raise ThemeStorageError("Falha ao ativar tema") from exc

            target = next((row for row in rows if row.id == theme_id), None)
            if target is None:
                db.rollback()
                raise ThemeNotFoundError(tenant_id, theme_id)

            now = utcnow()
            try:
                (
                    db.query(ThemeSettings)
                    .filter(
                        ThemeSettings.tenant_id == tenant_id,
                        ThemeSettings.is_active.is_(True),
                        ThemeSettings.id != theme_id,
                    )
                    .update({"is_active": False, "updated_at": now}, synchronize_session=False)
                )
                (
                    db.query(ThemeSettings)
                    .filter(ThemeSettings.id == theme_id, ThemeSettings.tenant_id == tenant_id)
                    .update({"is_active": True, "updated_at": now}, synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception(
                    "%s switch failed tenant_id=%s theme_id=%s",
                    THEME_ACTIVATION_PREFIX,
                    tenant_id,
                    theme_id,
                )
                raise ThemeStorageError("Falha ao ativar tema") from exc

            db.refresh(target)

        logger.info(
            "%s activated tenant_id=%s theme_id=%s",
            THEME_ACTIVATION_PREFIX,
            tenant_id,
            theme_id,
            extra={"theme_id": theme_id},
        )
        event_bus.emit(THEME_ACTIVATED, {"tenant_id": tenant_id, "theme_id": theme_id})
        return target

    def ensure_consistent(self, db: Session, tenant_id: int) -> ThemeSettings | None:
        """Tema efetivo do tenant, reparando estados degradados.

        - nenhum tema: ``None``;
        - nenhum ativo: o criado mais recentemente vale como ativo (não persiste);
        - mais de um ativo: mantém o atualizado mais recentemente e desativa os outros.
        """
        try:
            rows = self._store.list_by_tenant(db, tenant_id)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s read failed tenant_id=%s", THEME_ACTIVATION_PREFIX, tenant_id)
            raise ThemeStorageError("Falha ao carregar temas") from exc

        if not rows:
            return None

        active = [row for row in rows if row.is_active]
        if len(active) == 1:
            return active[0]

        if not active:
            fallback = max(rows, key=lambda row: (row.created_at, row.id))
            logger.warning(
                "%s no active theme tenant_id=%s fallback=%s",
                THEME_ACTIVATION_PREFIX,
                tenant_id,
                fallback.id,
            )
            return fallback

        conflict = ThemeConflictError(tenant_id, [row.id for row in active])
        logger.warning("%s %s; repairing", THEME_ACTIVATION_PREFIX, conflict)
        with self._tenant_lock(tenant_id):
            return self._repair_active(db, tenant_id)

    def _repair_active(self, db: Session, tenant_id: int) -> ThemeSettings | None:
        # Relido sob o lock: uma ativação concorrente pode já ter resolvido o conflito.
        try:
            active = (
                db.query(ThemeSettings)
                .filter(ThemeSettings.tenant_id == tenant_id, ThemeSettings.is_active.is_(True))
                .with_for_update()
                .populate_existing()
                .all()
            )
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s repair read failed tenant_id=%s", THEME_ACTIVATION_PREFIX, tenant_id)
            raise ThemeStorageError("Falha ao carregar temas") from exc

        if len(active) <= 1:
            # Libera o lock de linha; não há nada a reparar.
            db.rollback()
            if active:
                return active[0]
            rows = self._store.list_by_tenant(db, tenant_id)
            return max(rows, key=lambda row: (row.created_at, row.id)) if rows else None

        keeper = max(active, key=lambda row: (row.updated_at, row.created_at, row.id))
        try:
            for row in active:
                if row.id != keeper.id:
                    row.is_active = False
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("%s repair failed tenant_id=%s", THEME_ACTIVATION_PREFIX, tenant_id)
            return keeper
        logger.info(
            "%s repaired tenant_id=%s keeper=%s deactivated=%s",
            THEME_ACTIVATION_PREFIX,
            tenant_id,
            keeper.id,
            len(active) - 1,
        )
        return keeper


theme_activation_service = ThemeActivationService()
