from __future__ import annotations

import logging

from app.services.event_bus import THEME_ACTIVATED, THEME_CREATED, THEME_UPDATED, event_bus
from app.services.theme_tokens import resolved_theme_cache

logger = logging.getLogger(__name__)


def handle_theme_changed(payload: dict) -> None:
    tenant_id = payload.get("tenant_id")
    if tenant_id is None:
        return
    resolved_theme_cache.invalidate(int(tenant_id))
    logger.debug("[THEME_TOKENS] cache invalidated tenant_id=%s theme_id=%s", tenant_id, payload.get("theme_id"))


for _event_name in (THEME_CREATED, THEME_UPDATED, THEME_ACTIVATED):
    event_bus.subscribe(_event_name, handle_theme_changed)
