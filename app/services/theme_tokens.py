from __future__ import annotations

import copy
import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from app.core.config import RESOLVED_THEME_CACHE_ENABLED, RESOLVED_THEME_CACHE_TTL_SECONDS
from app.models.theme_settings import THEME_GROUPS, ThemeSettings
from app.schemas.theme import DEFAULT_THEME_GROUPS, DEFAULT_THEME_NAME
from app.services.theme_activation import theme_activation_service
from app.services.theme_errors import ThemeError

logger = logging.getLogger(__name__)
THEME_TOKENS_PREFIX = "[THEME_TOKENS]"

DEFAULT_THEME: dict[str, Any] = {"name": DEFAULT_THEME_NAME, **copy.deepcopy(DEFAULT_THEME_GROUPS)}

# O storefront sempre desenha o "papel" em branco.
PAPER_COLOR = "#FFFFFF"

# token -> caminho na configuração
_TOKEN_PATHS: dict[str, str] = {
    "font_family": "typography.main_font",
    "heading_font_family": "typography.heading_font",
    "font_size_base": "typography.sizes.base",
    "font_size_h1": "typography.sizes.h1",
    "font_size_h2": "typography.sizes.h2",
    "font_size_h3": "typography.sizes.h3",
    "font_size_h4": "typography.sizes.h4",
    "font_size_h5": "typography.sizes.h5",
    "font_size_h6": "typography.sizes.h6",
    "font_size_button": "typography.sizes.button",
    "font_size_menu_item": "typography.sizes.menu_item",
    "palette_primary": "colors.primary",
    "palette_secondary": "colors.secondary",
    "palette_accent": "colors.accent",
    "palette_background": "colors.background",
    "palette_text": "colors.text",
    "palette_link": "colors.link",
    "header_background": "colors.header",
    "footer_background": "colors.footer",
    "button_primary": "colors.buttons.primary",
    "button_secondary": "colors.buttons.secondary",
    "button_danger": "colors.buttons.danger",
    "card_background": "product_card.background_color",
    "card_border_radius": "product_card.border_radius",
    "card_padding": "product_card.padding",
    "card_image_height": "product_card.image_height",
    "card_spacing": "product_card.spacing",
    "grid_gap": "product_grid.gap",
    "grid_container_padding": "product_grid.container_padding",
    "grid_columns_xs": "product_grid.columns.xs",
    "grid_columns_sm": "product_grid.columns.sm",
    "grid_columns_md": "product_grid.columns.md",
    "grid_columns_lg": "product_grid.columns.lg",
    "layout_max_width": "layout.max_width",
    "layout_container_padding": "layout.container_padding",
    "layout_section_spacing": "layout.section_spacing",
    "layout_grid_gap": "layout.grid_gap",
    "layout_margin": "layout.margin",
    "nav_background": "navigation.menu_background",
    "nav_item_hover": "navigation.menu_item_hover",
    "transition_duration": "animations.transition_duration",
    "breakpoint_mobile": "breakpoints.mobile",
    "breakpoint_tablet": "breakpoints.tablet",
    "breakpoint_desktop": "breakpoints.desktop",
    "logo_url": "branding.logo_url",
    "logo_size": "branding.logo_size",
    "logo_position": "branding.logo_position",
    "state_loading": "states.loading_spinner",
    "state_error": "states.error",
    "state_success": "states.success",
    "state_info": "states.info",
}


def _lookup(source: Any, path: str) -> Any:
    node = source
    for part in path.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _token(config: Mapping[str, Any], path: str) -> Any:
    value = _lookup(config, path)
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return _lookup(DEFAULT_THEME_GROUPS, path)


def resolve_theme_tokens(config: Mapping[str, Any] | None) -> dict[str, Any]:
    """Achata uma configuração de tema em tokens de estilo para o storefront.

    Função pura: campos ausentes ou inválidos caem no valor padrão do campo.
    """
    source: Mapping[str, Any] = config if isinstance(config, Mapping) else {}
    tokens = {name: _token(source, path) for name, path in _TOKEN_PATHS.items()}
    tokens["palette_paper"] = PAPER_COLOR
    tokens["header_text"] = tokens["palette_text"]
    tokens["card_shadow"] = (
        f"{_token(source, 'product_card.shadow_size')} {_token(source, 'product_card.shadow_color')}"
    )
    return tokens


def theme_to_config(theme: ThemeSettings) -> dict[str, Any]:
    config: dict[str, Any] = {"name": theme.name}
    for group in THEME_GROUPS:
        config[group] = getattr(theme, group)
    return config


def _version(theme_id: str | None, tokens: Mapping[str, Any]) -> str:
    raw = json.dumps({"theme_id": theme_id, "tokens": tokens}, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class ResolvedTheme:
    tenant_id: int
    theme_id: str | None
    theme_name: str
    source: str
    tokens: dict[str, Any] = field(default_factory=dict)
    version: str = ""


def build_default_resolved_theme(tenant_id: int) -> ResolvedTheme:
    tokens = resolve_theme_tokens(DEFAULT_THEME)
    return ResolvedTheme(
        tenant_id=tenant_id,
        theme_id=None,
        theme_name=DEFAULT_THEME_NAME,
        source="default",
        tokens=tokens,
        version=_version(None, tokens),
    )


class ResolvedThemeCache:
    """Projeção derivada por tenant; nunca persistida.

    Cada tenant tem uma geração que ``invalidate`` incrementa. Quem resolve o
    tema lê a geração antes de ir ao banco e só grava se ela não mudou, então
    uma leitura que cruzou uma ativação não repõe o tema antigo. Entradas
    expiram após ``ttl_seconds`` para cobrir escritas de outros processos.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[int, tuple[float, ResolvedTheme]] = {}
        self._generations: dict[int, int] = {}
        self._ttl_seconds = RESOLVED_THEME_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._lock = Lock()

    def generation(self, tenant_id: int) -> int:
        with self._lock:
            return self._generations.get(int(tenant_id), 0)

    def get(self, tenant_id: int) -> ResolvedTheme | None:
        key = int(tenant_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, resolved = entry
            if self._clock() - stored_at >= self._ttl_seconds:
                del self._entries[key]
                return None
            return resolved

    def put(self, resolved: ResolvedTheme, generation: int | None = None) -> bool:
        key = int(resolved.tenant_id)
        with self._lock:
            if generation is not None and self._generations.get(key, 0) != generation:
                return False
            self._entries[key] = (self._clock(), resolved)
            return True

    def invalidate(self, tenant_id: int) -> None:
        key = int(tenant_id)
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()


resolved_theme_cache = ResolvedThemeCache()


def get_resolved_theme(db: Session, tenant_id: int) -> ResolvedTheme:
    """Tokens do tema efetivo do tenant. Nunca levanta exceção."""
    if RESOLVED_THEME_CACHE_ENABLED:
        cached = resolved_theme_cache.get(tenant_id)
        if cached is not None:
            return cached

    generation = resolved_theme_cache.generation(tenant_id)
    try:
        theme = theme_activation_service.ensure_consistent(db, tenant_id)
    except ThemeError:
        logger.exception("%s falling back to default tenant_id=%s", THEME_TOKENS_PREFIX, tenant_id)
        return build_default_resolved_theme(tenant_id)

    if theme is None:
        resolved = build_default_resolved_theme(tenant_id)
    else:
        tokens = resolve_theme_tokens(theme_to_config(theme))
        resolved = ResolvedTheme(
            tenant_id=tenant_id,
            theme_id=theme.id,
            theme_name=theme.name,
            source="active" if theme.is_active else "fallback",
            tokens=tokens,
            version=_version(theme.id, tokens),
        )

    if RESOLVED_THEME_CACHE_ENABLED:
        if not resolved_theme_cache.put(resolved, generation):
            logger.info("%s stale resolution discarded tenant_id=%s", THEME_TOKENS_PREFIX, tenant_id)
    return resolved
