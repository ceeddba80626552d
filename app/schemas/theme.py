from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

# Tema compilado no binário. Também define o schema de chaves de cada grupo:
# chaves fora daqui são descartadas no merge.
DEFAULT_THEME_NAME = "Tema Padrão"

DEFAULT_THEME_GROUPS: Dict[str, Dict[str, Any]] = {
    "colors": {
        "primary": "#2E7D32",
        "secondary": "#FF5722",
        "accent": "#1976D2",
        "background": "#F8F9FA",
        "text": "#2C3E50",
        "link": "#1976D2",
        "header": "#FFFFFF",
        "footer": "#F8F9FA",
        "buttons": {
            "primary": "#2E7D32",
            "secondary": "#FF5722",
            "danger": "#DC3545",
        },
    },
    "typography": {
        "main_font": "Roboto, sans-serif",
        "heading_font": "Roboto, sans-serif",
        "sizes": {
            "base": "16px",
            "h1": "2.5rem",
            "h2": "2rem",
            "h3": "1.75rem",
            "h4": "1.5rem",
            "h5": "1.25rem",
            "h6": "1rem",
            "button": "1rem",
            "menu_item": "1rem",
        },
    },
    "layout": {
        "max_width": "1200px",
        "container_padding": "1rem",
        "section_spacing": "2rem",
        "grid_gap": "1rem",
        "margin": "1rem",
    },
    "product_card": {
        "border_radius": "8px",
        "padding": "16px",
        "background_color": "#FFFFFF",
        "shadow_color": "rgba(0, 0, 0, 0.1)",
        "shadow_size": "0 2px 8px",
        "image_height": "200px",
        "spacing": "12px",
    },
    "product_grid": {
        "columns": {"xs": 1, "sm": 2, "md": 3, "lg": 4},
        "gap": "24px",
        "container_padding": "24px",
    },
    "components": {
        "card": {
            "background_color": "#FFFFFF",
            "shadow_effect": "0 2px 4px rgba(0,0,0,0.1)",
            "border_radius": "8px",
        },
        "button": {
            "border_radius": "4px",
            "padding": "0.5rem 1rem",
            "hover_effect": "brightness(0.95)",
        },
        "input": {
            "border_color": "#E2E8F0",
            "background_color": "#FFFFFF",
            "border_radius": "4px",
            "focus_effect": "border-color: #3182CE",
        },
    },
    "navigation": {
        "menu_background": "#FFFFFF",
        "menu_item_hover": "#F7FAFC",
        "menu_font_style": "normal",
        "menu_item_spacing": "0.5rem",
        "active_item_style": "bold",
    },
    "animations": {
        "transition_duration": "0.2s",
        "animation_speed": "0.3s",
        "hover_effects": "ease-in-out",
    },
    "breakpoints": {
        "mobile": "320px",
        "tablet": "768px",
        "desktop": "1024px",
    },
    "branding": {
        "logo_url": "",
        "logo_size": "120px",
        "logo_position": "left",
        "brand_colors": {
            "primary": "#2E7D32",
            "secondary": "#FF5722",
        },
    },
    "states": {
        "loading_spinner": "#2E7D32",
        "error": "#DC3545",
        "success": "#28A745",
        "info": "#17A2B8",
    },
    "social_media": {
        "icon_colors": {
            "facebook": "#1877F2",
            "twitter": "#1DA1F2",
            "instagram": "#E4405F",
        },
        "icon_size": "24px",
        "hover_effects": "scale(1.1)",
    },
}


class ThemeGroupsPayload(BaseModel):
    # Campos desconhecidos ou com tipo inesperado são ignorados, nunca rejeitados;
    # o nome é validado pelo store (400).
    model_config = ConfigDict(extra="ignore")

    name: Optional[Any] = None
    colors: Optional[Any] = None
    typography: Optional[Any] = None
    layout: Optional[Any] = None
    product_card: Optional[Any] = None
    product_grid: Optional[Any] = None
    components: Optional[Any] = None
    navigation: Optional[Any] = None
    animations: Optional[Any] = None
    breakpoints: Optional[Any] = None
    branding: Optional[Any] = None
    states: Optional[Any] = None
    social_media: Optional[Any] = None


class ThemeCreatePayload(ThemeGroupsPayload):
    pass


class ThemeUpdatePayload(ThemeGroupsPayload):
    id: Optional[str] = None


class ThemeSettingsOut(BaseModel):
    id: str
    tenant_id: int
    name: str
    is_active: bool
    colors: Dict[str, Any]
    typography: Dict[str, Any]
    layout: Dict[str, Any]
    product_card: Optional[Any] = None
    product_grid: Optional[Any] = None
    components: Optional[Any] = None
    navigation: Optional[Any] = None
    animations: Optional[Any] = None
    breakpoints: Optional[Any] = None
    branding: Optional[Any] = None
    states: Optional[Any] = None
    social_media: Optional[Any] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ResolvedThemeOut(BaseModel):
    tenant_id: int
    theme_id: Optional[str] = None
    theme_name: str
    source: Literal["active", "fallback", "default"]
    version: str
    tokens: Dict[str, Any]
