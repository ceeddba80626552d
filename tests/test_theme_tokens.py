import copy

from app.models.theme_settings import ThemeSettings
from app.schemas.theme import DEFAULT_THEME_GROUPS, DEFAULT_THEME_NAME
from app.services import theme_tokens
from app.services.theme_activation import theme_activation_service
from app.services.theme_errors import ThemeStorageError
from app.services.theme_store import theme_store
from app.services.theme_tokens import (
    DEFAULT_THEME,
    PAPER_COLOR,
    ResolvedThemeCache,
    build_default_resolved_theme,
    get_resolved_theme,
    resolve_theme_tokens,
    resolved_theme_cache,
)


def test_default_theme_resolves_to_default_tokens():
    tokens = resolve_theme_tokens(DEFAULT_THEME)

    assert tokens["palette_primary"] == DEFAULT_THEME_GROUPS["colors"]["primary"]
    assert tokens["font_family"] == DEFAULT_THEME_GROUPS["typography"]["main_font"]
    assert tokens["card_border_radius"] == "8px"
    assert tokens["grid_columns_lg"] == 4
    assert tokens["palette_paper"] == PAPER_COLOR
    assert tokens["header_text"] == tokens["palette_text"]


def test_missing_groups_fall_back_per_field():
    config = {"name": "Parcial", "colors": {"primary": "#123456"}}

    tokens = resolve_theme_tokens(config)

    assert tokens["palette_primary"] == "#123456"
    assert tokens["palette_secondary"] == DEFAULT_THEME_GROUPS["colors"]["secondary"]
    assert tokens["card_border_radius"] == DEFAULT_THEME_GROUPS["product_card"]["border_radius"]
    assert tokens["card_padding"] == DEFAULT_THEME_GROUPS["product_card"]["padding"]


def test_invalid_values_fall_back_to_defaults():
    config = {
        "colors": {"primary": "   ", "secondary": None, "accent": True},
        "product_card": "not-a-mapping",
    }

    tokens = resolve_theme_tokens(config)

    assert tokens["palette_primary"] == DEFAULT_THEME_GROUPS["colors"]["primary"]
    assert tokens["palette_secondary"] == DEFAULT_THEME_GROUPS["colors"]["secondary"]
    assert tokens["palette_accent"] == DEFAULT_THEME_GROUPS["colors"]["accent"]
    assert tokens["card_background"] == DEFAULT_THEME_GROUPS["product_card"]["background_color"]


def test_resolution_is_pure_and_deterministic():
    config = copy.deepcopy(DEFAULT_THEME)
    config["colors"]["primary"] = "#ABCDEF"
    snapshot = copy.deepcopy(config)

    first = resolve_theme_tokens(config)
    second = resolve_theme_tokens(config)

    assert first == second
    assert config == snapshot


def test_none_config_resolves_to_defaults():
    assert resolve_theme_tokens(None) == resolve_theme_tokens(DEFAULT_THEME)


def test_tenant_without_themes_gets_default(db_session):
    resolved = get_resolved_theme(db_session, 1)

    assert resolved.source == "default"
    assert resolved.theme_id is None
    assert resolved.theme_name == DEFAULT_THEME_NAME
    assert resolved.tokens == resolve_theme_tokens(DEFAULT_THEME)


def test_active_theme_is_resolved_and_cached(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Loja", "colors": {"primary": "#000111"}})

    resolved = get_resolved_theme(db_session, 1)

    assert resolved.source == "active"
    assert resolved.theme_id == theme.id
    assert resolved.tokens["palette_primary"] == "#000111"
    assert resolved_theme_cache.get(1) == resolved


def test_update_changes_version_through_cache_invalidation(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Loja"})
    before = get_resolved_theme(db_session, 1)

    theme_store.update(db_session, theme.id, {"colors": {"primary": "#FFFFFF"}})
    after = get_resolved_theme(db_session, 1)

    assert before.version != after.version
    assert after.tokens["palette_primary"] == "#FFFFFF"


def test_theme_without_active_row_is_marked_fallback(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Loja"})
    theme.is_active = False
    db_session.commit()

    resolved = get_resolved_theme(db_session, 1)

    assert resolved.source == "fallback"
    assert resolved.theme_id == theme.id


def test_storage_failure_returns_default_without_caching(db_session, monkeypatch):
    def _fail(db, tenant_id):
        raise ThemeStorageError("Falha ao carregar temas")

    monkeypatch.setattr(theme_activation_service, "ensure_consistent", _fail)

    resolved = get_resolved_theme(db_session, 1)

    assert resolved.source == "default"
    assert resolved_theme_cache.get(1) is None


def test_cache_disabled_always_reads_database(db_session, monkeypatch):
    monkeypatch.setattr(theme_tokens, "RESOLVED_THEME_CACHE_ENABLED", False)
    theme_store.create(db_session, 1, {"name": "Loja"})

    get_resolved_theme(db_session, 1)

    assert resolved_theme_cache.get(1) is None


def test_read_racing_an_activation_does_not_cache_stale_theme(db_session, monkeypatch):
    theme_a = theme_store.create(db_session, 1, {"name": "A", "colors": {"primary": "#AAAAAA"}})
    theme_b = theme_store.create(db_session, 1, {"name": "B", "colors": {"primary": "#BBBBBB"}})
    real_ensure_consistent = theme_activation_service.ensure_consistent

    def _activation_during_read(db, tenant_id):
        current = real_ensure_consistent(db, tenant_id)
        assert current.id == theme_a.id
        # A ativação termina (e invalida o cache) antes de a leitura gravar o resultado.
        theme_activation_service.activate(db, tenant_id, theme_b.id)
        return current

    monkeypatch.setattr(theme_activation_service, "ensure_consistent", _activation_during_read)
    get_resolved_theme(db_session, 1)
    monkeypatch.undo()

    assert resolved_theme_cache.get(1) is None
    resolved = get_resolved_theme(db_session, 1)
    assert resolved.theme_id == theme_b.id
    assert resolved.tokens["palette_primary"] == "#BBBBBB"


def test_cache_entries_expire_after_ttl():
    now = [100.0]
    cache = ResolvedThemeCache(ttl_seconds=5, clock=lambda: now[0])
    resolved = build_default_resolved_theme(1)

    cache.put(resolved)
    now[0] += 4.9
    assert cache.get(1) == resolved
    now[0] += 0.2
    assert cache.get(1) is None


def test_put_with_outdated_generation_is_discarded():
    cache = ResolvedThemeCache(ttl_seconds=60)
    generation = cache.generation(1)

    cache.invalidate(1)

    assert cache.put(build_default_resolved_theme(1), generation) is False
    assert cache.get(1) is None
    assert cache.put(build_default_resolved_theme(1), cache.generation(1)) is True


def test_write_from_another_process_is_visible_after_ttl(db_session, monkeypatch):
    theme_a = theme_store.create(db_session, 1, {"name": "A"})
    theme_b = theme_store.create(db_session, 1, {"name": "B"})
    now = [0.0]
    monkeypatch.setattr(resolved_theme_cache, "_clock", lambda: now[0])
    assert get_resolved_theme(db_session, 1).theme_id == theme_a.id

    # Sem evento: simula outro worker gravando direto no banco.
    db_session.query(ThemeSettings).filter(ThemeSettings.id == theme_a.id).update(
        {"is_active": False}, synchronize_session=False
    )
    db_session.query(ThemeSettings).filter(ThemeSettings.id == theme_b.id).update(
        {"is_active": True}, synchronize_session=False
    )
    db_session.commit()

    assert get_resolved_theme(db_session, 1).theme_id == theme_a.id
    now[0] += 3600
    assert get_resolved_theme(db_session, 1).theme_id == theme_b.id
