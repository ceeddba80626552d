import pytest

from app.models.theme_settings import ThemeSettings
from app.schemas.theme import DEFAULT_THEME_GROUPS
from app.services.event_bus import THEME_CREATED, THEME_UPDATED, event_bus
from app.services.theme_errors import ThemeNotFoundError, ThemeValidationError
from app.services.theme_store import apply_group_patch, theme_store
from tests.fixtures_data import THEME_CREATE_PAYLOAD


def test_first_theme_is_active_and_later_ones_are_not(db_session):
    first = theme_store.create(db_session, 1, {"name": "Principal"})
    second = theme_store.create(db_session, 1, {"name": "Alternativo"})
    other_tenant = theme_store.create(db_session, 2, {"name": "Pizza"})

    assert first.is_active is True
    assert second.is_active is False
    assert other_tenant.is_active is True
    assert [theme.id for theme in theme_store.list_by_tenant(db_session, 1)] == [first.id, second.id]


def test_create_fills_missing_groups_with_defaults(db_session):
    theme = theme_store.create(db_session, 1, THEME_CREATE_PAYLOAD)

    assert theme.name == "Verão"
    assert theme.colors["primary"] == "#112233"
    assert theme.colors["secondary"] == DEFAULT_THEME_GROUPS["colors"]["secondary"]
    assert theme.colors["buttons"]["primary"] == "#445566"
    assert theme.colors["buttons"]["danger"] == DEFAULT_THEME_GROUPS["colors"]["buttons"]["danger"]
    assert theme.product_card["border_radius"] == "12px"
    assert theme.product_grid == DEFAULT_THEME_GROUPS["product_grid"]


@pytest.mark.parametrize("name", ["", "   ", None, "x" * 121])
def test_create_rejects_invalid_name_and_persists_nothing(db_session, name):
    with pytest.raises(ThemeValidationError) as exc_info:
        theme_store.create(db_session, 1, {"name": name})

    assert exc_info.value.field == "name"
    assert db_session.query(ThemeSettings).count() == 0


def test_create_strips_name(db_session):
    theme = theme_store.create(db_session, 1, {"name": "  Noite  "})

    assert theme.name == "Noite"


def test_update_merges_only_provided_keys(db_session):
    theme = theme_store.create(db_session, 1, THEME_CREATE_PAYLOAD)
    typography_before = dict(theme.typography)

    updated = theme_store.update(db_session, theme.id, {"colors": {"secondary": "#ABCDEF"}})

    assert updated.colors["secondary"] == "#ABCDEF"
    assert updated.colors["primary"] == "#112233"
    assert updated.colors["buttons"]["primary"] == "#445566"
    assert updated.typography == typography_before
    assert updated.name == "Verão"


def test_rename_keeps_group_values(db_session):
    theme = theme_store.create(db_session, 1, THEME_CREATE_PAYLOAD)

    updated = theme_store.update(db_session, theme.id, {"name": "Inverno"})

    assert updated.name == "Inverno"
    assert updated.colors["primary"] == "#112233"


def test_update_merges_nested_subgroups(db_session):
    theme = theme_store.create(db_session, 1, THEME_CREATE_PAYLOAD)

    updated = theme_store.update(db_session, theme.id, {"colors": {"buttons": {"danger": "#FF0000"}}})

    assert updated.colors["buttons"] == {
        "primary": "#445566",
        "secondary": DEFAULT_THEME_GROUPS["colors"]["buttons"]["secondary"],
        "danger": "#FF0000",
    }


def test_update_ignores_unknown_keys_and_invalid_values(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Base", "unknown_group": {"a": 1}})

    updated = theme_store.update(
        db_session,
        theme.id,
        {
            "colors": {"bogus": "#000000", "primary": True, "text": {"nested": "x"}},
            "product_grid": {"columns": {"md": 5, "xl": 9}},
        },
    )

    assert "bogus" not in updated.colors
    assert updated.colors["primary"] == DEFAULT_THEME_GROUPS["colors"]["primary"]
    assert updated.colors["text"] == DEFAULT_THEME_GROUPS["colors"]["text"]
    assert updated.product_grid["columns"]["md"] == 5
    assert "xl" not in updated.product_grid["columns"]
    assert not hasattr(updated, "unknown_group")


def test_update_rejects_blank_name_without_touching_theme(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Base"})

    with pytest.raises(ThemeValidationError):
        theme_store.update(db_session, theme.id, {"name": "  "})

    db_session.expire_all()
    assert theme_store.get_by_id(db_session, 1, theme.id).name == "Base"


def test_update_unknown_or_foreign_theme_raises_not_found(db_session):
    theme = theme_store.create(db_session, 1, {"name": "Base"})

    with pytest.raises(ThemeNotFoundError):
        theme_store.update(db_session, "missing", {"name": "X"})
    with pytest.raises(ThemeNotFoundError):
        theme_store.update(db_session, theme.id, {"name": "X"}, tenant_id=2)


def test_get_without_themes_raises_not_found(db_session):
    with pytest.raises(ThemeNotFoundError) as exc_info:
        theme_store.get(db_session, 1)

    assert exc_info.value.tenant_id == 1


def test_get_falls_back_to_latest_created_when_none_active(db_session):
    first = theme_store.create(db_session, 1, {"name": "A"})
    second = theme_store.create(db_session, 1, {"name": "B"})
    first.is_active = False
    db_session.commit()

    assert theme_store.get(db_session, 1).id == second.id


def test_create_and_update_emit_events(db_session):
    received = []

    def _handler(payload):
        received.append(payload)

    event_bus.subscribe(THEME_CREATED, _handler)
    event_bus.subscribe(THEME_UPDATED, _handler)
    try:
        theme = theme_store.create(db_session, 1, {"name": "A"})
        theme_store.update(db_session, theme.id, {"name": "B"})
    finally:
        event_bus.unsubscribe(THEME_CREATED, _handler)
        event_bus.unsubscribe(THEME_UPDATED, _handler)

    assert received == [
        {"tenant_id": 1, "theme_id": theme.id},
        {"tenant_id": 1, "theme_id": theme.id},
    ]


def test_apply_group_patch_returns_new_dict():
    current = {"primary": "#111111", "buttons": {"primary": "#222222"}}

    merged = apply_group_patch(current, {"buttons": {"primary": "#333333"}}, DEFAULT_THEME_GROUPS["colors"])

    assert merged["buttons"]["primary"] == "#333333"
    assert current["buttons"]["primary"] == "#222222"
    assert merged is not current
