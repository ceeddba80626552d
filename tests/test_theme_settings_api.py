from types import SimpleNamespace
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from app.routers.theme_settings import router as theme_settings_router
from app.schemas.theme import DEFAULT_THEME_GROUPS
from tests.fixtures_data import TENANT_ACCESS_DENIED, THEME_CREATE_PAYLOAD


def test_create_theme_returns_201_and_first_is_active(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    response = client.post("/api/themes/1", json=THEME_CREATE_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Verão"
    assert body["is_active"] is True
    assert body["tenant_id"] == 1
    assert body["colors"]["primary"] == "#112233"
    assert body["product_card"]["border_radius"] == "12px"


def test_create_theme_with_blank_name_returns_400(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    response = client.post("/api/themes/1", json={"name": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Nome do tema é obrigatório"
    assert client.get("/api/themes/1").status_code == 404


def test_get_current_theme_returns_404_without_themes(build_client):
    client = build_client(theme_settings_router)

    response = client.get("/api/themes/1")

    assert response.status_code == 404
    assert response.json()["detail"] == "Nenhum tema configurado para o tenant 1"


def test_update_requires_theme_id(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    response = client.put("/api/themes/1", json={"name": "Sem id"})

    assert response.status_code == 400
    assert response.json()["detail"] == "ID do tema é obrigatório"


def test_update_unknown_theme_returns_404(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    response = client.put("/api/themes/1", json={"id": "missing", "name": "X"})

    assert response.status_code == 404


def test_partial_update_keeps_other_fields(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)
    created = client.post("/api/themes/1", json=THEME_CREATE_PAYLOAD).json()

    response = client.put(
        "/api/themes/1",
        json={"id": created["id"], "colors": {"secondary": "#654321"}, "bogus": 1},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["colors"]["primary"] == "#112233"
    assert body["colors"]["secondary"] == "#654321"
    assert body["typography"] == created["typography"]


def test_activate_switches_current_theme(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)
    first = client.post("/api/themes/1", json={"name": "A"}).json()
    second = client.post("/api/themes/1", json={"name": "B"}).json()

    response = client.put(f"/api/themes/1/active/{second['id']}")

    assert response.status_code == 200
    assert response.json()["is_active"] is True
    assert client.get("/api/themes/1").json()["id"] == second["id"]

    listed = client.get("/api/themes/1/list").json()
    assert [(theme["id"], theme["is_active"]) for theme in listed] == [
        (first["id"], False),
        (second["id"], True),
    ]


def test_activate_unknown_theme_returns_404(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)
    client.post("/api/themes/1", json={"name": "A"})

    response = client.put("/api/themes/1/active/missing")

    assert response.status_code == 404


def test_admin_of_other_tenant_is_forbidden(build_client):
    admin = SimpleNamespace(id=9, tenant_id=TENANT_ACCESS_DENIED["admin_tenant_id"], role="admin", active=True)
    client = build_client(theme_settings_router, admin=admin)

    response = client.post(
        f"/api/themes/{TENANT_ACCESS_DENIED['request_tenant_id']}",
        json={"name": "Invasor"},
    )

    assert response.status_code == TENANT_ACCESS_DENIED["expected_status_code"]
    assert response.json()["detail"] == TENANT_ACCESS_DENIED["expected_detail"]


def test_writes_without_session_return_401(build_client):
    client = build_client(theme_settings_router)

    response = client.post("/api/themes/1", json={"name": "A"})

    assert response.status_code == 401


def test_resolved_tokens_support_etag_polling(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    default = client.get("/api/themes/1/resolved")
    assert default.status_code == 200
    assert default.json()["source"] == "default"
    etag = default.headers["etag"]
    assert etag == f'"{default.json()["version"]}"'
    assert default.headers["cache-control"] == "no-cache"

    not_modified = client.get("/api/themes/1/resolved", headers={"If-None-Match": etag})
    assert not_modified.status_code == 304

    client.post("/api/themes/1", json={"name": "Loja", "colors": {"primary": "#0000FF"}})
    changed = client.get("/api/themes/1/resolved", headers={"If-None-Match": etag})

    assert changed.status_code == 200
    assert changed.json()["source"] == "active"
    assert changed.json()["tokens"]["palette_primary"] == "#0000FF"
    assert changed.headers["etag"] != etag


def test_activation_storage_failure_returns_generic_500(build_client, db_session, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)
    first = client.post("/api/themes/1", json={"name": "A"}).json()
    second = client.post("/api/themes/1", json={"name": "B"}).json()

    with patch.object(
        db_session,
        "commit",
        side_effect=OperationalError("UPDATE theme_settings", {}, Exception("disk I/O error")),
    ):
        response = client.put(f"/api/themes/1/active/{second['id']}")

    assert response.status_code == 500
    assert response.json()["detail"] == "Não foi possível processar o tema. Tente novamente."
    assert "disk" not in response.text
    assert client.get("/api/themes/1").json()["id"] == first["id"]


def test_non_object_group_is_ignored(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)

    response = client.post("/api/themes/1", json={"name": "Loja", "colors": "red", "layout": [1, 2]})

    assert response.status_code == 201
    assert response.json()["colors"] == DEFAULT_THEME_GROUPS["colors"]
    assert response.json()["layout"] == DEFAULT_THEME_GROUPS["layout"]


def test_non_string_name_returns_400(build_client, admin_user):
    client = build_client(theme_settings_router, admin=admin_user)
    created = client.post("/api/themes/1", json={"name": "Loja"}).json()

    on_create = client.post("/api/themes/1", json={"name": 123})
    on_update = client.put("/api/themes/1", json={"id": created["id"], "name": ["Loja"]})

    assert on_create.status_code == 400
    assert on_create.json()["detail"] == "Nome do tema é obrigatório"
    assert on_update.status_code == 400
    assert on_update.json()["detail"] == "Nome do tema é obrigatório"
