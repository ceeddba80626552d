from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.database import get_db
from app.models.admin_login_attempt import AdminLoginAttempt
from app.models.admin_user import AdminUser
from app.routers.admin_auth import router as admin_auth_router
from app.routers.theme_settings import router as theme_settings_router
from app.services.admin_auth import create_admin_session, decode_admin_session
from app.services.admin_login_attempts import MAX_FAILED_ATTEMPTS
from app.services.passwords import hash_password, looks_hashed, verify_password

PASSWORD = "s3nha-forte"


@pytest.fixture
def auth_client(db_session):
    db_session.add(
        AdminUser(
            id=7,
            tenant_id=1,
            email="admin@example.com",
            name="Admin",
            role="owner",
            active=True,
            password_hash=hash_password(PASSWORD),
        )
    )
    db_session.commit()

    app = FastAPI()
    app.include_router(admin_auth_router)
    app.include_router(theme_settings_router)
    app.dependency_overrides[get_db] = lambda: db_session
    return TestClient(app, base_url="https://testserver")


def _login(client, password=PASSWORD, **headers):
    return client.post(
        "/api/admin/auth/login",
        json={"email": "Admin@Example.com", "password": password},
        headers=headers,
    )


def test_password_hashing_roundtrip():
    hashed = hash_password(PASSWORD)

    assert looks_hashed(hashed)
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("errada", hashed)
    assert not verify_password(PASSWORD, "")


def test_session_token_roundtrip():
    token = create_admin_session(user_id=7, tenant_id=1, role="owner")

    payload = decode_admin_session(token)

    assert payload["user_id"] == 7
    assert payload["tenant_id"] == 1
    assert decode_admin_session(token + "x") is None


def test_login_with_tenant_slug_sets_http_only_session_cookie(auth_client, db_session):
    response = _login(auth_client, **{"x-tenant-slug": "burger-house"})

    assert response.status_code == 200
    assert response.json()["tenant_slug"] == "burger-house"
    set_cookie = response.headers.get("set-cookie", "")
    assert "admin_session=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Path=/" in set_cookie
    assert "Secure" in set_cookie
    assert db_session.query(AdminUser).filter(AdminUser.id == 7).first().last_login_at is not None


def test_login_without_tenant_resolves_unique_admin(auth_client):
    response = _login(auth_client)

    assert response.status_code == 200
    assert response.json()["tenant_id"] == 1


def test_session_cookie_authorizes_me_and_theme_writes(auth_client):
    _login(auth_client, **{"x-tenant-slug": "burger-house"})

    me = auth_client.get("/api/admin/auth/me")
    created = auth_client.post("/api/themes/1", json={"name": "Loja"})
    foreign = auth_client.post("/api/themes/2", json={"name": "Invasor"})

    assert me.status_code == 200
    assert me.json()["email"] == "admin@example.com"
    assert created.status_code == 201
    assert foreign.status_code == 403


def test_logout_clears_session(auth_client):
    _login(auth_client, **{"x-tenant-slug": "burger-house"})

    response = auth_client.post("/api/admin/auth/logout")

    assert response.status_code == 200
    assert "Max-Age=0" in response.headers.get("set-cookie", "")
    assert auth_client.get("/api/admin/auth/me").status_code == 401


def test_wrong_password_returns_401(auth_client):
    assert _login(auth_client, password="errada", **{"x-tenant-slug": "burger-house"}).status_code == 401
    assert _login(auth_client, password="errada").status_code == 401


def test_repeated_failures_lock_login(auth_client, db_session):
    statuses = [
        _login(auth_client, password="errada", **{"x-tenant-slug": "burger-house"}).status_code
        for _ in range(MAX_FAILED_ATTEMPTS)
    ]

    assert statuses[:-1] == [401] * (MAX_FAILED_ATTEMPTS - 1)
    assert statuses[-1] == 429
    assert _login(auth_client, **{"x-tenant-slug": "burger-house"}).status_code == 429
    attempt = db_session.query(AdminLoginAttempt).filter(AdminLoginAttempt.tenant_id == 1).first()
    assert attempt.locked_until is not None


def test_successful_login_clears_failed_attempts(auth_client, db_session):
    _login(auth_client, password="errada", **{"x-tenant-slug": "burger-house"})

    _login(auth_client, **{"x-tenant-slug": "burger-house"})

    assert db_session.query(AdminLoginAttempt).count() == 0


def test_login_logs_cookie_policy(auth_client):
    with patch("app.routers.admin_auth.logger") as mocked_logger:
        _login(auth_client, **{"x-tenant-slug": "burger-house"})

    logged = [call.args[0] for call in mocked_logger.info.call_args_list]
    assert any("[AUTH_COOKIE]" in message for message in logged)
