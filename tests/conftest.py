import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("ADMIN_SESSION_SECRET", "test-admin-session-secret")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
import app.services.event_handlers  # noqa: E402,F401
from app.core.database import Base, get_db  # noqa: E402
from app.deps import require_admin_user  # noqa: E402
from app.models.tenant import Tenant  # noqa: E402
from app.services.theme_tokens import resolved_theme_cache  # noqa: E402
from tests.fixtures_data import HAPPY_PATH_ADMIN  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_resolved_theme_cache():
    resolved_theme_cache.clear()
    yield
    resolved_theme_cache.clear()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    db.add(Tenant(id=1, slug="burger-house", name="Burger House"))
    db.add(Tenant(id=2, slug="pizza-place", name="Pizza Place"))
    db.commit()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def admin_user():
    return SimpleNamespace(**HAPPY_PATH_ADMIN)


@pytest.fixture
def build_client(db_session):
    """Monta um app com os routers pedidos, banco em memória e admin opcional."""

    def _build(*routers, admin=None) -> TestClient:
        app = FastAPI()
        for router in routers:
            app.include_router(router)
        app.dependency_overrides[get_db] = lambda: db_session
        if admin is not None:
            app.dependency_overrides[require_admin_user] = lambda: admin
        return TestClient(app)

    return _build
