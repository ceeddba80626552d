import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import (
    CORS_ORIGINS,
    DATABASE_URL,
    DEV_ADMIN_EMAIL,
    DEV_ADMIN_NAME,
    DEV_ADMIN_PASSWORD,
    DEV_ADMIN_TENANT_SLUG,
)
from app.core.database import Base, SessionLocal, engine
from app.core.logging_setup import configure_logging
from app.core.startup_checks import ensure_migrations_applied, validate_database_environment
from app.middleware.observability import ObservabilityMiddleware
import app.models  # garante que os models são importados antes do create_all
import app.services.event_handlers  # registra handlers do event bus

from app.services.admin_bootstrap import (
    BOOTSTRAP_PREFIX,
    ensure_required_tables,
    get_or_create_tenant,
    upsert_admin_user,
)
from app.routers.admin_auth import router as admin_auth_router
from app.routers.admin_bootstrap import router as admin_bootstrap_router
from app.routers.categories import router as categories_router
from app.routers.company import router as company_router
from app.routers.products import router as products_router
from app.routers.public_storefront import router as public_storefront_router
from app.routers.theme_settings import router as theme_settings_router
from app.routers.visitors import router as visitors_router

configure_logging()

logger = logging.getLogger(__name__)
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Digital Menu API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag", "X-Request-ID"],
)
app.add_middleware(ObservabilityMiddleware)


def _bootstrap_dev_admin() -> None:
    if not DEV_ADMIN_PASSWORD:
        logger.warning("%s skipped: configure DEV_ADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return

    logger.info(
        "%s start tenant_slug=%s email=%s",
        BOOTSTRAP_PREFIX,
        DEV_ADMIN_TENANT_SLUG,
        DEV_ADMIN_EMAIL,
    )
    db = SessionLocal()
    try:
        tenant, _ = get_or_create_tenant(db, slug=DEV_ADMIN_TENANT_SLUG)
        admin, created = upsert_admin_user(
            db,
            tenant_id=tenant.id,
            email=DEV_ADMIN_EMAIL,
            name=DEV_ADMIN_NAME,
            role="owner",
            password=DEV_ADMIN_PASSWORD,
        )
        logger.info(
            "%s %s id=%s tenant_id=%s",
            BOOTSTRAP_PREFIX,
            "created" if created else "updated",
            admin.id,
            admin.tenant_id,
        )
    except Exception:
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if DATABASE_URL.startswith("sqlite"):
            # Em SQLite (dev) o schema sai direto dos models; em produção, use migrations.
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_required_tables(engine)
        _bootstrap_dev_admin()
    except Exception:
        logger.exception("%s ERROR startup failed", BOOTSTRAP_PREFIX)
        raise


# Routers
app.include_router(admin_auth_router)
app.include_router(admin_bootstrap_router)
app.include_router(theme_settings_router)
app.include_router(categories_router)
app.include_router(products_router)
app.include_router(company_router)
app.include_router(visitors_router)
app.include_router(public_storefront_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
