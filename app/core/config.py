import os

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./digital_menu.db")
DB_POOL_TIMEOUT_SECONDS = int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "10"))
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Tema
RESOLVED_THEME_CACHE_ENABLED = _env_flag("RESOLVED_THEME_CACHE_ENABLED", "1")
# Limite de desatualização entre processos; a invalidação por evento é só local.
RESOLVED_THEME_CACHE_TTL_SECONDS = float(os.getenv("RESOLVED_THEME_CACHE_TTL_SECONDS", "5"))

# CORS
_cors_env = os.getenv("ALLOWED_ORIGINS", os.getenv("CORS_ORIGINS", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

# Sessão do painel admin
ADMIN_SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET", "")
ADMIN_SESSION_MAX_AGE_SECONDS = int(os.getenv("ADMIN_SESSION_MAX_AGE_SECONDS", "604800"))
ADMIN_SESSION_COOKIE_SECURE = _env_flag("ADMIN_SESSION_COOKIE_SECURE", "0" if IS_DEV else "1")
ADMIN_SESSION_COOKIE_SAMESITE = os.getenv(
    "ADMIN_SESSION_COOKIE_SAMESITE",
    "lax" if IS_DEV else "none",
).strip().lower()
if ADMIN_SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    ADMIN_SESSION_COOKIE_SAMESITE = "lax" if IS_DEV else "none"
ADMIN_SESSION_COOKIE_DOMAIN = os.getenv("ADMIN_SESSION_COOKIE_DOMAIN", "").strip() or None
ADMIN_SESSION_COOKIE_HTTPONLY = _env_flag("ADMIN_SESSION_COOKIE_HTTPONLY", "1")

# Bootstrap do admin de desenvolvimento
DEV_ADMIN_EMAIL = os.getenv("DEV_ADMIN_EMAIL", "admin@teste.com").strip() or "admin@teste.com"
DEV_ADMIN_PASSWORD = os.getenv("DEV_ADMIN_PASSWORD", "").strip()
DEV_ADMIN_NAME = os.getenv("DEV_ADMIN_NAME", "Admin").strip() or "Admin"
DEV_ADMIN_TENANT_SLUG = os.getenv("DEV_ADMIN_TENANT_SLUG", "minhaempresa").strip()
DEV_BOOTSTRAP_ALLOW = _env_flag("DEV_BOOTSTRAP_ALLOW")

# QR code da empresa
COMPANY_QR_CODE_SIZE = int(os.getenv("COMPANY_QR_CODE_SIZE", "250"))
