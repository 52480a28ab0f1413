import os

def _env_bool(name: str, default: str) -> bool:
    return (os.getenv(name, default) or default).lower() == "true"

class BaseConfig:
    # Secrets (env in prod; dev/test may use defaults)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-not-secure")

    # Database (env in prod; dev/test may use default)
    try:
        from dotenv import dotenv_values
        _ENV_FALLBACK = dotenv_values(".env")
    except Exception:
        _ENV_FALLBACK = {}
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _ENV_FALLBACK.get("DATABASE_URL") or "sqlite:///feedback.db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Logging / misc
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    APP_ENV = os.environ.get("APP_ENV", "development")

    # Flask-Limiter default: off globally; public token routes carry their own limits
    RATELIMIT_DEFAULT = None

    # --- Feedback links / tokens ---
    # Customer-facing frontend that renders the forms; links point here
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    # Extra browser origins allowed on /api/*, comma separated (FRONTEND_URL is always allowed)
    CORS_EXTRA_ORIGINS = [o.strip() for o in os.getenv("CORS_EXTRA_ORIGINS", "").split(",") if o.strip()]
    FEEDBACK_TOKEN_BYTES = int(os.getenv("FEEDBACK_TOKEN_BYTES", "8"))
    FEEDBACK_TOKEN_TTL_HOURS = int(os.getenv("FEEDBACK_TOKEN_TTL_HOURS", "72"))

    # Admin + order-trigger endpoints; unset means open (local dev only)
    ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

    # --- Mail ---
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "true")
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", "false")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "Store My Goods <no-reply@local.test>")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", "false")

    # --- Google Sheets mirror ---
    GOOGLE_SHEET_ID = os.getenv("GOOGLE_SHEET_ID")
    GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY")
    SHEETS_RANGE = os.getenv("SHEETS_RANGE", "Sheet1")
    SHEETS_MIRROR_WORKERS = int(os.getenv("SHEETS_MIRROR_WORKERS", "2"))
    SHEETS_MIRROR_RETRIES = int(os.getenv("SHEETS_MIRROR_RETRIES", "3"))
    SHEETS_MIRROR_BACKOFF_SECONDS = float(os.getenv("SHEETS_MIRROR_BACKOFF_SECONDS", "1.0"))

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    MAIL_SUPPRESS_SEND = True

class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")
    # REQUIRE env vars in production (fail fast if missing)
    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    MAIL_SUPPRESS_SEND = False

class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SUPPRESS_SEND = True
    RATELIMIT_ENABLED = False
    GOOGLE_SHEET_ID = None

_ENV_MAP = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "staging": ProductionConfig,
    "testing": TestingConfig,
}

def get_config():
    env = os.environ.get("APP_ENV", "development").lower()
    return _ENV_MAP.get(env, DevelopmentConfig)
