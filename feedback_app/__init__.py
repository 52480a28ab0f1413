import os
from datetime import datetime, timezone
from flask import Flask

# Load .env only for local/dev. In prod, env vars come from the platform.
if os.getenv("APP_ENV", "development") != "production":
    from dotenv import load_dotenv
    load_dotenv(".env", override=False)


from .config import get_config
from .extensions import db, migrate, limiter, mail, cors, sheets_mirror
from .security import init_security
from .observability import init_logging, init_sentry

def _cors_origins(config):
    origins = [config.get("FRONTEND_URL") or "http://localhost:3000"]
    origins += [o for o in config.get("CORS_EXTRA_ORIGINS") or [] if o not in origins]
    return [o.rstrip("/") for o in origins]

def create_app(config_overrides=None):
    app = Flask(__name__, template_folder="templates")

    # ---- Rate limiting storage configuration ----
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    use_redis = app_env in ("staging", "production")
    storage_uri = os.environ.get("REDIS_URL") if use_redis else "memory://"
    if use_redis and not storage_uri:
        # Hard fail in stage/prod so we never silently run without RL storage
        raise RuntimeError("REDIS_URL is required in staging/production for rate limiting")
    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    app.config.setdefault("RATELIMIT_HEADERS_ENABLED", True)

    # Config: clean, explicit, class-based
    app.config.from_object(get_config())
    app.config["APP_ENV"] = app_env
    if config_overrides:
        app.config.update(config_overrides)

    # --- Required env validation for prod-like envs (staging/production) ---
    def _require(name: str):
        val = os.getenv(name) or app.config.get(name)
        if not val:
            raise RuntimeError(f"Missing required environment variable: {name}")
        return val

    if app_env in ("staging", "production"):
        # Enforce hard requirements at startup (not at import time)
        _require("SECRET_KEY")
        _require("DATABASE_URL")
        _require("FRONTEND_URL")

    # --- Observability & Security ---
    init_logging(app)
    init_sentry(app)

    # Security headers only in staging/production
    if app_env in ("staging", "production"):
        init_security(app)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db, directory="migrations")
    limiter.init_app(app)
    mail.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": _cors_origins(app.config)}},
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
        supports_credentials=True,
    )
    sheets_mirror.init_app(app)

    # Blueprints
    from .blueprints.api import bp as api_bp
    from .blueprints.api.responses import register_error_handlers

    app.register_blueprint(api_bp, url_prefix="/api")
    register_error_handlers(app)

    @limiter.exempt
    @app.get("/health")
    def health():
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, 200

    # CLI commands (ops-grade utilities)
    from .cli import register_cli
    register_cli(app)

    return app
