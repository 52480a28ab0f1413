from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail
from flask_cors import CORS

from feedback_app.services.mirror import SheetsMirror

db = SQLAlchemy()
migrate = Migrate()

# Public token endpoints are anonymous: key on client IP.
# Storage is configured in create_app() via limiter.init_app(...).
limiter = Limiter(key_func=get_remote_address)

mail = Mail()

# Browser frontend calls /api/* cross-origin; origins set in create_app()
cors = CORS()

# Detached Google Sheets writer; configured from app.config in init_app
sheets_mirror = SheetsMirror()
