from flask import Blueprint

bp = Blueprint("api", __name__)

# Import submodules so their @bp.route decorators register
from . import orders    # noqa: E402,F401  /api/orders/*
from . import feedback  # noqa: E402,F401  /api/feedback/* (public, token-gated)
from . import admin     # noqa: E402,F401  /api/admin/*
