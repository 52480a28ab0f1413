import hmac
from functools import wraps
from flask import current_app, jsonify, request

ADMIN_KEY_HEADER = "X-Admin-Key"

def require_admin_key(fn):
    """
    Gate staff/integration endpoints on a shared key.
    No ADMIN_API_KEY configured -> open (local development).
    """
    @wraps(fn)
    def _wrap(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_KEY")
        if expected:
            supplied = request.headers.get(ADMIN_KEY_HEADER) or ""
            if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
                return _abort_json(401)
        return fn(*args, **kwargs)
    return _wrap

def _abort_json(code: int):
    error = {401: "unauthorized", 403: "forbidden", 404: "not_found"}[code]
    return jsonify({"success": False, "message": error.replace("_", " ").capitalize(), "error": error}), code
