from datetime import date, datetime
from typing import Any

from flask import current_app, jsonify

from feedback_app.errors import FeedbackError, ValidationFailed


def _jsonable(value: Any) -> Any:
    # ISO-8601 instead of Flask's RFC 822 default for datetimes
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _debug_details_enabled() -> bool:
    return (current_app.config.get("APP_ENV") or "").lower() == "development"


def ok(message: str, status: int = 200, **payload):
    body = {"success": True, "message": message, **payload}
    return jsonify(_jsonable(body)), status


def fail(message: str, status: int, error: str, detail: str = None, **payload):
    body = {"success": False, "message": message, "error": error, **payload}
    if detail and _debug_details_enabled():
        body["detail"] = detail
    return jsonify(_jsonable(body)), status


def error_response(err: FeedbackError, **payload):
    """FeedbackError -> envelope; status comes from the error's kind."""
    if isinstance(err, ValidationFailed):
        payload.setdefault("errors", err.errors)
    return fail(err.message, err.status_code, err.code, detail=err.detail, kind=err.kind.value, **payload)


def register_error_handlers(app):
    @app.errorhandler(FeedbackError)
    def _feedback_error(err):
        if err.status_code >= 500:
            app.logger.error("%s: %s (%s)", err.code, err.message, err.detail)
        return error_response(err)

    @app.errorhandler(404)
    def _not_found(e):
        return fail("Route not found", 404, "not_found")

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return fail("Method not allowed", 405, "method_not_allowed")

    # 429 Too Many Requests — JSON with Retry-After
    @app.errorhandler(429)
    def _too_many_requests(e):
        retry_after = getattr(e, "retry_after", None)
        resp, status = fail("Too many requests", 429, "rate_limited")
        if retry_after is not None:
            resp.headers["Retry-After"] = str(int(retry_after))
        return resp, status

    @app.errorhandler(500)
    def _server_error(e):
        original = getattr(e, "original_exception", None) or e
        return fail("Internal server error", 500, "server_error", detail=str(original))
