from flask import request

from feedback_app.errors import FeedbackError, InvalidToken, ValidationFailed
from feedback_app.extensions import limiter
from feedback_app.services import lifecycle, submission
from feedback_app.utils.validators import validate_answers
from . import bp
from .responses import error_response, ok


@bp.get("/feedback/validate/<token>")
@limiter.limit("30 per minute; 300 per hour")
def validate_token(token: str):
    try:
        result = lifecycle.validate(token)
    except FeedbackError as err:
        return error_response(err, valid=False)
    # order_id stays server-side
    return ok("Token is valid", valid=True, customer=result["customer"], form_type=result["form_type"])


@bp.post("/feedback/submit")
@limiter.limit("10 per minute; 100 per hour")
def submit_feedback():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationFailed(["payload: must be a JSON object"])

    token = (payload.get("token") or "").strip() if isinstance(payload.get("token"), str) else ""
    if not token:
        raise InvalidToken("Token is required")

    # Shape/range checks before any store access
    answers = validate_answers({k: v for k, v in payload.items() if k != "token"})

    result = submission.submit(token, answers)
    return ok(result["message"], data=result["data"])
