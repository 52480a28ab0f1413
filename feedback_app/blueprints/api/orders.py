from flask import request

from feedback_app.services import lifecycle, submission
from feedback_app.services.policy import require_admin_key
from feedback_app.utils.validators import order_id_errors, validate_order_trigger
from feedback_app.errors import ValidationFailed
from . import bp
from .responses import ok


@bp.post("/orders/complete")
@require_admin_key
def complete_order():
    """Order management calls this once a service is done: issue token + email link."""
    order_id, form_type = validate_order_trigger(request.get_json(silent=True))
    result = submission.trigger_for_order(order_id, form_type)
    return ok("Feedback request sent successfully", data=result)


@bp.get("/orders/<order_id>/feedback-status")
@require_admin_key
def feedback_status(order_id: str):
    errors = order_id_errors(order_id)
    if errors:
        raise ValidationFailed(errors)
    return ok("Feedback status", data=lifecycle.status(order_id))
