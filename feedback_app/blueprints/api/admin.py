from feedback_app.services import statistics
from feedback_app.services.policy import require_admin_key
from . import bp
from .responses import ok


@bp.get("/admin/statistics")
@require_admin_key
def admin_statistics():
    return ok("Statistics", data=statistics.get_statistics())


@bp.get("/admin/form-statistics")
@require_admin_key
def admin_form_statistics():
    return ok("Form statistics", data=statistics.get_form_statistics())


@bp.get("/admin/feedback")
@require_admin_key
def admin_feedback_list():
    rows = statistics.list_feedback()
    return ok("Feedback", count=len(rows), data=rows)


@bp.get("/admin/feedback/<order_id>")
@require_admin_key
def admin_feedback_detail(order_id: str):
    return ok("Feedback", data=statistics.get_feedback(order_id))


@bp.get("/admin/orders/<order_id>")
@require_admin_key
def admin_order_detail(order_id: str):
    return ok("Order", data=statistics.get_order(order_id))
