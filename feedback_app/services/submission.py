from __future__ import annotations

import json
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import select, update

from feedback_app.errors import (
    AlreadySubmitted,
    EmailMissing,
    OrderNotFound,
    ServiceNotYetCompleted,
    SubmissionConflict,
    ValidationFailed,
)
from feedback_app.extensions import db, sheets_mirror
from feedback_app.models import ANSWER_FIELDS, FORM_TYPES, FeedbackRecord, Order
from feedback_app.models.feedback import FORM_TYPE_CUSTOMER_SATISFACTION
from . import lifecycle, notifications, tokens
from .mirror import flatten_record
from .store import unit_of_work


def _log_event(event: str, level: str = "info", **fields):
    getattr(current_app.logger, level)(json.dumps({"event": event, **fields}, default=str))


def submit(token: str, answers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Record a customer's answers against a token, at most once per order.

    ``answers`` must already be validated (see utils.validators.validate_answers).
    The write is a compare-and-set on (order_id, token, not yet submitted):
    when two requests race with the same token, only one UPDATE matches a row.
    """
    # 1) fresh re-check at write time
    order_id = lifecycle.resolve_order_id(token)

    values = {field: answers.get(field) for field in ANSWER_FIELDS}
    submitted_at = tokens.utcnow()

    # 2-4) conditional update + token invalidation, one transaction
    with unit_of_work() as session:
        result = session.execute(
            update(FeedbackRecord)
            .where(
                FeedbackRecord.order_id == order_id,
                FeedbackRecord.feedback_token == token,
                FeedbackRecord.feedback_submitted_at.is_(None),
            )
            .values(**values, feedback_submitted_at=submitted_at, consumed_token=token)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            _log_event("feedback_submit_conflict", level="warning", order_id=order_id)
            raise SubmissionConflict()
        lifecycle.invalidate(token, session=session)

    _log_event("feedback_submitted", order_id=order_id)

    # 5) after commit: detached, best-effort mirror
    schedule_mirror(order_id)

    return {
        "success": True,
        "message": "Feedback submitted successfully",
        "data": {"submitted_at": submitted_at},
    }


def schedule_mirror(order_id: str):
    """
    Snapshot the committed row and hand it to the sheet mirror.
    Any failure here is logged and dropped; the relational write is authoritative.
    """
    try:
        row = db.session.execute(
            select(FeedbackRecord, Order)
            .outerjoin(Order, Order.order_id == FeedbackRecord.order_id)
            .where(FeedbackRecord.order_id == order_id)
            .execution_options(populate_existing=True)
        ).first()
        if row is None:
            return None
        record, order = row
        return sheets_mirror.dispatch(flatten_record(record, order))
    except Exception:
        current_app.logger.exception("sheets mirror dispatch failed for order %s", order_id)
        return None


def trigger_for_order(order_id: str, form_type: str = FORM_TYPE_CUSTOMER_SATISFACTION,
                      base_url: Optional[str] = None) -> Dict[str, Any]:
    """Order-completion entry point: issue a token and email the link."""
    if form_type not in FORM_TYPES:
        raise ValidationFailed(["form_type must be one of: " + ", ".join(FORM_TYPES)])

    order = db.session.execute(
        select(Order).where(Order.order_id == order_id)
    ).scalar_one_or_none()
    if order is None:
        raise OrderNotFound()
    if not order.service_complete_datetime:
        raise ServiceNotYetCompleted()
    if not order.email:
        raise EmailMissing()

    if lifecycle.status(order_id)["submitted"]:
        raise AlreadySubmitted()

    base_url = base_url or current_app.config.get("FRONTEND_URL", "http://localhost:3000")
    issued = lifecycle.issue(order_id, order.email, base_url, form_type)

    # NotificationFailed propagates: a customer without the link cannot respond
    sent = notifications.send_feedback_email(
        to=order.email,
        customer_name=order.username,
        feedback_link=issued["feedback_link"],
        order_date=order.service_complete_datetime,
        order_id=order_id,
    )

    return {
        "order_id": order_id,
        "customer_email": order.email,
        "feedback_link": issued["feedback_link"],
        "token": issued["token"],
        "expires_at": issued["expires_at"],
        "email_sent": True,
        "message_id": sent.get("message_id"),
    }
