"""
Feedback token lifecycle: issue, validate, resolve, invalidate, status.

One outstanding token per order. Re-issuing overwrites the token column, so
the previous link stops matching anything (last issued token wins). A token
that was spent on a submission is remembered in ``consumed_token`` so a
replayed link reports "already submitted" instead of "unknown".
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from flask import current_app
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from feedback_app.errors import AlreadySubmitted, InvalidToken, TokenExpired
from feedback_app.extensions import db
from feedback_app.models import FeedbackRecord, Order
from feedback_app.models.feedback import FORM_TYPE_CUSTOMER_SATISFACTION
from . import tokens
from .store import unit_of_work

_ISSUE_ATTEMPTS = 2


def _log_event(event: str, **fields):
    current_app.logger.info(json.dumps({"event": event, **fields}, default=str))


def build_feedback_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/feedback?token={token}"


def issue(order_id: str, email: Optional[str], base_url: str,
          form_type: str = FORM_TYPE_CUSTOMER_SATISFACTION) -> Dict[str, Any]:
    """Create or refresh the outstanding token for an order."""
    cfg = current_app.config
    for attempt in range(1, _ISSUE_ATTEMPTS + 1):
        token = tokens.generate_token(cfg.get("FEEDBACK_TOKEN_BYTES", tokens.DEFAULT_TOKEN_BYTES))
        expires_at = tokens.expiration_date(cfg.get("FEEDBACK_TOKEN_TTL_HOURS", tokens.DEFAULT_TTL_HOURS))
        link = build_feedback_link(base_url, token)
        try:
            with unit_of_work() as session:
                record = session.execute(
                    select(FeedbackRecord).where(FeedbackRecord.order_id == order_id)
                ).scalar_one_or_none()

                if record is not None and record.is_submitted:
                    raise AlreadySubmitted()

                if record is None:
                    record = FeedbackRecord(order_id=order_id)
                    session.add(record)

                record.email = email
                record.form_type = form_type
                record.feedback_token = token
                record.feedback_link = link
                record.token_expires_at = expires_at
                record.feedback_sent_at = tokens.utcnow()
        except IntegrityError:
            # Lost an insert race on order_id (or a token collision); go again as an update
            if attempt == _ISSUE_ATTEMPTS:
                raise
            current_app.logger.warning("issue(%s) hit a unique constraint; retrying", order_id)
            continue
        break

    _log_event("feedback_token_issued", order_id=order_id, form_type=form_type, expires_at=expires_at.isoformat())
    return {"token": token, "feedback_link": link, "expires_at": expires_at}


def _lookup(session: Session, token: str) -> Tuple[FeedbackRecord, Optional[Order]]:
    if not token:
        raise InvalidToken()
    row = session.execute(
        select(FeedbackRecord, Order)
        .outerjoin(Order, Order.order_id == FeedbackRecord.order_id)
        .where(or_(FeedbackRecord.feedback_token == token, FeedbackRecord.consumed_token == token))
    ).first()
    if row is None:
        raise InvalidToken()
    record, order = row
    if record.is_submitted:
        raise AlreadySubmitted()
    if record.feedback_token != token:
        raise InvalidToken()
    if tokens.is_expired(record.token_expires_at):
        raise TokenExpired()
    return record, order


def validate(token: str) -> Dict[str, Any]:
    """
    Check a token for form access. ``order_id`` is returned for server-side
    use only; the HTTP layer strips it.
    """
    record, order = _lookup(db.session, token)
    return {
        "valid": True,
        "customer": {
            "name": order.username if order else None,
            "email": record.email or (order.email if order else None),
            "mobile": order.mobile if order else None,
            "service_date": order.service_complete_datetime if order else None,
        },
        "form_type": record.form_type,
        "order_id": record.order_id,
    }


def resolve_order_id(token: str) -> str:
    """Fresh re-check right before a write; never trust an earlier validate()."""
    record, _ = _lookup(db.session, token)
    return record.order_id


def invalidate(token: str, session: Optional[Session] = None) -> int:
    """
    Clear a token. Idempotent: an unknown or already-cleared token is a no-op.
    With ``session`` the update joins the caller's unit of work and is not
    committed here.
    """
    stmt = (
        update(FeedbackRecord)
        .where(FeedbackRecord.feedback_token == token)
        .values(feedback_token=None)
        .execution_options(synchronize_session=False)
    )
    if session is not None:
        return session.execute(stmt).rowcount
    with unit_of_work() as s:
        return s.execute(stmt).rowcount


def status(order_id: str) -> Dict[str, Any]:
    record = db.session.execute(
        select(FeedbackRecord).where(FeedbackRecord.order_id == order_id)
    ).scalar_one_or_none()
    if record is None:
        return {"sent": False, "submitted": False}
    return {
        "sent": record.feedback_sent_at is not None,
        "submitted": record.is_submitted,
        "sent_at": record.feedback_sent_at,
        "submitted_at": record.feedback_submitted_at,
        "link": record.feedback_link,
    }
