from typing import Any, Dict, Optional
from datetime import datetime, timezone
import json
import time

from flask import current_app, render_template
from flask_mail import Message

from feedback_app.errors import NotificationFailed
from feedback_app.extensions import db, mail
from feedback_app.models import EmailLog

FEEDBACK_TEMPLATE = "feedback_request"
FEEDBACK_SUBJECT = "Share Your Feedback - Store My Goods"

def _log_structured(event: str, level: str = "info", **fields):
    """
    Minimal structured log: one JSON object per line.
    (No PII beyond recipient email; keep values simple.)
    """
    payload = {"event": event, **fields}
    getattr(current_app.logger, level)(json.dumps(payload, default=str))

def format_order_date(value: Optional[datetime]) -> str:
    if not value:
        return "recently"
    return value.strftime("%d %b %Y")

def send_email(to_email: str, subject: str, template: str, context: Optional[Dict[str, Any]] = None,
               order_id: Optional[str] = None) -> Dict[str, Any]:
    """
    template: basename under templates/email/ without extension.
    Renders both HTML and plaintext, logs the attempt to EmailLog.
    Raises NotificationFailed on transport/auth errors; never swallows them.
    """
    context = context or {}
    html_body = render_template(f"email/{template}.html", **context)
    text_body = render_template(f"email/{template}.txt", **context)

    msg = Message(recipients=[to_email], subject=subject)
    msg.body = text_body
    msg.html = html_body

    # Persist an initial log
    elog = EmailLog(
        order_id=order_id,
        to_email=to_email.lower(),
        template=template,
        subject=subject,
        status="queued",
        meta={},
    )
    db.session.add(elog)
    db.session.commit()

    start = time.perf_counter()
    try:
        mail.send(msg)  # Flask-Mail returns None; the Message-ID header is our handle
    except Exception as ex:
        latency_ms = int((time.perf_counter() - start) * 1000)
        elog.status = "failed"
        elog.meta = {"error": str(ex)}
        db.session.commit()
        _log_structured(
            "mail_send", level="warning",
            template=template, to=to_email.lower(), order_id=order_id,
            outcome="smtp_error", latency_ms=latency_ms, smtp_error=str(ex),
        )
        raise NotificationFailed(detail=str(ex)) from ex

    latency_ms = int((time.perf_counter() - start) * 1000)
    message_id = getattr(msg, "msgId", None)
    elog.status = "sent"
    elog.provider_msg_id = message_id
    db.session.commit()
    _log_structured(
        "mail_send",
        template=template, to=to_email.lower(), order_id=order_id,
        outcome="sent", provider_msg_id=message_id, latency_ms=latency_ms,
    )
    return {"success": True, "message_id": message_id}

def send_feedback_email(to: str, customer_name: Optional[str], feedback_link: str,
                        order_date: Optional[datetime] = None, order_id: Optional[str] = None) -> Dict[str, Any]:
    ctx = {
        "product_name": "Store My Goods",
        "customer_name": customer_name or "there",
        "feedback_link": feedback_link,
        "order_date": format_order_date(order_date),
        "year": datetime.now(timezone.utc).year,
        "ttl_hours": current_app.config.get("FEEDBACK_TOKEN_TTL_HOURS", 72),
    }
    return send_email(
        to_email=to,
        subject=FEEDBACK_SUBJECT,
        template=FEEDBACK_TEMPLATE,
        context=ctx,
        order_id=order_id,
    )
