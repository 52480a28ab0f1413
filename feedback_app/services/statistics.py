from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import case, func, select

from feedback_app.errors import FeedbackNotFound, OrderNotFound
from feedback_app.extensions import db
from feedback_app.models import EXPERIENCE_TIERS, FORM_TYPES, FeedbackRecord, Order


def _count_when(cond):
    return func.count(case((cond, 1)))


def get_statistics() -> Dict[str, Any]:
    """Headline numbers for the admin dashboard."""
    submitted = FeedbackRecord.feedback_submitted_at.isnot(None)
    row = db.session.execute(
        select(
            func.count(FeedbackRecord.id),
            _count_when(FeedbackRecord.feedback_sent_at.isnot(None)),
            _count_when(submitted),
            func.avg(case((submitted, FeedbackRecord.recommendation))),
            _count_when(FeedbackRecord.tip_asked == "yes"),
            _count_when(FeedbackRecord.tip_asked == "no"),
        )
    ).one()
    total, sent, submitted_count, avg_rec, tip_yes, tip_no = row

    tiers = dict(
        db.session.execute(
            select(FeedbackRecord.experience, func.count(FeedbackRecord.id))
            .where(submitted, FeedbackRecord.experience.isnot(None))
            .group_by(FeedbackRecord.experience)
        ).all()
    )

    return {
        "total_feedbacks": total,
        "sent_feedbacks": sent,
        "submitted_feedbacks": submitted_count,
        "avg_recommendation": round(float(avg_rec), 2) if avg_rec is not None else None,
        "experience": {tier: int(tiers.get(tier, 0)) for tier in EXPERIENCE_TIERS},
        "tip_asked_yes": tip_yes,
        "tip_asked_no": tip_no,
    }


def get_form_statistics() -> Dict[str, Any]:
    """Submitted responses per known form type; unknown/missing types report 0."""
    counts = dict(
        db.session.execute(
            select(FeedbackRecord.form_type, func.count(FeedbackRecord.id))
            .where(
                FeedbackRecord.form_type.isnot(None),
                FeedbackRecord.feedback_submitted_at.isnot(None),
            )
            .group_by(FeedbackRecord.form_type)
        ).all()
    )
    form_stats = [{"form_type": t, "response_count": int(counts.get(t, 0))} for t in FORM_TYPES]
    return {
        "total_forms": len(FORM_TYPES),
        "form_statistics": form_stats,
        "total_responses": sum(s["response_count"] for s in form_stats),
    }


def _with_order(record: FeedbackRecord, order) -> Dict[str, Any]:
    data = record.to_dict()
    data.update(
        username=order.username if order else None,
        mobile=order.mobile if order else None,
        address=order.address if order else None,
        service_start_datetime=order.service_start_datetime.isoformat() if order and order.service_start_datetime else None,
    )
    return data


def list_feedback() -> List[Dict[str, Any]]:
    rows = db.session.execute(
        select(FeedbackRecord, Order)
        .outerjoin(Order, Order.order_id == FeedbackRecord.order_id)
        .order_by(FeedbackRecord.created_at.desc(), FeedbackRecord.id.desc())
    ).all()
    return [_with_order(rec, order) for (rec, order) in rows]


def get_feedback(order_id: str) -> Dict[str, Any]:
    row = db.session.execute(
        select(FeedbackRecord, Order)
        .outerjoin(Order, Order.order_id == FeedbackRecord.order_id)
        .where(FeedbackRecord.order_id == order_id)
    ).first()
    if row is None:
        raise FeedbackNotFound()
    return _with_order(*row)


def get_order(order_id: str) -> Dict[str, Any]:
    order = db.session.execute(
        select(Order).where(Order.order_id == order_id)
    ).scalar_one_or_none()
    if order is None:
        raise OrderNotFound()
    return order.to_dict()
