import pytest

from feedback_app.errors import FeedbackNotFound, OrderNotFound
from feedback_app.models import EXPERIENCE_TIERS, FORM_TYPES
from feedback_app.services import lifecycle, statistics, submission
from feedback_app.utils.validators import validate_answers


def _submit_for(app, make_order, answers, order_id, form_type, **answer_overrides):
    make_order(order_id, email=f"{order_id.lower()}@b.com")
    with app.app_context():
        token = lifecycle.issue(order_id, f"{order_id.lower()}@b.com", "http://frontend.test", form_type)["token"]
        submission.submit(token, validate_answers(answers(**answer_overrides)))


def test_empty_store(app):
    with app.app_context():
        stats = statistics.get_statistics()
        assert stats["total_feedbacks"] == 0
        assert stats["avg_recommendation"] is None
        assert stats["experience"] == {tier: 0 for tier in EXPERIENCE_TIERS}

        forms = statistics.get_form_statistics()
        assert forms["total_forms"] == len(FORM_TYPES) == 5
        assert [s["form_type"] for s in forms["form_statistics"]] == list(FORM_TYPES)
        assert all(s["response_count"] == 0 for s in forms["form_statistics"])
        assert forms["total_responses"] == 0


def test_counts_only_submitted_rows(app, make_order, answers):
    _submit_for(app, make_order, answers, "ORD-1", "churn_feedback", experience="good", recommendation=8, tip_asked="yes")
    _submit_for(app, make_order, answers, "ORD-2", "churn_feedback", experience="good", recommendation=5)
    _submit_for(app, make_order, answers, "ORD-3", "cutomer_feedback", experience="very-poor", recommendation=0)
    make_order("ORD-4")
    with app.app_context():
        lifecycle.issue("ORD-4", "a@b.com", "http://frontend.test", "ticket_closure")

        stats = statistics.get_statistics()
        assert stats["total_feedbacks"] == 4
        assert stats["sent_feedbacks"] == 4
        assert stats["submitted_feedbacks"] == 3
        assert stats["avg_recommendation"] == pytest.approx(4.33)
        assert stats["experience"]["good"] == 2
        assert stats["experience"]["very-poor"] == 1
        assert stats["experience"]["excellent"] == 0
        assert stats["tip_asked_yes"] == 1
        assert stats["tip_asked_no"] == 2

        forms = {s["form_type"]: s["response_count"] for s in statistics.get_form_statistics()["form_statistics"]}
        assert forms == {
            "ticket_closure": 0,
            "customer_satisfaction": 0,
            "cutomer_feedback": 1,
            "churn_feedback": 2,
            "relocation_feedback": 0,
        }


def test_lookups_join_order_fields(app, make_order, answers):
    _submit_for(app, make_order, answers, "ORD-7", "relocation_feedback")
    with app.app_context():
        rows = statistics.list_feedback()
        assert len(rows) == 1
        assert rows[0]["order_id"] == "ORD-7"
        assert rows[0]["mobile"] == "9999999999"
        detail = statistics.get_feedback("ORD-7")
        assert detail["form_type"] == "relocation_feedback"
        assert detail["recommendation"] == 9
        assert statistics.get_order("ORD-7")["email"] == "ord-7@b.com"
        with pytest.raises(FeedbackNotFound):
            statistics.get_feedback("ORD-8")
        with pytest.raises(OrderNotFound):
            statistics.get_order("ORD-8")
