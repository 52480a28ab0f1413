import pytest
from sqlalchemy import select

from feedback_app.errors import (
    AlreadySubmitted,
    EmailMissing,
    NotificationFailed,
    OrderNotFound,
    ServiceNotYetCompleted,
    SubmissionConflict,
    ValidationFailed,
)
from feedback_app.extensions import db, mail
from feedback_app.models import EmailLog, FeedbackRecord
from feedback_app.services import lifecycle, submission
from feedback_app.utils.validators import validate_answers

def test_scenario_trigger_validate_submit_replay(app, make_order, answers):
    make_order("ORD-100", email="a@b.com")
    with app.app_context():
        with mail.record_messages() as outbox:
            out = submission.trigger_for_order("ORD-100", "customer_satisfaction")
        token = out["token"]
        assert token in out["feedback_link"]
        assert out["email_sent"] is True
        assert len(outbox) == 1
        assert outbox[0].recipients == ["a@b.com"]
        assert out["feedback_link"] in outbox[0].body
        assert out["feedback_link"] in outbox[0].html

        v = lifecycle.validate(token)
        assert v["valid"] is True and v["customer"]["email"] == "a@b.com"

        assert submission.submit(token, validate_answers(answers()))["success"] is True
        with pytest.raises((AlreadySubmitted, SubmissionConflict)):
            submission.submit(token, validate_answers(answers()))
        with pytest.raises(AlreadySubmitted):
            lifecycle.validate(token)

def test_trigger_before_completion_issues_nothing(app, make_order):
    make_order("ORD-200", completed=False)
    with app.app_context():
        with pytest.raises(ServiceNotYetCompleted):
            submission.trigger_for_order("ORD-200")
        assert db.session.query(FeedbackRecord).count() == 0

def test_trigger_precondition_failures(app, make_order):
    make_order("ORD-300", email=None)
    with app.app_context():
        with pytest.raises(OrderNotFound):
            submission.trigger_for_order("NOPE-1")
        with pytest.raises(EmailMissing):
            submission.trigger_for_order("ORD-300")
        with pytest.raises(ValidationFailed):
            submission.trigger_for_order("ORD-300", "nps_survey")

def test_trigger_after_submission_rejected(app, make_order, answers):
    make_order()
    with app.app_context():
        token = submission.trigger_for_order("ORD-100")["token"]
        submission.submit(token, validate_answers(answers()))
        with pytest.raises(AlreadySubmitted):
            submission.trigger_for_order("ORD-100")

def test_trigger_again_resends_with_fresh_token(app, make_order):
    make_order()
    with app.app_context():
        first = submission.trigger_for_order("ORD-100")["token"]
        second = submission.trigger_for_order("ORD-100", "relocation_feedback")["token"]
        assert first != second
        rec = db.session.execute(select(FeedbackRecord)).scalar_one()
        assert rec.feedback_token == second
        assert rec.form_type == "relocation_feedback"

def test_notification_failure_is_surfaced_and_logged(app, make_order, monkeypatch):
    make_order()

    def _smtp_down(msg):
        raise OSError("connection refused")
    monkeypatch.setattr(mail, "send", _smtp_down)

    with app.app_context():
        with pytest.raises(NotificationFailed) as exc:
            submission.trigger_for_order("ORD-100")
        assert "connection refused" in exc.value.detail
        log = db.session.execute(select(EmailLog)).scalar_one()
        assert log.status == "failed"
        assert log.order_id == "ORD-100"
        # token was issued; a retry of the trigger simply rotates it
        assert lifecycle.status("ORD-100")["sent"] is True

def test_successful_send_is_logged(app, make_order):
    make_order()
    with app.app_context():
        submission.trigger_for_order("ORD-100")
        log = db.session.execute(select(EmailLog)).scalar_one()
        assert log.status == "sent"
        assert log.template == "feedback_request"
        assert log.to_email == "a@b.com"
