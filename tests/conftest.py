import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

from datetime import timedelta

import pytest
from feedback_app import create_app
from feedback_app.extensions import db, sheets_mirror
from feedback_app.models import Order
from feedback_app.services import lifecycle, tokens

@pytest.fixture(scope="session")
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "MAIL_SUPPRESS_SEND": True,
        "FRONTEND_URL": "http://frontend.test",
        "ADMIN_API_KEY": None,
        "RATELIMIT_ENABLED": False,
    })
    with app.app_context():
        db.create_all()
    yield app
    sheets_mirror.shutdown()
    with app.app_context():
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()

@pytest.fixture()
def make_order(app):
    def _make(order_id="ORD-100", email="a@b.com", username="Asha", completed=True, **extra):
        with app.app_context():
            order = Order(
                order_id=order_id,
                email=email,
                username=username,
                mobile=extra.pop("mobile", "9999999999"),
                service_complete_datetime=(tokens.utcnow() - timedelta(hours=2)) if completed else None,
                **extra,
            )
            db.session.add(order)
            db.session.commit()
            return order_id
    return _make

@pytest.fixture()
def issued_token(app, make_order):
    """Order ORD-100 with an outstanding token; returns the token string."""
    make_order()
    with app.app_context():
        return lifecycle.issue("ORD-100", "a@b.com", "http://frontend.test")["token"]

class FakeAppender:
    def __init__(self, fail_times=0):
        self.rows = []
        self.calls = 0
        self.fail_times = fail_times

    def append(self, flat_record):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError("sheets unavailable")
        self.rows.append(dict(flat_record))

@pytest.fixture()
def fake_sheet(monkeypatch):
    fake = FakeAppender()
    monkeypatch.setattr(sheets_mirror, "appender", fake)
    monkeypatch.setattr(sheets_mirror, "backoff_seconds", 0)
    return fake

def valid_answers(**overrides):
    data = {
        "name": "Asha Rao",
        "experience": "excellent",
        "buddy_on_time": 5,
        "buddy_courteous": "4",
        "recommendation": 9,
        "tip_asked": "no",
        "liked": "Careful packing",
        "improvement": "",
    }
    data.update(overrides)
    return data

@pytest.fixture()
def answers():
    """Factory: answers(**overrides) -> a valid submission body."""
    return valid_answers
