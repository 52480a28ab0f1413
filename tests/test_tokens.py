import re
from datetime import datetime, timedelta, timezone

from feedback_app.services import tokens

def test_generate_token_is_hex_of_requested_length():
    t = tokens.generate_token(8)
    assert re.fullmatch(r"[0-9a-f]{16}", t)
    assert len(tokens.generate_token(32)) == 64

def test_generate_token_does_not_repeat():
    seen = {tokens.generate_token() for _ in range(500)}
    assert len(seen) == 500

def test_expiration_date_default_window():
    before = datetime.now(timezone.utc)
    exp = tokens.expiration_date()
    assert timedelta(hours=71, minutes=59) < exp - before <= timedelta(hours=72, seconds=1)

def test_is_expired_strict_boundary():
    now = datetime.now(timezone.utc)
    assert tokens.is_expired(now - timedelta(seconds=1)) is True
    assert tokens.is_expired(now + timedelta(seconds=5)) is False

def test_is_expired_treats_naive_as_utc_and_none_as_expired():
    naive_future = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=5)
    assert tokens.is_expired(naive_future) is False
    assert tokens.is_expired(None) is True
