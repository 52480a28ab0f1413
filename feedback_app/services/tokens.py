import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

DEFAULT_TOKEN_BYTES = 8
DEFAULT_TTL_HOURS = 72

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _aware(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)

def generate_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    """Hex token from the OS CSPRNG; 8 bytes -> 16 hex chars."""
    return secrets.token_hex(byte_length)

def expiration_date(hours: int = DEFAULT_TTL_HOURS) -> datetime:
    return utcnow() + timedelta(hours=hours)

def is_expired(timestamp: Optional[datetime]) -> bool:
    """
    Strict now > timestamp. A missing expiry is treated as expired so a
    half-written row can never grant access.
    """
    if timestamp is None:
        return True
    return utcnow() > _aware(timestamp)
