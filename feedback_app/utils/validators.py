import re
from typing import Any, Dict, List, Optional, Tuple

from feedback_app.errors import ValidationFailed
from feedback_app.models.feedback import (
    EXPERIENCE_TIERS,
    FORM_TYPES,
    FORM_TYPE_CUSTOMER_SATISFACTION,
    RATING_FIELDS,
    TEXT_FIELDS,
)

# Simple, pragmatic patterns
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ORDER_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
# Bounded so int() never hits the interpreter's digit limit
_INT_RE = re.compile(r"\s*-?\d{1,6}\s*")

ORDER_ID_MAX_LEN = 50
NAME_MAX_LEN = 255
TEXT_MAX_LEN = 5000

def clean_str(val: Any) -> Optional[str]:
    """
    Collapse whitespace, trim. Returns None if empty after cleaning.
    Length is NOT truncated here; callers report over-long values instead.
    """
    if val is None or not isinstance(val, str):
        return None
    s = re.sub(r"\s+", " ", val).strip()
    if not s:
        return None
    return s

def is_valid_email(val: Optional[str]) -> bool:
    if not val:
        return True
    return bool(_EMAIL_RE.match(val))

def parse_int(val: Any) -> Optional[int]:
    """Accept ints and digit strings ("5", " 7 "); anything else -> None."""
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    if isinstance(val, float) and val.is_integer():
        return int(val)
    if isinstance(val, str) and _INT_RE.fullmatch(val):
        return int(val)
    return None

def order_id_errors(order_id: Any) -> List[str]:
    if not isinstance(order_id, str) or not order_id.strip():
        return ["order_id is required and must be a non-empty string"]
    errors = []
    if not _ORDER_ID_RE.match(order_id):
        errors.append("order_id must contain only letters, numbers, hyphens, and underscores")
    if len(order_id) > ORDER_ID_MAX_LEN:
        errors.append(f"order_id must not exceed {ORDER_ID_MAX_LEN} characters")
    return errors

def validate_order_trigger(payload: Any) -> Tuple[str, str]:
    """Body of POST /orders/complete -> (order_id, form_type)."""
    if not isinstance(payload, dict):
        raise ValidationFailed(["payload: must be a JSON object"])

    order_id = payload.get("order_id")
    errors = order_id_errors(order_id)

    form_type = payload.get("form_type") or FORM_TYPE_CUSTOMER_SATISFACTION
    if form_type not in FORM_TYPES:
        errors.append("form_type must be one of: " + ", ".join(FORM_TYPES))

    if errors:
        raise ValidationFailed(errors)
    return order_id.strip(), form_type

def validate_answers(payload: Any) -> Dict[str, Any]:
    """
    Check and normalize a submission body (token excluded).
    Raises ValidationFailed with every problem found, not just the first.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed(["payload: must be a JSON object"])

    errors: List[str] = []
    clean: Dict[str, Any] = {}

    name = clean_str(payload.get("name"))
    if not name:
        errors.append("name is required and must be a non-empty string")
    elif len(name) > NAME_MAX_LEN:
        errors.append(f"name must not exceed {NAME_MAX_LEN} characters")
    clean["name"] = name

    experience = payload.get("experience")
    if experience not in EXPERIENCE_TIERS:
        errors.append("experience is required and must be one of: " + ", ".join(EXPERIENCE_TIERS))
    clean["experience"] = experience

    raw_rec = payload.get("recommendation")
    if raw_rec is None or raw_rec == "":
        errors.append("recommendation is required")
        clean["recommendation"] = None
    else:
        rec = parse_int(raw_rec)
        if rec is None or rec < 0 or rec > 10:
            errors.append("recommendation must be a number between 0 and 10")
        clean["recommendation"] = rec

    tip_asked = payload.get("tip_asked")
    if tip_asked not in ("yes", "no"):
        errors.append('tip_asked is required and must be either "yes" or "no"')
    clean["tip_asked"] = tip_asked

    email = clean_str(payload.get("email"))
    if email and not is_valid_email(email):
        errors.append("email must be a valid email address")

    for field in RATING_FIELDS:
        raw = payload.get(field)
        if raw is None or raw == "":
            clean[field] = None
            continue
        value = parse_int(raw)
        if value is None or value < 1 or value > 5:
            errors.append(f"{field} must be a number between 1 and 5")
        clean[field] = value

    for field in TEXT_FIELDS:
        raw = payload.get(field)
        if raw is not None and not isinstance(raw, str):
            errors.append(f"{field} must be a string")
            clean[field] = None
            continue
        text = (raw or "").strip() or None
        if text and len(text) > TEXT_MAX_LEN:
            errors.append(f"{field} must not exceed {TEXT_MAX_LEN} characters")
        clean[field] = text

    if errors:
        raise ValidationFailed(errors)
    return clean
