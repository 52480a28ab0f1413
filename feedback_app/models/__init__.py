from .order import Order
from .feedback import (
    FeedbackRecord,
    FORM_TYPES,
    EXPERIENCE_TIERS,
    RATING_FIELDS,
    TEXT_FIELDS,
    ANSWER_FIELDS,
)
from .email_log import EmailLog

__all__ = [
    "Order",
    "FeedbackRecord",
    "EmailLog",
    "FORM_TYPES",
    "EXPERIENCE_TIERS",
    "RATING_FIELDS",
    "TEXT_FIELDS",
    "ANSWER_FIELDS",
]
