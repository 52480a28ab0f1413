from __future__ import annotations

import enum
from typing import List, Optional


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PRECONDITION = "precondition"
    EXPIRED = "expired"
    INVALID = "invalid"
    INFRA = "infra"


# Boundary mapping; handlers never look at message text
STATUS_BY_KIND = {
    ErrorKind.INVALID: 400,
    ErrorKind.PRECONDITION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.EXPIRED: 410,
    ErrorKind.INFRA: 502,
}


class FeedbackError(RuntimeError):
    """Base for every error the feedback services raise on purpose."""

    kind: ErrorKind = ErrorKind.INFRA
    message: str = "Feedback request failed"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, 500)

    @property
    def code(self) -> str:
        # snake_case class name, e.g. "token_expired"
        name = type(self).__name__
        return "".join("_" + c.lower() if c.isupper() else c for c in name).lstrip("_")


class InvalidToken(FeedbackError):
    kind = ErrorKind.INVALID
    message = "Invalid or unknown feedback token"


class TokenExpired(FeedbackError):
    kind = ErrorKind.EXPIRED
    message = "Feedback token has expired"


class AlreadySubmitted(FeedbackError):
    kind = ErrorKind.CONFLICT
    message = "Feedback already submitted for this order"


class SubmissionConflict(FeedbackError):
    kind = ErrorKind.CONFLICT
    message = "Feedback token was already used"


class OrderNotFound(FeedbackError):
    kind = ErrorKind.NOT_FOUND
    message = "Order not found"


class FeedbackNotFound(FeedbackError):
    kind = ErrorKind.NOT_FOUND
    message = "Feedback not found for this order"


class ServiceNotYetCompleted(FeedbackError):
    kind = ErrorKind.PRECONDITION
    message = "Service not yet completed for this order"


class EmailMissing(FeedbackError):
    kind = ErrorKind.PRECONDITION
    message = "Customer email not found"


class ValidationFailed(FeedbackError):
    kind = ErrorKind.PRECONDITION
    message = "Validation failed"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = list(errors)


class NotificationFailed(FeedbackError):
    kind = ErrorKind.INFRA
    message = "Failed to send feedback email"
