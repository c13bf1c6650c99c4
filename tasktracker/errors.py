"""Error taxonomy and its translation to HTTP error responses.

Services raise the exceptions below; only the exception handlers in
``tasktracker.main`` turn them into responses, through ``error_response``.
"""

from typing import Iterable, Optional, Tuple, Type

from .schemas.error import ErrorResponse


class TaskTrackerError(Exception):
    """Base class for every error the service layer raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrackerError):
    """A field value is malformed or outside its accepted set."""

    @classmethod
    def not_in(cls, field: str, accepted: Iterable[str]) -> "ValidationError":
        return cls(f"Invalid {field}. Accepted values: [{', '.join(accepted)}]")


class NotFoundError(TaskTrackerError):
    """The referenced entity does not exist."""


class DuplicateError(TaskTrackerError):
    """Username or email already registered to another user."""


class PersistenceFailure(TaskTrackerError):
    """The store rejected an operation or touched zero rows unexpectedly."""


class AuditFailure(TaskTrackerError):
    """Appending a history entry failed. Never reaches an HTTP client."""

    def __init__(self, message: str, task_id: Optional[int] = None, action: Optional[str] = None):
        super().__init__(message)
        self.task_id = task_id
        self.action = action


class AuthenticationError(TaskTrackerError):
    """Missing, invalid or expired credentials."""


class ForbiddenError(TaskTrackerError):
    """Caller acts on data owned by another user."""


# Most specific first; the first isinstance match wins.
ERROR_TABLE: Tuple[Tuple[Type[Exception], str, int], ...] = (
    (ValidationError, "Validation Error", 400),
    (DuplicateError, "Bad Request", 400),
    (NotFoundError, "Not Found", 404),
    (AuthenticationError, "Unauthorized", 401),
    (ForbiddenError, "Forbidden", 403),
    (PersistenceFailure, "Internal Server Error", 500),
)

INTERNAL_ERROR = ("Internal Server Error", 500)
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred."

_CATEGORY_BY_STATUS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
}


def classify(exc: Exception) -> Tuple[str, int]:
    """Return ``(category, status)`` for an exception."""
    for exc_type, category, status in ERROR_TABLE:
        if isinstance(exc, exc_type):
            return category, status
    return INTERNAL_ERROR


def error_response(exc: Exception) -> Tuple[int, ErrorResponse]:
    """Build the ``{error, message, status}`` body for an exception.

    Messages of server-side failures are replaced with a generic text so
    store or driver details never reach the client.
    """
    category, status = classify(exc)
    if status >= 500:
        message = INTERNAL_ERROR_MESSAGE
    else:
        message = getattr(exc, "message", None) or str(exc)
    return status, ErrorResponse(error=category, message=message, status=status)


def category_for_status(status: int) -> str:
    """Category for a framework-raised status; unlisted 4xx read as Bad Request."""
    if status in _CATEGORY_BY_STATUS:
        return _CATEGORY_BY_STATUS[status]
    return "Internal Server Error" if status >= 500 else "Bad Request"
