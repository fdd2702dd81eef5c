"""
Error taxonomy shared by the service and API layers.

Every error carries a stable, machine-readable `kind` and the HTTP status it
maps to. The human readable message is kept for compatibility with clients
that only display `message`.
"""


class GroupActionsError(Exception):
    """Base exception for all errors surfaced to API callers."""

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.kind
        super().__init__(self.message)


class Unauthenticated(GroupActionsError):
    """Authentication required."""

    kind = "unauthenticated"
    status_code = 401


class Forbidden(GroupActionsError):
    """You do not have permission to do this."""

    kind = "forbidden"
    status_code = 403


class ValidationFailed(GroupActionsError):
    """The request was missing fields or contained malformed values."""

    kind = "validation"
    status_code = 400


class InvalidDateRange(ValidationFailed):
    """EndDate cannot be earlier than StartDate"""

    kind = "invalid_date_range"


class UnsupportedMediaType(ValidationFailed):
    """Only jpg/png are acceptable"""

    kind = "unsupported_media_type"


class NotFound(GroupActionsError):
    """The requested resource does not exist."""

    kind = "not_found"
    status_code = 404


class Conflict(GroupActionsError):
    """The request conflicts with the current state of the resource."""

    kind = "conflict"
    status_code = 409


class Internal(GroupActionsError):
    """An internal error occurred."""

    kind = "internal"
    status_code = 500
