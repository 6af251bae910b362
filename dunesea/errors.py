"""Exceptions raised by the site's domain layer.

Each carries the HTTP status the web layer answers with; the message is
what the browser shows in its toast.
"""


class SiteError(Exception):
    """Base class for errors reported back to the client."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingFieldError(SiteError):
    """A required field was absent or empty."""
    status_code = 400


class InvalidFieldError(SiteError):
    """A field was present but could not be interpreted."""
    status_code = 400


class AdminAuthError(SiteError):
    """Raised when an admin action is attempted without the shared PIN."""
    status_code = 401


class NotFoundError(SiteError):
    status_code = 404


class SlotConflictError(SiteError):
    """The requested time slot is already taken."""
    status_code = 409


class PayloadTooLargeError(SiteError):
    status_code = 413
