"""
Failure taxonomy for the order portal.

Every error carries the localized message shown to the caller and the HTTP
status it maps to. Route handlers convert anything below 500 straight into a
``{success: false, message}`` response; 500-class errors are logged and
answered with the endpoint's own generic message.
"""


class PortalError(Exception):
    """Base class for business failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthFailure(PortalError):
    """Bad credentials or unknown user."""
    status_code = 400


class Forbidden(PortalError):
    """Wrong access level or branch mismatch."""
    status_code = 403


class ValidationFailure(PortalError):
    """Missing or malformed request data."""
    status_code = 400


class NoMatchingRows(ValidationFailure):
    """A mutation found nothing to act on in the current month."""


class StoreUnavailable(PortalError):
    """Transport or auth failure talking to the spreadsheet service."""
    status_code = 500


class MissingConfiguration(PortalError):
    """A required configuration cell or setting is blank."""
    status_code = 500
