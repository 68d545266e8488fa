"""
Domain errors raised by services and mapped to HTTP responses in portal.main.
"""
from typing import Optional


class PortalError(Exception):
    """Base class for errors the API reports to callers"""

    status_code = 500
    code = "PortalError"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(PortalError):
    """Malformed user input. Surfaced verbatim, never retried."""

    status_code = 400
    code = "InvalidInput"


class NotFoundError(PortalError):
    status_code = 404
    code = "NotFound"


class AuthorizationError(PortalError):
    """Missing or invalid credential, or not a member of the workspace"""

    status_code = 401
    code = "Unauthorized"


class ForbiddenError(AuthorizationError):
    status_code = 403
    code = "Forbidden"


class DependencyError(PortalError):
    """Persistence, identity or email provider failure"""

    status_code = 502
    code = "DependencyError"


class EmailDeliveryError(DependencyError):
    code = "EmailDeliveryError"
