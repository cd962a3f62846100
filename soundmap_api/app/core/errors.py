"""
Error taxonomy shared by services and endpoints.

Services raise these exceptions; the application registers a single
handler (see ``main.create_app``) that turns any ``ApiError`` into a
plain text response carrying ``detail`` and ``status_code``.
"""

from fastapi import status


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Unauthorized(ApiError):
    """Missing or invalid credentials, or insufficient role/ownership."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class ValidationFailed(BadRequest):
    """Raised by ``Validation.raise_for_errors`` when a payload is rejected."""

    default_detail = "Validation failed"


class Internal(ApiError):
    pass
