"""
Error taxonomy for the auth service.

Every error carries the HTTP status and the user-facing message it maps to, so
the transport layer renders them 1:1 without inspecting the cause. Messages for
credential and token failures do not say which check failed.
"""
from typing import Optional

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class AuthServiceError(Exception):
    """Base class for all errors raised by the auth core."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    status_code = HTTP_400_BAD_REQUEST
    default_message = "All fields are required"


class ConflictError(AuthServiceError):
    status_code = HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class InvalidCredentialsError(AuthServiceError):
    status_code = HTTP_400_BAD_REQUEST
    default_message = "Invalid email or password"


class InvalidOrExpiredError(AuthServiceError):
    status_code = HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired token"


class NotFoundError(AuthServiceError):
    status_code = HTTP_400_BAD_REQUEST
    default_message = "User not found"


class UnauthorizedError(AuthServiceError):
    status_code = HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InfrastructureError(AuthServiceError):
    """Store, hashing or notification failure."""

    status_code = HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


class ConcurrentUpdateError(InfrastructureError):
    """A conditional save matched no row because the account changed underneath it."""

    default_message = "Account was modified concurrently"
