"""
Pydantic schemas for request/response validation.
"""
from .account_schemas import AccountResponse
from .auth_schemas import (
    SignupRequest,
    VerifyEmailRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
    AuthResponse,
    CheckAuthResponse,
    ErrorResponse
)

__all__ = [
    "AccountResponse",
    "SignupRequest",
    "VerifyEmailRequest",
    "LoginRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "AuthResponse",
    "CheckAuthResponse",
    "ErrorResponse"
]
