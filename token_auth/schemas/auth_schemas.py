"""
Authentication-related Pydantic schemas for request/response validation.

Request fields are optional on purpose: a missing field is reported by the
auth core with the same message as a blank one.
"""
from typing import Optional
from pydantic import BaseModel, Field

from .account_schemas import AccountResponse


class SignupRequest(BaseModel):
    """Signup request schema."""

    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Password")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ana",
                "email": "ana@example.com",
                "password": "pw123456"
            }
        }


class VerifyEmailRequest(BaseModel):
    """Email verification request schema."""

    code: Optional[str] = Field(None, description="Six-digit verification code")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "123456"
            }
        }


class LoginRequest(BaseModel):
    """Login request schema."""

    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "ana@example.com",
                "password": "pw123456"
            }
        }


class ForgotPasswordRequest(BaseModel):
    """Password reset request schema."""

    email: Optional[str] = Field(None, description="Email address")


class ResetPasswordRequest(BaseModel):
    """Password reset confirmation schema."""

    password: Optional[str] = Field(None, description="New password")


class MessageResponse(BaseModel):
    """Acknowledgment envelope."""

    success: bool = Field(True, description="Whether the request succeeded")
    message: str = Field(..., description="Outcome message")


class AuthResponse(MessageResponse):
    """Envelope carrying the affected account."""

    user: AccountResponse = Field(..., description="Account information")


class CheckAuthResponse(BaseModel):
    success: bool = True
    user: AccountResponse


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
