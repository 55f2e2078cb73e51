"""
Decomposed authentication services following Single Responsibility Principle.
Each service handles one flow of the account lifecycle.
"""

from .authentication_service import AuthenticationService
from .email_verification_service import EmailVerificationService
from .password_service import PasswordService
from .registration_service import RegistrationService
from .token_service import CookieDirectives, IssuedSession, TokenService

__all__ = [
    "AuthenticationService",
    "EmailVerificationService",
    "PasswordService",
    "RegistrationService",
    "CookieDirectives",
    "IssuedSession",
    "TokenService"
]
