"""
Account services.
"""
from .auth_service import AuthService, SessionResult

__all__ = [
    "AuthService",
    "SessionResult"
]
