"""
Database models for the authentication service.
"""
from .base import Base
from .account import Account, AccountRecord

__all__ = [
    "Base",
    "Account",
    "AccountRecord"
]
