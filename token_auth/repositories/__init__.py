"""
Repository implementations following the Repository pattern.
"""

from .account_repository import AccountRepository

__all__ = [
    "AccountRepository"
]
