"""
Test data factories.
"""
from .account_factory import AccountRecordFactory, DEFAULT_PASSWORD

__all__ = [
    "AccountRecordFactory",
    "DEFAULT_PASSWORD"
]
