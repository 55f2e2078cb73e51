"""
Interface definitions for the auth core's collaborators.
These Protocol classes define contracts so the store and the email channel can
be injected and replaced in tests.
"""

from .repository_interface import IAccountRepository
from .notification_interface import INotificationDispatcher, NotificationTemplate

__all__ = [
    "IAccountRepository",
    "INotificationDispatcher",
    "NotificationTemplate"
]
