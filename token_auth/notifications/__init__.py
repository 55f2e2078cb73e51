"""
Outbound email: templates and dispatcher implementations.
"""
from .dispatchers import (
    MailtrapNotificationDispatcher,
    LoggingNotificationDispatcher,
    build_notification_dispatcher
)
from .templates import RenderedEmail, render

__all__ = [
    "MailtrapNotificationDispatcher",
    "LoggingNotificationDispatcher",
    "build_notification_dispatcher",
    "RenderedEmail",
    "render"
]
