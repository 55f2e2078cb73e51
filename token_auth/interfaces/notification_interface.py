"""
Notification interfaces for dependency abstraction.
"""

from enum import Enum
from typing import Any, Dict, Protocol, runtime_checkable


class NotificationTemplate(str, Enum):
    """Emails the auth core knows how to request."""

    VERIFICATION_EMAIL = "verification_email"
    WELCOME_EMAIL = "welcome_email"
    PASSWORD_RESET_REQUEST = "password_reset_request"
    PASSWORD_RESET_SUCCESS = "password_reset_success"


@runtime_checkable
class INotificationDispatcher(Protocol):
    """Protocol for outbound notification delivery."""

    async def send(
        self,
        template: NotificationTemplate,
        recipient: str,
        context: Dict[str, Any]
    ) -> None:
        """
        Deliver ``template`` rendered with ``context`` to ``recipient``.

        Returns once the provider accepted the message.

        Raises:
            InfrastructureError: If delivery failed
        """
        ...

    async def aclose(self) -> None:
        """Release any held connections."""
        ...
