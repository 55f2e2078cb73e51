"""
Notification dispatcher implementations.

``MailtrapNotificationDispatcher`` delivers through Mailtrap's send API;
``LoggingNotificationDispatcher`` only logs and is meant for local development.
"""
from typing import Any, Dict, Optional
import httpx
import structlog

from ..core.config import Settings
from ..core.exceptions import InfrastructureError
from ..interfaces.notification_interface import INotificationDispatcher, NotificationTemplate
from .templates import render

logger = structlog.get_logger()


class MailtrapNotificationDispatcher(INotificationDispatcher):
    """Sends transactional email through the Mailtrap HTTP API."""

    def __init__(
        self,
        api_token: str,
        sender_email: str,
        sender_name: str,
        api_url: str = "https://send.api.mailtrap.io/api/send",
        welcome_template_uuid: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_url = api_url
        self.sender = {"email": sender_email, "name": sender_name}
        self.welcome_template_uuid = welcome_template_uuid
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5)
        )
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    def build_payload(
        self,
        template: NotificationTemplate,
        recipient: str,
        context: Dict[str, Any]
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [{"email": recipient}],
        }

        # The welcome mail can be owned by a template stored in Mailtrap itself
        if template == NotificationTemplate.WELCOME_EMAIL and self.welcome_template_uuid:
            payload["template_uuid"] = self.welcome_template_uuid
            payload["template_variables"] = {
                "company_info_name": context.get("company_name", ""),
                "name": context.get("name", ""),
            }
            return payload

        email = render(template, context)
        payload.update(subject=email.subject, html=email.html, category=email.category)
        return payload

    async def send(
        self,
        template: NotificationTemplate,
        recipient: str,
        context: Dict[str, Any]
    ) -> None:
        payload = self.build_payload(template, recipient, context)
        label = template.value.replace("_", " ")

        try:
            response = await self.http_client.post(self.api_url, json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("Email provider timeout", template=template.value)
            raise InfrastructureError(f"Failed to send {label}: provider timeout") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Email provider rejected message",
                template=template.value,
                status_code=e.response.status_code
            )
            raise InfrastructureError(
                f"Failed to send {label}: provider returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Email delivery failed", template=template.value, error=str(e))
            raise InfrastructureError(f"Failed to send {label}: {e}") from e

        logger.info("Email sent successfully", template=template.value)

    async def aclose(self) -> None:
        await self.http_client.aclose()


class LoggingNotificationDispatcher(INotificationDispatcher):
    """Renders messages and writes them to the log instead of sending them."""

    async def send(
        self,
        template: NotificationTemplate,
        recipient: str,
        context: Dict[str, Any]
    ) -> None:
        email = render(template, context)
        logger.info(
            "Email delivery skipped (log provider)",
            template=template.value,
            subject=email.subject,
            category=email.category
        )

    async def aclose(self) -> None:
        return None


def build_notification_dispatcher(settings: Settings) -> INotificationDispatcher:
    """Create the dispatcher selected by ``EMAIL_PROVIDER``."""
    if settings.EMAIL_PROVIDER == "log":
        logger.warning("Email provider set to 'log' - no email will be delivered")
        return LoggingNotificationDispatcher()

    return MailtrapNotificationDispatcher(
        api_token=settings.MAILTRAP_API_TOKEN,
        sender_email=settings.EMAILS_FROM_EMAIL,
        sender_name=settings.EMAILS_FROM_NAME,
        api_url=settings.MAILTRAP_API_URL,
        welcome_template_uuid=settings.MAILTRAP_WELCOME_TEMPLATE_UUID,
        timeout=settings.EMAIL_TIMEOUT_SECONDS
    )
