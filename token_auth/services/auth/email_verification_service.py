"""
Email verification service focused solely on email verification operations.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ...core.config import Settings, get_settings
from ...core.exceptions import InvalidOrExpiredError
from ...core.security import utcnow
from ...interfaces.notification_interface import INotificationDispatcher, NotificationTemplate
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import AccountRecord
from .base import AccountFlowService, Clock

logger = structlog.get_logger()

INVALID_CODE_MESSAGE = "Invalid or expired verification code"


class EmailVerificationService(AccountFlowService):
    """Service responsible for email verification operations."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        notification_dispatcher: INotificationDispatcher,
        clock: Clock = utcnow,
        settings: Optional[Settings] = None
    ):
        super().__init__(account_repository, clock)
        self.notification_dispatcher = notification_dispatcher
        self.settings = settings or get_settings()

    async def verify_email(
        self,
        db: AsyncSession,
        code: str
    ) -> AccountRecord:
        """
        Verify the account holding ``code``.

        Unknown, mistyped and expired codes all fail the same way.

        Args:
            db: Database session
            code: Six-digit verification code

        Returns:
            The verified account
        """
        if not code or not str(code).strip():
            raise InvalidOrExpiredError(INVALID_CODE_MESSAGE)
        code = str(code).strip()

        now = self.clock()
        account = await self.account_repository.get_by_verification_token(db, code, now)
        if account is None:
            logger.info("Email verification rejected")
            raise InvalidOrExpiredError(INVALID_CODE_MESSAGE)

        verified = await self.apply_change(
            db,
            account,
            change=lambda current: current.mark_verified(),
            reload=lambda: self.account_repository.get_by_verification_token(db, code, now),
            gone=InvalidOrExpiredError(INVALID_CODE_MESSAGE)
        )

        await self.notification_dispatcher.send(
            NotificationTemplate.WELCOME_EMAIL,
            verified.email,
            {"name": verified.name, "company_name": self.settings.COMPANY_NAME}
        )

        logger.info("Email verified successfully", account_id=verified.id)
        return verified
