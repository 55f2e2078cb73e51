"""
Password service focused solely on password recovery.
"""

from datetime import timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
import structlog

from ...core.config import Settings, get_settings
from ...core.exceptions import InvalidOrExpiredError, NotFoundError
from ...core.security import SecurityService, utcnow
from ...interfaces.notification_interface import INotificationDispatcher, NotificationTemplate
from ...interfaces.repository_interface import IAccountRepository
from .base import AccountFlowService, Clock, normalize_email, require_fields

logger = structlog.get_logger()

INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"


class PasswordService(AccountFlowService):
    """Service responsible for forgot-password and reset-password flows."""

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
        self.reset_ttl = timedelta(hours=self.settings.RESET_TOKEN_TTL_HOURS)

    def build_reset_url(self, token: str) -> str:
        return f"{self.settings.CLIENT_URL.rstrip('/')}/reset-password/{token}"

    async def request_password_reset(
        self,
        db: AsyncSession,
        email: str
    ) -> None:
        """
        Issue a fresh reset token and mail its link.

        A newer request replaces any outstanding token.

        Raises:
            NotFoundError: If no account has this email
        """
        if not email or not email.strip():
            raise NotFoundError()

        account = await self.account_repository.get_by_email(db, normalize_email(email))
        if account is None:
            logger.info("Password reset requested for unknown email")
            raise NotFoundError()

        token = SecurityService.generate_reset_token()
        expires_at = self.clock() + self.reset_ttl

        account = await self.apply_change(
            db,
            account,
            change=lambda current: current.with_reset_token(token, expires_at),
            reload=lambda: self.account_repository.get_by_id(db, account.id),
            gone=NotFoundError()
        )

        await self.notification_dispatcher.send(
            NotificationTemplate.PASSWORD_RESET_REQUEST,
            account.email,
            {
                "reset_url": self.build_reset_url(token),
                "expires_in_hours": self.settings.RESET_TOKEN_TTL_HOURS,
                "company_name": self.settings.COMPANY_NAME,
            }
        )
        logger.info("Password reset requested", account_id=account.id)

    async def reset_password(
        self,
        db: AsyncSession,
        token: str,
        new_password: str
    ) -> None:
        """
        Consume a reset token and replace the password.

        Args:
            db: Database session
            token: Reset token from the emailed link
            new_password: Replacement plaintext password

        Raises:
            ValidationError: If the new password is blank
            InvalidOrExpiredError: If the token is unknown, used or expired
        """
        require_fields(new_password, message="Password is required")
        if not token or not token.strip():
            raise InvalidOrExpiredError(INVALID_RESET_TOKEN_MESSAGE)
        token = token.strip()

        now = self.clock()
        account = await self.account_repository.get_by_reset_token(db, token, now)
        if account is None:
            logger.info("Password reset rejected")
            raise InvalidOrExpiredError(INVALID_RESET_TOKEN_MESSAGE)

        password_hash = await run_in_threadpool(SecurityService.get_password_hash, new_password)

        account = await self.apply_change(
            db,
            account,
            change=lambda current: current.with_new_password(password_hash),
            reload=lambda: self.account_repository.get_by_reset_token(db, token, now),
            gone=InvalidOrExpiredError(INVALID_RESET_TOKEN_MESSAGE)
        )

        await self.notification_dispatcher.send(
            NotificationTemplate.PASSWORD_RESET_SUCCESS,
            account.email,
            {"company_name": self.settings.COMPANY_NAME}
        )
        logger.info("Password reset completed", account_id=account.id)
