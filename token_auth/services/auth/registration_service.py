"""
Registration service focused solely on account sign-up.
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
import structlog

from ...core.config import Settings, get_settings
from ...core.exceptions import ConflictError, InfrastructureError
from ...core.security import SecurityService, utcnow
from ...interfaces.notification_interface import INotificationDispatcher, NotificationTemplate
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import AccountRecord
from .base import AccountFlowService, Clock, normalize_email, require_fields
from .token_service import IssuedSession, TokenService

logger = structlog.get_logger()

MAX_CODE_ATTEMPTS = 5


class RegistrationService(AccountFlowService):
    """Service responsible for creating accounts."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        notification_dispatcher: INotificationDispatcher,
        token_service: TokenService,
        clock: Clock = utcnow,
        settings: Optional[Settings] = None
    ):
        super().__init__(account_repository, clock)
        self.notification_dispatcher = notification_dispatcher
        self.token_service = token_service
        self.settings = settings or get_settings()
        self.verification_ttl = timedelta(hours=self.settings.VERIFICATION_TOKEN_TTL_HOURS)

    async def signup(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str
    ) -> Tuple[AccountRecord, IssuedSession]:
        """
        Register an unverified account, open a session and mail the code.

        The account is committed before the email goes out, so a delivery
        failure reaches the caller without undoing the registration.

        Args:
            db: Database session
            name: Display name
            email: Email address, unique across accounts
            password: Plaintext password

        Returns:
            Tuple of (account, issued session)
        """
        require_fields(name, email, password)
        email = normalize_email(email)

        if await self.account_repository.get_by_email(db, email) is not None:
            raise ConflictError()

        password_hash = await run_in_threadpool(SecurityService.get_password_hash, password)
        now = self.clock()
        verification_code = await self._allocate_verification_code(db, now)

        account = await self.account_repository.create(
            db,
            name=name.strip(),
            email=email,
            password_hash=password_hash,
            verification_token=verification_code,
            verification_token_expires_at=now + self.verification_ttl
        )

        session = self.token_service.issue_session(account.id)

        await self.notification_dispatcher.send(
            NotificationTemplate.VERIFICATION_EMAIL,
            account.email,
            {
                "verification_code": verification_code,
                "expires_in_hours": self.settings.VERIFICATION_TOKEN_TTL_HOURS,
                "company_name": self.settings.COMPANY_NAME,
            }
        )

        logger.info("Account registered", account_id=account.id)
        return account, session

    async def _allocate_verification_code(self, db: AsyncSession, now: datetime) -> str:
        """Draw a code that no other account is still waiting to redeem."""
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = SecurityService.generate_verification_code()
            if await self.account_repository.get_by_verification_token(db, code, now) is None:
                return code
            logger.info("Verification code already pending, drawing again", attempt=attempt)

        logger.error("No free verification code found", attempts=MAX_CODE_ATTEMPTS)
        raise InfrastructureError("Failed to allocate a verification code")
