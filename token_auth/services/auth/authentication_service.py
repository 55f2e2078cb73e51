"""
Authentication service focused solely on login/logout and session lookups.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
import structlog

from ...core.exceptions import InvalidCredentialsError, UnauthorizedError
from ...core.security import SecurityService, utcnow
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import AccountRecord
from .base import AccountFlowService, Clock, normalize_email
from .token_service import CookieDirectives, IssuedSession, TokenService

logger = structlog.get_logger()


class AuthenticationService(AccountFlowService):
    """Service responsible for credential checks and sessions."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        token_service: TokenService,
        clock: Clock = utcnow
    ):
        super().__init__(account_repository, clock)
        self.token_service = token_service

    async def authenticate(
        self,
        db: AsyncSession,
        email: str,
        password: str
    ) -> Tuple[AccountRecord, IssuedSession]:
        """
        Authenticate by email and password and open a session.

        Unknown email and wrong password raise the same error, and both paths
        run one bcrypt verification.

        Args:
            db: Database session
            email: Account email
            password: Plaintext password

        Returns:
            Tuple of (account with updated last_login, issued session)

        Raises:
            InvalidCredentialsError: If authentication fails
        """
        if not email or not password:
            await run_in_threadpool(SecurityService.burn_password_check, password)
            raise InvalidCredentialsError()

        account = await self.account_repository.get_by_email(db, normalize_email(email))
        if account is None:
            await run_in_threadpool(SecurityService.burn_password_check, password)
            logger.info("Login failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not await run_in_threadpool(SecurityService.verify_password, password, account.password_hash):
            logger.info("Login failed", reason="invalid_password", account_id=account.id)
            raise InvalidCredentialsError()

        session = self.token_service.issue_session(account.id)

        now = self.clock()
        account = await self.apply_change(
            db,
            account,
            change=lambda current: current.with_login(now),
            reload=lambda: self.account_repository.get_by_id(db, account.id),
            gone=InvalidCredentialsError()
        )

        logger.info("Account authenticated", account_id=account.id)
        return account, session

    def logout(self) -> CookieDirectives:
        """Sessions are stateless; logging out only drops the cookie."""
        return self.token_service.clear_session()

    async def get_authenticated_account(
        self,
        db: AsyncSession,
        account_id: str
    ) -> AccountRecord:
        """
        Load the account behind an already validated session.

        Raises:
            UnauthorizedError: If the account no longer exists
        """
        account = await self.account_repository.get_by_id(db, account_id)
        if account is None:
            raise UnauthorizedError("User not found")
        return account
