"""
Authentication service facade.
Composes the flow services and converts their results into outward views.
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings
from ..core.security import utcnow
from ..interfaces.notification_interface import INotificationDispatcher
from ..interfaces.repository_interface import IAccountRepository
from ..schemas.account_schemas import AccountResponse
from .auth import (
    AuthenticationService,
    CookieDirectives,
    EmailVerificationService,
    IssuedSession,
    PasswordService,
    RegistrationService,
    TokenService
)
from .auth.base import Clock


@dataclass(frozen=True)
class SessionResult:
    """An account view together with the session just opened for it."""

    user: AccountResponse
    session: IssuedSession


class AuthService:
    """Entry point for every account operation."""

    def __init__(
        self,
        account_repository: IAccountRepository,
        notification_dispatcher: INotificationDispatcher,
        token_service: Optional[TokenService] = None,
        clock: Clock = utcnow,
        settings: Optional[Settings] = None
    ):
        settings = settings or get_settings()
        self.account_repository = account_repository
        self.notification_dispatcher = notification_dispatcher
        self.token_service = token_service or TokenService(settings=settings)

        self.registration_service = RegistrationService(
            account_repository, notification_dispatcher, self.token_service, clock, settings
        )
        self.email_verification_service = EmailVerificationService(
            account_repository, notification_dispatcher, clock, settings
        )
        self.authentication_service = AuthenticationService(
            account_repository, self.token_service, clock
        )
        self.password_service = PasswordService(
            account_repository, notification_dispatcher, clock, settings
        )

    async def signup(
        self,
        db: AsyncSession,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str]
    ) -> SessionResult:
        account, session = await self.registration_service.signup(db, name, email, password)
        return SessionResult(user=AccountResponse.from_record(account), session=session)

    async def verify_email(self, db: AsyncSession, code: Optional[str]) -> AccountResponse:
        account = await self.email_verification_service.verify_email(db, code)
        return AccountResponse.from_record(account)

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str]
    ) -> SessionResult:
        account, session = await self.authentication_service.authenticate(db, email, password)
        return SessionResult(user=AccountResponse.from_record(account), session=session)

    def logout(self) -> CookieDirectives:
        return self.authentication_service.logout()

    async def forgot_password(self, db: AsyncSession, email: Optional[str]) -> None:
        await self.password_service.request_password_reset(db, email)

    async def reset_password(
        self,
        db: AsyncSession,
        token: Optional[str],
        new_password: Optional[str]
    ) -> None:
        await self.password_service.reset_password(db, token, new_password)

    async def check_auth(self, db: AsyncSession, account_id: str) -> AccountResponse:
        account = await self.authentication_service.get_authenticated_account(db, account_id)
        return AccountResponse.from_record(account)
