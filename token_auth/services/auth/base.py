"""
Shared plumbing for the account flow services.
"""

from datetime import datetime
from typing import Awaitable, Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ...core.exceptions import AuthServiceError, ConcurrentUpdateError, ValidationError
from ...core.security import utcnow
from ...interfaces.repository_interface import IAccountRepository
from ...models.account import AccountRecord

logger = structlog.get_logger()

MAX_SAVE_ATTEMPTS = 3

Clock = Callable[[], datetime]


def require_fields(*values: Optional[str], message: Optional[str] = None) -> None:
    """Raise ValidationError unless every value is a non-blank string."""
    if any(value is None or not str(value).strip() for value in values):
        raise ValidationError(message)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountFlowService:
    """Base for services that load, change and save accounts."""

    def __init__(self, account_repository: IAccountRepository, clock: Clock = utcnow):
        self.account_repository = account_repository
        self.clock = clock

    async def apply_change(
        self,
        db: AsyncSession,
        account: AccountRecord,
        change: Callable[[AccountRecord], AccountRecord],
        reload: Callable[[], Awaitable[Optional[AccountRecord]]],
        gone: AuthServiceError
    ) -> AccountRecord:
        """
        Save ``change(account)``; on a lost optimistic-lock race, reload and retry.

        ``reload`` re-runs the lookup that qualified the account for this change.
        If it no longer finds the account, ``gone`` is raised.
        """
        for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
            try:
                return await self.account_repository.save(db, change(account))
            except ConcurrentUpdateError:
                logger.info("Retrying account change", account_id=account.id, attempt=attempt)
                fresh = await reload()
                if fresh is None:
                    raise gone
                account = fresh

        raise ConcurrentUpdateError()
