"""
Account repository implementation following the Repository pattern.
Handles all account data access with SQLAlchemy's async session.
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.exceptions import ConflictError, ConcurrentUpdateError, InfrastructureError
from ..interfaces.repository_interface import IAccountRepository
from ..models.account import Account, AccountRecord

logger = structlog.get_logger()


class AccountRepository(IAccountRepository):
    """Repository for account data access operations."""

    async def create(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        verification_token_expires_at: datetime
    ) -> AccountRecord:
        """
        Insert a new unverified account and commit immediately.

        The unique index on ``email`` is the final arbiter for concurrent
        registrations; losing that race surfaces as ``ConflictError``.
        """
        account = Account(
            name=name,
            email=email,
            password_hash=password_hash,
            is_verified=False,
            verification_token=verification_token,
            verification_token_expires_at=verification_token_expires_at,
            version=1
        )
        try:
            db.add(account)
            await db.commit()
            await db.refresh(account)
        except IntegrityError:
            await db.rollback()
            logger.info("Account creation rejected by unique email constraint")
            raise ConflictError()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Account creation failed", error=str(e))
            raise InfrastructureError("Failed to create account") from e

        logger.info("Account created", account_id=account.id)
        return AccountRecord.from_model(account)

    async def get_by_id(
        self,
        db: AsyncSession,
        account_id: str
    ) -> Optional[AccountRecord]:
        return await self._get_one(db, Account.id == account_id)

    async def get_by_email(
        self,
        db: AsyncSession,
        email: str
    ) -> Optional[AccountRecord]:
        return await self._get_one(db, Account.email == email)

    async def get_by_verification_token(
        self,
        db: AsyncSession,
        token: str,
        now: datetime
    ) -> Optional[AccountRecord]:
        """
        A code held by more than one pending account proves nothing and
        matches none of them.
        """
        query = (
            select(Account)
            .where(
                Account.verification_token == token,
                Account.verification_token_expires_at > now
            )
            .limit(2)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(query)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Account lookup failed", error=str(e))
            raise InfrastructureError("Failed to load account") from e

        if len(rows) > 1:
            logger.warning("Verification code shared by several pending accounts")
            return None
        return AccountRecord.from_model(rows[0]) if rows else None

    async def get_by_reset_token(
        self,
        db: AsyncSession,
        token: str,
        now: datetime
    ) -> Optional[AccountRecord]:
        return await self._get_one(
            db,
            Account.reset_password_token == token,
            Account.reset_password_expires_at > now
        )

    async def save(
        self,
        db: AsyncSession,
        account: AccountRecord
    ) -> AccountRecord:
        """
        Conditional update on ``(id, version)``; commits on success.
        """
        next_version = account.version + 1
        stmt = (
            update(Account)
            .where(Account.id == account.id, Account.version == account.version)
            .values(version=next_version, **account.mutable_values())
        )
        try:
            result = await db.execute(stmt)
            if result.rowcount != 1:
                await db.rollback()
                logger.warning(
                    "Stale account save rejected",
                    account_id=account.id,
                    version=account.version
                )
                raise ConcurrentUpdateError()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Account save failed", account_id=account.id, error=str(e))
            raise InfrastructureError("Failed to save account") from e

        saved = await self.get_by_id(db, account.id)
        return saved or replace(account, version=next_version)

    async def _get_one(self, db: AsyncSession, *criteria) -> Optional[AccountRecord]:
        query = (
            select(Account)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(query)
            row = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Account lookup failed", error=str(e))
            raise InfrastructureError("Failed to load account") from e

        return AccountRecord.from_model(row) if row else None
