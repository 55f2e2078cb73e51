"""
Repository interfaces for dependency abstraction.
Defines the contract for account persistence so the auth core can be wired to
any store that offers lookup by field and an atomic, version-checked save.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.account import AccountRecord


@runtime_checkable
class IAccountRepository(Protocol):
    """Protocol for account repository operations."""

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
        Create a new, unverified account.

        Args:
            db: Database session
            name: Display name
            email: Unique email address
            password_hash: Already hashed password
            verification_token: Pending email verification code
            verification_token_expires_at: Expiry of the verification code

        Returns:
            Created account

        Raises:
            ConflictError: If the email is already taken
        """
        ...

    async def get_by_id(
        self,
        db: AsyncSession,
        account_id: str
    ) -> Optional[AccountRecord]:
        """Get account by ID, or None."""
        ...

    async def get_by_email(
        self,
        db: AsyncSession,
        email: str
    ) -> Optional[AccountRecord]:
        """Get account by email, or None."""
        ...

    async def get_by_verification_token(
        self,
        db: AsyncSession,
        token: str,
        now: datetime
    ) -> Optional[AccountRecord]:
        """
        Get the account holding ``token`` as verification code with an
        expiry strictly after ``now``. Returns None when more than one
        account holds it.
        """
        ...

    async def get_by_reset_token(
        self,
        db: AsyncSession,
        token: str,
        now: datetime
    ) -> Optional[AccountRecord]:
        """
        Get the account holding ``token`` as password reset token with an
        expiry strictly after ``now``.
        """
        ...

    async def save(
        self,
        db: AsyncSession,
        account: AccountRecord
    ) -> AccountRecord:
        """
        Persist the mutable fields of ``account`` if the stored version still
        equals ``account.version``.

        Returns:
            The saved account with its new version

        Raises:
            ConcurrentUpdateError: If the account changed since it was loaded
        """
        ...
