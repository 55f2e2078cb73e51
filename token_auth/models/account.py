"""
Account model and its immutable in-memory representation.

The ORM row never leaves the repository. Services work on ``AccountRecord``
copies and hand modified copies back for a version-checked save.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Index

from .base import Base, TimestampMixin


def new_account_id() -> str:
    return str(uuid.uuid4())


class Account(Base, TimestampMixin):
    """Registered user account."""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True, default=new_account_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    verification_token = Column(String(6), nullable=True)
    verification_token_expires_at = Column(DateTime, nullable=True)
    reset_password_token = Column(String(64), nullable=True)
    reset_password_expires_at = Column(DateTime, nullable=True)

    last_login = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("idx_account_verification_token", "verification_token"),
        Index("idx_account_reset_password_token", "reset_password_token"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, is_verified={self.is_verified})>"


# Columns a save is allowed to write; id, email and bookkeeping are not among them.
MUTABLE_FIELDS = (
    "name",
    "password_hash",
    "is_verified",
    "verification_token",
    "verification_token_expires_at",
    "reset_password_token",
    "reset_password_expires_at",
    "last_login",
)


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of an account row at a given version."""

    id: str
    name: str
    email: str
    password_hash: str
    is_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expires_at: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expires_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 1

    @classmethod
    def from_model(cls, row: Account) -> "AccountRecord":
        return cls(
            id=row.id,
            name=row.name,
            email=row.email,
            password_hash=row.password_hash,
            is_verified=row.is_verified,
            verification_token=row.verification_token,
            verification_token_expires_at=row.verification_token_expires_at,
            reset_password_token=row.reset_password_token,
            reset_password_expires_at=row.reset_password_expires_at,
            last_login=row.last_login,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
        )

    def mutable_values(self) -> Dict[str, Any]:
        return {field: getattr(self, field) for field in MUTABLE_FIELDS}

    def mark_verified(self) -> "AccountRecord":
        return replace(
            self,
            is_verified=True,
            verification_token=None,
            verification_token_expires_at=None,
        )

    def with_reset_token(self, token: str, expires_at: datetime) -> "AccountRecord":
        return replace(self, reset_password_token=token, reset_password_expires_at=expires_at)

    def with_new_password(self, password_hash: str) -> "AccountRecord":
        return replace(
            self,
            password_hash=password_hash,
            reset_password_token=None,
            reset_password_expires_at=None,
        )

    def with_login(self, at: datetime) -> "AccountRecord":
        return replace(self, last_login=at)
