"""
Account-related Pydantic schemas for responses.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from ..models.account import AccountRecord


class AccountResponse(BaseModel):
    """Outward view of an account. Credentials and pending tokens have no field here."""

    id: str = Field(..., description="Account ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    is_verified: bool = Field(..., alias="isVerified", description="Whether the email is verified")
    last_login: Optional[datetime] = Field(None, alias="lastLogin", description="Last successful login")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt", description="Last update timestamp")

    @classmethod
    def from_record(cls, account: AccountRecord) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            is_verified=account.is_verified,
            last_login=account.last_login,
            created_at=account.created_at,
            updated_at=account.updated_at
        )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "0b7c1c1e-6f7d-4a57-9a57-0d9e3f7f4a2b",
                "name": "Ana",
                "email": "ana@example.com",
                "isVerified": False,
                "lastLogin": None,
                "createdAt": "2024-01-01T12:00:00",
                "updatedAt": "2024-01-01T12:00:00"
            }
        }
