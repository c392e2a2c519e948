"""
Pydantic schemas for the relay's auth endpoints and provider results.

Request fields are optional on purpose: a missing email or password is
reported by the route as a 400 envelope, not as a schema validation error.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class Account(BaseModel):
    """Request-scoped copy of a provider-owned user record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ProviderSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 0
    token_type: str = "Bearer"


class AuthResult(BaseModel):
    account: Account
    # None when the provider needs the account confirmed before it issues tokens.
    session: Optional[ProviderSession] = None

    def to_public(self) -> dict[str, Any]:
        return {
            "user": self.account.to_public(),
            "token": self.session.access_token if self.session else None,
            "refreshToken": self.session.refresh_token if self.session else None,
        }
