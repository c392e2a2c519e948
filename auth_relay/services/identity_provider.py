# auth_relay/services/identity_provider.py
"""
Identity provider port.

The relay never hashes passwords, signs tokens or stores users. Every one of
those operations goes through an ``IdentityProvider``. The app receives an
instance at construction time (``create_app(provider=...)``) so tests can
substitute a fake.

All methods raise ``ProviderError`` (or a subclass) on failure.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from auth_relay.schemas.auth import Account, AuthResult


class IdentityProvider(ABC):
    @abstractmethod
    def create_account(
        self,
        email: str,
        password: str,
        metadata: Optional[Mapping[str, Optional[str]]] = None,
    ) -> AuthResult:
        """Register a new account. ``session`` is None until the account is confirmed."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> AuthResult:
        """Exchange credentials for an account and a session."""

    @abstractmethod
    def invalidate_session(self, access_token: str) -> None:
        """Sign out every session tied to ``access_token``."""

    @abstractmethod
    def lookup_account(self, account_id: str) -> Account:
        """Fetch an account by its provider identifier."""

    @abstractmethod
    def verify_access_token(self, token: str) -> Account:
        """Ask the provider who owns ``token``; raises if it is invalid or expired."""
