import os
from datetime import datetime, timezone

# Keep the suite independent from any local .env / prod settings.
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient

from auth_relay.core.config import Settings
from auth_relay.core.errors import ProviderError
from auth_relay.main import create_app
from auth_relay.schemas.auth import Account, AuthResult, ProviderSession
from auth_relay.services.identity_provider import IdentityProvider

CREATED_AT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_account(account_id: str = "user-123", email: str = "test@example.com", **kwargs) -> Account:
    return Account(
        id=account_id,
        email=email,
        first_name=kwargs.get("first_name"),
        last_name=kwargs.get("last_name"),
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


class FakeIdentityProvider(IdentityProvider):
    """
    In-memory stand-in for Cognito.

    Set ``errors[<method name>]`` to an exception to make that call fail.
    ``valid_tokens`` maps access tokens to the account they belong to.
    """

    def __init__(self) -> None:
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self.valid_tokens: dict[str, Account] = {}
        self.confirm_on_signup = True

    def _maybe_fail(self, name: str) -> None:
        exc = self.errors.get(name)
        if exc is not None:
            raise exc

    def create_account(self, email, password, metadata=None):
        self.calls.append(("create_account", email, password, dict(metadata or {})))
        self._maybe_fail("create_account")
        metadata = metadata or {}
        account = make_account(
            email=email,
            first_name=metadata.get("firstName"),
            last_name=metadata.get("lastName"),
        )
        session = None
        if self.confirm_on_signup:
            session = ProviderSession(access_token="token-123", refresh_token="refresh-123", expires_in=3600)
        return AuthResult(account=account, session=session)

    def authenticate(self, email, password):
        self.calls.append(("authenticate", email, password))
        self._maybe_fail("authenticate")
        return AuthResult(
            account=make_account(email=email),
            session=ProviderSession(access_token="T", refresh_token="R", expires_in=3600),
        )

    def invalidate_session(self, access_token):
        self.calls.append(("invalidate_session", access_token))
        self._maybe_fail("invalidate_session")

    def lookup_account(self, account_id):
        self.calls.append(("lookup_account", account_id))
        self._maybe_fail("lookup_account")
        return make_account(account_id=account_id, first_name="John", last_name="Doe")

    def verify_access_token(self, token):
        self.calls.append(("verify_access_token", token))
        self._maybe_fail("verify_access_token")
        if token not in self.valid_tokens:
            raise ProviderError("NotAuthorizedException", "Invalid Access Token")
        return self.valid_tokens[token]


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def provider():
    fake = FakeIdentityProvider()
    fake.valid_tokens["good-token"] = make_account()
    return fake


@pytest.fixture()
def app(settings, provider):
    return create_app(settings=settings, provider=provider)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_headers():
    return {"Authorization": "Bearer good-token"}
