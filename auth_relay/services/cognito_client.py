"""
Cognito User Pool implementation of the identity provider port.

Wraps the boto3 ``cognito-idp`` client so routes never see boto3-specific
errors: every failure is translated into ``ProviderError`` (or one of its
timeout/unavailable subclasses) before it leaves this module.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from auth_relay.core.config import Settings
from auth_relay.core.errors import ProviderError, ProviderTimeoutError, ProviderUnavailableError
from auth_relay.schemas.auth import Account, AuthResult, ProviderSession
from auth_relay.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

CHALLENGE_MESSAGE = "Additional authentication is required to finish signing in."

# Request metadata key -> Cognito standard attribute
METADATA_ATTRIBUTES = {
    "firstName": "given_name",
    "lastName": "family_name",
}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _translate_error(exc: ClientError) -> ProviderError:
    error = exc.response.get("Error", {})
    code = error.get("Code", "CognitoClientError")
    message = error.get("Message", str(exc))
    return ProviderError(code=code, message=message)


def _require_cognito_client_config(settings: Settings) -> None:
    if not settings.COGNITO_REGION:
        raise RuntimeError("COGNITO_REGION is not configured")
    if not settings.COGNITO_APP_CLIENT_ID:
        raise RuntimeError("COGNITO_APP_CLIENT_ID is not configured")


def build_cognito_client(settings: Settings):
    """boto3 client with bounded per-call timeouts and botocore retries disabled."""
    _require_cognito_client_config(settings)
    config = Config(
        connect_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        read_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        retries={"total_max_attempts": 1},
    )
    return boto3.client("cognito-idp", region_name=settings.COGNITO_REGION, config=config)


def _attributes_to_dict(attributes: list[dict[str, str]] | None) -> dict[str, str]:
    return {attr["Name"]: attr["Value"] for attr in attributes or []}


class CognitoIdentityProvider(IdentityProvider):
    def __init__(self, client: Any, *, app_client_id: str, user_pool_id: str | None = None) -> None:
        self._client = client
        self._app_client_id = app_client_id
        self._user_pool_id = user_pool_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "CognitoIdentityProvider":
        return cls(
            build_cognito_client(settings),
            app_client_id=settings.COGNITO_APP_CLIENT_ID,
            user_pool_id=settings.COGNITO_USER_POOL_ID or None,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _call(self, operation: str, **kwargs: Any) -> dict:
        method = getattr(self._client, operation)
        try:
            return method(**kwargs)
        except ClientError as exc:
            raise _translate_error(exc) from exc
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            logger.warning("Cognito %s timed out: %s", operation, exc)
            raise ProviderTimeoutError() from exc
        except EndpointConnectionError as exc:
            logger.error("Cognito endpoint unreachable during %s: %s", operation, exc)
            raise ProviderUnavailableError() from exc

    # ------------------------------------------------------------------
    # Mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_session(authentication: dict) -> ProviderSession:
        access_token = authentication.get("AccessToken")
        if not access_token:
            raise ProviderError("MissingAccessToken", "Missing AccessToken in Cognito response")
        return ProviderSession(
            access_token=access_token,
            refresh_token=authentication.get("RefreshToken"),
            expires_in=int(authentication.get("ExpiresIn") or 0),
            token_type=authentication.get("TokenType") or "Bearer",
        )

    @staticmethod
    def _build_account(
        attributes: dict[str, str],
        *,
        fallback_id: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Account:
        account_id = attributes.get("sub") or fallback_id
        if not account_id:
            raise ProviderError("MissingSubject", "Cognito user profile missing required attributes")
        now = _now_utc()
        return Account(
            id=account_id,
            email=attributes.get("email") or "",
            first_name=attributes.get("given_name"),
            last_name=attributes.get("family_name"),
            created_at=created_at or now,
            updated_at=updated_at or now,
        )

    def _initiate_auth(self, email: str, password: str) -> ProviderSession:
        result = self._call(
            "initiate_auth",
            ClientId=self._app_client_id,
            AuthFlow="USER_PASSWORD_AUTH",
            AuthParameters={
                "USERNAME": email,
                "PASSWORD": password,
            },
        )
        authentication = result.get("AuthenticationResult")
        if not authentication:
            # MFA and forced password resets are not relayed.
            logger.info("Cognito returned challenge %s; not supported by relay", result.get("ChallengeName"))
            raise ProviderError("ChallengeRequired", CHALLENGE_MESSAGE)
        return self._build_session(authentication)

    # ------------------------------------------------------------------
    # IdentityProvider
    # ------------------------------------------------------------------

    def create_account(
        self,
        email: str,
        password: str,
        metadata: Optional[Mapping[str, Optional[str]]] = None,
    ) -> AuthResult:
        attributes = [{"Name": "email", "Value": email}]
        for key, attribute_name in METADATA_ATTRIBUTES.items():
            value = (metadata or {}).get(key)
            if value:
                attributes.append({"Name": attribute_name, "Value": value})

        resp = self._call(
            "sign_up",
            ClientId=self._app_client_id,
            Username=email,
            Password=password,
            UserAttributes=attributes,
        )

        user_sub = resp.get("UserSub")
        if not user_sub:
            raise ProviderError("UserCreationFailed", "User creation failed")

        account = self._build_account(_attributes_to_dict(attributes), fallback_id=user_sub)

        session: ProviderSession | None = None
        if resp.get("UserConfirmed"):
            # The account exists either way; a failed first sign-in leaves
            # the caller to log in explicitly.
            try:
                session = self._initiate_auth(email, password)
            except ProviderError as exc:
                logger.warning("Post-signup sign-in failed for %s: %s", user_sub, exc.code)
        return AuthResult(account=account, session=session)

    def authenticate(self, email: str, password: str) -> AuthResult:
        session = self._initiate_auth(email, password)
        account = self.verify_access_token(session.access_token)
        return AuthResult(account=account, session=session)

    def invalidate_session(self, access_token: str) -> None:
        self._call("global_sign_out", AccessToken=access_token)

    def lookup_account(self, account_id: str) -> Account:
        if not self._user_pool_id:
            raise RuntimeError("COGNITO_USER_POOL_ID is not configured")
        resp = self._call("admin_get_user", UserPoolId=self._user_pool_id, Username=account_id)
        return self._build_account(
            _attributes_to_dict(resp.get("UserAttributes")),
            fallback_id=resp.get("Username"),
            created_at=resp.get("UserCreateDate"),
            updated_at=resp.get("UserLastModifiedDate"),
        )

    def verify_access_token(self, token: str) -> Account:
        resp = self._call("get_user", AccessToken=token)
        return self._build_account(
            _attributes_to_dict(resp.get("UserAttributes")),
            fallback_id=resp.get("Username"),
        )
