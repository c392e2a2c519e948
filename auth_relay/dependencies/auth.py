from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from auth_relay.core.errors import VERIFY, AuthorizationError, ProviderError, classify_provider_error
from auth_relay.schemas.auth import Account
from auth_relay.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_identity_provider(request: Request) -> IdentityProvider:
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise RuntimeError("Identity provider is not configured")
    return provider


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from ``Bearer <token>``; any other prefix counts as no token."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def verify_token(
    request: Request,
    authorization: str | None = Header(None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Account:
    """
    Validates:
      - Authorization: Bearer <token>
      - token accepted by the identity provider
    Attaches the account to ``request.state.user`` and the raw token to
    ``request.state.access_token``.
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthorizationError("Missing or invalid token")

    try:
        account = provider.verify_access_token(token)
    except ProviderError as exc:
        logger.info("Token rejected by identity provider (%s)", exc.code)
        raise classify_provider_error(exc, VERIFY) from exc

    request.state.user = account
    request.state.access_token = token
    return account


def optional_verify_token(
    request: Request,
    authorization: str | None = Header(None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[Account]:
    """Attach the account when a valid bearer token is present; never rejects."""
    request.state.user = None
    token = extract_bearer_token(authorization)
    if not token:
        return None

    try:
        account = provider.verify_access_token(token)
    except ProviderError as exc:
        logger.debug("Ignoring unverifiable optional token (%s)", exc.code)
        return None

    request.state.user = account
    request.state.access_token = token
    return account
