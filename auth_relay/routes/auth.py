from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from auth_relay.core.errors import (
    LOGIN,
    LOGOUT,
    PROFILE,
    SIGNUP,
    AuthorizationError,
    ProviderError,
    ValidationError,
    classify_provider_error,
)
from auth_relay.core.responses import send_response
from auth_relay.dependencies.auth import get_identity_provider, verify_token
from auth_relay.schemas.auth import LoginIn, SignupIn
from auth_relay.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _require_credentials(email: str | None, password: str | None) -> None:
    if not email or not password:
        raise ValidationError("Email and password are required")


@router.post("/signup", status_code=201)
def signup(
    payload: Optional[SignupIn] = None,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    payload = payload or SignupIn()
    _require_credentials(payload.email, payload.password)

    try:
        result = provider.create_account(
            payload.email,
            payload.password,
            {"firstName": payload.first_name, "lastName": payload.last_name},
        )
    except ProviderError as exc:
        logger.warning("Signup rejected by identity provider (%s)", exc.code)
        raise classify_provider_error(exc, SIGNUP) from exc

    logger.info("Account %s registered", result.account.id)
    return send_response(201, True, "User registered successfully", result.to_public())


@router.post("/login")
def login(
    payload: Optional[LoginIn] = None,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    payload = payload or LoginIn()
    _require_credentials(payload.email, payload.password)

    try:
        result = provider.authenticate(payload.email, payload.password)
    except ProviderError as exc:
        logger.info("Login rejected by identity provider (%s)", exc.code)
        raise classify_provider_error(exc, LOGIN) from exc

    return send_response(200, True, "Login successful", result.to_public())


@router.post("/logout", dependencies=[Depends(verify_token)])
def logout(request: Request, provider: IdentityProvider = Depends(get_identity_provider)):
    try:
        provider.invalidate_session(request.state.access_token)
    except ProviderError as exc:
        logger.info("Logout rejected by identity provider (%s)", exc.code)
        raise classify_provider_error(exc, LOGOUT) from exc

    return send_response(200, True, "Logout successful")


def get_profile(request: Request, provider: IdentityProvider = Depends(get_identity_provider)):
    # verify_token normally rejects first; this guards mounts without it.
    user = getattr(request.state, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        raise AuthorizationError("Unauthorized")

    try:
        account = provider.lookup_account(user_id)
    except ProviderError as exc:
        logger.info("Profile lookup failed for %s (%s)", user_id, exc.code)
        raise classify_provider_error(exc, PROFILE) from exc

    return send_response(200, True, "Profile retrieved successfully", {"user": account.to_public()})


router.add_api_route("/profile", get_profile, methods=["GET"], dependencies=[Depends(verify_token)])
