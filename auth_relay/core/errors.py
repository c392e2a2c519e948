"""
Error taxonomy and upstream failure classification.

Handlers raise ``ApiError`` subclasses; the app's exception handlers turn them
into envelopes. Identity provider failures arrive as ``ProviderError`` and are
mapped to a client-facing ``ApiError`` by ``classify_provider_error``.
"""
from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """An error that is reported to the client with a fixed status and message."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers


class ValidationError(ApiError):
    """Request rejected locally before any provider call."""

    status_code = 400


class AuthorizationError(ApiError):
    """Missing, malformed, invalid or expired credentials."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------


class ProviderError(Exception):
    """Raised when the identity provider rejects or fails a call."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""

    def __init__(self, message: str = "Identity provider timed out") -> None:
        super().__init__("ProviderTimeout", message)


class ProviderUnavailableError(ProviderError):
    """The provider endpoint could not be reached."""

    def __init__(self, message: str = "Identity provider unavailable") -> None:
        super().__init__("ProviderUnavailable", message)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

SIGNUP = "signup"
LOGIN = "login"
LOGOUT = "logout"
PROFILE = "profile"
VERIFY = "verify"

RATE_LIMIT_CODES = frozenset({"TooManyRequestsException", "LimitExceededException"})
DUPLICATE_ACCOUNT_CODES = frozenset({"UsernameExistsException", "AliasExistsException"})

_RATE_LIMIT_MESSAGES = {
    SIGNUP: "Too many signup attempts. Please try again later.",
    LOGIN: "Too many login attempts. Please try again later.",
}

# operation -> (status, message used when the provider gave none)
_FALLBACKS = {
    SIGNUP: (400, "Signup failed"),
    LOGIN: (401, "Login failed"),
    LOGOUT: (400, "Logout failed"),
    PROFILE: (400, "Failed to get profile"),
}


def _message_contains(exc: ProviderError, needle: str) -> bool:
    return needle in (exc.message or "").lower()


def is_rate_limited(exc: ProviderError) -> bool:
    return exc.code in RATE_LIMIT_CODES or _message_contains(exc, "rate limit")


def is_duplicate_account(exc: ProviderError) -> bool:
    return exc.code in DUPLICATE_ACCOUNT_CODES or _message_contains(exc, "already exists")


def classify_provider_error(exc: ProviderError, operation: str) -> ApiError:
    """
    Map a provider failure for ``operation`` to the error returned to the client.

    Specific conditions are checked before the per-operation fallback, so a
    rate-limited or duplicate signup never degrades to a generic 400. The
    structured provider code is consulted first; the message substring is
    only a fallback for providers that do not send one.
    """
    if isinstance(exc, ProviderTimeoutError):
        return ApiError("Identity provider timed out", status_code=504)
    if isinstance(exc, ProviderUnavailableError):
        return ApiError("Identity provider unavailable", status_code=503)

    rate_limit_message: Optional[str] = _RATE_LIMIT_MESSAGES.get(operation)
    if rate_limit_message and is_rate_limited(exc):
        return ApiError(rate_limit_message, status_code=429)

    if operation == SIGNUP and is_duplicate_account(exc):
        return ApiError("Email already registered", status_code=409)

    if operation == VERIFY:
        return AuthorizationError("Invalid or expired token")

    try:
        status, default_message = _FALLBACKS[operation]
    except KeyError:
        raise ValueError(f"Unknown provider operation: {operation}") from exc
    return ApiError(exc.message or default_message, status_code=status)
