# tests/test_error_classifier.py
"""
Unit tests for provider error classification.

Covers precedence of specific failures (timeout, rate limit, duplicate
account) over the per-operation fallback, and the structured-code vs.
message-substring paths.
"""
from __future__ import annotations

import pytest

from auth_relay.core.errors import (
    LOGIN,
    LOGOUT,
    PROFILE,
    SIGNUP,
    VERIFY,
    AuthorizationError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    classify_provider_error,
)


def test_signup_duplicate_by_message():
    err = classify_provider_error(ProviderError("Unknown", "Email already exists"), SIGNUP)
    assert err.status_code == 409
    assert err.message == "Email already registered"


def test_signup_duplicate_by_code():
    err = classify_provider_error(
        ProviderError("UsernameExistsException", "An account with the given email is taken."),
        SIGNUP,
    )
    assert err.status_code == 409


def test_signup_rate_limit_wins_over_duplicate():
    err = classify_provider_error(
        ProviderError("Unknown", "rate limit hit: user already exists"),
        SIGNUP,
    )
    assert err.status_code == 429
    assert err.message == "Too many signup attempts. Please try again later."


@pytest.mark.parametrize("code", ["TooManyRequestsException", "LimitExceededException"])
def test_login_rate_limit_by_code(code):
    err = classify_provider_error(ProviderError(code, "Slow down"), LOGIN)
    assert err.status_code == 429
    assert err.message == "Too many login attempts. Please try again later."


def test_login_rate_limit_by_message_is_case_insensitive():
    err = classify_provider_error(ProviderError("Unknown", "Email Rate Limit exceeded"), LOGIN)
    assert err.status_code == 429


def test_login_fallback_uses_provider_message():
    err = classify_provider_error(ProviderError("NotAuthorizedException", "Incorrect username or password."), LOGIN)
    assert err.status_code == 401
    assert err.message == "Incorrect username or password."


def test_login_fallback_default_message():
    err = classify_provider_error(ProviderError("Unknown", ""), LOGIN)
    assert err.status_code == 401
    assert err.message == "Login failed"


def test_login_already_exists_is_not_conflict():
    err = classify_provider_error(ProviderError("Unknown", "session already exists"), LOGIN)
    assert err.status_code == 401


def test_signup_fallback():
    assert classify_provider_error(ProviderError("InvalidPasswordException", "Password too weak"), SIGNUP).status_code == 400
    err = classify_provider_error(ProviderError("Unknown", ""), SIGNUP)
    assert (err.status_code, err.message) == (400, "Signup failed")


def test_logout_and_profile_fallbacks():
    err = classify_provider_error(ProviderError("Unknown", ""), LOGOUT)
    assert (err.status_code, err.message) == (400, "Logout failed")
    err = classify_provider_error(ProviderError("Unknown", ""), PROFILE)
    assert (err.status_code, err.message) == (400, "Failed to get profile")


def test_logout_rate_limit_is_not_special_cased():
    err = classify_provider_error(ProviderError("TooManyRequestsException", "rate limit"), LOGOUT)
    assert err.status_code == 400


def test_verify_maps_to_invalid_token():
    err = classify_provider_error(ProviderError("NotAuthorizedException", "Access Token has expired"), VERIFY)
    assert isinstance(err, AuthorizationError)
    assert err.status_code == 401
    assert err.message == "Invalid or expired token"
    assert err.headers == {"WWW-Authenticate": "Bearer"}


@pytest.mark.parametrize("operation", [SIGNUP, LOGIN, LOGOUT, PROFILE, VERIFY])
def test_timeout_is_distinct_from_rejection(operation):
    err = classify_provider_error(ProviderTimeoutError(), operation)
    assert err.status_code == 504
    assert err.message == "Identity provider timed out"


def test_unavailable_maps_to_503():
    err = classify_provider_error(ProviderUnavailableError(), LOGIN)
    assert err.status_code == 503


def test_unknown_operation_raises():
    with pytest.raises(ValueError):
        classify_provider_error(ProviderError("Unknown", "boom"), "refresh")
