"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import or depend on
Flask or HTTP. They are the stable contract between the session state
machine, its ports, and the delivery layer.

The translation to HTTP responses (RFC 7807) is handled by
``sessionguard/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from enum import Enum

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer or BaseService translates them to APIError.
    """


class ConfigurationError(ServiceError):
    """
    Raised while wiring the session engine (bad algorithm, missing or
    unreadable key material).

    It is only ever raised at initialization and must prevent startup.
    """


class InternalError(ServiceError):
    """
    Server-side fault that is not attributable to the client.

    Signing failures, randomness exhaustion or a key that became unusable at
    runtime end up here so callers can alert instead of silently denying.
    """


class SigningError(InternalError):
    """Raised by a token codec when a claims payload cannot be signed."""


# --------------------------------------------------------------------------- #
# Authorization failures
# --------------------------------------------------------------------------- #


class DenialReason(str, Enum):
    """Closed set of reasons for refusing a session."""

    MISSING_CSRF = "missing_csrf"
    CSRF_MISMATCH = "csrf_mismatch"
    INVALID_AUTH_TOKEN = "invalid_auth_token"
    INVALID_REFRESH_TOKEN = "invalid_refresh_token"
    REFRESH_EXPIRED = "refresh_expired"
    REVOKED = "revoked"
    REVOCATION_CHECK_FAILED = "revocation_check_failed"
    VERIFY_ONLY = "verify_only"
    MISSING_TOKENS = "missing_tokens"


class UnauthorizedError(ServiceError):
    """
    Per-request authorization failure.

    :param reason: Why the session was refused.
    :type reason: DenialReason
    :param message: Optional human-readable override.
    :type message: str | None
    """

    def __init__(self, reason: DenialReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or _DEFAULT_MESSAGES.get(reason, "Unauthorized"))


_DEFAULT_MESSAGES: dict[DenialReason, str] = {
    DenialReason.MISSING_CSRF: "No CSRF secret in request.",
    DenialReason.CSRF_MISMATCH: "CSRF secret does not match the session.",
    DenialReason.INVALID_AUTH_TOKEN: "Auth token is not valid.",
    DenialReason.INVALID_REFRESH_TOKEN: "Refresh token is not valid.",
    DenialReason.REFRESH_EXPIRED: "Session has expired. Please sign in again.",
    DenialReason.REVOKED: "Session has been revoked. Please sign in again.",
    DenialReason.REVOCATION_CHECK_FAILED: "Unable to confirm the session is still active.",
    DenialReason.VERIFY_ONLY: "Server is not authorized to issue new tokens.",
    DenialReason.MISSING_TOKENS: "Session tokens are missing from the request.",
}
