# sessionguard/services/session/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sessionguard.services._shared.dto import SessionClaims

DEFAULT_AUTH_TOKEN_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TOKEN_TTL = timedelta(hours=72)


def _ttl(value: Any, default: timedelta) -> timedelta:
    """Coerce seconds or a ``timedelta``; non-positive values fall back to ``default``."""
    if value is None or value == "":
        return default
    ttl = value if isinstance(value, timedelta) else timedelta(seconds=float(value))
    return ttl if ttl > timedelta(0) else default


# ------------------------ Config DTO --------------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionOptions:
    """
    Immutable session engine configuration.

    :param verify_only: Validation only; issuance and rotation are refused.
    :type verify_only: bool
    :param bearer_tokens: Transport tokens as bearer fields instead of cookies.
    :type bearer_tokens: bool
    :param auth_token_ttl: Auth token lifetime.
    :type auth_token_ttl: timedelta
    :param refresh_token_ttl: Refresh token lifetime.
    :type refresh_token_ttl: timedelta
    :param debug_logging: Log every session decision.
    :type debug_logging: bool
    :param dev_environment: Drop the ``Secure`` cookie attribute.
    :type dev_environment: bool
    """

    verify_only: bool = False
    bearer_tokens: bool = False
    auth_token_ttl: timedelta = DEFAULT_AUTH_TOKEN_TTL
    refresh_token_ttl: timedelta = DEFAULT_REFRESH_TOKEN_TTL
    debug_logging: bool = False
    dev_environment: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "auth_token_ttl", _ttl(self.auth_token_ttl, DEFAULT_AUTH_TOKEN_TTL))
        object.__setattr__(
            self, "refresh_token_ttl", _ttl(self.refresh_token_ttl, DEFAULT_REFRESH_TOKEN_TTL)
        )

    @property
    def revocation_ttl(self) -> timedelta:
        """How long a revocation marker must outlive the last token it can meet."""
        # pass-through may extend a refresh token up to one auth TTL after revocation
        return self.refresh_token_ttl + self.auth_token_ttl

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SessionOptions:
        """Build options from a Flask-style config mapping (``JWT_*`` keys)."""
        return cls(
            verify_only=bool(config.get("JWT_VERIFY_ONLY", False)),
            bearer_tokens=bool(config.get("JWT_BEARER_TOKENS", False)),
            auth_token_ttl=config.get("JWT_AUTH_TOKEN_TTL"),
            refresh_token_ttl=config.get("JWT_REFRESH_TOKEN_TTL"),
            debug_logging=bool(config.get("JWT_DEBUG", False)),
            dev_environment=bool(config.get("IS_DEV_ENV", False)),
        )


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionTokens:
    """
    Tokens and secret the transport must re-emit.

    :param auth_token: Encoded auth JWT.
    :type auth_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param csrf_secret: Anti-forgery secret bound to both tokens.
    :type csrf_secret: str
    :param claims: Claims of ``auth_token``.
    :type claims: SessionClaims
    :param auth_expires_at: Expiry hint for the auth token.
    :type auth_expires_at: datetime
    :param refresh_expires_at: Expiry hint for the refresh token.
    :type refresh_expires_at: datetime
    :param rotated: ``True`` when a new auth token and secret were minted.
    :type rotated: bool
    """

    auth_token: str
    refresh_token: str
    csrf_secret: str
    claims: SessionClaims
    auth_expires_at: datetime
    refresh_expires_at: datetime
    rotated: bool = False

    @property
    def session_id(self) -> str:
        return self.claims.session_id


@dataclass(frozen=True, slots=True)
class TerminationOutcome:
    """
    Result of ending a session.

    :param session_id: Identifier read from the refresh token, if readable.
    :type session_id: str | None
    :param revoked: Whether the revocation gate accepted the revocation.
    :type revoked: bool
    :param revoke_error: Store error raised by the gate, for the caller to log.
    :type revoke_error: Exception | None
    """

    session_id: str | None
    revoked: bool
    revoke_error: Exception | None = None
