"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`sessionguard.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``sessionguard.services._shared.base``)
    * :class:`BaseService`

- Shared DTOs and errors (from ``sessionguard.services._shared``)
    * :class:`SessionClaims`
    * :class:`ServiceError`, :class:`ConfigurationError`,
      :class:`UnauthorizedError`, :class:`InternalError`, :class:`DenialReason`

- Session service (from ``sessionguard.services.session``)
    * :class:`SessionService`
    * DTOs: :class:`SessionOptions`, :class:`SessionTokens`,
      :class:`TerminationOutcome`
    * Keys: :class:`KeyMaterial`
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.dto import SessionClaims
from ._shared.errors import (
    ConfigurationError,
    DenialReason,
    InternalError,
    ServiceError,
    SigningError,
    UnauthorizedError,
)
from .session import (
    KeyMaterial,
    SessionOptions,
    SessionService,
    SessionTokens,
    TerminationOutcome,
)

__all__ = [
    "BaseService",
    "SessionClaims",
    "ServiceError",
    "ConfigurationError",
    "DenialReason",
    "InternalError",
    "SigningError",
    "UnauthorizedError",
    "KeyMaterial",
    "SessionOptions",
    "SessionService",
    "SessionTokens",
    "TerminationOutcome",
]
