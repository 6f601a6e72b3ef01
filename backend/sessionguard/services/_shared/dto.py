# comments in English; reST docstrings strict
from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

JSONValue = Any
"""Any value :func:`json.dumps` accepts (str, int, float, bool, None, list, dict)."""


def copy_custom_claims(custom_claims: Mapping[str, JSONValue] | None) -> dict[str, JSONValue]:
    """
    Return a structural copy of a custom-claims mapping.

    :param custom_claims: Caller-defined claims, or ``None``.
    :returns: A new ``dict`` sharing no mutable state with the input.
    :raises TypeError: If a key is not a string or a value is not JSON-serializable.
    """
    claims = copy.deepcopy(dict(custom_claims or {}))
    for key in claims:
        if not isinstance(key, str):
            raise TypeError(f"Custom claim keys must be strings, got {type(key)!r}")
    json.dumps(claims)
    return claims


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """
    Payload carried by both the auth token and the refresh token.

    :param session_id: Session identifier (``jti``); the revocation key.
    :type session_id: str
    :param csrf_secret: Anti-forgery secret bound to the session (``csrf``).
    :type csrf_secret: str
    :param subject: Optional subject (``sub``).
    :type subject: str | None
    :param issued_at: Issue time (``iat``), UTC.
    :type issued_at: datetime | None
    :param expires_at: Expiry (``exp``), UTC.
    :type expires_at: datetime | None
    :param custom_claims: Opaque caller-defined JSON mapping.
    :type custom_claims: dict[str, JSONValue]
    """

    session_id: str
    csrf_secret: str
    subject: str | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    custom_claims: dict[str, JSONValue] = field(default_factory=dict)

    def evolve(self, **changes: Any) -> SessionClaims:
        """Copy with ``changes`` applied; custom claims are deep-copied."""
        changes.setdefault("custom_claims", self.custom_claims)
        changes["custom_claims"] = copy_custom_claims(changes["custom_claims"])
        return replace(self, **changes)
