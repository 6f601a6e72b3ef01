"""Session-related Marshmallow schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from marshmallow import Schema, fields, validate


def _unix(value: datetime | None) -> int | None:
    return int(value.timestamp()) if value is not None else None


class LoginSchema(Schema):
    """Input payload for the demo login endpoint."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=100))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class SessionClaimsSchema(Schema):
    """Public view of session claims; the CSRF secret is never dumped here."""

    session_id = fields.String(required=True)
    subject = fields.String(allow_none=True)
    issued_at = fields.Function(lambda obj: _unix(obj.issued_at))
    expires_at = fields.Function(lambda obj: _unix(obj.expires_at))
    custom_claims = fields.Dict(keys=fields.String())


class SessionResponseSchema(Schema):
    """Response payload describing a freshly issued or refreshed session."""

    session_id = fields.String(required=True)
    csrf_token = fields.Function(lambda obj: obj.csrf_secret)
    auth_expires_at = fields.Function(lambda obj: _unix(obj.auth_expires_at))
    refresh_expires_at = fields.Function(lambda obj: _unix(obj.refresh_expires_at))
    rotated = fields.Boolean()


def claims_payload(claims: Any) -> dict[str, Any]:
    """Dump ``claims`` through :class:`SessionClaimsSchema`."""
    return SessionClaimsSchema().dump(claims)
