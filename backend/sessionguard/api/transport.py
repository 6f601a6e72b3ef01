"""Read and write session tokens on Flask requests and responses.

Two carriers are supported:

* **cookies** (default): ``AuthToken`` / ``RefreshToken``, ``HttpOnly``,
  ``Secure`` unless running in a development environment;
* **bearer fields**: ``Auth_Token`` / ``Refresh_Token`` read from a JSON or
  form body and echoed back as response headers of the same names.

The anti-forgery secret always travels out of band (form field, header or
``Authorization: Basic``) and is echoed in ``X-CSRF-Token``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from flask import Request, Response
from werkzeug.exceptions import BadRequest as WerkzeugBadRequest

from sessionguard.core.errors import BadRequest
from sessionguard.services._shared.errors import DenialReason, UnauthorizedError
from sessionguard.services.session.dto import SessionOptions, SessionTokens

AUTH_COOKIE = "AuthToken"
REFRESH_COOKIE = "RefreshToken"
AUTH_FIELD = "Auth_Token"
REFRESH_FIELD = "Refresh_Token"
CSRF_HEADER = "X-CSRF-Token"
AUTH_EXPIRY_HEADER = "Auth-Expiry"
REFRESH_EXPIRY_HEADER = "Refresh-Expiry"
BASIC_PREFIX = "Basic "

# Expiry hints written when a session is nullified
_PAST_OFFSET = timedelta(hours=1000)


@dataclass(frozen=True, slots=True)
class PresentedTokens:
    """Raw token strings as found on the request."""

    auth_token: str
    refresh_token: str


def _unix(dt: datetime) -> str:
    return str(int(dt.timestamp()))


def _bearer_payload(req: Request) -> Any:
    if req.is_json:
        try:
            payload = req.get_json()
        except WerkzeugBadRequest as exc:
            raise BadRequest("Malformed JSON body") from exc
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise BadRequest("JSON body must be an object")
        return payload
    return req.form


def read_tokens(req: Request, *, bearer: bool) -> PresentedTokens:
    """
    Extract the auth and refresh tokens from ``req``.

    :param req: Incoming request.
    :param bearer: Read body fields instead of cookies.
    :returns: The presented tokens.
    :raises UnauthorizedError: If either token is absent.
    :raises BadRequest: If a bearer JSON body cannot be parsed.
    """
    if bearer:
        payload = _bearer_payload(req)
        auth_token = payload.get(AUTH_FIELD)
        refresh_token = payload.get(REFRESH_FIELD)
    else:
        auth_token = req.cookies.get(AUTH_COOKIE)
        refresh_token = req.cookies.get(REFRESH_COOKIE)

    if not isinstance(auth_token, str) or not auth_token:
        raise UnauthorizedError(DenialReason.MISSING_TOKENS, "No auth token presented.")
    if not isinstance(refresh_token, str) or not refresh_token:
        raise UnauthorizedError(DenialReason.MISSING_TOKENS, "No refresh token presented.")
    return PresentedTokens(auth_token=auth_token, refresh_token=refresh_token)


def read_refresh_token(req: Request, *, bearer: bool) -> str | None:
    """
    Return the presented refresh token, or ``None`` when there is none.

    Only the refresh carrier is consulted, so a logout that lost its auth
    token can still name the session to revoke.

    :raises BadRequest: If a bearer JSON body cannot be parsed.
    """
    if bearer:
        token = _bearer_payload(req).get(REFRESH_FIELD)
    else:
        token = req.cookies.get(REFRESH_COOKIE)
    if not isinstance(token, str) or not token:
        return None
    return token


def read_csrf(req: Request) -> str:
    """
    Return the anti-forgery secret presented with ``req`` (``""`` when absent).

    Precedence: form field ``X-CSRF-Token``, header ``X-CSRF-Token``, then an
    ``Authorization: Basic <secret>`` header.
    """
    value = req.form.get(CSRF_HEADER) if req.form else None
    if value:
        return value.strip()

    value = req.headers.get(CSRF_HEADER)
    if value:
        return value.strip()

    authorization = req.headers.get("Authorization", "")
    if authorization.startswith(BASIC_PREFIX):
        return authorization[len(BASIC_PREFIX) :].strip()
    return ""


def write_tokens(response: Response, tokens: SessionTokens, options: SessionOptions) -> None:
    """Emit ``tokens`` on ``response`` with the configured carrier."""
    if options.bearer_tokens:
        response.headers[AUTH_FIELD] = tokens.auth_token
        response.headers[REFRESH_FIELD] = tokens.refresh_token
    else:
        # The auth cookie outlives its token so an expired token still
        # reaches the server and can be rotated.
        for name, value in ((AUTH_COOKIE, tokens.auth_token), (REFRESH_COOKIE, tokens.refresh_token)):
            response.set_cookie(
                name,
                value,
                expires=tokens.refresh_expires_at,
                path="/",
                secure=not options.dev_environment,
                httponly=True,
            )

    response.headers[CSRF_HEADER] = tokens.csrf_secret
    response.headers[AUTH_EXPIRY_HEADER] = _unix(tokens.auth_expires_at)
    response.headers[REFRESH_EXPIRY_HEADER] = _unix(tokens.refresh_expires_at)


def clear_tokens(
    response: Response, options: SessionOptions, *, now: datetime | None = None
) -> None:
    """Nullify the session on ``response``: expire cookies or blank bearer fields."""
    now = now or datetime.now(UTC)
    past = now - _PAST_OFFSET

    if options.bearer_tokens:
        response.headers[AUTH_FIELD] = ""
        response.headers[REFRESH_FIELD] = ""
    else:
        for name in (AUTH_COOKIE, REFRESH_COOKIE):
            response.set_cookie(
                name,
                "",
                expires=past,
                max_age=0,
                path="/",
                secure=not options.dev_environment,
                httponly=True,
            )

    response.headers[CSRF_HEADER] = ""
    response.headers[AUTH_EXPIRY_HEADER] = _unix(past)
    response.headers[REFRESH_EXPIRY_HEADER] = _unix(past)


__all__ = [
    "AUTH_COOKIE",
    "REFRESH_COOKIE",
    "AUTH_FIELD",
    "REFRESH_FIELD",
    "CSRF_HEADER",
    "AUTH_EXPIRY_HEADER",
    "REFRESH_EXPIRY_HEADER",
    "PresentedTokens",
    "read_tokens",
    "read_refresh_token",
    "read_csrf",
    "write_tokens",
    "clear_tokens",
]
