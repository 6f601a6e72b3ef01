"""Flask integration for the session engine.

``SessionGuard`` wires the PyJWT codec, the configured revocation gate and
:class:`~sessionguard.services.session.SessionService` into an application
and exposes a :func:`protect` decorator that plays the middleware role:
every protected request is refreshed or rotated before the view runs, and
the resulting tokens are written back on the way out.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar, cast

from flask import Flask, Response, current_app, g, request

from sessionguard.api import transport
from sessionguard.core import extensions
from sessionguard.core.errors import BadRequest
from sessionguard.infra.jwt import PyJWTTokenCodec, load_key_material
from sessionguard.services._shared.dto import JSONValue, SessionClaims
from sessionguard.services._shared.errors import (
    DenialReason,
    InternalError,
    ServiceError,
    UnauthorizedError,
)
from sessionguard.services.session import SessionOptions, SessionService, SessionTokens

F = TypeVar("F", bound=Callable[..., Any])

EXTENSION_KEY = "session_guard"
log = logging.getLogger("sessionguard.session")

# Sentinel stored on ``g`` when the response must nullify the session
_NULLIFY = "nullify"


class SessionGuard:
    """
    Per-application session guard.

    Usage::

        guard = SessionGuard()
        guard.init_app(app)

        @bp.get("/restricted")
        @protect
        def restricted():
            claims = current_session_claims()
    """

    def __init__(self, app: Flask | None = None) -> None:
        self.options: SessionOptions | None = None
        self.service: SessionService | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Build the session service from ``app.config`` and register hooks.

        :raises ConfigurationError: Bad algorithm or key material; the
            application must not start.
        """
        options = SessionOptions.from_mapping(app.config)
        codec = PyJWTTokenCodec(load_key_material(app.config))
        self.options = options
        self.service = SessionService(
            codec=codec,
            options=options,
            revocation_gate=extensions.get_revocation_gate(app),
        )

        if options.debug_logging:
            log.setLevel(logging.DEBUG)

        app.extensions[EXTENSION_KEY] = self
        app.after_request(self._emit_transport)

    # ------------------------------------------------------------------ #
    # Request lifecycle
    # ------------------------------------------------------------------ #

    def authorize(self) -> SessionTokens:
        """
        Refresh the session presented with the current request.

        On success the claims and secret are stored on ``g`` and the tokens
        are scheduled for writing; on refusal the session is nullified and
        the translated API error is raised.
        """
        service, options = self._require()
        try:
            presented = transport.read_tokens(request, bearer=options.bearer_tokens)
            csrf_secret = transport.read_csrf(request)
            tokens = service.refresh(presented.auth_token, presented.refresh_token, csrf_secret)
        except UnauthorizedError as exc:
            self._deny(exc)
            raise service.translate_exceptions(exc) from exc
        except InternalError as exc:
            log.error("session.internal_error", exc_info=exc)
            raise service.translate_exceptions(exc) from exc

        self._accept(tokens)
        log.debug(
            "session.authorized",
            extra={
                "session_id": tokens.session_id,
                "outcome": "rotated" if tokens.rotated else "pass_through",
            },
        )
        return tokens

    def issue(
        self,
        *,
        subject: str | None = None,
        custom_claims: Mapping[str, JSONValue] | None = None,
    ) -> SessionTokens:
        """Start a session and schedule its tokens on the current response."""
        service, _ = self._require()
        try:
            tokens = service.issue(subject=subject, custom_claims=custom_claims)
        except ServiceError as exc:
            if isinstance(exc, UnauthorizedError):
                self._deny(exc)
            else:
                log.error("session.issue_failed", exc_info=exc)
            raise service.translate_exceptions(exc) from exc

        self._accept(tokens)
        log.debug("session.issued", extra={"session_id": tokens.session_id, "outcome": "issued"})
        return tokens

    def terminate(self) -> None:
        """Revoke the presented session (best-effort) and nullify the transport."""
        service, options = self._require()
        refresh_token: str | None
        try:
            refresh_token = transport.read_refresh_token(request, bearer=options.bearer_tokens)
        except BadRequest:
            # unreadable body: nothing to revoke, the transport is still cleared
            refresh_token = None

        outcome = service.terminate(refresh_token)
        if outcome.revoke_error is not None:
            log.warning(
                "session.revoke_failed",
                extra={"session_id": outcome.session_id},
                exc_info=outcome.revoke_error,
            )
        log.debug(
            "session.terminated",
            extra={
                "session_id": outcome.session_id,
                "outcome": "revoked" if outcome.revoked else "not_revoked",
            },
        )
        self.nullify()

    def nullify(self) -> None:
        """Clear the session tokens on the current response."""
        g.session_transport = _NULLIFY
        g.pop("session_claims", None)
        g.pop("csrf_secret", None)

    def _accept(self, tokens: SessionTokens) -> None:
        g.session_transport = tokens
        g.session_claims = tokens.claims
        g.csrf_secret = tokens.csrf_secret

    def _deny(self, exc: UnauthorizedError) -> None:
        cause = exc.__cause__
        if exc.reason is DenialReason.REVOCATION_CHECK_FAILED:
            log.warning("session.denied", extra={"reason": exc.reason.value}, exc_info=cause)
        else:
            log.debug("session.denied", extra={"reason": exc.reason.value})
        self.nullify()

    def _emit_transport(self, response: Response) -> Response:
        pending = g.pop("session_transport", None)
        if pending is None or self.options is None:
            return response
        if isinstance(pending, SessionTokens):
            transport.write_tokens(response, pending, self.options)
        else:
            transport.clear_tokens(response, self.options)
        return response

    def _require(self) -> tuple[SessionService, SessionOptions]:
        if self.service is None or self.options is None:
            raise RuntimeError("SessionGuard is not initialized. Call init_app() first.")
        return self.service, self.options


# --------------------------------------------------------------------------- #
# Module-level helpers (resolve the guard bound to ``current_app``)
# --------------------------------------------------------------------------- #


def get_guard(app: Flask | None = None) -> SessionGuard:
    """Return the guard registered on ``app`` (defaults to ``current_app``)."""
    target = app or current_app
    guard = target.extensions.get(EXTENSION_KEY)
    if guard is None:
        raise RuntimeError("SessionGuard is not initialized. Call init_app() first.")
    return cast(SessionGuard, guard)


def protect(view: F) -> F:
    """Require a valid session before running ``view``; ``OPTIONS`` passes through."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        if request.method != "OPTIONS":
            get_guard().authorize()
        return view(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_session_claims() -> SessionClaims:
    """Claims of the session authorized for the current request."""
    claims = g.get("session_claims")
    if claims is None:
        raise RuntimeError("No authorized session on this request; use @protect.")
    return cast(SessionClaims, claims)


def init_app(app: Flask) -> SessionGuard:
    """Create and bind a :class:`SessionGuard` for ``app``."""
    return SessionGuard(app)


__all__ = ["SessionGuard", "get_guard", "protect", "current_session_claims", "init_app"]
