# sessionguard/services/session/service.py
from __future__ import annotations

import hmac
from collections.abc import Callable, Mapping
from datetime import datetime
from uuid import uuid4

from sessionguard.services._shared.base import BaseService, Clock
from sessionguard.services._shared.dto import JSONValue, SessionClaims, copy_custom_claims
from sessionguard.services._shared.errors import (
    ConfigurationError,
    DenialReason,
    InternalError,
    UnauthorizedError,
)
from sessionguard.services._shared.ports import (
    AllowAllRevocationGate,
    RevocationGate,
    SecretGenerator,
    TokenCodec,
    TokenJudgment,
    VerifiedToken,
    generate_csrf_secret,
)
from sessionguard.services.session.dto import SessionOptions, SessionTokens, TerminationOutcome


def _new_session_id() -> str:
    return uuid4().hex


class SessionService(BaseService):
    """
    Session lifecycle engine (issue / refresh-or-rotate / terminate).

    The service is stateless: every decision is derived from the presented
    tokens, the CSRF secret, the clock and a single call to the revocation
    gate at rotation boundaries. It never logs and never touches a transport;
    outcomes are returned as values or raised as
    :class:`~sessionguard.services._shared.errors.UnauthorizedError` /
    :class:`~sessionguard.services._shared.errors.InternalError`.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        options: SessionOptions | None = None,
        revocation_gate: RevocationGate | None = None,
        secret_generator: SecretGenerator | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param codec: Adapter for signing/verifying tokens.
        :param options: Lifetimes and verify-only flag.
        :param revocation_gate: Caller-owned revocation store; allow-all when omitted.
        :param secret_generator: Source of fresh CSRF secrets.
        :param clock: Time source (aware UTC datetimes).
        :param id_factory: Source of fresh session identifiers.
        :raises ConfigurationError: If ``options.verify_only`` disagrees with the
            codec's signing capability.
        """
        super().__init__(clock=clock)
        self.codec = codec
        self.options = options or SessionOptions()
        self.gate = revocation_gate if revocation_gate is not None else AllowAllRevocationGate()
        self._generate_secret = secret_generator or generate_csrf_secret
        self._new_session_id = id_factory or _new_session_id

        if self.options.verify_only and codec.can_sign:
            raise ConfigurationError("A verify-only server must not hold a signing key.")
        if not self.options.verify_only and not codec.can_sign:
            raise ConfigurationError("A signing key is required unless the server is verify-only.")

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(
        self,
        *,
        subject: str | None = None,
        custom_claims: Mapping[str, JSONValue] | None = None,
    ) -> SessionTokens:
        """
        Start a new session.

        :param subject: Optional ``sub`` for both tokens.
        :param custom_claims: Caller-defined JSON claims (copied structurally).
        :returns: Fresh auth token, refresh token and CSRF secret.
        :raises UnauthorizedError: On a verify-only server.
        :raises InternalError: If signing or secret generation fails.
        """
        if self.options.verify_only:
            raise UnauthorizedError(DenialReason.VERIFY_ONLY)

        try:
            claims = copy_custom_claims(custom_claims)
        except (TypeError, ValueError) as exc:
            raise InternalError(f"Custom claims are not JSON-serializable: {exc}") from exc

        now = self._now()
        base = SessionClaims(
            session_id=self._new_session_id(),
            csrf_secret=self._fresh_secret(),
            subject=subject,
            issued_at=now,
            custom_claims=claims,
        )
        refresh_claims = base.evolve(expires_at=now + self.options.refresh_token_ttl)
        auth_claims = base.evolve(expires_at=now + self.options.auth_token_ttl)

        return self._tokens(
            auth_claims=auth_claims,
            auth_token=self._sign(auth_claims),
            refresh_claims=refresh_claims,
            refresh_token=self._sign(refresh_claims),
            rotated=True,
        )

    # ------------------------------------------------------------------ #
    # Refresh / rotate
    # ------------------------------------------------------------------ #

    def refresh(self, auth_token: str, refresh_token: str, csrf_secret: str) -> SessionTokens:
        """
        Validate a presented session and regenerate tokens when required.

        Decision table (auth judgment × refresh judgment × gate):

        ===========  ============  ===============  ========  =====================
        auth         secret match  refresh          revoked   outcome
        ===========  ============  ===============  ========  =====================
        VALID        yes           signature ok     (n/a)     pass-through
        VALID        no            (n/a)            (n/a)     unauthorized
        EXPIRED      yes           VALID            no        rotate
        EXPIRED      yes           VALID            yes       unauthorized
        EXPIRED      yes           EXPIRED/INVALID  (n/a)     unauthorized
        INVALID      (n/a)         (n/a)            (n/a)     unauthorized
        ===========  ============  ===============  ========  =====================

        :param auth_token: Presented auth token.
        :param refresh_token: Presented refresh token.
        :param csrf_secret: Anti-forgery secret presented out of band.
        :returns: Tokens and secret to re-emit.
        :raises UnauthorizedError: Any client authorization failure.
        :raises InternalError: Signing or randomness faults.
        """
        if not csrf_secret:
            raise UnauthorizedError(DenialReason.MISSING_CSRF)

        now = self._now()
        auth = self.codec.verify(auth_token or "", now=now)
        if auth.judgment is TokenJudgment.INVALID or auth.claims is None:
            raise UnauthorizedError(DenialReason.INVALID_AUTH_TOKEN)

        if not hmac.compare_digest(csrf_secret.encode(), auth.claims.csrf_secret.encode()):
            raise UnauthorizedError(DenialReason.CSRF_MISMATCH)

        if auth.judgment is TokenJudgment.VALID:
            return self._pass_through(auth_token, auth, refresh_token, now)
        # EXPIRED_ONLY: the only judgment left
        return self._rotate(refresh_token, now)

    def _pass_through(
        self, auth_token: str, auth: VerifiedToken, refresh_token: str, now: datetime
    ) -> SessionTokens:
        """Keep the auth token; push the refresh token's expiry forward."""
        assert auth.claims is not None
        refresh = self.codec.verify(refresh_token or "", now=now)
        if not refresh.signature_ok or refresh.claims is None:
            raise UnauthorizedError(DenialReason.INVALID_REFRESH_TOKEN)

        if self.options.verify_only:
            # cannot re-sign; hand back what was presented
            new_refresh_claims = refresh.claims
            new_refresh_token = refresh_token
        else:
            new_refresh_claims = refresh.claims.evolve(
                expires_at=now + self.options.refresh_token_ttl
            )
            new_refresh_token = self._sign(new_refresh_claims)

        return self._tokens(
            auth_claims=auth.claims,
            auth_token=auth_token,
            refresh_claims=new_refresh_claims,
            refresh_token=new_refresh_token,
            rotated=False,
        )

    def _rotate(self, refresh_token: str, now: datetime) -> SessionTokens:
        """Mint a new auth token and CSRF secret from the refresh token's claims."""
        if self.options.verify_only:
            raise UnauthorizedError(DenialReason.VERIFY_ONLY)

        refresh = self.codec.verify(refresh_token or "", now=now)
        if refresh.judgment is TokenJudgment.INVALID or refresh.claims is None:
            raise UnauthorizedError(DenialReason.INVALID_REFRESH_TOKEN)

        session_id = refresh.claims.session_id
        try:
            still_valid = self.gate.is_valid(session_id)
        except Exception as exc:
            # fail closed; the cause stays chained for the caller to log
            raise UnauthorizedError(DenialReason.REVOCATION_CHECK_FAILED) from exc
        if not still_valid:
            raise UnauthorizedError(DenialReason.REVOKED)

        if refresh.judgment is not TokenJudgment.VALID:
            raise UnauthorizedError(DenialReason.REFRESH_EXPIRED)

        secret = self._fresh_secret()
        auth_claims = SessionClaims(
            session_id=session_id,
            csrf_secret=secret,
            subject=refresh.claims.subject,
            issued_at=now,
            expires_at=now + self.options.auth_token_ttl,
            custom_claims=copy_custom_claims(refresh.claims.custom_claims),
        )
        refresh_claims = refresh.claims.evolve(
            csrf_secret=secret,
            expires_at=now + self.options.refresh_token_ttl,
        )

        return self._tokens(
            auth_claims=auth_claims,
            auth_token=self._sign(auth_claims),
            refresh_claims=refresh_claims,
            refresh_token=self._sign(refresh_claims),
            rotated=True,
        )

    # ------------------------------------------------------------------ #
    # Terminate
    # ------------------------------------------------------------------ #

    def terminate(self, refresh_token: str | None) -> TerminationOutcome:
        """
        End a session (logout).

        A missing or garbled refresh token is not an error: there is simply
        nothing to revoke. Gate failures are reported on the outcome and
        never raised.
        """
        if not refresh_token:
            return TerminationOutcome(session_id=None, revoked=False)

        verified = self.codec.verify(refresh_token, now=self.now_utc())
        if verified.claims is None:
            return TerminationOutcome(session_id=None, revoked=False)

        session_id = verified.claims.session_id
        try:
            self.gate.revoke(session_id)
        except Exception as exc:
            return TerminationOutcome(session_id=session_id, revoked=False, revoke_error=exc)
        return TerminationOutcome(session_id=session_id, revoked=True)

    # ------------------------------------------------------------------ #
    # Read
    # ------------------------------------------------------------------ #

    def read_claims(self, auth_token: str) -> SessionClaims:
        """
        Return the claims of a signature-valid auth token, expired or not.

        :raises UnauthorizedError: If the token does not verify.
        """
        verified = self.codec.verify(auth_token or "", now=self.now_utc())
        if verified.claims is None:
            raise UnauthorizedError(DenialReason.INVALID_AUTH_TOKEN)
        return verified.claims

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _now(self) -> datetime:
        # JWT NumericDate has whole-second precision
        return self.now_utc().replace(microsecond=0)

    def _fresh_secret(self) -> str:
        try:
            return self._generate_secret()
        except Exception as exc:
            raise InternalError("Unable to generate a CSRF secret.") from exc

    def _sign(self, claims: SessionClaims) -> str:
        # SigningError is an InternalError already
        return self.codec.sign(claims)

    @staticmethod
    def _tokens(
        *,
        auth_claims: SessionClaims,
        auth_token: str,
        refresh_claims: SessionClaims,
        refresh_token: str,
        rotated: bool,
    ) -> SessionTokens:
        assert auth_claims.expires_at is not None and refresh_claims.expires_at is not None
        return SessionTokens(
            auth_token=auth_token,
            refresh_token=refresh_token,
            csrf_secret=auth_claims.csrf_secret,
            claims=auth_claims,
            auth_expires_at=auth_claims.expires_at,
            refresh_expires_at=refresh_claims.expires_at,
            rotated=rotated,
        )

