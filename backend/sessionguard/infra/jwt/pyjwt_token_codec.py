# sessionguard/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import jwt

from sessionguard.services._shared.dto import SessionClaims
from sessionguard.services._shared.errors import InternalError, SigningError
from sessionguard.services._shared.ports import TokenCodec, TokenJudgment, VerifiedToken
from sessionguard.services.session.keys import (
    AsymmetricPrivateKey,
    KeyMaterial,
    SymmetricKey,
)

CSRF_CLAIM = "csrf"
CUSTOM_CLAIMS_CLAIM = "custom_claims"

# Temporal claims are judged against the service clock, not PyJWT's wall clock.
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": ["exp", "jti", CSRF_CLAIM],
}


def _to_ts(dt: datetime) -> int:
    # Naive datetimes are labelled as UTC (no conversion)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def _from_ts(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return datetime.fromtimestamp(value, tz=UTC)


@dataclass(frozen=True, slots=True)
class PyJWTTokenCodec(TokenCodec):
    """
    JWS codec backed by PyJWT.

    :param keys: Validated key material; the algorithm list passed to
        :func:`jwt.decode` is pinned to ``keys.algorithm`` so tokens signed
        with any other algorithm are rejected.
    """

    keys: KeyMaterial

    @property
    def can_sign(self) -> bool:
        return self.keys.can_sign

    @property
    def algorithm(self) -> str:
        return self.keys.algorithm

    # ------------------------------------------------------------------ #
    # Signing
    # ------------------------------------------------------------------ #

    def sign(self, claims: SessionClaims) -> str:
        signing_key = self.keys.signing_key
        if signing_key is None:
            raise SigningError("No signing key configured (verify-only server).")
        if claims.expires_at is None:
            raise SigningError("Claims must carry an expiry before signing.")

        payload: dict[str, Any] = {
            "jti": claims.session_id,
            CSRF_CLAIM: claims.csrf_secret,
            "exp": _to_ts(claims.expires_at),
            CUSTOM_CLAIMS_CLAIM: claims.custom_claims,
        }
        if claims.issued_at is not None:
            payload["iat"] = _to_ts(claims.issued_at)
        if claims.subject is not None:
            payload["sub"] = claims.subject

        key: bytes | Any
        if isinstance(signing_key, SymmetricKey):
            key = signing_key.secret
        elif isinstance(signing_key, AsymmetricPrivateKey):
            key = signing_key.key
        else:  # pragma: no cover - KeyMaterial rejects anything else
            raise SigningError(f"Unsupported signing key {type(signing_key)!r}")

        try:
            return jwt.encode(payload, key, algorithm=self.keys.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError(f"Unable to sign token: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify(self, token: str, *, now: datetime) -> VerifiedToken:
        verifying_key = self.keys.verifying_key
        key = verifying_key.secret if isinstance(verifying_key, SymmetricKey) else verifying_key.key

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self.keys.algorithm],
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidTokenError:
            # bad signature, wrong alg, malformed, or missing required claims
            return VerifiedToken(claims=None, judgment=TokenJudgment.INVALID)
        except jwt.PyJWTError as exc:
            raise InternalError(f"Unable to verify token: {exc}") from exc

        claims = self._claims_from_payload(payload)
        if claims is None:
            return VerifiedToken(claims=None, judgment=TokenJudgment.INVALID)

        assert claims.expires_at is not None
        if _to_ts(now) >= _to_ts(claims.expires_at):
            return VerifiedToken(claims=claims, judgment=TokenJudgment.EXPIRED_ONLY)
        return VerifiedToken(claims=claims, judgment=TokenJudgment.VALID)

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> SessionClaims | None:
        """Map a decoded payload to claims; ``None`` when the structure is wrong."""
        session_id = payload.get("jti")
        csrf_secret = payload.get(CSRF_CLAIM)
        subject = payload.get("sub")
        custom_claims = payload.get(CUSTOM_CLAIMS_CLAIM, {})
        expires_at = _from_ts(payload.get("exp"))

        if not isinstance(session_id, str) or not session_id:
            return None
        if not isinstance(csrf_secret, str) or expires_at is None:
            return None
        if subject is not None and not isinstance(subject, str):
            return None
        if not isinstance(custom_claims, dict):
            return None

        return SessionClaims(
            session_id=session_id,
            csrf_secret=csrf_secret,
            subject=subject,
            issued_at=_from_ts(payload.get("iat")),
            expires_at=expires_at,
            custom_claims=custom_claims,
        )
