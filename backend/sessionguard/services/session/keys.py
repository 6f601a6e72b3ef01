# sessionguard/services/session/keys.py
"""
Signing and verification key material for one algorithm family.

Keys are modelled as a small tagged variant so that a symmetric secret can
never be handed to an asymmetric algorithm (or vice versa):

- :class:`SymmetricKey`: shared secret bytes (HMAC-SHA).
- :class:`AsymmetricPrivateKey`: RSA or EC private key (signing).
- :class:`AsymmetricPublicKey`: RSA or EC public key (verification).
- ``None``: no key (the signing slot of a verify-only server).

:class:`KeyMaterial` validates the combination once, at construction, and is
immutable afterwards so it can be shared across concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from sessionguard.services._shared.errors import ConfigurationError


class AlgorithmFamily(Enum):
    """Supported JWS algorithm families."""

    HMAC = "HMAC"
    RSA = "RSA"
    ECDSA = "ECDSA"


ALGORITHMS: Final[dict[str, AlgorithmFamily]] = {
    "HS256": AlgorithmFamily.HMAC,
    "HS384": AlgorithmFamily.HMAC,
    "HS512": AlgorithmFamily.HMAC,
    "RS256": AlgorithmFamily.RSA,
    "RS384": AlgorithmFamily.RSA,
    "RS512": AlgorithmFamily.RSA,
    "ES256": AlgorithmFamily.ECDSA,
    "ES384": AlgorithmFamily.ECDSA,
    "ES512": AlgorithmFamily.ECDSA,
}


def algorithm_family(algorithm: str) -> AlgorithmFamily:
    """
    Resolve the family of a JWS algorithm identifier.

    :raises ConfigurationError: If the identifier is not recognized.
    """
    try:
        return ALGORITHMS[algorithm]
    except KeyError:
        raise ConfigurationError(f"Signing algorithm {algorithm!r} not recognized.") from None


PrivateKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey
PublicKey = rsa.RSAPublicKey | ec.EllipticCurvePublicKey


@dataclass(frozen=True, slots=True)
class SymmetricKey:
    secret: bytes

    def __repr__(self) -> str:  # never leak the secret into logs
        return "SymmetricKey(<redacted>)"


@dataclass(frozen=True, slots=True)
class AsymmetricPrivateKey:
    key: PrivateKey


@dataclass(frozen=True, slots=True)
class AsymmetricPublicKey:
    key: PublicKey


SigningKey = SymmetricKey | AsymmetricPrivateKey | None
VerifyingKey = SymmetricKey | AsymmetricPublicKey


def _matches_family(value: PrivateKey | PublicKey, family: AlgorithmFamily) -> bool:
    if family is AlgorithmFamily.RSA:
        return isinstance(value, rsa.RSAPrivateKey | rsa.RSAPublicKey)
    return isinstance(value, ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey)


@dataclass(frozen=True, slots=True)
class KeyMaterial:
    """
    Validated key pair for a single configured algorithm.

    :param algorithm: JWS identifier, e.g. ``"HS256"`` or ``"ES384"``.
    :type algorithm: str
    :param signing_key: Key used for issuance; ``None`` on verify-only servers.
    :type signing_key: SymmetricKey | AsymmetricPrivateKey | None
    :param verifying_key: Key used to verify presented tokens.
    :type verifying_key: SymmetricKey | AsymmetricPublicKey
    :raises ConfigurationError: If the variants do not match the algorithm family.
    """

    algorithm: str
    signing_key: SigningKey
    verifying_key: VerifyingKey

    def __post_init__(self) -> None:
        family = algorithm_family(self.algorithm)

        if family is AlgorithmFamily.HMAC:
            if not isinstance(self.verifying_key, SymmetricKey) or not self.verifying_key.secret:
                raise ConfigurationError(
                    "When using an HMAC-SHA signing method, please provide an HMAC key."
                )
            if self.signing_key is not None and not isinstance(self.signing_key, SymmetricKey):
                raise ConfigurationError("HMAC signing requires a symmetric key.")
            return

        if not isinstance(self.verifying_key, AsymmetricPublicKey):
            raise ConfigurationError(f"{self.algorithm} verification requires a public key.")
        if not _matches_family(self.verifying_key.key, family):
            raise ConfigurationError(
                f"Public key type does not match the {family.value} algorithm family."
            )
        if self.signing_key is None:
            return
        if not isinstance(self.signing_key, AsymmetricPrivateKey):
            raise ConfigurationError(f"{self.algorithm} signing requires a private key.")
        if not _matches_family(self.signing_key.key, family):
            raise ConfigurationError(
                f"Private key type does not match the {family.value} algorithm family."
            )

    # ------------------------------------------------------------------ #
    # Constructors
    # ------------------------------------------------------------------ #

    @classmethod
    def from_hmac_secret(
        cls, algorithm: str, secret: bytes | str, *, verify_only: bool = False
    ) -> KeyMaterial:
        """Build HMAC key material; the same secret signs and verifies."""
        raw = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        key = SymmetricKey(raw)
        return cls(algorithm=algorithm, signing_key=None if verify_only else key, verifying_key=key)

    @classmethod
    def from_key_pair(
        cls,
        algorithm: str,
        *,
        public_key: PublicKey,
        private_key: PrivateKey | None = None,
        verify_only: bool = False,
    ) -> KeyMaterial:
        """
        Build RSA/ECDSA key material.

        :raises ConfigurationError: If ``private_key`` is missing on an issuing server.
        """
        if private_key is None and not verify_only:
            raise ConfigurationError("Private and public keys are required to issue tokens.")
        signing = None if verify_only or private_key is None else AsymmetricPrivateKey(private_key)
        return cls(
            algorithm=algorithm,
            signing_key=signing,
            verifying_key=AsymmetricPublicKey(public_key),
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def family(self) -> AlgorithmFamily:
        return ALGORITHMS[self.algorithm]

    @property
    def can_sign(self) -> bool:
        return self.signing_key is not None
