# sessionguard/infra/jwt/pem_keys.py
"""Load :class:`KeyMaterial` from configuration (HMAC secret or PEM files)."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from sessionguard.services._shared.errors import ConfigurationError
from sessionguard.services.session.keys import (
    AlgorithmFamily,
    KeyMaterial,
    PrivateKey,
    PublicKey,
    algorithm_family,
)


def _read(path: str | Path, what: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Unable to read {what} key file {str(path)!r}: {exc}") from exc


def load_private_key(path: str | Path, password: bytes | None = None) -> PrivateKey:
    """Parse a PEM private key (RSA or EC)."""
    try:
        key = serialization.load_pem_private_key(_read(path, "private"), password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ConfigurationError(f"Invalid PEM private key in {str(path)!r}: {exc}") from exc
    return key  # type: ignore[return-value]


def load_public_key(path: str | Path) -> PublicKey:
    """Parse a PEM public key (RSA or EC)."""
    try:
        key = serialization.load_pem_public_key(_read(path, "public"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ConfigurationError(f"Invalid PEM public key in {str(path)!r}: {exc}") from exc
    return key  # type: ignore[return-value]


def load_key_material(config: Mapping[str, Any]) -> KeyMaterial:
    """
    Build key material from ``JWT_*`` configuration values.

    Key files are read once, here; the result is immutable.

    :param config: Flask config (or any mapping with the same keys).
    :returns: Validated key material.
    :raises ConfigurationError: Unknown algorithm, missing key, unreadable or
        mismatched key file.
    """
    algorithm = str(config.get("JWT_SIGNING_ALGORITHM") or "HS256")
    verify_only = bool(config.get("JWT_VERIFY_ONLY", False))
    family = algorithm_family(algorithm)

    if family is AlgorithmFamily.HMAC:
        secret = config.get("JWT_HMAC_KEY")
        if not secret:
            raise ConfigurationError(
                "When using an HMAC-SHA signing method, please provide JWT_HMAC_KEY."
            )
        return KeyMaterial.from_hmac_secret(algorithm, secret, verify_only=verify_only)

    private_path = config.get("JWT_PRIVATE_KEY_PATH")
    public_path = config.get("JWT_PUBLIC_KEY_PATH")
    if not public_path or (not private_path and not verify_only):
        raise ConfigurationError("Private and public key locations are required!")

    private_key = None if verify_only else load_private_key(private_path)
    return KeyMaterial.from_key_pair(
        algorithm,
        public_key=load_public_key(public_path),
        private_key=private_key,
        verify_only=verify_only,
    )
