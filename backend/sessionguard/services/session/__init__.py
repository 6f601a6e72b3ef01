"""Session lifecycle: key material, options/DTOs and the state machine."""

from __future__ import annotations

from .dto import SessionOptions, SessionTokens, TerminationOutcome
from .keys import (
    AlgorithmFamily,
    AsymmetricPrivateKey,
    AsymmetricPublicKey,
    KeyMaterial,
    SymmetricKey,
)
from .service import SessionService

__all__ = [
    "AlgorithmFamily",
    "AsymmetricPrivateKey",
    "AsymmetricPublicKey",
    "KeyMaterial",
    "SessionOptions",
    "SessionService",
    "SessionTokens",
    "SymmetricKey",
    "TerminationOutcome",
]
