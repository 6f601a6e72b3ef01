"""
sessionguard.services._shared.ports
===================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
session state machine depends on.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`, :class:`~.TokenJudgment` and
    :class:`~.VerifiedToken`: signing and three-way verification of tokens.

- :mod:`revocation_gate`:
    Defines :class:`~.RevocationGate` plus the allow-all default and an
    in-memory implementation.

- :mod:`secret_generator`:
    Defines :data:`~.SecretGenerator` and :func:`~.generate_csrf_secret`.

Design Notes
------------
Concrete adapters (PyJWT, Redis) implement these interfaces under
``sessionguard.infra``.
"""

from __future__ import annotations

from .revocation_gate import AllowAllRevocationGate, InMemoryRevocationGate, RevocationGate
from .secret_generator import CSRF_SECRET_BYTES, SecretGenerator, generate_csrf_secret
from .token_codec import TokenCodec, TokenJudgment, VerifiedToken

__all__ = [
    "TokenCodec",
    "TokenJudgment",
    "VerifiedToken",
    "RevocationGate",
    "AllowAllRevocationGate",
    "InMemoryRevocationGate",
    "SecretGenerator",
    "generate_csrf_secret",
    "CSRF_SECRET_BYTES",
]
