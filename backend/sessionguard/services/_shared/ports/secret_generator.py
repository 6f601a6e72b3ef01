from __future__ import annotations

import secrets
from collections.abc import Callable

CSRF_SECRET_BYTES = 32

SecretGenerator = Callable[[], str]
"""Zero-argument callable producing a fresh anti-forgery secret."""


def generate_csrf_secret(nbytes: int = CSRF_SECRET_BYTES) -> str:
    """Return ``nbytes`` of CSPRNG output as URL-safe base64 text."""
    return secrets.token_urlsafe(nbytes)
