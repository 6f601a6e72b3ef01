"""PyJWT-backed token codec and PEM key loading."""

from __future__ import annotations

from .pem_keys import load_key_material, load_private_key, load_public_key
from .pyjwt_token_codec import PyJWTTokenCodec

__all__ = ["PyJWTTokenCodec", "load_key_material", "load_private_key", "load_public_key"]
