"""Redis-backed adapters."""

from __future__ import annotations

from .redis_revocation_gate import RedisRevocationGate

__all__ = ["RedisRevocationGate"]
