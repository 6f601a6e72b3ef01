"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, SessionClaimsSchema, SessionResponseSchema, claims_payload

__all__ = [
    "LoginSchema",
    "SessionClaimsSchema",
    "SessionResponseSchema",
    "claims_payload",
]
