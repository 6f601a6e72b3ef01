# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass

import redis  # type: ignore[import-untyped]

from sessionguard.services._shared.ports import RevocationGate


@dataclass(slots=True)
class RedisRevocationGate(RevocationGate):
    """
    Redis-backed revocation set keyed by session identifier.

    A revoked session is stored as ``sg:revoked:<session_id>`` with a TTL that
    outlives every refresh token of the session (including one extended by
    pass-through after the revocation), after which the entry may vanish.

    :param r: A Redis client (already connected).
    :param ttl_seconds: Lifetime of a revocation marker.
    """

    r: redis.Redis
    ttl_seconds: int

    # -------------------- helpers --------------------

    @staticmethod
    def _k(session_id: str) -> str:
        return f"sg:revoked:{session_id}"

    # -------------------- API ------------------------

    def is_valid(self, session_id: str) -> bool:
        # RedisError propagates; the session service fails closed on it
        return int(self.r.exists(self._k(session_id))) == 0

    def revoke(self, session_id: str) -> None:
        self.r.set(self._k(session_id), "1", ex=max(1, int(self.ttl_seconds)))
