from __future__ import annotations

import threading
from typing import Protocol


class RevocationGate(Protocol):
    """
    Caller-owned check/revoke pair keyed by session identifier.

    The session engine never stores revocation state itself. Implementations
    may block (database, network) and MUST be safe to call concurrently from
    many request contexts.
    """

    def is_valid(self, session_id: str) -> bool:
        """Return ``True`` unless the session has been explicitly revoked."""
        ...

    def revoke(self, session_id: str) -> None:
        """Mark the session as revoked. Best-effort; may raise on store errors."""
        ...


class AllowAllRevocationGate(RevocationGate):
    """Default gate used when no revocation store is configured."""

    def is_valid(self, session_id: str) -> bool:
        return True

    def revoke(self, session_id: str) -> None:
        return None


class InMemoryRevocationGate(RevocationGate):
    """
    Process-local revocation set.

    .. note::
       Uses a threading lock; suitable for tests and single-process servers.
    """

    def __init__(self) -> None:
        self._revoked: set[str] = set()
        self._lock = threading.Lock()

    def is_valid(self, session_id: str) -> bool:
        with self._lock:
            return session_id not in self._revoked

    def revoke(self, session_id: str) -> None:
        with self._lock:
            self._revoked.add(session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._revoked)
