from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Protocol

from sessionguard.services._shared.dto import SessionClaims


class TokenJudgment(Enum):
    """Outcome of verifying a signed token."""

    VALID = auto()
    EXPIRED_ONLY = auto()
    INVALID = auto()


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """
    Read-model returned by :meth:`TokenCodec.verify`.

    :ivar claims: Decoded claims; ``None`` when the judgment is ``INVALID``.
    :ivar judgment: Signature/expiry verdict.
    """

    claims: SessionClaims | None
    judgment: TokenJudgment

    @property
    def signature_ok(self) -> bool:
        """Whether the signature checked out (valid or merely expired)."""
        return self.judgment is not TokenJudgment.INVALID


class TokenCodec(Protocol):
    """Port for signing claims into tokens and verifying them back."""

    @property
    def can_sign(self) -> bool: ...

    def sign(self, claims: SessionClaims) -> str:
        """
        Serialize and sign ``claims``.

        :raises SigningError: If no signing key is held or signing fails.
        """
        ...

    def verify(self, token: str, *, now: datetime) -> VerifiedToken:
        """
        Check signature, structure and expiry of ``token`` relative to ``now``.

        Never raises for client-supplied garbage; that is ``INVALID``.
        """
        ...
