# tests/unit/services/test_session_service.py
from __future__ import annotations

from datetime import timedelta

import pytest

from sessionguard.services._shared.dto import SessionClaims
from sessionguard.services._shared.errors import (
    ConfigurationError,
    DenialReason,
    InternalError,
    UnauthorizedError,
)
from sessionguard.services._shared.ports import AllowAllRevocationGate, TokenJudgment
from sessionguard.services.session import SessionOptions, SessionService


class ExplodingGate:
    """Revocation gate whose backing store is unreachable."""

    def __init__(self) -> None:
        self.calls = 0

    def is_valid(self, session_id: str) -> bool:
        self.calls += 1
        raise ConnectionError("store down")

    def revoke(self, session_id: str) -> None:
        raise ConnectionError("store down")


class CountingGate:
    def __init__(self) -> None:
        self.checked: list[str] = []
        self.revoked: list[str] = []

    def is_valid(self, session_id: str) -> bool:
        self.checked.append(session_id)
        return session_id not in self.revoked

    def revoke(self, session_id: str) -> None:
        self.revoked.append(session_id)


def _reason(excinfo: pytest.ExceptionInfo[UnauthorizedError]) -> DenialReason:
    return excinfo.value.reason


# ------------------------------ Construction ------------------------------ #


def test_signing_service_requires_signing_key(key_material_for, clock):
    from sessionguard.infra.jwt import PyJWTTokenCodec

    with pytest.raises(ConfigurationError):
        SessionService(
            codec=PyJWTTokenCodec(key_material_for("HS256", verify_only=True)),
            options=SessionOptions(),
            clock=clock,
        )


def test_verify_only_service_rejects_signing_key(codec, clock):
    with pytest.raises(ConfigurationError):
        SessionService(codec=codec, options=SessionOptions(verify_only=True), clock=clock)


def test_injected_empty_gate_is_used_as_is(service, gate):
    assert len(gate) == 0
    assert service.gate is gate


def test_gate_defaults_to_allow_all(codec, clock):
    svc = SessionService(codec=codec, options=SessionOptions(), clock=clock)
    assert isinstance(svc.gate, AllowAllRevocationGate)


# -------------------------------- Issue ----------------------------------- #


def test_issue_binds_both_tokens_to_one_session(service, clock):
    tokens = service.issue(subject="alice", custom_claims={"role": "admin"})

    auth = service.codec.verify(tokens.auth_token, now=clock())
    refresh = service.codec.verify(tokens.refresh_token, now=clock())
    assert auth.judgment is TokenJudgment.VALID
    assert refresh.judgment is TokenJudgment.VALID
    assert auth.claims.session_id == refresh.claims.session_id == tokens.session_id
    assert auth.claims.csrf_secret == refresh.claims.csrf_secret == tokens.csrf_secret
    assert auth.claims.subject == "alice"
    assert auth.claims.custom_claims == {"role": "admin"}
    assert tokens.auth_expires_at == clock() + timedelta(minutes=15)
    assert tokens.refresh_expires_at == clock() + timedelta(hours=72)
    assert tokens.rotated is True


def test_issue_generates_fresh_session_and_secret_each_time(service):
    first = service.issue()
    second = service.issue()
    assert first.session_id != second.session_id
    assert first.csrf_secret != second.csrf_secret


def test_issue_copies_custom_claims(service):
    claims = {"roles": ["user"]}
    tokens = service.issue(custom_claims=claims)
    claims["roles"].append("admin")
    assert tokens.claims.custom_claims == {"roles": ["user"]}


def test_issue_rejects_non_json_custom_claims(service):
    with pytest.raises(InternalError):
        service.issue(custom_claims={"when": object()})


def test_issue_on_verify_only_server_is_unauthorized(verify_only_service):
    with pytest.raises(UnauthorizedError) as excinfo:
        verify_only_service.issue(subject="alice")
    assert _reason(excinfo) is DenialReason.VERIFY_ONLY


def test_secret_generator_failure_is_internal(codec, options, clock):
    def broken() -> str:
        raise OSError("entropy exhausted")

    svc = SessionService(codec=codec, options=options, secret_generator=broken, clock=clock)
    with pytest.raises(InternalError):
        svc.issue()


# ----------------------------- Pass-through ------------------------------- #


def test_pass_through_keeps_auth_token_and_secret(service, clock):
    tokens = service.issue(subject="alice")
    clock.advance(minutes=5)

    out = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)

    assert out.rotated is False
    assert out.auth_token == tokens.auth_token
    assert out.csrf_secret == tokens.csrf_secret
    assert out.session_id == tokens.session_id
    assert out.auth_expires_at == tokens.auth_expires_at
    # refresh expiry slides forward
    assert out.refresh_expires_at == clock() + timedelta(hours=72)
    assert out.refresh_token != tokens.refresh_token


def test_pass_through_is_idempotent(service):
    tokens = service.issue()
    first = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    second = service.refresh(first.auth_token, first.refresh_token, first.csrf_secret)
    assert second.auth_token == first.auth_token
    assert second.csrf_secret == first.csrf_secret
    assert second.session_id == first.session_id


def test_pass_through_does_not_consult_gate(codec, options, clock):
    gate = CountingGate()
    svc = SessionService(codec=codec, options=options, revocation_gate=gate, clock=clock)
    tokens = svc.issue()
    svc.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert gate.checked == []


def test_pass_through_rejects_unverifiable_refresh_token(service):
    tokens = service.issue()
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, "not-a-token", tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.INVALID_REFRESH_TOKEN


def test_verify_only_pass_through_returns_presented_refresh_token(service, verify_only_service):
    tokens = service.issue()
    out = verify_only_service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert out.auth_token == tokens.auth_token
    assert out.refresh_token == tokens.refresh_token
    assert out.rotated is False


# ------------------------------ CSRF binding ------------------------------ #


def test_missing_csrf_secret_is_rejected(service):
    tokens = service.issue()
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, tokens.refresh_token, "")
    assert _reason(excinfo) is DenialReason.MISSING_CSRF


def test_wrong_csrf_secret_is_rejected(service):
    tokens = service.issue()
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, tokens.refresh_token, "forged")
    assert _reason(excinfo) is DenialReason.CSRF_MISMATCH


def test_csrf_of_another_session_is_rejected(service):
    mine = service.issue()
    theirs = service.issue()
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(mine.auth_token, mine.refresh_token, theirs.csrf_secret)
    assert _reason(excinfo) is DenialReason.CSRF_MISMATCH


def test_tampered_auth_token_is_rejected(service):
    tokens = service.issue()
    head, payload, sig = tokens.auth_token.split(".")
    tampered = ".".join([head, payload, ("B" if sig[0] == "A" else "A") + sig[1:]])
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tampered, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.INVALID_AUTH_TOKEN


def test_expired_auth_with_wrong_secret_is_rejected_before_rotation(codec, options, clock):
    gate = CountingGate()
    svc = SessionService(codec=codec, options=options, revocation_gate=gate, clock=clock)
    tokens = svc.issue()
    clock.advance(minutes=20)
    with pytest.raises(UnauthorizedError) as excinfo:
        svc.refresh(tokens.auth_token, tokens.refresh_token, "forged")
    assert _reason(excinfo) is DenialReason.CSRF_MISMATCH
    assert gate.checked == []


# -------------------------------- Rotation -------------------------------- #


def test_rotation_regenerates_auth_token_and_secret(service, clock):
    tokens = service.issue(subject="alice", custom_claims={"role": "user"})
    clock.advance(minutes=16)

    out = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)

    assert out.rotated is True
    assert out.session_id == tokens.session_id
    assert out.csrf_secret != tokens.csrf_secret
    assert out.auth_token != tokens.auth_token
    assert out.auth_expires_at == clock() + timedelta(minutes=15)
    assert out.refresh_expires_at == clock() + timedelta(hours=72)
    assert out.claims.subject == "alice"
    assert out.claims.custom_claims == {"role": "user"}

    refresh = service.codec.verify(out.refresh_token, now=clock())
    assert refresh.claims.session_id == tokens.session_id
    assert refresh.claims.csrf_secret == out.csrf_secret
    # the refresh token keeps its original issue time
    assert refresh.claims.issued_at == tokens.claims.issued_at


def test_rotation_happens_exactly_at_expiry(service, clock):
    tokens = service.issue()
    clock.advance(minutes=15)
    out = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert out.rotated is True


def test_old_secret_is_useless_after_rotation(service, clock):
    tokens = service.issue()
    clock.advance(minutes=16)
    rotated = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)

    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(rotated.auth_token, rotated.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.CSRF_MISMATCH


def test_rotation_takes_claims_from_refresh_token(service, codec, clock):
    tokens = service.issue(subject="alice", custom_claims={"role": "user"})
    # an auth token for the same session carrying different claims
    forged_auth = codec.sign(
        tokens.claims.evolve(subject="mallory", custom_claims={"role": "admin"})
    )
    clock.advance(minutes=16)

    out = service.refresh(forged_auth, tokens.refresh_token, tokens.csrf_secret)
    assert out.claims.subject == "alice"
    assert out.claims.custom_claims == {"role": "user"}


def test_rotation_consults_gate_exactly_once(codec, options, clock):
    gate = CountingGate()
    svc = SessionService(codec=codec, options=options, revocation_gate=gate, clock=clock)
    tokens = svc.issue()
    clock.advance(minutes=16)
    svc.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert gate.checked == [tokens.session_id]


def test_revoked_session_cannot_rotate(service, gate, clock):
    tokens = service.issue()
    gate.revoke(tokens.session_id)
    clock.advance(minutes=16)

    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.REVOKED


def test_revoked_session_still_passes_through_until_auth_expiry(service, gate):
    tokens = service.issue()
    gate.revoke(tokens.session_id)
    out = service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert out.rotated is False


def test_gate_failure_fails_closed(codec, options, clock):
    gate = ExplodingGate()
    svc = SessionService(codec=codec, options=options, revocation_gate=gate, clock=clock)
    tokens = svc.issue()
    clock.advance(minutes=16)

    with pytest.raises(UnauthorizedError) as excinfo:
        svc.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.REVOCATION_CHECK_FAILED
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert gate.calls == 1


def test_expired_refresh_token_cannot_rotate(service, clock):
    tokens = service.issue()
    clock.advance(hours=73)
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.REFRESH_EXPIRED


def test_invalid_refresh_token_cannot_rotate(service, clock):
    tokens = service.issue()
    clock.advance(minutes=16)
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, "garbage", tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.INVALID_REFRESH_TOKEN


def test_verify_only_server_cannot_rotate(service, verify_only_service, clock):
    tokens = service.issue()
    clock.advance(minutes=16)
    with pytest.raises(UnauthorizedError) as excinfo:
        verify_only_service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.VERIFY_ONLY


# ------------------------------- Terminate -------------------------------- #


def test_terminate_revokes_session(service, gate, clock):
    tokens = service.issue()
    outcome = service.terminate(tokens.refresh_token)

    assert outcome.revoked is True
    assert outcome.session_id == tokens.session_id
    assert gate.is_valid(tokens.session_id) is False

    clock.advance(minutes=16)
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(tokens.auth_token, tokens.refresh_token, tokens.csrf_secret)
    assert _reason(excinfo) is DenialReason.REVOKED


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_terminate_without_readable_token_is_not_an_error(service, gate, token):
    outcome = service.terminate(token)
    assert outcome.session_id is None
    assert outcome.revoked is False
    assert len(gate) == 0


def test_terminate_reports_gate_failure(codec, options, clock):
    svc = SessionService(codec=codec, options=options, revocation_gate=ExplodingGate(), clock=clock)
    tokens = svc.issue()
    outcome = svc.terminate(tokens.refresh_token)
    assert outcome.revoked is False
    assert outcome.session_id == tokens.session_id
    assert isinstance(outcome.revoke_error, ConnectionError)


def test_terminate_accepts_expired_refresh_token(service, gate, clock):
    tokens = service.issue()
    clock.advance(hours=100)
    outcome = service.terminate(tokens.refresh_token)
    assert outcome.revoked is True


# -------------------------------- Read ------------------------------------ #


def test_read_claims_of_expired_token(service, clock):
    tokens = service.issue(subject="alice")
    clock.advance(hours=1)
    claims = service.read_claims(tokens.auth_token)
    assert isinstance(claims, SessionClaims)
    assert claims.subject == "alice"


def test_read_claims_of_garbage_is_unauthorized(service):
    with pytest.raises(UnauthorizedError) as excinfo:
        service.read_claims("garbage")
    assert _reason(excinfo) is DenialReason.INVALID_AUTH_TOKEN


# ------------------------------ End-to-end -------------------------------- #


def test_login_pass_through_rotation_logout_scenario(service, clock):
    """Login, use the session, let the auth token lapse, rotate, then log out."""
    login = service.issue(subject="bob", custom_claims={"role": "user"})

    clock.advance(minutes=10)
    same = service.refresh(login.auth_token, login.refresh_token, login.csrf_secret)
    assert same.rotated is False
    assert same.auth_token == login.auth_token

    clock.advance(minutes=10)
    rotated = service.refresh(same.auth_token, same.refresh_token, same.csrf_secret)
    assert rotated.rotated is True
    assert rotated.csrf_secret != login.csrf_secret
    assert rotated.session_id == login.session_id

    clock.advance(minutes=1)
    again = service.refresh(rotated.auth_token, rotated.refresh_token, rotated.csrf_secret)
    assert again.rotated is False
    assert again.auth_token == rotated.auth_token

    outcome = service.terminate(again.refresh_token)
    assert outcome.revoked is True

    clock.advance(minutes=20)
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(again.auth_token, again.refresh_token, again.csrf_secret)
    assert _reason(excinfo) is DenialReason.REVOKED
