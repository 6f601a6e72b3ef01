# tests/unit/infra/test_revocation_gates.py
from __future__ import annotations

import threading

from sessionguard.services._shared.ports import (
    AllowAllRevocationGate,
    InMemoryRevocationGate,
    generate_csrf_secret,
)


def test_allow_all_gate_never_revokes():
    gate = AllowAllRevocationGate()
    gate.revoke("sess-1")
    assert gate.is_valid("sess-1") is True


def test_in_memory_gate_revokes():
    gate = InMemoryRevocationGate()
    assert gate.is_valid("sess-1") is True
    gate.revoke("sess-1")
    assert gate.is_valid("sess-1") is False
    assert len(gate) == 1


def test_in_memory_gate_is_safe_across_threads():
    gate = InMemoryRevocationGate()

    def worker(offset: int) -> None:
        for i in range(200):
            gate.revoke(f"sess-{offset}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(gate) == 8 * 200


def test_csrf_secrets_are_url_safe_and_unique():
    secrets = {generate_csrf_secret() for _ in range(100)}
    assert len(secrets) == 100
    for value in secrets:
        # 32 bytes of entropy -> 43 url-safe base64 characters
        assert len(value) == 43
        assert set(value) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")
