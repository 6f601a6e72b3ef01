"""Global pytest fixtures for the sessionguard test-suite.

Unit tests build a :class:`SessionService` directly around an HMAC codec and a
controllable clock; integration tests go through the Flask app factory with
:class:`TestingConfig` (in-memory revocation, fixed HMAC key).
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from flask import Flask

os.environ.setdefault("APP_ENV", "testing")

from sessionguard import create_app  # noqa: E402
from sessionguard.core.config import TestingConfig  # noqa: E402
from sessionguard.infra.jwt import PyJWTTokenCodec  # noqa: E402
from sessionguard.services._shared.ports import InMemoryRevocationGate  # noqa: E402
from sessionguard.services.session import KeyMaterial, SessionOptions, SessionService  # noqa: E402

HMAC_SECRET = "unit-test-hmac-secret-with-32-bytes-or-more"
EC_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


class MutableClock:
    """Deterministic clock; call :meth:`advance` to move time forward."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: Any) -> None:
        self.current = self.current + timedelta(**delta)


# ------------------------------ Keys -------------------------------------- #


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """A 2048-bit RSA key shared by the whole session (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_keys() -> dict[str, ec.EllipticCurvePrivateKey]:
    """One EC key per ES* algorithm, on the matching curve."""
    return {alg: ec.generate_private_key(curve()) for alg, curve in EC_CURVES.items()}


@pytest.fixture(scope="session")
def key_material_for(
    rsa_private_key: rsa.RSAPrivateKey,
    ec_private_keys: dict[str, ec.EllipticCurvePrivateKey],
) -> Callable[..., KeyMaterial]:
    """Factory returning :class:`KeyMaterial` for any supported algorithm."""

    def _build(algorithm: str, *, verify_only: bool = False) -> KeyMaterial:
        if algorithm.startswith("HS"):
            return KeyMaterial.from_hmac_secret(algorithm, HMAC_SECRET, verify_only=verify_only)
        private = rsa_private_key if algorithm.startswith("RS") else ec_private_keys[algorithm]
        return KeyMaterial.from_key_pair(
            algorithm,
            public_key=private.public_key(),
            private_key=None if verify_only else private,
            verify_only=verify_only,
        )

    return _build


# ------------------------------ Service ----------------------------------- #


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture()
def gate() -> InMemoryRevocationGate:
    return InMemoryRevocationGate()


@pytest.fixture()
def options() -> SessionOptions:
    return SessionOptions(
        auth_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(hours=72),
    )


@pytest.fixture()
def codec(key_material_for: Callable[..., KeyMaterial]) -> PyJWTTokenCodec:
    return PyJWTTokenCodec(key_material_for("HS256"))


@pytest.fixture()
def service(
    codec: PyJWTTokenCodec,
    options: SessionOptions,
    gate: InMemoryRevocationGate,
    clock: MutableClock,
) -> SessionService:
    """A signing service wired to in-memory doubles and a fixed clock."""
    return SessionService(codec=codec, options=options, revocation_gate=gate, clock=clock)


@pytest.fixture()
def verify_only_service(
    key_material_for: Callable[..., KeyMaterial],
    options: SessionOptions,
    gate: InMemoryRevocationGate,
    clock: MutableClock,
) -> SessionService:
    """A verify-only service sharing the HMAC secret of :func:`service`."""
    return SessionService(
        codec=PyJWTTokenCodec(key_material_for("HS256", verify_only=True)),
        options=SessionOptions(
            verify_only=True,
            auth_token_ttl=options.auth_token_ttl,
            refresh_token_ttl=options.refresh_token_ttl,
        ),
        revocation_gate=gate,
        clock=clock,
    )


# ------------------------------ Flask ------------------------------------- #


@pytest.fixture()
def make_app() -> Callable[..., Flask]:
    """Build an app from :class:`TestingConfig` with attribute overrides."""

    def _make(**overrides: Any) -> Flask:
        config = type("OverrideConfig", (TestingConfig,), overrides)
        return create_app(config, instance_relative_config=False)

    return _make


@pytest.fixture()
def app(make_app: Callable[..., Flask]) -> Flask:
    """Cookie-transport application."""
    return make_app()


@pytest.fixture()
def client(app: Flask):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def bearer_app(make_app: Callable[..., Flask]) -> Flask:
    """Bearer-field transport application."""
    return make_app(JWT_BEARER_TOKENS=True)


@pytest.fixture()
def bearer_client(bearer_app: Flask):
    return bearer_app.test_client()


@pytest.fixture()
def login_payload() -> dict[str, str]:
    return {
        "username": TestingConfig.DEMO_USERNAME or "",
        "password": TestingConfig.DEMO_PASSWORD or "",
    }
