"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from sessionguard.services._shared.ports import (
    AllowAllRevocationGate,
    InMemoryRevocationGate,
    RevocationGate,
)

log = logging.getLogger(__name__)

REVOCATION_BACKENDS = ("none", "memory", "redis")

# Global singletons (import-safe)
redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """Initialize the Redis client and the revocation gate.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. ``REVOCATION_BACKEND``
        selects the gate stored under ``app.extensions["revocation_gate"]``;
        ``"redis"`` requires a reachable ``REDIS_URL``.
    """
    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
    else:
        redis_client = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client

    app.extensions["revocation_gate"] = build_revocation_gate(app)


def build_revocation_gate(app: Flask) -> RevocationGate:
    """Return the revocation gate named by ``REVOCATION_BACKEND``."""
    backend = str(app.config.get("REVOCATION_BACKEND") or "none").strip().lower()
    if backend not in REVOCATION_BACKENDS:
        raise RuntimeError(
            f"Unknown REVOCATION_BACKEND {backend!r}; expected one of {REVOCATION_BACKENDS}"
        )

    if backend == "memory":
        return InMemoryRevocationGate()
    if backend == "redis":
        from sessionguard.infra.redis import RedisRevocationGate
        from sessionguard.services.session import SessionOptions

        options = SessionOptions.from_mapping(app.config)
        return RedisRevocationGate(
            r=get_redis(),
            ttl_seconds=int(options.revocation_ttl.total_seconds()),
        )

    log.info("revocation.disabled")
    return AllowAllRevocationGate()


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL and call init_app().")
    return redis_client


def get_revocation_gate(app: Flask) -> RevocationGate:
    """Return the gate bound by :func:`init_app`."""
    gate = app.extensions.get("revocation_gate")
    if gate is None:
        raise RuntimeError("Revocation gate is not initialized. Call init_app() first.")
    return gate
