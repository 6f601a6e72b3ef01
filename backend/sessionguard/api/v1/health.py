"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app

from sessionguard.api.deps import json_response, timing
from sessionguard.core.extensions import get_revocation_gate
from sessionguard.infra.redis import RedisRevocationGate

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application and revocation store health information."""

    backend = str(current_app.config.get("REVOCATION_BACKEND") or "none").lower()
    revocation_status = "ok"
    gate = get_revocation_gate(current_app)
    if isinstance(gate, RedisRevocationGate):
        try:
            gate.r.ping()
        except Exception:  # pragma: no cover - depends on Redis availability
            current_app.logger.exception("healthcheck.redis_error")
            revocation_status = "fail"
    version = current_app.config.get("APP_VERSION", "dev")
    payload = {
        "status": "ok",
        "revocation": {"backend": backend, "status": revocation_status},
        "version": version,
    }
    return json_response(payload)
