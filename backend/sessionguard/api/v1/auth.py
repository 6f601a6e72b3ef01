"""Demo session endpoints: login, a protected resource and logout."""

from __future__ import annotations

import hmac

from flask import Blueprint, current_app, g

from sessionguard.api.deps import json_response, request_payload, timing
from sessionguard.api.guard import current_session_claims, get_guard, protect
from sessionguard.core.errors import Unauthorized
from sessionguard.schemas import LoginSchema, SessionResponseSchema, claims_payload

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
session_schema = SessionResponseSchema()


def _credentials_match(username: str, password: str) -> bool:
    expected_user = current_app.config.get("DEMO_USERNAME")
    expected_password = current_app.config.get("DEMO_PASSWORD")
    if not expected_user or not expected_password:
        # demo login disabled
        return False
    user_ok = hmac.compare_digest(username.encode(), str(expected_user).encode())
    password_ok = hmac.compare_digest(password.encode(), str(expected_password).encode())
    return user_ok and password_ok


@bp.post("/login")
@timing
def login():
    """Check the demo credentials and start a session."""

    data = login_schema.load(request_payload(), unknown="exclude")
    if not _credentials_match(data["username"], data["password"]):
        raise Unauthorized("Invalid credentials", reason="invalid_credentials")

    role = current_app.config.get("DEMO_ROLE") or "user"
    tokens = get_guard().issue(subject=data["username"], custom_claims={"role": role})
    return json_response({"data": session_schema.dump(tokens)})


@bp.route("/restricted", methods=["GET", "POST"])
@timing
@protect
def restricted():
    """Return the CSRF secret to embed in forms, plus the session claims."""

    claims = current_session_claims()
    body = {
        "data": {
            "csrf_token": g.csrf_secret,
            "role": claims.custom_claims.get("role"),
            "claims": claims_payload(claims),
        }
    }
    return json_response(body)


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented session (best-effort) and clear the tokens."""

    get_guard().terminate()
    return json_response({"data": {"logged_out": True}})
