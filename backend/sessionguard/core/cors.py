"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

# Session headers the browser must be allowed to read back
EXPOSED_HEADERS = [
    "X-CSRF-Token",
    "Auth-Expiry",
    "Refresh-Expiry",
    "Auth_Token",
    "Refresh_Token",
    "X-Request-ID",
]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-CSRF-Token", "X-Request-ID"]


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows
        any origin but disables credential support, which also means session
        cookies are not sent cross-origin.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=EXPOSED_HEADERS,
        allow_headers=ALLOWED_HEADERS,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
