"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

F = TypeVar("F", bound=Callable[..., Any])


def request_payload() -> Mapping[str, Any]:
    """Return the JSON object body, or the form fields when the body is not JSON."""

    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Log handler latency, tagged with the session the request ran under."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            claims = g.get("session_claims")
            current_app.logger.debug(
                "request.elapsed",
                extra={
                    "endpoint": request.endpoint,
                    "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                    "session_id": claims.session_id if claims is not None else None,
                },
            )

    return wrapper  # type: ignore[return-value]
