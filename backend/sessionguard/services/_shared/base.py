# sessionguard/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from sessionguard.core import errors as api_errors
from sessionguard.services._shared.errors import (
    ConfigurationError,
    InternalError,
    ServiceError,
    UnauthorizedError,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Own the service clock so time can be controlled in tests.
    * Centralize error translation towards the HTTP layer.
    * Keep services thin, orchestration-only, no web leakage.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Zero-argument callable returning an aware UTC ``datetime``.
        :type clock: Clock | None
        """
        self._clock = clock or utc_now

    def now_utc(self) -> datetime:
        return self._clock()

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, UnauthorizedError):
            # → 401 Unauthorized
            return api_errors.Unauthorized(str(exc), reason=exc.reason.value)

        if isinstance(exc, InternalError | ConfigurationError):
            # → 500; never leak key or signing details to clients
            return api_errors.InternalServerError()

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
