"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Load .env during development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_seconds(name: str, default: int) -> int:
    """Parse a duration in whole seconds; blank or non-numeric values yield ``default``."""
    val = os.getenv(name, "").strip()
    if not val:
        return default
    try:
        return int(float(val))
    except ValueError:
        return default


def _default_revocation_backend() -> str:
    return "redis" if os.getenv("REDIS_URL") else "none"


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_SIGNING_ALGORITHM: str
        One of ``HS256/384/512``, ``RS256/384/512`` or ``ES256/384/512``.
    JWT_HMAC_KEY: str | None
        Shared secret for the HMAC-SHA family.
    JWT_PRIVATE_KEY_PATH: str | None
        PEM private key for RSA/ECDSA issuance (unused on verify-only servers).
    JWT_PUBLIC_KEY_PATH: str | None
        PEM public key for RSA/ECDSA verification.
    JWT_VERIFY_ONLY: bool
        Validate tokens but never issue or rotate them.
    JWT_BEARER_TOKENS: bool
        Carry tokens in ``Auth_Token``/``Refresh_Token`` fields instead of cookies.
    JWT_AUTH_TOKEN_TTL: int
        Auth token lifetime in seconds (15 minutes by default).
    JWT_REFRESH_TOKEN_TTL: int
        Refresh token lifetime in seconds (72 hours by default).
    JWT_DEBUG: bool
        Emit every session decision in the logs.
    IS_DEV_ENV: bool
        Drop the ``Secure`` attribute on session cookies.
    REVOCATION_BACKEND: str
        ``"none"`` (always valid), ``"memory"`` or ``"redis"``.
    REDIS_URL: str | None
        Connection URL for the Redis revocation store.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    DEMO_USERNAME / DEMO_PASSWORD / DEMO_ROLE: str | None
        Credentials accepted by the demo login endpoint; login is disabled
        unless both username and password are set.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Token signing
    JWT_SIGNING_ALGORITHM = os.getenv("JWT_SIGNING_ALGORITHM", "HS256")
    JWT_HMAC_KEY = os.getenv("JWT_HMAC_KEY")
    JWT_PRIVATE_KEY_PATH = os.getenv("JWT_PRIVATE_KEY_PATH")
    JWT_PUBLIC_KEY_PATH = os.getenv("JWT_PUBLIC_KEY_PATH")
    JWT_VERIFY_ONLY = env_bool("JWT_VERIFY_ONLY", False)

    # Session lifecycle
    JWT_BEARER_TOKENS = env_bool("JWT_BEARER_TOKENS", False)
    JWT_AUTH_TOKEN_TTL = env_seconds("JWT_AUTH_TOKEN_TTL", 15 * 60)
    JWT_REFRESH_TOKEN_TTL = env_seconds("JWT_REFRESH_TOKEN_TTL", 72 * 60 * 60)
    JWT_DEBUG = env_bool("JWT_DEBUG", False)
    IS_DEV_ENV = env_bool("IS_DEV_ENV", False)

    # Revocation
    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", _default_revocation_backend())
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Demo endpoints
    DEMO_USERNAME = os.getenv("DEMO_USERNAME")
    DEMO_PASSWORD = os.getenv("DEMO_PASSWORD")
    DEMO_ROLE = os.getenv("DEMO_ROLE", "user")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode and insecure cookies by default, and falls back to a
    placeholder HMAC key so the app boots without any environment.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    IS_DEV_ENV = env_bool("IS_DEV_ENV", True)
    JWT_HMAC_KEY = os.getenv("JWT_HMAC_KEY", "CHANGE_ME_JWT")
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-process revocation set and a fixed HMAC key.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    IS_DEV_ENV = True
    JWT_SIGNING_ALGORITHM = "HS256"
    JWT_HMAC_KEY = "testing-hmac-key-with-at-least-32-bytes!"
    REVOCATION_BACKEND = "memory"
    REDIS_URL = None
    DEMO_USERNAME = "testUser"
    DEMO_PASSWORD = "testPassword"
    DEMO_ROLE = "user"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug disabled and cookies ``Secure`` regardless of ``IS_DEV_ENV``.
    """

    DEBUG = False
    IS_DEV_ENV = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
