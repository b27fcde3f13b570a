"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# HS256 keys shorter than this are rejected at startup
MIN_JWT_SECRET_BYTES: Final[int] = 32

# Load .env when present (no-op otherwise)
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


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        HS256 signing key for access tokens. Must be at least 32 bytes.
    JWT_ISSUER / JWT_AUDIENCE: str
        Expected ``iss`` and ``aud`` claims, used both when encoding and when
        decoding access tokens.
    ACCESS_TOKEN_EXPIRES_MINUTES: int
        Lifetime of access tokens.
    REFRESH_TOKEN_EXPIRES_DAYS: int
        Lifetime of the opaque refresh token stored on the account.
    PASSWORD_RESET_TOKEN_EXPIRES_HOURS: int
        Lifetime of password reset tokens.
    DEFAULT_ROLE / ADMIN_ROLE: str
        Role granted on registration and role required by admin endpoints.
    PASSWORD_*: int | bool
        Password policy knobs.
    REDIS_URL: str | None
        When set, password reset tokens are kept in Redis instead of memory.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv(
        "JWT_SECRET_KEY", "dev-only-signing-key-change-me-0123456789abcdef"
    )
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ISSUER = os.getenv("JWT_ISSUER", "usermgmt")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "usermgmt-clients")
    ACCESS_TOKEN_EXPIRES_MINUTES = env_int("ACCESS_TOKEN_EXPIRES_MINUTES", 60)
    REFRESH_TOKEN_EXPIRES_DAYS = env_int("REFRESH_TOKEN_EXPIRES_DAYS", 7)
    PASSWORD_RESET_TOKEN_EXPIRES_HOURS = env_int("PASSWORD_RESET_TOKEN_EXPIRES_HOURS", 24)

    # Roles
    DEFAULT_ROLE = os.getenv("DEFAULT_ROLE", "User")
    ADMIN_ROLE = os.getenv("ADMIN_ROLE", "Admin")

    # Password policy
    PASSWORD_MIN_LENGTH = env_int("PASSWORD_MIN_LENGTH", 6)
    PASSWORD_REQUIRE_DIGIT = env_bool("PASSWORD_REQUIRE_DIGIT", True)
    PASSWORD_REQUIRE_LOWERCASE = env_bool("PASSWORD_REQUIRE_LOWERCASE", True)
    PASSWORD_REQUIRE_UPPERCASE = env_bool("PASSWORD_REQUIRE_UPPERCASE", True)
    PASSWORD_REQUIRE_NON_ALPHANUMERIC = env_bool("PASSWORD_REQUIRE_NON_ALPHANUMERIC", True)

    # DB / cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL") or None

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = 600

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; reset tokens stay in process memory.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-signing-key-0123456789abcdef0123456789"
    REDIS_URL = None
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def apply_jwt_settings(config: Any) -> None:
    """Derive ``flask-jwt-extended`` keys from the project-level JWT settings.

    ``config`` is a Flask config mapping. Issuer and audience are enforced on
    both encode and decode; the access token lifetime comes from
    ``ACCESS_TOKEN_EXPIRES_MINUTES``.
    """
    config.setdefault("JWT_ENCODE_ISSUER", config.get("JWT_ISSUER"))
    config.setdefault("JWT_DECODE_ISSUER", config.get("JWT_ISSUER"))
    config.setdefault("JWT_ENCODE_AUDIENCE", config.get("JWT_AUDIENCE"))
    config.setdefault("JWT_DECODE_AUDIENCE", config.get("JWT_AUDIENCE"))
    config.setdefault(
        "JWT_ACCESS_TOKEN_EXPIRES",
        timedelta(minutes=int(config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 60))),
    )
    # zero clock skew when validating lifetimes
    config.setdefault("JWT_DECODE_LEEWAY", 0)


def validate_security_settings(config: Any) -> None:
    """Fail fast when the signing key is missing or too short for HS256."""
    secret = config.get("JWT_SECRET_KEY") or ""
    if len(str(secret).encode("utf-8")) < MIN_JWT_SECRET_BYTES:
        raise RuntimeError(
            f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_BYTES} bytes long"
        )
    if not config.get("JWT_ISSUER") or not config.get("JWT_AUDIENCE"):
        raise RuntimeError("JWT_ISSUER and JWT_AUDIENCE must be configured")
