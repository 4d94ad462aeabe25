"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

DEFAULT_JWT_SECRET: Final[str] = "your-secret-key-change-this-in-production-min-32-chars"
MIN_JWT_SECRET_LENGTH: Final[int] = 32

# Fallback lifetime when a duration string cannot be parsed (7 days).
DEFAULT_DURATION_SECONDS: Final[int] = 7 * 24 * 60 * 60

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS: Final[Mapping[str, int]] = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}

# Loads .env in development (no-op when the file does not exist)
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
    """Parse an integer environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


def parse_duration(value: str | int) -> int:
    """Convert a compact duration such as ``"15m"`` or ``"7d"`` to seconds.

    Parameters
    ----------
    value: str | int
        ``<number><unit>`` where unit is one of ``s``, ``m``, ``h``, ``d``.
        Plain integers are taken as seconds.

    Returns
    -------
    int
        Number of seconds. Unparsable values fall back to seven days.
    """
    if isinstance(value, int):
        return value
    match = _DURATION_RE.match(value.strip())
    if not match:
        return DEFAULT_DURATION_SECONDS
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Shared secret used by ``flask-jwt-extended`` to sign session tokens.
    JWT_ACCESS_EXPIRES_IN: str
        Access token lifetime as a duration string (``15m`` by default).
    JWT_REFRESH_EXPIRES_IN: str
        Refresh token lifetime as a duration string (``7d`` by default).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string for the credential records.
    REDIS_URL: str | None
        Connection URL of the shared token store.
    TOKEN_STORE: str
        ``redis``, ``memory`` or ``auto`` (Redis when reachable, else memory).
    TOKEN_STORE_SWEEP_SECONDS: int
        Interval of the in-memory store's expiry sweeper.
    APP_INSTANCES: int
        Number of concurrently running service instances. The in-memory
        token store is refused when this is greater than one.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method (``scrypt`` or ``pbkdf2:sha256:<rounds>``).
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
    APP_ENV = os.getenv(ENV_VAR, "development")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_EXPIRES_IN = os.getenv("JWT_ACCESS_EXPIRES_IN", "15m")
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")
    JWT_TOKEN_LOCATION = ["headers"]
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Token store
    REDIS_URL = os.getenv("REDIS_URL")
    TOKEN_STORE = os.getenv("TOKEN_STORE", "auto")
    TOKEN_STORE_SWEEP_SECONDS = env_int("TOKEN_STORE_SWEEP_SECONDS", 60)
    APP_INSTANCES = env_int("APP_INSTANCES", 1)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps the token store process-local so tests never need Redis.
    - Uses a cheap PBKDF2 work factor to keep hashing fast.
    """

    APP_ENV = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    JWT_SECRET_KEY = "testing-secret-key-with-at-least-32-characters"
    TOKEN_STORE = "memory"
    REDIS_URL = None
    APP_INSTANCES = 1
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control. The in-memory token store is never
    picked implicitly.
    """

    APP_ENV = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    TOKEN_STORE = os.getenv("TOKEN_STORE", "redis")


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


def validate_config(config: Mapping[str, Any]) -> None:
    """Reject unsafe settings before the application starts serving.

    :param config: Loaded Flask configuration mapping.
    :raises RuntimeError: In production, when the JWT secret is the default
        placeholder or shorter than 32 characters, or when ``DATABASE_URL``
        is missing.
    """
    if str(config.get("APP_ENV", "")).lower() != "production":
        return

    secret = str(config.get("JWT_SECRET_KEY") or "")
    if secret == DEFAULT_JWT_SECRET or "change-this" in secret:
        raise RuntimeError("JWT_SECRET must be changed in production.")
    if len(secret) < MIN_JWT_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters in production."
        )
    if not os.getenv("DATABASE_URL"):
        raise RuntimeError("DATABASE_URL is required in production.")
