# tests/unit/core/test_config.py
from __future__ import annotations

import pytest

from sessionauth.core import config as cfg
from sessionauth.core.config import (
    DEFAULT_DURATION_SECONDS,
    DEFAULT_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    parse_duration,
    validate_config,
)
from sessionauth.services.auth.dto import AuthTokenConfig


@pytest.mark.parametrize(
    ("raw", "seconds"),
    [
        ("30s", 30),
        ("15m", 900),
        ("2h", 7200),
        ("7d", 604800),
        (" 15m ", 900),
        (45, 45),
    ],
)
def test_parse_duration(raw, seconds):
    assert parse_duration(raw) == seconds


@pytest.mark.parametrize("raw", ["", "15", "fifteen minutes", "10w", "-5m"])
def test_parse_duration_falls_back_to_seven_days(raw):
    assert parse_duration(raw) == DEFAULT_DURATION_SECONDS == 7 * 24 * 3600


def test_token_config_from_app_config():
    token_cfg = AuthTokenConfig.from_config(
        {"JWT_ACCESS_EXPIRES_IN": "5m", "JWT_REFRESH_EXPIRES_IN": "1d"}
    )
    assert token_cfg.access_expires.total_seconds() == 300
    assert token_cfg.refresh_ttl_seconds == 86400


def test_token_config_defaults():
    token_cfg = AuthTokenConfig.from_config({})
    assert token_cfg.access_expires.total_seconds() == 900
    assert token_cfg.refresh_ttl_seconds == 7 * 86400


@pytest.mark.parametrize(
    ("env", "expected"),
    [("testing", TestingConfig), ("PRODUCTION", ProductionConfig), ("nope", DevelopmentConfig)],
)
def test_get_config(monkeypatch, env, expected):
    monkeypatch.setenv(cfg.ENV_VAR, env)
    assert get_config() is expected


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG", "Yes")
    monkeypatch.setenv("COUNT", "4")
    monkeypatch.delenv("MISSING", raising=False)

    assert cfg.env_bool("FLAG") is True
    assert cfg.env_bool("MISSING", default=True) is True
    assert cfg.env_int("COUNT", 1) == 4
    assert cfg.env_int("MISSING", 3) == 3


# ----------------------------- validate_config ----------------------------- #
GOOD_SECRET = "k" * 40


def test_validate_config_ignores_non_production():
    validate_config({"APP_ENV": "development", "JWT_SECRET_KEY": DEFAULT_JWT_SECRET})


def test_validate_config_rejects_default_secret(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
    with pytest.raises(RuntimeError, match="must be changed"):
        validate_config({"APP_ENV": "production", "JWT_SECRET_KEY": DEFAULT_JWT_SECRET})


def test_validate_config_rejects_short_secret(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
    with pytest.raises(RuntimeError, match="at least 32"):
        validate_config({"APP_ENV": "production", "JWT_SECRET_KEY": "short"})


def test_validate_config_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        validate_config({"APP_ENV": "production", "JWT_SECRET_KEY": GOOD_SECRET})


def test_validate_config_accepts_sound_production(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
    validate_config({"APP_ENV": "production", "JWT_SECRET_KEY": GOOD_SECRET})
