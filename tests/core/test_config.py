from __future__ import annotations

import pytest

from heritage360.core.config import load_settings

_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "STREAK_TIMEZONE",
    "PROGRESS_MAX_RETRIES",
    "DATABASE_URL",
    "REDIS_URL",
    "JWT_PUBLIC_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


# ---- valid values ----


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.database_url is None
    assert settings.redis_url is None
    assert settings.streak_timezone == "UTC"
    assert settings.progress_max_retries == 3


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.setenv("LOG_JSON", "true")
    monkeypatch.setenv("STREAK_TIMEZONE", "Africa/Addis_Ababa")
    monkeypatch.setenv("PROGRESS_MAX_RETRIES", "5")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    settings = load_settings()
    assert settings.is_prod
    assert settings.log_level == "error"
    assert settings.log_json is True
    assert settings.streak_tz.key == "Africa/Addis_Ababa"
    assert settings.progress_max_retries == 5
    assert settings.redis_url == "redis://localhost:6379/0"


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  TEST  ")
    monkeypatch.setenv("LOG_LEVEL", " Debug ")
    settings = load_settings()
    assert settings.is_test
    assert settings.log_level == "debug"


def test_blank_urls_are_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "   ")
    assert load_settings().database_url is None


# ---- invalid values ----


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("APP_ENV", "staging", "APP_ENV must be dev|test|prod"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be"),
        ("LOG_JSON", "maybe", "LOG_JSON must be a boolean"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("STREAK_TIMEZONE", "Mars/Olympus_Mons", "STREAK_TIMEZONE must be an IANA zone name"),
        ("PROGRESS_MAX_RETRIES", "many", "PROGRESS_MAX_RETRIES must be an integer"),
        ("PROGRESS_MAX_RETRIES", "0", "PROGRESS_MAX_RETRIES must be >= 1"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message.replace("|", r"\|")):
        load_settings()
