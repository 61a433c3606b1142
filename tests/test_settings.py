import math

import pytest

from token_keeper.adapters.service.auth_api import AuthAPI
from token_keeper.domain.exceptions import ConfigurationError
from token_keeper.env import settings_from_env
from token_keeper.settings import AuthSettings

ENV_KEYS = [
    "AUTH_HOST",
    "AUTH_STRINGS_LANG",
    "AUTH_VERIFY_SSL",
    "AUTH_TIMEOUT",
    "AUTH_KEEP_LOGGED_IN",
    "AUTH_REFRESH_THRESHOLD",
    "AUTH_ACCESS_THRESHOLD",
    "AUTH_REFRESH_CHECK_PERIOD",
    "AUTH_ACCESS_CHECK_PERIOD",
    "TOKEN_KEEPER_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_missing_required_settings(monkeypatch):
    with pytest.raises(ConfigurationError) as excinfo:
        settings_from_env()
    assert "AUTH_HOST" in str(excinfo.value)
    assert "AUTH_STRINGS_LANG" in str(excinfo.value)

    monkeypatch.setenv("AUTH_HOST", "https://auth.example.test")
    with pytest.raises(ConfigurationError) as excinfo:
        settings_from_env()
    assert "AUTH_HOST" not in str(excinfo.value)


def test_defaults(monkeypatch):
    monkeypatch.setenv("AUTH_HOST", "https://auth.example.test/")
    monkeypatch.setenv("AUTH_STRINGS_LANG", "en")

    settings = settings_from_env()

    assert settings.verify_ssl is True
    assert settings.keep_logged_in is False
    assert settings.refresh_threshold == 3600
    assert settings.access_check_period == 300
    assert settings.host_no_slash == "https://auth.example.test"


def test_overrides(monkeypatch):
    monkeypatch.setenv("AUTH_HOST", "https://auth.example.test")
    monkeypatch.setenv("AUTH_STRINGS_LANG", "ko")
    monkeypatch.setenv("AUTH_VERIFY_SSL", "no")
    monkeypatch.setenv("AUTH_KEEP_LOGGED_IN", "yes")
    monkeypatch.setenv("AUTH_REFRESH_THRESHOLD", "inf")
    monkeypatch.setenv("AUTH_ACCESS_CHECK_PERIOD", "12.5")

    settings = settings_from_env()

    assert settings.verify_ssl is False
    assert settings.keep_logged_in is True
    assert math.isinf(settings.refresh_policy.threshold)
    assert settings.access_policy.period == 12.5


@pytest.mark.parametrize(
    "key,value",
    [("AUTH_TIMEOUT", "fast"), ("AUTH_REFRESH_CHECK_PERIOD", "0"), ("AUTH_ACCESS_THRESHOLD", "-5")],
)
def test_invalid_numbers(monkeypatch, key, value):
    monkeypatch.setenv("AUTH_HOST", "https://auth.example.test")
    monkeypatch.setenv("AUTH_STRINGS_LANG", "en")
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError):
        settings_from_env()


@pytest.mark.asyncio
async def test_create_transport():
    settings = AuthSettings(host="https://auth.example.test/", lang="en")
    api = settings.create_transport()
    try:
        assert isinstance(api, AuthAPI)
        assert api.host == "https://auth.example.test"
        assert api.lang == "en"
    finally:
        await api.close()
