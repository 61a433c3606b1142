from __future__ import annotations

import os

from .domain.constants import (
    DEFAULT_ACCESS_CHECK_PERIOD,
    DEFAULT_ACCESS_THRESHOLD,
    DEFAULT_REFRESH_CHECK_PERIOD,
    DEFAULT_REFRESH_THRESHOLD,
)
from .domain.exceptions import ConfigurationError
from .settings import AuthSettings


def settings_from_env() -> AuthSettings:
    def _bool(key: str, default: bool) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc

    host = os.getenv("AUTH_HOST")
    lang = os.getenv("AUTH_STRINGS_LANG")
    if not all([host, lang]):
        missing = [
            n
            for n, v in [
                ("AUTH_HOST", host),
                ("AUTH_STRINGS_LANG", lang),
            ]
            if not v
        ]
        raise ConfigurationError(f"Missing auth settings: {', '.join(missing)}")

    settings = AuthSettings(
        host=host,
        lang=lang,
        verify_ssl=_bool("AUTH_VERIFY_SSL", True),
        timeout=_float("AUTH_TIMEOUT", 30.0),
        keep_logged_in=_bool("AUTH_KEEP_LOGGED_IN", False),
        refresh_threshold=_float("AUTH_REFRESH_THRESHOLD", DEFAULT_REFRESH_THRESHOLD),
        access_threshold=_float("AUTH_ACCESS_THRESHOLD", DEFAULT_ACCESS_THRESHOLD),
        refresh_check_period=_float("AUTH_REFRESH_CHECK_PERIOD", DEFAULT_REFRESH_CHECK_PERIOD),
        access_check_period=_float("AUTH_ACCESS_CHECK_PERIOD", DEFAULT_ACCESS_CHECK_PERIOD),
    )

    # fail early on unusable renewal numbers
    try:
        settings.refresh_policy
        settings.access_policy
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    return settings
