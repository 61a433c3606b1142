from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from .adapters.service.auth_api import AuthAPI
from .domain.constants import (
    DEFAULT_ACCESS_CHECK_PERIOD,
    DEFAULT_ACCESS_THRESHOLD,
    DEFAULT_REFRESH_CHECK_PERIOD,
    DEFAULT_REFRESH_THRESHOLD,
)
from .domain.value_objects import RenewalPolicy


@dataclass(slots=True)
class AuthSettings:
    """
    Authentication service connection + renewal settings.

    Host code decides how to construct this (env, config file, etc.).
    """
    host: str
    lang: str
    verify_ssl: bool = True
    timeout: float = 30.0
    keep_logged_in: bool = False

    # Renewal, in seconds
    refresh_threshold: float = DEFAULT_REFRESH_THRESHOLD
    access_threshold: float = DEFAULT_ACCESS_THRESHOLD
    refresh_check_period: float = DEFAULT_REFRESH_CHECK_PERIOD
    access_check_period: float = DEFAULT_ACCESS_CHECK_PERIOD

    @property
    def host_no_slash(self) -> str:
        return self.host.strip().rstrip("/")

    @property
    def refresh_policy(self) -> RenewalPolicy:
        return RenewalPolicy(threshold=self.refresh_threshold, period=self.refresh_check_period)

    @property
    def access_policy(self) -> RenewalPolicy:
        return RenewalPolicy(threshold=self.access_threshold, period=self.access_check_period)

    def create_transport(self, client: Optional[httpx.AsyncClient] = None) -> AuthAPI:
        return AuthAPI(
            self.lang,
            self.host_no_slash,
            client=client,
            timeout=self.timeout,
            verify_ssl=self.verify_ssl,
        )
