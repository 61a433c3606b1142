# src/token_keeper/domain/value_objects.py

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field

from .constants import (
    DEFAULT_ACCESS_CHECK_PERIOD,
    DEFAULT_ACCESS_THRESHOLD,
    DEFAULT_REFRESH_CHECK_PERIOD,
    DEFAULT_REFRESH_THRESHOLD,
)


# --- Identity value objects ----------------------------------------------


@dataclass(frozen=True, slots=True)
class Credentials:
    """
    Account id + clear password.

    The service never receives the clear password, only its SHA-256 digest.
    """
    id: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Credentials require a non-empty id")

    @property
    def password_digest(self) -> str:
        return hashlib.sha256(self.password.encode("utf-8")).hexdigest()


# --- Renewal value objects -----------------------------------------------


@dataclass(frozen=True, slots=True)
class RenewalPolicy:
    """
    When to renew one kind of token.

    - threshold: renew once fewer than this many seconds remain.
                 `math.inf` renews on every check.
    - period:    seconds between two checks.
    """

    threshold: float
    period: float

    def __post_init__(self) -> None:
        if math.isnan(self.threshold) or self.threshold < 0:
            raise ValueError(f"Invalid renewal threshold: {self.threshold!r}")
        if not math.isfinite(self.period) or self.period <= 0:
            raise ValueError(f"Invalid check period: {self.period!r}")

    def needs_renewal(self, remaining: float) -> bool:
        return remaining < self.threshold


def refresh_policy(
        threshold: float = DEFAULT_REFRESH_THRESHOLD,
        period: float = DEFAULT_REFRESH_CHECK_PERIOD,
) -> RenewalPolicy:
    return RenewalPolicy(threshold=threshold, period=period)


def access_policy(
        threshold: float = DEFAULT_ACCESS_THRESHOLD,
        period: float = DEFAULT_ACCESS_CHECK_PERIOD,
) -> RenewalPolicy:
    return RenewalPolicy(threshold=threshold, period=period)
