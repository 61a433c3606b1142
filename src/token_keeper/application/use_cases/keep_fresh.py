from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ...adapters.unverified.jwt_decoder import UnverifiedTokenDecoder
from ...domain.constants import (
    DEFAULT_ACCESS_CHECK_PERIOD,
    DEFAULT_ACCESS_THRESHOLD,
    DEFAULT_REFRESH_CHECK_PERIOD,
    DEFAULT_REFRESH_THRESHOLD,
    TokenKind,
)
from ...domain.exceptions import TransportError
from ...domain.ports import AuthTransport, TokenDecoder
from ...domain.value_objects import RenewalPolicy, access_policy, refresh_policy

logger = logging.getLogger(__name__)

TokenObserver = Callable[[str], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _short(token: str) -> str:
    return f"{token[:8]}..." if len(token) > 8 else "..."


class TokenKeeper:
    """
    Keeps a refresh token and an access token alive.

    Two independent asyncio tasks periodically decode the token they watch
    and, once it is within its renewal threshold, ask the transport for a
    new one. Failures are logged and retried on the next check; they never
    leave the background tasks.

    The keeper does not own the transport: closing it is up to the caller.
    """

    def __init__(
        self,
        transport: AuthTransport,
        refresh_token: Optional[str] = None,
        access_token: Optional[str] = None,
        *,
        decoder: Optional[TokenDecoder] = None,
        keep_logged_in: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.transport = transport
        self.refresh_token = refresh_token
        self.access_token = access_token
        self.keep_logged_in = keep_logged_in

        self.on_refresh_token_renewed: Optional[TokenObserver] = None
        self.on_access_token_renewed: Optional[TokenObserver] = None

        self._decoder = decoder or UnverifiedTokenDecoder()
        self._clock = clock or _utcnow

        self._policies: Dict[TokenKind, RenewalPolicy] = {
            TokenKind.REFRESH: refresh_policy(),
            TokenKind.ACCESS: access_policy(),
        }
        self._locks: Dict[TokenKind, asyncio.Lock] = {
            TokenKind.REFRESH: asyncio.Lock(),
            TokenKind.ACCESS: asyncio.Lock(),
        }
        self._tasks: Dict[TokenKind, asyncio.Task[None]] = {}
        self._in_flight: Set[asyncio.Future[bool]] = set()

    async def __aenter__(self) -> "TokenKeeper":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.disarm()

    # ------------------------------------------------------------------ #
    # observers
    # ------------------------------------------------------------------ #

    def watch_refresh_token(self, callback: Optional[TokenObserver]) -> None:
        self.on_refresh_token_renewed = callback

    def watch_access_token(self, callback: Optional[TokenObserver]) -> None:
        self.on_access_token_renewed = callback

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #

    @property
    def armed(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    async def arm(
        self,
        refresh_threshold: float = DEFAULT_REFRESH_THRESHOLD,
        access_threshold: float = DEFAULT_ACCESS_THRESHOLD,
        refresh_check_period: float = DEFAULT_REFRESH_CHECK_PERIOD,
        access_check_period: float = DEFAULT_ACCESS_CHECK_PERIOD,
    ) -> None:
        """
        Check both tokens once, then keep checking them periodically.

        Thresholds and periods are in seconds. A threshold of `math.inf`
        renews the token on every check. Arming again replaces the running
        checks.

        Raises:
            ValueError if a threshold or period is invalid.
        """
        policies = {
            TokenKind.REFRESH: refresh_policy(refresh_threshold, refresh_check_period),
            TokenKind.ACCESS: access_policy(access_threshold, access_check_period),
        }
        self.disarm()
        self._policies = policies

        await self.check_refresh_token()
        await self.check_access_token()

        # another arm() may have started timers while the eager pass awaited
        self.disarm()
        self._tasks = {
            TokenKind.REFRESH: asyncio.create_task(
                self._run_periodically(TokenKind.REFRESH, self.check_refresh_token),
                name="token-keeper-refresh",
            ),
            TokenKind.ACCESS: asyncio.create_task(
                self._run_periodically(TokenKind.ACCESS, self.check_access_token),
                name="token-keeper-access",
            ),
        }
        logger.debug(
            "Armed token keeper (refresh every %ss, access every %ss)",
            refresh_check_period,
            access_check_period,
        )

    def disarm(self) -> None:
        """
        Stop the periodic checks.

        A renewal already waiting on the transport still completes and
        stores its result.
        """
        if not self._tasks:
            return
        for task in self._tasks.values():
            task.cancel()
        self._tasks = {}
        logger.debug("Disarmed token keeper")

    async def _run_periodically(
        self,
        kind: TokenKind,
        check: Callable[[], Awaitable[bool]],
    ) -> None:
        period = self._policies[kind].period
        while True:
            await asyncio.sleep(period)
            # shielded: cancelling the loop must not abort a renewal in flight
            running = asyncio.ensure_future(check())
            self._in_flight.add(running)
            running.add_done_callback(self._in_flight.discard)
            await asyncio.shield(running)

    # ------------------------------------------------------------------ #
    # checks
    # ------------------------------------------------------------------ #

    async def check_refresh_token(self) -> bool:
        """Renew the refresh token if it is close to expiry."""
        async with self._locks[TokenKind.REFRESH]:
            refresh_token = self.refresh_token
            if not refresh_token:
                return False
            if not self._needs_renewal(TokenKind.REFRESH, refresh_token):
                return False

            renewed = await self._renew(
                TokenKind.REFRESH,
                self.transport.renew_refresh_token,
                refresh_token,
            )
            if renewed is None:
                return False

            self.refresh_token = renewed
            self._notify(self.on_refresh_token_renewed, TokenKind.REFRESH, renewed)
            return True

    async def check_access_token(self) -> bool:
        """Renew the access token if it is close to expiry."""
        async with self._locks[TokenKind.ACCESS]:
            refresh_token = self.refresh_token
            access_token = self.access_token
            # The access token can only be renewed by proving identity
            if not refresh_token or not access_token:
                return False
            if not self._needs_renewal(TokenKind.ACCESS, access_token):
                return False

            renewed = await self._renew(
                TokenKind.ACCESS,
                self.transport.fetch_access_token,
                refresh_token,
            )
            if renewed is None:
                return False

            self.access_token = renewed
            self._notify(self.on_access_token_renewed, TokenKind.ACCESS, renewed)
            return True

    def _needs_renewal(self, kind: TokenKind, token: str) -> bool:
        payload = self._decoder.decode(token)
        if payload is None:
            logger.debug("Skipping %s check: token could not be decoded", kind.value)
            return False

        if payload.kind is not None and payload.kind is not kind:
            logger.warning(
                "Held %s token carries type %r", kind.value, payload.type
            )

        remaining = payload.remaining(self._clock())
        if remaining is None:
            logger.debug("Skipping %s check: token carries no expiry", kind.value)
            return False

        return self._policies[kind].needs_renewal(remaining)

    async def _renew(
        self,
        kind: TokenKind,
        call: Callable[..., Awaitable[str]],
        refresh_token: str,
    ) -> Optional[str]:
        try:
            renewed = await call(refresh_token, self.keep_logged_in)
        except TransportError as exc:
            logger.warning("Could not renew %s token: %s", kind.value, exc)
            return None
        except Exception:
            logger.exception("Unexpected error while renewing %s token", kind.value)
            return None

        logger.info("Renewed %s token (%s)", kind.value, _short(renewed))
        return renewed

    def _notify(
        self,
        callback: Optional[TokenObserver],
        kind: TokenKind,
        token: str,
    ) -> None:
        if callback is None:
            return
        try:
            callback(token)
        except Exception:
            logger.exception("%s token observer failed", kind.value.capitalize())
