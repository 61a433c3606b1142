from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ...domain.entities import TokenPair
from ...domain.ports import AuthTransport, TokenDecoder
from ...domain.value_objects import Credentials
from .keep_fresh import TokenKeeper

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SignInUseCase:
    """
    Application use case:
    - Trade credentials for a refresh token via the AuthTransport port
    - Immediately fetch a first access token with it

    Errors from the transport (TransportError, AuthAPIError) propagate:
    unlike background renewal, a sign-in is something the caller waits on.
    """

    transport: AuthTransport

    async def login(self, credentials: Credentials, keep_logged_in: bool = False) -> TokenPair:
        refresh_token = await self.transport.login(
            credentials.id,
            credentials.password,
            keep_logged_in,
        )
        logger.info("Logged in as %s", credentials.id)
        return await self._with_access_token(refresh_token, keep_logged_in)

    async def signup(
        self,
        credentials: Credentials,
        challenge_response: str,
        keep_logged_in: bool = False,
    ) -> TokenPair:
        refresh_token = await self.transport.signup(
            credentials.id,
            credentials.password,
            challenge_response,
            keep_logged_in,
        )
        logger.info("Signed up as %s", credentials.id)
        return await self._with_access_token(refresh_token, keep_logged_in)

    def keeper(
        self,
        pair: TokenPair,
        *,
        decoder: Optional[TokenDecoder] = None,
        keep_logged_in: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> TokenKeeper:
        """Build a TokenKeeper bound to the same transport."""
        return TokenKeeper(
            self.transport,
            pair.refresh_token,
            pair.access_token,
            decoder=decoder,
            keep_logged_in=keep_logged_in,
            clock=clock,
        )

    async def _with_access_token(self, refresh_token: str, keep_logged_in: bool) -> TokenPair:
        access_token = await self.transport.fetch_access_token(refresh_token, keep_logged_in)
        return TokenPair(refresh_token=refresh_token, access_token=access_token)
