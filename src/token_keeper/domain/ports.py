from __future__ import annotations

from typing import Optional, Protocol

from .entities import TokenPayload


class TokenDecoder(Protocol):
    """
    Port for reading the payload of a token.

    Implementations live in the adapters layer (e.g. the unverified JWT
    decoder).
    """

    def decode(self, token: str) -> Optional[TokenPayload]:
        """
        Decode the given token without verifying it.

        Returns None when the token cannot be decoded; never raises.
        """
        ...


class AuthTransport(Protocol):
    """
    Port for the remote authentication service.

    Every operation returns the new token string or raises
    TransportError / AuthAPIError.
    """

    async def login(
        self,
        id: str,
        password: str,
        keep_logged_in: bool = False,
    ) -> str:
        ...

    async def signup(
        self,
        id: str,
        password: str,
        challenge_response: str,
        keep_logged_in: bool = False,
    ) -> str:
        ...

    async def fetch_access_token(
        self,
        refresh_token: Optional[str] = None,
        keep_logged_in: bool = False,
    ) -> str:
        ...

    async def renew_refresh_token(
        self,
        refresh_token: Optional[str] = None,
        keep_logged_in: bool = False,
    ) -> str:
        ...
