import time
from typing import Any, Optional
from unittest.mock import AsyncMock

import jwt
import pytest


def mint_token(expires_in: float, **claims: Any) -> str:
    """Signed HS256 token whose `expires` claim is now + expires_in seconds."""
    payload = {"type": "refresh", "id": "user-1", "expires": int(time.time() + expires_in)}
    payload.update(claims)
    return jwt.encode(payload, "test-secret", algorithm="HS256")


class FakeTransport:
    """In-memory AuthTransport handing out fresh tokens on every call."""

    def __init__(self) -> None:
        self.counter = 0
        self.login = AsyncMock(side_effect=self._issue_refresh)
        self.signup = AsyncMock(side_effect=self._issue_refresh)
        self.fetch_access_token = AsyncMock(side_effect=self._issue_access)
        self.renew_refresh_token = AsyncMock(side_effect=self._issue_refresh)

    def _next(self) -> int:
        self.counter += 1
        return self.counter

    async def _issue_refresh(self, *args: Any, **kwargs: Any) -> str:
        return mint_token(7 * 24 * 3600, type="refresh", generation=self._next())

    async def _issue_access(self, refresh_token: Optional[str] = None, *args: Any, **kwargs: Any) -> str:
        return mint_token(3600, type="access", nonce=self._next())


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
