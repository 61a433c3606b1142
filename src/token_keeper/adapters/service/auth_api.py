from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ...domain.constants import DEFAULT_STRINGS, UNKNOWN_ERROR
from ...domain.exceptions import AuthAPIError, TransportError
from ...domain.ports import AuthTransport
from ...domain.value_objects import Credentials

logger = logging.getLogger(__name__)


class AuthAPI(AuthTransport):
    """
    Async client for the authentication service (httpx-based).

    - turns credentials into a refresh token (login / signup)
    - exchanges a refresh token for an access token
    - renews refresh tokens
    - maps error reasons to the localized strings served under /strings/

    A refresh token passed explicitly is sent in the Authorization header.
    Without one, the request relies on whatever session cookies the
    underlying client holds.
    """

    def __init__(
        self,
        lang: str,
        host: str = "",
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ) -> None:
        self.host = host.rstrip("/")
        self.lang = lang
        self.strings: Dict[str, str] = dict(DEFAULT_STRINGS)

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(verify=verify_ssl, timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AuthAPI":
        await self.load_strings()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # localized strings
    # ------------------------------------------------------------------ #

    async def load_strings(self) -> Dict[str, str]:
        """
        Fetch the error strings for `lang`.

        On failure the current strings are kept; the transport stays usable.
        """
        url = f"{self.host}/strings/{self.lang}.json"
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not load strings for %r: %s", self.lang, exc)
            return self.strings

        if not isinstance(data, dict):
            logger.warning("Ignoring strings for %r: not a JSON object", self.lang)
            return self.strings

        self.strings = {str(k): str(v) for k, v in data.items()}
        self.strings.setdefault(UNKNOWN_ERROR, DEFAULT_STRINGS[UNKNOWN_ERROR])
        return self.strings

    def _message_for(self, reason: Any) -> str:
        text = self.strings.get(reason) if isinstance(reason, str) else None
        if not text:
            return self.strings.get(UNKNOWN_ERROR) or DEFAULT_STRINGS[UNKNOWN_ERROR]
        return text

    # ------------------------------------------------------------------ #
    # base helpers
    # ------------------------------------------------------------------ #

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            resp = await self._client.request(
                method,
                f"{self.host}{path}",
                headers=headers,
                params=params,
                json=json,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        data: Dict[str, Any] = {"reason": UNKNOWN_ERROR}
        if "application/json" in resp.headers.get("content-type", ""):
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                data = body

        if resp.status_code != 200:
            reason = data.get("reason")
            logger.debug("%s %s rejected: %s %s", method, path, resp.status_code, reason)
            raise AuthAPIError(
                self._message_for(reason),
                status_code=resp.status_code,
                reason=reason if isinstance(reason, str) else None,
            )

        return data

    def _token_from(self, data: Dict[str, Any], key: str) -> str:
        token = data.get(key)
        if not isinstance(token, str) or not token:
            raise AuthAPIError(self._message_for(UNKNOWN_ERROR), status_code=200, reason=UNKNOWN_ERROR)
        return token

    @staticmethod
    def _token_headers(refresh_token: Optional[str]) -> Optional[Dict[str, str]]:
        if refresh_token:
            return {"Authorization": refresh_token}
        return None

    @staticmethod
    def _keep_params(keep_logged_in: bool) -> Optional[Dict[str, str]]:
        return {"keep-logged-in": "true"} if keep_logged_in else None

    # ------------------------------------------------------------------ #
    # credentials -> refresh token
    # ------------------------------------------------------------------ #

    async def login(self, id: str, password: str, keep_logged_in: bool = False) -> str:
        creds = Credentials(id=id, password=password)
        data = await self._request(
            "POST",
            "/login/",
            json={
                "id": creds.id,
                "password": creds.password_digest,
                "keep-logged-in": keep_logged_in,
            },
        )
        return self._token_from(data, "refresh-token")

    async def signup(
        self,
        id: str,
        password: str,
        challenge_response: str,
        keep_logged_in: bool = False,
    ) -> str:
        creds = Credentials(id=id, password=password)
        data = await self._request(
            "POST",
            "/signup/",
            json={
                "id": creds.id,
                "password": creds.password_digest,
                "g_response": challenge_response,
                "keep-logged-in": keep_logged_in,
            },
        )
        return self._token_from(data, "refresh-token")

    # ------------------------------------------------------------------ #
    # refresh token -> tokens
    # ------------------------------------------------------------------ #

    async def fetch_access_token(
        self,
        refresh_token: Optional[str] = None,
        keep_logged_in: bool = False,
    ) -> str:
        data = await self._request(
            "GET",
            "/access-token/",
            headers=self._token_headers(refresh_token),
            params=self._keep_params(keep_logged_in),
        )
        return self._token_from(data, "access-token")

    async def renew_refresh_token(
        self,
        refresh_token: Optional[str] = None,
        keep_logged_in: bool = False,
    ) -> str:
        data = await self._request(
            "GET",
            "/refresh-token/",
            headers=self._token_headers(refresh_token),
            params=self._keep_params(keep_logged_in),
        )
        return self._token_from(data, "refresh-token")
