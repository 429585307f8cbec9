from __future__ import annotations

import base64
import json
import logging
from typing import Any

import aiohttp
import async_timeout
from yarl import URL

from .const import (
    AUTH_CHECK_JWT_PATH,
    AUTH_OK_STATUSES,
    DEFAULT_API_TIMEOUT,
    INVENTORY_PATH,
    PRODUCTION_PATH,
    REDACTED_HEADERS,
)
from .models import InventoryItem, Production

_LOGGER = logging.getLogger(__name__)


class EnvoyError(Exception):
    """Base exception for Envoy local API failures."""


class EnvoyNotOK(EnvoyError):
    """Raised when an Envoy API does not return a 200."""

    def __init__(self, status: int | None = None) -> None:
        super().__init__("server did not return 200")
        self.status = status


class EnvoyAuthRejected(EnvoyError):
    """Raised when the unit does not accept the bearer token."""

    def __init__(self, status: int) -> None:
        super().__init__(f"authentication rejected (status={status})")
        self.status = status


class EnvoyPayloadError(EnvoyError, ValueError):
    """Raised when a JSON body does not have the expected shape."""


def _decode_jwt_exp(token: str) -> int | None:
    """Decode the exp claim from a JWT-like token without validation."""

    try:
        parts = token.split(".")
        if len(parts) < 2:
            return None
        payload_b64 = parts[1]
        padded = payload_b64 + "=" * (-len(payload_b64) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except (ValueError, TypeError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        return int(exp)
    return None


def _cookie_header(jar: aiohttp.CookieJar | None, url: str | URL) -> str:
    """Return a Cookie header string for the url from the jar."""

    if jar is None:
        return ""
    url_obj = url if isinstance(url, URL) else URL(str(url))
    filtered = jar.filter_cookies(url_obj)
    return "; ".join(f"{k}={morsel.value}" for k, morsel in filtered.items())


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of headers with sensitive values masked."""

    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in REDACTED_HEADERS:
            redacted[key] = "[redacted]"
        else:
            redacted[key] = value
    return redacted


class EnvoyClient:
    """Client for the local HTTP API of an Envoy unit.

    Not safe for concurrent use: the token, login flag and cookie jar are
    unguarded. Serialize calls or use one client per task.
    """

    def __init__(
        self,
        address: str,
        proto: str,
        *,
        insecure_skip_verify: bool = False,
        timeout: int = DEFAULT_API_TIMEOUT,
    ) -> None:
        self._address = address
        self._proto = proto
        self._insecure_skip_verify = bool(insecure_skip_verify)
        self._timeout = int(timeout)
        self._s: aiohttp.ClientSession | None = None
        self._owns_session = True
        self._token = ""
        self._logged_in = False
        self._cookie_jar: aiohttp.CookieJar | None = None

    @classmethod
    def with_session(
        cls,
        address: str,
        proto: str,
        session: aiohttp.ClientSession,
        *,
        insecure_skip_verify: bool = False,
        timeout: int = DEFAULT_API_TIMEOUT,
    ) -> EnvoyClient:
        """Create a client that talks through a caller-owned session."""

        client = cls(
            address,
            proto,
            insecure_skip_verify=insecure_skip_verify,
            timeout=timeout,
        )
        client._s = session
        client._owns_session = False
        return client

    async def __aenter__(self) -> EnvoyClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""

        if self._owns_session and self._s is not None:
            await self._s.close()
            self._s = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def proto(self) -> str:
        return self._proto

    @property
    def logged_in(self) -> bool:
        return self._logged_in

    @property
    def token_expires_at(self) -> int | None:
        """Return the exp claim of the current token, if it carries one."""

        if not self._token:
            return None
        return _decode_jwt_exp(self._token)

    def set_token(self, token: str) -> None:
        """Set the bearer token exchanged for a session cookie on login."""

        self._token = token

    def _url(self, path: str) -> str:
        return f"{self._proto}://{self._address}{path}"

    def _session(self) -> aiohttp.ClientSession:
        if self._s is None:
            # Cookies are tracked in the client's own jar, not the session's
            self._s = aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar())
        return self._s

    def _request_kwargs(self) -> dict[str, Any]:
        if self._insecure_skip_verify:
            return {"ssl": False}
        return {}

    async def login(self) -> None:
        """Exchange the bearer token for a session cookie.

        Returns immediately when a previous login succeeded; the session is
        not re-validated against the unit.
        """

        if self._logged_in and self._cookie_jar is not None:
            _LOGGER.info("Already logged in, skipping")
            return

        url = self._url(AUTH_CHECK_JWT_PATH)
        if self._cookie_jar is None:
            # unsafe=True keeps cookies issued by bare IP addresses
            self._cookie_jar = aiohttp.CookieJar(unsafe=True)
        headers = {"Authorization": f"Bearer {self._token}"}
        _LOGGER.debug(
            "Envoy login: GET %s headers=%s", url, _redact_headers(headers)
        )

        async with async_timeout.timeout(self._timeout):
            async with self._session().request(
                "GET", url, headers=headers, **self._request_kwargs()
            ) as r:
                status = r.status
                self._cookie_jar.update_cookies(r.cookies, URL(str(r.url)))

        if status not in AUTH_OK_STATUSES:
            self._logged_in = False
            _LOGGER.debug("Envoy login rejected with status %s", status)
            raise EnvoyAuthRejected(status)
        self._logged_in = True

    async def _get_json(self, path: str) -> Any:
        """GET a path, logging in again once on 401 or when logged out."""

        url = self._url(path)
        attempt = 0
        while True:
            headers = {"Accept": "application/json"}
            cookie = _cookie_header(self._cookie_jar, url)
            if cookie:
                headers["Cookie"] = cookie
            _LOGGER.debug("Envoy GET %s headers=%s", url, _redact_headers(headers))

            reauth = False
            async with async_timeout.timeout(self._timeout):
                async with self._session().request(
                    "GET", url, headers=headers, **self._request_kwargs()
                ) as r:
                    _LOGGER.debug("Envoy GET %s -> %s", url, r.status)
                    if attempt == 0 and (r.status == 401 or not self._logged_in):
                        reauth = True
                    elif r.status != 200:
                        raise EnvoyNotOK(r.status)
                    else:
                        text = await r.text()
                        return json.loads(text)

            attempt += 1
            _LOGGER.debug("Re-authenticating with Envoy at %s", self._address)
            self._logged_in = False
            await self.login()

    async def inventory(self) -> list[InventoryItem]:
        """Return the parts installed in the system and registered with the unit.

        GET /inventory.json?deleted=1
        """

        data = await self._get_json(INVENTORY_PATH)
        if data is None:
            return []
        if not isinstance(data, list):
            raise EnvoyPayloadError(
                f"Expected a JSON array from inventory, got {type(data).__name__}"
            )
        items: list[InventoryItem] = []
        for entry in data:
            if not isinstance(entry, dict):
                raise EnvoyPayloadError(
                    f"Expected inventory entries to be objects, got {type(entry).__name__}"
                )
            items.append(InventoryItem.from_dict(entry))
        return items

    async def production(self) -> Production:
        """Return the current data for production and consumption sensors.

        GET /production.json?details=1
        """

        data = await self._get_json(PRODUCTION_PATH)
        if data is None:
            return Production()
        if not isinstance(data, dict):
            raise EnvoyPayloadError(
                f"Expected a JSON object from production, got {type(data).__name__}"
            )
        return Production.from_dict(data)
