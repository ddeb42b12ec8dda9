import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from raworc_mcp.config import RaworcConfig
from raworc_mcp.core.errors import (
    BackendError,
    BackendTimeoutError,
    BackendUnauthorizedError,
    BackendUnavailableError,
    backend_error_for_status,
)

logger = logging.getLogger(__name__)

LOGIN_PATH = "auth/login"


def segment(value: Any) -> str:
    """Percent-encode one path segment."""
    return quote(str(value), safe="")


class RaworcClient:
    """
    Shared handle to the Raworc REST API.

    One ``httpx.AsyncClient`` is configured at startup (base URL, timeout) and
    reused for every tool call. Bearer tokens come from configuration or from a
    username/password login performed on first use.
    """

    def __init__(self, config: RaworcConfig, http_client: Optional[httpx.AsyncClient] = None):
        self._base_url = config.api_url.rstrip("/") + "/"
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._owns_http = http_client is None
        self._token = config.auth_token
        self._username = config.username
        self._password = config.password
        self._auth_lock = asyncio.Lock()
        self.default_space = config.default_space

    @property
    def base_url(self) -> str:
        return self._base_url

    def space(self, space: Optional[str]) -> str:
        return space or self.default_space

    def url(self, path: str) -> str:
        # Relative join keeps the /api/v0 prefix of the base URL
        return self._base_url + path.lstrip("/")

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def authenticate(self) -> str:
        """Exchange username/password for a bearer token and keep it."""
        if not (self._username and self._password):
            raise BackendUnauthorizedError(None, "No credentials configured for login")

        logger.info(f"Authenticating with username: {self._username}")
        response = await self._send("POST", LOGIN_PATH, json={"user": self._username, "pass": self._password}, auth=False)
        payload = self._handle(response, text=False)
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise BackendError(response.status_code, "Login response did not contain a token")
        self._token = token
        logger.info("Authentication successful")
        return token

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        text: bool = False,
    ) -> Any:
        """
        Issue one authenticated call against the API.

        Returns the decoded JSON payload (or the body as text when ``text`` is
        set, or None for an empty body). Raises a BackendError subclass on any
        non-success status, timeout or connection failure.
        """
        logged_in = await self._ensure_token()

        response = await self._send(method, path, json=json, params=params)
        if response.status_code == 401 and self._username and self._password and not logged_in:
            logger.info(f"Got 401 for {method} {path}, re-authenticating once")
            async with self._auth_lock:
                await self.authenticate()
            response = await self._send(method, path, json=json, params=params)

        return self._handle(response, text=text)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, text: bool = False) -> Any:
        return await self.request("GET", path, params=params, text=text)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def _ensure_token(self) -> bool:
        if self._token or not (self._username and self._password):
            return False
        async with self._auth_lock:
            if self._token:
                return False
            await self.authenticate()
            return True

    def _headers(self, auth: bool = True) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _send(self, method, path, json=None, params=None, auth=True) -> httpx.Response:
        url = self.url(path)
        logger.debug(f"{method} {url}")
        try:
            return await self._http.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(auth),
            )
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(None, f"Request to {method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(None, f"Could not reach the Raworc API ({type(e).__name__})") from e

    def _handle(self, response: httpx.Response, text: bool) -> Any:
        if response.is_success:
            if text:
                return response.text
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                return response.text

        raise backend_error_for_status(response.status_code, _error_message(response))


def _error_message(response: httpx.Response) -> str:
    body = response.text or ""
    try:
        payload = response.json()
    except ValueError:
        return body or response.reason_phrase or "Unknown error"

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        if isinstance(payload.get("message"), str):
            return payload["message"]
    return body or "Unknown error"
