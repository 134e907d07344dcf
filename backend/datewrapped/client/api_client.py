"""HTTP client for the Dating Wrapped API"""
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from datewrapped.core.errors import AuthError, StorageError, error_from_payload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 90.0


class ApiClient:
    """
    Thin async wrapper around httpx.

    Non-2xx answers are turned back into the domain error classes; transport
    failures become StorageError. `token_provider` returns the current access
    token (or None) and `refresh_handler` renews it after a 401; both are
    installed by AuthSession. An authenticated request is retried once when
    the handler reports a fresh token.
    """

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        refresh_handler: Optional[Callable[[Optional[str]], Awaitable[bool]]] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=timeout,
        )
        self.token_provider = token_provider
        self.refresh_handler = refresh_handler

    async def aclose(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def _headers(self, auth: bool) -> dict:
        if not auth:
            return {}
        token = self.token_provider() if self.token_provider else None
        if not token:
            raise AuthError("No active session")
        return {"Authorization": f"Bearer {token}"}

    async def request(self, method: str, path: str, json: Any = None, auth: bool = True, retry: bool = True) -> Any:
        headers = self._headers(auth)
        try:
            response = await self._http.request(method, f"/api{path}", json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} transport error: {e}")
            raise StorageError(f"Could not reach the server: {e.__class__.__name__}")

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            error = error_from_payload(response.status_code, payload)
            if auth and retry and response.status_code == 401 and self.refresh_handler:
                sent_token = headers["Authorization"][len("Bearer "):]
                if await self.refresh_handler(sent_token):
                    logger.info(f"{method} {path} retried with a refreshed session")
                    return await self.request(method, path, json=json, auth=auth, retry=False)
            logger.warning(f"{method} {path} -> {response.status_code} {error.kind}: {error.message}")
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, auth: bool = True) -> Any:
        return await self.request("GET", path, auth=auth)

    async def post(self, path: str, json: Any = None, auth: bool = True) -> Any:
        return await self.request("POST", path, json=json, auth=auth)

    async def put(self, path: str, json: Any = None, auth: bool = True) -> Any:
        return await self.request("PUT", path, json=json, auth=auth)

    async def delete(self, path: str, auth: bool = True) -> Any:
        return await self.request("DELETE", path, auth=auth)
