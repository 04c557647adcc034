# fleettrack/services/api_client.py
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from fleettrack.core.errors import NETWORK_ERROR, AuthError, NetworkError, ServerError, message_from_body
from fleettrack.core.storage import TOKEN_KEY, Storage

logger = logging.getLogger(__name__)

VERIFY_PATH = "/auth/verify"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
XSRF_COOKIE = "XSRF-TOKEN"
XSRF_HEADER = "X-XSRF-TOKEN"


class ApiClient:
    """
    Thin async wrapper around the backend.

    The bearer token is read from storage by a request hook right before each
    send, so a client built before login picks up the token afterwards. A
    response hook reports 401/403 on authenticated calls to `on_auth_failure`.
    """

    def __init__(
        self,
        base_url: str,
        storage: Storage,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_auth_failure: Optional[Callable[[int], Awaitable[None]]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self.on_auth_failure = on_auth_failure
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={"request": [self._attach_auth], "response": [self._watch_auth]},
        )

    # ---------- hooks ----------
    async def _attach_auth(self, request: httpx.Request) -> None:
        token = self.storage.get(TOKEN_KEY)
        if token and "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {token}"
        if request.method not in SAFE_METHODS:
            xsrf = self._client.cookies.get(XSRF_COOKIE)
            if xsrf:
                request.headers[XSRF_HEADER] = xsrf

    async def _watch_auth(self, response: httpx.Response) -> None:
        request = response.request
        logger.info("%s %s -> %s", request.method, request.url, response.status_code)
        if response.status_code not in (401, 403) or self.on_auth_failure is None:
            return
        # unauthenticated calls (login) and the verify call handle their own 401s
        if "Authorization" not in request.headers or request.url.path.endswith(VERIFY_PATH):
            return
        await self.on_auth_failure(response.status_code)

    # ---------- requests ----------
    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as ex:
            logger.error("%s %s failed: %s", method, path, ex)
            raise NetworkError(NETWORK_ERROR) from ex
        return _parse(response)

    async def get(self, path: str, params: Optional[dict] = None, **kwargs) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json=None, **kwargs) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json=None, **kwargs) -> Any:
        return await self.request("PUT", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


def _body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _parse(response: httpx.Response) -> Any:
    body = _body(response)
    status = response.status_code
    if 200 <= status < 300:
        return body
    message = message_from_body(body, status)
    if status in (401, 403):
        raise AuthError(message, status)
    raise ServerError(message, status)
