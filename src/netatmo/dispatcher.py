"""Request dispatcher: issues single HTTP requests to the Netatmo API.

The dispatcher is the only component that touches the network. It sends
one request with either a form-encoded body or query parameters and
returns the raw status, headers and body. It does not interpret the
response; that is left to the token manager and the endpoint wrappers.

Example:
    Using the httpx-backed dispatcher directly::

        dispatcher = HttpxDispatcher(timeout=10.0)
        try:
            response = await dispatcher.dispatch(
                HttpMethod.GET,
                "https://api.netatmo.com/api/gethomecoachsdata",
                query={"access_token": token},
            )
        finally:
            await dispatcher.close()
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from .exceptions import NetatmoConnectionError
from .models import RawResponse
from .types import DEFAULT_TIMEOUT, HttpMethod

logger = logging.getLogger(__name__)


class RequestDispatcher(ABC):
    """Interface of the component issuing HTTP requests."""

    @abstractmethod
    async def dispatch(
        self,
        method: HttpMethod,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        query: Optional[dict[str, Any]] = None,
    ) -> RawResponse:
        """Send one request and return the raw response.

        Raises:
            NetatmoConnectionError: If no response was received.
        """

    async def close(self) -> None:
        """Release transport resources. Safe to call multiple times."""


class HttpxDispatcher(RequestDispatcher):
    """Dispatcher backed by a lazily created httpx.AsyncClient.

    Args:
        timeout: HTTP request timeout in seconds. Defaults to 30.0.

    Attributes:
        _timeout: HTTP timeout in seconds.
        _client: Lazy-initialized httpx.AsyncClient.
    """

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Create the httpx.AsyncClient on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def dispatch(
        self,
        method: HttpMethod,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        query: Optional[dict[str, Any]] = None,
    ) -> RawResponse:
        client = await self._ensure_client()
        method = HttpMethod(method)

        logger.debug(f"{method.value} {url}")
        try:
            response = await client.request(
                method.value, url, data=body, params=query
            )
        except httpx.RequestError as e:
            raise NetatmoConnectionError(f"Request error: {e}") from e

        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )
