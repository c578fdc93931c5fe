"""HTTP transport for Solr requests."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from solr_cursorstream.exceptions import DecodeError, RateLimitError, TransportError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class Transport(Protocol):
    """Anything that can GET a URL and return the decoded JSON body."""

    def get_json(self, url: str, params: dict[str, Any]) -> Any: ...

    def close(self) -> None: ...


class AsyncTransport(Protocol):
    """Async counterpart of Transport."""

    async def aget_json(self, url: str, params: dict[str, Any]) -> Any: ...

    async def aclose(self) -> None: ...


def should_retry(exception: BaseException) -> bool:
    """
    Check if a failed request is worth another attempt.

    Connection errors and timeouts are retried, as are 429 and
    gateway errors. Other HTTP errors (400, 404, 500) are not:
    Solr answers those deterministically.
    """
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exception, httpx.TransportError)


def _translate(exc: httpx.HTTPError, url: str) -> TransportError:
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        if response.status_code == 429:
            try:
                retry_after = int(response.headers.get("Retry-After", 60))
            except ValueError:
                retry_after = 60
            return RateLimitError("Rate limit exceeded", retry_after=retry_after, url=url)
        return TransportError(
            f"Solr request failed: {response.status_code} - {response.text}",
            status_code=response.status_code,
            url=url,
        )
    return TransportError(f"Solr request failed: {exc}", url=url)


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f"Solr response is not JSON: {response.text[:200]!r}") from e


class HttpxTransport:
    """
    httpx-backed transport with retry and error translation.

    One httpx.Client (or AsyncClient) is created on first use and
    reused for every request until close() is called, so a stream
    keeps a single pooled connection across pages.

    Attributes:
        timeout: Request timeout in seconds
        max_retries: Extra attempts after a retryable failure
        backoff_factor: Multiplier for the exponential wait between attempts

    Example:
        transport = HttpxTransport(timeout=60.0, max_retries=5)
        stream = CursorStream("http://localhost:8983/solr/books", transport=transport)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
        client: Optional[httpx.Client] = None,
        async_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds (default: 30)
            max_retries: Extra attempts for retryable failures (default: 2)
            backoff_factor: Exponential backoff multiplier; 0 disables waiting
            client: Optional pre-configured httpx.Client to use
            async_client: Optional pre-configured httpx.AsyncClient to use
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._client = client
        self._async_client = async_client

    def _get_client(self) -> httpx.Client:
        """Get or create httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _get_async_client(self) -> httpx.AsyncClient:
        """Get or create httpx async client."""
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(timeout=self.timeout)
        return self._async_client

    def _retry_kwargs(self) -> dict[str, Any]:
        return {
            "stop": stop_after_attempt(self.max_retries + 1),
            "wait": wait_exponential(multiplier=self.backoff_factor, max=10),
            "retry": retry_if_exception(should_retry),
            "before_sleep": before_sleep_log(logger, logging.WARNING),
            "reraise": True,
        }

    def get_json(self, url: str, params: dict[str, Any]) -> Any:
        """
        GET a URL and return the decoded JSON body.

        Args:
            url: Full request URL
            params: Query parameters; list values become repeated parameters

        Returns:
            Decoded JSON body

        Raises:
            RateLimitError: If Solr still answers 429 after all retries
            TransportError: On connection failure or non-success status
            DecodeError: If the body is not JSON
        """
        client = self._get_client()
        try:
            for attempt in Retrying(**self._retry_kwargs()):
                with attempt:
                    response = client.get(url, params=params)
                    response.raise_for_status()
        except httpx.HTTPError as e:
            raise _translate(e, url) from e

        return _decode(response)

    async def aget_json(self, url: str, params: dict[str, Any]) -> Any:
        """Async version of get_json()."""
        client = self._get_async_client()
        try:
            async for attempt in AsyncRetrying(**self._retry_kwargs()):
                with attempt:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
        except httpx.HTTPError as e:
            raise _translate(e, url) from e

        return _decode(response)

    def close(self) -> None:
        """Close the sync client, if one was created."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        """Close both clients, if created."""
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None
        self.close()
