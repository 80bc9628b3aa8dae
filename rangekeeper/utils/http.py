"""
HTTP client utilities for rangekeeper.

This module provides a thin asynchronous HTTP client over ``httpx`` that
normalizes every failure of a single request into :class:`NetworkError`,
and :class:`RetryPolicy`, the exponential-backoff schedule applied by the
registry fetcher around such requests.
"""

from __future__ import annotations

import httpx
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, cast

from rangekeeper.utils.logger import get_logger
from rangekeeper.__version__ import __version__
from rangekeeper.exceptions import NetworkError
from rangekeeper.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_RETRY_BASE_DELAY,
)

logger = get_logger("http")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff schedule.

    The first retry waits ``base_delay`` seconds; every further retry
    multiplies the previous delay by ``backoff_multiplier``.

    Attributes:
        max_attempts: Total attempts, including the first one.
        base_delay: Delay before the first retry, in seconds.
        backoff_multiplier: Growth factor between consecutive delays.

    Example:
        >>> list(RetryPolicy(max_attempts=4, base_delay=0.1).delays())
        [0.1, 0.2, 0.4]
    """

    max_attempts: int = DEFAULT_MAX_RETRIES + 1
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    backoff_multiplier: float = DEFAULT_RETRY_BACKOFF

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay}")

    @classmethod
    def from_retries(cls, retries: int, **kwargs: Any) -> "RetryPolicy":
        """Build a policy allowing *retries* retries after the first attempt."""
        return cls(max_attempts=retries + 1, **kwargs)

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before retry number *retry_number* (1-based)."""
        if retry_number < 1:
            raise ValueError(f"retry_number is 1-based, got {retry_number}")
        return self.base_delay * self.backoff_multiplier ** (retry_number - 1)

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry, in order."""
        for retry_number in range(1, self.max_attempts):
            yield self.delay_for(retry_number)


class HTTPClient:
    """Asynchronous HTTP client performing single, non-retried requests.

    Args:
        timeout: Per-request timeout in seconds.
        max_connections: Size of the connection pool.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        transport: Optional ``httpx`` transport (e.g. ``httpx.MockTransport``).

    Example:
        >>> async with HTTPClient(timeout=10) as client:
        ...     data = await client.get_json("https://registry.npmjs.org/lodash")
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_connections: int = DEFAULT_CONCURRENCY,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.max_connections = max_connections
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Create the underlying ``httpx`` client on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(
                    max_connections=self.max_connections,
                    max_keepalive_connections=self.max_connections,
                ),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Perform one GET request.

        Raises:
            NetworkError: On timeout, transport failure or a non-2xx status.
        """
        client = await self._ensure_client()

        try:
            response = await client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Request timed out: {url}", url=url) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request failed: {exc}", url=url) from exc

        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code} error for {url}",
                url=url,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    async def get_json(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Fetch *url* and parse the body as a JSON object.

        Raises:
            NetworkError: The request failed or the body is not a JSON object.
        """
        response = await self.get(url, headers=headers)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)
