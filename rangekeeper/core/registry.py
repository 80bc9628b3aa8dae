"""Registry fetcher for rangekeeper.

Retrieves the list of published versions of npm packages from an
npm-compatible registry, using the abbreviated metadata document::

    GET https://registry.npmjs.org/@types%2fnode
    Accept: application/vnd.npm.install-v1+json

    {"name": "@types/node", "versions": {"20.11.0": {...}, ...}}

Only the keys of ``versions`` are used. A single :class:`asyncio.Semaphore`
caps the number of packages being fetched at once across a whole batch; a
package holds its slot for the duration of all of its attempts and backoff
sleeps, so at most ``concurrency`` requests are ever in flight.

Typical usage::

    async with RegistryFetcher(concurrency=8, retries=2) as fetcher:
        results = await fetcher.fetch_many(["lodash", "@types/node"])

    for result in results:
        if isinstance(result, RegistryError):
            print("failed:", result.package_name)
        else:
            print(result.package_name, len(result.versions))
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from rangekeeper.exceptions import NetworkError, RegistryError
from rangekeeper.models.package import RegistryVersionInfo
from rangekeeper.utils.http import HTTPClient, RetryPolicy
from rangekeeper.utils.logger import get_logger
from rangekeeper.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    ABBREVIATED_METADATA_ACCEPT,
)

logger = get_logger("registry")

__all__ = ["RegistryFetcher", "FetchResult"]

#: Outcome of fetching one package.
FetchResult = Union[RegistryVersionInfo, RegistryError]


class RegistryFetcher:
    """Bounded-concurrency fetcher of package version lists.

    Args:
        registry_url: Base registry URL; a trailing slash is ignored.
        concurrency: Maximum number of packages fetched at once.
        timeout: Time limit in seconds for each individual attempt.
        retries: Retries after the first failed attempt. Ignored when
            *retry_policy* is given.
        http_client: Client to issue requests with. When omitted the
            fetcher creates one and closes it in :meth:`close`.
        retry_policy: Backoff schedule between attempts.
        sleep: Coroutine used for backoff waits; replaceable in tests.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_MAX_RETRIES,
        *,
        http_client: Optional[HTTPClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self.registry_url = registry_url.rstrip("/")
        self.concurrency = concurrency
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy.from_retries(retries)

        self._owns_client = http_client is None
        self.http_client = http_client or HTTPClient(
            timeout=timeout,
            max_connections=concurrency,
        )
        self._semaphore = asyncio.Semaphore(concurrency)
        self._sleep = sleep

    async def __aenter__(self) -> "RegistryFetcher":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self.http_client.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def package_url(self, name: str) -> str:
        """Return the metadata URL for *name*.

        The slash of a scoped name is percent-encoded:

            >>> RegistryFetcher("https://r.example/").package_url("@scope/pkg")
            'https://r.example/@scope%2fpkg'
        """
        if name.startswith("@"):
            name = name.replace("/", "%2f", 1)
        return f"{self.registry_url}/{name}"

    async def fetch_one(self, name: str) -> RegistryVersionInfo:
        """Fetch the published versions of *name*, retrying on failure.

        Raises:
            RegistryError: Every attempt failed. Carries the package name,
                the number of attempts and the last underlying error.
        """
        url = self.package_url(name)
        policy = self.retry_policy
        last_error: Optional[NetworkError] = None

        async with self._semaphore:
            for attempt in range(1, policy.max_attempts + 1):
                if attempt > 1:
                    delay = policy.delay_for(attempt - 1)
                    logger.debug("Retrying %s in %.2fs", name, delay)
                    await self._sleep(delay)

                try:
                    document = await self._request(url)
                    return _parse_document(name, url, document)
                except NetworkError as exc:
                    last_error = exc
                    logger.debug(
                        "Fetch of %s failed (%d/%d): %s",
                        name,
                        attempt,
                        policy.max_attempts,
                        exc,
                    )

        raise RegistryError(
            f"Failed to fetch {name} after {policy.max_attempts} attempts: {last_error}",
            package_name=name,
            attempts=policy.max_attempts,
            last_error=last_error,
            url=url,
        )

    async def fetch_many(self, names: Sequence[str]) -> List[FetchResult]:
        """Fetch every name concurrently.

        Returns:
            One result per name, in the order of *names*: either the
            version info or the :class:`RegistryError` for that package. A
            failure never affects the other fetches.
        """
        results = await asyncio.gather(
            *(self.fetch_one(name) for name in names),
            return_exceptions=True,
        )

        outcomes: List[FetchResult] = []
        for name, result in zip(names, results):
            if isinstance(result, RegistryVersionInfo):
                outcomes.append(result)
            elif isinstance(result, RegistryError):
                outcomes.append(result)
            elif isinstance(result, Exception):
                logger.debug("Unexpected error fetching %s", name, exc_info=result)
                outcomes.append(
                    RegistryError(
                        f"Failed to fetch {name}: {result}",
                        package_name=name,
                        last_error=result,
                    )
                )
            else:
                # Cancellation and interpreter exits are not per-package failures.
                raise result
        return outcomes

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(self, url: str) -> Dict[str, Any]:
        """One attempt, bounded by :attr:`timeout` as a whole."""
        try:
            return await asyncio.wait_for(
                self.http_client.get_json(
                    url,
                    headers={"Accept": ABBREVIATED_METADATA_ACCEPT},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise NetworkError(
                f"Request timed out after {self.timeout}s: {url}",
                url=url,
            ) from exc


def _parse_document(name: str, url: str, document: Dict[str, Any]) -> RegistryVersionInfo:
    """Extract the version keys of an abbreviated metadata document."""
    versions = document.get("versions")
    if versions is None:
        versions = {}
    if not isinstance(versions, dict):
        raise NetworkError(f"Malformed registry document for {name}", url=url)

    reported = document.get("name")
    if reported is not None and reported != name:
        logger.debug("Registry reported %r for requested package %r", reported, name)

    return RegistryVersionInfo(package_name=name, versions=list(versions.keys()))
