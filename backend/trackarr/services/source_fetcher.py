"""
Source Fetcher Service

Retrieves raw tracker list bodies from every configured source concurrently.

Each source gets its own GET request and its own bounded wait. Failures
(timeouts, connection errors, invalid URLs, non-2xx responses) are captured
into a FetchResult for that source and never interrupt the other requests.
The fetch returns only after every request has settled.

Usage Example:
    fetcher = SourceFetcher(timeout=15)
    report = await fetcher.fetch_all([
        "https://raw.githubusercontent.com/ngosang/trackerslist/master/trackers_best.txt",
        "https://newtrackon.com/api/stable",
    ])
    for result in report.succeeded:
        print(result.source, len(result.body))
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import httpx

from trackarr import __version__
from .exceptions import AllSourcesFailedError, SourceFetchError, classify_http_error

logger = logging.getLogger(__name__)

USER_AGENT = f"Trackarr/{__version__}"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of retrieving one source: either a body or an error."""

    source: str
    body: Optional[str] = None
    error: Optional[SourceFetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, body: str) -> "FetchResult":
        return cls(source=source, body=body)

    @classmethod
    def failure(cls, error: SourceFetchError) -> "FetchResult":
        return cls(source=error.source, error=error)


@dataclass(frozen=True)
class FetchReport:
    """All FetchResults of one invocation, in source order."""

    results: Tuple[FetchResult, ...] = ()

    @property
    def succeeded(self) -> List[FetchResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[FetchResult]:
        return [r for r in self.results if not r.ok]

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and not self.succeeded

    def raise_if_all_failed(self) -> None:
        """
        Raise AllSourcesFailedError when no source succeeded.

        Raises:
            AllSourcesFailedError: If every configured source failed
        """
        if self.all_failed:
            raise AllSourcesFailedError([r.error for r in self.results])


class SourceFetcher:
    """
    Concurrent fetcher for tracker list sources.

    Attributes:
        timeout: Per-source timeout in seconds
        transport: Optional httpx transport (tests inject httpx.MockTransport)
    """

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch_all(self, sources: Sequence[str]) -> FetchReport:
        """
        Fetch every source concurrently.

        Args:
            sources: Source URLs in merge order

        Returns:
            FetchReport with one FetchResult per source, in the same order
        """
        if not sources:
            return FetchReport()

        logger.info(f"Fetching {len(sources)} tracker source(s)")

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            results = await asyncio.gather(
                *(self._fetch_one(client, source) for source in sources)
            )

        report = FetchReport(tuple(results))
        logger.info(
            f"✓ Source fetch done: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed"
        )
        return report

    async def _fetch_one(self, client: httpx.AsyncClient, source: str) -> FetchResult:
        """Fetch a single source, converting every failure into a FetchResult."""
        try:
            response = await asyncio.wait_for(client.get(source), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            error = SourceFetchError(source, f"Timed out after {self.timeout}s", original_exception=e)
            return self._failed(error)
        except httpx.TimeoutException as e:
            error = SourceFetchError(source, f"Timed out after {self.timeout}s", original_exception=e)
            return self._failed(error)
        except httpx.InvalidURL as e:
            error = SourceFetchError(source, f"Invalid source URL: {e}", original_exception=e)
            return self._failed(error)
        except httpx.HTTPError as e:
            error = SourceFetchError(
                source, f"Connection error: {type(e).__name__}: {e}", original_exception=e
            )
            return self._failed(error)

        if not response.is_success:
            return self._failed(
                classify_http_error(source, response.status_code, response.reason_phrase)
            )

        logger.debug(f"Fetched {source} ({len(response.content)} bytes)")
        return FetchResult.success(source, response.text)

    @staticmethod
    def _failed(error: SourceFetchError) -> FetchResult:
        logger.warning(f"⚠ Source {error.source} failed: {error}")
        return FetchResult.failure(error)
