"""Lightweight static page fetch."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from typing import Protocol

import httpx

from recipe_extract import constants
from recipe_extract.exceptions import NetworkError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": constants.BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass(frozen=True, slots=True)
class FetchedPage:
    url: str
    status: int
    html: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class PageFetcher(Protocol):
    """Anything that can turn a URL into markup."""

    async def fetch(self, url: str) -> FetchedPage: ...


class HttpPageFetcher:
    """Single unauthenticated GET with a browser user agent.

    Non-2xx responses are returned as-is so the cascade can still try
    whatever markup came back; only transport failures raise.
    """

    def __init__(
        self,
        *,
        timeout: float = constants.FETCH_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(follow_redirects=True) as client:
            yield client

    async def fetch(self, url: str) -> FetchedPage:
        try:
            async with self._http() as client:
                response = await client.get(
                    url, headers=BROWSER_HEADERS, timeout=self.timeout
                )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch {url}: {e}") from e

        if response.is_error:
            logger.info("Fetch of %s returned HTTP %d", url, response.status_code)
        return FetchedPage(url=str(response.url), status=response.status_code, html=response.text)
