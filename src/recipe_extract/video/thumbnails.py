"""Platform thumbnail discovery.

Runs alongside the upload so a thumbnail can be returned even when the
extraction itself fails. Lookups never raise; a miss is ``None``.
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
import logging

from bs4 import BeautifulSoup
import httpx

from recipe_extract import constants
from recipe_extract.core.types import Platform

logger = logging.getLogger(__name__)

YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
TIKTOK_OEMBED = "https://www.tiktok.com/oembed"

CRAWLER_HEADERS = {
    "User-Agent": constants.CRAWLER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def youtube_thumbnail(video_id: str) -> str:
    return YOUTUBE_THUMBNAIL.format(video_id=video_id)


def find_og_image(html: str) -> str | None:
    """Content of the ``og:image`` meta tag, entity-decoded."""
    soup = BeautifulSoup(html, "lxml")
    tag = soup.find("meta", attrs={"property": "og:image"}) or soup.find(
        "meta", attrs={"name": "og:image"}
    )
    content = tag.get("content") if tag else None
    if not isinstance(content, str):
        return None
    return content.strip() or None


class ThumbnailFetcher:
    """Resolves a thumbnail URL per platform."""

    def __init__(
        self,
        *,
        timeout: float = constants.THUMBNAIL_TIMEOUT,
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

    async def fetch(
        self, video_url: str, platform: Platform, video_id: str | None
    ) -> str | None:
        try:
            if platform is Platform.YOUTUBE:
                return youtube_thumbnail(video_id) if video_id else None
            if platform is Platform.TIKTOK:
                return await self._tiktok(video_url)
            if platform is Platform.INSTAGRAM:
                return await self._instagram(video_url)
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning("Thumbnail lookup failed for %s: %s", platform.value, e)
            return None
        logger.debug("No thumbnail source for platform %s", platform.value)
        return None

    async def _tiktok(self, video_url: str) -> str | None:
        async with self._http() as client:
            response = await client.get(
                TIKTOK_OEMBED, params={"url": video_url}, timeout=self.timeout
            )
            response.raise_for_status()
        try:
            payload = response.json()
        except ValueError:
            logger.warning("TikTok oEmbed returned non-JSON body")
            return None
        if not isinstance(payload, Mapping):
            logger.warning(
                "TikTok oEmbed returned %s instead of an object", type(payload).__name__
            )
            return None
        thumbnail = payload.get("thumbnail_url")
        return thumbnail if isinstance(thumbnail, str) and thumbnail else None

    async def _instagram(self, video_url: str) -> str | None:
        async with self._http() as client:
            response = await client.get(
                video_url, headers=CRAWLER_HEADERS, timeout=self.timeout
            )
            response.raise_for_status()
        thumbnail = find_og_image(response.text)
        if thumbnail is None:
            logger.info("No og:image meta tag found for %s", video_url)
        return thumbnail
