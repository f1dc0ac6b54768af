"""YouTube Data API v3 client for lightweight video metadata.

Used by the preflight gate (duration, category, captions, topics, text) and
by the orchestrator (duration estimate, channel author enrichment). Every
call is a single bounded GET.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from typing import Any, Protocol

import httpx

from recipe_extract import constants
from recipe_extract.core.types import Author
from recipe_extract.exceptions import NetworkError
from recipe_extract.normalize.units import parse_iso_duration

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """The subset of a ``videos`` resource the pipeline relies on."""

    video_id: str
    title: str = ""
    description: str = ""
    duration_seconds: int | None = None
    category_id: str = ""
    has_caption: bool = False
    topic_categories: tuple[str, ...] = ()
    channel_id: str | None = None
    channel_title: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "VideoMetadata":
        snippet = item.get("snippet") or {}
        details = item.get("contentDetails") or {}
        topics = item.get("topicDetails") or {}
        return cls(
            video_id=str(item.get("id", "")),
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            duration_seconds=parse_iso_duration(details.get("duration")),
            category_id=str(snippet.get("categoryId") or ""),
            has_caption=details.get("caption") == "true",
            topic_categories=tuple(topics.get("topicCategories") or ()),
            channel_id=snippet.get("channelId"),
            channel_title=snippet.get("channelTitle"),
            tags=tuple(snippet.get("tags") or ()),
        )


class MetadataProvider(Protocol):
    """What the gate and orchestrator need from a metadata source."""

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None: ...  # noqa: D102
    async def get_author(self, video_id: str) -> Author | None: ...  # noqa: D102


class YouTubeMetadataClient:
    """Thin async wrapper over the ``videos`` and ``channels`` endpoints."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = constants.METADATA_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        base_url: str = YOUTUBE_API_BASE,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._timeout = timeout
        self._client = client
        self._base_url = base_url.rstrip("/")

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _get_json(self, resource: str, **params: str) -> dict[str, Any]:
        try:
            async with self._http() as client:
                response = await client.get(
                    f"{self._base_url}/{resource}",
                    params={**params, "key": self._api_key},
                )
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise NetworkError(f"YouTube API request timed out: {resource}") from e
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"YouTube API error {e.response.status_code}: {resource}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError(f"YouTube API request failed: {e}") from e

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        """Return metadata for ``video_id``, or None when the API has no such video.

        Raises:
            NetworkError: Transport failure, non-2xx status or invalid JSON.
        """
        data = await self._get_json(
            "videos", id=video_id, part="snippet,contentDetails,topicDetails"
        )
        items = data.get("items") or []
        if data.get("error") or not items:
            logger.info("YouTube API returned no metadata for video %s", video_id)
            return None
        return VideoMetadata.from_api_item(items[0])

    async def get_channel_handle(self, channel_id: str) -> str | None:
        data = await self._get_json("channels", id=channel_id, part="snippet")
        items = data.get("items") or []
        custom_url = ((items[0].get("snippet") or {}) if items else {}).get("customUrl")
        if not custom_url:
            return None
        clean = custom_url.lstrip("/")
        return clean if clean.startswith("@") else f"@{clean}"

    async def get_author(self, video_id: str) -> Author | None:
        """Channel title and ``@handle`` for a video; None on any failure."""
        try:
            metadata = await self.get_video_metadata(video_id)
            if metadata is None:
                return None
            handle = (
                await self.get_channel_handle(metadata.channel_id)
                if metadata.channel_id
                else None
            )
        except NetworkError as e:
            logger.warning("YouTube author enrichment failed: %s", e)
            return None
        return Author(name=metadata.channel_title, handle=handle)
