"""Adapters for the video-understanding service.

``MemoriesVideoService`` speaks the real HTTP API; ``MockVideoService`` is a
deterministic stand-in used when ``use_real_api`` is off and in tests. Both
return raw response bodies: interpretation lives in ``responses``.
"""

from collections import deque
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
import copy
import json
import logging
from typing import Any, Literal, Protocol

import httpx

from recipe_extract import constants
from recipe_extract.exceptions import FatalApiError, NetworkError, TransientApiError

logger = logging.getLogger(__name__)

type LibraryMode = Literal["private", "public"]


class VideoService(Protocol):
    """Upload, identifier lookup and structured query against the service."""

    async def upload(self, video_url: str, *, mode: LibraryMode) -> Any: ...  # noqa: D102
    async def get_videos(self, task_id: str) -> Any: ...  # noqa: D102
    async def chat(  # noqa: D102
        self, identifiers: Sequence[str], prompt: str, *, session_id: int
    ) -> Any: ...


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class MemoriesVideoService:
    """HTTP adapter for the Memories.ai serve API.

    Every call carries the API key in the ``Authorization`` header and the
    configured ``unique_id``. Transport failures become ``NetworkError``;
    5xx and 429 responses become ``TransientApiError``; other non-2xx
    responses become ``FatalApiError``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = constants.VIDEO_SERVICE_BASE_URL,
        unique_id: str = "default",
        quality: int = constants.UPLOAD_QUALITY,
        callback_url: str | None = None,
        timeout: float = constants.UPSTREAM_TIMEOUT,
        query_timeout: float = constants.QUERY_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.unique_id = unique_id
        self.quality = quality
        self.callback_url = callback_url
        self.timeout = timeout
        self.query_timeout = query_timeout
        self._client = client

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient() as client:
            yield client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path}"
        headers = {"Authorization": self._api_key, "Accept": "application/json"}
        try:
            async with self._http() as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=headers,
                    timeout=timeout,
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timeout after {timeout:g} seconds: {url}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = f"{method} {url} failed: {status} :: {e.response.text[:200]}"
            if status >= 500 or status == 429:
                raise TransientApiError(message, code=str(status)) from e
            raise FatalApiError(message, code=str(status)) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error calling {url}: {e}") from e
        return _decode(response)

    async def upload(self, video_url: str, *, mode: LibraryMode) -> Any:
        """Submit ``video_url`` to the private or public library."""
        body: dict[str, Any] = {
            "video_urls": [video_url],
            "quality": self.quality,
            "unique_id": self.unique_id,
        }
        if mode == "private" and self.callback_url:
            body["callback_url"] = self.callback_url
        path = "scraper_url" if mode == "private" else "scraper_url_public"
        logger.debug("Uploading to %s library (callback=%s)", mode, "callback_url" in body)
        return await self._request("POST", path, timeout=self.timeout, body=body)

    async def get_videos(self, task_id: str) -> Any:
        """Current identifiers (and per-item status) for an upload task."""
        return await self._request(
            "GET",
            "get_video_ids_by_task_id",
            timeout=self.timeout,
            params={"task_id": task_id, "unique_id": self.unique_id},
        )

    async def chat(
        self, identifiers: Sequence[str], prompt: str, *, session_id: int
    ) -> Any:
        """Ask the service ``prompt`` about the uploaded videos."""
        body = {
            "video_nos": list(identifiers),
            "prompt": prompt,
            "session_id": session_id,
            "unique_id": self.unique_id,
        }
        return await self._request("POST", "chat", timeout=self.query_timeout, body=body)


SAMPLE_RECIPE: dict[str, Any] = {
    "title": "Classic Pancakes",
    "servings": 4,
    "prep_time": "10 min",
    "cook_time": "15 min",
    "total_time": "25 min",
    "ingredients": [
        {"name": "all-purpose flour", "quantity": "1 1/2", "unit": "cups", "notes": None},
        {"name": "milk", "quantity": "1 1/4", "unit": "cups", "notes": None},
        {"name": "egg", "quantity": 1, "unit": None, "notes": None},
        {"name": "sugar", "quantity": "1/3", "unit": "cup", "notes": None},
        {"name": "butter", "quantity": 3, "unit": "tbsp", "notes": "melted"},
    ],
    "steps": [
        {"t_in": "00:00:15", "t_out": "00:00:40", "instruction": "Whisk the flour and sugar together."},
        {"t_in": "00:00:41", "t_out": "00:01:10", "instruction": "Add the milk, egg and melted butter and mix."},
        {"t_in": "00:01:11", "t_out": "00:02:30", "instruction": "Cook on a hot griddle until golden on both sides."},
    ],
    "tools": ["mixing bowl", "griddle"],
    "tips": ["Let the batter rest for five minutes."],
    "creator": {"name": None, "handle": None},
}


class MockVideoService:
    """Deterministic in-process video service.

    Each method replays its scripted responses in order and then repeats a
    canned success. A scripted item that is an exception instance is raised
    instead of returned. Calls are recorded on ``calls``.
    """

    def __init__(
        self,
        recipe: dict[str, Any] | None = None,
        *,
        task_id: str = "mock-task-0001",
        identifiers: Sequence[str] = ("VI0000000001",),
        upload_responses: Iterable[Any] = (),
        poll_responses: Iterable[Any] = (),
        chat_responses: Iterable[Any] = (),
    ) -> None:
        self.recipe = copy.deepcopy(recipe if recipe is not None else SAMPLE_RECIPE)
        self.task_id = task_id
        self.identifiers = tuple(identifiers)
        self._scripts = {
            "upload": deque(upload_responses),
            "get_videos": deque(poll_responses),
            "chat": deque(chat_responses),
        }
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _next(self, operation: str, default: Any) -> Any:
        script = self._scripts[operation]
        item = script.popleft() if script else default
        if isinstance(item, BaseException):
            raise item
        return item

    async def upload(self, video_url: str, *, mode: LibraryMode) -> Any:
        self.calls.append(("upload", {"video_url": video_url, "mode": mode}))
        return self._next(
            "upload",
            {
                "code": "0000",
                "success": True,
                "failed": False,
                "data": {"taskId": self.task_id},
            },
        )

    async def get_videos(self, task_id: str) -> Any:
        self.calls.append(("get_videos", {"task_id": task_id}))
        videos = [
            {"video_no": vid, "status": constants.PARSED_STATUS}
            for vid in self.identifiers
        ]
        return self._next(
            "get_videos", {"code": "0000", "success": True, "data": {"videos": videos}}
        )

    async def chat(
        self, identifiers: Sequence[str], prompt: str, *, session_id: int
    ) -> Any:
        self.calls.append(
            ("chat", {"identifiers": tuple(identifiers), "session_id": session_id})
        )
        content = f"```json\n{json.dumps(self.recipe)}\n```"
        return self._next(
            "chat",
            {
                "code": "0000",
                "success": True,
                "failed": False,
                "data": {"content": content},
            },
        )

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)
