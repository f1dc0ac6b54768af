import httpx
import pytest

from recipe_extract.core.types import Author
from recipe_extract.exceptions import NetworkError
from recipe_extract.metadata import VideoMetadata, YouTubeMetadataClient

pytestmark = pytest.mark.unit

VIDEO_ITEM = {
    "id": "abc123XYZ",
    "snippet": {
        "title": "Easy Banana Bread",
        "description": "2 cups flour, bake at 350°F for 20 minutes",
        "categoryId": 26,
        "channelId": "UC42",
        "channelTitle": "Banana Kitchen",
        "tags": ["baking", "bread"],
    },
    "contentDetails": {"duration": "PT6M40S", "caption": "true"},
    "topicDetails": {"topicCategories": ["https://en.wikipedia.org/wiki/Food"]},
}


def _client(handler) -> YouTubeMetadataClient:
    transport = httpx.MockTransport(handler)
    return YouTubeMetadataClient(
        "yt-key", client=httpx.AsyncClient(transport=transport)
    )


def _routes(videos: dict, channels: dict | None = None):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/videos"):
            return httpx.Response(200, json=videos)
        return httpx.Response(200, json=channels or {"items": []})

    return handler, seen


def test_api_item_mapping():
    metadata = VideoMetadata.from_api_item(VIDEO_ITEM)

    assert metadata.duration_seconds == 400
    assert metadata.category_id == "26"
    assert metadata.has_caption is True
    assert metadata.topic_categories == ("https://en.wikipedia.org/wiki/Food",)
    assert metadata.tags == ("baking", "bread")


def test_sparse_item_uses_defaults():
    metadata = VideoMetadata.from_api_item({"id": "x"})

    assert metadata.title == ""
    assert metadata.duration_seconds is None
    assert metadata.has_caption is False
    assert metadata.channel_id is None


@pytest.mark.asyncio
async def test_video_metadata_request():
    handler, seen = _routes({"items": [VIDEO_ITEM]})

    metadata = await _client(handler).get_video_metadata("abc123XYZ")

    assert metadata.title == "Easy Banana Bread"
    params = seen[0].url.params
    assert params["id"] == "abc123XYZ"
    assert params["key"] == "yt-key"
    assert "contentDetails" in params["part"]


@pytest.mark.asyncio
async def test_unknown_video_returns_none():
    handler, _ = _routes({"items": []})

    assert await _client(handler).get_video_metadata("missing") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "match"),
    [
        (httpx.Response(403, json={"error": {}}), "error 403"),
        (httpx.Response(200, text="not json"), "request failed"),
    ],
)
async def test_failures_become_network_errors(response, match):
    client = _client(lambda _: response)

    with pytest.raises(NetworkError, match=match):
        await client.get_video_metadata("abc123XYZ")


@pytest.mark.asyncio
async def test_timeout_becomes_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkError, match="timed out"):
        await _client(handler).get_video_metadata("abc123XYZ")


@pytest.mark.asyncio
async def test_author_from_channel_custom_url():
    handler, seen = _routes(
        {"items": [VIDEO_ITEM]},
        {"items": [{"snippet": {"customUrl": "bananakitchen"}}]},
    )

    author = await _client(handler).get_author("abc123XYZ")

    assert author == Author(name="Banana Kitchen", handle="@bananakitchen")
    assert seen[1].url.params["id"] == "UC42"


@pytest.mark.asyncio
async def test_author_without_custom_url_keeps_title():
    handler, _ = _routes({"items": [VIDEO_ITEM]})

    author = await _client(handler).get_author("abc123XYZ")

    assert author == Author(name="Banana Kitchen", handle=None)


@pytest.mark.asyncio
async def test_author_lookup_failure_is_swallowed():
    client = _client(lambda _: httpx.Response(500, text="down"))

    assert await client.get_author("abc123XYZ") is None


def test_api_key_required():
    with pytest.raises(ValueError):
        YouTubeMetadataClient("")
