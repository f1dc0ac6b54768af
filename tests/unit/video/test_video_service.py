import json

import httpx
import pytest

from recipe_extract.exceptions import FatalApiError, NetworkError, TransientApiError
from recipe_extract.video.service import MemoriesVideoService, MockVideoService

pytestmark = pytest.mark.unit

BASE = "https://video.test/api"


def _service(handler, **kwargs) -> MemoriesVideoService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MemoriesVideoService("sk-test", base_url=BASE, client=client, **kwargs)


@pytest.mark.asyncio
async def test_public_upload_posts_to_public_endpoint():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": "0000", "data": {"taskId": "t1"}})

    service = _service(handler, unique_id="tenant", callback_url="https://cb.test")
    body = await service.upload("https://youtu.be/abc", mode="public")

    assert body["data"]["taskId"] == "t1"
    request = seen[0]
    assert request.url.path == "/api/scraper_url_public"
    assert request.headers["Authorization"] == "sk-test"
    sent = json.loads(request.content)
    assert sent["video_urls"] == ["https://youtu.be/abc"]
    assert sent["unique_id"] == "tenant"
    assert "callback_url" not in sent


@pytest.mark.asyncio
async def test_private_upload_carries_callback():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": "0000", "data": {"taskId": "t1"}})

    service = _service(handler, callback_url="https://cb.test")
    await service.upload("https://youtu.be/abc", mode="private")

    assert seen[0].url.path == "/api/scraper_url"
    assert json.loads(seen[0].content)["callback_url"] == "https://cb.test"


@pytest.mark.asyncio
async def test_get_videos_and_chat_requests():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    service = _service(handler)
    await service.get_videos("task-9")
    await service.chat(["VI1", "VI2"], "extract", session_id=7)

    lookup, chat = seen
    assert lookup.method == "GET"
    assert lookup.url.params["task_id"] == "task-9"
    assert chat.url.path == "/api/chat"
    sent = json.loads(chat.content)
    assert sent["video_nos"] == ["VI1", "VI2"]
    assert sent["session_id"] == 7


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error"),
    [(500, TransientApiError), (503, TransientApiError), (429, TransientApiError), (403, FatalApiError)],
)
async def test_http_status_mapping(status, error):
    service = _service(lambda _: httpx.Response(status, text="nope"))

    with pytest.raises(error) as exc_info:
        await service.get_videos("t")
    assert exc_info.value.code == str(status)


@pytest.mark.asyncio
async def test_transport_errors_become_network_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(NetworkError):
        await _service(handler).get_videos("t")


@pytest.mark.asyncio
async def test_timeouts_become_network_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkError, match="timeout"):
        await _service(handler).chat(["VI1"], "p", session_id=1)


@pytest.mark.asyncio
async def test_non_json_body_returned_as_text():
    service = _service(lambda _: httpx.Response(200, text="plain answer"))

    assert await service.chat(["VI1"], "p", session_id=1) == "plain answer"


def test_api_key_required():
    with pytest.raises(ValueError):
        MemoriesVideoService("")


@pytest.mark.asyncio
async def test_mock_service_replays_script_then_defaults():
    boom = TransientApiError("scripted")
    service = MockVideoService(chat_responses=[boom, {"answer": "custom"}])

    with pytest.raises(TransientApiError):
        await service.chat(["VI1"], "p", session_id=1)
    assert await service.chat(["VI1"], "p", session_id=1) == {"answer": "custom"}
    default = await service.chat(["VI1"], "p", session_id=1)

    assert "Classic Pancakes" in default["data"]["content"]
    assert service.count("chat") == 3
    assert service.count("upload") == 0
