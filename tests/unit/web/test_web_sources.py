from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from selenium.common.exceptions import WebDriverException

from recipe_extract.exceptions import NetworkError, RenderUnavailable
from recipe_extract.web import (
    HeadlessRenderer,
    HttpPageFetcher,
    readability,
    resolve_chrome_binary,
)
from recipe_extract.web.render import HIDE_WEBDRIVER_SCRIPT, chrome_options

pytestmark = pytest.mark.unit

URL = "https://bread.test/flatbread"

ARTICLE = (
    "<h2>Ingredients</h2><ul><li>2 cups flour</li><li>1 tsp salt</li>"
    "<li>1 cup water</li></ul><ol><li>Mix the flour, salt and water.</li>"
    "<li>Knead the dough for ten minutes.</li></ol>"
)
NOISY_PAGE = (
    "<html><body><nav>"
    + " ".join(f"Menu link number {i}" for i in range(40))
    + f"</nav><div>{ARTICLE}</div><footer>"
    + " ".join(f"Footer text block {i}" for i in range(40))
    + "</footer></body></html>"
)


# --- Static fetch ---


@pytest.mark.asyncio
async def test_fetch_sends_browser_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="<html>ok</html>")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    page = await HttpPageFetcher(client=client).fetch(URL)

    assert page.ok
    assert page.html == "<html>ok</html>"
    assert "Chrome" in seen[0].headers["User-Agent"]


@pytest.mark.asyncio
async def test_fetch_returns_error_pages():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda _: httpx.Response(403, text="denied"))
    )

    page = await HttpPageFetcher(client=client).fetch(URL)

    assert page.status == 403
    assert not page.ok
    assert page.html == "denied"


@pytest.mark.asyncio
async def test_fetch_transport_failure_raises_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(NetworkError, match="Failed to fetch"):
        await HttpPageFetcher(client=client).fetch(URL)


# --- Readability ---


@pytest.fixture
def fake_trafilatura(monkeypatch):
    def install(content, title="Flatbread"):
        monkeypatch.setattr(readability.trafilatura, "extract", lambda *a, **k: content)
        monkeypatch.setattr(
            readability.trafilatura,
            "extract_metadata",
            lambda *a, **k: SimpleNamespace(title=title),
        )

    return install


def test_article_isolated_when_noise_removed(fake_trafilatura):
    fake_trafilatura(ARTICLE, title="Bread & Salt")

    article = readability.isolate_article(NOISY_PAGE, URL)

    assert article == f"<article><h1>Bread &amp; Salt</h1>{ARTICLE}</article>"


def test_article_rejected_when_little_was_removed(fake_trafilatura):
    fake_trafilatura(ARTICLE)

    assert readability.isolate_article(f"<div>{ARTICLE}</div>", URL) is None


def test_article_missing(fake_trafilatura):
    fake_trafilatura(None)

    assert readability.isolate_article(NOISY_PAGE, URL) is None
    assert readability.isolate_article("", URL) is None


def test_readable_draft_gets_confidence_floor(fake_trafilatura):
    fake_trafilatura(ARTICLE)

    draft = readability.extract_readable(NOISY_PAGE, URL)

    assert draft.title == "Flatbread"
    assert draft.ingredients == ["2 cups flour", "1 tsp salt", "1 cup water"]
    assert len(draft.steps) == 2
    assert draft.ingredient_confidence == pytest.approx(0.6)
    assert draft.step_confidence == pytest.approx(0.6)


# --- Headless render ---


class _FakeDriver:
    def __init__(self, html: str = "<html>rendered</html>") -> None:
        self.page_source = html
        self.commands: list[tuple] = []
        self.visited: list[str] = []
        self.quit_called = False

    def set_page_load_timeout(self, seconds):
        self.commands.append(("timeout", seconds))

    def execute_cdp_cmd(self, cmd, params):
        self.commands.append((cmd, params))

    def get(self, url):
        self.visited.append(url)

    def quit(self):
        self.quit_called = True


class _StalledDriver(_FakeDriver):
    def get(self, url):
        raise WebDriverException(f"timeout loading {url}")


def _factory(*outcomes):
    items = list(outcomes)

    def build(options):  # noqa: ARG001
        item = items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return build


@pytest.mark.asyncio
async def test_render_retries_then_returns_page_source():
    driver = _FakeDriver()
    sleep = AsyncMock()
    renderer = HeadlessRenderer(
        binary="/opt/chrome",
        settle_delay=0,
        page_timeout=30,
        driver_factory=_factory(WebDriverException("chrome crashed"), driver),
        sleep=sleep,
    )

    html = await renderer.render(URL)

    assert html == "<html>rendered</html>"
    assert driver.visited == [URL]
    assert driver.quit_called
    assert ("timeout", 30) in driver.commands
    assert (
        "Page.addScriptToEvaluateOnNewDocument",
        {"source": HIDE_WEBDRIVER_SCRIPT},
    ) in driver.commands
    sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_render_gives_up_after_attempts():
    errors = [WebDriverException(f"fail {i}") for i in range(3)]
    renderer = HeadlessRenderer(
        binary="/opt/chrome", driver_factory=_factory(*errors), sleep=AsyncMock()
    )

    with pytest.raises(RenderUnavailable, match="after 3 attempts") as exc_info:
        await renderer.render(URL)
    assert exc_info.value.__cause__ is errors[-1]


@pytest.mark.asyncio
async def test_driver_quits_when_navigation_fails():
    driver = _StalledDriver()
    renderer = HeadlessRenderer(
        binary="/opt/chrome",
        attempts=1,
        driver_factory=_factory(driver),
        sleep=AsyncMock(),
    )

    with pytest.raises(RenderUnavailable):
        await renderer.render(URL)
    assert driver.quit_called


def test_chrome_binary_resolution(monkeypatch):
    for marker in ("AWS_REGION", "VERCEL", "GOOGLE_CLOUD_PROJECT"):
        monkeypatch.delenv(marker, raising=False)
    assert resolve_chrome_binary("/custom/chrome") == "/custom/chrome"

    monkeypatch.setenv("VERCEL", "1")
    monkeypatch.setenv("CHROME_EXECUTABLE_PATH", "/tmp/chromium")
    assert resolve_chrome_binary(None) == "/tmp/chromium"


def test_chrome_options(monkeypatch):
    monkeypatch.setenv("AWS_REGION", "us-east-1")

    options = chrome_options("/opt/chrome")

    assert "--headless=new" in options.arguments
    assert "--single-process" in options.arguments
    assert options.binary_location == "/opt/chrome"
