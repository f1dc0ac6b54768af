"""Headless Chrome rendering for client-rendered recipe pages.

The browser is driven through Selenium on a worker thread so the event
loop stays free; each attempt launches and quits its own driver.
"""

import asyncio
from collections.abc import Awaitable, Callable
import logging
import os
from pathlib import Path
import time

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.remote.webdriver import WebDriver

from recipe_extract import constants
from recipe_extract.exceptions import RenderUnavailable

logger = logging.getLogger(__name__)

DriverFactory = Callable[[Options], WebDriver]

HIDE_WEBDRIVER_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
)


def is_serverless() -> bool:
    return any(os.getenv(marker) for marker in constants.SERVERLESS_ENV_MARKERS)


def resolve_chrome_binary(configured: str | None = None) -> str | None:
    """Chrome executable to launch, or None to let Selenium Manager decide.

    An explicit path wins. In serverless environments the bundled binary
    locations are probed first; locally the common install paths are used.
    """
    if configured:
        return configured
    if is_serverless() and (env_path := os.getenv("CHROME_EXECUTABLE_PATH")):
        return env_path
    for candidate in constants.CHROME_CANDIDATE_PATHS:
        if Path(candidate).exists():
            return candidate
    return None


def chrome_options(binary: str | None) -> Options:
    options = Options()
    options.add_argument("--headless=new")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")
    options.add_argument("--disable-blink-features=AutomationControlled")
    options.add_argument(f"--user-agent={constants.BROWSER_USER_AGENT}")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    options.add_experimental_option("useAutomationExtension", False)
    if is_serverless():
        options.add_argument("--single-process")
    if binary:
        options.binary_location = binary
    return options


def _default_driver(options: Options) -> WebDriver:
    return webdriver.Chrome(options=options)


class HeadlessRenderer:
    """Renders a URL to its post-JavaScript DOM.

    Args:
        binary: Chrome executable; resolved per environment when omitted.
        attempts: Launch/navigate attempts before giving up.
        retry_delay: Seconds between attempts.
        settle_delay: Seconds to let client-side scripts finish after load.
        page_timeout: Page load timeout in seconds.
        driver_factory: Builds a driver from options; injectable for tests.
    """

    def __init__(
        self,
        *,
        binary: str | None = None,
        attempts: int = constants.RENDER_ATTEMPTS,
        retry_delay: float = constants.RENDER_RETRY_DELAY,
        settle_delay: float = constants.RENDER_SETTLE_DELAY,
        page_timeout: int = constants.RENDER_PAGE_TIMEOUT,
        driver_factory: DriverFactory | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.binary = resolve_chrome_binary(binary)
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay
        self.settle_delay = settle_delay
        self.page_timeout = page_timeout
        self._driver_factory = driver_factory or _default_driver
        self._sleep = sleep

    async def render(self, url: str) -> str:
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                return await asyncio.to_thread(self._render_sync, url)
            except WebDriverException as e:
                last_error = e
                logger.warning(
                    "Render attempt %d/%d failed for %s: %s",
                    attempt,
                    self.attempts,
                    url,
                    e.msg or type(e).__name__,
                )
                if attempt < self.attempts:
                    await self._sleep(self.retry_delay)
        raise RenderUnavailable(
            f"Headless render failed after {self.attempts} attempts"
        ) from last_error

    def _render_sync(self, url: str) -> str:
        driver = self._driver_factory(chrome_options(self.binary))
        try:
            driver.set_page_load_timeout(self.page_timeout)
            driver.execute_cdp_cmd(
                "Page.addScriptToEvaluateOnNewDocument", {"source": HIDE_WEBDRIVER_SCRIPT}
            )
            driver.get(url)
            if self.settle_delay > 0:
                time.sleep(self.settle_delay)
            return driver.page_source
        finally:
            driver.quit()
