"""Layered recipe extraction for ordinary web pages.

Layers run in order against the fetched markup and the first adequate
draft wins. When none is adequate the page is rendered in a headless
browser and the same layers run again. ``extract`` never raises: the
worst outcome is an empty, inadequate result whose ``debug`` explains
what was tried.
"""

from collections.abc import Callable
import logging
from typing import NamedTuple

from bs4 import BeautifulSoup

from recipe_extract.config import FrozenConfig, resolve_config
from recipe_extract.core.types import ExtractionLayer, WebDebug, WebExtractionResult
from recipe_extract.exceptions import NetworkError, RenderUnavailable
from recipe_extract.telemetry import TelemetryContext, TelemetryContextProtocol

from .draft import RecipeDraft
from .fetch import HttpPageFetcher, PageFetcher
from .heuristics import find_author, parse_html_content
from .readability import extract_readable
from .render import HeadlessRenderer
from .structured import extract_json_ld, extract_microdata
from .text import find_byline, is_generic_author

logger = logging.getLogger(__name__)

T_EXTRACT = "web.extract"
T_LAYER = "web.layer"
T_RENDER = "web.render"

STRUCTURED_LAYERS = frozenset(
    {ExtractionLayer.STRUCTURED_JSON_LD, ExtractionLayer.STRUCTURED_MICRODATA}
)


class Layer(NamedTuple):
    """One parser in the cascade."""

    name: ExtractionLayer
    attempt: Callable[[str, str], RecipeDraft | None]
    adequate: Callable[[RecipeDraft], bool]


LAYERS: tuple[Layer, ...] = (
    Layer(ExtractionLayer.STRUCTURED_JSON_LD, extract_json_ld, RecipeDraft.is_adequate),
    Layer(
        ExtractionLayer.STRUCTURED_MICRODATA, extract_microdata, RecipeDraft.is_adequate
    ),
    Layer(ExtractionLayer.READABILITY, extract_readable, RecipeDraft.is_adequate),
    Layer(ExtractionLayer.HEURISTIC, parse_html_content, RecipeDraft.is_adequate),
)


class _Outcome(NamedTuple):
    layer: ExtractionLayer
    draft: RecipeDraft
    adequate: bool
    html: str


def _better(current: _Outcome | None, candidate: _Outcome) -> _Outcome:
    if current is None:
        return candidate
    if candidate.adequate != current.adequate:
        return candidate if candidate.adequate else current
    return candidate if candidate.draft.item_count > current.draft.item_count else current


class WebExtractionPipeline:
    """Extracts a recipe from an arbitrary recipe web page.

    Args:
        fetcher: Static page fetcher; an httpx-based one by default.
        renderer: Headless renderer for the fallback pass. Built from config
            when headless rendering is enabled.
        config: Frozen configuration; resolved from the environment if omitted.
        telemetry: Optional telemetry context.
        layers: Parser cascade, in evaluation order.
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        renderer: HeadlessRenderer | None = None,
        *,
        config: FrozenConfig | None = None,
        telemetry: TelemetryContextProtocol | None = None,
        layers: tuple[Layer, ...] = LAYERS,
    ) -> None:
        self._config = config or resolve_config().to_frozen()
        self._fetcher = fetcher or HttpPageFetcher(
            timeout=self._config.fetch_timeout_seconds
        )
        if renderer is None and self._config.headless_enabled:
            renderer = HeadlessRenderer(binary=self._config.chrome_binary)
        self._renderer = renderer if self._config.headless_enabled else None
        self._telemetry = telemetry or TelemetryContext()
        self._layers = layers

    async def extract(self, url: str) -> WebExtractionResult:
        try:
            with self._telemetry(T_EXTRACT):
                return await self._extract(url)
        except Exception as e:  # noqa: BLE001
            logger.exception("Web extraction failed unexpectedly for %s", url)
            return WebExtractionResult(
                layer=ExtractionLayer.HEURISTIC,
                debug=WebDebug(url=url, errors=(f"{type(e).__name__}: {e}",)),
            )

    async def _extract(self, url: str) -> WebExtractionResult:
        attempts: list[str] = []
        errors: list[str] = []
        structured: list[bool] = []
        rendered = False

        html = ""
        try:
            page = await self._fetcher.fetch(url)
            html = page.html
        except NetworkError as e:
            logger.warning("Static fetch failed for %s: %s", url, e)
            errors.append(str(e))

        best = self._cascade(html, url, attempts, errors, structured)

        if not best.adequate and self._renderer is not None:
            with self._telemetry(T_RENDER):
                try:
                    rendered_html = await self._renderer.render(url)
                except RenderUnavailable as e:
                    logger.warning("Headless render unavailable for %s: %s", url, e)
                    errors.append(str(e))
                else:
                    rendered = True
                    second = self._cascade(
                        rendered_html, url, attempts, errors, structured, prefix="rendered:"
                    )
                    best = _better(best, second)

        self._fill_author(best)
        if not best.adequate:
            logger.info(
                "No adequate layer for %s; returning %s with %d items",
                url,
                best.layer.value,
                best.draft.item_count,
            )
        debug = WebDebug(
            attempts=tuple(attempts),
            has_structured_data=any(structured),
            rendered=rendered,
            url=url,
            errors=tuple(errors),
        )
        return best.draft.to_result(best.layer, debug=debug, adequate=best.adequate)

    def _cascade(
        self,
        html: str,
        url: str,
        attempts: list[str],
        errors: list[str],
        structured: list[bool],
        *,
        prefix: str = "",
    ) -> _Outcome:
        best: _Outcome | None = None
        for layer in self._layers:
            attempts.append(f"{prefix}{layer.name.value}")
            with self._telemetry(T_LAYER, layer=layer.name.value) as tele:
                try:
                    draft = layer.attempt(html, url)
                except Exception as e:  # noqa: BLE001
                    logger.warning("Layer %s raised on %s: %s", layer.name.value, url, e)
                    errors.append(f"{prefix}{layer.name.value}: {e}")
                    continue
                if draft is None:
                    continue
                tele.gauge("web.layer_items", draft.item_count)
            if layer.name in STRUCTURED_LAYERS:
                structured.append(True)

            outcome = _Outcome(layer.name, draft, layer.adequate(draft), html)
            logger.debug(
                "Layer %s produced %d ingredients and %d steps",
                layer.name.value,
                len(draft.ingredients),
                len(draft.steps),
            )
            best = _better(best, outcome)
            if outcome.adequate:
                break
        return best or _Outcome(ExtractionLayer.HEURISTIC, RecipeDraft(), False, html)

    @staticmethod
    def _fill_author(outcome: _Outcome) -> None:
        """Replace a missing or placeholder author with a page or step byline."""
        draft = outcome.draft
        if not is_generic_author(draft.author):
            return
        author = None
        if outcome.html:
            author = find_author(BeautifulSoup(outcome.html, "lxml"))
        if is_generic_author(author):
            author = find_byline([step.text for step in draft.steps])
        if author:
            draft.author = author
