import pytest

from recipe_extract.core.types import ExtractionLayer
from recipe_extract.exceptions import NetworkError, RenderUnavailable
from recipe_extract.telemetry import InMemoryReporter, TelemetryContext
from recipe_extract.web import LAYERS, Layer, RecipeDraft, WebExtractionPipeline

pytestmark = pytest.mark.unit

URL = "https://recipes.test/dinner/chili"

WITHOUT_READABILITY = tuple(
    layer for layer in LAYERS if layer.name is not ExtractionLayer.READABILITY
)


def _fixed_layer(name: ExtractionLayer, draft: RecipeDraft | None, calls: list):
    def attempt(html, url):  # noqa: ARG001
        calls.append(name)
        return draft

    return Layer(name, attempt, RecipeDraft.is_adequate)


@pytest.mark.asyncio
async def test_json_ld_page_uses_structured_layer(
    json_ld_html, static_fetcher, frozen_config
):
    pipeline = WebExtractionPipeline(static_fetcher(json_ld_html), config=frozen_config)

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.STRUCTURED_JSON_LD
    assert result.adequate is True
    assert len(result.ingredients) == 5
    assert len(result.steps) == 4
    assert result.confidence.ingredients >= 0.9
    assert result.author.name == "Ann Baker"
    assert result.debug.attempts == ("structured-json-ld",)
    assert result.debug.has_structured_data is True
    assert result.debug.rendered is False


@pytest.mark.asyncio
async def test_microdata_page_falls_through_json_ld(
    microdata_html, static_fetcher, frozen_config
):
    pipeline = WebExtractionPipeline(static_fetcher(microdata_html), config=frozen_config)

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.STRUCTURED_MICRODATA
    assert result.debug.attempts == ("structured-json-ld", "structured-microdata")
    assert [i.quantity for i in result.ingredients] == ["6", "1", "2"]


@pytest.mark.asyncio
async def test_plain_lists_reach_heuristic_layer(plain_html, static_fetcher, frozen_config):
    pipeline = WebExtractionPipeline(
        static_fetcher(plain_html), config=frozen_config, layers=WITHOUT_READABILITY
    )

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.HEURISTIC
    assert result.adequate is True
    assert len(result.ingredients) == 4
    assert len(result.steps) == 3
    assert result.ingredients[0].unit == "pound"
    assert [s.index for s in result.steps] == [1, 2, 3]
    assert result.debug.has_structured_data is False
    assert result.title == "Weeknight Chili"


@pytest.mark.asyncio
async def test_extraction_is_idempotent(plain_html, static_fetcher, frozen_config):
    pipeline = WebExtractionPipeline(
        static_fetcher(plain_html), config=frozen_config, layers=WITHOUT_READABILITY
    )

    assert await pipeline.extract(URL) == await pipeline.extract(URL)


@pytest.mark.asyncio
async def test_first_adequate_layer_stops_cascade(static_fetcher, frozen_config):
    calls: list = []
    thin = RecipeDraft(ingredients=["salt"])
    full = RecipeDraft(ingredients=["a 1", "b 2", "c 3"])
    layers = (
        _fixed_layer(ExtractionLayer.STRUCTURED_JSON_LD, None, calls),
        _fixed_layer(ExtractionLayer.STRUCTURED_MICRODATA, thin, calls),
        _fixed_layer(ExtractionLayer.READABILITY, full, calls),
        _fixed_layer(ExtractionLayer.HEURISTIC, full, calls),
    )
    pipeline = WebExtractionPipeline(static_fetcher("<p></p>"), config=frozen_config, layers=layers)

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.READABILITY
    assert ExtractionLayer.HEURISTIC not in calls
    assert result.debug.has_structured_data is True


@pytest.mark.asyncio
async def test_inadequate_cascade_keeps_largest_result(static_fetcher, frozen_config):
    calls: list = []
    layers = (
        _fixed_layer(ExtractionLayer.STRUCTURED_JSON_LD, RecipeDraft(ingredients=["x"]), calls),
        _fixed_layer(
            ExtractionLayer.HEURISTIC, RecipeDraft(ingredients=["x", "y"]), calls
        ),
    )
    pipeline = WebExtractionPipeline(static_fetcher("<p></p>"), config=frozen_config, layers=layers)

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.HEURISTIC
    assert result.adequate is False
    assert len(result.ingredients) == 2


@pytest.mark.asyncio
async def test_rendered_pass_runs_when_static_markup_is_inadequate(
    empty_shell_html, json_ld_html, static_fetcher, fake_renderer, make_config
):
    renderer = fake_renderer(json_ld_html)
    pipeline = WebExtractionPipeline(
        static_fetcher(empty_shell_html),
        renderer,
        config=make_config(headless_enabled=True),
    )

    result = await pipeline.extract(URL)

    assert renderer.rendered == [URL]
    assert result.layer is ExtractionLayer.STRUCTURED_JSON_LD
    assert result.adequate is True
    assert result.debug.rendered is True
    assert result.debug.attempts[:4] == tuple(layer.name.value for layer in LAYERS)
    assert result.debug.attempts[4] == "rendered:structured-json-ld"


@pytest.mark.asyncio
async def test_renderer_unused_when_static_pass_is_adequate(
    json_ld_html, static_fetcher, fake_renderer, make_config
):
    renderer = fake_renderer(json_ld_html)
    pipeline = WebExtractionPipeline(
        static_fetcher(json_ld_html), renderer, config=make_config(headless_enabled=True)
    )

    await pipeline.extract(URL)

    assert renderer.rendered == []


@pytest.mark.asyncio
async def test_renderer_disabled_by_config(
    empty_shell_html, json_ld_html, static_fetcher, fake_renderer, frozen_config
):
    renderer = fake_renderer(json_ld_html)
    pipeline = WebExtractionPipeline(
        static_fetcher(empty_shell_html), renderer, config=frozen_config
    )

    result = await pipeline.extract(URL)

    assert renderer.rendered == []
    assert result.adequate is False


@pytest.mark.asyncio
async def test_render_failure_is_reported_not_raised(
    empty_shell_html, static_fetcher, fake_renderer, make_config
):
    renderer = fake_renderer(error=RenderUnavailable("no chrome"))
    pipeline = WebExtractionPipeline(
        static_fetcher(empty_shell_html), renderer, config=make_config(headless_enabled=True)
    )

    result = await pipeline.extract(URL)

    assert result.adequate is False
    assert result.item_count == 0
    assert result.debug.rendered is False
    assert "no chrome" in result.debug.errors


@pytest.mark.asyncio
async def test_fetch_failure_returns_empty_result(static_fetcher, frozen_config):
    pipeline = WebExtractionPipeline(
        static_fetcher(error=NetworkError("connection refused")), config=frozen_config
    )

    result = await pipeline.extract(URL)

    assert result.item_count == 0
    assert result.adequate is False
    assert "connection refused" in result.debug.errors
    assert result.debug.url == URL


@pytest.mark.asyncio
async def test_unexpected_errors_never_escape(static_fetcher, frozen_config):
    pipeline = WebExtractionPipeline(
        static_fetcher(error=RuntimeError("kaboom")), config=frozen_config
    )

    result = await pipeline.extract(URL)

    assert result.layer is ExtractionLayer.HEURISTIC
    assert result.debug.errors == ("RuntimeError: kaboom",)


@pytest.mark.asyncio
async def test_layer_errors_are_recorded_and_skipped(static_fetcher, frozen_config):
    def broken(html, url):  # noqa: ARG001
        raise ValueError("bad markup")

    layers = (
        Layer(ExtractionLayer.STRUCTURED_JSON_LD, broken, RecipeDraft.is_adequate),
        *WITHOUT_READABILITY[1:],
    )
    pipeline = WebExtractionPipeline(static_fetcher("<p></p>"), config=frozen_config, layers=layers)

    result = await pipeline.extract(URL)

    assert "structured-json-ld: bad markup" in result.debug.errors
    assert result.debug.attempts[0] == "structured-json-ld"


@pytest.mark.asyncio
async def test_generic_author_replaced_by_step_byline(
    recipe_json_ld, render_json_ld, static_fetcher, frozen_config
):
    recipe = recipe_json_ld["@graph"][1]
    recipe["author"] = "Admin"
    recipe["recipeInstructions"].append(
        "Recipe developed by Jane Doe and tested in our kitchen."
    )
    pipeline = WebExtractionPipeline(
        static_fetcher(render_json_ld(recipe_json_ld)), config=frozen_config
    )

    result = await pipeline.extract(URL)

    assert result.author.name == "Jane Doe"


@pytest.mark.asyncio
async def test_layer_telemetry(json_ld_html, static_fetcher, frozen_config):
    reporter = InMemoryReporter()
    pipeline = WebExtractionPipeline(
        static_fetcher(json_ld_html),
        config=frozen_config,
        telemetry=TelemetryContext(reporter, enabled=True),
    )

    await pipeline.extract(URL)

    assert reporter.values("web.layer_items") == [9]
    assert any(scope.startswith("web.extract") for scope in reporter.timings)
