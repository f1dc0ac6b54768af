"""Scenario-first entrypoints for the UI and storage layers.

Each helper resolves configuration once when ``cfg`` is omitted and wires
the default adapters; tests and advanced callers construct the components
directly instead.
"""

import logging

from recipe_extract.config import FrozenConfig, resolve_config
from recipe_extract.core.types import (
    Failure,
    Platform,
    PreflightResult,
    RecipeCard,
    Result,
    Success,
    VideoExtraction,
    WebExtractionResult,
)
from recipe_extract.exceptions import (
    AdmissionRejected,
    ExtractionFailed,
    NetworkError,
    RecipeExtractError,
)
from recipe_extract.metadata import MetadataProvider, YouTubeMetadataClient
from recipe_extract.normalize import ResultNormalizer, failure_message
from recipe_extract.platform import classify, extract_video_id
from recipe_extract.preflight import PreflightGate
from recipe_extract.video import (
    MemoriesVideoService,
    MockVideoService,
    VideoExtractionOrchestrator,
    VideoService,
    parse_description,
)
from recipe_extract.web import WebExtractionPipeline

logger = logging.getLogger(__name__)


def _frozen(cfg: FrozenConfig | None) -> FrozenConfig:
    return cfg or resolve_config().to_frozen()


def _metadata_client(cfg: FrozenConfig) -> MetadataProvider | None:
    if not cfg.youtube_api_key:
        return None
    return YouTubeMetadataClient(cfg.youtube_api_key)


def create_video_service(cfg: FrozenConfig, api_key: str | None = None) -> VideoService:
    """Real service when ``use_real_api`` is set, the deterministic mock otherwise."""
    key = api_key or cfg.memories_api_key
    if not cfg.use_real_api:
        logger.debug("Using mock video service (use_real_api is off)")
        return MockVideoService()
    if not key:
        raise ValueError("An API key is required when use_real_api is enabled")
    return MemoriesVideoService(
        key,
        base_url=cfg.video_service_base_url,
        unique_id=cfg.unique_id,
        quality=cfg.upload_quality,
        callback_url=cfg.callback_url,
        timeout=cfg.upstream_timeout_seconds,
        query_timeout=cfg.query_timeout_seconds,
    )


async def admit(url: str, *, cfg: FrozenConfig | None = None) -> PreflightResult:
    """Preflight verdict for ``url``.

    Args:
        url: Video URL pasted by the user.
        cfg: Optional frozen configuration. If omitted, ``resolve_config()`` is used.

    Returns:
        The immutable admission verdict. Rejections carry a ``user_message``.
    """
    final_cfg = _frozen(cfg)
    return await PreflightGate(_metadata_client(final_cfg)).check(url)


async def extract_video(
    url: str,
    api_key: str | None = None,
    *,
    cfg: FrozenConfig | None = None,
) -> Result[VideoExtraction, ExtractionFailed]:
    """Run the video extraction lifecycle for ``url``.

    Example:
        ```python
        outcome = await extract_video("https://www.youtube.com/watch?v=abc123")
        if isinstance(outcome, Success):
            print(outcome.value.recipe["title"])
        else:
            print(outcome.error.reason, outcome.error.thumbnail)
        ```
    """
    final_cfg = _frozen(cfg)
    orchestrator = VideoExtractionOrchestrator(
        create_video_service(final_cfg, api_key),
        config=final_cfg,
        metadata=_metadata_client(final_cfg),
    )
    return await orchestrator.extract(url)


async def extract_web(url: str, *, cfg: FrozenConfig | None = None) -> WebExtractionResult:
    """Layered web extraction; never raises."""
    return await WebExtractionPipeline(config=_frozen(cfg)).extract(url)


async def ingest(
    url: str,
    *,
    cfg: FrozenConfig | None = None,
    override: bool = False,
) -> Result[RecipeCard, RecipeExtractError]:
    """Admit, extract and normalize ``url`` into a canonical ``RecipeCard``.

    Video URLs go through the preflight gate first; ``override`` lets a
    borderline (or otherwise overridable) rejection through. When the video
    service fails but metadata is available, a card is salvaged from the
    video description.
    """
    final_cfg = _frozen(cfg)
    platform = classify(url)
    normalizer = ResultNormalizer()

    if platform is Platform.WEB:
        result = await extract_web(url, cfg=final_cfg)
        if not result.item_count:
            return Failure(RecipeExtractError(f"No recipe content found at {url}"))
        return Success(normalizer.from_web(result, source_url=url))

    verdict = await admit(url, cfg=final_cfg)
    if not verdict.passed and not (override and verdict.allow_override):
        reason = (
            verdict.user_message.title
            if verdict.user_message
            else "; ".join(verdict.reasons)
        )
        return Failure(AdmissionRejected(reason, borderline=verdict.borderline))

    video_id = extract_video_id(url, platform)
    outcome = await extract_video(url, cfg=final_cfg)
    if isinstance(outcome, Success):
        return Success(
            normalizer.from_video(
                outcome.value, source_url=url, platform=platform, video_id=video_id
            )
        )

    error = outcome.error
    salvaged = await _salvage_from_description(url, platform, video_id, error, final_cfg)
    if salvaged is not None:
        return Success(salvaged)
    logger.warning("Video extraction failed for %s: %s", url, error.reason)
    return Failure(
        ExtractionFailed(
            failure_message(error, platform),
            cause=error.cause,
            thumbnail=error.thumbnail,
            video_id=error.video_id,
        )
    )


async def _salvage_from_description(
    url: str,
    platform: Platform,
    video_id: str | None,
    error: ExtractionFailed,
    cfg: FrozenConfig,
) -> RecipeCard | None:
    metadata = _metadata_client(cfg)
    if metadata is None or platform is not Platform.YOUTUBE or not video_id:
        return None
    try:
        details = await metadata.get_video_metadata(video_id)
    except NetworkError as e:
        logger.info("Description salvage skipped, metadata unavailable: %s", e)
        return None
    if details is None:
        return None

    parsed = parse_description(details.description, details.title)
    if parsed.is_empty:
        return None
    author = await metadata.get_author(video_id)
    logger.warning(
        "Salvaged %d ingredients and %d steps from the description of %s",
        len(parsed.ingredients),
        len(parsed.steps),
        video_id,
    )
    return ResultNormalizer().from_description(
        parsed,
        source_url=url,
        platform=platform,
        title=details.title or None,
        thumbnail=error.thumbnail,
        author=author,
        video_id=video_id,
    )
