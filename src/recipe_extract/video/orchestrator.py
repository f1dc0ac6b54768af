"""Drives one video through upload, identifier polling and structured query.

The orchestrator owns the lifecycle of a single extraction:

1. Admission through the process-wide circuit breaker.
2. Thumbnail prefetch, concurrent with the upload.
3. Upload in the configured library mode, falling back once on a
   permission-denied code.
4. Identifier polling on a widening cadence within a duration-based budget,
   including the per-item parse-status gate.
5. Settling delay and identifier re-verification.
6. The chat query, retried with per-failure-kind backoff.

Every outcome is a ``Result``; failures carry the thumbnail when one was
found.
"""

import asyncio
from collections.abc import Awaitable, Callable
import logging
import random
import time

from recipe_extract import constants
from recipe_extract.config import FrozenConfig
from recipe_extract.core.types import (
    Author,
    ExtractionTask,
    Failure,
    Platform,
    Result,
    Success,
    TaskStatus,
    VideoExtraction,
)
from recipe_extract.exceptions import (
    ExtractionFailed,
    FatalApiError,
    InvalidResponseStructure,
    NetworkError,
    RecipeExtractError,
    ServiceUnavailable,
    TransientApiError,
    UploadPermissionDenied,
)
from recipe_extract.metadata.youtube import MetadataProvider
from recipe_extract.platform import classify, extract_handle, extract_video_id
from recipe_extract.resilience import (
    BackoffPolicy,
    CircuitBreaker,
    Wait,
    get_breaker,
    retry,
)
from recipe_extract.resilience.retry import Classification
from recipe_extract.telemetry import TelemetryContext, TelemetryContextProtocol

from .prompts import build_recipe_prompt
from .responses import (
    is_no_videos_found,
    parse_chat_response,
    parse_task_videos,
    parse_upload_response,
    preferred_identifiers,
)
from .service import LibraryMode, VideoService
from .thumbnails import ThumbnailFetcher

logger = logging.getLogger(__name__)

BREAKER_NAME = "video-understanding"

T_EXTRACT = "video.extract"
T_UPLOAD = "video.upload"
T_POLL = "video.poll"
T_QUERY = "video.query"

UPLOAD_ORDER: dict[str, tuple[LibraryMode, ...]] = {
    "private": ("private", "public"),
    "auto": ("private", "public"),
    "public": ("public", "private"),
}

POLL_ERROR_POLICY = BackoffPolicy(
    step=constants.POLL_ERROR_STEP_DELAY, base=constants.POLL_ERROR_BASE_DELAY
)


class NotReady(Exception):
    """Identifiers (or their parse status) are not available yet."""

    def __init__(self, delay: float) -> None:
        super().__init__(f"not ready, next check in {delay:.1f}s")
        self.delay = delay


def poll_delay(attempt: int, rng: Callable[[], float] = random.random) -> float:
    """Cadence for the ``attempt``-th poll: 5s, then 10s after 6, 15s after 12."""
    if attempt <= constants.POLL_FAST_ATTEMPTS:
        base = constants.POLL_FAST_DELAY
    elif attempt <= constants.POLL_MEDIUM_ATTEMPTS:
        base = constants.POLL_MEDIUM_DELAY
    else:
        base = constants.POLL_SLOW_DELAY
    return base + rng() * constants.POLL_JITTER


def poll_budget(
    estimated_seconds: int | None,
    *,
    cap: int = constants.POLL_CAP,
    floor: int = constants.POLL_MIN,
    default: int = constants.DEFAULT_ESTIMATED_DURATION,
) -> int:
    """Seconds allowed for identifier polling."""
    estimate = (
        round(estimated_seconds * constants.POLL_BUDGET_FACTOR)
        if estimated_seconds is not None
        else default
    )
    return min(cap, max(floor, estimate))


def settle_delay(estimated_seconds: int | None) -> float:
    if estimated_seconds and estimated_seconds > constants.LONG_VIDEO_THRESHOLD:
        return constants.SETTLE_DELAY_LONG_VIDEO
    return constants.SETTLE_DELAY_DEFAULT


class VideoExtractionOrchestrator:
    """Extracts a recipe from a video URL through the video service.

    Args:
        service: Video-understanding service adapter.
        config: Frozen configuration (upload mode, retry and poll tuning).
        metadata: Optional metadata source for duration estimates and author
            enrichment.
        breaker: Breaker guarding the service; the process-wide one by default.
        thumbnails: Thumbnail resolver.
        telemetry: Optional telemetry context.
        sleep, clock, rng: Injectable for deterministic tests.
    """

    def __init__(
        self,
        service: VideoService,
        *,
        config: FrozenConfig,
        metadata: MetadataProvider | None = None,
        breaker: CircuitBreaker | None = None,
        thumbnails: ThumbnailFetcher | None = None,
        telemetry: TelemetryContextProtocol | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._service = service
        self._config = config
        self._metadata = metadata
        self._breaker = breaker or get_breaker(
            BREAKER_NAME,
            threshold=config.breaker_threshold,
            cooldown=config.breaker_cooldown_seconds,
        )
        self._thumbnails = thumbnails or ThumbnailFetcher()
        self._telemetry = telemetry or TelemetryContext()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng
        self._transient_policy = BackoffPolicy(
            step=config.transient_backoff_seconds, jitter=config.chat_jitter_seconds
        )
        self._no_videos_policy = BackoffPolicy(
            step=config.no_videos_backoff_seconds, jitter=config.chat_jitter_seconds
        )
        self._invalid_structure_policy = BackoffPolicy(
            step=config.invalid_structure_backoff_seconds
        )

    async def extract(self, video_url: str) -> Result[VideoExtraction, ExtractionFailed]:
        """Run the full lifecycle for ``video_url``. Never raises taxonomy errors."""
        platform = classify(video_url)
        video_id = extract_video_id(video_url, platform)

        try:
            self._breaker.guard()
        except ServiceUnavailable as e:
            logger.warning("Video extraction rejected: %s", e)
            return Failure(ExtractionFailed(str(e), cause=e, video_id=video_id))

        task = ExtractionTask(video_url=video_url, platform=platform)
        started = time.time()
        thumbnail_task = asyncio.create_task(
            self._thumbnails.fetch(video_url, platform, video_id)
        )
        recorded = False
        try:
            with self._telemetry(T_EXTRACT, platform=platform.value) as tele:
                try:
                    recipe, retries = await self._run(task, video_id, session_id=int(started))
                except RecipeExtractError as e:
                    task.fail()
                    self._breaker.on_failure()
                    recorded = True
                    thumbnail = await thumbnail_task
                    logger.error(
                        "Video extraction failed after %.1fs (%s): %s",
                        time.time() - started,
                        type(e).__name__,
                        e,
                    )
                    if thumbnail:
                        logger.warning("Returning thumbnail despite extraction failure")
                    return Failure(
                        ExtractionFailed(
                            str(e), cause=e, thumbnail=thumbnail, video_id=video_id
                        )
                    )

                self._breaker.on_success()
                recorded = True
                thumbnail = await thumbnail_task
                task.advance(TaskStatus.DONE)
                tele.gauge("video.duration_seconds", time.time() - started)
        finally:
            # Cancellation or an unexpected error leaves no outcome to record.
            if not recorded:
                task.fail()
                self._breaker.release_probe()
            if not thumbnail_task.done():
                thumbnail_task.cancel()

        author = None
        if not _has_creator(recipe):
            author = await self._enrich_author(video_url, platform, video_id)
        logger.info(
            "Video extraction completed in %.1fs with %d chat retries",
            time.time() - started,
            retries,
        )
        return Success(
            VideoExtraction(
                recipe=recipe,
                video_identifiers=task.video_identifiers,
                thumbnail=thumbnail,
                task_id=task.task_id,
                retry_count=retries,
                author=author,
            )
        )

    async def _run(
        self, task: ExtractionTask, video_id: str | None, *, session_id: int
    ) -> tuple[dict, int]:
        with self._telemetry(T_UPLOAD):
            identifiers = await self._upload(task)

        estimated = await self._estimate_duration(task.platform, video_id)
        if identifiers:
            task.advance(TaskStatus.AWAITING_IDENTIFIERS)
            task.refresh_identifiers(identifiers)
        # Immediate identifiers still have to pass the parse-status gate.
        with self._telemetry(T_POLL) as tele:
            budget = poll_budget(
                estimated,
                cap=self._config.poll_cap_seconds,
                floor=self._config.poll_min_seconds,
                default=self._config.default_estimated_duration_seconds,
            )
            logger.info(
                "Waiting for %s video processing (max %ds, est=%s)",
                task.platform.value,
                budget,
                estimated if estimated is not None else "unknown",
            )
            attempts = await self._poll(task, budget)
            tele.gauge("video.poll_attempts", attempts)

        task.advance(TaskStatus.READY)
        delay = settle_delay(estimated)
        logger.debug("Settling %.0fs before querying", delay)
        await self._sleep(delay)
        await self._reverify(task)

        task.advance(TaskStatus.QUERYING)
        with self._telemetry(T_QUERY) as tele:
            recipe, retries = await self._query(task, session_id)
            tele.count("video.retry_count", retries)
        return recipe, retries

    async def _upload(self, task: ExtractionTask) -> tuple[str, ...]:
        order = UPLOAD_ORDER.get(self._config.upload_mode, UPLOAD_ORDER["public"])
        denied: UploadPermissionDenied | None = None
        last_error: RecipeExtractError | None = None
        for mode in order:
            try:
                outcome = parse_upload_response(
                    await self._service.upload(task.video_url, mode=mode)
                )
            except UploadPermissionDenied as e:
                logger.info("Upload via %s library denied; trying next mode", mode)
                denied = e
                continue
            except (NetworkError, TransientApiError) as e:
                logger.info("Upload via %s library failed (%s); trying next mode", mode, e)
                last_error = e
                continue
            task.task_id = outcome.task_id
            logger.info("Upload accepted via %s library, task %s", mode, outcome.task_id)
            return outcome.identifiers
        if last_error is not None:
            raise last_error
        raise denied or UploadPermissionDenied("Upload not permitted in any library mode")

    async def _estimate_duration(
        self, platform: Platform, video_id: str | None
    ) -> int | None:
        if platform is not Platform.YOUTUBE or not video_id or self._metadata is None:
            return None
        try:
            metadata = await self._metadata.get_video_metadata(video_id)
        except NetworkError as e:
            logger.info("Duration estimate unavailable: %s", e)
            return None
        return metadata.duration_seconds if metadata else None

    async def _poll(self, task: ExtractionTask, budget: int) -> int:
        attempt = 0
        task_id = _require_task_id(task)

        async def lookup() -> tuple[str, ...]:
            nonlocal attempt
            attempt += 1
            logger.debug("Polling attempt %d for task %s", attempt, task_id)
            entries = parse_task_videos(await self._service.get_videos(task_id))
            if not entries:
                raise NotReady(poll_delay(attempt, self._rng))
            if task.status < TaskStatus.AWAITING_IDENTIFIERS:
                task.advance(TaskStatus.AWAITING_IDENTIFIERS)
            pending = [e for e in entries if not e.parsed]
            if pending:
                if task.status < TaskStatus.AWAITING_PARSE_STATUS:
                    task.advance(TaskStatus.AWAITING_PARSE_STATUS)
                logger.info(
                    "Waiting for parse status: %s",
                    ", ".join(f"{e.identifier}={e.status}" for e in entries),
                )
                raise NotReady(constants.PARSE_STATUS_DELAY)
            identifiers = preferred_identifiers(entries)
            if not identifiers:
                raise NotReady(poll_delay(attempt, self._rng))
            return identifiers

        def classify_poll(exc: Exception) -> Classification:
            if isinstance(exc, NotReady):
                return Wait(exc.delay)
            if isinstance(exc, NetworkError | TransientApiError):
                return POLL_ERROR_POLICY
            return None

        result = await retry(
            lookup,
            classify=classify_poll,
            max_retries=constants.POLL_MAX_CONSECUTIVE_ERRORS - 1,
            deadline=self._clock() + budget,
            clock=self._clock,
            sleep=self._sleep,
            rng=self._rng,
            label=f"Polling task {task_id}",
        )
        task.refresh_identifiers(result.value)
        logger.info(
            "Processing complete after %d polls, identifiers: %s",
            result.attempts,
            ", ".join(result.value),
        )
        return result.attempts

    async def _reverify(self, task: ExtractionTask) -> None:
        task_id = _require_task_id(task)
        try:
            entries = parse_task_videos(await self._service.get_videos(task_id))
        except RecipeExtractError as e:
            logger.warning("Identifier re-verification failed, keeping current set: %s", e)
            return
        current = preferred_identifiers(entries)
        if current and task.refresh_identifiers(current):
            logger.warning("Video identifiers changed upstream, now %s", ", ".join(current))

    def _classify_query(self, exc: Exception) -> Classification:
        if isinstance(exc, InvalidResponseStructure):
            return self._invalid_structure_policy
        if isinstance(exc, TransientApiError):
            return self._no_videos_policy if is_no_videos_found(exc) else self._transient_policy
        if isinstance(exc, NetworkError):
            return self._transient_policy
        return None

    async def _query(self, task: ExtractionTask, session_id: int) -> tuple[dict, int]:
        prompt = build_recipe_prompt()

        async def ask() -> dict:
            body = await self._service.chat(
                task.video_identifiers, prompt, session_id=session_id
            )
            return parse_chat_response(body)

        result = await retry(
            ask,
            classify=self._classify_query,
            max_retries=self._config.chat_max_retries,
            sleep=self._sleep,
            rng=self._rng,
            label="Recipe query",
        )
        if result.retries:
            logger.info("Recipe query succeeded after %d retries", result.retries)
        return result.value, result.retries

    async def _enrich_author(
        self, video_url: str, platform: Platform, video_id: str | None
    ) -> Author | None:
        if platform is Platform.YOUTUBE:
            if not video_id or self._metadata is None:
                return None
            try:
                return await self._metadata.get_author(video_id)
            except NetworkError as e:
                logger.info("Author lookup failed: %s", e)
                return None
        handle = extract_handle(video_url, platform)
        return Author(name=handle, handle=f"@{handle}") if handle else None


def _has_creator(recipe: dict) -> bool:
    creator = recipe.get("creator")
    return isinstance(creator, dict) and bool(creator.get("name") or creator.get("handle"))


def _require_task_id(task: ExtractionTask) -> str:
    if task.task_id is None:
        raise FatalApiError("Upload did not assign a task id")
    return task.task_id
