"""Admission gate deciding whether a URL is worth a deep extraction.

Stage 1 always runs: one metadata call, a hard duration gate and a weighted
score. Stage 2, a cheap rule-based classifier, runs only for borderline
verdicts and overrides stage 1. Platforms without a metadata API get a
reduced lexical check on the URL that leans towards admitting.
"""

from dataclasses import replace
import logging
from urllib.parse import unquote, urlparse

from recipe_extract import constants
from recipe_extract.core.types import (
    COST_TIERS,
    CheckResult,
    CostEstimate,
    CostTier,
    Platform,
    PreflightChecks,
    PreflightResult,
)
from recipe_extract.exceptions import NetworkError
from recipe_extract.metadata.youtube import MetadataProvider, VideoMetadata
from recipe_extract.platform import classify, extract_handle, extract_video_id
from recipe_extract.telemetry import TelemetryContext, TelemetryContextProtocol

from .messages import build_user_message
from .signals import (
    score_anti_signals,
    score_caption,
    score_category,
    score_handle_and_url,
    score_patterns,
    score_topics,
    tiny_classifier,
)

logger = logging.getLogger(__name__)

T_PREFLIGHT = "preflight.check"

_TIER_WARNINGS: dict[str, str] = {
    "very_high": "Very long video - high processing cost expected",
    "high": "Long video - moderate to high processing cost",
}
LOW_CONFIDENCE_WARNING = "Low recipe confidence - processing may be expensive"


def check_duration(seconds: int) -> tuple[CheckResult, CostTier]:
    """Hard gate on ``[MIN_VIDEO_DURATION, MAX_VIDEO_DURATION]`` plus a cost tier."""
    if seconds < constants.MIN_VIDEO_DURATION:
        reason, passed, tier = f"Too short (< {constants.MIN_VIDEO_DURATION}s)", False, "low"
    elif seconds > constants.MAX_VIDEO_DURATION:
        minutes = round(constants.MAX_VIDEO_DURATION / 60)
        reason, passed, tier = f"Too long (> {minutes}min)", False, "very_high"
    elif seconds > constants.WARNING_DURATION:
        reason = f"Very long video - high processing cost ({round(seconds / 60)}min)"
        passed, tier = True, "high"
    elif seconds > constants.MODERATE_DURATION:
        reason = f"Long video - moderate processing cost ({round(seconds / 60)}min)"
        passed, tier = True, "moderate"
    else:
        reason, passed, tier = "Duration OK", True, "low"
    return CheckResult(score=0.0, passed=passed, evidence=(reason,)), tier


def estimate_cost(duration_tier: CostTier, score: float) -> CostEstimate:
    """Cost tier from duration, bumped one tier when recipe confidence is low."""
    tier = duration_tier
    seconds = constants.COST_TIER_SECONDS[tier]
    warning = _TIER_WARNINGS.get(tier)
    if score < constants.LOW_CONFIDENCE_SCORE:
        tier = COST_TIERS[min(COST_TIERS.index(tier) + 1, len(COST_TIERS) - 1)]
        seconds += constants.LOW_CONFIDENCE_EXTRA_SECONDS
        warning = warning or LOW_CONFIDENCE_WARNING
    return CostEstimate(tier=tier, estimated_seconds=seconds, warning=warning)


def _rejected(
    reason: str, platform: Platform, *, allow_override: bool
) -> PreflightResult:
    return PreflightResult(
        passed=False,
        score=constants.REJECTED_SCORE,
        borderline=False,
        allow_override=allow_override,
        platform=platform,
        reasons=(reason,),
    )


class PreflightGate:
    """Cheap admission check run before any expensive extraction.

    Args:
        metadata: Source of YouTube metadata; without one, YouTube URLs are
            rejected with ``allow_override=True``.
        telemetry: Optional telemetry context.
    """

    def __init__(
        self,
        metadata: MetadataProvider | None = None,
        *,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self._metadata = metadata
        self._telemetry = telemetry or TelemetryContext()

    async def check(self, url: str) -> PreflightResult:
        """Return the admission verdict for ``url``."""
        platform = classify(url)
        with self._telemetry(T_PREFLIGHT, platform=platform.value) as tele:
            if platform is Platform.WEB:
                result = _rejected("Unsupported platform", platform, allow_override=False)
            elif platform is Platform.YOUTUBE:
                result = await self._check_youtube(url)
            else:
                result = self._check_reduced(url, platform)

            if not result.passed and result.score != constants.REJECTED_SCORE:
                result = _with_message(result)
            tele.gauge("preflight.score", result.score)
        logger.info(
            "Preflight %s for %s: score=%.1f borderline=%s (%s)",
            "passed" if result.passed else "failed",
            platform.value,
            result.score,
            result.borderline,
            "; ".join(result.reasons),
        )
        return result

    async def _check_youtube(self, url: str) -> PreflightResult:
        platform = Platform.YOUTUBE
        video_id = extract_video_id(url, platform)
        if not video_id:
            return _rejected("Invalid YouTube URL", platform, allow_override=False)
        if self._metadata is None:
            return _rejected("YouTube API not configured", platform, allow_override=True)
        try:
            metadata = await self._metadata.get_video_metadata(video_id)
        except NetworkError as e:
            logger.warning("Preflight metadata fetch failed: %s", e)
            metadata = None
        if metadata is None:
            return _rejected(
                "Failed to fetch video metadata", platform, allow_override=True
            )
        return self.evaluate(metadata)

    def evaluate(self, metadata: VideoMetadata) -> PreflightResult:
        """Score already-fetched metadata (stage 1, then stage 2 if borderline)."""
        duration_seconds = metadata.duration_seconds or 0
        duration, duration_tier = check_duration(duration_seconds)
        text = f"{metadata.title}\n{metadata.description}"
        checks = PreflightChecks(
            duration=duration,
            category=score_category(metadata.category_id),
            caption=score_caption(metadata.has_caption),
            topic=score_topics(metadata.topic_categories),
            patterns=score_patterns(text),
            anti_signals=score_anti_signals(text),
        )

        score = (
            checks.category.score
            + checks.caption.score
            + checks.topic.score
            + checks.patterns.score
            + checks.anti_signals.score
        )

        if not duration.passed:
            return PreflightResult(
                passed=False,
                score=score,
                borderline=False,
                allow_override=False,
                checks=checks,
                platform=Platform.YOUTUBE,
                duration_seconds=duration_seconds,
                reasons=(f"Duration check failed: {duration.evidence[0]}",),
            )

        has_patterns = bool(checks.patterns.evidence)
        passed = has_patterns or (checks.anti_signals.score >= 0 and score >= 1)
        borderline = not passed and score >= 0
        base = {
            "checks": checks,
            "platform": Platform.YOUTUBE,
            "duration_seconds": duration_seconds,
            "allow_override": borderline,
        }

        if passed:
            return PreflightResult(
                passed=True,
                score=score,
                borderline=False,
                reasons=("Passed all preflight checks",),
                cost_estimate=estimate_cost(duration_tier, score),
                **base,
            )
        if not borderline:
            return PreflightResult(
                passed=False,
                score=score,
                borderline=False,
                reasons=("Failed preflight checks",),
                **base,
            )

        content = (
            f"{metadata.title} "
            f"{metadata.description[: constants.TINY_CLASSIFIER_DESCRIPTION_CHARS]}"
        )
        verdict = tiny_classifier(content)
        passed = (
            verdict.is_recipe
            and verdict.confidence >= constants.TINY_CLASSIFIER_PASS_CONFIDENCE
        )
        score += 1 if passed else -1
        return PreflightResult(
            passed=passed,
            score=score,
            borderline=False,
            tiny_classifier_verdict=verdict,
            reasons=("Passed with tiny classifier" if passed else "Failed all checks",),
            cost_estimate=estimate_cost(duration_tier, score) if passed else None,
            **base,
        )

    def _check_reduced(self, url: str, platform: Platform) -> PreflightResult:
        """Lexical check for platforms without a metadata API."""
        handle = extract_handle(url, platform)
        parts = urlparse(url)
        url_text = unquote(f"{parts.path} {parts.query} {parts.fragment}").replace("/", " ")
        patterns = score_handle_and_url(url_text, handle)
        anti_signals = score_anti_signals(f"{url_text} {handle or ''}", contextual=False)
        score = patterns.score + anti_signals.score

        passed = score >= 0
        borderline = -1 <= score < 0
        label = platform.value.capitalize()
        if passed:
            reason = f"{label} video appears to be a recipe"
        elif borderline:
            reason = f"{label} video may contain a recipe"
        else:
            reason = f"{label} video unlikely to be a recipe"

        if score < 0:
            cost = CostEstimate(
                tier="high",
                estimated_seconds=constants.COST_TIER_SECONDS["high"],
                warning=f"{label} video has low recipe confidence - processing may be expensive",
            )
        elif score < 1:
            cost = CostEstimate(
                tier="moderate", estimated_seconds=constants.COST_TIER_SECONDS["moderate"]
            )
        else:
            cost = CostEstimate(tier="low", estimated_seconds=constants.COST_TIER_SECONDS["low"])

        return PreflightResult(
            passed=passed,
            score=score,
            borderline=borderline,
            allow_override=True,
            platform=platform,
            checks=PreflightChecks(
                duration=CheckResult(
                    passed=True,
                    evidence=("Duration check not available for this platform",),
                ),
                category=CheckResult(evidence=(platform.value,)),
                patterns=patterns,
                anti_signals=anti_signals,
            ),
            reasons=(reason,),
            cost_estimate=cost,
        )


def _with_message(result: PreflightResult) -> PreflightResult:
    return replace(
        result,
        user_message=build_user_message(
            result.checks, score=result.score, borderline=result.borderline
        ),
    )
