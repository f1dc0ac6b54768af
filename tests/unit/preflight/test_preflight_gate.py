import pytest

from recipe_extract.core.types import Platform
from recipe_extract.exceptions import NetworkError
from recipe_extract.metadata import VideoMetadata
from recipe_extract.preflight import PreflightGate, check_duration, estimate_cost
from recipe_extract.preflight.messages import TOO_LONG, TOO_SHORT, UNCLEAR

pytestmark = pytest.mark.unit

YOUTUBE_URL = "https://www.youtube.com/watch?v=abc123XYZ"


class _FakeMetadata:
    def __init__(self, metadata: VideoMetadata | None = None, *, error=None):
        self.metadata = metadata
        self.error = error
        self.requested: list[str] = []

    async def get_video_metadata(self, video_id):
        self.requested.append(video_id)
        if self.error is not None:
            raise self.error
        return self.metadata

    async def get_author(self, video_id):  # noqa: ARG002
        return None


def _meta(
    *,
    duration: int = 400,
    title: str = "Easy Banana Bread",
    description: str = "2 cups flour, bake at 350°F for 20 minutes",
    category: str = "26",
) -> VideoMetadata:
    return VideoMetadata(
        video_id="abc123XYZ",
        title=title,
        description=description,
        duration_seconds=duration,
        category_id=category,
    )


@pytest.mark.parametrize(
    ("seconds", "passes"),
    [(0, False), (9, False), (10, True), (400, True), (1200, True), (1201, False), (5000, False)],
)
def test_duration_hard_gate_ignores_other_scores(seconds, passes):
    result = PreflightGate().evaluate(_meta(duration=seconds))

    assert result.checks.duration.passed is passes
    if not passes:
        assert result.passed is False
        assert result.borderline is False
        assert result.reasons[0].startswith("Duration check failed")


def test_long_video_is_rejected_without_borderline():
    result = PreflightGate().evaluate(_meta(duration=1500))

    assert result.passed is False
    assert result.checks.duration.passed is False
    assert result.borderline is False
    assert result.allow_override is False


def test_hard_gate_keeps_stage_one_score():
    result = PreflightGate().evaluate(_meta(duration=1500))

    assert result.passed is False
    assert result.score >= 3
    assert result.score == PreflightGate().evaluate(_meta()).score


def test_cooking_video_passes_with_high_score():
    result = PreflightGate().evaluate(_meta())

    assert result.passed is True
    assert result.score >= 3
    assert "quantities" in result.checks.patterns.evidence
    assert result.checks.category.score == 1.0
    assert result.cost_estimate is not None
    assert result.cost_estimate.tier == "moderate"


def test_anti_signals_fail_without_borderline():
    result = PreflightGate().evaluate(
        _meta(title="My gameplay walkthrough", description="", category="20")
    )

    assert result.passed is False
    assert result.borderline is False
    assert "gameplay" in result.checks.anti_signals.evidence
    assert result.score < 0


def test_anti_signals_match_whole_words_only():
    result = PreflightGate().evaluate(
        _meta(title="Artisan sourdough", description="", category="")
    )

    assert "art" not in result.checks.anti_signals.evidence


def test_borderline_escalates_to_tiny_classifier_and_passes():
    result = PreflightGate().evaluate(
        _meta(duration=60, title="cook tablespoon teaspoon", description="", category="")
    )

    assert result.passed is True
    assert result.tiny_classifier_verdict is not None
    assert result.tiny_classifier_verdict.is_recipe is True
    assert result.score == 1
    assert result.reasons == ("Passed with tiny classifier",)
    assert result.cost_estimate.tier == "moderate"
    assert result.cost_estimate.estimated_seconds == 90


def test_borderline_that_fails_classifier_keeps_override():
    result = PreflightGate().evaluate(
        _meta(duration=60, title="Sunday", description="", category="")
    )

    assert result.passed is False
    assert result.borderline is False
    assert result.allow_override is True
    assert result.score == -1
    assert result.reasons == ("Failed all checks",)
    assert result.cost_estimate is None


@pytest.mark.asyncio
async def test_check_fetches_metadata_and_attaches_messages():
    metadata = _FakeMetadata(_meta(duration=5))
    result = await PreflightGate(metadata).check(YOUTUBE_URL)

    assert metadata.requested == ["abc123XYZ"]
    assert result.passed is False
    assert result.user_message == TOO_SHORT

    result = await PreflightGate(_FakeMetadata(_meta(duration=2000))).check(YOUTUBE_URL)
    assert result.user_message == TOO_LONG


@pytest.mark.asyncio
async def test_unclear_content_message():
    gate = PreflightGate(_FakeMetadata(_meta(title="Sunday", description="", category="")))
    result = await gate.check(YOUTUBE_URL)

    assert result.user_message == UNCLEAR


@pytest.mark.asyncio
async def test_rejections_without_metadata_use_sentinel_score():
    gate = PreflightGate(_FakeMetadata(error=NetworkError("boom")))

    result = await gate.check(YOUTUBE_URL)
    assert result.score == -100
    assert result.passed is False
    assert result.allow_override is True
    assert result.user_message is None

    no_client = await PreflightGate().check(YOUTUBE_URL)
    assert no_client.allow_override is True

    invalid = await gate.check("https://www.youtube.com/channel/UC123")
    assert invalid.reasons == ("Invalid YouTube URL",)
    assert invalid.allow_override is False


@pytest.mark.asyncio
async def test_web_urls_are_not_admitted():
    result = await PreflightGate().check("https://example.com/recipes/pancakes")

    assert result.passed is False
    assert result.platform is Platform.WEB
    assert result.reasons == ("Unsupported platform",)


@pytest.mark.asyncio
async def test_tiktok_recipe_handle_passes_reduced_check():
    result = await PreflightGate().check("https://www.tiktok.com/@chef.anna/video/123")

    assert result.passed is True
    assert "recipe_username" in result.checks.patterns.evidence
    assert result.cost_estimate.tier == "low"
    assert result.allow_override is True


@pytest.mark.asyncio
async def test_instagram_neutral_url_leans_towards_admitting():
    result = await PreflightGate().check("https://www.instagram.com/reel/Cx1/")

    assert result.passed is True
    assert result.score == 0
    assert result.cost_estimate.tier == "moderate"
    assert result.cost_estimate.estimated_seconds == 90


@pytest.mark.asyncio
async def test_tiktok_anti_signals_in_url_reject():
    result = await PreflightGate().check(
        "https://www.tiktok.com/@bob/video/1?q=funny%20prank"
    )

    assert result.passed is False
    assert result.borderline is False
    assert result.cost_estimate.tier == "high"
    assert result.user_message is not None


def test_check_duration_tiers():
    assert check_duration(100)[1] == "low"
    assert check_duration(400)[1] == "moderate"
    assert check_duration(700)[1] == "high"
    assert check_duration(1300)[1] == "very_high"


def test_low_confidence_bumps_cost_tier():
    confident = estimate_cost("low", 5.0)
    unsure = estimate_cost("low", 1.0)

    assert (confident.tier, confident.estimated_seconds) == ("low", 60)
    assert (unsure.tier, unsure.estimated_seconds) == ("moderate", 90)
    assert unsure.warning is not None
    assert estimate_cost("very_high", 0).tier == "very_high"
