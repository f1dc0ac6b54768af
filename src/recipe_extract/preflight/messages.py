"""End-user explanations for rejected preflight verdicts."""

from recipe_extract.core.types import PreflightChecks, UserMessage

_FIND_RECIPES = (
    "Try searching for cooking or recipe videos",
    "Look for food channels on YouTube",
    "Check cooking websites for recipe content",
)

TOO_LONG = UserMessage(
    title="Video Too Long",
    description=(
        "This video is longer than 20 minutes, which is beyond our processing "
        "limit for recipe extraction."
    ),
    suggestions=(
        "Try a shorter cooking video (under 20 minutes)",
        "Look for recipe tutorials or cooking demos",
        "Check if there's a shorter version of this video",
    ),
)

TOO_SHORT = UserMessage(
    title="Video Too Short",
    description="This video is too short to contain a complete recipe.",
    suggestions=(
        "Try a longer cooking video (at least 30 seconds)",
        "Look for full recipe tutorials",
        "Check cooking channels for complete recipes",
    ),
)

UNCLEAR = UserMessage(
    title="Unclear Recipe Content",
    description=(
        "We couldn't detect clear recipe indicators in this video. It might not "
        "be a cooking video."
    ),
    suggestions=(
        "Try a video with clear cooking instructions",
        "Look for videos with ingredient lists or cooking steps",
        "Check if the video title mentions cooking or recipes",
    ),
    can_retry=True,
)

BORDERLINE = UserMessage(
    title="Uncertain Recipe Content",
    description=(
        "This video might contain a recipe, but we're not completely sure. "
        "Processing could be expensive."
    ),
    suggestions=(
        "Try a video with clearer recipe indicators",
        "Look for videos with cooking instructions in the title",
        "Check cooking channels for better recipe content",
    ),
    can_retry=True,
)

NOT_A_RECIPE = UserMessage(
    title="Not a Recipe Video",
    description="This video doesn't appear to contain cooking or recipe content.",
    suggestions=_FIND_RECIPES,
)

# (markers in the dominant anti-signal, title, kind of content)
_CONTENT_KINDS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("gaming", "gameplay"), "Gaming Content Detected", "a gaming video"),
    (("music", "song"), "Music Content Detected", "a music video"),
    (("dance", "dancing"), "Dance Content Detected", "a dance video"),
    (
        ("fashion", "beauty", "makeup"),
        "Fashion/Beauty Content Detected",
        "a fashion or beauty video",
    ),
    (("vlog", "lifestyle"), "Lifestyle Vlog Detected", "a lifestyle vlog"),
    (("reaction", "reacting"), "Reaction Video Detected", "a reaction video"),
)


def _content_message(primary_signal: str) -> UserMessage:
    for markers, title, kind in _CONTENT_KINDS:
        if any(m in primary_signal for m in markers):
            return UserMessage(
                title=title,
                description=f"This appears to be {kind}, not a cooking recipe.",
                suggestions=_FIND_RECIPES,
            )
    return NOT_A_RECIPE


def build_user_message(
    checks: PreflightChecks, *, score: float, borderline: bool
) -> UserMessage:
    """Pick the most specific explanation for a failed verdict."""
    duration = checks.duration
    if duration.passed is False:
        reason = " ".join(duration.evidence)
        if "Too long" in reason:
            return TOO_LONG
        if "Too short" in reason:
            return TOO_SHORT
    if checks.anti_signals.evidence:
        return _content_message(checks.anti_signals.evidence[0])
    if score < 1 and not checks.patterns.evidence:
        return UNCLEAR
    if borderline:
        return BORDERLINE
    return NOT_A_RECIPE
