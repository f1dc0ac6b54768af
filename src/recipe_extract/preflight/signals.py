"""Lexical and metadata signals scored by the preflight gate.

Recipe patterns are regular expressions in three weighted tiers; anti-signals
are terms in three negative tiers matched on word boundaries. Both are
supplemented by contextual rules that look for co-occurring words.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cache
import re

from recipe_extract import constants
from recipe_extract.core.types import CheckResult, TinyClassifierVerdict


@dataclass(frozen=True, slots=True)
class PatternTier:
    weight: float
    patterns: tuple[tuple[str, re.Pattern[str]], ...]


@dataclass(frozen=True, slots=True)
class TermTier:
    weight: float
    terms: tuple[str, ...]


def _rx(pattern: str, flags: int = re.IGNORECASE) -> re.Pattern[str]:
    return re.compile(pattern, flags)


RECIPE_PATTERN_TIERS: tuple[PatternTier, ...] = (
    PatternTier(
        2.0,
        (
            ("quantities", _rx(r"\b\d+(\.\d+)?\s?(cup|cups|tbsp|tsp|g|grams?|kg|ml|l|oz|lb|pounds?)\b")),
            ("temperature", _rx(r"(°F|°C|\bpreheat(ed)?\b|\bdegrees?\b)")),
            ("cooking_time", _rx(r"\b\d+\s?(min|mins|minutes?|hr|hour|hours?)\b")),
            ("recipe_structure", _rx(r"(ingredients?|recipe|instructions?|steps?|directions?)")),
            ("cooking_methods", _rx(r"(bake|roast|fry|sauté|boil|simmer|grill|steam|blend|mix|stir|whisk)")),
            ("kitchen_equipment", _rx(r"(oven|stove|pan|pot|bowl|knife|cutting board|mixer|blender)")),
        ),
    ),
    PatternTier(
        1.0,
        (
            ("step_markers", _rx(r"^\s*(\d+\.|[-*•])\s+", re.MULTILINE)),
            ("preparation", _rx(r"(chop|dice|slice|mince|grate|peel|wash|drain|season)")),
            ("food_categories", _rx(r"(appetizer|main course|dessert|side dish|soup|salad|pasta|bread)")),
            ("serving_info", _rx(r"(serves?|servings?|portions?|people|guests?)")),
            ("difficulty", _rx(r"(easy|medium|hard|difficult|beginner|advanced|simple|quick)")),
        ),
    ),
    PatternTier(
        0.5,
        (
            ("food_descriptors", _rx(r"(delicious|tasty|flavorful|yummy|amazing|perfect|best)")),
            ("meal_times", _rx(r"(breakfast|lunch|dinner|snack|brunch|appetizer)")),
            ("cuisine_types", _rx(r"(italian|mexican|chinese|indian|french|american|asian|mediterranean)")),
        ),
    ),
)

# (signal, words that must all appear, words of which at least one must appear)
CONTEXTUAL_RECIPE_RULES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("recipe_title_pattern", ("recipe",), ("for", "how to")),
    ("ingredient_list_pattern", ("ingredients",), ("list", "needed")),
    ("step_by_step_pattern", ("step",), ("by", "instructions")),
    ("cooking_tutorial_pattern", ("how to",), ("cook", "make", "prepare")),
    ("recipe_sharing_pattern", ("share",), ("recipe", "favorite")),
    ("food_review_pattern", ("taste",), ("recipe", "dish")),
)

ANTI_SIGNAL_TIERS: tuple[TermTier, ...] = (
    TermTier(
        -3.0,
        (
            "mukbang", "asmr eating", "eating challenge", "food challenge",
            "vlog", "daily vlog", "lifestyle vlog", "travel vlog",
            "reaction", "reaction video", "reacting to", "first time watching",
            "prank", "prank video", "prank call", "social experiment",
            "trailer", "movie trailer", "game trailer", "teaser",
            "highlights", "best moments", "funny moments", "compilation",
            "gaming", "gameplay", "let's play", "walkthrough", "speedrun",
            "music", "song", "music video", "cover song", "remix",
            "dance", "dancing", "choreography", "dance challenge",
            "fashion", "outfit", "style", "clothing haul", "fashion week",
            "beauty", "makeup", "skincare", "beauty routine", "tutorial",
            "fitness", "workout", "gym", "exercise", "training",
            "travel", "vacation", "trip", "adventure", "exploring",
            "art", "drawing", "painting", "craft", "diy art",
            "comedy", "funny", "joke", "meme", "comedy skit",
            "tech", "review", "unboxing", "tech news", "gadget",
            "news", "breaking news", "current events", "politics",
            "sports", "football", "basketball", "soccer", "tennis",
            "education", "how to", "learn", "course",
            "entertainment", "show", "series", "episode", "season",
        ),
    ),
    TermTier(
        -2.0,
        (
            "challenge", "trend", "viral", "popular",
            "review", "rating", "opinion", "thoughts",
            "unboxing", "haul", "shopping", "buying",
            "lifestyle", "day in my life", "routine",
            "storytime", "story time", "personal story",
            "q&a", "questions", "ask me anything",
            "collab", "collaboration", "with",
            "live", "streaming", "live stream",
            "podcast", "interview", "conversation",
            "documentary", "investigation", "expose",
            "parody", "satire", "mockumentary",
            "animation", "cartoon", "animated",
            "gaming setup", "room tour", "house tour",
            "pet", "animal", "cat", "dog", "pets",
            "family", "kids", "children", "baby",
            "relationship", "dating", "love", "romance",
            "motivation", "inspiration", "mindset",
            "business", "entrepreneur", "startup",
            "finance", "money", "investment", "budget",
        ),
    ),
    TermTier(
        -1.0,
        (
            "subscribe", "follow", "like", "share",
            "comment", "turn on notifications",
            "sponsored", "ad", "advertisement",
            "partnership", "brand deal",
            "giveaway", "contest", "win",
            "merch", "merchandise", "store",
            "patreon", "support", "donate",
            "discord", "community", "server",
            "social media", "instagram", "tiktok",
            "youtube", "platform", "creator",
            "influencer", "content creator",
            "viral video", "trending",
            "new", "latest", "recent", "update",
            "announcement", "information",
        ),
    ),
)

RECIPE_HANDLE_TERMS = (
    "cook", "chef", "bake", "recipe", "food", "kitchen", "cooking", "baking",
    "meal", "dinner", "lunch", "breakfast", "snack", "dessert",
)
RECIPE_URL_TERMS = ("recipe", "cook", "bake", "food", "kitchen", "meal", "cooking")
RECIPE_HASHTAGS = ("#recipe", "#cooking", "#food", "#bake", "#cook", "#baking", "#chef")

TINY_CLASSIFIER_RECIPE_TERMS = (
    "ingredients", "recipe", "cook", "bake", "mix", "stir", "cup", "tablespoon",
    "teaspoon", "preheat", "oven", "pan", "bowl", "minutes", "degrees",
)
TINY_CLASSIFIER_ANTI_TERMS = (
    "mukbang", "vlog", "reaction", "prank", "trailer", "highlights", "asmr",
)


@cache
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")


def find_terms(text: str, terms: Iterable[str]) -> list[str]:
    """Return the terms occurring in lower-cased ``text`` on word boundaries."""
    return [t for t in dict.fromkeys(terms) if _term_pattern(t).search(text)]


def _contextual_recipe_patterns(text: str) -> list[str]:
    return [
        name
        for name, required, any_of in CONTEXTUAL_RECIPE_RULES
        if all(w in text for w in required) and any(w in text for w in any_of)
    ]


def _contextual_anti_signals(text: str) -> list[str]:
    def has(*words: str) -> bool:
        return any(w in text for w in words)

    signals = []
    if "game" in text and has("play", "stream"):
        signals.append("gaming_content")
    if has("song", "music") and has("cover", "remix", "lyrics"):
        signals.append("music_content")
    if has("outfit", "style") and has("haul", "try on"):
        signals.append("fashion_content")
    if "day" in text and has("life", "routine"):
        signals.append("lifestyle_vlog")
    if "react" in text and has("first time", "watching"):
        signals.append("reaction_content")
    if "challenge" in text and not has("cooking", "recipe"):
        signals.append("challenge_content")
    if "how to" in text and not has("cook", "bake", "recipe", "food"):
        signals.append("non_cooking_tutorial")
    return signals


def score_patterns(text: str) -> CheckResult:
    """Weighted recipe-pattern hits, capped; ``passed`` means at least one hit."""
    hits: list[str] = []
    score = 0.0
    for tier in RECIPE_PATTERN_TIERS:
        for name, pattern in tier.patterns:
            if pattern.search(text):
                hits.append(name)
                score += tier.weight
    contextual = _contextual_recipe_patterns(text.lower())
    hits.extend(contextual)
    score += len(contextual) * constants.CONTEXTUAL_PATTERN_WEIGHT
    return CheckResult(
        score=min(score, constants.PATTERN_SCORE_CAP),
        passed=bool(hits),
        evidence=tuple(hits),
    )


def score_anti_signals(text: str, *, contextual: bool = True) -> CheckResult:
    """Negative score for non-recipe vocabulary; unbounded below."""
    lowered = text.lower()
    found: list[str] = []
    score = 0.0
    for tier in ANTI_SIGNAL_TIERS:
        terms = find_terms(lowered, tier.terms)
        found.extend(terms)
        score += len(terms) * tier.weight
    if contextual:
        context = _contextual_anti_signals(lowered)
        found.extend(context)
        score += len(context) * constants.CONTEXTUAL_ANTI_SIGNAL_WEIGHT
    return CheckResult(score=score, passed=score >= 0, evidence=tuple(found))


def score_category(category_id: str) -> CheckResult:
    if category_id in constants.FOOD_CATEGORY_IDS:
        return CheckResult(score=1.0, passed=True, evidence=(category_id,))
    if category_id in constants.NEGATIVE_CATEGORY_IDS:
        return CheckResult(score=-1.0, passed=False, evidence=(category_id,))
    return CheckResult(score=0.0, evidence=(category_id,) if category_id else ())


def score_caption(has_caption: bool) -> CheckResult:
    return CheckResult(score=1.0 if has_caption else 0.0, passed=has_caption)


def score_topics(topic_categories: Iterable[str]) -> CheckResult:
    food = tuple(t for t in topic_categories if "/Food" in t or "/Cooking" in t)
    return CheckResult(score=2.0 * len(food), passed=bool(food), evidence=food)


def score_handle_and_url(url_text: str, handle: str | None) -> CheckResult:
    """Recipe vocabulary in a creator handle (max 2) and URL path (max 1)."""
    evidence: list[str] = []
    score = 0.0
    if handle:
        handle_hits = [t for t in RECIPE_HANDLE_TERMS if t in handle.lower()]
        if handle_hits:
            evidence.append("recipe_username")
            score += min(len(handle_hits), 2)
    url_hits = [t for t in RECIPE_URL_TERMS if t in url_text.lower()]
    if url_hits:
        evidence.append("recipe_url")
        score += min(len(url_hits), 1)
    hashtags = [t for t in RECIPE_HASHTAGS if t in url_text.lower()]
    if hashtags:
        evidence.extend(hashtags)
        score += len(hashtags)
    return CheckResult(score=score, passed=score > 0, evidence=tuple(evidence))


def tiny_classifier(content: str) -> TinyClassifierVerdict:
    """Rule-based second opinion used only for borderline verdicts."""
    text = content.lower()
    positives = [t for t in TINY_CLASSIFIER_RECIPE_TERMS if t in text]
    negatives = [t for t in TINY_CLASSIFIER_ANTI_TERMS if t in text]
    is_recipe = len(positives) >= constants.TINY_CLASSIFIER_MIN_TERMS and not negatives
    return TinyClassifierVerdict(
        is_recipe=is_recipe,
        confidence=(
            constants.TINY_CLASSIFIER_RECIPE_CONFIDENCE
            if is_recipe
            else constants.TINY_CLASSIFIER_OTHER_CONFIDENCE
        ),
        reason=f"{len(positives)} recipe terms, {len(negatives)} anti terms",
    )
