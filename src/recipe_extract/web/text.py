"""Text cleanup and lexical cues shared by the web extraction layers."""

import html
import re
from urllib.parse import urljoin, urlparse

_TAG = re.compile(r"<[^>]*>")
_SPACES = re.compile(r"\s{2,}")
_DIRECTIONS_PREFIX = re.compile(r"^directions[\s:–-]*", re.IGNORECASE)
_STUDIO_CREDITS = re.compile(r"Dotdash Meredith Food Studios", re.IGNORECASE)

COOKING_VERBS = re.compile(
    r"\b(add|mix|stir|heat|cook|bake|fry|boil|simmer|season|chop|slice|dice|"
    r"mince|pour|whisk|blend|combine|place|put|remove|serve|garnish|marinate|"
    r"preheat|transfer|roast|grill|sauté|saute|cover|uncover|bring|reduce|let|"
    r"allow|taste|adjust|discard|ladle|sprinkle|knead|fold|drain|spread|beat)\b",
    re.IGNORECASE,
)
MEASUREMENT_UNITS = re.compile(
    r"\b(tsp|tbsp|cups?|g|kg|ml|l|pounds?|lbs?|oz|cloves?|bunch|pinch|slices?|pieces?)\b",
    re.IGNORECASE,
)
COMMON_INGREDIENTS = re.compile(
    r"\b(garlic|onion|salt|pepper|oil|butter|cheese|flour|sugar|egg|milk|cream)\b",
    re.IGNORECASE,
)
_DIGITS = re.compile(r"\b\d+\b")
TIP_CUES = re.compile(
    r"tip|trick|avoid|don't|do not|because|so that|instead|secret|hack|note|hint",
    re.IGNORECASE,
)

GENERIC_AUTHORS = frozenset({"web source", "admin", "author", "staff", "editor"})
_BYLINE = re.compile(
    r"\b(?:Recipe developed by|Recipe by|By)\s+"
    r"([A-Z][\w.'’-]*(?:\s+(?:[A-Z][\w.'’-]*|de|van|von|la)){0,3})"
)
_BYLINE_PREFIX = re.compile(r"^(?:recipe by|by|author)\s+", re.IGNORECASE)


def normalize_text(value: str) -> str:
    """Strip markup and entities and collapse whitespace."""
    text = _TAG.sub("", value.replace("\r", ""))
    text = html.unescape(text).replace("\xa0", " ")
    return _SPACES.sub(" ", text).strip()


def clean_step_text(value: str) -> str:
    text = _DIRECTIONS_PREFIX.sub("", normalize_text(value))
    text = _STUDIO_CREDITS.sub("", text)
    return _SPACES.sub(" ", text).strip()


def has_cooking_verb(text: str) -> bool:
    return COOKING_VERBS.search(text) is not None


def looks_like_ingredient(text: str) -> bool:
    return bool(
        MEASUREMENT_UNITS.search(text)
        or _DIGITS.search(text)
        or COMMON_INGREDIENTS.search(text)
    )


def looks_like_step(text: str) -> bool:
    lowered = text.lower()
    return has_cooking_verb(text) or any(
        cue in lowered for cue in ("minutes", "until", "for")
    )


def resolve_image_url(src: str | None, base_url: str) -> str | None:
    """Absolute URL for an image ``src`` found on ``base_url``."""
    if not src:
        return None
    src = src.strip()
    if src.startswith("data:"):
        return None
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith(("http://", "https://")):
        return src
    if not urlparse(base_url).netloc:
        return None
    return urljoin(base_url, src)


def clean_author(value: str) -> str | None:
    text = _BYLINE_PREFIX.sub("", normalize_text(value)).strip()
    return text if 2 < len(text) < 100 else None


def is_generic_author(name: str | None) -> bool:
    return not name or name.strip().lower() in GENERIC_AUTHORS


def find_byline(texts: list[str]) -> str | None:
    """First ``By X`` / ``Recipe by X`` / ``Recipe developed by X`` name in ``texts``."""
    for text in texts:
        if match := _BYLINE.search(text):
            return match.group(1).strip()
    return None


def dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))
