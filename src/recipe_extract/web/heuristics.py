"""Heuristic DOM scan for pages without usable structured data.

Candidate selectors are tried in order; the first one yielding enough
ingredient-like (or instruction-like) elements wins. Parsing is fully
deterministic for a given document.
"""

from collections.abc import Sequence
import logging
import re

from bs4 import BeautifulSoup, Tag

from recipe_extract import constants

from .draft import DraftStep, RecipeDraft
from .text import (
    TIP_CUES,
    clean_author,
    clean_step_text,
    dedupe,
    has_cooking_verb,
    looks_like_ingredient,
    looks_like_step,
    normalize_text,
    resolve_image_url,
)

logger = logging.getLogger(__name__)

NOISE_SELECTOR = "script, style, nav, header, footer, .ad, .advertisement, .ads"

TITLE_SELECTORS = ("h1", '[class*="title"]', '[class*="recipe-title"]', '[id*="title"]')

AUTHOR_SELECTORS = (
    '[class*="author"]',
    '[class*="byline"]',
    '[data-testid*="author"]',
    '.recipe-author',
    'p:-soup-contains("By ")',
    'span:-soup-contains("By ")',
)

INGREDIENT_SELECTORS = (
    '[class*="ingredient"] li',
    '[class*="ingredient"]',
    '[id*="ingredient"] li',
    '[data-testid*="ingredient"]',
    ".ingredients li",
    ".recipe-ingredients li",
    ".ingredient-item",
    "ul li",
    "ol li",
)
INGREDIENT_BLOCK_SELECTORS = (
    '[class*="ingredient"]',
    '[id*="ingredient"]',
    ".ingredients",
    ".recipe-ingredients",
)

STEP_SELECTORS = (
    '[class*="instruction"] li',
    '[class*="direction"] li',
    '[class*="step"] li',
    'li[class*="step"]',
    'li[class*="instruction"]',
    '[class*="instruction"]',
    '[class*="step"]',
    '[class*="direction"]',
    '[id*="instruction"]',
    '[id*="step"]',
    '[id*="direction"]',
    '[data-testid*="instruction"]',
    '[data-testid*="step"]',
    ".instructions li",
    ".recipe-instructions li",
    ".directions li",
    ".steps li",
    ".recipe-instructions p",
    "ol li",
)
STEP_BLOCK_SELECTORS = (
    '[class*="instruction"]',
    '[class*="step"]',
    '[class*="direction"]',
    '[id*="instruction"]',
    '[id*="step"]',
    '[id*="direction"]',
    ".instructions",
    ".recipe-instructions",
    ".directions",
    ".steps",
)

IMAGE_SELECTORS = (
    ('meta[property="og:image"]', "content"),
    ('meta[name="twitter:image"]', "content"),
    ('[itemprop="image"]', "content"),
    ('[itemprop="image"]', "src"),
    (".recipe-image img", "src"),
    (".hero-image img", "src"),
    (".main-image img", "src"),
    (".featured-image img", "src"),
    ('img[alt*="recipe"]', "src"),
    ('img[alt*="dish"]', "src"),
    ('img[alt*="food"]', "src"),
)
TIP_SELECTORS = (
    '[class*="tip"]',
    '[class*="note"]',
    '[class*="hint"]',
    '[class*="advice"]',
    '[id*="tip"]',
    '[id*="note"]',
    'p:-soup-contains("Tip")',
    'p:-soup-contains("Note")',
    'li:-soup-contains("Tip")',
    'li:-soup-contains("Pro tip")',
)
_DECORATIVE_IMAGE = re.compile(r"logo|icon|avatar", re.IGNORECASE)

_BLOCK_INGREDIENT_SPLIT = re.compile(r"[•*]\s*|\n\s*\d+\.\s*|\n\s*-\s*")
_BLOCK_STEP_SPLIT = re.compile(r"\n\s*\d+\.\s*|\n\s*[•*-]\s*|(?<=\w\.)\s*(?=[A-Z])")
_UNIT_OR_DIGIT = re.compile(
    r"\b(tsp|tbsp|cup|g|kg|ml|l|pound|lb|oz|clove|bunch|pinch|slice|piece|\d+)\b",
    re.IGNORECASE,
)

_PREP = re.compile(r"(?:prep|preparation)\D{0,40}?(\d+)\s*(min|minute|hour|hr)", re.IGNORECASE)
_COOK = re.compile(r"(?:cook|cooking)\D{0,40}?(\d+)\s*(min|minute|hour|hr)", re.IGNORECASE)
_TOTAL = re.compile(r"(?:total|ready)\D{0,40}?(\d+)\s*(min|minute|hour|hr)", re.IGNORECASE)
_SERVINGS = re.compile(r"(?:serves?|yield|makes?|portions?)\s*:?\s*(\d+)", re.IGNORECASE)
_DIFFICULTY = re.compile(
    r"(?:difficulty|level)\s*:?\s*(easy|medium|hard|beginner|intermediate|advanced)",
    re.IGNORECASE,
)


def _img_src(tag: Tag | None) -> str | None:
    if tag is None:
        return None
    img = tag if tag.name == "img" else tag.find("img")
    src = img.get("src") if img else None
    return str(src) if src else None


def find_best_image(soup: BeautifulSoup, base_url: str) -> str | None:
    """Hero image: social meta tags first, then common recipe image slots."""
    for selector, attribute in IMAGE_SELECTORS:
        tag = soup.select_one(selector)
        if tag is not None and (src := tag.get(attribute)):
            if url := resolve_image_url(str(src), base_url):
                return url
    return None


def _title(soup: BeautifulSoup) -> str | None:
    for selector in TITLE_SELECTORS:
        tag = soup.select_one(selector)
        if tag is not None and (text := normalize_text(tag.get_text(" "))):
            return text
    return None


def find_author(soup: BeautifulSoup) -> str | None:
    for selector in AUTHOR_SELECTORS:
        tag = soup.select_one(selector)
        if tag is not None and (author := clean_author(tag.get_text(" "))):
            return author
    return None


def _ingredients(soup: BeautifulSoup) -> list[str]:
    for selector in INGREDIENT_SELECTORS:
        found = [
            text
            for el in soup.select(selector)
            if (text := normalize_text(el.get_text(" ")))
            and 3 < len(text) < 200
            and looks_like_ingredient(text)
        ]
        if not found:
            found = _ingredients_from_block(soup)
        found = dedupe(found)
        if len(found) >= constants.ADEQUATE_INGREDIENTS:
            logger.debug("Ingredients matched by %r (%d items)", selector, len(found))
            return found
    return []


def _ingredients_from_block(soup: BeautifulSoup) -> list[str]:
    for selector in INGREDIENT_BLOCK_SELECTORS:
        block = soup.select_one(selector)
        if block is None:
            continue
        parts = [
            text
            for raw in _BLOCK_INGREDIENT_SPLIT.split(block.get_text("\n"))
            if (text := normalize_text(raw))
            and 3 < len(text) < 200
            and _UNIT_OR_DIGIT.search(text)
        ]
        if len(parts) >= constants.ADEQUATE_INGREDIENTS:
            return parts
    return []


def _step_text(el: Tag) -> str:
    paragraphs = " ".join(p.get_text(" ") for p in el.find_all("p")).strip()
    if paragraphs:
        return clean_step_text(paragraphs)
    parts = [
        s
        for s in el.find_all(string=True)
        if s.parent is not None
        and s.parent.name not in ("img", "figure", "svg", "script", "style", "noscript")
        and not s.find_parent(["figure", "svg", "noscript"])
    ]
    return clean_step_text(" ".join(parts))


def _step_image(el: Tag, base_url: str) -> str | None:
    """Image by DOM proximity: element, parent, next sibling, previous sibling."""
    candidates = (
        el,
        el.parent,
        el.find_next_sibling(),
        el.find_previous_sibling(),
    )
    for candidate in candidates:
        if isinstance(candidate, Tag) and (src := _img_src(candidate)):
            if url := resolve_image_url(src, base_url):
                return url
    return None


def merge_related_steps(steps: Sequence[DraftStep]) -> list[DraftStep]:
    """Fold short fragments without a cooking verb into the preceding step."""
    merged: list[DraftStep] = []
    for step in steps:
        text = step.text.strip()
        fragment = len(text) < constants.SHORT_STEP_CHARS and not has_cooking_verb(text)
        if fragment and merged:
            merged[-1] = DraftStep(text=f"{merged[-1].text} {text}", image=merged[-1].image)
        else:
            merged.append(DraftStep(text=text, image=step.image))
    return merged


def distribute_images(
    steps: list[DraftStep], soup: BeautifulSoup, base_url: str
) -> list[DraftStep]:
    """Spread page images proportionally over steps that have none."""
    missing = [i for i, step in enumerate(steps) if step.image is None]
    if not missing:
        return steps
    images = [
        url
        for img in soup.find_all("img")
        if (src := img.get("src"))
        and not _DECORATIVE_IMAGE.search(str(src))
        and (url := resolve_image_url(str(src), base_url))
    ]
    images = dedupe(images)
    if not images:
        return steps
    result = list(steps)
    if len(images) >= len(missing):
        pairs = [(i, images[k * len(images) // len(missing)]) for k, i in enumerate(missing)]
    else:
        pairs = [(missing[k * len(missing) // len(images)], url) for k, url in enumerate(images)]
    for index, url in pairs:
        result[index] = DraftStep(text=result[index].text, image=url)
    return result


def _steps(soup: BeautifulSoup, base_url: str) -> list[DraftStep]:
    for selector in STEP_SELECTORS:
        found = [
            DraftStep(text=text, image=_step_image(el, base_url))
            for el in soup.select(selector)
            if 10 < len(text := _step_text(el)) < 800
        ]
        if not found:
            found = _steps_from_block(soup)
        if len(found) >= constants.ADEQUATE_STEPS:
            merged = merge_related_steps(found)
            if len(merged) >= constants.ADEQUATE_STEPS:
                logger.debug("Steps matched by %r (%d items)", selector, len(merged))
                return distribute_images(merged, soup, base_url)
    return []


def _steps_from_block(soup: BeautifulSoup) -> list[DraftStep]:
    for selector in STEP_BLOCK_SELECTORS:
        block = soup.select_one(selector)
        if block is None:
            continue
        parts = [
            text
            for raw in _BLOCK_STEP_SPLIT.split(block.get_text("\n"))
            if 10 < len(text := clean_step_text(raw)) < 800 and looks_like_step(text)
        ]
        if len(parts) >= constants.ADEQUATE_STEPS:
            return [DraftStep(text=t) for t in parts]
    return []


def find_tips(soup: BeautifulSoup) -> list[str]:
    tips = []
    for selector in TIP_SELECTORS:
        for el in soup.select(selector):
            text = normalize_text(el.get_text(" "))
            if 10 < len(text) < 300 and TIP_CUES.search(text):
                tips.append(text)
    return dedupe(tips)[: constants.MAX_TIPS]


def _minutes(match: re.Match[str] | None) -> int | None:
    if match is None:
        return None
    value = int(match.group(1))
    return value * 60 if match.group(2).lower().startswith(("hour", "hr")) else value


def apply_text_fallbacks(draft: RecipeDraft, body_text: str) -> None:
    """Fill times, servings and difficulty from visible text when missing."""
    if not draft.has_times:
        draft.prep_time = _minutes(_PREP.search(body_text))
        draft.cook_time = _minutes(_COOK.search(body_text))
        draft.total_time = _minutes(_TOTAL.search(body_text))
    if draft.servings is None and (match := _SERVINGS.search(body_text)):
        draft.servings = int(match.group(1))
    if draft.difficulty is None and (match := _DIFFICULTY.search(body_text)):
        draft.difficulty = match.group(1).lower()


def parse_html_content(html: str, base_url: str) -> RecipeDraft:
    """Scan arbitrary markup for ingredient and instruction lists."""
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup.select(NOISE_SELECTOR):
        tag.decompose()

    draft = RecipeDraft(
        title=_title(soup),
        image=find_best_image(soup, base_url),
        author=find_author(soup),
    )
    draft.ingredients = _ingredients(soup)
    if draft.ingredients:
        draft.ingredient_confidence = min(
            constants.HEURISTIC_CONFIDENCE_CAP,
            len(draft.ingredients) * constants.HEURISTIC_CONFIDENCE_PER_ITEM,
        )
    draft.steps = _steps(soup, base_url)
    if draft.steps:
        draft.step_confidence = min(
            constants.HEURISTIC_CONFIDENCE_CAP,
            len(draft.steps) * constants.HEURISTIC_CONFIDENCE_PER_ITEM,
        )
    draft.tips = find_tips(soup)

    body = soup.body or soup
    apply_text_fallbacks(draft, body.get_text(" "))
    return draft
