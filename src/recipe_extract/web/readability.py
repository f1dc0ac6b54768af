"""Main-content isolation before re-running the structured and heuristic parsers."""

from html import escape
import logging

from bs4 import BeautifulSoup
import trafilatura

from recipe_extract import constants

from .draft import RecipeDraft
from .heuristics import parse_html_content
from .structured import extract_json_ld, extract_microdata
from .text import normalize_text

logger = logging.getLogger(__name__)


def _visible_length(html: str) -> int:
    return len(normalize_text(BeautifulSoup(html, "lxml").get_text(" ")))


def isolate_article(html: str, url: str) -> str | None:
    """Cleaned ``<article>`` markup, or None when nothing meaningful was removed."""
    if not html:
        return None
    content = trafilatura.extract(
        html,
        url=url,
        output_format="html",
        include_comments=False,
        include_tables=True,
        include_images=True,
        favor_recall=True,
    )
    if not content:
        return None

    original = _visible_length(html)
    cleaned = _visible_length(content)
    if original == 0 or cleaned == 0:
        return None
    reduction = 1 - cleaned / original
    if reduction < constants.READABILITY_MIN_REDUCTION:
        logger.debug("Readability removed only %.0f%% of %s", reduction * 100, url)
        return None

    metadata = trafilatura.extract_metadata(html, default_url=url)
    title = metadata.title if metadata is not None and metadata.title else ""
    heading = f"<h1>{escape(title)}</h1>" if title else ""
    return f"<article>{heading}{content}</article>"


def extract_readable(html: str, url: str) -> RecipeDraft | None:
    """Best draft from the isolated article, with the readability confidence floor."""
    article = isolate_article(html, url)
    if article is None:
        return None

    structured = extract_json_ld(article, url) or extract_microdata(article, url)
    draft = (
        structured
        if structured is not None and structured.is_adequate()
        else parse_html_content(article, url)
    )
    if draft.ingredients:
        draft.ingredient_confidence = max(
            draft.ingredient_confidence, constants.READABILITY_CONFIDENCE_FLOOR
        )
    if draft.steps:
        draft.step_confidence = max(
            draft.step_confidence, constants.READABILITY_CONFIDENCE_FLOOR
        )
    return draft
