"""Map raw extraction output onto the canonical ``RecipeCard``.

Video results arrive as loosely-typed JSON from the video-understanding
service; web results arrive as ``WebExtractionResult``. Both leave here with
ordered steps, text quantities and a provenance block.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import re
import typing
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from recipe_extract import constants
from recipe_extract.core.types import (
    Author,
    Ingredient,
    Platform,
    ProvenanceSpan,
    RecipeCard,
    RecipeProvenance,
    Step,
    VideoExtraction,
    WebExtractionResult,
    _require,
)
from recipe_extract.exceptions import (
    NetworkError,
    ProcessingTimeout,
    ServiceUnavailable,
    UploadPermissionDenied,
    ValidationError,
)

from .units import (
    normalize_quantity,
    parse_duration_minutes,
    parse_timestamp,
)

if typing.TYPE_CHECKING:
    from recipe_extract.video.description import DescriptionExtraction

logger = logging.getLogger(__name__)

VIDEO_SOURCE = "memories-ai"
DEFAULT_TITLE = "Untitled Recipe"


def build_deep_link(url: str, seconds: int | None) -> str | None:
    """Return ``url`` with its ``t`` query parameter set to ``seconds``."""
    if seconds is None:
        return None
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "t"]
    query.append(("t", str(max(0, int(seconds)))))
    return urlunparse(parts._replace(query=urlencode(query)))


def _text(value: typing.Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _servings(value: typing.Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    match = re.search(r"\d+", str(value or ""))
    return int(match.group()) if match else None


def _strings(values: typing.Any) -> tuple[str, ...]:
    if not isinstance(values, list | tuple):
        return ()
    return tuple(text for v in values if (text := _text(v)))


def _creator(raw: typing.Any) -> Author | None:
    if not isinstance(raw, Mapping):
        return None
    name, handle = _text(raw.get("name")), _text(raw.get("handle"))
    if not (name or handle):
        return None
    return Author(name=name or handle, handle=handle or name)


def validate_provenance(items: Iterable[Ingredient | Step], field_name: str) -> None:
    """Ensure every item carries a well-formed provenance span.

    Raises:
        ValidationError: An item has no span, or a span is malformed.
    """
    for item in items:
        span = item.provenance
        _require(
            condition=span is not None,
            message="must have provenance information",
            field_name=field_name,
            exc=ValidationError,
        )
        _require(
            condition=span.source is not None and span.start <= span.end,
            message="provenance must have source and span [start, end]",
            field_name=field_name,
            exc=ValidationError,
        )
        _require(
            condition=0.0 <= span.confidence <= 1.0,
            message="provenance confidence must be between 0 and 1",
            field_name=field_name,
            exc=ValidationError,
        )


def failure_message(error: BaseException, platform: Platform) -> str:
    """Translate a final extraction error into an end-user message."""
    cause = getattr(error, "cause", error)
    text = str(error)
    kind = platform.value
    if isinstance(cause, ServiceUnavailable):
        return str(cause)
    if isinstance(cause, ProcessingTimeout) or "Timed out" in text:
        return (
            f"Recipe extraction timed out. This {kind} video may be too long or "
            "complex to process right now. Please try again shortly or use a "
            "different video."
        )
    if isinstance(cause, UploadPermissionDenied) or constants.PERMISSION_DENIED_CODE in text:
        return (
            f"Video access restricted. This {kind} video cannot be processed due "
            "to permission restrictions. Please try a different video."
        )
    if isinstance(cause, NetworkError) or "network is abnormal" in text or "0001" in text:
        return (
            "Network connectivity issue with the video processing service. This is "
            "a temporary issue on the provider's side. Please try again in a few "
            "minutes."
        )
    if getattr(error, "thumbnail", None):
        return (
            "Recipe extraction failed, but the thumbnail was retrieved. Please try "
            "again later or use a different video."
        )
    return "Recipe extraction failed. Please try again later or use a different video."


class ResultNormalizer:
    """Builds canonical recipe cards from video, web or description output."""

    def from_video(
        self,
        extraction: VideoExtraction,
        *,
        source_url: str,
        platform: Platform,
        video_id: str | None = None,
    ) -> RecipeCard:
        recipe = extraction.recipe
        ingredients = tuple(self._video_ingredients(recipe.get("ingredients")))
        steps = tuple(self._video_steps(recipe.get("steps"), source_url))
        return RecipeCard(
            title=_text(recipe.get("title")) or DEFAULT_TITLE,
            source_url=source_url,
            platform=platform,
            video_id=video_id,
            image=extraction.thumbnail,
            ingredients=ingredients,
            steps=steps,
            servings=_servings(recipe.get("servings")),
            prep_time=parse_duration_minutes(_text(recipe.get("prep_time"))),
            cook_time=parse_duration_minutes(_text(recipe.get("cook_time"))),
            total_time=parse_duration_minutes(_text(recipe.get("total_time"))),
            author=_creator(recipe.get("creator")) or extraction.author,
            tools=_strings(recipe.get("tools")),
            tips=_strings(recipe.get("tips")),
            provenance=RecipeProvenance(
                extraction_method=VIDEO_SOURCE,
                ingredients_from=VIDEO_SOURCE,
                steps_from=VIDEO_SOURCE,
                overall_confidence=constants.VIDEO_SOURCE_CONFIDENCE,
            ),
        )

    def from_web(self, result: WebExtractionResult, *, source_url: str) -> RecipeCard:
        layer = result.layer.value
        overall = (result.confidence.ingredients + result.confidence.steps) / 2
        return RecipeCard(
            title=result.title or DEFAULT_TITLE,
            source_url=source_url,
            platform=Platform.WEB,
            description=result.description,
            image=result.image,
            ingredients=result.ingredients,
            steps=result.steps,
            servings=result.servings,
            prep_time=result.prep_time,
            cook_time=result.cook_time,
            total_time=result.total_time,
            difficulty=result.difficulty,
            author=result.author,
            tips=result.tips,
            provenance=RecipeProvenance(
                extraction_method=f"web:{layer}",
                ingredients_from=layer,
                steps_from=layer,
                overall_confidence=round(overall, 3),
            ),
        )

    def from_description(
        self,
        extraction: DescriptionExtraction,
        *,
        source_url: str,
        platform: Platform,
        title: str | None = None,
        thumbnail: str | None = None,
        author: Author | None = None,
        video_id: str | None = None,
    ) -> RecipeCard:
        """Salvage card built from a parsed video description."""
        validate_provenance(extraction.ingredients, "ingredient")
        validate_provenance(extraction.steps, "step")
        steps = tuple(
            Step(
                index=s.index,
                text=s.text,
                title=s.title,
                timestamp_seconds=s.timestamp_seconds,
                deep_link=build_deep_link(source_url, s.timestamp_seconds),
                confidence=s.confidence,
                provenance=s.provenance,
            )
            for s in extraction.steps
        )
        confidences = [i.confidence for i in extraction.ingredients] + [
            s.confidence for s in steps
        ]
        overall = sum(confidences) / len(confidences) if confidences else 0.0
        return RecipeCard(
            title=title or extraction.title or DEFAULT_TITLE,
            source_url=source_url,
            platform=platform,
            video_id=video_id,
            image=thumbnail,
            ingredients=extraction.ingredients,
            steps=steps,
            author=author,
            provenance=RecipeProvenance(
                extraction_method="description",
                ingredients_from="description",
                steps_from="description",
                overall_confidence=round(overall, 3),
            ),
        )

    def _video_ingredients(self, raw: typing.Any) -> Iterable[Ingredient]:
        for item in raw if isinstance(raw, list) else []:
            if isinstance(item, str):
                item = {"name": item}
            if not isinstance(item, Mapping):
                continue
            name = _text(item.get("name"))
            quantity = _text(item.get("quantity"))
            unit = _text(item.get("unit"))
            raw_text = " ".join(p for p in (quantity, unit, name) if p)
            if not raw_text:
                logger.debug("Skipping empty ingredient entry: %r", item)
                continue
            yield Ingredient(
                raw_text=raw_text,
                quantity=normalize_quantity(quantity) or quantity,
                unit=unit,
                name=name,
                notes=_text(item.get("notes")),
                confidence=constants.VIDEO_SOURCE_CONFIDENCE,
                source=VIDEO_SOURCE,
            )

    def _video_steps(self, raw: typing.Any, source_url: str) -> Iterable[Step]:
        index = 0
        for item in raw if isinstance(raw, list) else []:
            if isinstance(item, str):
                item = {"instruction": item}
            if not isinstance(item, Mapping):
                continue
            instruction = _text(item.get("instruction"))
            if not instruction:
                continue
            index += 1
            seconds = parse_timestamp(_text(item.get("t_in")))
            yield Step(
                index=index,
                text=instruction,
                title=instruction.split(".")[0].strip() or f"Step {index}",
                timestamp_seconds=seconds,
                deep_link=build_deep_link(source_url, seconds),
                confidence=constants.VIDEO_SOURCE_CONFIDENCE,
            )


def span_for(text: str, fragment: str, confidence: float, source: str) -> ProvenanceSpan:
    """Provenance span locating ``fragment`` in ``text`` (whole text when absent)."""
    start = text.find(fragment)
    if start < 0:
        return ProvenanceSpan(0, len(text), confidence, source)
    return ProvenanceSpan(start, start + len(fragment), confidence, source)
