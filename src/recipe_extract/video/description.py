"""Recipe extraction from a video's own description text.

Recipe-channel descriptions often carry a ``*RECIPE*`` section with ``▪``
ingredient bullets and ``@mm:ss`` timestamped steps, followed by a
``CHAPTERS`` list. Parsing that is cheap, so it is used as salvage when the
video service cannot produce a recipe.
"""

from dataclasses import dataclass
import re

from recipe_extract.core.types import Ingredient, ProvenanceSpan, Step
from recipe_extract.normalize.units import (
    confidence_with_prior,
    parse_ingredient_line,
    parse_timestamp,
)

SOURCE = "description"
INGREDIENT_BASE_CONFIDENCE = 1.0
STEP_BASE_CONFIDENCE = 0.8
FALLBACK_INSTRUCTION = "Follow the video instructions at this timestamp"

_STEP_TIMESTAMP = re.compile(r"@(\d{1,2}:\d{2}(?::\d{2})?)")
_CHAPTER = re.compile(r"^(\d+:\d+)\s(.+)")
_SENTENCE_SPLIT = re.compile(r"[.!?]")
_RECIPE_STOP_MARKERS = ("IF USING", "MUSIC", "DISCLAIMER", "CHAPTERS")
_CHAPTER_STOP_MARKERS = ("DISCLAIMER", "How this content was made")


@dataclass(frozen=True, slots=True)
class Chapter:
    timestamp_seconds: int
    title: str


@dataclass(frozen=True, slots=True)
class DescriptionExtraction:
    ingredients: tuple[Ingredient, ...] = ()
    steps: tuple[Step, ...] = ()
    chapters: tuple[Chapter, ...] = ()
    title: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.ingredients or self.steps)


@dataclass(frozen=True, slots=True)
class _Line:
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def _lines(description: str) -> list[_Line]:
    lines = []
    for match in re.finditer(r"[^\r\n]+", description):
        raw = match.group()
        text = raw.strip()
        if text:
            lines.append(_Line(text, match.start() + raw.index(text)))
    return lines


def _context_instructions(lines: list[_Line], i: int) -> list[str]:
    instructions = []
    for line in lines[max(0, i - 2) : i + 3]:
        text = line.text
        if "@" in text or "http" in text or not 20 <= len(text) < 300:
            continue
        sentences = [s for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) > 10]
        for sentence in sentences[:2]:
            words = sentence.split()[:18]
            if len(words) > 5:
                instructions.append(" ".join(words))
    return instructions


def parse_description(description: str, title: str | None = None) -> DescriptionExtraction:
    """Parse ingredients, timestamped steps and chapters from a description."""
    lines = _lines(description or "")
    ingredient_conf = confidence_with_prior(INGREDIENT_BASE_CONFIDENCE, SOURCE)
    step_conf = confidence_with_prior(STEP_BASE_CONFIDENCE, SOURCE)

    ingredients: list[Ingredient] = []
    steps: list[Step] = []
    chapters: list[Chapter] = []
    in_recipe = in_chapters = False

    for i, line in enumerate(lines):
        text = line.text
        if "RECIPE" in text and "*" in text:
            in_recipe = True
            continue
        if "CHAPTERS" in text:
            in_recipe = False
            in_chapters = True
            continue
        if in_recipe and any(marker in text for marker in _RECIPE_STOP_MARKERS):
            in_recipe = False
        if in_chapters and any(marker in text for marker in _CHAPTER_STOP_MARKERS):
            in_chapters = False

        if in_recipe and text.startswith("▪"):
            raw = text.lstrip("▪").strip()
            if raw:
                parsed = parse_ingredient_line(raw)
                offset = line.start + text.index(raw)
                ingredients.append(
                    Ingredient(
                        raw_text=raw,
                        quantity=parsed.quantity,
                        unit=parsed.unit,
                        name=parsed.name,
                        confidence=ingredient_conf,
                        provenance=ProvenanceSpan(
                            offset, offset + len(raw), ingredient_conf, SOURCE
                        ),
                        source=SOURCE,
                    )
                )

        if in_recipe and (match := _STEP_TIMESTAMP.search(text)):
            step_text = _STEP_TIMESTAMP.sub("", text).strip()
            step_title = _SENTENCE_SPLIT.split(step_text)[0].strip()
            step_title = " ".join(step_title.split()[:6]) or "Step"
            instructions = _context_instructions(lines, i)
            if not instructions and len(step_text.split()) > 5:
                instructions = [" ".join(step_text.split()[:18])]
            steps.append(
                Step(
                    index=len(steps) + 1,
                    text=". ".join(instructions) if instructions else FALLBACK_INSTRUCTION,
                    title=step_title,
                    timestamp_seconds=parse_timestamp(match.group(1)),
                    confidence=step_conf,
                    provenance=ProvenanceSpan(line.start, line.end, step_conf, SOURCE),
                )
            )

        if in_chapters and (match := _CHAPTER.match(text)):
            seconds = parse_timestamp(match.group(1))
            if seconds is not None:
                chapters.append(Chapter(seconds, match.group(2).strip()))

    return DescriptionExtraction(
        ingredients=tuple(ingredients),
        steps=tuple(steps),
        chapters=tuple(chapters),
        title=title,
    )
