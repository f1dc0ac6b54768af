"""Core data types that flow through the extraction pipeline.

Verdicts and results are immutable: a preflight verdict is produced once and
consumed by the caller, a web result is produced once per layer attempt, and
the canonical ``RecipeCard`` is handed to storage unchanged. The only mutable
type is ``ExtractionTask``, whose status advances monotonically while one
video extraction is in flight.
"""

from __future__ import annotations

import dataclasses
import enum
from types import MappingProxyType
import typing

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T] | None:
    """Return an immutable mapping view or None."""
    if m is None or isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _require_unit_interval(value: object, field_name: str) -> None:
    _require(
        condition=isinstance(value, int | float) and 0.0 <= value <= 1.0,
        message=f"must be numeric within [0.0, 1.0], got {value!r}",
        field_name=field_name,
    )


# --- Result Monad ---

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful extraction outcome."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed extraction outcome, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Platforms ---


class Platform(enum.StrEnum):
    """Source platform of a user-supplied URL."""

    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    WEB = "web"

    @property
    def is_video(self) -> bool:
        return self is not Platform.WEB


# --- Preflight ---

CostTier = typing.Literal["low", "moderate", "high", "very_high"]
COST_TIERS: tuple[CostTier, ...] = ("low", "moderate", "high", "very_high")


@dataclasses.dataclass(frozen=True, slots=True)
class CheckResult:
    """A single preflight sub-score and the evidence behind it."""

    score: float = 0.0
    passed: bool | None = None
    evidence: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=_is_tuple_of(self.evidence, str),
            message="must be a tuple[str, ...]",
            field_name="evidence",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class PreflightChecks:
    """Sub-scores of the deterministic admission stage."""

    duration: CheckResult = CheckResult()
    category: CheckResult = CheckResult()
    caption: CheckResult = CheckResult()
    topic: CheckResult = CheckResult()
    patterns: CheckResult = CheckResult()
    anti_signals: CheckResult = CheckResult()


@dataclasses.dataclass(frozen=True, slots=True)
class TinyClassifierVerdict:
    """Verdict of the cheap second-stage classifier."""

    is_recipe: bool
    confidence: float
    reason: str = ""

    def __post_init__(self) -> None:
        _require_unit_interval(self.confidence, "confidence")


@dataclasses.dataclass(frozen=True, slots=True)
class CostEstimate:
    """Processing cost tier surfaced before an expensive extraction."""

    tier: CostTier
    estimated_seconds: int
    warning: str | None = None

    def __post_init__(self) -> None:
        _require(
            condition=self.tier in COST_TIERS,
            message=f"must be one of {COST_TIERS}, got {self.tier!r}",
            field_name="tier",
        )
        _require(
            condition=isinstance(self.estimated_seconds, int)
            and self.estimated_seconds >= 0,
            message="must be an int >= 0",
            field_name="estimated_seconds",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class UserMessage:
    """Human-readable explanation attached to a rejected verdict."""

    title: str
    description: str
    suggestions: tuple[str, ...] = ()
    can_retry: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class PreflightResult:
    """Immutable admission verdict for one URL.

    ``passed`` is the admission decision. ``borderline`` marks verdicts the
    caller may let the user override when ``allow_override`` is set.
    """

    passed: bool
    score: float
    borderline: bool
    allow_override: bool
    checks: PreflightChecks = PreflightChecks()
    platform: Platform = Platform.WEB
    reasons: tuple[str, ...] = ()
    duration_seconds: int | None = None
    tiny_classifier_verdict: TinyClassifierVerdict | None = None
    cost_estimate: CostEstimate | None = None
    user_message: UserMessage | None = None

    def __post_init__(self) -> None:
        _require(
            condition=not (self.passed and self.borderline),
            message="a passing verdict cannot be borderline",
            field_name="borderline",
        )
        _require(
            condition=_is_tuple_of(self.reasons, str),
            message="must be a tuple[str, ...]",
            field_name="reasons",
            exc=TypeError,
        )


# --- Recipe content ---


@dataclasses.dataclass(frozen=True, slots=True)
class ProvenanceSpan:
    """Character range ``[start, end]`` into source text with a confidence."""

    start: int
    end: int
    confidence: float
    source: str | None = None

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.start, int)
            and isinstance(self.end, int)
            and 0 <= self.start <= self.end,
            message=f"require 0 <= start <= end, got [{self.start}, {self.end}]",
            field_name="span",
        )
        _require_unit_interval(self.confidence, "confidence")


@dataclasses.dataclass(frozen=True, slots=True)
class Ingredient:
    """One ingredient line.

    ``quantity`` is kept as text so fractions such as ``"1/3"`` survive.
    """

    raw_text: str
    quantity: str | None = None
    unit: str | None = None
    name: str | None = None
    notes: str | None = None
    confidence: float = 1.0
    provenance: ProvenanceSpan | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.raw_text, str) and self.raw_text.strip() != "",
            message="must be a non-empty str",
            field_name="raw_text",
        )
        _require(
            condition=self.quantity is None or isinstance(self.quantity, str),
            message="must be str or None",
            field_name="quantity",
            exc=TypeError,
        )
        _require_unit_interval(self.confidence, "confidence")


@dataclasses.dataclass(frozen=True, slots=True)
class Step:
    """One ordered instruction; ``index`` counts from 1."""

    index: int
    text: str
    title: str | None = None
    timestamp_seconds: int | None = None
    deep_link: str | None = None
    image_url: str | None = None
    confidence: float = 1.0
    provenance: ProvenanceSpan | None = None

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.index, int) and self.index >= 1,
            message=f"must be an int >= 1, got {self.index!r}",
            field_name="index",
        )
        _require(
            condition=isinstance(self.text, str) and self.text.strip() != "",
            message="must be a non-empty str",
            field_name="text",
        )
        _require(
            condition=self.timestamp_seconds is None or self.timestamp_seconds >= 0,
            message="must be >= 0",
            field_name="timestamp_seconds",
        )
        _require_unit_interval(self.confidence, "confidence")


def _require_ordered_steps(steps: tuple[Step, ...]) -> None:
    _require(
        condition=[s.index for s in steps] == list(range(1, len(steps) + 1)),
        message="must be strictly ordered 1..n",
        field_name="steps",
    )


@dataclasses.dataclass(frozen=True, slots=True)
class Author:
    """Recipe creator as shown to end users."""

    name: str | None = None
    handle: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class Confidence:
    """Per-field confidence of an extraction, each within [0, 1]."""

    ingredients: float = 0.0
    steps: float = 0.0
    times: float = 0.0

    def __post_init__(self) -> None:
        _require_unit_interval(self.ingredients, "ingredients")
        _require_unit_interval(self.steps, "steps")
        _require_unit_interval(self.times, "times")


# --- Web extraction ---


class ExtractionLayer(enum.StrEnum):
    """Parser layer that produced a web extraction result."""

    STRUCTURED_JSON_LD = "structured-json-ld"
    STRUCTURED_MICRODATA = "structured-microdata"
    READABILITY = "readability"
    HEURISTIC = "heuristic"


@dataclasses.dataclass(frozen=True, slots=True)
class WebDebug:
    """Diagnostics describing how a web result was reached."""

    attempts: tuple[str, ...] = ()
    has_structured_data: bool = False
    rendered: bool = False
    url: str | None = None
    errors: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class WebExtractionResult:
    """Output of one web parser layer.

    ``adequate`` is False when no layer met the adequacy threshold and this
    is the best low-confidence result available.
    """

    layer: ExtractionLayer
    ingredients: tuple[Ingredient, ...] = ()
    steps: tuple[Step, ...] = ()
    confidence: Confidence = Confidence()
    debug: WebDebug = WebDebug()
    adequate: bool = False
    title: str | None = None
    description: str | None = None
    image: str | None = None
    servings: int | None = None
    prep_time: int | None = None
    cook_time: int | None = None
    total_time: int | None = None
    difficulty: str | None = None
    author: Author | None = None
    tips: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=_is_tuple_of(self.ingredients, Ingredient),
            message="must be a tuple[Ingredient, ...]",
            field_name="ingredients",
            exc=TypeError,
        )
        _require(
            condition=_is_tuple_of(self.steps, Step),
            message="must be a tuple[Step, ...]",
            field_name="steps",
            exc=TypeError,
        )
        _require_ordered_steps(self.steps)

    @property
    def item_count(self) -> int:
        return len(self.ingredients) + len(self.steps)


# --- Video extraction ---


class TaskStatus(enum.IntEnum):
    """Lifecycle states of a video extraction, in order."""

    UPLOADING = 1
    AWAITING_IDENTIFIERS = 2
    AWAITING_PARSE_STATUS = 3
    READY = 4
    QUERYING = 5
    DONE = 6
    FAILED = 7


@dataclasses.dataclass(slots=True)
class ExtractionTask:
    """Working state of one in-flight video extraction.

    Status only moves forward. The identifier set may be replaced by
    ``refresh_identifiers`` when the upstream service reports a divergent set
    during re-verification.
    """

    video_url: str
    platform: Platform
    task_id: str | None = None
    video_identifiers: tuple[str, ...] = ()
    status: TaskStatus = TaskStatus.UPLOADING

    def advance(self, status: TaskStatus) -> None:
        """Move to ``status``; backward transitions raise ValueError."""
        _require(
            condition=status >= self.status and self.status is not TaskStatus.FAILED,
            message=f"cannot move from {self.status.name} to {status.name}",
            field_name="status",
        )
        self.status = status

    def fail(self) -> None:
        if self.status is not TaskStatus.DONE:
            self.status = TaskStatus.FAILED

    def refresh_identifiers(self, identifiers: typing.Iterable[str]) -> bool:
        """Replace the working identifier set; return True when it changed."""
        fresh = tuple(identifiers)
        _require(
            condition=len(fresh) > 0,
            message="refreshed identifier set cannot be empty",
            field_name="video_identifiers",
        )
        if fresh == self.video_identifiers:
            return False
        self.video_identifiers = fresh
        return True


@dataclasses.dataclass(frozen=True, slots=True)
class VideoExtraction:
    """Successful video extraction: raw recipe JSON plus salvage data."""

    recipe: typing.Mapping[str, typing.Any]
    video_identifiers: tuple[str, ...]
    thumbnail: str | None = None
    task_id: str | None = None
    retry_count: int = 0
    author: Author | None = None

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.recipe, typing.Mapping)
            and bool(self.recipe.get("title")),
            message="must be a mapping with a title",
            field_name="recipe",
            exc=TypeError,
        )
        frozen = _freeze_mapping(self.recipe)
        if frozen is not None:
            object.__setattr__(self, "recipe", frozen)


# --- Canonical recipe ---


@dataclasses.dataclass(frozen=True, slots=True)
class RecipeProvenance:
    """Where a recipe card's content came from."""

    extraction_method: str
    ingredients_from: str
    steps_from: str
    overall_confidence: float

    def __post_init__(self) -> None:
        _require_unit_interval(self.overall_confidence, "overall_confidence")


@dataclasses.dataclass(frozen=True, slots=True)
class RecipeCard:
    """Canonical recipe handed to the storage collaborator."""

    title: str
    source_url: str
    platform: Platform
    provenance: RecipeProvenance
    ingredients: tuple[Ingredient, ...] = ()
    steps: tuple[Step, ...] = ()
    description: str | None = None
    image: str | None = None
    servings: int | None = None
    prep_time: int | None = None
    cook_time: int | None = None
    total_time: int | None = None
    difficulty: str | None = None
    author: Author | None = None
    tools: tuple[str, ...] = ()
    tips: tuple[str, ...] = ()
    video_id: str | None = None

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.title, str) and self.title.strip() != "",
            message="must be a non-empty str",
            field_name="title",
        )
        _require_ordered_steps(self.steps)
        for name in ("prep_time", "cook_time", "total_time", "servings"):
            value = getattr(self, name)
            _require(
                condition=value is None or (isinstance(value, int) and value >= 0),
                message=f"must be an int >= 0 or None, got {value!r}",
                field_name=name,
            )
