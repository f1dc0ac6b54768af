"""Mutable working record each web extraction layer fills in."""

from dataclasses import dataclass, field

from recipe_extract import constants
from recipe_extract.core.types import (
    Author,
    Confidence,
    ExtractionLayer,
    Ingredient,
    Step,
    WebDebug,
    WebExtractionResult,
)
from recipe_extract.normalize.units import parse_ingredient_line


@dataclass(slots=True)
class DraftStep:
    text: str
    image: str | None = None


@dataclass(slots=True)
class RecipeDraft:
    """Loosely-typed recipe as one layer sees it, before freezing."""

    title: str | None = None
    ingredients: list[str] = field(default_factory=list)
    steps: list[DraftStep] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)
    prep_time: int | None = None
    cook_time: int | None = None
    total_time: int | None = None
    servings: int | None = None
    difficulty: str | None = None
    image: str | None = None
    description: str | None = None
    author: str | None = None
    ingredient_confidence: float = 0.0
    step_confidence: float = 0.0
    time_confidence: float = 0.0

    @property
    def item_count(self) -> int:
        return len(self.ingredients) + len(self.steps)

    @property
    def has_times(self) -> bool:
        return any((self.prep_time, self.cook_time, self.total_time))

    def is_adequate(self) -> bool:
        return (
            len(self.ingredients) >= constants.ADEQUATE_INGREDIENTS
            or len(self.steps) >= constants.ADEQUATE_STEPS
        )

    def to_result(
        self, layer: ExtractionLayer, *, debug: WebDebug, adequate: bool
    ) -> WebExtractionResult:
        source = layer.value
        ingredients = []
        for line in self.ingredients:
            parsed = parse_ingredient_line(line)
            ingredients.append(
                Ingredient(
                    raw_text=line,
                    quantity=parsed.quantity,
                    unit=parsed.unit,
                    name=parsed.name,
                    confidence=self.ingredient_confidence,
                    source=source,
                )
            )
        steps = tuple(
            Step(
                index=i,
                text=step.text,
                image_url=step.image,
                confidence=self.step_confidence,
            )
            for i, step in enumerate(self.steps, start=1)
        )
        return WebExtractionResult(
            layer=layer,
            ingredients=tuple(ingredients),
            steps=steps,
            confidence=Confidence(
                ingredients=self.ingredient_confidence,
                steps=self.step_confidence,
                times=self.time_confidence,
            ),
            debug=debug,
            adequate=adequate,
            title=self.title,
            description=self.description,
            image=self.image,
            servings=self.servings,
            prep_time=self.prep_time,
            cook_time=self.cook_time,
            total_time=self.total_time,
            difficulty=self.difficulty,
            author=Author(name=self.author) if self.author else None,
            tips=tuple(self.tips),
        )
