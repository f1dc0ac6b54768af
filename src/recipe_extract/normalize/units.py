"""Quantity, unit and time normalization.

Quantities stay text: ``"1/3"`` is never turned into ``0.333``. Decimals are
rewritten as the nearest common fraction when one is close enough, and
unicode vulgar fractions become their ASCII spelling.
"""

from dataclasses import dataclass
import re

from recipe_extract import constants

UNIT_ALIASES: dict[str, str] = {
    "tsp": "teaspoon",
    "tsp.": "teaspoon",
    "teaspoon": "teaspoon",
    "teaspoons": "teaspoon",
    "tbsp": "tablespoon",
    "tbsp.": "tablespoon",
    "tablespoon": "tablespoon",
    "tablespoons": "tablespoon",
    "c": "cup",
    "cup": "cup",
    "cups": "cup",
    "g": "gram",
    "gram": "gram",
    "grams": "gram",
    "kg": "kilogram",
    "kilogram": "kilogram",
    "kilograms": "kilogram",
    "lb": "pound",
    "lbs": "pound",
    "pound": "pound",
    "pounds": "pound",
    "oz": "ounce",
    "ounce": "ounce",
    "ounces": "ounce",
    "ml": "milliliter",
    "milliliter": "milliliter",
    "milliliters": "milliliter",
    "l": "liter",
    "liter": "liter",
    "liters": "liter",
    "pt": "pint",
    "pint": "pint",
    "pints": "pint",
    "qt": "quart",
    "quart": "quart",
    "quarts": "quart",
    "gal": "gallon",
    "gallon": "gallon",
    "gallons": "gallon",
    "clove": "clove",
    "cloves": "clove",
    "bunch": "bunch",
    "bunches": "bunch",
    "head": "head",
    "heads": "head",
    "piece": "piece",
    "pieces": "piece",
    "slice": "slice",
    "slices": "slice",
    "pinch": "pinch",
    "pinches": "pinch",
    "dash": "dash",
    "dashes": "dash",
    "splash": "splash",
    "splashes": "splash",
    "handful": "handful",
    "handfuls": "handful",
}

PREPARATION_ADJECTIVES = (
    "extra virgin",
    "room temperature",
    "fresh",
    "organic",
    "dried",
    "frozen",
    "canned",
    "raw",
    "cooked",
    "chopped",
    "diced",
    "sliced",
    "minced",
    "grated",
    "shredded",
    "whole",
    "ground",
    "crushed",
    "mashed",
    "pureed",
    "strained",
    "virgin",
    "cold",
    "warm",
    "hot",
    "large",
    "small",
    "medium",
    "thick",
    "thin",
    "fine",
    "coarse",
)

SINGULAR_NAMES: dict[str, str] = {
    "onions": "onion",
    "tomatoes": "tomato",
    "potatoes": "potato",
    "carrots": "carrot",
    "peppers": "pepper",
    "mushrooms": "mushroom",
    "garlic cloves": "garlic",
    "cloves": "clove",
    "eggs": "egg",
    "lemons": "lemon",
    "limes": "lime",
    "oranges": "orange",
    "apples": "apple",
    "bananas": "banana",
    "berries": "berry",
    "herbs": "herb",
    "spices": "spice",
    "leaves": "leaf",
    "stems": "stem",
    "roots": "root",
    "seeds": "seed",
    "nuts": "nut",
    "beans": "bean",
    "peas": "pea",
    "noodles": "noodle",
}

VULGAR_FRACTIONS: dict[str, str] = {
    "½": "1/2",
    "¼": "1/4",
    "¾": "3/4",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅛": "1/8",
}

TEXT_QUANTITIES = frozenset(
    {"to taste", "as needed", "optional", "pinch", "dash", "splash", "handful"}
)

_COMMON_FRACTIONS: tuple[tuple[float, str], ...] = (
    (1 / 8, "1/8"),
    (1 / 6, "1/6"),
    (1 / 5, "1/5"),
    (1 / 4, "1/4"),
    (1 / 3, "1/3"),
    (3 / 8, "3/8"),
    (1 / 2, "1/2"),
    (5 / 8, "5/8"),
    (2 / 3, "2/3"),
    (3 / 4, "3/4"),
    (7 / 8, "7/8"),
)

_QUANTITY = re.compile(r"^(\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?|[½¼¾⅓⅔⅛])\s*")
_UNIT = re.compile(
    r"^(tsp\.?|tbsp\.?|tablespoons?|teaspoons?|cups?|kg|g|grams?|ml|l|liters?|"
    r"pounds?|lbs?|oz|ounces?|cloves?|bunch(?:es)?|pinch(?:es)?|slices?|pieces?|"
    r"heads?|dash(?:es)?|handfuls?|c)\b\.?\s*",
    re.IGNORECASE,
)
_MIXED = re.compile(r"^(\d+)\s+(\d+/\d+)$")
_DECIMAL = re.compile(r"^\d*\.?\d+$")
_ISO_DURATION = re.compile(
    r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", re.IGNORECASE
)
_HOURS = re.compile(r"(\d+)\s*(?:hours?|hrs?|h)\b", re.IGNORECASE)
_MINUTES = re.compile(r"(\d+)\s*(?:minutes?|mins?|m)\b", re.IGNORECASE)
_NUMBER = re.compile(r"(\d+)")
_UNIT_WORDS = re.compile(
    r"\b(tsp|tbsp|cups?|c|g|ml|lb|oz|cloves?|bunch|head|piece|slice|pinch|dash|"
    r"splash|handful)\b"
)


def normalize_unit(unit: str | None) -> str | None:
    """Map a unit spelling to its canonical name; unknown units return None."""
    if not unit:
        return None
    return UNIT_ALIASES.get(unit.strip().lower())


def normalize_quantity(quantity: str | int | float | None) -> str | None:
    """Normalize a quantity to text.

    >>> normalize_quantity("0.333")
    '1/3'
    >>> normalize_quantity("1 1/2")
    '1 1/2'
    """
    if quantity is None:
        return None
    qty = str(quantity).strip().lower()
    if not qty:
        return None
    if qty in TEXT_QUANTITIES or "/" in qty or _MIXED.match(qty):
        return qty
    if qty in VULGAR_FRACTIONS:
        return VULGAR_FRACTIONS[qty]
    if qty[:-1].isdigit() and qty[-1] in VULGAR_FRACTIONS:
        return f"{qty[:-1]} {VULGAR_FRACTIONS[qty[-1]]}"
    if not _DECIMAL.match(qty):
        return None

    number = float(qty)
    if abs(number - round(number)) < 1e-6:
        return str(round(number))
    whole = int(number)
    fraction = number - whole
    distance, text = min(
        (abs(fraction - value), text) for value, text in _COMMON_FRACTIONS
    )
    if distance < constants.FRACTION_TOLERANCE:
        return f"{whole} {text}" if whole > 0 else text
    return qty


@dataclass(frozen=True, slots=True)
class ParsedIngredient:
    quantity: str | None
    unit: str | None
    name: str


def parse_ingredient_line(text: str) -> ParsedIngredient:
    """Split ``"1/3 cup sugar"`` into quantity ``"1/3"``, unit ``"cup"``, name ``"sugar"``."""
    rest = text.strip()
    quantity = unit = None
    if match := _QUANTITY.match(rest):
        quantity = normalize_quantity(match.group(1))
        rest = rest[match.end() :]
        if unit_match := _UNIT.match(rest):
            unit = normalize_unit(unit_match.group(1).rstrip(".")) or unit_match.group(1)
            rest = rest[unit_match.end() :]
    return ParsedIngredient(quantity=quantity, unit=unit, name=rest.strip() or text.strip())


def normalize_ingredient_name(name: str) -> tuple[str, str | None]:
    """Return ``(name, preparation)`` with preparation adjectives moved aside."""
    normalized = name.lower().strip()
    normalized = re.sub(r"^\d+\s+\d+/\d+\s*|^\d+/\d+\s*|^\d+\s*", "", normalized)
    normalized = _UNIT_WORDS.sub("", normalized)

    preparation = []
    for adjective in PREPARATION_ADJECTIVES:
        pattern = rf"\b{re.escape(adjective)}\b"
        if re.search(pattern, normalized):
            preparation.append(adjective)
            normalized = re.sub(pattern, " ", normalized)

    normalized = re.sub(r"\s+", " ", normalized).strip()
    normalized = SINGULAR_NAMES.get(normalized, normalized)
    normalized = re.sub(r"[,\-.]+$", "", normalized).strip()
    return normalized, ", ".join(preparation) or None


def parse_timestamp(value: str | None) -> int | None:
    """Parse ``HH:MM:SS`` or ``MM:SS`` into seconds."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def parse_iso_duration(value: str | None) -> int | None:
    """Parse an ISO-8601 duration (``PT1H30M``, ``P1DT2H``) into seconds."""
    if not value:
        return None
    match = _ISO_DURATION.search(value.strip())
    if not match or not any(match.groups()):
        return None
    days, hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return ((days * 24 + hours) * 60 + minutes) * 60 + seconds


def parse_duration_minutes(value: str | None) -> int | None:
    """Minutes from an ISO-8601 duration or a phrase like ``"1 hour 30 min"``."""
    if not value:
        return None
    text = value.strip()
    if text.upper().startswith("P"):
        seconds = parse_iso_duration(text)
        if seconds is not None:
            return round(seconds / 60) or None
    hours = _HOURS.search(text)
    minutes = _MINUTES.search(text)
    if hours or minutes:
        total = (int(hours.group(1)) * 60 if hours else 0) + (
            int(minutes.group(1)) if minutes else 0
        )
        return total or None
    number = _NUMBER.search(text)
    return int(number.group(1)) if number else None


_TIME_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "total",
        re.compile(
            r"(?:total|total time|takes?)\s+(?:about\s+)?(\d+)\s*(?:minutes?|mins?|hours?|hrs?)",
            re.IGNORECASE,
        ),
    ),
    (
        "total",
        re.compile(
            r"(?:ready in|done in|finished in)\s+(\d+)\s*(?:minutes?|mins?|hours?|hrs?)",
            re.IGNORECASE,
        ),
    ),
    (
        "prep",
        re.compile(
            r"(?:prep|preparation|prep time)\s+(?:time\s+)?(?:is\s+)?(\d+)\s*"
            r"(?:minutes?|mins?|hours?|hrs?)",
            re.IGNORECASE,
        ),
    ),
    (
        "cook",
        re.compile(
            r"(?:cook|cooking|cook time)\s+(?:time\s+)?(?:is\s+)?(\d+)\s*"
            r"(?:minutes?|mins?|hours?|hrs?)",
            re.IGNORECASE,
        ),
    ),
    (
        "cook",
        re.compile(
            r"(?:bake|baking|roast|roasting|simmer|simmering|boil|boiling)\s+"
            r"(?:for\s+)?(\d+)\s*(?:minutes?|mins?|hours?|hrs?)",
            re.IGNORECASE,
        ),
    ),
    (
        "step",
        re.compile(
            r"for\s+(\d+)\s*(?:minutes?|mins?|hours?|hrs?)|"
            r"(\d+)\s*(?:minutes?|mins?|hours?|hrs?)\s+until",
            re.IGNORECASE,
        ),
    ),
)


@dataclass(frozen=True, slots=True)
class TimeInfo:
    total_minutes: int | None = None
    prep_minutes: int | None = None
    cook_minutes: int | None = None
    step_times: tuple[tuple[str, int], ...] = ()


def extract_time_info(text: str) -> TimeInfo:
    """Find total/prep/cook times and per-step durations mentioned in free text."""
    found: dict[str, int] = {}
    step_times: list[tuple[str, int]] = []
    for kind, pattern in _TIME_PATTERNS:
        for match in pattern.finditer(text):
            amount = int(next(g for g in match.groups() if g))
            minutes = amount * 60 if re.search(r"hours?|hrs?", match.group(0), re.I) else amount
            if kind == "step":
                step_times.append((match.group(0), minutes))
            else:
                found.setdefault(kind, minutes)
    return TimeInfo(
        total_minutes=found.get("total"),
        prep_minutes=found.get("prep"),
        cook_minutes=found.get("cook"),
        step_times=tuple(step_times),
    )


def confidence_with_prior(base: float, source: str) -> float:
    """Weight a confidence by how reliable its source text usually is."""
    prior = {
        "description": constants.DESCRIPTION_SOURCE_PRIOR,
        "transcript": constants.TRANSCRIPT_SOURCE_PRIOR,
    }.get(source, 1.0)
    return max(0.0, min(1.0, base * prior))
