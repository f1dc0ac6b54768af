"""Schema.org ``Recipe`` extraction from JSON-LD and microdata."""

from collections.abc import Iterable
import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag
import extruct

from recipe_extract import constants
from recipe_extract.normalize.units import parse_duration_minutes

from .draft import DraftStep, RecipeDraft
from .text import normalize_text, resolve_image_url

logger = logging.getLogger(__name__)

_FIRST_INT = re.compile(r"\d+")


def _flatten(node: Any) -> list[dict[str, Any]]:
    if isinstance(node, list):
        return [item for child in node for item in _flatten(child)]
    if isinstance(node, dict):
        if "@graph" in node:
            return _flatten(node["@graph"])
        return [node]
    return []


def _is_recipe(node: dict[str, Any]) -> bool:
    kind = node.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(str(k).lower() == "recipe" for k in kinds if k)


def _first_int(value: Any) -> int | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    match = _FIRST_INT.search(str(value))
    return int(match.group()) if match else None


def _image_src(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    return value if isinstance(value, str) else None


def _text_list(values: Any) -> list[str]:
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        return []
    return [t for v in values if isinstance(v, str) and (t := normalize_text(v))]


def _expand_instructions(node: Any) -> list[Any]:
    """Flatten ``HowToSection``/``itemListElement`` nesting into step nodes."""
    if not node:
        return []
    if isinstance(node, str):
        return [node]
    if isinstance(node, list):
        return [step for child in node for step in _expand_instructions(child)]
    if isinstance(node, dict):
        if node.get("itemListElement"):
            return _expand_instructions(node["itemListElement"])
        if node.get("text") or node.get("name"):
            return [node]
    return []


def _step_from_node(node: Any, base_url: str) -> DraftStep | None:
    if isinstance(node, str):
        text = normalize_text(node)
        return DraftStep(text=text) if text else None
    text = normalize_text(str(node.get("text") or node.get("name") or ""))
    if not text:
        return None
    image = _image_src(node.get("image"))
    if image is None and isinstance(node.get("associatedMedia"), dict):
        image = node["associatedMedia"].get("contentUrl")
    return DraftStep(text=text, image=resolve_image_url(image, base_url) if image else None)


def _person_name(value: Any, nodes_by_id: dict[str, dict[str, Any]]) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str):
        return normalize_text(value) or None
    if not isinstance(value, dict):
        return None
    resolved = nodes_by_id.get(value.get("@id", "")) if value.get("@id") else None
    for candidate in (resolved or {}, value):
        name = candidate.get("name") or " ".join(
            p for p in (candidate.get("givenName"), candidate.get("familyName")) if p
        )
        if isinstance(name, str) and name.strip():
            return normalize_text(name)
    return None


def recipe_from_json_ld(
    recipe: dict[str, Any], base_url: str, nodes: Iterable[dict[str, Any]] = ()
) -> RecipeDraft:
    """Map one schema.org ``Recipe`` node onto a draft."""
    nodes_by_id = {n["@id"]: n for n in nodes if isinstance(n.get("@id"), str)}
    draft = RecipeDraft(
        title=normalize_text(str(recipe.get("name") or "")) or None,
        description=normalize_text(str(recipe.get("description") or "")) or None,
        servings=_first_int(recipe.get("recipeYield")),
    )
    if image := _image_src(recipe.get("image")):
        draft.image = resolve_image_url(image, base_url)

    draft.ingredients = _text_list(recipe.get("recipeIngredient") or recipe.get("ingredients"))
    if draft.ingredients:
        draft.ingredient_confidence = constants.JSON_LD_CONFIDENCE

    steps = [
        step
        for node in _expand_instructions(recipe.get("recipeInstructions"))
        if (step := _step_from_node(node, base_url))
    ]
    if steps:
        draft.steps = steps
        draft.step_confidence = constants.JSON_LD_CONFIDENCE

    draft.author = _person_name(recipe.get("author"), nodes_by_id) or _person_name(
        recipe.get("creator"), nodes_by_id
    )

    draft.prep_time = parse_duration_minutes(_str_or_none(recipe.get("prepTime")))
    draft.cook_time = parse_duration_minutes(_str_or_none(recipe.get("cookTime")))
    draft.total_time = parse_duration_minutes(_str_or_none(recipe.get("totalTime")))
    if draft.has_times:
        draft.time_confidence = constants.STRUCTURED_TIMES_CONFIDENCE

    if isinstance(recipe.get("difficulty"), str):
        draft.difficulty = normalize_text(recipe["difficulty"]) or None

    for key in ("recipeTips", "tips", "notes"):
        if tips := _text_list(recipe.get(key)):
            draft.tips = tips[: constants.MAX_TIPS]
            break
    return draft


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def extract_json_ld(html: str, base_url: str) -> RecipeDraft | None:
    """Draft from the first JSON-LD node typed ``Recipe``, if any."""
    if not html:
        return None
    data = extruct.extract(html, base_url=base_url, syntaxes=["json-ld"], errors="log")
    nodes = _flatten(data.get("json-ld", []))
    recipe = next((n for n in nodes if _is_recipe(n)), None)
    if recipe is None:
        return None
    logger.debug("Found JSON-LD Recipe node on %s", base_url)
    return recipe_from_json_ld(recipe, base_url, nodes)


def _prop(root: Tag, name: str) -> Tag | None:
    return root.find(attrs={"itemprop": name})


def _prop_value(tag: Tag | None) -> str | None:
    if tag is None:
        return None
    value = tag.get("content") or tag.get("datetime") or tag.get_text(" ")
    return normalize_text(str(value)) or None


def recipe_from_microdata(root: Tag, base_url: str) -> RecipeDraft:
    """Map an ``itemtype=...Recipe`` element onto a draft."""
    draft = RecipeDraft(title=_prop_value(_prop(root, "name")))

    if image_tag := _prop(root, "image"):
        src = image_tag.get("content") or image_tag.get("src")
        draft.image = resolve_image_url(str(src), base_url) if src else None

    draft.author = _prop_value(_prop(root, "author"))
    draft.description = _prop_value(_prop(root, "description"))
    draft.servings = _first_int(_prop_value(_prop(root, "recipeYield")))

    ingredients = root.find_all(attrs={"itemprop": ["recipeIngredient", "ingredients"]})
    draft.ingredients = [t for el in ingredients if (t := normalize_text(el.get_text(" ")))]
    if draft.ingredients:
        draft.ingredient_confidence = constants.MICRODATA_CONFIDENCE

    for el in root.find_all(attrs={"itemprop": "recipeInstructions"}):
        text = normalize_text(el.get_text(" "))
        if not text:
            continue
        img = el.find("img")
        image = resolve_image_url(str(img.get("src")), base_url) if img and img.get("src") else None
        draft.steps.append(DraftStep(text=text, image=image))
    if draft.steps:
        draft.step_confidence = constants.MICRODATA_CONFIDENCE

    draft.prep_time = parse_duration_minutes(_prop_value(_prop(root, "prepTime")))
    draft.cook_time = parse_duration_minutes(_prop_value(_prop(root, "cookTime")))
    draft.total_time = parse_duration_minutes(_prop_value(_prop(root, "totalTime")))
    if draft.has_times:
        draft.time_confidence = constants.MICRODATA_TIMES_CONFIDENCE

    tips = root.find_all(attrs={"itemprop": ["recipeTips", "tips", "notes"]})
    draft.tips = [t for el in tips if (t := normalize_text(el.get_text(" ")))][
        : constants.MAX_TIPS
    ]
    return draft


def extract_microdata(html: str, base_url: str) -> RecipeDraft | None:
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    root = soup.find(attrs={"itemtype": re.compile("Recipe")})
    if root is None:
        return None
    logger.debug("Found microdata Recipe element on %s", base_url)
    return recipe_from_microdata(root, base_url)
