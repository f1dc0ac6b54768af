import pytest

from recipe_extract.normalize import (
    extract_time_info,
    normalize_ingredient_name,
    normalize_quantity,
    normalize_unit,
    parse_duration_minutes,
    parse_ingredient_line,
    parse_iso_duration,
    parse_timestamp,
)
from recipe_extract.normalize.units import confidence_with_prior

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1/3", "1/3"),
        ("1 1/2", "1 1/2"),
        ("0.333", "1/3"),
        ("0.66", "2/3"),
        ("1.5", "1 1/2"),
        ("2.0", "2"),
        (3, "3"),
        ("0.4", "0.4"),
        ("½", "1/2"),
        ("1½", "1 1/2"),
        ("To taste", "to taste"),
        ("some", None),
        ("", None),
        (None, None),
    ],
)
def test_quantities_stay_text(raw, expected):
    assert normalize_quantity(raw) == expected


def test_unit_aliases():
    assert normalize_unit("Tbsp") == "tablespoon"
    assert normalize_unit("TSP.") == "teaspoon"
    assert normalize_unit("cups") == "cup"
    assert normalize_unit("smidgen") is None
    assert normalize_unit(None) is None


@pytest.mark.parametrize(
    ("line", "quantity", "unit", "name"),
    [
        ("1/3 cup sugar", "1/3", "cup", "sugar"),
        ("1 1/2 cups flour", "1 1/2", "cup", "flour"),
        ("2 tbsp. butter", "2", "tablespoon", "butter"),
        ("½ tsp salt", "1/2", "teaspoon", "salt"),
        ("3 eggs", "3", None, "eggs"),
        ("Salt and pepper", None, None, "Salt and pepper"),
    ],
)
def test_parse_ingredient_line(line, quantity, unit, name):
    parsed = parse_ingredient_line(line)

    assert (parsed.quantity, parsed.unit, parsed.name) == (quantity, unit, name)


def test_ingredient_name_moves_preparation_aside():
    assert normalize_ingredient_name("2 cups chopped onions") == ("onion", "chopped")
    assert normalize_ingredient_name("Extra virgin olive oil") == (
        "olive oil",
        "extra virgin",
    )
    assert normalize_ingredient_name("basil") == ("basil", None)


def test_timestamps():
    assert parse_timestamp("1:05") == 65
    assert parse_timestamp("01:02:03") == 3723
    assert parse_timestamp("00:00:15") == 15
    assert parse_timestamp("abc") is None
    assert parse_timestamp("1:2:3:4") is None
    assert parse_timestamp(None) is None


def test_iso_durations():
    assert parse_iso_duration("PT1H30M") == 5400
    assert parse_iso_duration("P1DT2H") == 93600
    assert parse_iso_duration("PT45S") == 45
    assert parse_iso_duration("PT") is None
    assert parse_iso_duration("") is None


@pytest.mark.parametrize(
    ("text", "minutes"),
    [
        ("PT1H30M", 90),
        ("1 hour 30 min", 90),
        ("2 hrs", 120),
        ("10 min", 10),
        ("45", 45),
        ("soon", None),
        (None, None),
    ],
)
def test_duration_minutes(text, minutes):
    assert parse_duration_minutes(text) == minutes


def test_time_info_from_free_text():
    info = extract_time_info(
        "Prep time is 15 minutes. Bake for 30 minutes until golden. Ready in 50 minutes."
    )

    assert info.prep_minutes == 15
    assert info.cook_minutes == 30
    assert info.total_minutes == 50
    assert ("for 30 minutes", 30) in info.step_times


def test_time_info_converts_hours():
    assert extract_time_info("Simmer for 2 hours").cook_minutes == 120
    assert extract_time_info("Nothing timed here").total_minutes is None


def test_source_priors():
    assert confidence_with_prior(1.0, "description") == pytest.approx(0.9)
    assert confidence_with_prior(0.5, "transcript") == pytest.approx(0.35)
    assert confidence_with_prior(2.0, "web") == 1.0
