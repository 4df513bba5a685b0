"""
Tests for catalog record validation.

See dreamworld/economy/validation.py for implementation.
"""

import pytest

from conftest import CATALOG_DIR
from dreamworld.economy.core import DreamTag, EventType, Rarity
from dreamworld.economy.persistence import load_catalog
from dreamworld.economy.validation import (
    CatalogValidationError,
    InvalidValueError,
    MissingFieldError,
    find_dangling_references,
    parse_event_type,
    parse_rarity,
    parse_tag,
    require_field,
    validate_probability,
    validate_required_ingredients,
)


def test_parse_rarity_by_name_or_number():
    assert parse_rarity("rare") == Rarity.RARE
    assert parse_rarity("LEGENDARY") == Rarity.LEGENDARY
    assert parse_rarity(2) == Rarity.UNCOMMON


@pytest.mark.parametrize("value", ["mythic", 0, 6])
def test_parse_rarity_rejects_unknown(value):
    with pytest.raises(InvalidValueError, match="Unknown rarity"):
        parse_rarity(value)


def test_parse_tag_is_case_insensitive():
    assert parse_tag("Celestial") == DreamTag.CELESTIAL

    with pytest.raises(InvalidValueError, match="Unknown dream tag"):
        parse_tag("spicy")


def test_parse_event_type():
    assert parse_event_type("raid") == EventType.RAID

    with pytest.raises(InvalidValueError):
        parse_event_type("personal")


def test_require_field():
    assert require_field({"id": "x", "name": "X"}, "name", "Ingredient") == "X"

    with pytest.raises(MissingFieldError, match="Ingredient 'x' is missing required field 'weight'"):
        require_field({"id": "x"}, "weight", "Ingredient")

    with pytest.raises(CatalogValidationError, match="must be a mapping"):
        require_field(["not", "a", "dict"], "id", "Ingredient")


def test_recipe_ingredient_count():
    validate_required_ingredients("r", ["a", "b"])
    validate_required_ingredients("r", ["a", "b", "c"])

    with pytest.raises(InvalidValueError, match="must be 2-3"):
        validate_required_ingredients("r", ["a"])
    with pytest.raises(InvalidValueError, match="must be 2-3"):
        validate_required_ingredients("r", ["a", "b", "c", "d"])
    with pytest.raises(InvalidValueError, match="must be 2-3"):
        validate_required_ingredients("r", ["a", "a", "a"])


def test_probability_range():
    validate_probability("e", 0.0)
    validate_probability("e", 1.0)

    with pytest.raises(InvalidValueError):
        validate_probability("e", -0.1)


def test_shipped_catalog_has_no_dangling_references():
    catalog = load_catalog(str(CATALOG_DIR))

    assert find_dangling_references(catalog) == []


def test_dangling_references_are_reported(catalog):
    catalog.cities["city1"].event_pool.append("ghost_event")

    problems = find_dangling_references(catalog)

    assert problems == ["City 'city1' pools unknown event 'ghost_event'"]
