"""
Validation for catalog seed records.

Ensures:
1. Required fields are present and well-typed
2. Recipes require 2-3 distinct ingredients
3. Event probabilities lie in [0, 1] and durations are positive
4. Cross-references (recipe ingredients, city event pools) resolve

Record-level checks raise; the catalog loader catches them per record so a
single bad entry is skipped rather than losing the whole file.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from dreamworld.economy.core import Catalog, DreamTag, EventType, Rarity


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class CatalogValidationError(Exception):
    """Raised when a catalog record fails validation."""
    pass


class MissingFieldError(CatalogValidationError):
    """Raised when a record lacks a required field."""
    pass


class InvalidValueError(CatalogValidationError):
    """Raised when a field holds a value outside its allowed range."""
    pass


# =============================================================================
# FIELD HELPERS
# =============================================================================

def require_field(record: Dict[str, Any], key: str, kind: str) -> Any:
    if not isinstance(record, dict):
        raise CatalogValidationError(f"{kind} record must be a mapping, got {type(record).__name__}")
    if key not in record or record[key] is None:
        label = record.get("id", "<no id>")
        raise MissingFieldError(f"{kind} '{label}' is missing required field '{key}'")
    return record[key]


def parse_decimal(value: Any, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidValueError(f"Field '{field_name}' is not a number: {value!r}") from e


def parse_rarity(value: Any) -> Rarity:
    """Accept a rarity name ("rare") or its ordinal (3)."""
    if isinstance(value, int):
        try:
            return Rarity(value)
        except ValueError as e:
            raise InvalidValueError(f"Unknown rarity: {value!r}") from e
    try:
        return Rarity[str(value).upper()]
    except KeyError as e:
        raise InvalidValueError(f"Unknown rarity: {value!r}") from e


def parse_tag(value: Any) -> DreamTag:
    try:
        return DreamTag(str(value).lower())
    except ValueError as e:
        raise InvalidValueError(f"Unknown dream tag: {value!r}") from e


def parse_event_type(value: Any) -> EventType:
    try:
        return EventType(str(value).lower())
    except ValueError as e:
        raise InvalidValueError(f"Unknown event type: {value!r}") from e


# =============================================================================
# RECORD CHECKS
# =============================================================================

def validate_required_ingredients(recipe_id: str, ingredient_ids: List[str]) -> None:
    """
    Validate a recipe's ingredient list.

    Raises:
        InvalidValueError: If the distinct count is outside [2, 3]
    """
    distinct = set(ingredient_ids)
    if not 2 <= len(distinct) <= 3:
        raise InvalidValueError(
            f"Recipe '{recipe_id}' requires {len(distinct)} distinct ingredients; "
            f"must be 2-3"
        )


def validate_probability(event_id: str, probability: float) -> None:
    if not 0.0 <= probability <= 1.0:
        raise InvalidValueError(
            f"Event '{event_id}' probability {probability} is outside [0, 1]"
        )


def validate_positive(kind: str, record_id: str, field_name: str, value) -> None:
    if value <= 0:
        raise InvalidValueError(f"{kind} '{record_id}' field '{field_name}' must be positive, got {value}")


def validate_non_negative(kind: str, record_id: str, field_name: str, value) -> None:
    if value < 0:
        raise InvalidValueError(f"{kind} '{record_id}' field '{field_name}' must be >= 0, got {value}")


# =============================================================================
# CROSS-REFERENCE CHECKS
# =============================================================================

def find_dangling_references(catalog: Catalog) -> List[str]:
    """
    List references that point at ids absent from the catalog.

    Dangling references are tolerated at runtime (they simply never match),
    so this reports rather than raises.

    Returns:
        Human-readable problem descriptions (empty when consistent)
    """
    problems = []

    for recipe in catalog.recipes.values():
        for ingredient_id in sorted(recipe.required_ingredients):
            if ingredient_id not in catalog.ingredients:
                problems.append(
                    f"Recipe '{recipe.recipe_id}' requires unknown ingredient '{ingredient_id}'"
                )

    for city in catalog.cities.values():
        for event_id in city.event_pool:
            if event_id not in catalog.events:
                problems.append(f"City '{city.city_id}' pools unknown event '{event_id}'")

    for event in catalog.events.values():
        for ingredient_id in event.price_modifiers:
            if ingredient_id not in catalog.ingredients:
                problems.append(
                    f"Event '{event.event_id}' modifies unknown ingredient '{ingredient_id}'"
                )
        for choice in event.choices or []:
            for ingredient_id in (choice.item_rewards or {}):
                if ingredient_id not in catalog.ingredients:
                    problems.append(
                        f"Event '{event.event_id}' choice '{choice.choice_id}' "
                        f"rewards unknown ingredient '{ingredient_id}'"
                    )

    return problems
