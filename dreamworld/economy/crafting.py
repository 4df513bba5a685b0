"""
Crafting resolver: recipe matching, known and experimental crafting.

Recipe matching uses set equality of ingredient ids. Duplicate ids in a
request collapse to one membership check and consume one unit.
"""

import logging
import random
from decimal import Decimal
from typing import List, Optional, Sequence

from dreamworld.economy.config import get_config
from dreamworld.economy.core import Catalog, CraftedDream, Ingredient, PlayerState, Rarity, Recipe
from dreamworld.economy.reputation import update_reputation
from dreamworld.economy import results
from dreamworld.economy.results import CraftResult, ErrorKind

logger = logging.getLogger(__name__)

FAILED_EXPERIMENT_MESSAGE = "The ingredients dissolved into meaningless fragments. Experiment failed."
FAILED_EXPERIMENT_NARRATIVE = (
    "The dream ingredients refused to coalesce, their essences scattering like morning mist."
)


def _distinct(ingredient_ids: Sequence[str]) -> List[str]:
    """Drop repeated ids, keeping first-seen order."""
    seen = set()
    ordered = []
    for ingredient_id in ingredient_ids:
        if ingredient_id not in seen:
            seen.add(ingredient_id)
            ordered.append(ingredient_id)
    return ordered


def is_discovered(recipe: Recipe, state: PlayerState) -> bool:
    """Seeded as discovered, or discovered by this player."""
    return recipe.discovered or recipe.recipe_id in state.discovered_recipes


def find_matching_recipe(catalog: Catalog, ingredient_ids: Sequence[str]) -> Optional[Recipe]:
    """
    Find the recipe whose required ingredients are set-equal to the request.

    Both sides are deduplicated before comparing.
    """
    wanted = frozenset(ingredient_ids)
    for recipe in catalog.recipes.values():
        if frozenset(recipe.required_ingredients) == wanted:
            return recipe
    return None


def _consume(catalog: Catalog, state: PlayerState, ingredient_ids: Sequence[str]) -> List[Ingredient]:
    """Remove one unit of each id. Ids were checked against inventory already."""
    consumed = []
    for ingredient_id in ingredient_ids:
        ingredient = catalog.ingredient(ingredient_id)
        if ingredient is None:
            # Held but no longer in the catalog: drop the unit, weight unknown
            state.inventory[ingredient_id] -= 1
            if state.inventory[ingredient_id] <= 0:
                del state.inventory[ingredient_id]
            logger.warning("Consumed uncatalogued ingredient %s", ingredient_id)
            continue
        state.remove_from_inventory(ingredient, 1)
        consumed.append(ingredient)
    return consumed


def generate_narrative(recipe: Recipe, ingredients: List[Ingredient]) -> str:
    names = ", ".join(i.name for i in ingredients)
    essence = recipe.tags[0].value if recipe.tags else "dreams"
    alignment = recipe.alignment or "strange"
    return (
        f"By combining {names}, you've woven {recipe.name}. "
        f"This {alignment} dream carries the essence of {essence}."
    )


def generate_experimental_narrative(ingredients: List[Ingredient]) -> str:
    primary = ingredients[0].name if ingredients else "unknown essence"
    return (
        f"An experimental fusion of dream fragments. The {primary} dominates the composition, "
        f"creating an unpredictable yet stable dream construct."
    )


def experimental_success_chance(state: PlayerState) -> float:
    """Base chance plus lucidity / divisor, kept within [0, 1]."""
    config = get_config().crafting
    chance = config.experimental_base_chance + state.reputation.lucidity / config.lucidity_chance_divisor
    return max(0.0, min(1.0, chance))


# =============================================================================
# CRAFT PATHS
# =============================================================================

def craft_known_recipe(
    catalog: Catalog,
    state: PlayerState,
    recipe: Recipe,
    ingredient_ids: Sequence[str]
) -> CraftResult:
    """
    Craft a matched recipe.

    Consumes one unit of each ingredient; value is the summed base values
    times the recipe multiplier. First discovery marks the recipe and
    grants lucidity.
    """
    ids = _distinct(ingredient_ids)
    ingredients = _consume(catalog, state, ids)

    base_total = sum((i.base_value for i in ingredients), Decimal("0"))
    dream = CraftedDream(
        name=recipe.name,
        value=base_total * recipe.value_multiplier,
        rarity=recipe.rarity,
        recipe_id=recipe.recipe_id,
        narrative_text=recipe.narrative_text or generate_narrative(recipe, ingredients),
        crafted_day=state.current_day,
    )
    state.crafted_dreams.append(dream)

    new_discovery = not is_discovered(recipe, state)
    if new_discovery:
        state.discovered_recipes.add(recipe.recipe_id)
        update_reputation(state, lucidity=get_config().reputation.discovery_lucidity_bonus)
        logger.debug("Recipe discovered: %s", recipe.recipe_id)

    message = (
        f"Discovery! You've created: {recipe.name}"
        if new_discovery
        else f"Successfully crafted: {recipe.name}"
    )
    return CraftResult.success(
        message,
        recipe_id=recipe.recipe_id,
        recipe_name=recipe.name,
        new_discovery=new_discovery,
        crafted_dream=dream,
        narrative_text=dream.narrative_text,
        consumed=ids,
    )


def craft_experimental(
    catalog: Catalog,
    state: PlayerState,
    ingredient_ids: Sequence[str],
    rng: random.Random
) -> CraftResult:
    """
    Combine ingredients that match no recipe.

    Ingredients are consumed whether or not the experiment works.
    """
    config = get_config()
    ids = _distinct(ingredient_ids)
    chance = experimental_success_chance(state)
    roll = rng.random()

    ingredients = _consume(catalog, state, ids)

    if roll > chance:
        return CraftResult.failure(
            ErrorKind.VALIDATION,
            FAILED_EXPERIMENT_MESSAGE,
            results.EXPERIMENT_FAILED,
            narrative_text=FAILED_EXPERIMENT_NARRATIVE,
            consumed=ids,
            state_changed=True,
        )

    base_total = sum((i.base_value for i in ingredients), Decimal("0"))
    if ingredients:
        mean_rarity = sum(int(i.rarity) for i in ingredients) / len(ingredients)
        rarity = Rarity(max(int(Rarity.COMMON), min(int(Rarity.LEGENDARY), round(mean_rarity))))
    else:
        rarity = Rarity.COMMON

    name_tokens = [i.name.split(" ")[0] for i in ingredients[:2]]
    dream = CraftedDream(
        name=f"Experimental {'-'.join(name_tokens)} Dream",
        value=base_total * config.crafting.experimental_value_multiplier,
        rarity=rarity,
        recipe_id="",
        narrative_text=generate_experimental_narrative(ingredients),
        crafted_day=state.current_day,
    )
    state.crafted_dreams.append(dream)

    update_reputation(state, lucidity=config.reputation.experimental_lucidity_bonus)

    return CraftResult.success(
        f"Experimental success! Created: {dream.name}",
        recipe_name=dream.name,
        crafted_dream=dream,
        narrative_text=dream.narrative_text,
        consumed=ids,
    )


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

def _missing(state: PlayerState, ingredient_ids: Sequence[str]) -> List[str]:
    return [i for i in ingredient_ids if state.quantity_of(i) < 1]


def craft(
    catalog: Catalog,
    state: PlayerState,
    ingredient_ids: Sequence[str],
    rng: random.Random
) -> CraftResult:
    """
    Craft from 2-3 held ingredients.

    Uses the matching recipe if there is one, otherwise attempts an
    experimental dream.
    """
    config = get_config().crafting
    ingredient_ids = list(ingredient_ids or [])

    if not config.min_ingredients <= len(ingredient_ids) <= config.max_ingredients:
        return CraftResult.failure(
            ErrorKind.VALIDATION,
            f"Must use {config.min_ingredients}-{config.max_ingredients} ingredients to craft a dream",
            results.INVALID_INGREDIENT_COUNT,
        )

    missing = _missing(state, _distinct(ingredient_ids))
    if missing:
        return CraftResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            "Missing required ingredients",
            results.MISSING_INGREDIENTS,
        )

    recipe = find_matching_recipe(catalog, ingredient_ids)
    if recipe is not None:
        return craft_known_recipe(catalog, state, recipe, ingredient_ids)
    return craft_experimental(catalog, state, ingredient_ids, rng)


def can_craft_recipe(catalog: Catalog, state: PlayerState, recipe_id: str) -> bool:
    """True if the recipe exists and every required ingredient is held."""
    recipe = catalog.recipe(recipe_id)
    if recipe is None:
        return False
    return not _missing(state, sorted(recipe.required_ingredients))


def craft_recipe(catalog: Catalog, state: PlayerState, recipe_id: str) -> CraftResult:
    """Craft a specific recipe by id."""
    recipe = catalog.recipe(recipe_id)
    if recipe is None:
        return CraftResult.failure(ErrorKind.NOT_FOUND, "Recipe not found", results.UNKNOWN_RECIPE)

    if not can_craft_recipe(catalog, state, recipe_id):
        return CraftResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            "Missing required ingredients",
            results.MISSING_INGREDIENTS,
            recipe_id=recipe_id,
            recipe_name=recipe.name,
        )

    return craft_known_recipe(catalog, state, recipe, sorted(recipe.required_ingredients))


def discovered_recipes(catalog: Catalog, state: PlayerState) -> List[Recipe]:
    return [r for r in catalog.recipes.values() if is_discovered(r, state)]


def craftable_recipes(catalog: Catalog, state: PlayerState) -> List[Recipe]:
    """
    Crafting suggestions: discovered recipes where at least one required
    ingredient is held.
    """
    return [
        recipe
        for recipe in discovered_recipes(catalog, state)
        if any(state.quantity_of(i) > 0 for i in recipe.required_ingredients)
    ]
