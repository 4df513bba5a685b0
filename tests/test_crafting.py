"""
Tests for crafting: recipe matching, known and experimental crafting.

See dreamworld/economy/crafting.py for implementation.
"""

from decimal import Decimal

from conftest import StubRandom, create_test_player, give
from dreamworld.economy import crafting
from dreamworld.economy import results
from dreamworld.economy.core import Rarity, Reputation
from dreamworld.economy.results import ErrorKind


# =============================================================================
# KNOWN RECIPES
# =============================================================================

def test_craft_discovers_recipe(catalog, player, quiet_rng):
    """Crafting ing1 + ing2 discovers recipe1."""
    give(catalog, player, "ing1", 1)
    give(catalog, player, "ing2", 1)

    result = crafting.craft(catalog, player, ["ing1", "ing2"], quiet_rng)

    assert result.ok
    assert result.new_discovery
    assert result.recipe_id == "recipe1"
    assert "recipe1" in player.discovered_recipes
    assert not catalog.recipes["recipe1"].discovered
    assert player.reputation.lucidity == 5


def test_discovery_is_per_player(catalog, quiet_rng):
    """One player's discovery does not count as another's."""
    first = create_test_player()
    second = create_test_player()
    for player in (first, second):
        give(catalog, player, "ing1", 1)
        give(catalog, player, "ing2", 1)

    assert crafting.craft(catalog, first, ["ing1", "ing2"], quiet_rng).new_discovery
    result = crafting.craft(catalog, second, ["ing1", "ing2"], quiet_rng)

    assert result.new_discovery
    assert second.discovered_recipes == {"recipe1"}
    assert second.reputation.lucidity == 5
    newcomer = create_test_player()
    assert "recipe1" not in {r.recipe_id for r in crafting.discovered_recipes(catalog, newcomer)}


def test_craft_consumes_one_of_each(catalog, player, quiet_rng):
    give(catalog, player, "ing1", 3)
    give(catalog, player, "ing2", 2)
    weight_before = player.current_weight

    crafting.craft(catalog, player, ["ing1", "ing2"], quiet_rng)

    assert player.quantity_of("ing1") == 2
    assert player.quantity_of("ing2") == 1
    assert player.current_weight == weight_before - (1 + 2)


def test_crafted_dream_value(catalog, player, quiet_rng):
    """Value is the summed base values times the multiplier."""
    give(catalog, player, "ing1", 1)
    give(catalog, player, "ing2", 1)

    result = crafting.craft(catalog, player, ["ing2", "ing1"], quiet_rng)

    dream = result.crafted_dream
    assert dream.value == (Decimal("10") + Decimal("25")) * Decimal("2.0")
    assert dream.rarity == Rarity.COMMON
    assert dream.recipe_id == "recipe1"
    assert player.crafted_dreams == [dream]
    assert "Basic Dream" in dream.narrative_text


def test_second_craft_is_not_a_discovery(catalog, player, quiet_rng):
    give(catalog, player, "ing1", 2)
    give(catalog, player, "ing2", 2)

    crafting.craft(catalog, player, ["ing1", "ing2"], quiet_rng)
    result = crafting.craft(catalog, player, ["ing1", "ing2"], quiet_rng)

    assert result.ok
    assert not result.new_discovery
    assert player.reputation.lucidity == 5


def test_duplicate_ids_match_as_a_set(catalog, player, quiet_rng):
    """[ing1, ing1, ing2] matches recipe1 and uses one ing1."""
    give(catalog, player, "ing1", 2)
    give(catalog, player, "ing2", 1)

    result = crafting.craft(catalog, player, ["ing1", "ing1", "ing2"], quiet_rng)

    assert result.ok
    assert result.recipe_id == "recipe1"
    assert player.quantity_of("ing1") == 1
    assert player.quantity_of("ing2") == 0


def test_too_few_ingredients(catalog, player, quiet_rng):
    give(catalog, player, "ing1", 1)

    result = crafting.craft(catalog, player, ["ing1"], quiet_rng)

    assert not result.ok
    assert result.error == ErrorKind.VALIDATION
    assert result.reason == results.INVALID_INGREDIENT_COUNT
    assert player.quantity_of("ing1") == 1


def test_too_many_ingredients(catalog, player, quiet_rng):
    result = crafting.craft(catalog, player, ["ing1", "ing2", "ing3", "ing4"], quiet_rng)

    assert not result.ok
    assert result.reason == results.INVALID_INGREDIENT_COUNT


def test_missing_ingredients_changes_nothing(catalog, player, quiet_rng):
    give(catalog, player, "ing1", 1)

    result = crafting.craft(catalog, player, ["ing1", "ing2"], quiet_rng)

    assert not result.ok
    assert result.error == ErrorKind.INSUFFICIENT_RESOURCE
    assert result.reason == results.MISSING_INGREDIENTS
    assert player.quantity_of("ing1") == 1
    assert not result.state_changed
    assert player.discovered_recipes == set()


# =============================================================================
# EXPERIMENTAL
# =============================================================================

def test_experimental_success(catalog, player):
    """ing1 + ing3 match no recipe; a low roll succeeds."""
    give(catalog, player, "ing1", 1)
    give(catalog, player, "ing3", 1)

    result = crafting.craft(catalog, player, ["ing1", "ing3"], StubRandom([0.0]))

    assert result.ok
    dream = result.crafted_dream
    assert dream.recipe_id == ""
    assert dream.name == "Experimental Starlight-Phoenix Dream"
    assert dream.value == (Decimal("10") + Decimal("50")) * Decimal("1.2")
    assert dream.rarity == Rarity.UNCOMMON
    assert player.reputation.lucidity == 2
    assert player.inventory == {}


def test_experimental_failure_still_consumes(catalog, player):
    give(catalog, player, "ing1", 1)
    give(catalog, player, "ing3", 1)

    result = crafting.craft(catalog, player, ["ing1", "ing3"], StubRandom([0.99]))

    assert not result.ok
    assert result.reason == results.EXPERIMENT_FAILED
    assert result.state_changed
    assert result.narrative_text
    assert player.inventory == {}
    assert player.current_weight == 0
    assert player.crafted_dreams == []


def test_experimental_chance_grows_with_lucidity(player):
    assert crafting.experimental_success_chance(player) == 0.2

    player.reputation = Reputation(lucidity=100)
    assert abs(crafting.experimental_success_chance(player) - 0.3) < 1e-9


def test_experimental_chance_never_negative(player):
    player.reputation = Reputation(lucidity=-100)
    assert 0.0 <= crafting.experimental_success_chance(player) <= 1.0


# =============================================================================
# QUERIES AND CRAFT BY ID
# =============================================================================

def test_find_matching_recipe_ignores_order(catalog):
    assert crafting.find_matching_recipe(catalog, ["ing3", "ing2"]).recipe_id == "recipe2"
    assert crafting.find_matching_recipe(catalog, ["ing1", "ing5"]) is None


def test_craft_recipe_by_id(catalog, player):
    give(catalog, player, "ing3", 1)
    give(catalog, player, "ing4", 1)

    assert crafting.can_craft_recipe(catalog, player, "recipe3")
    result = crafting.craft_recipe(catalog, player, "recipe3")

    assert result.ok
    assert result.crafted_dream.rarity == Rarity.EPIC
    assert not crafting.can_craft_recipe(catalog, player, "recipe3")


def test_craft_recipe_unknown(catalog, player):
    result = crafting.craft_recipe(catalog, player, "recipe99")

    assert not result.ok
    assert result.error == ErrorKind.NOT_FOUND


def test_craft_recipe_missing_ingredients(catalog, player):
    give(catalog, player, "ing3", 1)

    result = crafting.craft_recipe(catalog, player, "recipe3")

    assert not result.ok
    assert result.reason == results.MISSING_INGREDIENTS
    assert player.quantity_of("ing3") == 1


def test_discovered_and_craftable_recipes(catalog, player):
    discovered = {r.recipe_id for r in crafting.discovered_recipes(catalog, player)}
    assert discovered == {"recipe2", "recipe3"}

    give(catalog, player, "ing4", 1)
    craftable = [r.recipe_id for r in crafting.craftable_recipes(catalog, player)]
    assert craftable == ["recipe3"]
