"""
Pytest configuration and shared fixtures for the economy tests.
"""

import random
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dreamworld.economy.config import reset_config
from dreamworld.economy.core import (
    Catalog,
    City,
    DreamTag,
    EventChoice,
    EventType,
    GameEvent,
    Ingredient,
    PlayerState,
    Rarity,
    Recipe,
)

PROJECT_ROOT = project_root
CATALOG_DIR = project_root / "data" / "catalog"
CONFIG_PATH = project_root / "config" / "economy_defaults.yaml"


# =============================================================================
# RNG STUBS
# =============================================================================

class StubRandom(random.Random):
    """
    RNG whose random() returns scripted values in order.

    Once the script runs out the last value repeats.
    """

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)
        self.calls = 0

    def random(self):
        self.calls += 1
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


# =============================================================================
# TEST DATA
# =============================================================================

def create_test_ingredient(ingredient_id, name, rarity=Rarity.COMMON, base_value="10", weight=1, tags=None):
    return Ingredient(
        ingredient_id=ingredient_id,
        name=name,
        rarity=rarity,
        base_value=Decimal(base_value),
        weight=weight,
        tags=frozenset(tags if tags is not None else {DreamTag.MYSTICAL, DreamTag.ETHEREAL}),
        description=f"Test ingredient: {name}",
    )


def create_test_catalog():
    """
    Small catalog used across the tests.

    ing1..ing5 span every rarity. recipe1 {ing1, ing2} starts undiscovered.
    city1 is free to stay in, city2 is one paid day away, city3 needs 100
    reputation.
    """
    ingredients = [
        create_test_ingredient("ing1", "Starlight Essence", Rarity.COMMON, "10", 1),
        create_test_ingredient("ing2", "Moonstone Shard", Rarity.UNCOMMON, "25", 2),
        create_test_ingredient("ing3", "Phoenix Feather", Rarity.RARE, "50", 3),
        create_test_ingredient("ing4", "Dragon Scale", Rarity.EPIC, "100", 5),
        create_test_ingredient("ing5", "Void Crystal", Rarity.LEGENDARY, "250", 10),
    ]

    recipes = [
        Recipe(
            recipe_id="recipe1",
            name="Basic Dream",
            rarity=Rarity.COMMON,
            required_ingredients=frozenset({"ing1", "ing2"}),
            value_multiplier=Decimal("2.0"),
            alignment="serene",
            discovered=False,
            tags=[DreamTag.SERENE],
        ),
        Recipe(
            recipe_id="recipe2",
            name="Mystic Vision",
            rarity=Rarity.UNCOMMON,
            required_ingredients=frozenset({"ing2", "ing3"}),
            value_multiplier=Decimal("2.0"),
            discovered=True,
        ),
        Recipe(
            recipe_id="recipe3",
            name="Epic Dream",
            rarity=Rarity.EPIC,
            required_ingredients=frozenset({"ing3", "ing4"}),
            value_multiplier=Decimal("2.0"),
            discovered=True,
        ),
    ]

    cities = [
        City(
            city_id="city1",
            name="Crystal Spire",
            tag_modifiers={
                DreamTag.MYSTICAL: Decimal("1.2"),
                DreamTag.ETHEREAL: Decimal("1.1"),
                DreamTag.DARK: Decimal("0.9"),
            },
            event_pool=["event1", "event2"],
        ),
        City(
            city_id="city2",
            name="Shadow Market",
            event_pool=["event1"],
            travel_cost=100,
            travel_days=1,
        ),
        City(
            city_id="city3",
            name="Moonlight Bay",
            travel_cost=200,
            travel_days=2,
            required_reputation=100,
        ),
    ]

    events = [
        GameEvent(
            event_id="event1",
            name="Market Boom",
            event_type=EventType.MARKET,
            probability=0.5,
            duration=3,
            price_modifiers={"ing1": Decimal("1.5")},
        ),
        GameEvent(
            event_id="event2",
            name="Strange Encounter",
            event_type=EventType.RANDOM,
            probability=0.5,
            duration=2,
            reputation_effect=5,
            choices=[
                EventChoice(
                    choice_id="accept",
                    text="Accept",
                    coins_cost=50,
                    reputation_effect=3,
                    item_rewards={"ing1": 2},
                    result_text="You accept the offer.",
                ),
                EventChoice(choice_id="decline", text="Decline"),
            ],
        ),
        GameEvent(
            event_id="event3",
            name="Lucky Find",
            event_type=EventType.OPPORTUNITY,
            probability=1.0,
            duration=1,
        ),
    ]

    return Catalog(
        ingredients={i.ingredient_id: i for i in ingredients},
        recipes={r.recipe_id: r for r in recipes},
        cities={c.city_id: c for c in cities},
        events={e.event_id: e for e in events},
    )


def create_test_player(coins=1000, city_id="city1", max_weight=100):
    return PlayerState(coins=coins, current_city_id=city_id, max_weight=max_weight)


def give(catalog, state, ingredient_id, quantity):
    """Put ingredients straight into inventory, weight included."""
    state.add_to_inventory(catalog.ingredients[ingredient_id], quantity)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def default_config():
    """Every test starts and ends on the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def catalog():
    return create_test_catalog()


@pytest.fixture
def player():
    return create_test_player()


@pytest.fixture
def quiet_rng():
    """RNG that never rolls under any probability below 1."""
    return StubRandom([0.999])
