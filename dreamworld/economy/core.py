"""
Core data structures for the dream market economy.

Catalog entities (Ingredient, Recipe, City, GameEvent) are loaded once and
shared. PlayerState is the single mutable aggregate for one save slot.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Optional, Set
import time
import uuid


class Rarity(IntEnum):
    """Ordinal quality tier. Integer values are used for averaging."""
    COMMON = 1
    UNCOMMON = 2
    RARE = 3
    EPIC = 4
    LEGENDARY = 5


class DreamTag(Enum):
    """Semantic categories used for city and event price modifiers."""
    JOYFUL = "joyful"
    MELANCHOLIC = "melancholic"
    FEARFUL = "fearful"
    NOSTALGIC = "nostalgic"
    MYSTICAL = "mystical"
    ETHEREAL = "ethereal"
    DARK = "dark"
    LUCID = "lucid"
    CHAOTIC = "chaotic"
    SERENE = "serene"
    PRIMAL = "primal"
    CELESTIAL = "celestial"


class EventType(Enum):
    MARKET = "market"            # Affects prices
    RANDOM = "random"            # Random encounter
    STORY = "story"              # Narrative progression
    RAID = "raid"                # Police/danger
    OPPORTUNITY = "opportunity"  # Special deal
    DISCOVERY = "discovery"      # New recipe/city
    REPUTATION = "reputation"    # Affects standing


# =============================================================================
# CATALOG
# =============================================================================

@dataclass(frozen=True)
class Ingredient:
    """A tradeable commodity. Immutable after catalog load."""
    ingredient_id: str
    name: str
    rarity: Rarity
    base_value: Decimal
    weight: int
    tags: FrozenSet[DreamTag] = frozenset()
    volatile: bool = False
    description: str = ""
    color: str = "#8B5CF6"
    icon_id: str = ""


@dataclass
class Recipe:
    """
    A combination of 2-3 ingredient ids that yields a crafted dream.

    `discovered` is the seeded default. Player discoveries live in
    PlayerState.discovered_recipes; the catalog is never changed after load.
    """
    recipe_id: str
    name: str
    rarity: Rarity
    required_ingredients: FrozenSet[str]
    value_multiplier: Decimal
    alignment: str = ""
    discovered: bool = False
    tags: List[DreamTag] = field(default_factory=list)
    narrative_text: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class City:
    """A market location with tag affinities and an event pool."""
    city_id: str
    name: str
    tag_modifiers: Dict[DreamTag, Decimal] = field(default_factory=dict)
    event_pool: List[str] = field(default_factory=list)
    travel_cost: int = 0
    travel_days: int = 0
    required_reputation: int = 0
    description: str = ""


@dataclass(frozen=True)
class EventChoice:
    """A player decision attached to an event."""
    choice_id: str
    text: str
    coins_cost: int = 0
    reputation_effect: int = 0
    item_rewards: Optional[Dict[str, int]] = None
    result_text: Optional[str] = None


@dataclass(frozen=True)
class GameEvent:
    """
    A timed modifier. `event_type` discriminates the payload; only some
    events carry `choices`.
    """
    event_id: str
    name: str
    event_type: EventType
    probability: float
    duration: int
    price_modifiers: Dict[str, Decimal] = field(default_factory=dict)
    tag_modifiers: Dict[DreamTag, Decimal] = field(default_factory=dict)
    reputation_effect: int = 0
    narrative_text: str = ""
    description: str = ""
    choices: Optional[List[EventChoice]] = None

    def choice(self, choice_id: str) -> Optional[EventChoice]:
        for option in self.choices or []:
            if option.choice_id == choice_id:
                return option
        return None


@dataclass
class Catalog:
    """Reference data keyed by id. Read-only after load."""
    ingredients: Dict[str, Ingredient] = field(default_factory=dict)
    recipes: Dict[str, Recipe] = field(default_factory=dict)
    cities: Dict[str, City] = field(default_factory=dict)
    events: Dict[str, GameEvent] = field(default_factory=dict)

    def ingredient(self, ingredient_id: str) -> Optional[Ingredient]:
        return self.ingredients.get(ingredient_id)

    def recipe(self, recipe_id: str) -> Optional[Recipe]:
        return self.recipes.get(recipe_id)

    def city(self, city_id: str) -> Optional[City]:
        return self.cities.get(city_id)

    def event(self, event_id: str) -> Optional[GameEvent]:
        return self.events.get(event_id)

    def is_empty(self) -> bool:
        return not (self.ingredients or self.recipes or self.cities or self.events)


# =============================================================================
# PLAYER STATE
# =============================================================================

@dataclass
class ActiveEvent:
    """A live instance of a GameEvent counting down to expiry."""
    event_id: str
    city_id: str
    days_remaining: int
    started_day: int = 1


@dataclass
class CraftedDream:
    """A crafted artifact. recipe_id is empty for experimental dreams."""
    name: str
    value: Decimal
    rarity: Rarity
    recipe_id: str = ""
    narrative_text: str = ""
    crafted_day: int = 1
    crafted_at: float = field(default_factory=time.time)
    dream_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class Reputation:
    """
    The three independent reputation axes.

    Frozen: state changes go through reputation.update_reputation(),
    which clamps every axis.
    """
    trust: int = 0
    infamy: int = 0
    lucidity: int = 0

    @property
    def total(self) -> int:
        return self.trust + self.infamy + self.lucidity


@dataclass
class PlayerState:
    """
    Aggregate root for one save slot.

    All engine operations read and write through this object.
    """
    coins: int
    current_city_id: str
    max_weight: int
    current_day: int = 1
    tier: int = 1
    title: str = "Novice Peddler"
    reputation: Reputation = field(default_factory=Reputation)
    current_weight: int = 0

    # ingredient_id -> quantity (> 0; zero entries are removed)
    inventory: Dict[str, int] = field(default_factory=dict)
    crafted_dreams: List[CraftedDream] = field(default_factory=list)
    discovered_recipes: Set[str] = field(default_factory=set)
    unlocked_cities: Set[str] = field(default_factory=set)
    active_events: List[ActiveEvent] = field(default_factory=list)

    created_at: float = field(default_factory=time.time)
    last_saved: float = 0.0

    def __post_init__(self) -> None:
        self.unlocked_cities.add(self.current_city_id)

    def quantity_of(self, ingredient_id: str) -> int:
        return self.inventory.get(ingredient_id, 0)

    def can_add_to_inventory(self, ingredient: Ingredient, quantity: int) -> bool:
        return self.current_weight + ingredient.weight * quantity <= self.max_weight

    def add_to_inventory(self, ingredient: Ingredient, quantity: int) -> None:
        """Add units and their weight. Callers check capacity first."""
        self.inventory[ingredient.ingredient_id] = (
            self.inventory.get(ingredient.ingredient_id, 0) + quantity
        )
        self.current_weight += ingredient.weight * quantity

    def remove_from_inventory(self, ingredient: Ingredient, quantity: int) -> bool:
        """
        Remove units and their weight.

        Returns:
            False (and changes nothing) if fewer than `quantity` are held
        """
        held = self.inventory.get(ingredient.ingredient_id, 0)
        if held < quantity:
            return False

        if held == quantity:
            del self.inventory[ingredient.ingredient_id]
        else:
            self.inventory[ingredient.ingredient_id] = held - quantity
        self.current_weight -= ingredient.weight * quantity
        return True

    def find_dream(self, dream_id: str) -> Optional[CraftedDream]:
        for dream in self.crafted_dreams:
            if dream.dream_id == dream_id:
                return dream
        return None

    def find_active_event(self, event_id: str) -> Optional[ActiveEvent]:
        for active in self.active_events:
            if active.event_id == event_id:
                return active
        return None
