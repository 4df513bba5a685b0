"""
GameSession: the owning handle for one save slot.

Holds the catalog, the player state, the record store and the session RNG.
Every mutating call runs as a transaction: state is snapshotted first and
restored if an exception escapes, and a successful result is persisted.
"""

import copy
import logging
import random
from typing import Callable, List, Optional, Sequence, Tuple

from dreamworld.economy import crafting, events, inventory, pricing, reputation, travel
from dreamworld.economy.core import Catalog, City, GameEvent, Ingredient, PlayerState, Recipe
from dreamworld.economy.day_tick import advance_day
from dreamworld.economy.inventory import InventorySortMode
from dreamworld.economy.persistence import FileStore, new_player_state
from dreamworld.economy.results import (
    ChoiceResult,
    CraftResult,
    DayReport,
    EventResult,
    MarketTrend,
    OperationResult,
    PriceListResult,
    TradeResult,
    TravelResult,
)
from dreamworld.economy.travel import TravelCheck

logger = logging.getLogger(__name__)


class GameSession:
    """
    Public entry point for the economy.

    Args:
        catalog: Loaded reference data
        state: Player state for this slot
        store: Optional FileStore; without one nothing is persisted
        rng: Session RNG for event rolls and experimental crafting
    """

    def __init__(
        self,
        catalog: Catalog,
        state: PlayerState,
        store: Optional[FileStore] = None,
        rng: Optional[random.Random] = None
    ):
        self.catalog = catalog
        self.state = state
        self.store = store
        self.rng = rng or random.Random()

    @classmethod
    def start(cls, store: FileStore, rng: Optional[random.Random] = None) -> "GameSession":
        """
        Open a save slot: load the catalog, then the stored state or a fresh one.
        """
        catalog = store.load_catalog()
        if catalog.is_empty():
            logger.warning("Catalog in %s is empty", store.catalog_dir)

        state = store.load_player_state()
        if state is None:
            logger.info("No saved state for slot %s; starting a new game", store.slot)
            state = new_player_state()

        return cls(catalog, state, store, rng)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def _transaction(self, operation: Callable[[], OperationResult]) -> OperationResult:
        """
        Run one mutating operation atomically.

        Saves after a success, and after a refusal that still changed state
        (a failed experiment consumes its ingredients).
        """
        snapshot = copy.deepcopy(self.state)

        try:
            result = operation()
        except Exception:
            self.state.__dict__.update(snapshot.__dict__)
            logger.exception("Operation failed; player state restored")
            raise

        if result.ok or result.state_changed:
            self.save()
        return result

    def save(self) -> bool:
        """Persist the current state. False if there is no store or the write failed."""
        if self.store is None:
            return False
        saved = self.store.save_player_state(self.state)
        if not saved:
            logger.warning("Player state was not saved")
        return saved

    # =========================================================================
    # MARKET
    # =========================================================================

    def current_prices(self, city_id: Optional[str] = None) -> PriceListResult:
        return pricing.current_prices(self.catalog, self.state, city_id or self.state.current_city_id)

    def price_history(self, ingredient_id: str, days: int = 7):
        return pricing.price_history(self.catalog, self.state, ingredient_id, days)

    def market_trends(self, city_id: Optional[str] = None) -> List[MarketTrend]:
        return pricing.market_trends(self.catalog, self.state, city_id or self.state.current_city_id)

    def buy(self, ingredient_id: str, quantity: int) -> TradeResult:
        return self._transaction(lambda: pricing.buy(self.catalog, self.state, ingredient_id, quantity))

    def sell(self, ingredient_id: str, quantity: int) -> TradeResult:
        return self._transaction(lambda: pricing.sell(self.catalog, self.state, ingredient_id, quantity))

    def sell_crafted_dream(self, dream_id: str) -> TradeResult:
        return self._transaction(lambda: pricing.sell_crafted_dream(self.state, dream_id))

    # =========================================================================
    # CRAFTING
    # =========================================================================

    def craft(self, ingredient_ids: Sequence[str]) -> CraftResult:
        return self._transaction(
            lambda: crafting.craft(self.catalog, self.state, ingredient_ids, self.rng)
        )

    def craft_recipe(self, recipe_id: str) -> CraftResult:
        return self._transaction(lambda: crafting.craft_recipe(self.catalog, self.state, recipe_id))

    def can_craft_recipe(self, recipe_id: str) -> bool:
        return crafting.can_craft_recipe(self.catalog, self.state, recipe_id)

    def craftable_recipes(self) -> List[Recipe]:
        return crafting.craftable_recipes(self.catalog, self.state)

    def discovered_recipes(self) -> List[Recipe]:
        return crafting.discovered_recipes(self.catalog, self.state)

    # =========================================================================
    # TRAVEL
    # =========================================================================

    def check_travel(self, city_id: str) -> TravelCheck:
        return travel.check_travel(self.catalog, self.state, city_id)

    def can_travel_to(self, city_id: str) -> bool:
        return travel.can_travel_to(self.catalog, self.state, city_id)

    def travel_to(self, city_id: str) -> TravelResult:
        return self._transaction(lambda: travel.travel_to(self.catalog, self.state, city_id, self.rng))

    def travel_cost(self, city_id: str) -> Tuple[int, int]:
        return travel.travel_cost(self.catalog, city_id)

    def unlocked_cities(self) -> List[City]:
        return travel.unlocked_cities(self.catalog, self.state)

    # =========================================================================
    # EVENTS AND TIME
    # =========================================================================

    def active_events(self) -> List[GameEvent]:
        return events.get_active_events(self.catalog, self.state)

    def trigger_random_event(self) -> EventResult:
        return self._transaction(lambda: events.trigger_random_event(self.catalog, self.state, self.rng))

    def resolve_choice(self, event_id: str, choice_id: str) -> ChoiceResult:
        return self._transaction(
            lambda: events.resolve_choice(self.catalog, self.state, event_id, choice_id)
        )

    def advance_day(self, days: int = 1) -> DayReport:
        return self._transaction(lambda: advance_day(self.catalog, self.state, self.rng, days))

    # =========================================================================
    # QUERIES
    # =========================================================================

    def reputation_summary(self) -> reputation.ReputationSummary:
        return reputation.reputation_summary(self.state)

    def inventory_items(
        self,
        sort_mode: Optional[InventorySortMode] = None
    ) -> List[Tuple[Ingredient, int]]:
        if sort_mode is None:
            return inventory.inventory_items(self.catalog, self.state)
        return inventory.sorted_inventory(self.catalog, self.state, sort_mode)
