"""
Dream Market Economy - trading, crafting and travel simulation

A player buys and sells tagged dream ingredients whose prices move by city
and day, crafts them into dreams, and unlocks cities as reputation grows.
GameSession is the entry point; the engine modules are plain functions over
a Catalog and a PlayerState.
"""

from dreamworld.economy.core import (
    Rarity,
    DreamTag,
    EventType,
    Ingredient,
    Recipe,
    City,
    EventChoice,
    GameEvent,
    Catalog,
    ActiveEvent,
    CraftedDream,
    Reputation,
    PlayerState,
)
from dreamworld.economy.results import (
    ErrorKind,
    OperationResult,
    PriceListResult,
    TradeResult,
    CraftResult,
    TravelResult,
    EventResult,
    ChoiceResult,
    DayReport,
)
from dreamworld.economy.inventory import InventorySortMode
from dreamworld.economy.persistence import FileStore, load_catalog, new_player_state
from dreamworld.economy.session import GameSession

__all__ = [
    # Core data structures
    "Rarity",
    "DreamTag",
    "EventType",
    "Ingredient",
    "Recipe",
    "City",
    "EventChoice",
    "GameEvent",
    "Catalog",
    "ActiveEvent",
    "CraftedDream",
    "Reputation",
    "PlayerState",
    # Results
    "ErrorKind",
    "OperationResult",
    "PriceListResult",
    "TradeResult",
    "CraftResult",
    "TravelResult",
    "EventResult",
    "ChoiceResult",
    "DayReport",
    # Inventory
    "InventorySortMode",
    # Persistence
    "FileStore",
    "load_catalog",
    "new_player_state",
    # Session
    "GameSession",
]
