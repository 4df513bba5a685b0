"""
Result values returned by every engine operation.

Operations never signal refusal by raising. They return one of these with
`ok=False`, an ErrorKind, and a machine-readable `reason` code the caller can
map to its own message.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from dreamworld.economy.core import CraftedDream, DreamTag, Rarity


class ErrorKind(Enum):
    VALIDATION = "validation"                        # Malformed request
    INSUFFICIENT_RESOURCE = "insufficient_resource"  # Coins, quantity, capacity
    NOT_FOUND = "not_found"                          # Unknown catalog id
    INELIGIBLE = "ineligible"                        # Gate not met


# Reason codes
INVALID_QUANTITY = "invalid_quantity"
INVALID_DAYS = "invalid_days"
INVALID_INGREDIENT_COUNT = "invalid_ingredient_count"
MISSING_INGREDIENTS = "missing_ingredients"
INSUFFICIENT_FUNDS = "insufficient_funds"
INSUFFICIENT_CAPACITY = "insufficient_capacity"
INSUFFICIENT_QUANTITY = "insufficient_quantity"
REPUTATION_TOO_LOW = "reputation_too_low"
ALREADY_IN_CITY = "already_in_city"
EVENT_LIMIT_REACHED = "event_limit_reached"
EVENT_ALREADY_ACTIVE = "event_already_active"
NO_EVENT_ROLLED = "no_event_rolled"
EXPERIMENT_FAILED = "experiment_failed"
UNKNOWN_INGREDIENT = "unknown_ingredient"
UNKNOWN_RECIPE = "unknown_recipe"
UNKNOWN_CITY = "unknown_city"
UNKNOWN_EVENT = "unknown_event"
UNKNOWN_CHOICE = "unknown_choice"
UNKNOWN_DREAM = "unknown_dream"


@dataclass
class OperationResult:
    """
    Base result: success flag, human-readable message, typed error.

    `state_changed` marks a refusal that still mutated durable state.
    Successes are always treated as changing state.
    """
    ok: bool
    message: str
    error: Optional[ErrorKind] = None
    reason: Optional[str] = None
    state_changed: bool = False

    @classmethod
    def success(cls, message: str, **artifacts):
        return cls(ok=True, message=message, **artifacts)

    @classmethod
    def failure(cls, error: ErrorKind, message: str, reason: Optional[str] = None, **artifacts):
        return cls(ok=False, message=message, error=error, reason=reason, **artifacts)


# =============================================================================
# MARKET
# =============================================================================

@dataclass
class MarketPrice:
    """One row of a city's market listing."""
    ingredient_id: str
    name: str
    rarity: Rarity
    current_price: Decimal
    base_price: Decimal
    change_percent: Decimal
    is_trending: bool
    available_quantity: int
    tags: List[DreamTag] = field(default_factory=list)


@dataclass
class MarketTrend:
    ingredient_id: str
    name: str
    direction: str  # "Rising" or "Falling"
    change_percent: Decimal


@dataclass
class PriceListResult(OperationResult):
    prices: List[MarketPrice] = field(default_factory=list)


@dataclass
class TradeResult(OperationResult):
    """Outcome of a buy, sell, or crafted-dream sale."""
    item_id: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0")
    coins_delta: int = 0


# =============================================================================
# CRAFTING
# =============================================================================

@dataclass
class CraftResult(OperationResult):
    recipe_id: Optional[str] = None
    recipe_name: Optional[str] = None
    new_discovery: bool = False
    crafted_dream: Optional[CraftedDream] = None
    narrative_text: Optional[str] = None
    consumed: List[str] = field(default_factory=list)


# =============================================================================
# TRAVEL
# =============================================================================

@dataclass
class TravelResult(OperationResult):
    destination_id: str = ""
    destination_name: str = ""
    days_passed: int = 0
    coins_cost: int = 0
    events_triggered: List[str] = field(default_factory=list)
    newly_unlocked: bool = False


# =============================================================================
# EVENTS
# =============================================================================

@dataclass
class EventResult(OperationResult):
    """Outcome of triggering an event (random or by id)."""
    event_id: Optional[str] = None
    event_name: Optional[str] = None


@dataclass
class ChoiceResult(OperationResult):
    event_id: str = ""
    choice_id: str = ""
    result_text: str = ""
    coins_spent: int = 0
    rewards: Dict[str, int] = field(default_factory=dict)


@dataclass
class DayReport(OperationResult):
    """What a day advance changed."""
    day: int = 0
    days_advanced: int = 0
    expired_events: List[str] = field(default_factory=list)
    triggered_events: List[str] = field(default_factory=list)
