"""
Event engine: timed price/reputation modifiers and player choices.

Lifecycle per instance: Inactive -> Active -> Expired. An instance expires
when days_remaining drops to 0 or below after a day advance.

Rolls use the caller's session RNG, never the deterministic price noise.
"""

import logging
import random
from decimal import Decimal
from typing import Dict, List, Tuple

from dreamworld.economy.config import get_config
from dreamworld.economy.core import ActiveEvent, Catalog, DreamTag, GameEvent, Ingredient, PlayerState
from dreamworld.economy.reputation import update_reputation
from dreamworld.economy import results
from dreamworld.economy.results import ChoiceResult, ErrorKind, EventResult

logger = logging.getLogger(__name__)


# =============================================================================
# MULTIPLIERS
# =============================================================================

def _live_events_in_city(catalog: Catalog, state: PlayerState, city_id: str) -> List[GameEvent]:
    """Catalog records of non-expired instances scoped to a city."""
    live = []
    for active in state.active_events:
        if active.city_id != city_id or active.days_remaining <= 0:
            continue
        event = catalog.event(active.event_id)
        if event is not None:
            live.append(event)
    return live


def tag_multiplier(catalog: Catalog, state: PlayerState, city_id: str, tag: DreamTag) -> Decimal:
    """Product of a tag's multipliers across live events in a city."""
    multiplier = Decimal("1")
    for event in _live_events_in_city(catalog, state, city_id):
        if tag in event.tag_modifiers:
            multiplier *= event.tag_modifiers[tag]
    return multiplier


def event_multiplier(
    catalog: Catalog,
    state: PlayerState,
    ingredient: Ingredient,
    city_id: str
) -> Decimal:
    """
    Combined event modifier for an ingredient in a city.

    Multiplies the ingredient-specific modifier and every tag modifier the
    ingredient matches, for each live event scoped to the city.
    """
    multiplier = Decimal("1")
    for event in _live_events_in_city(catalog, state, city_id):
        if ingredient.ingredient_id in event.price_modifiers:
            multiplier *= event.price_modifiers[ingredient.ingredient_id]
    for tag in ingredient.tags:
        multiplier *= tag_multiplier(catalog, state, city_id, tag)
    return multiplier


# =============================================================================
# TRIGGERING
# =============================================================================

def get_active_events(catalog: Catalog, state: PlayerState) -> List[GameEvent]:
    """Catalog records for every active instance, in activation order."""
    events = []
    for active in state.active_events:
        event = catalog.event(active.event_id)
        if event is not None:
            events.append(event)
    return events


def trigger_event(catalog: Catalog, state: PlayerState, event_id: str) -> EventResult:
    """
    Activate an event in the player's current city.

    Applies the event's reputation effect once (Trust axis) and inserts an
    ActiveEvent with the event's full duration.
    """
    event = catalog.event(event_id)
    if event is None:
        return EventResult.failure(
            ErrorKind.NOT_FOUND, "Event not found", results.UNKNOWN_EVENT, event_id=event_id
        )

    if state.find_active_event(event_id) is not None:
        return EventResult.failure(
            ErrorKind.VALIDATION,
            f"{event.name} is already active",
            results.EVENT_ALREADY_ACTIVE,
            event_id=event_id,
        )

    if len(state.active_events) >= get_config().events.max_simultaneous:
        return EventResult.failure(
            ErrorKind.INELIGIBLE,
            "Too many events are already active",
            results.EVENT_LIMIT_REACHED,
            event_id=event_id,
        )

    state.active_events.append(ActiveEvent(
        event_id=event.event_id,
        city_id=state.current_city_id,
        days_remaining=event.duration,
        started_day=state.current_day,
    ))

    if event.reputation_effect != 0:
        update_reputation(state, trust=event.reputation_effect)

    logger.debug("Event triggered: %s in %s", event.event_id, state.current_city_id)
    return EventResult.success(
        event.narrative_text or f"{event.name} has begun",
        event_id=event.event_id,
        event_name=event.name,
    )


def trigger_random_event(
    catalog: Catalog,
    state: PlayerState,
    rng: random.Random
) -> EventResult:
    """
    Roll one event from the current city's pool.

    Candidates are pool events not already active, in pool order. The first
    whose roll falls under its probability triggers and rolling stops.
    """
    if len(state.active_events) >= get_config().events.max_simultaneous:
        return EventResult.failure(
            ErrorKind.INELIGIBLE, "Too many events are already active", results.EVENT_LIMIT_REACHED
        )

    city = catalog.city(state.current_city_id)
    if city is None:
        return EventResult.failure(ErrorKind.NOT_FOUND, "Current city not found", results.UNKNOWN_CITY)

    active_ids = {active.event_id for active in state.active_events}
    candidates = [
        catalog.event(event_id)
        for event_id in city.event_pool
        if event_id not in active_ids and catalog.event(event_id) is not None
    ]

    for event in candidates:
        if rng.random() < event.probability:
            return trigger_event(catalog, state, event.event_id)

    return EventResult.failure(ErrorKind.INELIGIBLE, "Nothing stirs today", results.NO_EVENT_ROLLED)


# =============================================================================
# DAY ADVANCE
# =============================================================================

def expire_events(state: PlayerState, days_passed: int) -> List[str]:
    """
    Count down every active event and drop the expired ones.

    Returns:
        Ids of events that expired
    """
    expired = []
    still_active = []
    for active in state.active_events:
        active.days_remaining -= days_passed
        if active.days_remaining <= 0:
            expired.append(active.event_id)
            logger.debug("Event expired: %s", active.event_id)
        else:
            still_active.append(active)
    state.active_events = still_active
    return expired


def update_active_events(
    catalog: Catalog,
    state: PlayerState,
    days_passed: int,
    rng: random.Random
) -> Tuple[List[str], List[str]]:
    """
    Expire events, then roll for new ones once per day passed.

    Args:
        catalog: Reference data
        state: Player to update
        days_passed: Days advanced (>= 1)
        rng: Session RNG

    Returns:
        (expired event ids, triggered event ids)
    """
    expired = expire_events(state, days_passed)

    triggered = []
    base_probability = get_config().events.base_probability
    for _ in range(days_passed):
        if rng.random() < base_probability:
            outcome = trigger_random_event(catalog, state, rng)
            if outcome.ok:
                triggered.append(outcome.event_id)

    return expired, triggered


# =============================================================================
# CHOICES
# =============================================================================

def resolve_choice(
    catalog: Catalog,
    state: PlayerState,
    event_id: str,
    choice_id: str
) -> ChoiceResult:
    """
    Apply a player's choice for an event.

    Checks everything before changing anything: the event and choice must
    exist, coins must cover the cost, and item rewards must fit in the
    remaining capacity. Then deducts cost, applies the reputation delta
    (Trust axis), grants rewards, and removes the event from the active list.
    """
    event = catalog.event(event_id)
    if event is None:
        return ChoiceResult.failure(
            ErrorKind.NOT_FOUND, "Event not found", results.UNKNOWN_EVENT,
            event_id=event_id, choice_id=choice_id,
        )

    choice = event.choice(choice_id)
    if choice is None:
        return ChoiceResult.failure(
            ErrorKind.NOT_FOUND, "Choice not found", results.UNKNOWN_CHOICE,
            event_id=event_id, choice_id=choice_id,
        )

    if choice.coins_cost > 0 and state.coins < choice.coins_cost:
        return ChoiceResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE, "Not enough coins", results.INSUFFICIENT_FUNDS,
            event_id=event_id, choice_id=choice_id,
        )

    rewards: Dict[str, int] = {}
    reward_weight = 0
    for ingredient_id, quantity in (choice.item_rewards or {}).items():
        ingredient = catalog.ingredient(ingredient_id)
        if ingredient is None or quantity <= 0:
            logger.warning(
                "Skipping reward %s x%s on %s/%s: unknown ingredient or bad quantity",
                ingredient_id, quantity, event_id, choice_id,
            )
            continue
        rewards[ingredient_id] = quantity
        reward_weight += ingredient.weight * quantity

    if state.current_weight + reward_weight > state.max_weight:
        return ChoiceResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            "Not enough room to carry the rewards",
            results.INSUFFICIENT_CAPACITY,
            event_id=event_id, choice_id=choice_id,
        )

    if choice.coins_cost > 0:
        state.coins -= choice.coins_cost

    if choice.reputation_effect != 0:
        update_reputation(state, trust=choice.reputation_effect)

    for ingredient_id, quantity in rewards.items():
        state.add_to_inventory(catalog.ingredients[ingredient_id], quantity)

    active = state.find_active_event(event_id)
    if active is not None:
        state.active_events.remove(active)

    result_text = choice.result_text or "Choice processed"
    return ChoiceResult.success(
        result_text,
        event_id=event_id,
        choice_id=choice_id,
        result_text=result_text,
        coins_spent=max(choice.coins_cost, 0),
        rewards=rewards,
    )
