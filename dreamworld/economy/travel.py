"""
Travel gate: reputation- and funds-gated movement between cities.

The reputation requirement is checked on every trip, including to cities
already unlocked.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dreamworld.economy.core import Catalog, City, PlayerState
from dreamworld.economy.day_tick import advance_day
from dreamworld.economy import results
from dreamworld.economy.results import ErrorKind, TravelResult

logger = logging.getLogger(__name__)


@dataclass
class TravelCheck:
    """Eligibility with the specific reason it was refused."""
    eligible: bool
    error: Optional[ErrorKind] = None
    reason: Optional[str] = None
    message: str = ""


def check_travel(catalog: Catalog, state: PlayerState, city_id: str) -> TravelCheck:
    """
    Evaluate whether the player may travel to a city right now.

    Checks, in order: city exists, not already there, summed reputation
    meets the requirement, coins cover the fare.
    """
    city = catalog.city(city_id)
    if city is None:
        return TravelCheck(False, ErrorKind.NOT_FOUND, results.UNKNOWN_CITY, "City not found")

    if state.current_city_id == city_id:
        return TravelCheck(
            False, ErrorKind.INELIGIBLE, results.ALREADY_IN_CITY, f"You are already in {city.name}"
        )

    total = state.reputation.total
    if total < city.required_reputation:
        return TravelCheck(
            False,
            ErrorKind.INELIGIBLE,
            results.REPUTATION_TOO_LOW,
            f"Reputation too low: {city.name} requires {city.required_reputation}, "
            f"you have {total} ({city.required_reputation - total} short)",
        )

    if state.coins < city.travel_cost:
        return TravelCheck(
            False,
            ErrorKind.INSUFFICIENT_RESOURCE,
            results.INSUFFICIENT_FUNDS,
            f"Insufficient funds: the trip costs {city.travel_cost} coins, you have {state.coins}",
        )

    return TravelCheck(True, message=f"You can travel to {city.name}")


def can_travel_to(catalog: Catalog, state: PlayerState, city_id: str) -> bool:
    return check_travel(catalog, state, city_id).eligible


def travel_to(
    catalog: Catalog,
    state: PlayerState,
    city_id: str,
    rng: random.Random
) -> TravelResult:
    """
    Travel to a city.

    Deducts the fare, advances time by the trip length (which expires and
    rolls events), switches the current city, and unlocks it if new.
    """
    check = check_travel(catalog, state, city_id)
    if not check.eligible:
        return TravelResult.failure(check.error, check.message, check.reason, destination_id=city_id)

    city = catalog.cities[city_id]
    newly_unlocked = city_id not in state.unlocked_cities

    state.coins -= city.travel_cost

    triggered: List[str] = []
    if city.travel_days > 0:
        report = advance_day(catalog, state, rng, city.travel_days)
        triggered = list(report.triggered_events)

    state.current_city_id = city_id
    if newly_unlocked:
        state.unlocked_cities.add(city_id)
        logger.debug("City unlocked: %s", city_id)

    message = (
        f"Discovered and traveled to {city.name}!"
        if newly_unlocked
        else f"Traveled to {city.name}"
    )
    return TravelResult.success(
        message,
        destination_id=city_id,
        destination_name=city.name,
        days_passed=city.travel_days,
        coins_cost=city.travel_cost,
        events_triggered=[
            catalog.events[event_id].name for event_id in triggered if event_id in catalog.events
        ],
        newly_unlocked=newly_unlocked,
    )


def travel_cost(catalog: Catalog, city_id: str) -> Tuple[int, int]:
    """(coins, days) for a trip, or (0, 0) if the city is unknown."""
    city = catalog.city(city_id)
    if city is None:
        return 0, 0
    return city.travel_cost, city.travel_days


def is_city_unlocked(state: PlayerState, city_id: str) -> bool:
    return city_id in state.unlocked_cities


def unlocked_cities(catalog: Catalog, state: PlayerState) -> List[City]:
    return [city for city in catalog.cities.values() if city.city_id in state.unlocked_cities]
