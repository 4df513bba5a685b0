"""
Day tick: the single entry point for advancing game time.

Fans out by direct sequential calls:
1. Event engine (expire, then roll new events)
2. Pricing engine (new noise epoch)
"""

import logging
import random

from dreamworld.economy.core import Catalog, PlayerState
from dreamworld.economy.events import update_active_events
from dreamworld.economy.pricing import open_market_day
from dreamworld.economy import results
from dreamworld.economy.results import DayReport, ErrorKind

logger = logging.getLogger(__name__)


def advance_day(
    catalog: Catalog,
    state: PlayerState,
    rng: random.Random,
    days: int = 1
) -> DayReport:
    """
    Advance the day counter and run daily housekeeping.

    Args:
        catalog: Reference data
        state: Player to update
        rng: Session RNG for event rolls
        days: Days to advance (>= 1)

    Returns:
        DayReport with the new day and event changes
    """
    if days < 1:
        return DayReport.failure(
            ErrorKind.VALIDATION, "Days to advance must be at least 1", results.INVALID_DAYS,
            day=state.current_day,
        )

    state.current_day += days

    expired, triggered = update_active_events(catalog, state, days, rng)
    epoch = open_market_day(state)

    logger.debug(
        "Advanced %d day(s) to day %d: %d expired, %d triggered",
        days, epoch, len(expired), len(triggered),
    )

    return DayReport.success(
        f"Day {state.current_day}",
        day=state.current_day,
        days_advanced=days,
        expired_events=expired,
        triggered_events=triggered,
    )
