"""
Reputation and tier progression.

The only place reputation is changed. Every axis is clamped on update and
tier is re-derived from the summed axes afterwards.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from dreamworld.economy.config import get_config
from dreamworld.economy.core import PlayerState, Reputation

logger = logging.getLogger(__name__)


@dataclass
class ReputationSummary:
    """Reputation values with a display level per axis."""
    trust: int
    infamy: int
    lucidity: int
    total: int
    tier: int
    title: str
    trust_level: str
    infamy_level: str
    lucidity_level: str


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def tier_for_total(total: int) -> int:
    """
    Map summed reputation to a tier.

    With default thresholds: <50 -> 1, <120 -> 2, <200 -> 3, <300 -> 4, else 5.
    """
    thresholds = get_config().reputation.tier_thresholds
    for tier, bound in enumerate(thresholds, start=1):
        if total < bound:
            return tier
    return len(thresholds) + 1


def check_tier_progression(state: PlayerState) -> int:
    """
    Raise the player's tier if summed reputation earns it.

    Tier never regresses. Each tier gained adds capacity and the title
    follows the new tier.

    Args:
        state: Player to update

    Returns:
        Number of tiers gained (0 if unchanged)
    """
    config = get_config().reputation
    new_tier = tier_for_total(state.reputation.total)

    if new_tier <= state.tier:
        return 0

    gained = new_tier - state.tier
    state.tier = new_tier
    state.max_weight += config.capacity_per_tier * gained
    state.title = config.tier_names.get(new_tier, state.title)

    logger.debug("Tier up: %s (tier %d, capacity %d)", state.title, new_tier, state.max_weight)
    return gained


def update_reputation(
    state: PlayerState,
    trust: int = 0,
    infamy: int = 0,
    lucidity: int = 0
) -> Tuple[Reputation, int]:
    """
    Apply reputation deltas with clamping, then check tier progression.

    Args:
        state: Player to update
        trust: Delta for the Trust axis
        infamy: Delta for the Infamy axis
        lucidity: Delta for the Lucidity axis

    Returns:
        (new reputation, tiers gained)
    """
    config = get_config().reputation
    low, high = config.minimum, config.maximum
    current = state.reputation

    state.reputation = Reputation(
        trust=_clamp(current.trust + trust, low, high),
        infamy=_clamp(current.infamy + infamy, low, high),
        lucidity=_clamp(current.lucidity + lucidity, low, high),
    )

    gained = check_tier_progression(state)
    return state.reputation, gained


def get_reputation_level(value: int) -> str:
    """
    Map a single axis value to a display level.

    Returns:
        "reviled", "distrusted", "unknown", "recognized", or "renowned"
    """
    if value <= -60:
        return "reviled"
    elif value <= -20:
        return "distrusted"
    elif value < 20:
        return "unknown"
    elif value < 60:
        return "recognized"
    else:
        return "renowned"


def reputation_summary(state: PlayerState) -> ReputationSummary:
    rep = state.reputation
    return ReputationSummary(
        trust=rep.trust,
        infamy=rep.infamy,
        lucidity=rep.lucidity,
        total=rep.total,
        tier=state.tier,
        title=state.title,
        trust_level=get_reputation_level(rep.trust),
        infamy_level=get_reputation_level(rep.infamy),
        lucidity_level=get_reputation_level(rep.lucidity),
    )
