"""
Pricing engine and market transactions.

    price = base_value * rarity_modifier * city_modifier * event_modifier * noise

clamped to [base_value * min_multiplier, base_value * max_multiplier].

Noise is a pure function of (day, ingredient_id): the same day and ingredient
always give the same factor, so price history can be recomputed at any time
instead of being stored.
"""

import hashlib
import logging
import math
import random
from decimal import Decimal
from typing import List, Optional, Tuple

from dreamworld.economy.config import get_config
from dreamworld.economy.core import Catalog, City, Ingredient, PlayerState, Rarity
from dreamworld.economy.events import event_multiplier
from dreamworld.economy.reputation import update_reputation
from dreamworld.economy import results
from dreamworld.economy.results import (
    ErrorKind,
    MarketPrice,
    MarketTrend,
    PriceListResult,
    TradeResult,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PRICE COMPONENTS
# =============================================================================

def rarity_modifier(rarity: Rarity) -> Decimal:
    return get_config().market.rarity_modifiers.get(int(rarity), Decimal("1"))


def city_modifier(ingredient: Ingredient, city: City) -> Decimal:
    """Product of the city's multiplier for each tag; missing tags count as 1."""
    modifier = Decimal("1")
    for tag in ingredient.tags:
        if tag in city.tag_modifiers:
            modifier *= city.tag_modifiers[tag]
    return modifier


def noise_seed(day: int, ingredient_id: str) -> int:
    """
    Stable 64-bit seed for (day, ingredient_id).

    Uses SHA-256 rather than hash(), which is salted per process.
    """
    digest = hashlib.sha256(f"{day}::{ingredient_id}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def price_noise(day: int, ingredient_id: str) -> Decimal:
    """Deterministic factor in [noise_floor, noise_floor + noise_span]."""
    market = get_config().market
    roll = random.Random(noise_seed(day, ingredient_id)).random()
    return market.noise_floor + Decimal(str(roll)) * market.noise_span


def current_price(
    catalog: Catalog,
    state: PlayerState,
    ingredient: Ingredient,
    city: City,
    day: int
) -> Decimal:
    """
    Price of one unit of an ingredient in a city on a day.

    Pure with respect to its inputs: active events are read from `state`
    but nothing is written.
    """
    market = get_config().market
    base = ingredient.base_value

    price = (
        base
        * rarity_modifier(ingredient.rarity)
        * city_modifier(ingredient, city)
        * event_multiplier(catalog, state, ingredient, city.city_id)
        * price_noise(day, ingredient.ingredient_id)
    )

    low = base * market.min_price_multiplier
    high = base * market.max_price_multiplier
    return max(low, min(high, price))


def sell_price(
    catalog: Catalog,
    state: PlayerState,
    ingredient: Ingredient,
    city: City,
    day: int
) -> Decimal:
    return current_price(catalog, state, ingredient, city, day) * get_config().market.sell_ratio


def available_quantity(rarity: Rarity) -> int:
    """Fixed market depth by rarity (not tracked per purchase)."""
    return get_config().market.available_quantities.get(int(rarity), 20)


# =============================================================================
# MARKET QUERIES
# =============================================================================

def _change_percent(price: Decimal, base: Decimal) -> Decimal:
    return (price - base) / base * 100


def current_prices(catalog: Catalog, state: PlayerState, city_id: str) -> PriceListResult:
    """
    Market listing for a city on the player's current day.

    Sorted by rarity, then name.
    """
    city = catalog.city(city_id)
    if city is None:
        return PriceListResult.failure(ErrorKind.NOT_FOUND, "City not found", results.UNKNOWN_CITY)

    threshold = get_config().market.trending_threshold_percent
    prices = []
    for ingredient in catalog.ingredients.values():
        price = current_price(catalog, state, ingredient, city, state.current_day)
        change = _change_percent(price, ingredient.base_value)
        prices.append(MarketPrice(
            ingredient_id=ingredient.ingredient_id,
            name=ingredient.name,
            rarity=ingredient.rarity,
            current_price=price,
            base_price=ingredient.base_value,
            change_percent=change,
            is_trending=abs(change) > threshold,
            available_quantity=available_quantity(ingredient.rarity),
            tags=sorted(ingredient.tags, key=lambda t: t.value),
        ))

    prices.sort(key=lambda p: (p.rarity, p.name))
    return PriceListResult.success(f"{len(prices)} listings in {city.name}", prices=prices)


def price_history(
    catalog: Catalog,
    state: PlayerState,
    ingredient_id: str,
    days: int
) -> List[Tuple[int, Decimal]]:
    """
    Recompute prices for the last `days` days in the current city.

    Returns:
        (day, price) pairs oldest first, ending today; days before 1 are skipped.
        Empty if the ingredient or current city is unknown.
    """
    ingredient = catalog.ingredient(ingredient_id)
    city = catalog.city(state.current_city_id)
    if ingredient is None or city is None:
        return []

    history = []
    for offset in range(days - 1, -1, -1):
        day = state.current_day - offset
        if day < 1:
            continue
        history.append((day, current_price(catalog, state, ingredient, city, day)))
    return history


def market_trends(catalog: Catalog, state: PlayerState, city_id: str) -> List[MarketTrend]:
    """Largest trending moves in a city, biggest first."""
    listing = current_prices(catalog, state, city_id)
    if not listing.ok:
        return []

    trending = [p for p in listing.prices if p.is_trending]
    trending.sort(key=lambda p: abs(p.change_percent), reverse=True)

    return [
        MarketTrend(
            ingredient_id=p.ingredient_id,
            name=p.name,
            direction="Rising" if p.change_percent > 0 else "Falling",
            change_percent=p.change_percent,
        )
        for p in trending[:get_config().market.max_trends]
    ]


# =============================================================================
# TRANSACTIONS
# =============================================================================

def _resolve_trade(
    catalog: Catalog,
    state: PlayerState,
    ingredient_id: str,
    quantity: int
) -> Tuple[Optional[Ingredient], Optional[City], Optional[TradeResult]]:
    """Shared validation for buy and sell. Returns a failure if one applies."""
    if quantity <= 0:
        return None, None, TradeResult.failure(
            ErrorKind.VALIDATION, "Quantity must be positive", results.INVALID_QUANTITY,
            item_id=ingredient_id, quantity=quantity,
        )

    ingredient = catalog.ingredient(ingredient_id)
    if ingredient is None:
        return None, None, TradeResult.failure(
            ErrorKind.NOT_FOUND, "Ingredient not found", results.UNKNOWN_INGREDIENT,
            item_id=ingredient_id, quantity=quantity,
        )

    city = catalog.city(state.current_city_id)
    if city is None:
        return None, None, TradeResult.failure(
            ErrorKind.NOT_FOUND, "Current city not found", results.UNKNOWN_CITY,
            item_id=ingredient_id, quantity=quantity,
        )

    return ingredient, city, None


def buy(catalog: Catalog, state: PlayerState, ingredient_id: str, quantity: int) -> TradeResult:
    """
    Buy units at the current city's price.

    Costs ceil(price * quantity). Refused without change if coins or
    capacity fall short.
    """
    ingredient, city, failure = _resolve_trade(catalog, state, ingredient_id, quantity)
    if failure is not None:
        return failure

    unit_price = current_price(catalog, state, ingredient, city, state.current_day)
    total_cost = math.ceil(unit_price * quantity)

    if state.coins < total_cost:
        return TradeResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            f"Not enough coins: need {total_cost}, have {state.coins}",
            results.INSUFFICIENT_FUNDS,
            item_id=ingredient_id, quantity=quantity, unit_price=unit_price,
        )

    if not state.can_add_to_inventory(ingredient, quantity):
        return TradeResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            "Not enough carrying capacity",
            results.INSUFFICIENT_CAPACITY,
            item_id=ingredient_id, quantity=quantity, unit_price=unit_price,
        )

    state.coins -= total_cost
    state.add_to_inventory(ingredient, quantity)

    return TradeResult.success(
        f"Bought {quantity} {ingredient.name} for {total_cost} coins",
        item_id=ingredient_id,
        quantity=quantity,
        unit_price=unit_price,
        coins_delta=-total_cost,
    )


def sell(catalog: Catalog, state: PlayerState, ingredient_id: str, quantity: int) -> TradeResult:
    """Sell held units for floor(sell_price * quantity)."""
    ingredient, city, failure = _resolve_trade(catalog, state, ingredient_id, quantity)
    if failure is not None:
        return failure

    if state.quantity_of(ingredient_id) < quantity:
        return TradeResult.failure(
            ErrorKind.INSUFFICIENT_RESOURCE,
            f"You only hold {state.quantity_of(ingredient_id)} {ingredient.name}",
            results.INSUFFICIENT_QUANTITY,
            item_id=ingredient_id, quantity=quantity,
        )

    unit_price = sell_price(catalog, state, ingredient, city, state.current_day)
    revenue = math.floor(unit_price * quantity)

    state.remove_from_inventory(ingredient, quantity)
    state.coins += revenue

    return TradeResult.success(
        f"Sold {quantity} {ingredient.name} for {revenue} coins",
        item_id=ingredient_id,
        quantity=quantity,
        unit_price=unit_price,
        coins_delta=revenue,
    )


def sell_crafted_dream(state: PlayerState, dream_id: str) -> TradeResult:
    """
    Sell a crafted dream for its full value (floored).

    Grants trust and lucidity by rarity.
    """
    dream = state.find_dream(dream_id)
    if dream is None:
        return TradeResult.failure(
            ErrorKind.NOT_FOUND, "Dream not found", results.UNKNOWN_DREAM, item_id=dream_id,
        )

    sale_price = math.floor(dream.value)
    gain = get_config().market.dream_sale_reputation.get(int(dream.rarity), 1)

    state.coins += sale_price
    state.crafted_dreams.remove(dream)
    update_reputation(state, trust=gain, lucidity=gain)

    return TradeResult.success(
        f"Sold {dream.name} for {sale_price} coins",
        item_id=dream_id,
        quantity=1,
        unit_price=dream.value,
        coins_delta=sale_price,
    )


# =============================================================================
# EPOCHS
# =============================================================================

def open_market_day(state: PlayerState) -> int:
    """
    Start the pricing epoch for the player's current day.

    Prices are recomputed from (day, ingredient) on demand, so there is no
    stored state to roll over; this only marks the boundary.

    Returns:
        The day now used for price noise
    """
    day = state.current_day
    if day % 7 == 0:
        logger.debug("Day %d: weekly market check", day)
    return day
