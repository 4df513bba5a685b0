#!/usr/bin/env python3
"""Trading loop sim: one dreamer + markets + events, headless.

A seeded run of the economy engine that demonstrates:
- daily market listings and trend-chasing buy/sell
- known and experimental crafting, selling crafted dreams
- event choices and reputation-gated travel
- tier progression over a number of days

Run:
  source .venv/bin/activate
  python scripts/trading_loop_sim.py

Notes:
- Uses an in-memory session (no save file is written).
- The same seed always produces the same run.
"""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import List, Optional

# Ensure repo root is on sys.path when running as a script
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dreamworld.economy.config import load_config_from_yaml, set_config, reset_config
from dreamworld.economy.persistence import load_catalog, new_player_state
from dreamworld.economy.session import GameSession


# ----------------------------
# Policy
# ----------------------------

SELL_ABOVE_PERCENT = 10
BUY_BELOW_PERCENT = -5
MAX_SPEND_FRACTION = 0.25


def sell_winners(session: GameSession, log: List[str]) -> None:
    """Sell anything held that is trading above base value."""
    listing = session.current_prices()
    for price in listing.prices:
        held = session.state.quantity_of(price.ingredient_id)
        if held and price.change_percent > SELL_ABOVE_PERCENT:
            result = session.sell(price.ingredient_id, held)
            if result.ok:
                log.append(f"SELL   {result.message}")


def buy_dips(session: GameSession, log: List[str]) -> None:
    """Buy the deepest discount, spending at most a fraction of coins."""
    listing = session.current_prices()
    dips = [p for p in listing.prices if p.change_percent < BUY_BELOW_PERCENT]
    if not dips:
        return

    best = min(dips, key=lambda p: p.change_percent)
    budget = int(session.state.coins * MAX_SPEND_FRACTION)
    quantity = min(int(budget // max(best.current_price, 1)), best.available_quantity)
    if quantity <= 0:
        return

    result = session.buy(best.ingredient_id, quantity)
    if result.ok:
        log.append(f"BUY    {result.message}")


def craft_what_we_can(session: GameSession, rng: random.Random, log: List[str]) -> None:
    """Craft every known recipe we can, then maybe try an experiment."""
    for recipe in session.discovered_recipes():
        if session.can_craft_recipe(recipe.recipe_id):
            result = session.craft_recipe(recipe.recipe_id)
            if result.ok:
                log.append(f"CRAFT  {result.message}")

    held = sorted(session.state.inventory)
    if len(held) >= 2 and rng.random() < 0.3:
        picks = rng.sample(held, 2)
        result = session.craft(picks)
        log.append(f"EXPER  {result.message}")


def sell_dreams(session: GameSession, log: List[str]) -> None:
    for dream in list(session.state.crafted_dreams):
        result = session.sell_crafted_dream(dream.dream_id)
        if result.ok:
            log.append(f"DREAM  {result.message}")


def answer_events(session: GameSession, log: List[str]) -> None:
    """Pick the first affordable choice for each event that offers one."""
    for event in session.active_events():
        for choice in event.choices or []:
            if choice.coins_cost <= session.state.coins:
                result = session.resolve_choice(event.event_id, choice.choice_id)
                if result.ok:
                    log.append(f"CHOICE {event.name}: {result.message}")
                    break


def maybe_travel(session: GameSession, rng: random.Random, log: List[str]) -> int:
    """Occasionally move to a random city we are eligible for. Returns days spent."""
    if rng.random() > 0.2:
        return 0

    options = sorted(
        city_id for city_id in session.catalog.cities
        if session.can_travel_to(city_id)
    )
    if not options:
        return 0

    destination = rng.choice(options)
    result = session.travel_to(destination)
    if result.ok:
        log.append(f"TRAVEL {result.message} ({result.days_passed} day(s), {result.coins_cost} coins)")
        for name in result.events_triggered:
            log.append(f"EVENT  {name}")
        return result.days_passed
    return 0


def print_state(session: GameSession) -> None:
    state = session.state
    summary = session.reputation_summary()
    print(
        f"STATE  day={state.current_day}  city={state.current_city_id}  coins={state.coins}  "
        f"weight={state.current_weight}/{state.max_weight}  rep={summary.total}  "
        f"tier={summary.tier} ({summary.title})"
    )


# ----------------------------
# Simulation
# ----------------------------

def simulate(
    seed: int = 42,
    days: int = 30,
    catalog_dir: Optional[str] = None,
    config_path: Optional[str] = None,
    quiet: bool = False,
) -> int:
    rng = random.Random(seed)

    config = load_config_from_yaml(config_path or str(project_root / "config" / "economy_defaults.yaml"))
    set_config(config)

    try:
        catalog = load_catalog(catalog_dir or str(project_root / "data" / "catalog"))
        session = GameSession(catalog, new_player_state(config), store=None, rng=random.Random(seed + 1))

        if not quiet:
            print("=" * 72)
            print("TRADING LOOP SIM")
            print(f"seed={seed} days={days}")
            print("=" * 72)

        while session.state.current_day <= days:
            log: List[str] = []

            sell_winners(session, log)
            answer_events(session, log)
            craft_what_we_can(session, rng, log)
            sell_dreams(session, log)
            buy_dips(session, log)

            if maybe_travel(session, rng, log) == 0:
                report = session.advance_day()
                for event_id in report.triggered_events:
                    log.append(f"EVENT  {session.catalog.events[event_id].name}")

            if not quiet:
                print(f"\n--- DAY {session.state.current_day} ---")
                for line in log:
                    print(line)
                print_state(session)

        if not quiet:
            print("\nDONE")
            print_state(session)
    finally:
        reset_config()

    return 0


if __name__ == "__main__":
    raise SystemExit(simulate())
