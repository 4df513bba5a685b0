"""
Tests for GameSession: transactions, persistence and startup.

See dreamworld/economy/session.py for implementation.
"""

import pytest

from conftest import CATALOG_DIR, StubRandom, create_test_player, give
from dreamworld.economy import crafting, pricing
from dreamworld.economy.inventory import InventorySortMode
from dreamworld.economy.persistence import FileStore
from dreamworld.economy.session import GameSession


@pytest.fixture
def store(tmp_path):
    return FileStore(str(CATALOG_DIR), str(tmp_path / "saves"), slot="test")


@pytest.fixture
def session(catalog, player, store, quiet_rng):
    return GameSession(catalog, player, store=store, rng=quiet_rng)


def test_successful_operation_is_saved(session, store):
    result = session.buy("ing1", 2)

    assert result.ok
    saved = store.load_player_state()
    assert saved.quantity_of("ing1") == 2
    assert saved.coins == session.state.coins


def test_failed_operation_is_not_saved(session, store):
    result = session.sell("ing1", 1)

    assert not result.ok
    assert not store.state_path.exists()


def test_failed_experiment_is_saved(catalog, player, store):
    """Ingredients lost to a failed experiment stay lost after reloading."""
    session = GameSession(catalog, player, store=store, rng=StubRandom([0.99]))
    give(catalog, player, "ing1", 1)
    give(catalog, player, "ing3", 1)

    result = session.craft(["ing1", "ing3"])

    assert not result.ok
    reloaded = store.load_player_state()
    assert reloaded.inventory == {}
    assert reloaded.current_weight == 0


def test_sessions_sharing_a_catalog_discover_separately(catalog, quiet_rng):
    """Each player earns their own first discovery of a recipe."""
    first = GameSession(catalog, create_test_player(), rng=quiet_rng)
    second = GameSession(catalog, create_test_player(), rng=StubRandom([0.999]))
    for session in (first, second):
        give(catalog, session.state, "ing1", 1)
        give(catalog, session.state, "ing2", 1)

    assert first.craft(["ing1", "ing2"]).new_discovery
    result = second.craft(["ing1", "ing2"])

    assert result.new_discovery
    assert second.state.discovered_recipes == {"recipe1"}
    assert second.state.reputation.lucidity == 5
    assert not catalog.recipes["recipe1"].discovered


def test_exception_restores_state(session, monkeypatch):
    """State changed before an exception is rolled back and the error re-raised."""
    def explode(catalog, state, ingredient_id, quantity):
        state.coins -= 500
        state.inventory[ingredient_id] = 99
        raise RuntimeError("boom")

    monkeypatch.setattr(pricing, "buy", explode)

    with pytest.raises(RuntimeError, match="boom"):
        session.buy("ing1", 1)

    assert session.state.coins == 1000
    assert session.state.inventory == {}


def test_exception_restores_discoveries(session, monkeypatch):
    def discover_then_fail(catalog, state, recipe_id):
        state.discovered_recipes.add("recipe1")
        raise ValueError("bad craft")

    monkeypatch.setattr(crafting, "craft_recipe", discover_then_fail)

    with pytest.raises(ValueError):
        session.craft_recipe("recipe1")

    assert "recipe1" not in session.state.discovered_recipes


def test_state_object_identity_survives_rollback(session, monkeypatch):
    state = session.state

    def fail(*args):
        raise RuntimeError("nope")

    monkeypatch.setattr(pricing, "sell", fail)

    with pytest.raises(RuntimeError):
        session.sell("ing1", 1)

    assert session.state is state


def test_session_without_store_does_not_save(catalog, player):
    session = GameSession(catalog, player, rng=StubRandom([0.999]))

    assert session.buy("ing1", 1).ok
    assert not session.save()


def test_start_fresh_game(store):
    session = GameSession.start(store)

    assert session.state.coins == 5000
    assert session.state.current_city_id == "somnia_terminal"
    assert len(session.catalog.ingredients) == 12


def test_start_resumes_saved_game(store):
    first = GameSession.start(store, rng=StubRandom([0.999]))
    first.buy("laughter_echo", 3)
    first.travel_to("velvet_hollow")

    resumed = GameSession.start(store)

    assert resumed.state.current_city_id == "velvet_hollow"
    assert resumed.state.current_day == 2
    assert resumed.state.quantity_of("laughter_echo") == 3
    assert "velvet_hollow" in resumed.state.unlocked_cities


def test_start_restores_discoveries(store):
    first = GameSession.start(store, rng=StubRandom([0.999]))
    first.buy("shadow_thread", 1)
    first.buy("falling_feeling", 1)
    assert first.craft(["shadow_thread", "falling_feeling"]).new_discovery

    resumed = GameSession.start(store)

    assert not resumed.catalog.recipes["night_terror"].discovered
    assert "night_terror" in {r.recipe_id for r in resumed.discovered_recipes()}


def test_full_loop(session):
    """Buy, craft, sell the dream, advance a day."""
    give(session.catalog, session.state, "ing2", 1)
    session.buy("ing1", 1)

    craft = session.craft(["ing1", "ing2"])
    assert craft.ok and craft.new_discovery

    coins_before = session.state.coins
    sale = session.sell_crafted_dream(craft.crafted_dream.dream_id)
    assert sale.ok
    assert session.state.coins == coins_before + 70

    report = session.advance_day()
    assert report.day == 2


def test_queries_do_not_mutate(session):
    before = (session.state.coins, session.state.current_day)

    assert session.current_prices().ok
    assert session.price_history("ing1", 3)
    session.market_trends()
    session.can_travel_to("city3")
    session.travel_cost("city2")
    session.unlocked_cities()
    session.active_events()
    session.reputation_summary()
    session.craftable_recipes()

    assert (session.state.coins, session.state.current_day) == before


def test_inventory_items_sorted(session):
    give(session.catalog, session.state, "ing1", 5)
    give(session.catalog, session.state, "ing4", 1)

    items = session.inventory_items(InventorySortMode.QUANTITY)

    assert [i.ingredient_id for i, _ in items] == ["ing1", "ing4"]
