"""
Persistence for the dream market.

Locations are split:
- YAML: Static catalog (ingredients, recipes, cities, events)
- JSON: Runtime player state, one file per save slot

Failures degrade instead of raising: a missing or corrupt catalog file gives
an empty collection, invalid records are skipped, an unreadable save loads as
None (the session then starts fresh), and a failed save returns False.
"""

import json
import logging
import time
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from dreamworld.economy.config import EconomyConfig, get_config
from dreamworld.economy.core import (
    ActiveEvent,
    Catalog,
    City,
    CraftedDream,
    EventChoice,
    GameEvent,
    Ingredient,
    PlayerState,
    Rarity,
    Recipe,
    Reputation,
)
from dreamworld.economy.validation import (
    CatalogValidationError,
    find_dangling_references,
    parse_decimal,
    parse_event_type,
    parse_rarity,
    parse_tag,
    require_field,
    validate_non_negative,
    validate_positive,
    validate_probability,
    validate_required_ingredients,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 1


# =============================================================================
# CATALOG RECORDS (YAML)
# =============================================================================

def _tag_modifiers(raw: Optional[Dict[str, Any]], field_name: str) -> Dict:
    return {
        parse_tag(tag): parse_decimal(value, field_name)
        for tag, value in (raw or {}).items()
    }


def parse_ingredient(record: Dict[str, Any]) -> Ingredient:
    ingredient_id = str(require_field(record, "id", "Ingredient"))
    base_value = parse_decimal(require_field(record, "base_value", "Ingredient"), "base_value")
    weight = int(require_field(record, "weight", "Ingredient"))

    validate_positive("Ingredient", ingredient_id, "base_value", base_value)
    validate_positive("Ingredient", ingredient_id, "weight", weight)

    return Ingredient(
        ingredient_id=ingredient_id,
        name=str(require_field(record, "name", "Ingredient")),
        rarity=parse_rarity(require_field(record, "rarity", "Ingredient")),
        base_value=base_value,
        weight=weight,
        tags=frozenset(parse_tag(t) for t in record.get("tags") or []),
        volatile=bool(record.get("volatile", False)),
        description=str(record.get("description", "")),
        color=str(record.get("color", "#8B5CF6")),
        icon_id=str(record.get("icon_id", "")),
    )


def parse_recipe(record: Dict[str, Any]) -> Recipe:
    recipe_id = str(require_field(record, "id", "Recipe"))
    ingredient_ids = [str(i) for i in require_field(record, "ingredients", "Recipe")]
    validate_required_ingredients(recipe_id, ingredient_ids)

    multiplier = parse_decimal(record.get("value_multiplier", 1), "value_multiplier")
    validate_positive("Recipe", recipe_id, "value_multiplier", multiplier)

    return Recipe(
        recipe_id=recipe_id,
        name=str(require_field(record, "name", "Recipe")),
        rarity=parse_rarity(require_field(record, "rarity", "Recipe")),
        required_ingredients=frozenset(ingredient_ids),
        value_multiplier=multiplier,
        alignment=str(record.get("alignment", "")),
        discovered=bool(record.get("discovered", False)),
        tags=[parse_tag(t) for t in record.get("tags") or []],
        narrative_text=record.get("narrative_text"),
        description=str(record.get("description", "")),
    )


def parse_city(record: Dict[str, Any]) -> City:
    city_id = str(require_field(record, "id", "City"))
    travel_cost = int(record.get("travel_cost", 0))
    travel_days = int(record.get("travel_days", 0))

    validate_non_negative("City", city_id, "travel_cost", travel_cost)
    validate_non_negative("City", city_id, "travel_days", travel_days)

    return City(
        city_id=city_id,
        name=str(require_field(record, "name", "City")),
        tag_modifiers=_tag_modifiers(record.get("tag_modifiers"), "tag_modifiers"),
        event_pool=[str(e) for e in record.get("event_pool") or []],
        travel_cost=travel_cost,
        travel_days=travel_days,
        required_reputation=int(record.get("required_reputation", 0)),
        description=str(record.get("description", "")),
    )


def _parse_choice(record: Dict[str, Any]) -> EventChoice:
    choice_id = str(require_field(record, "id", "Choice"))
    coins_cost = int(record.get("coins_cost", 0))
    validate_non_negative("Choice", choice_id, "coins_cost", coins_cost)

    rewards = record.get("item_rewards")
    return EventChoice(
        choice_id=choice_id,
        text=str(require_field(record, "text", "Choice")),
        coins_cost=coins_cost,
        reputation_effect=int(record.get("reputation_effect", 0)),
        item_rewards={str(k): int(v) for k, v in rewards.items()} if rewards else None,
        result_text=record.get("result_text"),
    )


def parse_event(record: Dict[str, Any]) -> GameEvent:
    event_id = str(require_field(record, "id", "Event"))
    probability = float(require_field(record, "probability", "Event"))
    duration = int(require_field(record, "duration", "Event"))

    validate_probability(event_id, probability)
    validate_positive("Event", event_id, "duration", duration)

    choices = record.get("choices")
    return GameEvent(
        event_id=event_id,
        name=str(require_field(record, "name", "Event")),
        event_type=parse_event_type(record.get("type", "market")),
        probability=probability,
        duration=duration,
        price_modifiers={
            str(k): parse_decimal(v, "price_modifiers")
            for k, v in (record.get("price_modifiers") or {}).items()
        },
        tag_modifiers=_tag_modifiers(record.get("tag_modifiers"), "tag_modifiers"),
        reputation_effect=int(record.get("reputation_effect", 0)),
        narrative_text=str(record.get("narrative_text", "")),
        description=str(record.get("description", "")),
        choices=[_parse_choice(c) for c in choices] if choices else None,
    )


def _load_records(path: Path) -> List[Any]:
    """Read a YAML list. Missing or unreadable files give an empty list."""
    if not path.exists():
        logger.warning("Catalog file not found: %s", path)
        return []

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read catalog file %s: %s", path, e)
        return []

    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Catalog file %s must hold a list, got %s", path, type(data).__name__)
        return []
    return data


def _parse_all(path: Path, parse: Callable[[Dict[str, Any]], Any], id_attr: str) -> Dict[str, Any]:
    parsed = {}
    for record in _load_records(path):
        try:
            item = parse(record)
        except (CatalogValidationError, TypeError, ValueError) as e:
            logger.warning("Skipping invalid record in %s: %s", path.name, e)
            continue
        item_id = getattr(item, id_attr)
        if item_id in parsed:
            logger.warning("Duplicate id %s in %s; keeping the later record", item_id, path.name)
        parsed[item_id] = item
    return parsed


def load_catalog(catalog_dir: str) -> Catalog:
    """
    Load the catalog from YAML seed files.

    Expects ingredients.yaml, recipes.yaml, cities.yaml and events.yaml
    under `catalog_dir`, each a list of records.

    Args:
        catalog_dir: Directory holding the seed files

    Returns:
        Catalog with every valid record (possibly empty)
    """
    root = Path(catalog_dir)
    catalog = Catalog(
        ingredients=_parse_all(root / "ingredients.yaml", parse_ingredient, "ingredient_id"),
        recipes=_parse_all(root / "recipes.yaml", parse_recipe, "recipe_id"),
        cities=_parse_all(root / "cities.yaml", parse_city, "city_id"),
        events=_parse_all(root / "events.yaml", parse_event, "event_id"),
    )
    logger.info(
        "Loaded catalog from %s: %d ingredients, %d recipes, %d cities, %d events",
        catalog_dir,
        len(catalog.ingredients), len(catalog.recipes),
        len(catalog.cities), len(catalog.events),
    )
    for problem in find_dangling_references(catalog):
        logger.warning("Catalog reference problem: %s", problem)
    return catalog


# =============================================================================
# PLAYER STATE SERIALIZATION (JSON)
# =============================================================================

def _encode_dream(dream: CraftedDream) -> dict:
    return {
        "dream_id": dream.dream_id,
        "recipe_id": dream.recipe_id,
        "name": dream.name,
        "value": str(dream.value),  # Decimal -> str, exact
        "rarity": int(dream.rarity),
        "narrative_text": dream.narrative_text,
        "crafted_day": dream.crafted_day,
        "crafted_at": dream.crafted_at,
    }


def _decode_dream(data: dict) -> CraftedDream:
    return CraftedDream(
        dream_id=data["dream_id"],
        recipe_id=data.get("recipe_id", ""),
        name=data["name"],
        value=Decimal(data["value"]),
        rarity=Rarity(data["rarity"]),
        narrative_text=data.get("narrative_text", ""),
        crafted_day=data.get("crafted_day", 1),
        crafted_at=data.get("crafted_at", 0.0),
    )


def serialize_player_state(state: PlayerState) -> dict:
    """
    Serialize player state to a JSON-compatible dict.

    Sets are written as sorted lists and Decimals as strings so the output
    is stable and loses no precision.

    Args:
        state: PlayerState to serialize

    Returns:
        JSON-serializable dict
    """
    return {
        "version": STATE_VERSION,
        "coins": state.coins,
        "current_day": state.current_day,
        "current_city_id": state.current_city_id,
        "tier": state.tier,
        "title": state.title,
        "reputation": {
            "trust": state.reputation.trust,
            "infamy": state.reputation.infamy,
            "lucidity": state.reputation.lucidity,
        },
        "current_weight": state.current_weight,
        "max_weight": state.max_weight,
        "inventory": dict(state.inventory),
        "crafted_dreams": [_encode_dream(d) for d in state.crafted_dreams],
        "discovered_recipes": sorted(state.discovered_recipes),
        "unlocked_cities": sorted(state.unlocked_cities),
        "active_events": [
            {
                "event_id": a.event_id,
                "city_id": a.city_id,
                "days_remaining": a.days_remaining,
                "started_day": a.started_day,
            }
            for a in state.active_events
        ],
        "created_at": state.created_at,
        "last_saved": state.last_saved,
    }


def deserialize_player_state(data: dict) -> PlayerState:
    """
    Rebuild a PlayerState from serialize_player_state() output.

    Raises:
        KeyError, TypeError, ValueError: If the data is malformed
    """
    rep = data.get("reputation", {})
    return PlayerState(
        coins=int(data["coins"]),
        current_day=int(data.get("current_day", 1)),
        current_city_id=data["current_city_id"],
        tier=int(data.get("tier", 1)),
        title=data.get("title", ""),
        reputation=Reputation(
            trust=int(rep.get("trust", 0)),
            infamy=int(rep.get("infamy", 0)),
            lucidity=int(rep.get("lucidity", 0)),
        ),
        current_weight=int(data.get("current_weight", 0)),
        max_weight=int(data["max_weight"]),
        inventory={str(k): int(v) for k, v in data.get("inventory", {}).items() if int(v) > 0},
        crafted_dreams=[_decode_dream(d) for d in data.get("crafted_dreams", [])],
        discovered_recipes=set(data.get("discovered_recipes", [])),
        unlocked_cities=set(data.get("unlocked_cities", [])),
        active_events=[
            ActiveEvent(
                event_id=a["event_id"],
                city_id=a["city_id"],
                days_remaining=int(a["days_remaining"]),
                started_day=int(a.get("started_day", 1)),
            )
            for a in data.get("active_events", [])
        ],
        created_at=float(data.get("created_at", 0.0)),
        last_saved=float(data.get("last_saved", 0.0)),
    )


def new_player_state(config: Optional[EconomyConfig] = None) -> PlayerState:
    """Fresh state for an empty save slot."""
    config = config or get_config()
    return PlayerState(
        coins=config.starting.coins,
        current_city_id=config.starting.city_id,
        max_weight=config.starting.weight_capacity,
        title=config.reputation.tier_names.get(1, ""),
    )


# =============================================================================
# FILE I/O
# =============================================================================

def save_player_state(state: PlayerState, path: Path) -> None:
    """
    Write player state to JSON.

    Creates the directory if needed and writes atomically (temp file, then
    rename). Sets `state.last_saved`.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    state.last_saved = time.time()
    state_data = serialize_player_state(state)

    temp_file = path.with_suffix(".json.tmp")
    with open(temp_file, "w") as f:
        json.dump(state_data, f, indent=2)

    temp_file.replace(path)


def load_player_state(path: Path) -> Optional[PlayerState]:
    """
    Read player state from JSON.

    Returns:
        PlayerState, or None if no save file exists

    Raises:
        ValueError: If the file is corrupted
    """
    if not path.exists():
        return None

    try:
        with open(path, "r") as f:
            state_data = json.load(f)
        return deserialize_player_state(state_data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Corrupt player state in {path}: {e}") from e


class FileStore:
    """
    Record store backed by YAML catalog seeds and a JSON save file.

    Args:
        catalog_dir: Directory of catalog YAML files
        save_dir: Directory for save files
        slot: Save slot name; the file is {save_dir}/{slot}.json
    """

    def __init__(self, catalog_dir: str, save_dir: str, slot: str = "default"):
        self.catalog_dir = catalog_dir
        self.save_dir = save_dir
        self.slot = slot

    @classmethod
    def from_config(cls, config: Optional[EconomyConfig] = None, slot: str = "default") -> "FileStore":
        config = config or get_config()
        return cls(config.catalog_dir, config.save_dir, slot)

    @property
    def state_path(self) -> Path:
        return Path(self.save_dir) / f"{self.slot}.json"

    def load_catalog(self) -> Catalog:
        return load_catalog(self.catalog_dir)

    def load_player_state(self) -> Optional[PlayerState]:
        """Stored state, or None if absent or unreadable."""
        try:
            return load_player_state(self.state_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load player state, starting fresh: %s", e)
            return None

    def save_player_state(self, state: PlayerState) -> bool:
        try:
            save_player_state(state, self.state_path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save player state to %s: %s", self.state_path, e)
            return False
        return True
