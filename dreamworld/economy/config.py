"""
Configuration for the dream market economy.

All tunable parameters live here, not in code.
Defaults mirror config/economy_defaults.yaml.
"""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

import yaml


@dataclass
class StartingConfig:
    """Values for a fresh save slot."""
    coins: int
    weight_capacity: int
    city_id: str


@dataclass
class ReputationConfig:
    """Reputation axis bounds and tier progression."""
    minimum: int
    maximum: int
    # Upper bounds (exclusive) of the summed reputation for tiers 1..4.
    # Anything at or above the last bound is the top tier.
    tier_thresholds: List[int]
    tier_names: Dict[int, str]
    capacity_per_tier: int
    discovery_lucidity_bonus: int
    experimental_lucidity_bonus: int


@dataclass
class MarketConfig:
    """Pricing and trading constants."""
    min_price_multiplier: Decimal
    max_price_multiplier: Decimal
    sell_ratio: Decimal
    noise_floor: Decimal
    noise_span: Decimal
    trending_threshold_percent: Decimal
    max_trends: int
    rarity_modifiers: Dict[int, Decimal]
    available_quantities: Dict[int, int]
    # Reputation gained (trust and lucidity) when selling a crafted dream
    dream_sale_reputation: Dict[int, int]


@dataclass
class CraftingConfig:
    """Crafting bounds and experimental odds."""
    min_ingredients: int
    max_ingredients: int
    experimental_base_chance: float
    lucidity_chance_divisor: float
    experimental_value_multiplier: Decimal


@dataclass
class EventConfig:
    """Event rolling constants."""
    base_probability: float
    max_simultaneous: int


@dataclass
class EconomyConfig:
    """Complete economy configuration."""
    starting: StartingConfig
    reputation: ReputationConfig
    market: MarketConfig
    crafting: CraftingConfig
    events: EventConfig
    catalog_dir: str = "data/catalog"
    save_dir: str = "data/saves"


# Default configuration - matches config/economy_defaults.yaml
_DEFAULT_CONFIG = EconomyConfig(
    starting=StartingConfig(
        coins=5000,
        weight_capacity=100,
        city_id="somnia_terminal",
    ),
    reputation=ReputationConfig(
        minimum=-100,
        maximum=100,
        tier_thresholds=[50, 120, 200, 300],
        tier_names={
            1: "Novice Peddler",
            2: "Dream Artisan",
            3: "Dream Broker",
            4: "Dream Cartel Leader",
            5: "Lucid Architect",
        },
        capacity_per_tier=50,
        discovery_lucidity_bonus=5,
        experimental_lucidity_bonus=2,
    ),
    market=MarketConfig(
        min_price_multiplier=Decimal("0.5"),
        max_price_multiplier=Decimal("3.0"),
        sell_ratio=Decimal("0.8"),
        noise_floor=Decimal("0.9"),
        noise_span=Decimal("0.2"),
        trending_threshold_percent=Decimal("20"),
        max_trends=5,
        rarity_modifiers={
            1: Decimal("1.0"),
            2: Decimal("1.5"),
            3: Decimal("2.5"),
            4: Decimal("4.0"),
            5: Decimal("7.0"),
        },
        available_quantities={1: 50, 2: 30, 3: 15, 4: 8, 5: 3},
        dream_sale_reputation={1: 1, 2: 1, 3: 2, 4: 5, 5: 10},
    ),
    crafting=CraftingConfig(
        min_ingredients=2,
        max_ingredients=3,
        experimental_base_chance=0.20,
        lucidity_chance_divisor=1000.0,
        experimental_value_multiplier=Decimal("1.2"),
    ),
    events=EventConfig(
        base_probability=0.15,
        max_simultaneous=3,
    ),
)

# Active configuration (can be replaced at runtime)
_active_config: EconomyConfig = _DEFAULT_CONFIG


def get_config() -> EconomyConfig:
    """Get the active economy configuration."""
    return _active_config


def set_config(config: EconomyConfig) -> None:
    """Set the active economy configuration."""
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Reset to default configuration."""
    global _active_config
    _active_config = _DEFAULT_CONFIG


# =============================================================================
# YAML LOADING
# =============================================================================

def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    """Fetch a required key, naming the dotted path on failure."""
    if not isinstance(data, dict) or key not in data:
        raise ValueError(f"Missing required field: {path}{key}")
    return data[key]


def _decimal_map(raw: Dict[Any, Any]) -> Dict[int, Decimal]:
    return {int(k): Decimal(str(v)) for k, v in raw.items()}


def _int_map(raw: Dict[Any, Any]) -> Dict[int, int]:
    return {int(k): int(v) for k, v in raw.items()}


def load_config_from_yaml(path: str) -> EconomyConfig:
    """
    Load an EconomyConfig from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Fully populated EconomyConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed or a required field is missing
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a dictionary, got {type(data).__name__}")

    starting = _require(data, "starting", "")
    reputation = _require(data, "reputation", "")
    market = _require(data, "market", "")
    crafting = _require(data, "crafting", "")
    events = _require(data, "events", "")

    return EconomyConfig(
        starting=StartingConfig(
            coins=int(_require(starting, "coins", "starting.")),
            weight_capacity=int(_require(starting, "weight_capacity", "starting.")),
            city_id=str(_require(starting, "city_id", "starting.")),
        ),
        reputation=ReputationConfig(
            minimum=int(_require(reputation, "minimum", "reputation.")),
            maximum=int(_require(reputation, "maximum", "reputation.")),
            tier_thresholds=[int(t) for t in _require(reputation, "tier_thresholds", "reputation.")],
            tier_names={
                int(k): str(v)
                for k, v in _require(reputation, "tier_names", "reputation.").items()
            },
            capacity_per_tier=int(_require(reputation, "capacity_per_tier", "reputation.")),
            discovery_lucidity_bonus=int(
                _require(reputation, "discovery_lucidity_bonus", "reputation.")
            ),
            experimental_lucidity_bonus=int(
                _require(reputation, "experimental_lucidity_bonus", "reputation.")
            ),
        ),
        market=MarketConfig(
            min_price_multiplier=Decimal(str(_require(market, "min_price_multiplier", "market."))),
            max_price_multiplier=Decimal(str(_require(market, "max_price_multiplier", "market."))),
            sell_ratio=Decimal(str(_require(market, "sell_ratio", "market."))),
            noise_floor=Decimal(str(_require(market, "noise_floor", "market."))),
            noise_span=Decimal(str(_require(market, "noise_span", "market."))),
            trending_threshold_percent=Decimal(
                str(_require(market, "trending_threshold_percent", "market."))
            ),
            max_trends=int(_require(market, "max_trends", "market.")),
            rarity_modifiers=_decimal_map(_require(market, "rarity_modifiers", "market.")),
            available_quantities=_int_map(_require(market, "available_quantities", "market.")),
            dream_sale_reputation=_int_map(_require(market, "dream_sale_reputation", "market.")),
        ),
        crafting=CraftingConfig(
            min_ingredients=int(_require(crafting, "min_ingredients", "crafting.")),
            max_ingredients=int(_require(crafting, "max_ingredients", "crafting.")),
            experimental_base_chance=float(
                _require(crafting, "experimental_base_chance", "crafting.")
            ),
            lucidity_chance_divisor=float(
                _require(crafting, "lucidity_chance_divisor", "crafting.")
            ),
            experimental_value_multiplier=Decimal(
                str(_require(crafting, "experimental_value_multiplier", "crafting."))
            ),
        ),
        events=EventConfig(
            base_probability=float(_require(events, "base_probability", "events.")),
            max_simultaneous=int(_require(events, "max_simultaneous", "events.")),
        ),
        catalog_dir=str(data.get("catalog_dir", "data/catalog")),
        save_dir=str(data.get("save_dir", "data/saves")),
    )
