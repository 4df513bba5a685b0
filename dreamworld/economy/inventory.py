"""
Read-only inventory views.
"""

from enum import Enum
from typing import List, Tuple

from dreamworld.economy.core import Catalog, Ingredient, PlayerState


class InventorySortMode(Enum):
    NAME = "name"
    RARITY = "rarity"
    QUANTITY = "quantity"
    VALUE = "value"
    WEIGHT = "weight"


def inventory_items(catalog: Catalog, state: PlayerState) -> List[Tuple[Ingredient, int]]:
    """Held ingredients with quantities. Ids missing from the catalog are left out."""
    items = []
    for ingredient_id, quantity in state.inventory.items():
        ingredient = catalog.ingredient(ingredient_id)
        if ingredient is not None:
            items.append((ingredient, quantity))
    return items


def available_space(state: PlayerState) -> int:
    return state.max_weight - state.current_weight


def can_add_item(catalog: Catalog, state: PlayerState, ingredient_id: str, quantity: int) -> bool:
    ingredient = catalog.ingredient(ingredient_id)
    if ingredient is None:
        return False
    return available_space(state) >= ingredient.weight * quantity


def sorted_inventory(
    catalog: Catalog,
    state: PlayerState,
    mode: InventorySortMode
) -> List[Tuple[Ingredient, int]]:
    """
    Inventory ordered for display.

    Name sorts ascending; every other mode sorts descending with name as
    the tie-breaker.
    """
    items = inventory_items(catalog, state)

    if mode == InventorySortMode.NAME:
        return sorted(items, key=lambda item: item[0].name)
    if mode == InventorySortMode.RARITY:
        return sorted(items, key=lambda item: (-int(item[0].rarity), item[0].name))
    if mode == InventorySortMode.QUANTITY:
        return sorted(items, key=lambda item: (-item[1], item[0].name))
    if mode == InventorySortMode.VALUE:
        return sorted(items, key=lambda item: (-item[0].base_value, item[0].name))
    if mode == InventorySortMode.WEIGHT:
        return sorted(items, key=lambda item: (-item[0].weight, item[0].name))
    return items
