"""
Procedural content for Hunter's Path.

Gates and bosses, loot and the hunter shop, spirit binding, daily quests.
"""

from .gates import (
    MIN_POOL_SIZE,
    MONSTER_DATA,
    generate_gate_pool,
    make_gate,
    make_instant_dungeon,
    recommended_power,
    refresh_cost,
    remove_cleared_gate,
)

from .loot import roll_drop, shop_item, shop_price, SHOP_KINDS
from .spirits import attempt_binding, calc_binding_chance
from .quests import new_daily, progress_quest, QUESTS_PER_DAY

__all__ = [
    'MIN_POOL_SIZE',
    'MONSTER_DATA',
    'generate_gate_pool',
    'make_gate',
    'make_instant_dungeon',
    'recommended_power',
    'refresh_cost',
    'remove_cleared_gate',
    'roll_drop',
    'shop_item',
    'shop_price',
    'SHOP_KINDS',
    'attempt_binding',
    'calc_binding_chance',
    'new_daily',
    'progress_quest',
    'QUESTS_PER_DAY',
]
