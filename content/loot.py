"""
Loot table and hunter shop.

A victory rolls once against cumulative drop bands, then rolls rarity on a
rank-gated weight table and quality around the rarity's base.
"""

from typing import Dict, List, Optional, Tuple
import math
import uuid

from models import (
    Item, PotionItem, RuneItem, KeyItem, EquipmentItem,
    Rank, Rarity, Slot, Stat, clamp, MIN_QUALITY, MAX_QUALITY,
)
from rng import RandomSource


# =============================================================================
# DROP BANDS
# Upper bounds of cumulative bands for a single uniform draw.
# =============================================================================

DROP_BANDS: List[Tuple[float, str]] = [
    (0.08, 'key'),
    (0.28, 'rune'),
    (0.55, 'potion'),
    (0.65, 'equipment'),
]

# Relative weights per rarity (common .. legendary), indexed by gate rank.
# Zero weight means the rarity is locked at that rank.
RARITY_WEIGHTS: Dict[Rank, Tuple[int, ...]] = {
    Rank.E: (80, 20, 0, 0, 0),
    Rank.D: (65, 28, 7, 0, 0),
    Rank.C: (50, 32, 15, 3, 0),
    Rank.B: (38, 32, 20, 8, 2),
    Rank.A: (25, 30, 26, 14, 5),
    Rank.S: (15, 25, 30, 20, 10),
}

RARITY_BASE_QUALITY = {
    Rarity.COMMON: 30,
    Rarity.UNCOMMON: 45,
    Rarity.RARE: 60,
    Rarity.EPIC: 75,
    Rarity.LEGENDARY: 90,
}
QUALITY_VARIANCE = 10

SLOT_PRIMARY_STAT = {
    Slot.WEAPON: Stat.STR,
    Slot.ARMOR: Stat.VIT,
    Slot.ACCESSORY: Stat.LUCK,
}

EQUIPMENT_NAMES = {
    Slot.WEAPON: 'Blade',
    Slot.ARMOR: 'Mail',
    Slot.ACCESSORY: 'Charm',
}


# =============================================================================
# SHOP
# =============================================================================

SHOP_POTION_COST = 25
SHOP_POTION_HEAL_HP = 50
SHOP_POTION_HEAL_MP = 15

# slot -> (base cost, cost per level, base bonus, levels per extra bonus point)
SHOP_GEAR = {
    Slot.WEAPON: (100, 25, 3, 3),
    Slot.ARMOR: (80, 20, 2, 4),
    Slot.ACCESSORY: (120, 30, 2, 5),
}

SHOP_KINDS = ('potion',) + tuple(slot.value for slot in Slot)


# =============================================================================
# MAGNITUDES
# =============================================================================

def roll_rarity(rank: Rank, rng: RandomSource) -> Rarity:
    return Rarity(rng.weighted_index(RARITY_WEIGHTS[rank]))


def roll_quality(rarity: Rarity, rng: RandomSource) -> int:
    base = RARITY_BASE_QUALITY[rarity]
    return clamp(base + rng.next_int(-QUALITY_VARIANCE, QUALITY_VARIANCE), MIN_QUALITY, MAX_QUALITY)


def potion_heal(rank: Rank, quality: int) -> Tuple[int, int]:
    heal_hp = int(math.floor((30 + 20 * int(rank)) * (0.5 + quality / 100)))
    return heal_hp, heal_hp // 2


def rune_bonus(rank: Rank, quality: int) -> int:
    return max(1, int(math.floor((int(rank) + 1) * (0.5 + quality / 100))))


def equipment_bonus(rank: Rank, quality: int) -> int:
    return max(1, int(math.floor((2 + 2 * int(rank)) * quality / 50)))


def sell_value(rank: Rank, rarity: Rarity, quality: int) -> int:
    return max(1, (5 + 10 * int(rank)) * (int(rarity) + 1) * quality // 100)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


# =============================================================================
# ITEM FACTORIES
# =============================================================================

def make_potion(rank: Rank, rarity: Rarity, quality: int) -> PotionItem:
    heal_hp, heal_mp = potion_heal(rank, quality)
    return PotionItem(
        id=_new_id('potion'),
        name=f"{rank.letter}-grade {rarity.label.title()} Potion",
        rarity=rarity,
        quality=quality,
        rank=rank,
        sell_value=sell_value(rank, rarity, quality),
        heal_hp=heal_hp,
        heal_mp=heal_mp,
    )


def make_rune(rank: Rank, rarity: Rarity, quality: int, stat: Stat) -> RuneItem:
    return RuneItem(
        id=_new_id('rune'),
        name=f"{rank.letter}-grade {stat.value} Rune",
        rarity=rarity,
        quality=quality,
        rank=rank,
        sell_value=sell_value(rank, rarity, quality),
        stat=stat,
        bonus=rune_bonus(rank, quality),
    )


def make_key(rank: Rank = Rank.E) -> KeyItem:
    return KeyItem(id=_new_id('key'), name='Instant Dungeon Key', rank=rank, sell_value=0)


def make_equipment(rank: Rank, rarity: Rarity, quality: int, slot: Slot, stat: Stat) -> EquipmentItem:
    return EquipmentItem(
        id=_new_id('gear'),
        name=f"{rarity.label.title()} {stat.value} {EQUIPMENT_NAMES[slot]}",
        rarity=rarity,
        quality=quality,
        rank=rank,
        sell_value=sell_value(rank, rarity, quality),
        slot=slot,
        primary_stat=stat,
        bonuses={stat.value: equipment_bonus(rank, quality)},
    )


def roll_rune(rank: Rank, rng: RandomSource) -> RuneItem:
    rarity = roll_rarity(rank, rng)
    quality = roll_quality(rarity, rng)
    return make_rune(rank, rarity, quality, rng.choice(list(Stat)))


def roll_potion(rank: Rank, rng: RandomSource) -> PotionItem:
    rarity = roll_rarity(rank, rng)
    return make_potion(rank, rarity, roll_quality(rarity, rng))


def roll_equipment(rank: Rank, rng: RandomSource) -> EquipmentItem:
    rarity = roll_rarity(rank, rng)
    quality = roll_quality(rarity, rng)
    slot = rng.choice(list(Slot))
    stat = SLOT_PRIMARY_STAT[slot]
    if slot == Slot.ACCESSORY and rarity >= Rarity.RARE:
        stat = rng.choice(list(Stat))
    return make_equipment(rank, rarity, quality, slot, stat)


def roll_drop(rank: Rank, rng: RandomSource) -> Optional[Item]:
    """Single loot roll for a cleared gate. None means nothing dropped."""
    roll = rng.next_float()
    for upper, kind in DROP_BANDS:
        if roll < upper:
            break
    else:
        return None

    if kind == 'key':
        return make_key(rank)
    if kind == 'rune':
        return roll_rune(rank, rng)
    if kind == 'potion':
        return roll_potion(rank, rng)
    return roll_equipment(rank, rng)


# =============================================================================
# SHOP
# =============================================================================

def shop_price(kind: str, level: int) -> Optional[int]:
    """Gold price of a shop kind at a player level, or None if not sold."""
    if kind == 'potion':
        return SHOP_POTION_COST
    slot = Slot.parse(kind)
    if slot is None:
        return None
    base, per_level, _, _ = SHOP_GEAR[slot]
    return base + per_level * level


def shop_item(kind: str, level: int) -> Optional[Item]:
    if kind == 'potion':
        return PotionItem(
            id=_new_id('potion'),
            name='Health Potion',
            quality=50,
            sell_value=SHOP_POTION_COST // 5,
            heal_hp=SHOP_POTION_HEAL_HP,
            heal_mp=SHOP_POTION_HEAL_MP,
        )
    slot = Slot.parse(kind)
    if slot is None:
        return None
    _, _, base_bonus, levels_per_point = SHOP_GEAR[slot]
    stat = SLOT_PRIMARY_STAT[slot]
    return EquipmentItem(
        id=_new_id('gear'),
        name=f"Hunter's {EQUIPMENT_NAMES[slot]}",
        quality=50,
        sell_value=shop_price(kind, level) // 4,
        slot=slot,
        primary_stat=stat,
        bonuses={stat.value: base_bonus + level // levels_per_point},
    )
