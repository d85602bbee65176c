"""
Gate and boss generation.

The pool table below is the balance surface: which ranks open at which
player level and how many gates each contributes.
"""

from typing import Dict, List, Tuple
import math
import uuid

from models import Boss, Gate, Rank
from rng import RandomSource


# =============================================================================
# CURVES
# =============================================================================

CURVE_BASE = 1.8
TOP_TIER_CURVE_BASE = 1.6  # gentler, so S does not spike past A
CURVE_SCALE = 30
CURVE_OFFSET = 15

GATE_VARIANCE = 20
MIN_GATE_POWER = 10

BOSS_HP_MULT = 8
BOSS_HP_VARIANCE = 25
BOSS_ATK_MULT = 0.8
TOP_TIER_ATK_MULT = 0.65
BOSS_ATK_VARIANCE = 5
BOSS_DEF_MULT = 0.3
BOSS_DEF_VARIANCE = 3


# =============================================================================
# POOL TABLE
# (rank, unlock level, (min count, max count))
# =============================================================================

POOL_TABLE: List[Tuple[Rank, int, Tuple[int, int]]] = [
    (Rank.E, 1, (2, 4)),
    (Rank.D, 3, (2, 4)),
    (Rank.C, 6, (2, 4)),
    (Rank.B, 10, (2, 4)),
    (Rank.A, 15, (2, 4)),
    (Rank.S, 18, (1, 2)),
]

# Veteran hunters see extra high-rank gates on top of the table above
LATE_GAME_LEVEL = 25
LATE_GAME_EXTRAS: List[Tuple[Rank, Tuple[int, int]]] = [
    (Rank.A, (1, 2)),
    (Rank.S, (1, 2)),
]

MIN_POOL_SIZE = 3

REFRESH_COST_MIN = 10
REFRESH_COST_PER_LEVEL = 5

INSTANT_DUNGEON_RANKS = (Rank.D, Rank.B)


# =============================================================================
# BOSS ROSTER
# =============================================================================

MONSTER_DATA: Dict[Rank, Dict[str, str]] = {
    Rank.E: {
        'name': 'Goblin Warrior',
        'description': 'A small but fierce goblin with crude weapons.',
        'environment': 'A dimly lit cave with moss-covered walls and scattered bones.',
        'sound': 'High-pitched screeches echo through the cavern...',
    },
    Rank.D: {
        'name': 'Orc Berserker',
        'description': 'A muscular orc warrior with blood-red eyes.',
        'environment': 'A torch-lit dungeon with iron bars and the stench of battle.',
        'sound': 'Deep roars shake the dungeon walls...',
    },
    Rank.C: {
        'name': 'Dark Elf Assassin',
        'description': 'A shadowy figure whose movements are like liquid darkness.',
        'environment': 'A moonlit forest clearing with twisted trees.',
        'sound': 'Whispers of ancient magic fill the air...',
    },
    Rank.B: {
        'name': 'Troll Chieftain',
        'description': 'A massive troll with stone-like skin and a bone-crushing club.',
        'environment': 'A rocky mountain pass with jagged peaks and howling winds.',
        'sound': 'Thunderous footsteps echo across the mountains...',
    },
    Rank.A: {
        'name': 'Dragon Knight',
        'description': 'A warrior clad in dragon-scale armor, sword wreathed in fire.',
        'environment': 'A grand hall with towering pillars and dragon banners.',
        'sound': 'The clash of steel and roar of dragons fills the hall...',
    },
    Rank.S: {
        'name': 'Shadow Lord',
        'description': 'A being of pure darkness whose presence corrupts the air.',
        'environment': 'A void of absolute darkness where reality itself bends.',
        'sound': 'The fabric of space itself seems to tear...',
    },
}


# =============================================================================
# GENERATORS
# =============================================================================

def recommended_power(rank: Rank) -> int:
    """Deterministic power target for a rank."""
    r = int(rank)
    base = TOP_TIER_CURVE_BASE if rank == Rank.top() else CURVE_BASE
    return int(math.floor(base ** r * CURVE_SCALE + r * CURVE_OFFSET))


def make_boss(rank: Rank, rng: RandomSource) -> Boss:
    base = recommended_power(rank)
    atk_mult = TOP_TIER_ATK_MULT if rank == Rank.top() else BOSS_ATK_MULT
    max_hp = int(math.floor(base * BOSS_HP_MULT + rng.next_int(-BOSS_HP_VARIANCE, BOSS_HP_VARIANCE)))
    atk = int(math.floor(base * atk_mult + rng.next_int(-BOSS_ATK_VARIANCE, BOSS_ATK_VARIANCE)))
    defense = int(math.floor(base * BOSS_DEF_MULT + rng.next_int(-BOSS_DEF_VARIANCE, BOSS_DEF_VARIANCE)))
    return Boss(
        name=MONSTER_DATA[rank]['name'],
        max_hp=max_hp,
        hp=max_hp,
        atk=atk,
        defense=defense,
    )


def make_gate(rank: Rank, rng: RandomSource) -> Gate:
    gate_id = uuid.uuid4().hex[:8]
    recommended = recommended_power(rank)
    power = max(MIN_GATE_POWER, recommended + rng.next_int(-GATE_VARIANCE, GATE_VARIANCE))
    return Gate(
        id=gate_id,
        name=f"{rank.letter}-Rank Gate {gate_id[:3].upper()}",
        rank=rank,
        recommended=recommended,
        power=power,
        boss=make_boss(rank, rng),
    )


def unlocked_ranks(level: int) -> List[Rank]:
    return [rank for rank, unlock, _ in POOL_TABLE if level >= unlock]


def generate_gate_pool(level: int, rng: RandomSource) -> List[Gate]:
    """Fresh pool for a player level. Always at least MIN_POOL_SIZE gates."""
    gates: List[Gate] = []
    for rank, unlock, (lo, hi) in POOL_TABLE:
        if level >= unlock:
            gates.extend(make_gate(rank, rng) for _ in range(rng.next_int(lo, hi)))

    if level >= LATE_GAME_LEVEL:
        for rank, (lo, hi) in LATE_GAME_EXTRAS:
            gates.extend(make_gate(rank, rng) for _ in range(rng.next_int(lo, hi)))

    while len(gates) < MIN_POOL_SIZE:
        gates.append(make_gate(Rank.E, rng))
    return gates


def remove_cleared_gate(gates: List[Gate], gate_id: str, level: int, rng: RandomSource) -> Tuple[List[Gate], bool]:
    """
    Drop a cleared gate. Returns (new pool, regenerated?).

    Instant dungeons are not in the pool, so their id simply matches nothing.
    """
    remaining = [g for g in gates if g.id != gate_id]
    if len(remaining) < MIN_POOL_SIZE:
        return generate_gate_pool(level, rng), True
    return remaining, False


def refresh_cost(level: int) -> int:
    return max(REFRESH_COST_MIN, level * REFRESH_COST_PER_LEVEL)


def make_instant_dungeon(rng: RandomSource) -> Gate:
    lo, hi = INSTANT_DUNGEON_RANKS
    gate = make_gate(Rank(rng.next_int(int(lo), int(hi))), rng)
    gate.name = f"Instant Dungeon: {gate.name}"
    return gate
