"""
Hunter's Path - Power Model & Progression

Pure player math: effective combat power, the leveling curve, stat
allocation, rest, training and work. Nothing here touches the gate pool,
gold ledger or event text; the engine composes these results.
"""

from dataclasses import dataclass
from typing import Optional, Dict
import math

from models import Player, Stat, clamp, MAX_FATIGUE, MIN_FATIGUE
from rng import RandomSource


# =============================================================================
# POWER MODEL CONSTANTS
# =============================================================================

STAT_WEIGHTS = {
    Stat.STR: 3.0,
    Stat.AGI: 2.0,
    Stat.INT: 1.5,
    Stat.VIT: 0.5,
}
FATIGUE_PENALTY_DIVISOR = 250
MAX_FATIGUE_PENALTY = 0.4
MIN_POWER = 1

# =============================================================================
# LEVELING CONSTANTS
# =============================================================================

EXP_CURVE_GROWTH = 1.35
STAT_POINTS_PER_LEVEL = 5
MAX_HP_PER_LEVEL = 10
MAX_MP_PER_LEVEL = 5
LEVEL_UP_HP_FLOOR = 0.6
LEVEL_UP_MP_FLOOR = 0.5

# =============================================================================
# RECOVERY & ACTIVITY CONSTANTS
# =============================================================================

REST_HP_FRACTION = 0.4
REST_MP_FRACTION = 0.5
REST_FATIGUE_RELIEF = 20

# (exp range, fatigue range); negative fatigue is recovery
TRAINING_TABLE = {
    'physical': ((8, 15), (5, 10)),
    'mental': ((6, 12), (3, 7)),
    'meditation': ((4, 8), (-12, -5)),
}

WORK_GOLD = (15, 35)
WORK_EXP = (3, 8)
WORK_FATIGUE = (8, 15)

PASSIVE_DAY_EXP_BASE = 10
PASSIVE_DAY_EXP_PER_DAY = 2


# =============================================================================
# POWER MODEL
# =============================================================================

def fatigue_penalty(fatigue: float) -> float:
    """Multiplier in [0.6, 1.0]: full strength at zero fatigue."""
    return 1 - min(MAX_FATIGUE_PENALTY, max(0.0, fatigue) / FATIGUE_PENALTY_DIVISOR)


def raw_power(player: Player) -> float:
    """Unfloored power, before the minimum clamp."""
    base = sum(player.effective_stat(stat) * weight for stat, weight in STAT_WEIGHTS.items())
    return (base + player.total_ally_power()) * fatigue_penalty(player.fatigue)


def player_power(player: Player) -> int:
    """
    Effective combat power.

    Always recomputed from the current stats, equipment, allies and
    fatigue. Floored to an integer and never below 1.
    """
    return max(MIN_POWER, int(math.floor(raw_power(player))))


# =============================================================================
# LEVELING
# =============================================================================

@dataclass
class LevelGain:
    """Outcome of one handle_level_gain call."""
    exp_added: int
    old_level: int
    new_level: int
    stat_points_gained: int = 0

    @property
    def levels(self) -> int:
        return self.new_level - self.old_level

    @property
    def leveled_up(self) -> bool:
        return self.levels > 0


def handle_level_gain(player: Player, add_exp: int) -> LevelGain:
    """
    Add experience and resolve every level-up it pays for.

    The next threshold is floor(exp_next * 1.35), but never less than
    exp_next + 1. From the starting 100 the floor already grows every level;
    the +1 only matters for tiny thresholds (a hand-edited save with
    exp_next of 1 or 2), where 1.35x would stall. Negative amounts are ignored.
    """
    add_exp = max(0, int(add_exp))
    gain = LevelGain(exp_added=add_exp, old_level=player.level, new_level=player.level)

    player.exp += add_exp
    while player.exp >= player.exp_next:
        player.exp -= player.exp_next
        player.level += 1
        player.exp_next = max(player.exp_next + 1, int(math.floor(player.exp_next * EXP_CURVE_GROWTH)))
        player.stat_points += STAT_POINTS_PER_LEVEL
        player.max_hp += MAX_HP_PER_LEVEL
        player.max_mp += MAX_MP_PER_LEVEL
        gain.stat_points_gained += STAT_POINTS_PER_LEVEL

    gain.new_level = player.level
    if gain.leveled_up:
        player.hp = max(player.hp, int(math.floor(player.max_hp * LEVEL_UP_HP_FLOOR)))
        player.mp = max(player.mp, int(math.floor(player.max_mp * LEVEL_UP_MP_FLOOR)))

    player._clamp_all_values()
    return gain


def allocate_stat(player: Player, stat_name: str) -> Optional[Stat]:
    """
    Spend one stat point. Returns the raised Stat, or None when the
    allocation is invalid (no points, unknown stat).
    """
    stat = Stat.parse(stat_name)
    if stat is None or player.stat_points <= 0:
        return None
    player.stat_points -= 1
    player.stats[stat.value] += 1
    return stat


# =============================================================================
# RECOVERY & ACTIVITIES
# =============================================================================

def rest(player: Player) -> Dict[str, float]:
    """Recover HP, MP and fatigue. Returns the amounts actually restored."""
    before = (player.hp, player.mp, player.fatigue)
    player.hp = clamp(player.hp + int(math.floor(player.max_hp * REST_HP_FRACTION)), 0, player.max_hp)
    player.mp = clamp(player.mp + int(math.floor(player.max_mp * REST_MP_FRACTION)), 0, player.max_mp)
    player.fatigue = clamp(player.fatigue - REST_FATIGUE_RELIEF, MIN_FATIGUE, MAX_FATIGUE)
    return {
        'hp': player.hp - before[0],
        'mp': player.mp - before[1],
        'fatigue': before[2] - player.fatigue,
    }


def add_fatigue(player: Player, amount: float):
    player.fatigue = clamp(player.fatigue + amount, MIN_FATIGUE, MAX_FATIGUE)


def roll_training(kind: str, rng: RandomSource) -> Optional[Dict[str, int]]:
    """Roll exp and fatigue for a training session, or None for an unknown kind."""
    if kind not in TRAINING_TABLE:
        return None
    (exp_lo, exp_hi), (fat_lo, fat_hi) = TRAINING_TABLE[kind]
    return {
        'exp': rng.next_int(exp_lo, exp_hi),
        'fatigue': rng.next_int(fat_lo, fat_hi),
    }


def roll_work(rng: RandomSource) -> Dict[str, int]:
    return {
        'gold': rng.next_int(*WORK_GOLD),
        'exp': rng.next_int(*WORK_EXP),
        'fatigue': rng.next_int(*WORK_FATIGUE),
    }


def passive_day_exp(day: int) -> int:
    """Experience granted for surviving into a new day."""
    return PASSIVE_DAY_EXP_BASE + day * PASSIVE_DAY_EXP_PER_DAY
