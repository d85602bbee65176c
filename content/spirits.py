"""
Spirit binding.

After a victory the hunter gets one attempt to bind the defeated boss as an
ally spirit. INT and LUCK raise the odds; higher boss ranks lower them but
bias the result toward rarer spirits.
"""

from typing import Dict, List, Optional, Tuple
import math
import uuid

from models import Ability, Ally, AllyRole, Gate, Player, Rank, Rarity, Stat, clamp
from rng import RandomSource


# =============================================================================
# CHANCE
# =============================================================================

BASE_CHANCE = 0.25
INT_COEFF = 0.008
LUCK_COEFF = 0.01
RANK_PENALTY = 0.03
MIN_CHANCE = 0.08
MAX_CHANCE = 0.85

ALLY_POWER_FACTOR = 0.8

# Weights per rarity (common .. legendary), indexed by boss rank
BINDING_RARITY_WEIGHTS: Dict[Rank, Tuple[int, ...]] = {
    Rank.E: (70, 25, 5, 0, 0),
    Rank.D: (55, 30, 12, 3, 0),
    Rank.C: (40, 32, 20, 7, 1),
    Rank.B: (28, 30, 26, 12, 4),
    Rank.A: (18, 25, 30, 19, 8),
    Rank.S: (10, 20, 30, 25, 15),
}

RARITY_POWER_MULTIPLIER = {
    Rarity.COMMON: 1.0,
    Rarity.UNCOMMON: 1.2,
    Rarity.RARE: 1.5,
    Rarity.EPIC: 2.0,
    Rarity.LEGENDARY: 3.0,
}

RARITY_ABILITY_COUNT = {
    Rarity.COMMON: 1,
    Rarity.UNCOMMON: 2,
    Rarity.RARE: 2,
    Rarity.EPIC: 3,
    Rarity.LEGENDARY: 4,
}

# role -> (ability name, kind); each list holds enough for a legendary
ROLE_ABILITIES: Dict[AllyRole, List[Tuple[str, str]]] = {
    AllyRole.WARRIOR: [
        ('Cleave', 'active'), ('Battle Cry', 'active'),
        ('Iron Will', 'passive'), ('Bloodlust', 'passive'),
    ],
    AllyRole.GUARDIAN: [
        ('Shield Wall', 'active'), ('Taunt', 'active'),
        ('Stoneskin', 'passive'), ('Last Stand', 'passive'),
    ],
    AllyRole.MAGE: [
        ('Arcane Bolt', 'active'), ('Frost Nova', 'active'),
        ('Mana Flow', 'passive'), ('Spell Echo', 'passive'),
    ],
    AllyRole.ASSASSIN: [
        ('Backstab', 'active'), ('Smoke Veil', 'active'),
        ('Keen Edge', 'passive'), ('Shadow Step', 'passive'),
    ],
    AllyRole.SUPPORT: [
        ('Mend', 'active'), ('Haste', 'active'),
        ('Aura of Calm', 'passive'), ('Spirit Link', 'passive'),
    ],
}

SPIRIT_NAMES = [
    'Umbra', 'Noctis', 'Tenebris', 'Kage', 'Silens',
    'Vorago', 'Ater', 'Nox', 'Moria', 'Caecus',
]


# =============================================================================
# BINDING
# =============================================================================

def calc_binding_chance(player: Player, rank: Rank) -> float:
    """Probability of binding a boss of the given rank, within [MIN_CHANCE, MAX_CHANCE]."""
    int_stat = player.effective_stat(Stat.INT)
    luck = player.effective_stat(Stat.LUCK)
    chance = BASE_CHANCE + int_stat * INT_COEFF + luck * LUCK_COEFF - RANK_PENALTY * int(rank)
    return clamp(chance, MIN_CHANCE, MAX_CHANCE)


def roll_binding_rarity(rank: Rank, rng: RandomSource) -> Rarity:
    return Rarity(rng.weighted_index(BINDING_RARITY_WEIGHTS[rank]))


def ally_power(gate_power: int, rarity: Rarity) -> int:
    return max(1, int(math.floor(gate_power * ALLY_POWER_FACTOR * RARITY_POWER_MULTIPLIER[rarity])))


def pick_abilities(role: AllyRole, rarity: Rarity, rng: RandomSource) -> List[Ability]:
    pool = rng.shuffled(ROLE_ABILITIES[role])
    count = RARITY_ABILITY_COUNT[rarity]
    return [
        Ability(id=name.lower().replace(' ', '_'), name=name, kind=kind)
        for name, kind in pool[:count]
    ]


def spirit_name(rng: RandomSource) -> str:
    return f"{rng.choice(SPIRIT_NAMES)}-{rng.next_int(1, 999)}"


def create_ally(gate: Gate, rng: RandomSource) -> Ally:
    """Build the spirit of a defeated gate boss."""
    rarity = roll_binding_rarity(gate.rank, rng)
    role = rng.choice(list(AllyRole))
    return Ally(
        id=f"ally-{uuid.uuid4().hex[:8]}",
        name=spirit_name(rng),
        power=ally_power(gate.power, rarity),
        rarity=rarity,
        role=role,
        abilities=pick_abilities(role, rarity, rng),
    )


def attempt_binding(player: Player, gate: Gate, rng: RandomSource) -> Tuple[float, Optional[Ally]]:
    """
    One Bernoulli trial against the boss just defeated.

    Returns (chance, ally or None). The ally is not attached to the player;
    the caller decides where it goes.
    """
    chance = calc_binding_chance(player, gate.rank)
    if not rng.chance(chance):
        return chance, None
    return chance, create_ally(gate, rng)
