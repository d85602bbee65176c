"""
Hunter's Path - Combat Resolver

An explicit state machine for one gate run:

    IDLE -> IN_COMBAT -> VICTORY | DEFEAT -> IDLE

Each resolve_tick() call is one atomic exchange of blows. The resolver owns
the gate, the boss snapshot and the tick count; it never touches gold, the
gate pool or loot. The engine applies victory and defeat consequences.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any
import logging
import math

from models import Ally, Boss, Gate, Item, Player, Stat, clamp, MAX_FATIGUE, MIN_FATIGUE
from progression import player_power
from rng import RandomSource

logger = logging.getLogger(__name__)


# =============================================================================
# COMBAT CONSTANTS
# =============================================================================

PLAYER_DAMAGE_MULT = 1.2
BOSS_DEF_MITIGATION = 0.3
PLAYER_DAMAGE_ROLL = (0, 6)

BOSS_DAMAGE_MULT = 0.8
VIT_MITIGATION = 0.7
BOSS_DAMAGE_ROLL = (0, 3)

UPKEEP_PER_ALLY = 1
UPKEEP_POWER_FACTOR = 0.02

FATIGUE_PER_TICK = 0.5

VICTORY_EXP_MULT = 1.1
VICTORY_EXP_ROLL = (10, 40)
VICTORY_GOLD_MULT = 0.8
VICTORY_GOLD_ROLL = (5, 25)

DEFEAT_GOLD_PENALTY = 10
DEFEAT_HP_FRACTION = 0.2
DEFEAT_MIN_HP = 5

# Damage this far above power counts as a critical for the log
CRITICAL_THRESHOLD = 1.5

COMBAT_LOG_LIMIT = 8


class CombatPhase(Enum):
    IDLE = 'idle'
    IN_COMBAT = 'in_combat'
    VICTORY = 'victory'
    DEFEAT = 'defeat'


# =============================================================================
# FORMULAS
# =============================================================================

def player_damage(power: int, boss_defense: int, roll: int) -> int:
    return max(1, int(math.floor(power * PLAYER_DAMAGE_MULT - boss_defense * BOSS_DEF_MITIGATION + roll)))


def boss_damage(boss_atk: int, vit: int, roll: int) -> int:
    return max(0, int(math.floor(boss_atk * BOSS_DAMAGE_MULT - vit * VIT_MITIGATION + roll)))


def mp_upkeep(allies: List[Ally]) -> int:
    """MP drained per tick by bound allies."""
    return int(math.floor(len(allies) * UPKEEP_PER_ALLY + sum(a.power * UPKEEP_POWER_FACTOR for a in allies)))


def victory_rewards(gate: Gate, rng: RandomSource) -> Dict[str, int]:
    return {
        'exp': int(math.floor(gate.recommended * VICTORY_EXP_MULT + rng.next_int(*VICTORY_EXP_ROLL))),
        'gold': int(math.floor(gate.recommended * VICTORY_GOLD_MULT + rng.next_int(*VICTORY_GOLD_ROLL))),
    }


def defeat_recovery_hp(max_hp: int) -> int:
    return max(DEFEAT_MIN_HP, int(math.floor(max_hp * DEFEAT_HP_FRACTION)))


# =============================================================================
# REPORTS
# =============================================================================

@dataclass
class TickReport:
    """Everything one tick changed, for the event log."""
    tick: int
    power: int
    dmg_player: int
    dmg_boss: int
    upkeep: int
    enemy_hp: int
    player_hp: int
    phase: CombatPhase

    @property
    def critical(self) -> bool:
        return self.dmg_player > self.power * CRITICAL_THRESHOLD


@dataclass
class CombatResult:
    """Kept for display until the session is dismissed."""
    victory: bool
    gate: Gate
    boss: Boss
    ticks: int
    damage_dealt: int
    damage_taken: int
    exp_gained: int = 0
    gold_gained: int = 0
    drops: List[Item] = field(default_factory=list)
    ally: Optional[Ally] = None
    binding_chance: float = 0.0
    log: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'victory': self.victory,
            'gate': self.gate.to_dict(),
            'boss': self.boss.to_dict(),
            'ticks': self.ticks,
            'damage_dealt': self.damage_dealt,
            'damage_taken': self.damage_taken,
            'exp_gained': self.exp_gained,
            'gold_gained': self.gold_gained,
            'drops': [d.to_dict() for d in self.drops],
            'ally': self.ally.to_dict() if self.ally else None,
            'binding_chance': self.binding_chance,
            'log': list(self.log),
        }


# =============================================================================
# STATE MACHINE
# =============================================================================

class CombatResolver:
    """
    One combat session at a time.

    The session (gate, boss snapshot, result) survives the terminal tick so
    a UI can show the outcome; dismiss() returns the resolver to IDLE.
    """

    def __init__(self):
        self._reset()

    def _reset(self):
        self.phase = CombatPhase.IDLE
        self.gate: Optional[Gate] = None
        self.boss: Optional[Boss] = None
        self.enemy_hp = 0
        self.tick = 0
        self.damage_dealt = 0
        self.damage_taken = 0
        self.result: Optional[CombatResult] = None
        self.log: List[str] = []

    @property
    def is_idle(self) -> bool:
        return self.phase == CombatPhase.IDLE

    @property
    def in_combat(self) -> bool:
        return self.phase == CombatPhase.IN_COMBAT

    @property
    def is_terminal(self) -> bool:
        return self.phase in (CombatPhase.VICTORY, CombatPhase.DEFEAT)

    def push_log(self, *lines: str):
        self.log.extend(lines)
        self.log = self.log[-COMBAT_LOG_LIMIT:]

    def start(self, gate: Gate) -> bool:
        """Enter a gate. Only valid from IDLE."""
        if not self.is_idle:
            return False
        self.phase = CombatPhase.IN_COMBAT
        self.gate = gate
        self.boss = gate.boss.fresh()
        self.enemy_hp = self.boss.max_hp
        logger.debug("Combat started: %s (%s)", gate.name, gate.rank.letter)
        return True

    def resolve_tick(self, player: Player, rng: RandomSource) -> Optional[TickReport]:
        """
        Advance one tick. Mutates the player's hp, mp and fatigue.

        Returns None (and changes nothing) outside IN_COMBAT.
        """
        if not self.in_combat:
            return None

        boss = self.boss
        power = player_power(player)

        # 1. Hunter strikes
        dmg_player = player_damage(power, boss.defense, rng.next_int(*PLAYER_DAMAGE_ROLL))
        self.enemy_hp = clamp(self.enemy_hp - dmg_player, 0, boss.max_hp)
        boss.hp = self.enemy_hp

        # 2. Boss strikes back
        dmg_boss = boss_damage(boss.atk, player.effective_stat(Stat.VIT), rng.next_int(*BOSS_DAMAGE_ROLL))
        hp_before = player.hp
        player.hp = clamp(player.hp - dmg_boss, 0, player.max_hp)

        # 3. Ally upkeep
        upkeep = mp_upkeep(player.allies)
        player.mp = clamp(player.mp - upkeep, 0, player.max_mp)

        # 4. Fatigue
        player.fatigue = clamp(player.fatigue + FATIGUE_PER_TICK, MIN_FATIGUE, MAX_FATIGUE)

        self.tick += 1
        self.damage_dealt += dmg_player
        self.damage_taken += hp_before - player.hp

        # 5. Enemy death wins ties
        if self.enemy_hp <= 0:
            self.phase = CombatPhase.VICTORY
        elif player.hp <= 0:
            self.phase = CombatPhase.DEFEAT

        logger.debug(
            "Tick %d: dealt %d, took %d, upkeep %d, phase %s",
            self.tick, dmg_player, dmg_boss, upkeep, self.phase.value,
        )

        return TickReport(
            tick=self.tick,
            power=power,
            dmg_player=dmg_player,
            dmg_boss=dmg_boss,
            upkeep=upkeep,
            enemy_hp=self.enemy_hp,
            player_hp=player.hp,
            phase=self.phase,
        )

    def record_result(self, **rewards) -> CombatResult:
        """Freeze the terminal outcome for display."""
        self.result = CombatResult(
            victory=self.phase == CombatPhase.VICTORY,
            gate=self.gate,
            boss=self.boss,
            ticks=self.tick,
            damage_dealt=self.damage_dealt,
            damage_taken=self.damage_taken,
            log=list(self.log),
            **rewards
        )
        return self.result

    def dismiss(self) -> bool:
        """Acknowledge a terminal result and return to IDLE."""
        if not self.is_terminal:
            return False
        self._reset()
        return True

    def abandon(self) -> bool:
        """Discard an in-flight session with no victory or defeat effects."""
        if not self.in_combat:
            return False
        self._reset()
        return True
