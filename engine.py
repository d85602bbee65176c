"""
Hunter's Path - Game Engine

Aggregate state and the command reducer. ALL MATH IS HARD-CODED.
UIs, timers and stores consume this module; none of them mutate state
except through commands.

This module is the single source of truth for:
- GameState dataclass (player, gate pool, gold, time, dailies, records)
- The reducer: reduce(state, command) -> (state, events)
- GameEngine facade with one method per command
- Save/load persistence through a pluggable key-value store
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional, Callable, Dict, Any, List, Tuple
import copy
import json
import logging
import math
import os

from combat import (
    CombatResolver, CombatPhase, DEFEAT_GOLD_PENALTY,
    defeat_recovery_hp, victory_rewards,
)
from content.gates import (
    MIN_POOL_SIZE, generate_gate_pool, make_instant_dungeon,
    refresh_cost, remove_cleared_gate, unlocked_ranks,
)
from content.loot import roll_drop, roll_rune, shop_item, shop_price
from content.quests import new_daily, progress_quest
from content.spirits import attempt_binding
from messages import render_message
from models import (
    Daily, EquipmentItem, Gate, GameTime, Item, KeyItem, Player,
    PotionItem, Rank, Records, RewardBundle, RuneItem, Slot, clamp,
)
from narrative import check_achievements, gate_flavour, lore_between
from progression import (
    add_fatigue, allocate_stat, handle_level_gain, passive_day_exp,
    player_power, rest, roll_training, roll_work,
)
from rng import RandomSource, SeededRandom

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

ENGINE_CONFIG = {
    'save_dir': os.environ.get('HUNTERS_PATH_SAVE_DIR', 'data/savegames'),
    'save_key': 'hunters-path-save',
    'starting_gold': 50,
    'history_limit': 120,
}

PENALTY_HP_FRACTION = 0.1
PENALTY_FATIGUE = 25

TRAINING_MESSAGES = {
    'physical': "Physical training complete. Your body grows stronger.",
    'mental': "Mental training sharpens your focus.",
    'meditation': "Meditation brings clarity and peace.",
}

# Commands accepted while a gate is being fought
COMBAT_SAFE_COMMANDS = frozenset({'resolve_tick', 'use_item', 'abandon_gate', 'dismiss_result'})


def today_iso() -> str:
    return date.today().isoformat()


# =============================================================================
# GAME STATE DATACLASS
# =============================================================================

@dataclass
class GameState:
    """
    The aggregate root. Every command reads and writes through this object.

    The combat session and the random source live here too, but only the
    seed is persisted; a loaded game always starts outside combat.
    """

    player: Player = field(default_factory=Player)
    gates: List[Gate] = field(default_factory=list)
    gold: int = ENGINE_CONFIG['starting_gold']
    game_time: GameTime = field(default_factory=GameTime)
    daily: Daily = field(default_factory=Daily)
    records: Records = field(default_factory=Records)
    combat: CombatResolver = field(default_factory=CombatResolver, repr=False, compare=False)

    # Random seed for reproducibility
    rng_seed: Optional[int] = None
    rng: Optional[RandomSource] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.rng is None:
            self.rng = SeededRandom(self.rng_seed)
        if self.rng_seed is None:
            self.rng_seed = getattr(self.rng, 'seed', None)
        if len(self.gates) < MIN_POOL_SIZE:
            self.gates = generate_gate_pool(self.player.level, self.rng)
        self._clamp_all_values()

    def _clamp_all_values(self):
        """Ensure all numeric fields are within valid bounds."""
        self.gold = max(0, int(self.gold))
        self.game_time.day = max(1, int(self.game_time.day))
        self.player._clamp_all_values()

    @property
    def power(self) -> int:
        return player_power(self.player)

    def find_gate(self, gate_id: str) -> Optional[Gate]:
        for gate in self.gates:
            if gate.id == gate_id:
                return gate
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize state to dictionary (for JSON save)."""
        return {
            'player': self.player.to_dict(),
            'gates': [g.to_dict() for g in self.gates],
            'gold': self.gold,
            'game_time': self.game_time.to_dict(),
            'daily': self.daily.to_dict(),
            'records': self.records.to_dict(),
            'rng_seed': self.rng_seed,
            'rng_state': self.rng.getstate(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rng: Optional[RandomSource] = None) -> 'GameState':
        """
        Deserialize state from dictionary.

        A saved generator state resumes the roll sequence where the saving
        session left it, unless an explicit rng is supplied. Exp left at or
        above exp_next is resolved into level-ups.
        """
        if rng is None:
            rng = SeededRandom(data.get('rng_seed'))
            if data.get('rng_state') is not None:
                rng.setstate(data['rng_state'])

        player = Player.from_dict(data['player'])
        if player.exp >= player.exp_next:
            logger.warning(f"Saved exp {player.exp} >= exp_next {player.exp_next}; applying level-ups")
            handle_level_gain(player, 0)

        return cls(
            player=player,
            gates=[Gate.from_dict(g) for g in data['gates']],
            gold=int(data['gold']),
            game_time=GameTime.from_dict(data['game_time']),
            daily=Daily.from_dict(data['daily']),
            records=Records.from_dict(data.get('records', {})),
            rng_seed=data.get('rng_seed'),
            rng=rng,
        )


# =============================================================================
# COMMANDS & REDUCER
# =============================================================================

@dataclass
class Command:
    """A named state mutation with keyword arguments."""
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


def reduce(state: GameState, command: Command) -> Tuple[GameState, List[str]]:
    """
    Apply one command to a copy of the state.

    Returns the new state and the ordered event lines it emitted. The input
    state is never modified. Gameplay refusals (no gold, wrong phase,
    unknown item) are events, not exceptions.
    """
    handler = COMMAND_HANDLERS.get(command.name)
    if handler is None:
        raise InvalidCommandError(f"Unknown command: {command.name}")

    new_state = copy.deepcopy(state)
    events: List[str] = []

    if new_state.combat.in_combat and command.name not in COMBAT_SAFE_COMMANDS:
        events.append(render_message('system/rejected_in_combat', action=command.name.replace('_', ' ')))
        return new_state, events

    handler(new_state, events, **command.args)
    new_state._clamp_all_values()
    return new_state, events


# -----------------------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------------------

def _grant_exp(state: GameState, events: List[str], amount: int):
    """Route experience through the leveling curve and react to level-ups."""
    gain = handle_level_gain(state.player, amount)
    state.records.exp_gained += gain.exp_added
    if not gain.leveled_up:
        return

    for level in range(gain.old_level + 1, gain.new_level + 1):
        events.append(render_message('progress/level_up', level=level, points=gain.stat_points_gained // gain.levels))
    for entry in lore_between(gain.old_level, gain.new_level):
        events.append(render_message('lore/unlocked', title=entry.title))

    state.gates = generate_gate_pool(state.player.level, state.rng)
    events.append(render_message('gates/regenerated', count=len(state.gates)))


def _receive_item(state: GameState, events: List[str], item: Item):
    """Put a new item where it belongs. Keys are banked, not carried."""
    if isinstance(item, KeyItem):
        state.player.keys += 1
        events.append(render_message('loot/key', keys=state.player.keys))
        return
    state.player.inventory.append(item)
    events.append(render_message('loot/found', item=item.name, rarity=item.rarity.label, quality=item.quality))


def _grant_bundle(state: GameState, events: List[str], bundle: RewardBundle):
    top_rank = max(unlocked_ranks(state.player.level))
    for _ in range(bundle.potions):
        _receive_item(state, events, shop_item('potion', state.player.level))
    for _ in range(bundle.runes):
        _receive_item(state, events, roll_rune(top_rank, state.rng))
    if bundle.keys:
        state.player.keys += bundle.keys
        events.append(render_message('loot/key', keys=state.player.keys))


def _check_achievements(state: GameState, events: List[str]):
    for achievement in check_achievements(state.records):
        events.append(render_message('achievement/unlocked', name=achievement.name))


def _enter_gate(state: GameState, events: List[str], gate: Gate):
    state.combat.start(gate)
    lines = [
        render_message('combat/enter', gate=gate.name, rank=gate.rank.letter, boss=state.combat.boss.name),
        render_message('combat/flavour', **gate_flavour(gate)),
    ]
    state.combat.push_log(*lines)
    events.extend(lines)


def _roll_day(state: GameState, events: List[str], today: str):
    time = state.game_time
    time.day += 1
    time.current_date = today
    time.last_reset = today
    state.daily = new_daily(today, state.player.level, state.daily.reputation, state.rng)
    events.append(render_message('day/new', day=time.day))

    exp = passive_day_exp(time.day)
    events.append(render_message('day/passive_exp', exp=exp))
    _grant_exp(state, events, exp)


# -----------------------------------------------------------------------------
# Combat commands
# -----------------------------------------------------------------------------

def _cmd_start_gate(state: GameState, events: List[str], gate_id: str):
    if state.combat.is_terminal:
        events.append(render_message('combat/result_pending'))
        return
    gate = state.find_gate(gate_id)
    if gate is None:
        events.append(render_message('combat/unknown_gate', gate_id=gate_id))
        return
    _enter_gate(state, events, gate)


def _cmd_use_key(state: GameState, events: List[str]):
    if state.combat.is_terminal:
        events.append(render_message('combat/result_pending'))
        return
    if state.player.keys <= 0:
        events.append(render_message('keys/none'))
        return
    state.player.keys -= 1
    events.append(render_message('keys/used', keys=state.player.keys))
    _enter_gate(state, events, make_instant_dungeon(state.rng))


def _cmd_resolve_tick(state: GameState, events: List[str]):
    session = state.combat
    report = session.resolve_tick(state.player, state.rng)
    if report is None:
        events.append(render_message('combat/no_session'))
        return

    lines = [
        render_message('combat/hunter_hits', dmg=report.dmg_player, critical=report.critical),
        render_message('combat/boss_hits', boss=session.boss.name, dmg=report.dmg_boss),
    ]
    if report.upkeep > 0:
        lines.append(render_message('combat/upkeep', upkeep=report.upkeep))
    session.push_log(*lines)
    events.extend(lines)

    if report.phase == CombatPhase.VICTORY:
        _on_victory(state, events)
    elif report.phase == CombatPhase.DEFEAT:
        _on_defeat(state, events)


def _on_victory(state: GameState, events: List[str]):
    session = state.combat
    gate = session.gate
    records = state.records

    rewards = victory_rewards(gate, state.rng)
    state.gold += rewards['gold']
    line = render_message('combat/victory', gate=gate.name, exp=rewards['exp'], gold=rewards['gold'])
    session.push_log(line)
    events.append(line)

    records.gates_completed += 1
    records.gold_gained += rewards['gold']
    records.damage_dealt += session.damage_dealt
    records.damage_taken += session.damage_taken
    records.longest_combat = max(records.longest_combat, session.tick)
    if records.fastest_victory is None or session.tick < records.fastest_victory:
        records.fastest_victory = session.tick
    if records.highest_rank is None or gate.rank > Rank[records.highest_rank]:
        records.highest_rank = gate.rank.letter

    _grant_exp(state, events, rewards['exp'])

    drops = []
    drop = roll_drop(gate.rank, state.rng)
    if drop is not None:
        drops.append(drop)
        _receive_item(state, events, drop)

    chance, ally = attempt_binding(state.player, gate, state.rng)
    if ally is not None:
        state.player.allies.append(ally)
        records.allies_bound += 1
        events.append(render_message(
            'binding/success', name=ally.name, rarity=ally.rarity.label,
            role=ally.role.value, power=ally.power,
        ))
    else:
        events.append(render_message('binding/failed', chance=chance))

    state.gates, regenerated = remove_cleared_gate(state.gates, gate.id, state.player.level, state.rng)
    if regenerated:
        events.append(render_message('gates/regenerated', count=len(state.gates)))

    _check_achievements(state, events)
    session.record_result(
        exp_gained=rewards['exp'],
        gold_gained=rewards['gold'],
        drops=drops,
        ally=ally,
        binding_chance=chance,
    )


def _on_defeat(state: GameState, events: List[str]):
    session = state.combat
    lost = min(state.gold, DEFEAT_GOLD_PENALTY)
    state.gold -= lost
    state.player.hp = defeat_recovery_hp(state.player.max_hp)

    state.records.gates_failed += 1
    state.records.damage_dealt += session.damage_dealt
    state.records.damage_taken += session.damage_taken
    state.records.longest_combat = max(state.records.longest_combat, session.tick)

    line = render_message('combat/defeat', gate=session.gate.name, lost=lost)
    session.push_log(line)
    events.append(line)
    session.record_result(gold_gained=-lost)


def _cmd_dismiss_result(state: GameState, events: List[str]):
    gate = state.combat.gate
    if not state.combat.dismiss():
        events.append(render_message('combat/nothing_to_dismiss'))
        return
    events.append(render_message('combat/dismissed', gate=gate.name))


def _cmd_abandon_gate(state: GameState, events: List[str]):
    gate = state.combat.gate
    if not state.combat.abandon():
        events.append(render_message('combat/nothing_to_abandon'))
        return
    events.append(render_message('combat/abandoned', gate=gate.name))


def _cmd_refresh_gates(state: GameState, events: List[str]):
    cost = refresh_cost(state.player.level)
    if state.gold < cost:
        events.append(render_message('shop/no_gold', cost=cost, what='a gate refresh'))
        return
    state.gold -= cost
    state.gates = generate_gate_pool(state.player.level, state.rng)
    events.append(render_message('gates/refreshed', cost=cost))


# -----------------------------------------------------------------------------
# Hunter commands
# -----------------------------------------------------------------------------

def _cmd_rest(state: GameState, events: List[str]):
    restored = rest(state.player)
    events.append(render_message('rest/done', hp=restored['hp'], mp=restored['mp'], fatigue=int(restored['fatigue'])))


def _cmd_allocate_stat(state: GameState, events: List[str], stat: str):
    player = state.player
    if player.stat_points <= 0:
        events.append(render_message('progress/no_points'))
        return
    raised = allocate_stat(player, stat)
    if raised is None:
        events.append(render_message('progress/unknown_stat', stat=stat))
        return
    events.append(render_message(
        'progress/allocated', stat=raised.value,
        value=player.stats[raised.value], points=player.stat_points,
    ))


def _cmd_train(state: GameState, events: List[str], kind: str):
    rolled = roll_training(kind, state.rng)
    if rolled is None:
        events.append(render_message('train/unknown', kind=kind))
        return
    add_fatigue(state.player, rolled['fatigue'])
    events.append(render_message('train/done', message=TRAINING_MESSAGES[kind], exp=rolled['exp']))
    _grant_exp(state, events, rolled['exp'])


def _cmd_work(state: GameState, events: List[str]):
    rolled = roll_work(state.rng)
    state.gold += rolled['gold']
    state.records.gold_gained += rolled['gold']
    add_fatigue(state.player, rolled['fatigue'])
    events.append(render_message('work/done', gold=rolled['gold'], exp=rolled['exp']))
    _grant_exp(state, events, rolled['exp'])


# -----------------------------------------------------------------------------
# Item commands
# -----------------------------------------------------------------------------

def _cmd_use_item(state: GameState, events: List[str], item_id: str):
    player = state.player
    item = player.find_item(item_id)
    if item is None:
        events.append(render_message('items/not_found'))
        return

    if isinstance(item, PotionItem):
        hp_before, mp_before = player.hp, player.mp
        player.hp = clamp(player.hp + item.heal_hp, 0, player.max_hp)
        player.mp = clamp(player.mp + item.heal_mp, 0, player.max_mp)
        player.remove_item(item_id)
        line = render_message('items/potion', item=item.name, hp=player.hp - hp_before, mp=player.mp - mp_before)
    elif isinstance(item, RuneItem):
        player.stats[item.stat.value] += item.bonus
        player.remove_item(item_id)
        line = render_message('items/rune', item=item.name, bonus=item.bonus, stat=item.stat.value)
    elif isinstance(item, KeyItem):
        player.remove_item(item_id)
        player.keys += 1
        line = render_message('loot/key', keys=player.keys)
    else:
        events.append(render_message('items/equip_instead', item=item.name))
        return

    if state.combat.in_combat:
        state.combat.push_log(line)
    events.append(line)


def _cmd_equip(state: GameState, events: List[str], item_id: str):
    player = state.player
    item = player.find_item(item_id)
    if item is None:
        events.append(render_message('items/not_found'))
        return
    if not isinstance(item, EquipmentItem):
        events.append(render_message('items/not_equipment', item=item.name))
        return

    player.remove_item(item_id)
    replaced = player.equipment[item.slot.value]
    player.equipment[item.slot.value] = item
    if replaced is not None:
        player.inventory.append(replaced)
    events.append(render_message(
        'items/equipped', item=item.name, slot=item.slot.value,
        replaced=replaced.name if replaced else None,
    ))


def _cmd_unequip(state: GameState, events: List[str], slot: str):
    parsed = Slot.parse(slot)
    if parsed is None:
        events.append(render_message('items/unknown_slot', slot=slot))
        return
    item = state.player.equipment[parsed.value]
    if item is None:
        events.append(render_message('items/slot_empty', slot=parsed.value))
        return
    state.player.equipment[parsed.value] = None
    state.player.inventory.append(item)
    events.append(render_message('items/unequipped', item=item.name))


def _cmd_buy_item(state: GameState, events: List[str], kind: str):
    level = state.player.level
    cost = shop_price(kind, level)
    if cost is None:
        events.append(render_message('shop/unknown', kind=kind))
        return
    if state.gold < cost:
        events.append(render_message('shop/no_gold', cost=cost, what=f"a {kind}"))
        return
    state.gold -= cost
    item = shop_item(kind, level)
    state.player.inventory.append(item)
    events.append(render_message('shop/bought', item=item.name, cost=cost))


def _cmd_sell_item(state: GameState, events: List[str], item_id: str):
    item = state.player.remove_item(item_id)
    if item is None:
        events.append(render_message('items/not_found'))
        return
    state.gold += item.sell_value
    events.append(render_message('items/sold', item=item.name, value=item.sell_value))


# -----------------------------------------------------------------------------
# Daily quest & calendar commands
# -----------------------------------------------------------------------------

def _cmd_progress_daily_quest(state: GameState, events: List[str], quest_id: str):
    daily = state.daily
    if daily.completed or daily.forfeited:
        events.append(render_message('daily/closed'))
        return
    progress = progress_quest(daily, quest_id)
    if progress is None:
        events.append(render_message('daily/unknown_quest', quest_id=quest_id))
        return

    quest = progress.quest
    events.append(render_message('daily/progress', quest=quest.name, have=quest.have, need=quest.need))
    if not progress.quest_completed:
        return

    state.gold += quest.gold_reward
    state.records.gold_gained += quest.gold_reward
    events.append(render_message(
        'daily/quest_done', quest=quest.name, exp=quest.exp_reward,
        gold=quest.gold_reward, bonus=quest.bonus is not None,
    ))
    _grant_exp(state, events, quest.exp_reward)
    if quest.bonus is not None:
        _grant_bundle(state, events, quest.bonus)

    if progress.set_completed:
        state.records.dailies_completed += 1
        events.append(render_message('daily/set_done', reputation=progress.reputation_gained))
        _check_achievements(state, events)


def _cmd_forfeit_daily(state: GameState, events: List[str]):
    daily = state.daily
    if daily.completed or daily.forfeited:
        events.append(render_message('daily/closed'))
        return
    daily.forfeited = True
    player = state.player
    player.hp = max(1, int(math.floor(player.max_hp * PENALTY_HP_FRACTION)))
    add_fatigue(player, PENALTY_FATIGUE)
    events.append(render_message('daily/forfeit'))


def _cmd_advance_day(state: GameState, events: List[str], today: Optional[str] = None):
    _roll_day(state, events, today or state.game_time.current_date)


def _cmd_sync_calendar(state: GameState, events: List[str], today: str):
    """Roll the day over only when the calendar date has changed."""
    if today != state.game_time.current_date:
        _roll_day(state, events, today)


COMMAND_HANDLERS: Dict[str, Callable[..., None]] = {
    'start_gate': _cmd_start_gate,
    'use_key': _cmd_use_key,
    'resolve_tick': _cmd_resolve_tick,
    'dismiss_result': _cmd_dismiss_result,
    'abandon_gate': _cmd_abandon_gate,
    'refresh_gates': _cmd_refresh_gates,
    'rest': _cmd_rest,
    'allocate_stat': _cmd_allocate_stat,
    'train': _cmd_train,
    'work': _cmd_work,
    'use_item': _cmd_use_item,
    'equip': _cmd_equip,
    'unequip': _cmd_unequip,
    'buy_item': _cmd_buy_item,
    'sell_item': _cmd_sell_item,
    'progress_daily_quest': _cmd_progress_daily_quest,
    'forfeit_daily': _cmd_forfeit_daily,
    'advance_day': _cmd_advance_day,
    'sync_calendar': _cmd_sync_calendar,
}


# =============================================================================
# GAME ENGINE CLASS
# Thin facade: one method per command, plus read-only helpers.
# =============================================================================

class GameEngine:
    """
    Main game engine. Holds the current state and feeds commands through
    the reducer.

    Every command method returns (state, events). The timer that drives
    combat just calls resolve_tick() while is_in_combat() is true.
    """

    def __init__(self, state: Optional[GameState] = None, clock: Optional[Callable[[], str]] = None):
        self.clock = clock or today_iso
        self.state = state or new_game_state(today=self.clock())
        self.history: List[str] = []

    def dispatch(self, command: Command) -> Tuple[GameState, List[str]]:
        self.state, events = reduce(self.state, command)
        self.history = (self.history + events)[-ENGINE_CONFIG['history_limit']:]
        return self.state, events

    # -------------------------------------------------------------------------
    # COMMANDS
    # -------------------------------------------------------------------------

    def start_gate(self, gate_id: str):
        return self.dispatch(Command('start_gate', {'gate_id': gate_id}))

    def use_key(self):
        return self.dispatch(Command('use_key'))

    def resolve_tick(self):
        return self.dispatch(Command('resolve_tick'))

    def dismiss_result(self):
        return self.dispatch(Command('dismiss_result'))

    def abandon_gate(self):
        return self.dispatch(Command('abandon_gate'))

    def refresh_gates(self):
        return self.dispatch(Command('refresh_gates'))

    def rest(self):
        return self.dispatch(Command('rest'))

    def allocate_stat(self, stat: str):
        return self.dispatch(Command('allocate_stat', {'stat': stat}))

    def train(self, kind: str):
        return self.dispatch(Command('train', {'kind': kind}))

    def work(self):
        return self.dispatch(Command('work'))

    def use_item(self, item_id: str):
        return self.dispatch(Command('use_item', {'item_id': item_id}))

    def equip(self, item_id: str):
        return self.dispatch(Command('equip', {'item_id': item_id}))

    def unequip(self, slot: str):
        return self.dispatch(Command('unequip', {'slot': slot}))

    def buy_item(self, kind: str):
        return self.dispatch(Command('buy_item', {'kind': kind}))

    def sell_item(self, item_id: str):
        return self.dispatch(Command('sell_item', {'item_id': item_id}))

    def progress_daily_quest(self, quest_id: str):
        return self.dispatch(Command('progress_daily_quest', {'quest_id': quest_id}))

    def forfeit_daily(self):
        return self.dispatch(Command('forfeit_daily'))

    def advance_day(self):
        return self.dispatch(Command('advance_day', {'today': self.clock()}))

    def sync_calendar(self):
        return self.dispatch(Command('sync_calendar', {'today': self.clock()}))

    # -------------------------------------------------------------------------
    # READ-ONLY API
    # -------------------------------------------------------------------------

    def get_state(self) -> GameState:
        """Return a detached snapshot, safe to serialize or inspect."""
        return copy.deepcopy(self.state)

    def is_in_combat(self) -> bool:
        return self.state.combat.in_combat

    def get_power(self) -> int:
        return self.state.power

    def get_summary(self) -> Dict[str, Any]:
        p = self.state.player
        return {
            'day': self.state.game_time.day,
            'level': p.level,
            'exp': p.exp,
            'exp_next': p.exp_next,
            'hp': p.hp,
            'max_hp': p.max_hp,
            'mp': p.mp,
            'max_mp': p.max_mp,
            'fatigue': p.fatigue,
            'power': self.state.power,
            'gold': self.state.gold,
            'keys': p.keys,
            'allies': len(p.allies),
            'gates': len(self.state.gates),
            'combat': self.state.combat.phase.value,
            'result': self.state.combat.result.to_dict() if self.state.combat.result else None,
            'reputation': self.state.daily.reputation,
        }


# =============================================================================
# SAVE / LOAD
# =============================================================================

class KeyValueStore(ABC):
    """Where serialized GameState blobs live."""

    @abstractmethod
    def save(self, key: str, data: str) -> None:
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass


class JsonFileStore(KeyValueStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory or ENGINE_CONFIG['save_dir'])

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def save(self, key: str, data: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(data, encoding='utf-8')

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(f.stem for f in self.directory.glob('*.json'))


class MemoryStore(KeyValueStore):
    """In-process store, handy for tests and previews."""

    def __init__(self):
        self.blobs: Dict[str, str] = {}

    def save(self, key: str, data: str) -> None:
        self.blobs[key] = data

    def load(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def delete(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


def save_game(state: GameState, store: Optional[KeyValueStore] = None, key: Optional[str] = None) -> str:
    """
    Serialize a between-commands snapshot of the state.

    Returns the key written. The combat session is not part of the save.
    """
    store = store or JsonFileStore()
    key = key or ENGINE_CONFIG['save_key']
    store.save(key, json.dumps(state.to_dict(), indent=2))
    return key


def load_game(
    store: Optional[KeyValueStore] = None,
    key: Optional[str] = None,
    rng: Optional[RandomSource] = None
) -> Optional[GameState]:
    """
    Deserialize a GameState. Returns None when nothing is saved.

    Raises:
        CorruptSaveError: If the blob is not valid JSON or not a valid state
    """
    store = store or JsonFileStore()
    key = key or ENGINE_CONFIG['save_key']
    raw = store.load(key)
    if raw is None:
        return None

    try:
        data = json.loads(raw)
        return GameState.from_dict(data, rng=rng)
    except (ValueError, KeyError, TypeError, AttributeError, OverflowError) as e:
        raise CorruptSaveError(f"Save '{key}' is unreadable: {e}") from e


def restore_or_new_game(
    store: Optional[KeyValueStore] = None,
    key: Optional[str] = None,
    seed: Optional[int] = None,
    clock: Optional[Callable[[], str]] = None
) -> Tuple[GameEngine, List[str]]:
    """Load a save if there is a usable one, otherwise start fresh."""
    clock = clock or today_iso
    try:
        state = load_game(store, key)
    except CorruptSaveError as e:
        logger.warning(f"Falling back to a new game: {e}")
        engine = new_game(seed=seed, clock=clock)
        return engine, [render_message('system/corrupt_save')]

    if state is None:
        engine = new_game(seed=seed, clock=clock)
        return engine, [render_message('system/welcome')]
    return GameEngine(state=state, clock=clock), [render_message('system/loaded')]


# =============================================================================
# EXCEPTIONS
# =============================================================================

class CorruptSaveError(Exception):
    """Raised when persisted state cannot be turned back into a GameState."""
    pass


class InvalidCommandError(Exception):
    """Raised when a command name has no handler."""
    pass


# =============================================================================
# NEW GAME FACTORY
# =============================================================================

def new_game_state(
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
    today: Optional[str] = None
) -> GameState:
    """Fresh level-1 hunter with a starting gate pool and daily set."""
    rng = rng or SeededRandom(seed)
    today = today or today_iso()
    player = Player()
    return GameState(
        player=player,
        gates=generate_gate_pool(player.level, rng),
        gold=ENGINE_CONFIG['starting_gold'],
        game_time=GameTime(day=1, current_date=today, last_reset=today),
        daily=new_daily(today, player.level, 0, rng),
        rng_seed=getattr(rng, 'seed', seed),
        rng=rng,
    )


def new_game(
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
    clock: Optional[Callable[[], str]] = None
) -> GameEngine:
    """Create a new game with default starting state."""
    clock = clock or today_iso
    state = new_game_state(seed=seed, rng=rng, today=clock())
    return GameEngine(state=state, clock=clock)


# =============================================================================
# MAIN ENTRY (for testing)
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    engine = new_game(seed=42)
    print("Initial state:", engine.get_summary())

    gate = engine.state.gates[0]
    _, events = engine.start_gate(gate.id)
    print("\n".join(events))

    while engine.is_in_combat():
        _, events = engine.resolve_tick()
        print("\n".join(events))

    engine.dismiss_result()
    print("\nAfter the run:", engine.get_summary())
