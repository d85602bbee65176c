"""
Tests for the combat resolver state machine and its formulas.
"""

import pytest

from combat import (
    CombatPhase, CombatResolver, TickReport, boss_damage, defeat_recovery_hp,
    mp_upkeep, player_damage, victory_rewards,
)
from models import Ally, AllyRole, Player, Rarity
from progression import player_power
from rng import ScriptedRandom

from conftest import make_test_gate


def power_40_player(**kwargs) -> Player:
    """STR 6, AGI 6: 18 + 12 + 7.5 + 2.5 = 40."""
    player = Player(**kwargs)
    player.stats['STR'] = 6
    player.stats['AGI'] = 6
    return player


class TestFormulas:
    """Per-tick damage and reward math."""

    @pytest.mark.parametrize('roll,expected', [(0, 45), (3, 48), (6, 51)])
    def test_player_damage_range(self, roll, expected):
        """Power 40 vs def 10: floor(48 - 3 + roll)."""
        assert player_damage(40, 10, roll) == expected

    def test_player_damage_at_least_one(self):
        assert player_damage(1, 500, 0) == 1

    def test_boss_damage(self):
        """floor(50 * 0.8 - 5 * 0.7 + 3) = floor(39.5)."""
        assert boss_damage(50, 5, 3) == 39

    def test_boss_damage_fully_blocked(self):
        assert boss_damage(1, 50, 3) == 0

    def test_mp_upkeep(self):
        allies = [
            Ally('a1', 'Nox-1', power=50, rarity=Rarity.COMMON, role=AllyRole.MAGE),
            Ally('a2', 'Nox-2', power=60, rarity=Rarity.RARE, role=AllyRole.SUPPORT),
        ]
        # floor(2 + 1.0 + 1.2)
        assert mp_upkeep(allies) == 4
        assert mp_upkeep([]) == 0

    def test_defeat_recovery(self):
        assert defeat_recovery_hp(150) == 30
        assert defeat_recovery_hp(10) == 5

    def test_victory_rewards(self):
        gate = make_test_gate(recommended=30)
        rewards = victory_rewards(gate, ScriptedRandom(ints=[10, 5]))
        assert rewards == {'exp': 43, 'gold': 29}

    def test_critical_flag(self):
        report = TickReport(1, 40, 61, 0, 0, 10, 100, CombatPhase.IN_COMBAT)
        assert report.critical
        report.dmg_player = 60
        assert not report.critical


class TestCombatResolver:
    """IDLE -> IN_COMBAT -> VICTORY | DEFEAT -> IDLE."""

    def test_start_snapshots_fresh_boss(self):
        gate = make_test_gate(boss_hp=200)
        gate.boss.hp = 5
        resolver = CombatResolver()

        assert resolver.start(gate)
        assert resolver.phase == CombatPhase.IN_COMBAT
        assert resolver.enemy_hp == 200
        assert resolver.boss.hp == 200
        assert resolver.boss is not gate.boss

    def test_only_one_session(self):
        resolver = CombatResolver()
        first = make_test_gate('first')
        resolver.start(first)

        assert not resolver.start(make_test_gate('second'))
        assert resolver.gate is first

    def test_tick_damage_within_bounds(self):
        player = power_40_player()
        assert player_power(player) == 40

        low = CombatResolver()
        low.start(make_test_gate(boss_hp=1000, defense=10))
        report = low.resolve_tick(player, ScriptedRandom(ints=[0, 0]))
        assert report.dmg_player == 45
        assert low.enemy_hp == 955

        high = CombatResolver()
        high.start(make_test_gate(boss_hp=1000, defense=10))
        report = high.resolve_tick(power_40_player(), ScriptedRandom(ints=[6, 0]))
        assert report.dmg_player == 51

    def test_tick_applies_upkeep_and_fatigue(self):
        player = Player(mp=10)
        player.allies.append(Ally('a1', 'Kage-7', power=50, rarity=Rarity.COMMON, role=AllyRole.ASSASSIN))
        resolver = CombatResolver()
        resolver.start(make_test_gate(boss_hp=5000))

        report = resolver.resolve_tick(player, ScriptedRandom(ints=[0, 0]))

        assert report.upkeep == 2
        assert player.mp == 8
        assert player.fatigue == 0.5
        assert resolver.tick == 1

    def test_mp_never_negative(self):
        player = Player(mp=1)
        player.allies.append(Ally('a1', 'Ater-3', power=500, rarity=Rarity.EPIC, role=AllyRole.WARRIOR))
        resolver = CombatResolver()
        resolver.start(make_test_gate(boss_hp=100000))
        resolver.resolve_tick(player, ScriptedRandom(ints=[0, 0]))
        assert player.mp == 0

    def test_enemy_death_wins_ties(self):
        """Both sides drop to zero on the same tick: the hunter wins."""
        player = Player(hp=1)
        resolver = CombatResolver()
        resolver.start(make_test_gate(boss_hp=1, atk=1000))

        report = resolver.resolve_tick(player, ScriptedRandom(ints=[0, 3]))

        assert player.hp == 0
        assert report.phase == CombatPhase.VICTORY
        assert resolver.phase == CombatPhase.VICTORY

    def test_defeat(self):
        player = Player(hp=10)
        resolver = CombatResolver()
        resolver.start(make_test_gate(boss_hp=100000, atk=500))

        resolver.resolve_tick(player, ScriptedRandom(ints=[0, 0]))

        assert resolver.phase == CombatPhase.DEFEAT
        assert player.hp == 0

    def test_terminal_tick_is_idempotent(self):
        player = Player()
        resolver = CombatResolver()
        resolver.start(make_test_gate(boss_hp=1))
        resolver.resolve_tick(player, ScriptedRandom())
        snapshot = player.to_dict()

        assert resolver.resolve_tick(player, ScriptedRandom()) is None
        assert player.to_dict() == snapshot
        assert resolver.tick == 1

    def test_idle_tick_does_nothing(self):
        assert CombatResolver().resolve_tick(Player(), ScriptedRandom()) is None

    def test_dismiss_returns_to_idle(self):
        resolver = CombatResolver()
        assert not resolver.dismiss()

        resolver.start(make_test_gate(boss_hp=1))
        assert not resolver.dismiss()
        resolver.resolve_tick(Player(), ScriptedRandom())
        result = resolver.record_result(exp_gained=10)

        assert result.victory
        assert result.ticks == 1
        assert resolver.dismiss()
        assert resolver.is_idle
        assert resolver.gate is None

    def test_abandon_only_in_combat(self):
        resolver = CombatResolver()
        assert not resolver.abandon()

        resolver.start(make_test_gate(boss_hp=1000))
        assert resolver.abandon()
        assert resolver.is_idle

    def test_log_is_bounded(self):
        resolver = CombatResolver()
        resolver.push_log(*[f"line {i}" for i in range(20)])
        assert len(resolver.log) == 8
        assert resolver.log[-1] == 'line 19'
