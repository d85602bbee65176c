"""
Tests for the power model and leveling - the numbers must be exact.
"""

import pytest

from models import Ally, AllyRole, EquipmentItem, Player, Rarity, Slot, Stat
from progression import (
    allocate_stat, handle_level_gain, passive_day_exp, player_power,
    rest, roll_training, roll_work, add_fatigue,
)
from rng import ScriptedRandom


class TestPowerModel:
    """Power is recomputed from stats, equipment, allies and fatigue."""

    def test_starting_stats_give_power_35(self):
        """5 in every stat: 15 + 10 + 7.5 + 2.5 = 35. LUCK adds nothing."""
        assert player_power(Player()) == 35

    def test_luck_does_not_add_power(self):
        player = Player()
        player.stats["LUCK"] = 90
        assert player_power(player) == 35

    def test_allies_add_their_power(self):
        player = Player()
        player.allies.append(Ally('a1', 'Umbra-1', power=20, rarity=Rarity.COMMON, role=AllyRole.WARRIOR))
        assert player_power(player) == 55

    def test_fatigue_penalty_caps_at_forty_percent(self):
        """fatigue 100 -> penalty min(0.4, 0.4) -> 38 * 0.6 = 22.8."""
        player = Player(fatigue=100)
        player.stats["STR"] = 6
        assert player_power(player) == 22

    def test_partial_fatigue(self):
        """fatigue 55 -> 1 - 0.22 -> 35 * 0.78 = 27.3."""
        assert player_power(Player(fatigue=55)) == 27

    def test_power_never_below_one(self):
        player = Player(stats={'STR': 0, 'AGI': 0, 'INT': 0, 'VIT': 0, 'LUCK': 0})
        assert player_power(player) == 1

    def test_equipment_bonus_counts(self):
        """A +3 STR weapon adds 9 power."""
        player = Player()
        player.equipment['weapon'] = EquipmentItem(
            id='w1', name='Blade', slot=Slot.WEAPON,
            primary_stat=Stat.STR, bonuses={'STR': 3},
        )
        assert player.effective_stat(Stat.STR) == 8
        assert player_power(player) == 44


class TestLevelGain:
    """The leveling curve."""

    def test_two_level_ups_from_250_exp(self):
        """100 then 135 are consumed; exp_next ends at floor(135 * 1.35)."""
        player = Player()
        gain = handle_level_gain(player, 250)

        assert player.level == 3
        assert player.exp == 15
        assert player.exp_next == 182
        assert player.stat_points == 5 + 10
        assert gain.levels == 2
        assert gain.stat_points_gained == 10

    def test_exp_below_threshold_after_gain(self):
        player = Player()
        for amount in (1, 99, 100, 5000, 123456):
            handle_level_gain(player, amount)
            assert player.exp < player.exp_next

    def test_tiny_threshold_still_grows(self):
        """floor(1 * 1.35) would stay at 1; the threshold steps to 2 then 3."""
        player = Player(exp_next=1)
        handle_level_gain(player, 3)

        assert player.level == 3
        assert player.exp == 0
        assert player.exp_next == 3

    def test_no_level_up_below_threshold(self):
        player = Player()
        gain = handle_level_gain(player, 99)
        assert player.level == 1
        assert player.exp == 99
        assert not gain.leveled_up

    def test_negative_exp_is_ignored(self):
        player = Player(exp=40)
        gain = handle_level_gain(player, -500)
        assert player.exp == 40
        assert gain.exp_added == 0

    def test_level_up_raises_caps_and_floors_hp(self):
        """A battered hunter is patched up to 60% HP and 50% MP on level-up."""
        player = Player(hp=10, mp=0)
        handle_level_gain(player, 100)

        assert player.max_hp == 110
        assert player.max_mp == 55
        assert player.hp == 66
        assert player.mp == 27

    def test_level_up_does_not_lower_hp(self):
        player = Player(hp=100)
        handle_level_gain(player, 100)
        assert player.hp == 100


class TestAllocateStat:
    """Spending stat points."""

    def test_allocate_spends_one_point(self):
        player = Player()
        assert allocate_stat(player, 'str') == Stat.STR
        assert player.stats['STR'] == 6
        assert player.stat_points == 4

    def test_unknown_stat_changes_nothing(self):
        player = Player()
        assert allocate_stat(player, 'CHARISMA') is None
        assert player.stat_points == 5

    def test_no_points_changes_nothing(self):
        player = Player(stat_points=0)
        assert allocate_stat(player, 'AGI') is None
        assert player.stats['AGI'] == 5


class TestRecovery:
    """Rest, training, work and passive exp."""

    def test_rest_restores_and_relieves(self):
        player = Player(hp=10, mp=5, fatigue=30)
        restored = rest(player)

        assert player.hp == 50
        assert player.mp == 30
        assert player.fatigue == 10
        assert restored == {'hp': 40, 'mp': 25, 'fatigue': 20}

    def test_rest_is_capped(self):
        player = Player(hp=95, fatigue=5)
        restored = rest(player)
        assert player.hp == player.max_hp
        assert player.fatigue == 0
        assert restored['hp'] == 5

    def test_fatigue_clamped(self):
        player = Player(fatigue=98)
        add_fatigue(player, 10)
        assert player.fatigue == 100
        add_fatigue(player, -500)
        assert player.fatigue == 0

    def test_training_uses_table_ranges(self):
        rolled = roll_training('physical', ScriptedRandom(ints=[99, -99]))
        assert rolled == {'exp': 15, 'fatigue': 5}

    def test_meditation_recovers_fatigue(self):
        rolled = roll_training('meditation', ScriptedRandom(ints=[4, -12]))
        assert rolled['fatigue'] == -12

    def test_unknown_training(self):
        assert roll_training('juggling', ScriptedRandom()) is None

    def test_work_ranges(self):
        rolled = roll_work(ScriptedRandom(ints=[0, 0, 0]))
        assert rolled == {'gold': 15, 'exp': 3, 'fatigue': 8}

    @pytest.mark.parametrize('day,expected', [(1, 12), (2, 14), (10, 30)])
    def test_passive_day_exp(self, day, expected):
        assert passive_day_exp(day) == expected
