"""
Tests for procedural content: gates, loot, the shop and spirit binding.
"""

import pytest

from content.gates import (
    MIN_POOL_SIZE, generate_gate_pool, make_boss, make_gate, make_instant_dungeon,
    recommended_power, refresh_cost, remove_cleared_gate, unlocked_ranks,
)
from content.loot import (
    RARITY_WEIGHTS, roll_drop, roll_equipment, roll_quality, shop_item, shop_price,
)
from content.spirits import (
    MAX_CHANCE, MIN_CHANCE, ally_power, attempt_binding, calc_binding_chance, create_ally,
    RARITY_ABILITY_COUNT,
)
from models import (
    EquipmentItem, KeyItem, Player, PotionItem, Rank, Rarity, RuneItem, Slot, Stat,
)
from rng import ScriptedRandom, SeededRandom

from conftest import make_test_gate


class TestGateGeneration:
    """Recommended power curve, bosses and the gate pool."""

    def test_recommended_power_curve(self):
        assert recommended_power(Rank.E) == 30
        assert recommended_power(Rank.D) == 69
        assert recommended_power(Rank.A) == 374
        assert recommended_power(Rank.S) == 389

    def test_recommended_power_increases_with_rank(self):
        values = [recommended_power(rank) for rank in Rank]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_gate_power_floor(self):
        rng = ScriptedRandom(ints=[-20])
        gate = make_gate(Rank.E, rng)
        assert gate.power == 10
        assert gate.recommended == 30

    def test_boss_stats_derive_from_recommended(self):
        boss = make_boss(Rank.E, ScriptedRandom(ints=[0, 0, 0]))
        assert boss.max_hp == 240
        assert boss.hp == boss.max_hp
        assert boss.atk == 24
        assert boss.defense == 9

    def test_top_tier_attack_is_softened(self):
        """S-rank bosses use the 0.65 attack multiplier."""
        boss = make_boss(Rank.S, ScriptedRandom(ints=[0, 0, 0]))
        assert boss.atk == int(389 * 0.65)

    def test_unlocked_ranks(self):
        assert unlocked_ranks(1) == [Rank.E]
        assert unlocked_ranks(6) == [Rank.E, Rank.D, Rank.C]
        assert unlocked_ranks(18) == list(Rank)

    @pytest.mark.parametrize('level', [1, 2, 3, 6, 10, 15, 18, 25, 40])
    def test_pool_never_below_minimum(self, level):
        for seed in range(20):
            pool = generate_gate_pool(level, SeededRandom(seed))
            assert len(pool) >= MIN_POOL_SIZE
            assert all(gate.power >= 10 for gate in pool)

    def test_level_one_pool_is_bottom_tier(self):
        pool = generate_gate_pool(1, SeededRandom(3))
        assert {gate.rank for gate in pool} == {Rank.E}

    def test_high_level_pool_contains_top_tier(self):
        pool = generate_gate_pool(18, SeededRandom(3))
        assert any(gate.rank == Rank.S for gate in pool)

    def test_remove_cleared_gate_keeps_pool(self):
        gates = [make_test_gate(f"g{i}") for i in range(4)]
        pool, regenerated = remove_cleared_gate(gates, 'g0', 1, SeededRandom(1))
        assert not regenerated
        assert [g.id for g in pool] == ['g1', 'g2', 'g3']

    def test_remove_cleared_gate_regenerates_small_pool(self):
        gates = [make_test_gate(f"g{i}") for i in range(3)]
        pool, regenerated = remove_cleared_gate(gates, 'g0', 1, SeededRandom(1))
        assert regenerated
        assert len(pool) >= MIN_POOL_SIZE
        assert 'g1' not in [g.id for g in pool]

    def test_refresh_cost(self):
        assert refresh_cost(1) == 10
        assert refresh_cost(2) == 10
        assert refresh_cost(7) == 35

    def test_instant_dungeon_rank_band(self):
        for seed in range(30):
            gate = make_instant_dungeon(SeededRandom(seed))
            assert Rank.D <= gate.rank <= Rank.B
            assert gate.name.startswith('Instant Dungeon')


class TestLoot:
    """Drop bands, rarity gating, quality."""

    @pytest.mark.parametrize('roll,expected', [
        (0.0, KeyItem),
        (0.07, KeyItem),
        (0.08, RuneItem),
        (0.27, RuneItem),
        (0.30, PotionItem),
        (0.60, EquipmentItem),
    ])
    def test_drop_bands(self, roll, expected):
        drop = roll_drop(Rank.C, ScriptedRandom(floats=[roll]))
        assert isinstance(drop, expected)

    @pytest.mark.parametrize('roll', [0.65, 0.8, 0.99])
    def test_no_drop_band(self, roll):
        assert roll_drop(Rank.C, ScriptedRandom(floats=[roll])) is None

    def test_rarity_gated_by_rank(self):
        """E-rank loot is never rare or better."""
        assert RARITY_WEIGHTS[Rank.E][Rarity.RARE] == 0
        rng = SeededRandom(11)
        for _ in range(200):
            assert roll_equipment(Rank.E, rng).rarity <= Rarity.UNCOMMON

    def test_quality_clamped(self):
        rng = SeededRandom(5)
        for rarity in Rarity:
            for _ in range(50):
                assert 1 <= roll_quality(rarity, rng) <= 100

    def test_equipment_primary_stat_matches_slot(self):
        rng = SeededRandom(8)
        for _ in range(50):
            item = roll_equipment(Rank.D, rng)
            if item.slot == Slot.WEAPON:
                assert item.primary_stat == Stat.STR
            elif item.slot == Slot.ARMOR:
                assert item.primary_stat == Stat.VIT
            assert item.primary_stat.value in item.bonuses

    def test_rune_carries_its_stat(self):
        rune = roll_drop(Rank.B, ScriptedRandom(floats=[0.1]))
        assert isinstance(rune, RuneItem)
        assert rune.stat in Stat
        assert rune.bonus >= 1


class TestShop:
    """Hunter shop prices and stock."""

    def test_prices(self):
        assert shop_price('potion', 1) == 25
        assert shop_price('weapon', 1) == 125
        assert shop_price('armor', 2) == 120
        assert shop_price('accessory', 3) == 210
        assert shop_price('dragon', 1) is None

    def test_shop_potion(self):
        potion = shop_item('potion', 1)
        assert isinstance(potion, PotionItem)
        assert potion.heal_hp == 50
        assert potion.heal_mp == 15

    def test_shop_gear_scales_with_level(self):
        weapon = shop_item('weapon', 6)
        assert isinstance(weapon, EquipmentItem)
        assert weapon.slot == Slot.WEAPON
        assert weapon.bonuses == {'STR': 5}

    def test_unknown_kind(self):
        assert shop_item('dragon', 1) is None


class TestBinding:
    """Spirit binding chance and the created ally."""

    def test_starting_chance(self):
        """0.25 + 5 * 0.008 + 5 * 0.01 at E-rank."""
        assert calc_binding_chance(Player(), Rank.E) == pytest.approx(0.34)

    def test_rank_lowers_chance(self):
        player = Player()
        assert calc_binding_chance(player, Rank.S) < calc_binding_chance(player, Rank.E)

    def test_chance_bounds(self):
        strong = Player(stats={'STR': 5, 'AGI': 5, 'INT': 500, 'VIT': 5, 'LUCK': 500})
        weak = Player(stats={'STR': 0, 'AGI': 0, 'INT': 0, 'VIT': 0, 'LUCK': 0})
        assert calc_binding_chance(strong, Rank.E) == MAX_CHANCE
        for rank in Rank:
            assert MIN_CHANCE <= calc_binding_chance(weak, rank) <= MAX_CHANCE

    def test_failed_binding(self):
        chance, ally = attempt_binding(Player(), make_test_gate(), ScriptedRandom(floats=[0.9]))
        assert chance == pytest.approx(0.34)
        assert ally is None

    def test_successful_binding(self):
        gate = make_test_gate(recommended=100)
        chance, ally = attempt_binding(Player(), gate, ScriptedRandom(floats=[0.0, 0.0]))
        assert ally is not None
        assert ally.rarity == Rarity.COMMON
        assert ally.power == 80
        assert len(ally.abilities) == RARITY_ABILITY_COUNT[Rarity.COMMON]

    def test_attempt_does_not_attach_ally(self):
        player = Player()
        attempt_binding(player, make_test_gate(), ScriptedRandom(floats=[0.0]))
        assert player.allies == []

    def test_ally_power_scales_with_rarity(self):
        assert ally_power(100, Rarity.COMMON) == 80
        assert ally_power(100, Rarity.LEGENDARY) == 240

    def test_ability_count_matches_rarity(self):
        rng = SeededRandom(2)
        for _ in range(30):
            ally = create_ally(make_test_gate(rank=Rank.S), rng)
            assert len(ally.abilities) == RARITY_ABILITY_COUNT[ally.rarity]
            assert len({a.id for a in ally.abilities}) == len(ally.abilities)
