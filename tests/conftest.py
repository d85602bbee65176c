"""
Shared fixtures: hand-built gates and states with known numbers.
"""

import pytest

from engine import GameEngine, GameState
from models import Boss, Gate, Player, Rank
from rng import SeededRandom

TODAY = '2024-03-01'


def make_test_gate(gate_id='g1', rank=Rank.E, boss_hp=10, atk=1, defense=1, recommended=30):
    boss = Boss('Test Boss', boss_hp, boss_hp, atk, defense)
    return Gate(
        id=gate_id,
        name=f"Test Gate {gate_id}",
        rank=rank,
        recommended=recommended,
        power=recommended,
        boss=boss,
    )


def make_test_state(gates=None, rng=None, **kwargs) -> GameState:
    if gates is None:
        gates = [make_test_gate(f"g{i}") for i in range(1, 5)]
    return GameState(
        player=kwargs.pop('player', Player()),
        gates=gates,
        rng=rng or SeededRandom(7),
        **kwargs
    )


class FakeClock:
    """Callable date source the tests can move forward."""

    def __init__(self, today=TODAY):
        self.today = today

    def __call__(self):
        return self.today


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Engine over four weak E-rank test gates."""
    return GameEngine(state=make_test_state(), clock=clock)
