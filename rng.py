"""
Random Source Module - Hunter's Path

Every random draw in the engine goes through a RandomSource.
Production play uses SeededRandom; tests can script exact rolls.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Sequence, TypeVar, Iterable
import random

T = TypeVar('T')


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class RandomSource(ABC):
    """
    Abstract interface for randomness.

    Formulas call next_int/next_float only. Helpers built on top of those
    two keep every implementation consistent.
    """

    @abstractmethod
    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both ends inclusive."""
        pass

    @abstractmethod
    def next_float(self) -> float:
        """Uniform float in [0, 1)."""
        pass

    def chance(self, probability: float) -> bool:
        """Single Bernoulli trial."""
        return self.next_float() < probability

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("choice() from an empty sequence")
        return options[self.next_int(0, len(options) - 1)]

    def weighted_index(self, weights: Sequence[float]) -> int:
        """Pick an index with probability proportional to its weight."""
        total = sum(weights)
        if total <= 0:
            raise ValueError("weighted_index() needs a positive total weight")
        roll = self.next_float() * total
        upto = 0.0
        for idx, weight in enumerate(weights):
            upto += weight
            if roll < upto:
                return idx
        # Float rounding can leave roll == total
        return max(i for i, w in enumerate(weights) if w > 0)

    def shuffled(self, items: Iterable[T]) -> List[T]:
        """Fisher-Yates shuffle into a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def getstate(self) -> Optional[list]:
        """JSON-friendly generator state, or None when it cannot be saved."""
        return None

    def setstate(self, state: list) -> None:
        pass


# =============================================================================
# SEEDED IMPLEMENTATION
# =============================================================================

class SeededRandom(RandomSource):
    """Reproducible source backed by random.Random."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed if seed is not None else random.randint(0, 2**32)
        self._rng = random.Random(self.seed)

    def next_int(self, lo: int, hi: int) -> int:
        if hi < lo:
            lo, hi = hi, lo
        return self._rng.randint(lo, hi)

    def next_float(self) -> float:
        return self._rng.random()

    def getstate(self) -> list:
        version, internal, gauss_next = self._rng.getstate()
        return [version, list(internal), gauss_next]

    def setstate(self, state: list) -> None:
        """Resume the sequence saved by getstate()."""
        version, internal, gauss_next = state
        self._rng.setstate((version, tuple(internal), gauss_next))


# =============================================================================
# SCRIPTED IMPLEMENTATION (for testing)
# =============================================================================

class ScriptedRandom(RandomSource):
    """
    Returns queued values in order, then defers to a fallback source.

    Useful for:
    - Pinning a single combat tick or loot roll in unit tests
    - Reproducing a reported sequence of rolls

    Scripted integers are clamped into the requested range so a script
    written for one formula can never produce an impossible roll.
    """

    def __init__(
        self,
        ints: Optional[List[int]] = None,
        floats: Optional[List[float]] = None,
        fallback: Optional[RandomSource] = None
    ):
        self.ints = list(ints or [])
        self.floats = list(floats or [])
        self.fallback = fallback or SeededRandom(0)
        self.call_history: List[tuple] = []

    def next_int(self, lo: int, hi: int) -> int:
        if hi < lo:
            lo, hi = hi, lo
        if self.ints:
            value = max(lo, min(hi, int(self.ints.pop(0))))
        else:
            value = self.fallback.next_int(lo, hi)
        self.call_history.append(('int', lo, hi, value))
        return value

    def next_float(self) -> float:
        if self.floats:
            value = max(0.0, min(0.999999, float(self.floats.pop(0))))
        else:
            value = self.fallback.next_float()
        self.call_history.append(('float', value))
        return value


# =============================================================================
# FACTORY
# =============================================================================

def create_random_source(kind: str = 'seeded', seed: Optional[int] = None, **kwargs) -> RandomSource:
    """
    Build a random source by name.

    Args:
        kind: 'seeded' or 'scripted'
        seed: Seed for the seeded source (or the scripted fallback)
    """
    if kind == 'seeded':
        return SeededRandom(seed)
    if kind == 'scripted':
        return ScriptedRandom(fallback=SeededRandom(seed if seed is not None else 0), **kwargs)
    raise ValueError(f"Unknown random source: {kind}")
