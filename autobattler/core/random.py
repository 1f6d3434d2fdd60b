"""Seeded random number generation.

All randomness inside a battle (dodge rolls, shuffles, bot generation)
flows through these helpers so that a seed fully determines the outcome.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def seeded_random(seed: int) -> float:
    """
    Get a single deterministic float in [0, 1) for a seed.

    Args:
        seed: Any integer (negative values are allowed).

    Returns:
        The first value of the sequence for this seed.
    """
    return random.Random(seed).random()


class SeededRandom:
    """
    Deterministic pseudo-random sequence.

    Usage:
        rng = SeededRandom(12345)
        roll = rng.next()
        order = rng.shuffle(units)
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)
        self.draws = 0

    def next(self) -> float:
        """Next float in [0, 1)."""
        self.draws += 1
        return self._rng.random()

    def next_int(self, low: int, high: int) -> int:
        """Next integer in [low, high] (both inclusive)."""
        return low + int(self.next() * (high - low + 1))

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """
        Fisher-Yates shuffle into a new list.

        The input sequence is not modified.
        """
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result

    def pick(self, items: Sequence[T]) -> Optional[T]:
        """Pick one element, or None for an empty sequence."""
        if not items:
            return None
        return items[int(self.next() * len(items))]


def shuffle(items: Sequence[T], seed: int) -> List[T]:
    """Shuffle a sequence deterministically for a seed."""
    return SeededRandom(seed).shuffle(items)
