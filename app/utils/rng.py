"""Random source used by the battle engine.

Every random decision in a battle (ability choice, dice, critical hits and the
final coin toss) goes through a ``RandomSource`` handed to the engine, so tests
can script the exact sequence of draws. ``random.Random`` satisfies the
protocol, as does the ``random`` module itself.
"""

import random
from collections.abc import Sequence
from typing import Protocol


class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def randint(self, a: int, b: int) -> int: ...

    def choice[T](self, seq: Sequence[T]) -> T: ...

    def sample[T](self, population: Sequence[T], k: int) -> list[T]: ...


def default_rng() -> RandomSource:
    return random.Random()  # noqa: S311


def get_rng() -> RandomSource:
    """FastAPI dependency providing a fresh random source per request."""
    return default_rng()


def roll_d6(rng: RandomSource) -> int:
    return rng.randint(1, 6)


def coin_toss(rng: RandomSource) -> bool:
    """Unbiased coin toss; True means heads."""
    return rng.random() < 0.5
