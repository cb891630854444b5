"""
Random selection helpers shared by the generators.

Generators take any object exposing ``randint``, ``random``, ``choice`` and
``shuffle``; ``random.Random`` qualifies, and tests pass scripted stubs.
"""

from typing import Any, List, Protocol, Sequence, Tuple, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...

    def random(self) -> float: ...

    def choice(self, seq: Sequence[Any]) -> Any: ...

    def shuffle(self, x: List[Any]) -> None: ...


def weighted_choice(pairs: Sequence[Tuple[T, int]], rng: RandomSource) -> T:
    """
    Pick a value from ``(value, weight)`` pairs.

    Draws an integer in [1, total weight] and walks the cumulative weights
    until the draw is covered. With weights {5: 50, 4: 35, 3: 15} a draw of
    50 gives 5, 51 gives 4 and 86 gives 3.
    """
    if not pairs:
        raise ValueError("weighted_choice needs at least one (value, weight) pair")

    total = sum(weight for _, weight in pairs)
    if total <= 0:
        raise ValueError("weighted_choice needs a positive total weight")

    draw = rng.randint(1, total)
    cumulative = 0
    for value, weight in pairs:
        cumulative += weight
        if draw <= cumulative:
            return value
    return pairs[-1][0]


def cycle_choice(values: Sequence[T], index: int) -> T:
    """Return ``values[index mod len(values)]``."""
    if not values:
        raise ValueError("cycle_choice needs a non-empty sequence")
    return values[index % len(values)]


def percent_chance(rng: RandomSource, percent: int) -> bool:
    """True with ``percent``% probability (draw in [1, 100] <= percent)."""
    return rng.randint(1, 100) <= percent
