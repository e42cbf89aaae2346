"""
Randomness capability shared by the catalog, market, event and transaction code.

Anything exposing ``random() -> float in [0, 1)`` works as a source, so a
seeded ``random.Random`` gives deterministic replays.
"""

import math
import random
from typing import Optional, Protocol


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def default_source(seed: Optional[int] = None) -> random.Random:
    """Seedable source used when a caller does not inject one."""
    return random.Random(seed)


def uniform(rng: RandomSource, low: float, high: float) -> float:
    """Draw from [low, high) using a single ``random()`` sample."""
    return low + rng.random() * (high - low)


def choose_index(rng: RandomSource, count: int) -> int:
    """Uniform index in [0, count)."""
    return min(int(rng.random() * count), count - 1)


def half_up(value: float) -> int:
    """Round halves toward +inf, matching the rounding stored in existing saves."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
