"""Extension of 48-bit seed classes to full 64-bit seeds."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from mc_seedfinder.rng import batch
from mc_seedfinder.rng.java_random import MASK48, extend_long_48, state_for_next_long

HIGH_BITS = 16


def expand_full(low48: int) -> np.ndarray:
    """All 2^16 seeds sharing ``low48``, ordered by their high bits."""
    highs = np.arange(1 << HIGH_BITS, dtype=batch.U64) << batch.U64(48)
    return highs | batch.U64(low48 & MASK48)


def expand_java(low48: int) -> np.ndarray:
    """Only the seeds ``Random.nextLong()`` can return for ``low48``."""
    return np.array(sorted(extend_long_48(low48)), dtype=batch.U64)


def is_java_seed(seed: int) -> bool:
    return state_for_next_long(seed) is not None


@dataclass(frozen=True, slots=True)
class Extension:
    expand: Callable[[int], np.ndarray]
    fan_out: int


FULL = Extension(expand_full, 1 << HIGH_BITS)
JAVA = Extension(expand_java, 2)
