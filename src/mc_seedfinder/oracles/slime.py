"""Slime chunk oracle.

A chunk is a slime chunk when ``Random(seed + mix(x, z) ^ 0x3AD8025F).nextInt(10)``
is zero. ``mix`` reproduces Java's 32-bit integer overflow on every term.
"""

from __future__ import annotations

import numpy as np

from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Locator
from mc_seedfinder.rng import batch
from mc_seedfinder.rng.java_random import MASK48, bounded, seed_from, to_int32

from .base import FeatureOracle

SLIME_SCRAMBLE = 0x3AD8025F
SLIME_CHANCE = 10


def chunk_mix(x: int, z: int) -> int:
    """Coordinate term added to the world seed (signed, Java long semantics)."""
    return (
        to_int32(x * x * 0x4C1906)
        + to_int32(x * 0x5AC0DB)
        + to_int32(z * z) * 0x4307A7
        + to_int32(z * 0x5F24F)
    )


def slime_state(seed: int, x: int, z: int) -> int:
    return seed_from(((seed + chunk_mix(x, z)) ^ SLIME_SCRAMBLE) & MASK48)


def is_slime_chunk(seed: int, x: int, z: int) -> bool:
    value, _ = bounded(slime_state(seed, x, z), SLIME_CHANCE)
    return value == 0


class SlimeChunkOracle(FeatureOracle):
    kind = FeatureKind.SLIME_CHUNK
    bit_width = 48
    cost = 1
    locator_types = (ChunkCoordinate,)

    def test(self, seed: int, locator: Locator) -> bool:
        return is_slime_chunk(seed, locator.x, locator.z)

    def test_batch(self, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        mix = batch.as_u64(chunk_mix(locator.x, locator.z))
        states = batch.seed_from((seeds + mix) ^ batch.U64(SLIME_SCRAMBLE))
        values, _, redraw = batch.bounded(states, SLIME_CHANCE)
        result = values == 0
        if redraw.any():
            self._finish_rows(result, redraw, seeds, locator)
        return result

    def pass_probability(self, locator: Locator, value: bool) -> float:
        return 1 / SLIME_CHANCE if value else 1 - 1 / SLIME_CHANCE
