"""Continent layer oracle.

The legacy biome stack starts with a 1:4096 layer that marks roughly one cell
in ten as land. Its chunk seed mixes all 64 bits of the world seed, which makes
it the cheapest full-width observation available.
"""

from __future__ import annotations

import numpy as np

from mc_seedfinder.models import BiomeSample, FeatureKind, Locator
from mc_seedfinder.rng import batch, layer_random

from .base import FeatureOracle

OCEAN = 0
LAND = 1

CONTINENT_LAYER_SALT = 1
CONTINENT_CELL_SHIFT = 12
CONTINENT_CHANCE = 10

_CONTINENT_BASE = layer_random.base_seed(CONTINENT_LAYER_SALT)


def continent_cell(locator: BiomeSample) -> tuple[int, int]:
    return locator.x >> CONTINENT_CELL_SHIFT, locator.z >> CONTINENT_CELL_SHIFT


def continent_value(seed: int, cell_x: int, cell_z: int) -> int:
    # The layer forces the origin cell to land.
    if cell_x == 0 and cell_z == 0:
        return LAND
    layer_seed = layer_random.world_seed(seed, _CONTINENT_BASE)
    cell_seed = layer_random.chunk_seed(layer_seed, cell_x, cell_z)
    return LAND if layer_random.first_int(cell_seed, CONTINENT_CHANCE) == 0 else OCEAN


class BiomeAtOracle(FeatureOracle):
    kind = FeatureKind.BIOME_AT
    bit_width = 64
    cost = 3
    locator_types = (BiomeSample,)
    value_dtype = np.int64

    def test(self, seed: int, locator: Locator) -> int:
        return continent_value(seed, *continent_cell(locator))

    def test_batch(self, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        cell_x, cell_z = continent_cell(locator)
        if cell_x == 0 and cell_z == 0:
            return np.full(seeds.shape, LAND, dtype=np.int64)

        mixed = seeds.copy()
        for _ in range(3):
            mixed = batch.layer_step(mixed, _CONTINENT_BASE)
        for salt in (cell_x, cell_z, cell_x, cell_z):
            mixed = batch.layer_step(mixed, salt)
        return np.where(batch.layer_first_int(mixed, CONTINENT_CHANCE) == 0, LAND, OCEAN).astype(np.int64)

    def check_value(self, locator: Locator, value: int) -> str | None:
        if isinstance(value, bool) or not isinstance(value, int) or value not in (OCEAN, LAND):
            return f"{self.kind.value} expects {OCEAN} (ocean) or {LAND} (land), got {value!r}"
        return None

    def pass_probability(self, locator: Locator, value: int) -> float:
        if continent_cell(locator) == (0, 0):
            return 1.0 if value == LAND else 0.0
        return 1 / CONTINENT_CHANCE if value == LAND else 1 - 1 / CONTINENT_CHANCE
