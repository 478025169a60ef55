"""Region-placed structure oracles and buried treasure.

The world is cut into square regions of ``spacing`` chunks. Each region gets
one placement attempt whose chunk offset is drawn from a generator seeded by
the region coordinates, the world seed and a per-structure salt. Whether the
structure then actually generates depends on biomes, which these oracles do
not model: they answer "is the attempt at this chunk".
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

import numpy as np

from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Locator, RegionCoordinate
from mc_seedfinder.rng import batch
from mc_seedfinder.rng.java_random import MASK64, bounded, next_bits, seed_from

from .base import FeatureOracle

REGION_X_MULTIPLIER = 341873128712
REGION_Z_MULTIPLIER = 132897987541

BURIED_TREASURE_SALT = 10387320
# 0.01f widened to double; nextFloat() is exact in both precisions.
BURIED_TREASURE_CHANCE = struct.unpack("<f", struct.pack("<f", 0.01))[0]


@dataclass(frozen=True, slots=True)
class RegionPlacement:
    spacing: int
    separation: int
    salt: int
    triangular: bool = False

    @property
    def offset_range(self) -> int:
        return self.spacing - self.separation


PLACEMENTS: dict[FeatureKind, RegionPlacement] = {
    FeatureKind.WITCH_HUT: RegionPlacement(32, 8, 14357620),
    FeatureKind.DESERT_PYRAMID: RegionPlacement(32, 8, 14357617),
    FeatureKind.JUNGLE_PYRAMID: RegionPlacement(32, 8, 14357619),
    FeatureKind.IGLOO: RegionPlacement(32, 8, 14357618),
    FeatureKind.VILLAGE: RegionPlacement(32, 8, 10387312),
    FeatureKind.OCEAN_MONUMENT: RegionPlacement(32, 5, 10387313, triangular=True),
}


def region_seed_mix(region_x: int, region_z: int, salt: int) -> int:
    """Seed-independent part of the region seed, as an unsigned 64-bit value."""
    return (region_x * REGION_X_MULTIPLIER + region_z * REGION_Z_MULTIPLIER + salt) & MASK64


def region_state(seed: int, region_x: int, region_z: int, salt: int) -> int:
    return seed_from(seed + region_seed_mix(region_x, region_z, salt))


def _draw_offset(state: int, placement: RegionPlacement) -> tuple[int, int]:
    if placement.triangular:
        first, state = bounded(state, placement.offset_range)
        second, state = bounded(state, placement.offset_range)
        return (first + second) // 2, state
    return bounded(state, placement.offset_range)


def region_offset(seed: int, placement: RegionPlacement, region_x: int, region_z: int) -> tuple[int, int]:
    """Chunk offset of the placement attempt inside its region."""
    state = region_state(seed, region_x, region_z, placement.salt)
    offset_x, state = _draw_offset(state, placement)
    offset_z, _ = _draw_offset(state, placement)
    return offset_x, offset_z


def structure_chunk(seed: int, placement: RegionPlacement, region_x: int, region_z: int) -> tuple[int, int]:
    offset_x, offset_z = region_offset(seed, placement, region_x, region_z)
    return region_x * placement.spacing + offset_x, region_z * placement.spacing + offset_z


def pack_offset(offset_x: int, offset_z: int, spacing: int) -> int:
    return offset_x * spacing + offset_z


def unpack_offset(packed: int, spacing: int) -> tuple[int, int]:
    return divmod(packed, spacing)


class RegionStructureOracle(FeatureOracle):
    """Chunk locators answer presence; region locators answer the packed offset."""

    bit_width = 48
    locator_types = (ChunkCoordinate, RegionCoordinate)

    def __init__(self, kind: FeatureKind, placement: RegionPlacement) -> None:
        self.kind = kind
        self.placement = placement
        self.cost = 4 if placement.triangular else 2

    def test(self, seed: int, locator: Locator) -> bool | int:
        spacing = self.placement.spacing
        if isinstance(locator, RegionCoordinate):
            return pack_offset(*region_offset(seed, self.placement, locator.x, locator.z), spacing)

        region_x, offset_x = divmod(locator.x, spacing)
        region_z, offset_z = divmod(locator.z, spacing)
        if offset_x >= self.placement.offset_range or offset_z >= self.placement.offset_range:
            return False
        return region_offset(seed, self.placement, region_x, region_z) == (offset_x, offset_z)

    def test_batch(self, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        spacing = self.placement.spacing
        if isinstance(locator, RegionCoordinate):
            region_x, region_z = locator.x, locator.z
        else:
            region_x, offset_x = divmod(locator.x, spacing)
            region_z, offset_z = divmod(locator.z, spacing)
            if offset_x >= self.placement.offset_range or offset_z >= self.placement.offset_range:
                return np.zeros(seeds.shape, dtype=bool)

        mix = batch.as_u64(region_seed_mix(region_x, region_z, self.placement.salt))
        states = batch.seed_from(seeds + mix)
        redraw = np.zeros(seeds.shape, dtype=bool)
        drawn_x, states = self._draw_offset_batch(states, redraw)
        drawn_z, _ = self._draw_offset_batch(states, redraw)

        if isinstance(locator, RegionCoordinate):
            result = (drawn_x * batch.U64(spacing) + drawn_z).astype(np.int64)
        else:
            result = (drawn_x == batch.U64(offset_x)) & (drawn_z == batch.U64(offset_z))
        if redraw.any():
            self._finish_rows(result, redraw, seeds, locator)
        return result

    def _draw_offset_batch(self, states: np.ndarray, redraw: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        values, states, rejected = batch.bounded(states, self.placement.offset_range)
        redraw |= rejected
        if not self.placement.triangular:
            return values, states
        second, states, rejected = batch.bounded(states, self.placement.offset_range)
        redraw |= rejected
        return (values + second) // batch.U64(2), states

    def check_value(self, locator: Locator, value: bool | int) -> str | None:
        if isinstance(locator, RegionCoordinate):
            if isinstance(value, bool) or not isinstance(value, int):
                return f"{self.kind.value} region observations expect a packed chunk offset, got {value!r}"
            offset_x, offset_z = unpack_offset(value, self.placement.spacing)
            if not 0 <= value < self.placement.spacing**2 or max(offset_x, offset_z) >= self.placement.offset_range:
                return f"{self.kind.value} cannot be placed at region offset {offset_x},{offset_z}"
            return None
        return super().check_value(locator, value)

    def pass_probability(self, locator: Locator, value: bool | int) -> float:
        cells = self.placement.offset_range**2
        if isinstance(locator, RegionCoordinate):
            return 1 / cells
        return 1 / cells if value else 1 - 1 / cells


class BuriedTreasureOracle(FeatureOracle):
    kind = FeatureKind.BURIED_TREASURE
    bit_width = 48
    cost = 1
    locator_types = (ChunkCoordinate,)

    def test(self, seed: int, locator: Locator) -> bool:
        state = region_state(seed, locator.x, locator.z, BURIED_TREASURE_SALT)
        bits, _ = next_bits(state, 24)
        return bits / (1 << 24) < BURIED_TREASURE_CHANCE

    def test_batch(self, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        mix = batch.as_u64(region_seed_mix(locator.x, locator.z, BURIED_TREASURE_SALT))
        bits, _ = batch.next_bits(batch.seed_from(seeds + mix), 24)
        return bits.astype(np.float64) / float(1 << 24) < BURIED_TREASURE_CHANCE

    def pass_probability(self, locator: Locator, value: bool) -> float:
        return 0.01 if value else 0.99
