from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

MASK48 = (1 << 48) - 1
MASK64 = (1 << 64) - 1

# Chunks per region cell used only to place region locators for ordering.
REGION_SIZE_CHUNKS = 32


class Dimension(str, Enum):
    """World dimensions a locator can point into."""

    OVERWORLD = "overworld"
    NETHER = "nether"
    END = "end"


class FeatureKind(str, Enum):
    """Observable generated features, each backed by exactly one oracle."""

    SLIME_CHUNK = "slime_chunk"
    OCEAN_MONUMENT = "ocean_monument"
    WITCH_HUT = "witch_hut"
    DESERT_PYRAMID = "desert_pyramid"
    JUNGLE_PYRAMID = "jungle_pyramid"
    IGLOO = "igloo"
    VILLAGE = "village"
    BURIED_TREASURE = "buried_treasure"
    STRONGHOLD = "stronghold"
    BIOME_AT = "biome_at"


@dataclass(frozen=True, slots=True)
class ChunkCoordinate:
    """A 16x16 block column, in chunk units."""

    x: int
    z: int
    dimension: Dimension = Dimension.OVERWORLD

    def chunk_position(self) -> tuple[int, int]:
        return self.x, self.z


@dataclass(frozen=True, slots=True)
class RegionCoordinate:
    """A structure placement cell, in region units."""

    x: int
    z: int
    dimension: Dimension = Dimension.OVERWORLD

    def chunk_position(self) -> tuple[int, int]:
        return self.x * REGION_SIZE_CHUNKS, self.z * REGION_SIZE_CHUNKS


@dataclass(frozen=True, slots=True)
class BiomeSample:
    """A single block column sampled for its biome, in block units."""

    x: int
    z: int
    dimension: Dimension = Dimension.OVERWORLD

    def chunk_position(self) -> tuple[int, int]:
        return self.x >> 4, self.z >> 4


Locator = Union[ChunkCoordinate, RegionCoordinate, BiomeSample]
ExpectedValue = Union[bool, int]


@dataclass(frozen=True, slots=True)
class Observation:
    """What the player saw for one feature at one place."""

    kind: FeatureKind
    locator: Locator
    value: ExpectedValue

    @property
    def key(self) -> tuple[FeatureKind, Locator]:
        return self.kind, self.locator


@dataclass(frozen=True, slots=True)
class SearchRange:
    """Half-open slice of a search domain owned by one worker.

    Without ``candidates`` the slice is ``[start, stop)`` of the seed space.
    With ``candidates`` it is ``candidates[start:stop]`` of a prior stage.
    """

    start: int
    stop: int
    candidates: Sequence[int] | None = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return max(0, self.stop - self.start)

    @property
    def is_interval(self) -> bool:
        return self.candidates is None


@dataclass(frozen=True, slots=True)
class CandidateResult:
    """A seed that satisfied every observation of a search.

    ``bit_width == 48`` means only the low 48 bits were constrained, so the
    result stands for all 2^16 seeds sharing them.
    """

    seed: int
    matched: int
    bit_width: int = 64

    def covers(self, seed: int) -> bool:
        if self.bit_width == 48:
            return (seed & MASK48) == self.seed
        return (seed & MASK64) == self.seed


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Periodic progress report of a running search stage."""

    fraction_done: float
    elapsed_ms: int
    stage: int = 1
    found: int = 0
