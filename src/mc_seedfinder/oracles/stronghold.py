"""First-ring stronghold oracle (legacy ring placement).

The ring generator starts from ``Random(seed)``: one ``nextDouble`` for the
starting bearing and one for the first distance. Each start is then moved by a
biome search of 112 blocks (7 chunks), and the search consumes generator draws
that depend on biomes. So only the first start is exact; the second and third
strongholds are known up to their bearing and the ring's distance band.
The oracle therefore answers "a stronghold can be here" and only accepts
observations of a stronghold that was found.
"""

from __future__ import annotations

import math

from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Locator
from mc_seedfinder.rng.java_random import JavaRandom, java_round

from .base import FeatureOracle

RING_DISTANCE = 32
RING_COUNT = 3
BIOME_SEARCH_CHUNKS = 7

_RING_CENTER = 4 * RING_DISTANCE
_RING_SPREAD = RING_DISTANCE * 2.5
_RING_MIN = _RING_CENTER - _RING_SPREAD / 2
_RING_MAX = _RING_CENTER + _RING_SPREAD / 2
# Chebyshev window of the biome search plus rounding of the start chunk.
_SEGMENT_TOLERANCE = BIOME_SEARCH_CHUNKS * math.sqrt(2) + 1


def first_ring_start(seed: int) -> tuple[float, int, int]:
    """Bearing and start chunk of the first stronghold, before the biome search."""
    rng = JavaRandom(seed)
    angle = rng.next_double() * math.pi * 2.0
    distance = _RING_CENTER + (rng.next_double() - 0.5) * _RING_SPREAD
    return angle, java_round(math.cos(angle) * distance), java_round(math.sin(angle) * distance)


def _distance_to_segment(x: float, z: float, angle: float) -> float:
    dx, dz = math.cos(angle), math.sin(angle)
    along = min(max(x * dx + z * dz, _RING_MIN), _RING_MAX)
    return math.hypot(x - along * dx, z - along * dz)


class StrongholdOracle(FeatureOracle):
    kind = FeatureKind.STRONGHOLD
    bit_width = 48
    cost = 8
    locator_types = (ChunkCoordinate,)

    def test(self, seed: int, locator: Locator) -> bool:
        angle, start_x, start_z = first_ring_start(seed)
        if max(abs(locator.x - start_x), abs(locator.z - start_z)) <= BIOME_SEARCH_CHUNKS:
            return True

        for index in range(1, RING_COUNT):
            bearing = angle + index * 2.0 * math.pi / RING_COUNT
            if _distance_to_segment(locator.x, locator.z, bearing) <= _SEGMENT_TOLERANCE:
                return True
        return False

    def check_value(self, locator: Locator, value: bool) -> str | None:
        # test() answers "a stronghold may be here", so an empty chunk proves nothing.
        if value is False:
            return "stronghold observations can only record a stronghold, not its absence"
        return super().check_value(locator, value)

    def pass_probability(self, locator: Locator, value: bool) -> float:
        return 0.05
