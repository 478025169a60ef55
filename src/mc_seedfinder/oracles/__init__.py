"""Feature oracles: one pure decision procedure per observable feature."""

from mc_seedfinder.models import FeatureKind

from .base import FeatureOracle
from .biome import BiomeAtOracle
from .slime import SlimeChunkOracle, is_slime_chunk
from .stronghold import StrongholdOracle
from .structures import PLACEMENTS, BuriedTreasureOracle, RegionStructureOracle, structure_chunk

ORACLES: dict[FeatureKind, FeatureOracle] = {
    FeatureKind.SLIME_CHUNK: SlimeChunkOracle(),
    FeatureKind.BURIED_TREASURE: BuriedTreasureOracle(),
    FeatureKind.STRONGHOLD: StrongholdOracle(),
    FeatureKind.BIOME_AT: BiomeAtOracle(),
    **{kind: RegionStructureOracle(kind, placement) for kind, placement in PLACEMENTS.items()},
}


def oracle_for(kind: FeatureKind) -> FeatureOracle:
    return ORACLES[FeatureKind(kind)]


__all__ = [
    "ORACLES",
    "FeatureOracle",
    "is_slime_chunk",
    "oracle_for",
    "structure_chunk",
]
