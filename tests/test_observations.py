from __future__ import annotations

import pytest

from mc_seedfinder.errors import ConfigurationError, ConflictError
from mc_seedfinder.models import BiomeSample, ChunkCoordinate, Dimension, FeatureKind, Observation, RegionCoordinate
from mc_seedfinder.observations import ObservationSet
from mc_seedfinder.oracles import is_slime_chunk
from mc_seedfinder.oracles.stronghold import first_ring_start


def _slime(x: int, z: int, value: bool) -> Observation:
    return Observation(FeatureKind.SLIME_CHUNK, ChunkCoordinate(x, z), value)


def test_conflicting_add_keeps_first_entry() -> None:
    observations = ObservationSet([_slime(3, 4, True)])

    with pytest.raises(ConflictError) as excinfo:
        observations.add(_slime(3, 4, False))

    assert excinfo.value.existing is True
    assert excinfo.value.rejected is False
    assert len(observations) == 1
    assert observations.get(FeatureKind.SLIME_CHUNK, ChunkCoordinate(3, 4)) is True


def test_duplicate_add_is_a_noop() -> None:
    observations = ObservationSet()
    observations.add(_slime(0, 0, True))
    observations.add(_slime(0, 0, True))

    assert len(observations) == 1
    assert _slime(0, 0, True) in observations
    assert _slime(0, 0, False) not in observations


@pytest.mark.parametrize(
    "observation",
    [
        Observation(FeatureKind.SLIME_CHUNK, BiomeSample(0, 0), True),
        Observation(FeatureKind.SLIME_CHUNK, ChunkCoordinate(0, 0), 1),
        Observation(FeatureKind.SLIME_CHUNK, ChunkCoordinate(0, 0, Dimension.NETHER), True),
        Observation(FeatureKind.WITCH_HUT, RegionCoordinate(0, 0), 31 * 32 + 31),
        Observation(FeatureKind.BIOME_AT, BiomeSample(100, 100), 7),
    ],
)
def test_invalid_observations_are_rejected(observation: Observation) -> None:
    observations = ObservationSet()
    with pytest.raises(ConfigurationError):
        observations.add(observation)
    assert len(observations) == 0


def test_required_bit_width() -> None:
    observations = ObservationSet([_slime(0, 0, True)])
    assert observations.required_bit_width() == 48

    observations.add(Observation(FeatureKind.BIOME_AT, BiomeSample(5000, 0), 1))
    assert observations.required_bit_width() == 64
    assert ObservationSet().required_bit_width() == 48


def test_ordering_prefers_cheap_selective_and_nearby() -> None:
    observations = ObservationSet(
        [
            Observation(FeatureKind.STRONGHOLD, ChunkCoordinate(100, 0), True),
            Observation(FeatureKind.BIOME_AT, BiomeSample(5000, 0), 0),
            Observation(FeatureKind.WITCH_HUT, RegionCoordinate(0, 0), 0),
            _slime(0, 0, False),
            _slime(5, 5, True),
            _slime(1, 0, True),
        ]
    )

    assert [(obs.kind, obs.locator, obs.value) for obs in observations] == [
        (FeatureKind.SLIME_CHUNK, ChunkCoordinate(1, 0), True),
        (FeatureKind.SLIME_CHUNK, ChunkCoordinate(5, 5), True),
        (FeatureKind.SLIME_CHUNK, ChunkCoordinate(0, 0), False),
        (FeatureKind.WITCH_HUT, RegionCoordinate(0, 0), 0),
        (FeatureKind.BIOME_AT, BiomeSample(5000, 0), 0),
        (FeatureKind.STRONGHOLD, ChunkCoordinate(100, 0), True),
    ]


def test_ordering_follows_reference_point() -> None:
    observations = ObservationSet([_slime(0, 0, True), _slime(10, 10, True)], reference=(10, 10))

    assert [obs.locator for obs in observations] == [ChunkCoordinate(10, 10), ChunkCoordinate(0, 0)]
    assert [obs.locator for obs in observations.ordered(reference=(0, 0))] == [
        ChunkCoordinate(0, 0),
        ChunkCoordinate(10, 10),
    ]


def test_contradictions() -> None:
    assert ObservationSet([_slime(0, 0, True)]).contradictions() == []

    two_huts = ObservationSet(
        [
            Observation(FeatureKind.WITCH_HUT, ChunkCoordinate(1, 1), True),
            Observation(FeatureKind.WITCH_HUT, ChunkCoordinate(2, 3), True),
        ]
    )
    assert len(two_huts.contradictions()) == 1

    region_and_chunk = ObservationSet(
        [
            Observation(FeatureKind.VILLAGE, RegionCoordinate(1, 0), 2 * 32 + 3),
            Observation(FeatureKind.VILLAGE, ChunkCoordinate(32 + 2, 3), False),
        ]
    )
    assert len(region_and_chunk.contradictions()) == 1

    ocean_at_origin = ObservationSet([Observation(FeatureKind.BIOME_AT, BiomeSample(10, 0), 0)])
    assert len(ocean_at_origin.contradictions()) == 1

    different_kinds = ObservationSet(
        [
            Observation(FeatureKind.WITCH_HUT, ChunkCoordinate(1, 1), True),
            Observation(FeatureKind.IGLOO, ChunkCoordinate(2, 3), True),
        ]
    )
    assert different_kinds.contradictions() == []


def test_matches_counts_satisfied_observations() -> None:
    seed = 123456789
    chunks = [(x, z) for x in range(3) for z in range(3)]
    observations = ObservationSet(_slime(x, z, is_slime_chunk(seed, x, z)) for x, z in chunks)

    assert observations.matches(seed) == len(chunks)
    observations_flipped = ObservationSet(_slime(x, z, not is_slime_chunk(seed, x, z)) for x, z in chunks)
    assert observations_flipped.matches(seed) == 0


def test_stronghold_observations_record_presence_only() -> None:
    seed = 123456789
    _, start_x, start_z = first_ring_start(seed)
    observations = ObservationSet([Observation(FeatureKind.STRONGHOLD, ChunkCoordinate(start_x, start_z), True)])

    with pytest.raises(ConfigurationError, match="absence"):
        observations.add(Observation(FeatureKind.STRONGHOLD, ChunkCoordinate(start_x + 3, start_z), False))

    assert len(observations) == 1
    assert observations.matches(seed) == 1
