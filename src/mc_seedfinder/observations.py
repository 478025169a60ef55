"""Validated, conflict-free collection of observations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from mc_seedfinder.errors import ConfigurationError, ConflictError
from mc_seedfinder.models import (
    BiomeSample,
    ChunkCoordinate,
    ExpectedValue,
    FeatureKind,
    Locator,
    Observation,
    RegionCoordinate,
)
from mc_seedfinder.oracles import oracle_for
from mc_seedfinder.oracles.biome import LAND, continent_cell
from mc_seedfinder.oracles.structures import PLACEMENTS, pack_offset
from mc_seedfinder.spiral import spiral_index


class ObservationSet:
    """Caller-owned observations keyed by ``(kind, locator)``.

    Iteration yields observations cheapest and most selective first, with
    ties broken by spiral order around ``reference`` so nearby, independent
    locators are tried before distant ones.
    """

    def __init__(self, observations: Iterable[Observation] = (), *, reference: tuple[int, int] = (0, 0)) -> None:
        self._entries: dict[tuple[FeatureKind, Locator], Observation] = {}
        self.reference = reference
        self.extend(observations)

    def add(self, observation: Observation) -> None:
        """Store ``observation``; re-adding an identical one is a no-op."""
        problem = oracle_for(observation.kind).check(observation.locator, observation.value)
        if problem:
            raise ConfigurationError(problem)

        existing = self._entries.get(observation.key)
        if existing is not None:
            if existing.value != observation.value or type(existing.value) is not type(observation.value):
                raise ConflictError(observation.kind, observation.locator, existing.value, observation.value)
            return
        self._entries[observation.key] = observation

    def extend(self, observations: Iterable[Observation]) -> None:
        for observation in observations:
            self.add(observation)

    def get(self, kind: FeatureKind, locator: Locator) -> ExpectedValue | None:
        observation = self._entries.get((kind, locator))
        return None if observation is None else observation.value

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, observation: object) -> bool:
        return isinstance(observation, Observation) and self._entries.get(observation.key) == observation

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.ordered())

    def kinds(self) -> set[FeatureKind]:
        return {kind for kind, _ in self._entries}

    def required_bit_width(self) -> int:
        return max((oracle_for(kind).bit_width for kind in self.kinds()), default=48)

    def ordered(self, reference: tuple[int, int] | None = None) -> list[Observation]:
        ref_x, ref_z = reference if reference is not None else self.reference

        def sort_key(observation: Observation) -> tuple[int, float, int]:
            oracle = oracle_for(observation.kind)
            chunk_x, chunk_z = observation.locator.chunk_position()
            return (
                oracle.cost,
                oracle.pass_probability(observation.locator, observation.value),
                spiral_index(chunk_x - ref_x, chunk_z - ref_z),
            )

        return sorted(self._entries.values(), key=sort_key)

    def matches(self, seed: int) -> int:
        """Number of observations ``seed`` satisfies."""
        return sum(
            1
            for observation in self._entries.values()
            if oracle_for(observation.kind).test(seed, observation.locator) == observation.value
        )

    def contradictions(self) -> list[str]:
        """Reasons why no seed can satisfy every observation at once."""
        problems: list[str] = []
        placed: dict[tuple[FeatureKind, int, int], tuple[int, int]] = {}

        for observation in self._entries.values():
            kind, locator, value = observation.kind, observation.locator, observation.value
            if kind is FeatureKind.BIOME_AT and isinstance(locator, BiomeSample):
                if continent_cell(locator) == (0, 0) and value != LAND:
                    problems.append(f"{kind.value} at {locator.x},{locator.z} is always land")
                continue

            placement = PLACEMENTS.get(kind)
            if placement is None:
                continue

            if isinstance(locator, RegionCoordinate):
                region = (kind, locator.x, locator.z)
                offset = divmod(value, placement.spacing)
            elif isinstance(locator, ChunkCoordinate) and value is True:
                region_x, offset_x = divmod(locator.x, placement.spacing)
                region_z, offset_z = divmod(locator.z, placement.spacing)
                region = (kind, region_x, region_z)
                offset = (offset_x, offset_z)
            else:
                continue

            previous = placed.setdefault(region, offset)
            if previous != offset:
                problems.append(
                    f"{kind.value} region {region[1]},{region[2]} observed at offsets "
                    f"{pack_offset(*previous, placement.spacing)} and {pack_offset(*offset, placement.spacing)}"
                )

        for (kind, region_x, region_z), offset in placed.items():
            placement = PLACEMENTS[kind]
            chunk_x = region_x * placement.spacing + offset[0]
            chunk_z = region_z * placement.spacing + offset[1]
            if self.get(kind, ChunkCoordinate(chunk_x, chunk_z)) is False:
                problems.append(f"{kind.value} both present and absent at chunk {chunk_x},{chunk_z}")

        return problems
