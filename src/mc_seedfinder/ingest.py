"""Parsing of observation payloads and plain-text chunk lists."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from mc_seedfinder.errors import ConfigurationError
from mc_seedfinder.models import (
    BiomeSample,
    ChunkCoordinate,
    Dimension,
    FeatureKind,
    Locator,
    Observation,
    RegionCoordinate,
)
from mc_seedfinder.observations import ObservationSet
from mc_seedfinder.search import SearchConfig

if TYPE_CHECKING:
    from mc_seedfinder.config import Settings

LocatorType = Literal["chunk", "region", "biome"]

_LOCATOR_TYPES: dict[str, type] = {
    "chunk": ChunkCoordinate,
    "region": RegionCoordinate,
    "biome": BiomeSample,
}

CHUNK_PAT = re.compile(r"^\(?\s*(-?\d+)\s*[,\s]\s*(-?\d+)\s*\)?$")


class LocatorPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    x: int
    z: int
    dimension: Dimension = Dimension.OVERWORLD
    type: LocatorType | None = None


class ObservationPayload(BaseModel):
    """One observation as produced by a save decoder or typed by a user."""

    model_config = ConfigDict(extra="forbid")

    feature: FeatureKind
    locator: LocatorPayload
    value: Union[StrictBool, StrictInt]

    def to_observation(self) -> Observation:
        locator_type = self.locator.type or ("biome" if self.feature is FeatureKind.BIOME_AT else "chunk")
        locator: Locator = _LOCATOR_TYPES[locator_type](self.locator.x, self.locator.z, self.locator.dimension)
        return Observation(self.feature, locator, self.value)


class SearchConfigPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bit_width: int = 48
    worker_count: int | None = None
    seed_range: tuple[int, int] | None = None
    java_seeds_only: bool = False


class SearchRequest(BaseModel):
    """A complete search job: observations plus how to search for them."""

    model_config = ConfigDict(extra="forbid")

    observations: list[ObservationPayload] = Field(default_factory=list)
    config: SearchConfigPayload = Field(default_factory=SearchConfigPayload)
    reference: tuple[int, int] | None = None

    def observation_set(self, default_reference: tuple[int, int] = (0, 0)) -> ObservationSet:
        """Build the observation set, ordered around ``reference`` or ``default_reference``."""
        reference = self.reference if self.reference is not None else default_reference
        return ObservationSet((item.to_observation() for item in self.observations), reference=reference)

    def search_config(self, settings: Settings) -> SearchConfig:
        return SearchConfig.from_settings(
            settings,
            bit_width=self.config.bit_width,
            worker_count=self.config.worker_count,
            seed_range=self.config.seed_range,
            java_seeds_only=self.config.java_seeds_only,
        )


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"Invalid {location or 'payload'}: {first['msg']} ({exc.error_count()} error(s))"


def parse_request(payload: str | bytes | dict) -> SearchRequest:
    try:
        if isinstance(payload, dict):
            return SearchRequest.model_validate(payload)
        return SearchRequest.model_validate_json(payload)
    except ValidationError as exc:
        raise ConfigurationError(_validation_message(exc)) from exc


def load_request(path: str | Path) -> SearchRequest:
    target = Path(path).expanduser()
    if not target.exists():
        raise ConfigurationError(f"Search request not found: {target}")
    return parse_request(target.read_text(encoding="utf-8"))


def parse_observations(items: list[dict]) -> list[Observation]:
    observations: list[Observation] = []
    for index, item in enumerate(items):
        try:
            observations.append(ObservationPayload.model_validate(item).to_observation())
        except ValidationError as exc:
            raise ConfigurationError(f"observation #{index}: {_validation_message(exc)}") from exc
    return observations


def parse_chunk_list(text: str) -> list[ChunkCoordinate]:
    """Parse ``x,z`` chunk coordinates separated by newlines or ``;``.

    Blank entries and ``#`` comments are ignored.
    """
    chunks: list[ChunkCoordinate] = []
    for line in text.splitlines():
        line = line.split("#", 1)[0]
        for entry in line.split(";"):
            entry = entry.strip()
            if not entry:
                continue
            match = CHUNK_PAT.match(entry)
            if not match:
                raise ConfigurationError(f"Cannot parse chunk coordinate {entry!r}; expected 'x,z'")
            chunks.append(ChunkCoordinate(int(match.group(1)), int(match.group(2))))
    return chunks


def slime_observations(
    chunks: Sequence[ChunkCoordinate], no_chunks: Sequence[ChunkCoordinate] = ()
) -> list[Observation]:
    """Observations for chunks known to spawn slimes and chunks known not to."""
    return [Observation(FeatureKind.SLIME_CHUNK, chunk, True) for chunk in chunks] + [
        Observation(FeatureKind.SLIME_CHUNK, chunk, False) for chunk in no_chunks
    ]
