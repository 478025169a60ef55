"""CLI entrypoint for the seed finder."""

from __future__ import annotations

from pathlib import Path

import typer
from rich import print
from rich.table import Table

from mc_seedfinder.config import settings
from mc_seedfinder.errors import SeedFinderError
from mc_seedfinder.ingest import load_request, parse_chunk_list, slime_observations
from mc_seedfinder.models import CandidateResult, ChunkCoordinate
from mc_seedfinder.observations import ObservationSet
from mc_seedfinder.oracles import is_slime_chunk, oracle_for
from mc_seedfinder.rng import extend_long_48
from mc_seedfinder.rng.java_random import MASK48, to_int64
from mc_seedfinder.search import SearchConfig, SearchEngine
from mc_seedfinder.spiral import spiral
from mc_seedfinder.telemetry import LoggingTelemetry, configure_logging

app = typer.Typer(help="Recover world seeds from observed slime chunks, structures and biomes")


def _telemetry() -> LoggingTelemetry | None:
    configure_logging(settings.log_level)
    return LoggingTelemetry() if settings.telemetry_enabled else None


def _run(observations: ObservationSet, config: SearchConfig) -> list[CandidateResult]:
    engine = SearchEngine(observations, config, telemetry=_telemetry())
    try:
        return engine.run()
    except SeedFinderError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except KeyboardInterrupt:
        print({"cancelled": True, "partial_seeds": [result.seed for result in engine.partial_results()]})
        raise typer.Exit(code=130)


def _chunk_list(inline: str, path: Path | None) -> list[ChunkCoordinate]:
    chunks = parse_chunk_list(inline)
    if path is not None:
        chunks += parse_chunk_list(path.read_text(encoding="utf-8"))
    return chunks


def _report(results: list[CandidateResult], limit: int) -> None:
    print(
        {
            "found": len(results),
            "seeds": [
                {"seed": result.seed, "signed": to_int64(result.seed), "matched": result.matched}
                for result in results[:limit]
            ],
            "truncated": len(results) > limit,
        }
    )
    if not results:
        raise typer.Exit(code=1)


@app.command("settings")
def show_settings() -> None:
    """Show the effective runtime configuration."""
    print(settings.model_dump())


@app.command("search")
def search(
    request_file: Path = typer.Argument(..., help="JSON search request with observations and config"),
    limit: int = typer.Option(100, help="Maximum number of seeds to print"),
) -> None:
    """Run a search described by a JSON request file."""
    try:
        request = load_request(request_file)
        observations = request.observation_set(settings.reference)
        config = request.search_config(settings)
    except SeedFinderError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _report(_run(observations, config), limit)


@app.command("slime-search")
def slime_search(
    chunks: str = typer.Option("", help="Slime chunks as 'x,z;x,z;...'"),
    no_chunks: str = typer.Option("", help="Chunks known not to be slime chunks"),
    chunks_file: Path = typer.Option(None, help="File with one slime chunk 'x,z' per line"),
    no_chunks_file: Path = typer.Option(None, help="File with one non-slime chunk 'x,z' per line"),
    range_start: int = typer.Option(0, help="First 48-bit seed to scan"),
    range_stop: int = typer.Option(1 << 48, help="Scan stops before this 48-bit seed"),
    workers: int = typer.Option(None, help="Worker threads (defaults to MC_SEEDFINDER_WORKER_COUNT)"),
    java_seeds: bool = typer.Option(False, help="Also list nextLong() seeds for each result"),
    limit: int = typer.Option(100, help="Maximum number of seeds to print"),
) -> None:
    """Search 48-bit seeds from slime chunk lists."""
    try:
        slime = _chunk_list(chunks, chunks_file)
        not_slime = _chunk_list(no_chunks, no_chunks_file)
        observations = ObservationSet(slime_observations(slime, not_slime), reference=settings.reference)
    except SeedFinderError as exc:
        raise typer.BadParameter(str(exc)) from exc

    config = SearchConfig.from_settings(
        settings, bit_width=48, worker_count=workers, seed_range=(range_start, range_stop)
    )
    results = _run(observations, config)
    if java_seeds:
        print({str(result.seed): [to_int64(seed) for seed in extend_long_48(result.seed)] for result in results[:limit]})
    _report(results, limit)


@app.command("check")
def check(
    seed: int = typer.Option(..., help="World seed to test (signed or unsigned)"),
    request_file: Path = typer.Option(..., help="JSON search request whose observations are checked"),
) -> None:
    """Show which observations of a request a seed satisfies."""
    try:
        observations = load_request(request_file).observation_set(settings.reference)
    except SeedFinderError as exc:
        raise typer.BadParameter(str(exc)) from exc

    unsigned = seed & ((1 << 64) - 1)
    rows = []
    for observation in observations:
        actual = oracle_for(observation.kind).test(unsigned, observation.locator)
        rows.append(
            {
                "feature": observation.kind.value,
                "locator": observation.locator,
                "expected": observation.value,
                "actual": actual,
                "ok": actual == observation.value,
            }
        )
    matched = sum(1 for row in rows if row["ok"])
    print({"seed": seed, "matched": matched, "total": len(rows), "observations": rows})
    if matched != len(rows):
        raise typer.Exit(code=1)


@app.command("extend-48")
def extend_48(seed: int = typer.Argument(..., help="48-bit seed (higher bits are ignored)")) -> None:
    """List the nextLong() world seeds sharing the given low 48 bits."""
    low48 = seed & MASK48
    print({"seed": low48, "java_seeds": [to_int64(value) for value in extend_long_48(low48)]})


@app.command("slime-map")
def slime_map(
    seed: int = typer.Option(..., help="World seed"),
    x: int = typer.Option(0, help="Center chunk X"),
    z: int = typer.Option(0, help="Center chunk Z"),
    radius: int = typer.Option(8, min=0, max=64, help="Chunks shown on each side of the center"),
) -> None:
    """Draw the slime chunks around a chunk."""
    table = Table(show_header=True, header_style="bold", box=None, title=f"slime chunks, seed {seed}")
    table.add_column("z \\ x", justify="right")
    for column in range(x - radius, x + radius + 1):
        table.add_column(str(column), justify="center")

    unsigned = seed & ((1 << 64) - 1)
    for row in range(z - radius, z + radius + 1):
        cells = [
            "[green]#[/green]" if is_slime_chunk(unsigned, column, row) else "."
            for column in range(x - radius, x + radius + 1)
        ]
        table.add_row(str(row), *cells)
    print(table)

    nearest = next(
        (ChunkCoordinate(x + dx, z + dz) for dx, dz in spiral(radius) if is_slime_chunk(unsigned, x + dx, z + dz)),
        None,
    )
    print({"nearest_slime_chunk": nearest})


if __name__ == "__main__":
    app()
