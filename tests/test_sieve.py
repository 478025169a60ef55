from __future__ import annotations

import tracemalloc

import pytest

from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Observation
from mc_seedfinder.oracles import oracle_for
from mc_seedfinder.rng import batch
from mc_seedfinder.search import SlimeSieve
from mc_seedfinder.search.sieve import PREFIX_SIZE, rejected_first_draw


def _collect(sieve: SlimeSieve, start: int, stop: int, batch_size: int = 1 << 15) -> tuple[set[int], int]:
    seeds: set[int] = set()
    covered = 0
    for chunk, count in sieve.candidates(start, stop, batch_size):
        seeds.update(chunk.tolist())
        covered += count
    return seeds, covered


def test_sieve_keeps_every_matching_seed() -> None:
    chunks = [ChunkCoordinate(0, 0), ChunkCoordinate(2, -1)]
    sieve = SlimeSieve(chunks)
    start, stop = 3 * PREFIX_SIZE - 1000, 5 * PREFIX_SIZE + 77

    candidates, covered = _collect(sieve, start, stop)

    seeds = batch.seed_range(start, stop)
    oracle = oracle_for(FeatureKind.SLIME_CHUNK)
    for chunk in chunks:
        seeds = seeds[oracle.test_batch(seeds, chunk)]

    assert covered == stop - start
    assert set(seeds.tolist()) <= candidates
    assert all(start <= seed < stop for seed in candidates)


def test_sieve_prunes_about_half_per_chunk() -> None:
    one = SlimeSieve([ChunkCoordinate(0, 0)])
    two = SlimeSieve([ChunkCoordinate(0, 0), ChunkCoordinate(1, 1)])

    assert 0.4 < one.density < 0.6
    assert two.density < one.density


def test_rejected_draw_seeds_are_enumerated() -> None:
    chunk = ChunkCoordinate(-5, 8)
    sieve = SlimeSieve([chunk])
    assert len(sieve.exceptions) > 0

    for seed in sieve.exceptions[:20].tolist():
        candidates, _ = _collect(sieve, max(0, seed - 3), seed + 3)
        assert seed in candidates

    rejected = rejected_first_draw(chunk)[:20000]
    slime = rejected[oracle_for(FeatureKind.SLIME_CHUNK).test_batch(rejected, chunk)].tolist()
    assert slime

    exceptions = set(sieve.exceptions.tolist())
    allowed = set(sieve.prefixes.tolist())
    for seed in slime:
        assert seed in exceptions or seed % PREFIX_SIZE in allowed


def test_small_batches_cover_the_range_once() -> None:
    sieve = SlimeSieve([ChunkCoordinate(1, 2)])
    _, covered = _collect(sieve, 10, 4 * PREFIX_SIZE, batch_size=1000)
    assert covered == 4 * PREFIX_SIZE - 10


def test_sieve_needs_slime_chunks() -> None:
    assert SlimeSieve.from_observations([Observation(FeatureKind.SLIME_CHUNK, ChunkCoordinate(0, 0), False)]) is None
    with pytest.raises(ValueError):
        SlimeSieve([])


def test_exceptions_cover_rejected_draws_across_chunks() -> None:
    chunks = [ChunkCoordinate(-5, 8), ChunkCoordinate(3, 3), ChunkCoordinate(0, -2)]
    sieve = SlimeSieve(chunks)
    oracle = oracle_for(FeatureKind.SLIME_CHUNK)
    exceptions = set(sieve.exceptions.tolist())
    allowed = set(sieve.prefixes.tolist())

    found = 0
    for chunk in chunks:
        seeds = rejected_first_draw(chunk)
        for other in chunks:
            if other != chunk:
                seeds = seeds[oracle.test_batch(seeds, other)]
        seeds = seeds[oracle.test_batch(seeds, chunk)]
        for seed in seeds.tolist():
            assert seed in exceptions or seed % PREFIX_SIZE in allowed
        found += seeds.size

    assert found > 0


def test_sieve_memory_stays_bounded_for_many_chunks() -> None:
    chunks = [ChunkCoordinate(x, z) for x in range(8) for z in range(4)]

    tracemalloc.start()
    try:
        sieve = SlimeSieve(chunks)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert peak < 64 * 1024 * 1024
    assert len(sieve.exceptions) < 1 << 16
