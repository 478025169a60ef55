"""Low-bit prefix sieve for slime chunk observations.

For a slime chunk the first ``nextInt(10)`` draw must be zero, so its 31 drawn
bits must be even. Bit 17 of the advanced state only depends on the low 18
bits of the world seed, so every observed slime chunk rules out about half of
the 2^18 low-bit prefixes at once.

The rule has one hole: when the first draw is rejected (8 of the 2^31 bit
patterns) ``nextInt`` draws again and parity says nothing. Those states are
rare and invertible, so the sieve walks the 2^20 seeds per observation that
hit them and keeps the ones whose prefix was pruned and whose first draw at
every other slime chunk is even or rejected too. Those are enumerated on top
of the surviving prefixes. Together the two sets contain every seed that can
satisfy the slime observations.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import numpy as np

from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Observation
from mc_seedfinder.oracles.slime import SLIME_SCRAMBLE, chunk_mix
from mc_seedfinder.rng import batch
from mc_seedfinder.rng.java_random import INCREMENT, INV_MULTIPLIER, MASK48, MULTIPLIER

PREFIX_BITS = 18
PREFIX_SIZE = 1 << PREFIX_BITS
PREFIX_MASK = PREFIX_SIZE - 1

# States whose top 31 bits fall in the rejected tail of nextInt(10).
_REJECT_FLOOR = (2**31 - 2**31 % 10) << 17
_REJECT_COUNT = (1 << 48) - _REJECT_FLOOR

_U = batch.U64
# Rejected states handled per numpy call while collecting exceptions.
_EXCEPTION_SLICE = 1 << 16


def slime_chunks(observations: Iterable[Observation]) -> list[ChunkCoordinate]:
    """Chunks observed to be slime chunks, the only ones the sieve can use."""
    return sorted(
        {obs.locator for obs in observations if obs.kind is FeatureKind.SLIME_CHUNK and obs.value is True},
        key=lambda chunk: (chunk.x, chunk.z),
    )


def _first_states(seeds: np.ndarray, chunk: ChunkCoordinate) -> np.ndarray:
    mix = batch.as_u64(chunk_mix(chunk.x, chunk.z))
    return batch.next_state(batch.seed_from((seeds + mix) ^ _U(SLIME_SCRAMBLE)))


def even_first_draw(chunk: ChunkCoordinate) -> np.ndarray:
    """Boolean table over prefixes: ``True`` where the first draw is even."""
    states = _first_states(np.arange(PREFIX_SIZE, dtype=_U), chunk)
    return ((states >> _U(17)) & _U(1)) == _U(0)


def open_first_draw(seeds: np.ndarray, chunk: ChunkCoordinate) -> np.ndarray:
    """``True`` where the first draw at ``chunk`` is even or rejected, i.e. can still yield zero."""
    states = _first_states(seeds, chunk)
    return (((states >> _U(17)) & _U(1)) == _U(0)) | (states >= _U(_REJECT_FLOOR))


def rejected_first_draw(chunk: ChunkCoordinate, start: int = 0, stop: int = _REJECT_COUNT) -> np.ndarray:
    """48-bit seeds whose first ``nextInt(10)`` draw at ``chunk`` is rejected.

    ``start`` and ``stop`` select a slice of the 2^20 rejected states, in state order.
    """
    advanced = np.arange(start, min(stop, _REJECT_COUNT), dtype=_U) + _U(_REJECT_FLOOR)
    states = ((advanced - _U(INCREMENT)) * _U(INV_MULTIPLIER)) & _U(MASK48)
    scrambled = states ^ _U(MULTIPLIER) ^ _U(SLIME_SCRAMBLE)
    return (scrambled - batch.as_u64(chunk_mix(chunk.x, chunk.z))) & _U(MASK48)


class SlimeSieve:
    """Enumerates the 48-bit seeds that can satisfy every observed slime chunk."""

    def __init__(self, chunks: Iterable[ChunkCoordinate]) -> None:
        self.chunks = tuple(chunks)
        if not self.chunks:
            raise ValueError("SlimeSieve needs at least one observed slime chunk")

        allowed = np.ones(PREFIX_SIZE, dtype=bool)
        for chunk in self.chunks:
            allowed &= even_first_draw(chunk)
        self.prefixes = np.flatnonzero(allowed).astype(_U)
        self.exceptions = self._collect_exceptions(allowed)

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> SlimeSieve | None:
        chunks = slime_chunks(observations)
        return cls(chunks) if chunks else None

    def _collect_exceptions(self, allowed: np.ndarray) -> np.ndarray:
        # A seed with a pruned prefix survives only if every chunk that pruned
        # it rejected its first draw. Slices keep the working set small.
        found: list[np.ndarray] = []
        for index, chunk in enumerate(self.chunks):
            others = self.chunks[:index] + self.chunks[index + 1 :]
            for start in range(0, _REJECT_COUNT, _EXCEPTION_SLICE):
                seeds = rejected_first_draw(chunk, start, start + _EXCEPTION_SLICE)
                seeds = seeds[~allowed[(seeds & _U(PREFIX_MASK)).astype(np.intp)]]
                for other in others:
                    if not seeds.size:
                        break
                    seeds = seeds[open_first_draw(seeds, other)]
                if seeds.size:
                    found.append(seeds)
        if not found:
            return np.empty(0, dtype=_U)
        return np.unique(np.concatenate(found))

    @property
    def density(self) -> float:
        """Fraction of the seed space left to scan."""
        return len(self.prefixes) / PREFIX_SIZE + len(self.exceptions) / float(1 << 48)

    def candidates(self, start: int, stop: int, batch_size: int) -> Iterator[tuple[np.ndarray, int]]:
        """Yield ``(seeds, covered)`` for ``[start, stop)``.

        ``covered`` counts the domain positions the batch stands for, so the
        ``covered`` values of one call add up to ``stop - start``.
        """
        if stop <= start:
            return

        low = np.searchsorted(self.exceptions, _U(start), side="left")
        high = np.searchsorted(self.exceptions, _U(stop), side="left")
        exceptions = self.exceptions[low:high]

        if len(self.prefixes) == 0:
            offsets = range(0, max(len(exceptions), 1), batch_size)
            for offset in offsets:
                covered = stop - start if offset == offsets[-1] else 0
                yield exceptions[offset : offset + batch_size], covered
            return

        blocks_per_batch = max(1, batch_size // len(self.prefixes))
        first_block = start >> PREFIX_BITS
        last_block = (stop - 1) >> PREFIX_BITS
        for block in range(first_block, last_block + 1, blocks_per_batch):
            block_stop = min(block + blocks_per_batch, last_block + 1)
            lo = max(start, block << PREFIX_BITS)
            hi = min(stop, block_stop << PREFIX_BITS)

            bases = np.arange(block, block_stop, dtype=_U) << _U(PREFIX_BITS)
            seeds = (bases[:, None] | self.prefixes[None, :]).ravel()
            if lo != block << PREFIX_BITS or hi != block_stop << PREFIX_BITS:
                seeds = seeds[(seeds >= _U(lo)) & (seeds < _U(hi))]

            first = np.searchsorted(exceptions, _U(lo), side="left")
            last = np.searchsorted(exceptions, _U(hi), side="left")
            if last > first:
                seeds = np.concatenate([seeds, exceptions[first:last]])
            yield seeds, hi - lo
