"""Per-range candidate scanning run by search worker threads."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence

import numpy as np

from mc_seedfinder.models import CandidateResult, Observation, SearchRange
from mc_seedfinder.oracles import FeatureOracle, oracle_for
from mc_seedfinder.rng import batch

from .aggregator import ResultAggregator
from .extension import FULL, Extension
from .sieve import SlimeSieve


class RangeScanner:
    """Scans :class:`SearchRange` objects for seeds matching every observation.

    Each batch is narrowed by the ``filters`` observations with the numpy
    oracles, cheapest first, and the few survivors are confirmed against
    ``verify`` with the scalar oracles before they reach the aggregator.
    The cancel token is checked once per batch.
    """

    def __init__(
        self,
        filters: Sequence[Observation],
        verify: Sequence[Observation],
        aggregator: ResultAggregator,
        *,
        batch_size: int,
        result_width: int,
        matched: int | None = None,
        sieve: SlimeSieve | None = None,
        extension: Extension | None = None,
        accept: Callable[[int], bool] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._filters = [(obs, oracle_for(obs.kind)) for obs in filters]
        self._verify = [(obs, oracle_for(obs.kind)) for obs in verify]
        self._aggregator = aggregator
        self._batch_size = batch_size
        self._result_width = result_width
        self._matched = len(self._verify) if matched is None else matched
        self._sieve = sieve
        self._extension = extension
        self._accept = accept
        self._logger = logger or logging.getLogger("mc_seedfinder.search.worker")

    def scan(self, search_range: SearchRange) -> int:
        """Scan one range and return how many seeds were evaluated."""
        evaluated = 0
        for seeds, covered in self._batches(search_range):
            if self._aggregator.cancelled:
                self._logger.debug(
                    "range_cancelled",
                    extra={"range_start": search_range.start, "range_stop": search_range.stop},
                )
                break
            self._evaluate(seeds)
            evaluated += seeds.size
            self._aggregator.advance(covered)
        return evaluated

    def _batches(self, search_range: SearchRange) -> Iterator[tuple[np.ndarray, int]]:
        if not search_range.is_interval:
            yield from self._extended_batches(search_range)
        elif self._sieve is not None:
            yield from self._sieve.candidates(search_range.start, search_range.stop, self._batch_size)
        else:
            for start in range(search_range.start, search_range.stop, self._batch_size):
                stop = min(start + self._batch_size, search_range.stop)
                yield batch.seed_range(start, stop), stop - start

    def _extended_batches(self, search_range: SearchRange) -> Iterator[tuple[np.ndarray, int]]:
        lows = search_range.candidates[search_range.start : search_range.stop]
        extension = self._extension or FULL
        per_batch = max(1, self._batch_size // extension.fan_out)
        for offset in range(0, len(lows), per_batch):
            group = lows[offset : offset + per_batch]
            yield np.concatenate([extension.expand(low) for low in group]), len(group)

    def _evaluate(self, seeds: np.ndarray) -> None:
        survivors = seeds
        for observation, oracle in self._filters:
            if not survivors.size:
                return
            survivors = survivors[oracle.test_batch(survivors, observation.locator) == observation.value]

        for seed in survivors.tolist():
            if not self._verified(seed):
                continue
            if self._accept is not None and not self._accept(seed):
                continue
            self._aggregator.push(CandidateResult(seed=seed, matched=self._matched, bit_width=self._result_width))

    def _verified(self, seed: int) -> bool:
        return all(_holds(oracle, observation, seed) for observation, oracle in self._verify)


def _holds(oracle: FeatureOracle, observation: Observation, seed: int) -> bool:
    return oracle.test(seed, observation.locator) == observation.value
