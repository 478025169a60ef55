"""Parallel candidate search over the 48/64-bit seed space."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from mc_seedfinder.errors import ConfigurationError
from mc_seedfinder.models import CandidateResult, Observation, ProgressEvent, SearchRange
from mc_seedfinder.observations import ObservationSet
from mc_seedfinder.oracles import oracle_for

from .aggregator import ProgressCallback, ResultAggregator
from .extension import FULL, JAVA, Extension, is_java_seed
from .sieve import SlimeSieve
from .worker import RangeScanner

if TYPE_CHECKING:
    from mc_seedfinder.config import Settings
    from mc_seedfinder.telemetry import Telemetry

SUPPORTED_BIT_WIDTHS = (48, 64)


def default_worker_count() -> int:
    return os.cpu_count() or 1


class SearchState(str, Enum):
    """Lifecycle states of a search engine."""

    IDLE = "idle"
    PARTITIONING = "partitioning"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class SearchConfig:
    """How to search: seed width, parallelism and optional bounds."""

    bit_width: int = 48
    worker_count: int = field(default_factory=default_worker_count)
    seed_range: tuple[int, int] | None = None
    java_seeds_only: bool = False
    batch_size: int = 1 << 15
    progress_interval_seconds: float = 1.0
    sieve_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> SearchConfig:
        values = {
            "worker_count": settings.worker_count or default_worker_count(),
            "batch_size": settings.batch_size,
            "progress_interval_seconds": settings.progress_interval_seconds,
            "sieve_enabled": settings.sieve_enabled,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(frozen=True, slots=True)
class SearchStage:
    """One pass of the engine over an interval or over a previous stage's seeds."""

    index: int
    filters: tuple[Observation, ...]
    verify: tuple[Observation, ...]
    result_width: int
    matched: int
    interval: tuple[int, int] | None = None
    extension: Extension | None = None
    use_sieve: bool = False
    java_seeds_only: bool = False


def partition_interval(start: int, stop: int, parts: int) -> list[SearchRange]:
    """Split ``[start, stop)`` into at most ``parts`` contiguous ranges of near-equal size."""
    return _partition(start, stop, parts)


def partition_candidates(candidates: Sequence[int], parts: int) -> list[SearchRange]:
    """Split a prior stage's candidate list into index ranges."""
    return _partition(0, len(candidates), parts, candidates)


def _partition(start: int, stop: int, parts: int, candidates: Sequence[int] | None = None) -> list[SearchRange]:
    size = stop - start
    if size <= 0:
        return []
    parts = max(1, min(parts, size))
    quotient, remainder = divmod(size, parts)

    ranges: list[SearchRange] = []
    cursor = start
    for index in range(parts):
        length = quotient + (1 if index < remainder else 0)
        ranges.append(SearchRange(cursor, cursor + length, candidates))
        cursor += length
    return ranges


class SearchEngine:
    """Finds every seed consistent with an observation set.

    A 48-bit search scans the low 48 bits once and reports equivalence
    classes. A 64-bit search with any legacy observation runs two stages:
    the legacy observations narrow the 48-bit space, then each survivor is
    extended by its 2^16 possible high bits (or by the ``nextLong()``
    reachable ones) and checked against the rest.
    """

    def __init__(
        self,
        observations: ObservationSet,
        config: SearchConfig | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        telemetry: Telemetry | None = None,
        cancel_token: threading.Event | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.observations = observations
        self.config = config or SearchConfig()
        self._on_progress = on_progress
        self._telemetry = telemetry
        self._cancel = cancel_token or threading.Event()
        self._logger = logger or logging.getLogger("mc_seedfinder.search")

        self._state = SearchState.IDLE
        self._state_lock = threading.Lock()
        self._stages: list[SearchStage] = []
        self._stage_results: dict[int, list[CandidateResult]] = {}
        self._aggregator: ResultAggregator | None = None
        self._started_at: float | None = None

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if this search cannot run."""
        config = self.config
        if len(self.observations) == 0:
            raise ConfigurationError("Observation set is empty; add at least one observation")
        problems = self.observations.contradictions()
        if problems:
            raise ConfigurationError("Observations contradict each other: " + "; ".join(problems))
        if config.worker_count < 1:
            raise ConfigurationError(f"worker_count must be >= 1, got {config.worker_count}")
        if config.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {config.batch_size}")
        if config.bit_width not in SUPPORTED_BIT_WIDTHS:
            raise ConfigurationError(f"bit_width must be 48 or 64, got {config.bit_width}")
        required = self.observations.required_bit_width()
        if required > config.bit_width:
            raise ConfigurationError(
                f"Observations need {required}-bit seeds but the search is limited to {config.bit_width} bits"
            )
        if config.seed_range is not None:
            lo, hi = config.seed_range
            bits = self._domain_bits()
            if not 0 <= lo < hi <= 1 << bits:
                raise ConfigurationError(f"seed_range must satisfy 0 <= lo < hi <= 2^{bits}, got [{lo}, {hi})")

    def plan(self) -> list[SearchStage]:
        """Stages this search will run, in order."""
        ordered = tuple(self.observations.ordered())
        legacy = tuple(obs for obs in ordered if oracle_for(obs.kind).bit_width == 48)
        full = tuple(obs for obs in ordered if oracle_for(obs.kind).bit_width == 64)
        interval = self.config.seed_range or (0, 1 << self._domain_bits())
        java_only = self.config.java_seeds_only

        if self.config.bit_width == 48:
            return [SearchStage(1, ordered, ordered, 48, len(ordered), interval=interval, use_sieve=True)]
        if not legacy:
            return [
                SearchStage(1, full, full, 64, len(full), interval=interval, java_seeds_only=java_only),
            ]
        return [
            SearchStage(1, legacy, legacy, 48, len(legacy), interval=interval, use_sieve=True),
            SearchStage(2, full, full, 64, len(ordered), extension=JAVA if java_only else FULL),
        ]

    def run(self) -> list[CandidateResult]:
        """Run every stage to completion (or cancellation) and return sorted results."""
        with self._state_lock:
            if self._state is not SearchState.IDLE:
                raise RuntimeError(f"SearchEngine already used (state={self._state.value})")
            self.validate()
            self._state = SearchState.PARTITIONING

        self._started_at = time.monotonic()
        self._stages = self.plan()
        self._emit(
            "search_started",
            {
                "bit_width": self.config.bit_width,
                "workers": self.config.worker_count,
                "observations": len(self.observations),
                "stages": len(self._stages),
            },
        )

        results: list[CandidateResult] = []
        try:
            for stage in self._stages:
                if self._cancel.is_set():
                    break
                results = self._run_stage(stage, results)
                self._stage_results[stage.index] = results
        except BaseException:
            self._cancel.set()
            self._state = SearchState.CANCELLED
            raise

        elapsed_ms = self._elapsed_ms()
        if self._cancel.is_set():
            self._state = SearchState.CANCELLED
            if len(self._stage_results) < len(self._stages):
                # A partial first stage is not a subset of the final answer.
                results = self._stage_results.get(len(self._stages), [])
            self._emit("search_cancelled", {"found": len(results), "elapsed_ms": elapsed_ms})
        else:
            self._state = SearchState.COMPLETED
            self._emit("search_completed", {"found": len(results), "elapsed_ms": elapsed_ms})
        return results

    async def run_async(self) -> list[CandidateResult]:
        return await asyncio.to_thread(self.run)

    def cancel(self) -> None:
        """Ask workers to stop after their current batch. Safe to call repeatedly."""
        if not self._cancel.is_set():
            self._cancel.set()
            self._logger.info("search_cancel_requested", extra={"state": self._state.value})

    def progress(self) -> ProgressEvent:
        aggregator = self._aggregator
        if aggregator is None:
            done = 1.0 if self._state is SearchState.COMPLETED else 0.0
            return ProgressEvent(fraction_done=done, elapsed_ms=self._elapsed_ms())
        return self._overall(aggregator.progress())

    def snapshot(self) -> list[CandidateResult]:
        """Results found so far by the running (or last) stage."""
        return [] if self._aggregator is None else self._aggregator.snapshot()

    def partial_results(self) -> list[CandidateResult]:
        """Results found so far that belong to the final answer.

        Only the final stage produces such results; while an earlier stage
        runs this is empty.
        """
        aggregator = self._aggregator
        if aggregator is None or aggregator.stage < len(self._stages):
            return []
        return aggregator.snapshot()

    def stage_results(self, index: int) -> list[CandidateResult]:
        return list(self._stage_results.get(index, []))

    def _run_stage(self, stage: SearchStage, previous: list[CandidateResult]) -> list[CandidateResult]:
        self._state = SearchState.PARTITIONING
        if stage.interval is not None:
            ranges = partition_interval(*stage.interval, self.config.worker_count)
            total = stage.interval[1] - stage.interval[0]
        else:
            candidates = [result.seed for result in previous]
            ranges = partition_candidates(candidates, self.config.worker_count)
            total = len(candidates)
        self._emit("search_partitioned", {"stage": stage.index, "ranges": len(ranges), "domain_size": total})

        aggregator = ResultAggregator(
            total,
            stage=stage.index,
            on_progress=self._forward_progress,
            progress_interval_seconds=self.config.progress_interval_seconds,
            cancel_token=self._cancel,
        )
        self._aggregator = aggregator
        scanner = RangeScanner(
            stage.filters,
            stage.verify,
            aggregator,
            batch_size=self.config.batch_size,
            result_width=stage.result_width,
            matched=stage.matched,
            sieve=self._build_sieve(stage),
            extension=stage.extension,
            accept=is_java_seed if stage.java_seeds_only else None,
        )

        self._state = SearchState.RUNNING
        if ranges:
            self._scan(scanner, ranges)
        aggregator.finish()

        results = aggregator.snapshot()
        self._emit(
            "search_stage_completed",
            {"stage": stage.index, "found": len(results), "cancelled": aggregator.cancelled},
        )
        return results

    def _scan(self, scanner: RangeScanner, ranges: list[SearchRange]) -> None:
        with ThreadPoolExecutor(max_workers=self.config.worker_count, thread_name_prefix="seed-search") as pool:
            futures = [pool.submit(scanner.scan, search_range) for search_range in ranges]
            try:
                done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            except BaseException:
                self._cancel.set()
                raise
            for future in done:
                error = future.exception()
                if error is not None:
                    self._cancel.set()
                    self._logger.error("search_worker_failed", exc_info=error)
                    raise error

    def _build_sieve(self, stage: SearchStage) -> SlimeSieve | None:
        if not (stage.use_sieve and self.config.sieve_enabled):
            return None
        return SlimeSieve.from_observations(stage.filters)

    def _domain_bits(self) -> int:
        # Mixed or legacy-only 64-bit searches scan the low 48 bits first.
        legacy = any(oracle_for(kind).bit_width == 48 for kind in self.observations.kinds())
        if self.config.bit_width == 64 and legacy:
            return 48
        return self.config.bit_width

    def _forward_progress(self, event: ProgressEvent) -> None:
        overall = self._overall(event)
        if self._on_progress is not None:
            self._on_progress(overall)
        if self._telemetry is not None:
            self._telemetry.emit(
                "search_progress",
                {
                    "fraction_done": overall.fraction_done,
                    "elapsed_ms": overall.elapsed_ms,
                    "stage": overall.stage,
                    "found": overall.found,
                },
            )

    def _overall(self, event: ProgressEvent) -> ProgressEvent:
        stages = max(1, len(self._stages))
        return ProgressEvent(
            fraction_done=min(1.0, (event.stage - 1 + event.fraction_done) / stages),
            elapsed_ms=self._elapsed_ms(),
            stage=event.stage,
            found=event.found,
        )

    def _elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return int((time.monotonic() - self._started_at) * 1000)

    def _emit(self, event_name: str, payload: dict) -> None:
        self._logger.info(event_name, extra=payload)
        if self._telemetry is not None:
            self._telemetry.emit(event_name, payload)
