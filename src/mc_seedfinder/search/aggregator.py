"""Thread-safe collection of search results and progress."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from mc_seedfinder.models import CandidateResult, ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


class ResultAggregator:
    """Collects ``CandidateResult`` objects pushed concurrently by workers.

    Results are keyed by their full seed value; two seeds that only share
    their low 48 bits are kept apart. The aggregator also counts scanned
    candidates for one search stage and turns that count into rate-limited
    :class:`ProgressEvent` callbacks.
    """

    def __init__(
        self,
        total: int = 0,
        *,
        stage: int = 1,
        on_progress: ProgressCallback | None = None,
        progress_interval_seconds: float = 1.0,
        cancel_token: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.total = total
        self.stage = stage
        self._on_progress = on_progress
        self._interval = progress_interval_seconds
        self._cancel_token = cancel_token or threading.Event()
        self._clock = clock

        self._lock = threading.Lock()
        self._results: dict[int, CandidateResult] = {}
        self._scanned = 0
        self._started_at = clock()
        self._last_emit: float | None = None

    def push(self, result: CandidateResult) -> bool:
        """Record ``result``; return ``False`` if its seed was already present."""
        with self._lock:
            if result.seed in self._results:
                return False
            self._results[result.seed] = result
            return True

    def snapshot(self) -> list[CandidateResult]:
        with self._lock:
            results = list(self._results.values())
        return sorted(results, key=lambda result: result.seed)

    def seeds(self) -> list[int]:
        return [result.seed for result in self.snapshot()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def advance(self, count: int) -> None:
        """Account for ``count`` more scanned candidates."""
        event: ProgressEvent | None = None
        with self._lock:
            self._scanned += count
            now = self._clock()
            if self._on_progress is not None and (
                self._last_emit is None or now - self._last_emit >= self._interval
            ):
                self._last_emit = now
                event = self._event(now)
        if event is not None:
            self._on_progress(event)

    def progress(self) -> ProgressEvent:
        with self._lock:
            return self._event(self._clock())

    def finish(self) -> ProgressEvent:
        """Emit and return the final progress event of the stage."""
        event = self.progress()
        if self._on_progress is not None:
            self._on_progress(event)
        return event

    def cancel(self) -> None:
        self._cancel_token.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_token.is_set()

    def _event(self, now: float) -> ProgressEvent:
        fraction = 1.0 if self.total <= 0 else min(1.0, self._scanned / self.total)
        return ProgressEvent(
            fraction_done=fraction,
            elapsed_ms=int((now - self._started_at) * 1000),
            stage=self.stage,
            found=len(self._results),
        )
