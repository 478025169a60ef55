from __future__ import annotations

import threading

from mc_seedfinder.models import CandidateResult, ProgressEvent
from mc_seedfinder.search import ResultAggregator


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_push_is_exactly_once_and_snapshot_is_sorted() -> None:
    aggregator = ResultAggregator()

    assert aggregator.push(CandidateResult(seed=30, matched=2)) is True
    assert aggregator.push(CandidateResult(seed=10, matched=2)) is True
    assert aggregator.push(CandidateResult(seed=30, matched=2)) is False

    assert aggregator.seeds() == [10, 30]
    assert len(aggregator) == 2


def test_seeds_sharing_low_bits_stay_distinct() -> None:
    aggregator = ResultAggregator()
    low = 0x123456789AB

    aggregator.push(CandidateResult(seed=low | (1 << 48), matched=1))
    aggregator.push(CandidateResult(seed=low | (2 << 48), matched=1))

    assert len(aggregator) == 2


def test_concurrent_pushes() -> None:
    aggregator = ResultAggregator()

    def _push(offset: int) -> None:
        for seed in range(500):
            aggregator.push(CandidateResult(seed=seed * 4 + offset % 2, matched=1))

    threads = [threading.Thread(target=_push, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(aggregator) == 1000
    assert aggregator.seeds() == sorted(aggregator.seeds())


def test_progress_events_are_rate_limited() -> None:
    clock = FakeClock()
    events: list[ProgressEvent] = []
    aggregator = ResultAggregator(
        1000, stage=2, on_progress=events.append, progress_interval_seconds=1.0, clock=clock
    )

    aggregator.advance(100)
    clock.now += 0.5
    aggregator.advance(100)
    clock.now += 0.75
    aggregator.advance(300)

    assert [event.fraction_done for event in events] == [0.1, 0.5]
    assert events[-1].elapsed_ms == 1250
    assert events[-1].stage == 2

    final = aggregator.finish()
    assert final.fraction_done == 0.5
    assert events[-1] == final


def test_cancel_is_idempotent_and_shared() -> None:
    token = threading.Event()
    aggregator = ResultAggregator(cancel_token=token)

    assert aggregator.cancelled is False
    aggregator.cancel()
    aggregator.cancel()

    assert aggregator.cancelled is True
    assert token.is_set()


def test_empty_domain_reports_done() -> None:
    assert ResultAggregator(0).progress().fraction_done == 1.0
